"""
Output path helpers for parameterization exports.

Centralizes naming conventions so the CLI and scripts stay in sync.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]

UV_MESH_SUFFIX = ".uv.obj"
UV_LAYOUT_SVG_SUFFIX = ".uv.svg"
UV_LAYOUT_PNG_SUFFIX = ".uv.png"


def _as_path(value: PathLike) -> Path:
    return value if isinstance(value, Path) else Path(value)


def _resolve_output_path(input_path: PathLike, output_path: Optional[PathLike], suffix: str) -> Path:
    if output_path:
        return _as_path(output_path)
    return _as_path(input_path).with_suffix(suffix)


def uv_mesh_output_path(input_path: PathLike, output_path: Optional[PathLike] = None) -> Path:
    return _resolve_output_path(input_path, output_path, UV_MESH_SUFFIX)


def uv_layout_svg_path(input_path: PathLike, output_path: Optional[PathLike] = None) -> Path:
    return _resolve_output_path(input_path, output_path, UV_LAYOUT_SVG_SUFFIX)


def uv_layout_png_path(input_path: PathLike, output_path: Optional[PathLike] = None) -> Path:
    return _resolve_output_path(input_path, output_path, UV_LAYOUT_PNG_SUFFIX)
