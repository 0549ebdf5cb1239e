"""
UV layout exporter (SVG / PNG)

파라미터화 결과(UV)를 와이어프레임 + 경계선으로 내보냅니다.
뒤집힌 삼각형이 있으면 별도 색으로 채워 표시합니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image, ImageDraw

from .distortion import signed_uv_areas
from .parameterizer import ParameterizationResult
from .runtime_defaults import DEFAULTS


@dataclass(frozen=True)
class UVLayoutOptions:
    margin: float = 0.02  # fraction of the layout size
    include_outline: bool = True
    include_wireframe: bool = True
    highlight_flipped: bool = True
    stroke_color: str = "#000000"
    stroke_width: float = 0.002  # fraction of the layout size
    outline_color: str = "#D62728"
    outline_width: float = 0.004
    flipped_color: str = "#FF9896"
    background: str = "#FFFFFF"
    resolution: Optional[int] = None  # PNG 긴 변 픽셀 수 (None이면 DEFAULTS)


def _require_uv(result: ParameterizationResult) -> np.ndarray:
    if not result.ok or result.uv is None:
        raise ValueError(f"cannot export a failed parameterization ({result.status.value})")
    uv = np.asarray(result.uv, dtype=np.float64)
    if uv.ndim != 2 or uv.shape[0] == 0 or not np.isfinite(uv).all():
        raise ValueError("uv coordinates are empty or non-finite")
    return uv[:, :2]


def _flipped_mask(result: ParameterizationResult, uv: np.ndarray) -> np.ndarray:
    areas = signed_uv_areas(result.faces, uv)
    if areas.size == 0:
        return np.zeros((0,), dtype=bool)
    orientation = 1.0 if float(areas.sum()) >= 0.0 else -1.0
    return areas * orientation <= 0.0


class UVLayoutExporter:
    """ParameterizationResult를 SVG/PNG 레이아웃으로 내보내는 유틸리티."""

    def _layout(self, uv: np.ndarray, margin: float) -> tuple[np.ndarray, float]:
        """UV를 [margin, 1 - margin] 정사각 영역으로 옮긴 좌표 (y-up)"""
        min_uv = uv.min(axis=0)
        extent = float(np.max(uv.max(axis=0) - min_uv))
        if extent <= 0:
            extent = 1.0
        usable = max(1e-6, 1.0 - 2.0 * margin)
        pts = (uv - min_uv) / extent * usable + margin
        return pts, extent

    def export_svg(self, result: ParameterizationResult, output_path: str | Path,
                   options: UVLayoutOptions | None = None) -> str:
        options = options or UVLayoutOptions()
        output_path = Path(output_path)
        uv = _require_uv(result)
        pts, _extent = self._layout(uv, float(options.margin))

        # SVG는 y-down
        def to_svg(points: np.ndarray) -> str:
            return " ".join(f"{x:.6f},{1.0 - y:.6f}" for x, y in points)

        svg_parts: list[str] = [
            '<?xml version="1.0" encoding="UTF-8" standalone="no"?>',
            '<svg xmlns="http://www.w3.org/2000/svg" width="1000" height="1000" viewBox="0 0 1 1">',
            f'<rect x="0" y="0" width="1" height="1" fill="{options.background}" />',
        ]

        faces = result.faces
        flipped = _flipped_mask(result, uv) if options.highlight_flipped else np.zeros(len(faces), dtype=bool)
        if np.any(flipped):
            svg_parts.append(f'<g id="flipped" fill="{options.flipped_color}" stroke="none">')
            for face in faces[flipped]:
                svg_parts.append(f'<polygon points="{to_svg(pts[face])}" />')
            svg_parts.append('</g>')

        if options.include_wireframe:
            svg_parts.append(
                f'<g id="wireframe" stroke="{options.stroke_color}" fill="none" '
                f'stroke-width="{options.stroke_width}">'
            )
            for face in faces:
                svg_parts.append(f'<polygon points="{to_svg(pts[face])}" />')
            svg_parts.append('</g>')

        if options.include_outline:
            svg_parts.append(
                f'<g id="outline" stroke="{options.outline_color}" fill="none" '
                f'stroke-width="{options.outline_width}">'
            )
            for loop in result.mesh.get_boundary_loops():
                if len(loop) < 2:
                    continue
                svg_parts.append(f'<polygon points="{to_svg(pts[loop])}" />')
            svg_parts.append('</g>')

        svg_parts.append('</svg>')
        output_path.write_text("\n".join(svg_parts), encoding="utf-8")
        return str(output_path)

    def render_png(self, result: ParameterizationResult,
                   options: UVLayoutOptions | None = None) -> Image.Image:
        options = options or UVLayoutOptions()
        uv = _require_uv(result)
        size = int(options.resolution or DEFAULTS.export_resolution)
        pts, _extent = self._layout(uv, float(options.margin))

        pixels = np.empty_like(pts)
        pixels[:, 0] = pts[:, 0] * (size - 1)
        pixels[:, 1] = (1.0 - pts[:, 1]) * (size - 1)

        image = Image.new("RGB", (size, size), options.background)
        draw = ImageDraw.Draw(image)
        stroke = max(1, int(round(options.stroke_width * size)))
        outline = max(1, int(round(options.outline_width * size)))

        faces = result.faces
        if options.highlight_flipped:
            for face in faces[_flipped_mask(result, uv)]:
                draw.polygon([tuple(p) for p in pixels[face]], fill=options.flipped_color)

        if options.include_wireframe:
            for face in faces:
                poly = [tuple(p) for p in pixels[face]]
                draw.line(poly + [poly[0]], fill=options.stroke_color, width=stroke)

        if options.include_outline:
            for loop in result.mesh.get_boundary_loops():
                if len(loop) < 2:
                    continue
                poly = [tuple(p) for p in pixels[loop]]
                draw.line(poly + [poly[0]], fill=options.outline_color, width=outline)

        return image

    def export_png(self, result: ParameterizationResult, output_path: str | Path,
                   options: UVLayoutOptions | None = None) -> str:
        image = self.render_png(result, options)
        image.save(str(output_path))
        return str(output_path)
