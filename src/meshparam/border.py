"""
Border parameterization policies.

A border parameterizer places the ordered boundary loop of a disc-like mesh
onto a fixed planar shape. Interior vertices are solved for afterwards by
``FixedBorderParameterizer``; the Tutte/Floater theorem only guarantees a
one-to-one map when that shape is convex, so every policy reports convexity.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from typing import Tuple

import numpy as np

from .errors import DegenerateGeometryError, ErrorCode
from .mesh_adaptor import MeshData

_LOGGER = logging.getLogger(__name__)

SPACING_ARC_LENGTH = "arc_length"
SPACING_UNIFORM = "uniform"


def normalize_spacing(spacing: str) -> str:
    s = str(spacing or "").strip().lower().replace("-", "_").replace(" ", "_")
    if s in {"arc_length", "arclength", "arc", "length"}:
        return SPACING_ARC_LENGTH
    if s in {"uniform", "even", "equal", "index"}:
        return SPACING_UNIFORM
    raise ValueError(f"Unsupported border spacing: {spacing}")


def border_segment_lengths(mesh: MeshData, loop: np.ndarray) -> np.ndarray:
    """3D length of each border segment loop[k] -> loop[k + 1] (cyclic)."""
    pts = np.asarray(mesh.vertices, dtype=np.float64)[loop]
    diffs = pts[(np.arange(len(loop)) + 1) % len(loop)] - pts
    return np.linalg.norm(diffs, axis=1)


class BorderParameterizer(ABC):
    """Maps the mesh boundary onto a planar shape."""

    def __init__(self, spacing: str = SPACING_ARC_LENGTH):
        self.spacing = normalize_spacing(spacing)

    @abstractmethod
    def is_border_convex(self) -> bool:
        """Static property of the target shape, not of the mesh."""

    @abstractmethod
    def _map_parameters(self, t: np.ndarray, perimeter: float) -> Tuple[ErrorCode, np.ndarray]:
        """Map normalized loop parameters t in [0, 1) onto the shape."""

    def _loop_parameters(self, lengths: np.ndarray) -> np.ndarray:
        """Normalized position of each border vertex along the loop."""
        count = int(lengths.size)
        if self.spacing == SPACING_UNIFORM:
            return np.arange(count, dtype=np.float64) / float(count)
        cum = np.concatenate([[0.0], np.cumsum(lengths)[:-1]])
        return cum / float(lengths.sum())

    def parameterize_border(self, mesh: MeshData) -> Tuple[ErrorCode, np.ndarray, np.ndarray]:
        """
        Compute 2D coordinates for the border loop without touching the mesh.

        Returns:
            (status, border vertex indices in loop order, (B, 2) coordinates)

        Raises:
            DegenerateGeometryError: two consecutive border vertices coincide
        """
        empty = (np.zeros((0,), dtype=np.int32), np.zeros((0, 2), dtype=np.float64))
        loop = np.asarray(mesh.get_boundary_vertices(), dtype=np.int32).reshape(-1)
        if loop.size == 0:
            return ErrorCode.ERROR_NO_SURFACE_MESH, *empty
        if loop.size < 3:
            return ErrorCode.ERROR_BORDER_TOO_SHORT, *empty

        lengths = border_segment_lengths(mesh, loop)
        perimeter = float(lengths.sum())
        if not np.isfinite(perimeter) or perimeter <= 0.0:
            return ErrorCode.ERROR_BORDER_TOO_SHORT, *empty
        zero = np.flatnonzero(lengths <= 0.0)
        if zero.size:
            k = int(zero[0])
            a, b = int(loop[k]), int(loop[(k + 1) % loop.size])
            raise DegenerateGeometryError(
                f"border vertices {a} and {b} are coincident (zero-length edge)",
                vertices=(a, b),
            )

        t = self._loop_parameters(lengths)
        status, uv = self._map_parameters(t, perimeter)
        if status is not ErrorCode.OK:
            return status, *empty
        if uv.shape != (loop.size, 2) or not np.isfinite(uv).all():
            return ErrorCode.ERROR_INVALID_BORDER, *empty

        _LOGGER.debug(
            "%s mapped %d border vertices (perimeter=%.6g, spacing=%s)",
            type(self).__name__, loop.size, perimeter, self.spacing,
        )
        return ErrorCode.OK, loop, uv

    def map_border(self, mesh: MeshData) -> ErrorCode:
        """Write border coordinates into ``mesh.uv_coords`` and return the status."""
        status, loop, uv = self.parameterize_border(mesh)
        if status is ErrorCode.OK:
            for index, coord in zip(loop, uv):
                mesh.set_vertex_uv(int(index), coord)
        return status


class CircularBorderParameterizer(BorderParameterizer):
    """
    Border on a circle, counter-clockwise, first loop vertex at angle 0.

    Args:
        spacing: 'arc_length' (angles follow 3D border length) or 'uniform'
        radius: circle radius (ignored with preserve_scale)
        center: circle center
        preserve_scale: radius = perimeter / 2pi so the layout keeps mesh units
    """

    def __init__(
        self,
        spacing: str = SPACING_ARC_LENGTH,
        *,
        radius: float = 1.0,
        center: Tuple[float, float] = (0.0, 0.0),
        preserve_scale: bool = False,
    ):
        super().__init__(spacing)
        if not np.isfinite(radius) or float(radius) <= 0.0:
            raise ValueError(f"radius must be positive: {radius}")
        self.radius = float(radius)
        self.center = np.asarray(center, dtype=np.float64).reshape(2)
        self.preserve_scale = bool(preserve_scale)

    def is_border_convex(self) -> bool:
        return True

    def _map_parameters(self, t: np.ndarray, perimeter: float) -> Tuple[ErrorCode, np.ndarray]:
        radius = perimeter / (2.0 * np.pi) if self.preserve_scale else self.radius
        angles = 2.0 * np.pi * t
        uv = np.column_stack([np.cos(angles), np.sin(angles)]) * radius + self.center
        return ErrorCode.OK, uv


class SquareBorderParameterizer(BorderParameterizer):
    """
    Border on the square [0, size]^2, counter-clockwise from the origin.

    The corners are snapped to the loop vertices closest to 0, 1/4, 1/2, 3/4
    of the loop so that each side is a straight segment between two border
    vertices.
    """

    def __init__(self, spacing: str = SPACING_ARC_LENGTH, *, size: float = 1.0, preserve_scale: bool = False):
        super().__init__(spacing)
        if not np.isfinite(size) or float(size) <= 0.0:
            raise ValueError(f"size must be positive: {size}")
        self.size = float(size)
        self.preserve_scale = bool(preserve_scale)

    def is_border_convex(self) -> bool:
        return True

    def _corner_indices(self, t: np.ndarray) -> np.ndarray | None:
        count = int(t.size)
        if count < 4:
            return None
        corners = [0]
        for c in (0.25, 0.5, 0.75):
            idx = int(np.argmin(np.abs(t - c)))
            idx = max(idx, corners[-1] + 1)
            corners.append(idx)
        # 마지막 모서리 뒤에 변(side)이 남아 있어야 함
        if corners[-1] > count - 1:
            return None
        return np.asarray(corners, dtype=np.int64)

    def _map_parameters(self, t: np.ndarray, perimeter: float) -> Tuple[ErrorCode, np.ndarray]:
        corners = self._corner_indices(t)
        if corners is None:
            _LOGGER.debug("Square border needs at least 4 distinct corners (got %d vertices)", t.size)
            return ErrorCode.ERROR_INVALID_BORDER, np.zeros((0, 2), dtype=np.float64)

        size = perimeter / 4.0 if self.preserve_scale else self.size
        count = int(t.size)
        uv = np.zeros((count, 2), dtype=np.float64)
        ends = list(corners[1:]) + [count]
        for side, (start, end) in enumerate(zip(corners, ends)):
            t0 = float(t[start])
            t1 = float(t[end]) if end < count else 1.0
            span = t1 - t0
            for k in range(int(start), int(end)):
                s = (float(t[k]) - t0) / span if span > 0 else 0.0
                if side == 0:
                    uv[k] = (s, 0.0)
                elif side == 1:
                    uv[k] = (1.0, s)
                elif side == 2:
                    uv[k] = (1.0 - s, 1.0)
                else:
                    uv[k] = (0.0, 1.0 - s)
        return ErrorCode.OK, uv * size


def make_border_parameterizer(
    shape: str = "circle",
    spacing: str = SPACING_ARC_LENGTH,
    **kwargs,
) -> BorderParameterizer:
    """Build a border policy by name ('circle' | 'square')."""
    s = str(shape or "circle").strip().lower()
    if s in {"circle", "circular", "disc", "disk"}:
        return CircularBorderParameterizer(spacing, **kwargs)
    if s in {"square", "rect", "rectangle", "fixed_rect"}:
        return SquareBorderParameterizer(spacing, **kwargs)
    raise ValueError(f"Unsupported border shape: {shape}")
