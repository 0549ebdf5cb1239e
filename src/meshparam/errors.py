"""
Status codes and exceptions shared by the parameterization modules.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Outcome of one parameterization attempt (closed set)."""

    OK = "ok"
    ERROR_EMPTY_MESH = "empty_mesh"
    ERROR_NON_TRIANGULAR_MESH = "non_triangular_mesh"
    ERROR_NO_SURFACE_MESH = "no_surface_mesh"  # not a single topological disc
    ERROR_BORDER_TOO_SHORT = "border_too_short"
    ERROR_INVALID_BORDER = "invalid_border"
    ERROR_CANNOT_SOLVE_LINEAR_SYSTEM = "cannot_solve_linear_system"
    ERROR_NO_1_TO_1_MAPPING = "no_1_to_1_mapping"

    @property
    def ok(self) -> bool:
        return self is ErrorCode.OK

    def describe(self) -> str:
        return _DESCRIPTIONS.get(self, self.value)


_DESCRIPTIONS = {
    ErrorCode.OK: "Success",
    ErrorCode.ERROR_EMPTY_MESH: "Input mesh is empty",
    ErrorCode.ERROR_NON_TRIANGULAR_MESH: "Input mesh is not triangular",
    ErrorCode.ERROR_NO_SURFACE_MESH: "Input mesh is not a topological disc",
    ErrorCode.ERROR_BORDER_TOO_SHORT: "Border loop has fewer than 3 vertices or zero length",
    ErrorCode.ERROR_INVALID_BORDER: "Border could not be mapped onto the target shape",
    ErrorCode.ERROR_CANNOT_SOLVE_LINEAR_SYSTEM: "Cannot solve the linear system",
    ErrorCode.ERROR_NO_1_TO_1_MAPPING: "Parameterization does not ensure a one-to-one mapping",
}


class DegenerateGeometryError(ValueError):
    """
    Raised when coincident points make a weight undefined.

    The parameterizer requires a valid mesh; hitting this means that
    precondition was violated upstream, so it is not reported as a status.
    """

    def __init__(self, message: str, *, vertices: tuple[int, ...] = ()):
        super().__init__(message)
        self.vertices = tuple(int(v) for v in vertices)
