"""
Edge weight strategies for fixed-border parameterization.

Each strategy returns w_ij for an interior vertex i and the neighbor at
``position`` in i's cyclic neighbor array. The orchestrator puts -w_ij
off the diagonal and sum_j w_ij on the diagonal of row i.

References:
    - Floater, "Mean value coordinates" (2003)
    - Tutte, "How to draw a graph" (1963)
    - Eck et al., "Multiresolution analysis of arbitrary meshes" (1995)
    - Desbrun, Meyer, Alliez, "Intrinsic parameterizations of surface meshes" (2002)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import math

import numpy as np

from .errors import DegenerateGeometryError
from .mesh_adaptor import MeshData


def _edge(p_from: np.ndarray, p_to: np.ndarray, ids: tuple[int, int]) -> tuple[np.ndarray, float]:
    e = np.asarray(p_to, dtype=np.float64) - np.asarray(p_from, dtype=np.float64)
    length = float(np.linalg.norm(e))
    if length == 0.0:
        raise DegenerateGeometryError(
            f"vertices {ids[0]} and {ids[1]} are coincident (zero-length edge)",
            vertices=ids,
        )
    return e, length


def _corner_terms(mesh: MeshData, a: int, corner: int, b: int) -> tuple[float, float]:
    """(|u x v|, u . v) for the corner vectors u = P_a - P_corner, v = P_b - P_corner."""
    p = mesh.get_vertex_position(corner)
    u, _ = _edge(p, mesh.get_vertex_position(a), (corner, a))
    v, _ = _edge(p, mesh.get_vertex_position(b), (corner, b))
    return float(np.linalg.norm(np.cross(u, v))), float(np.dot(u, v))


def corner_angle(mesh: MeshData, a: int, corner: int, b: int) -> float:
    """Angle (rad) at ``corner`` in the triangle (a, corner, b)."""
    sin_part, cos_part = _corner_terms(mesh, a, corner, b)
    return math.atan2(sin_part, cos_part)


def corner_cotangent(mesh: MeshData, a: int, corner: int, b: int) -> float:
    """cot of the angle at ``corner`` (inf when the corner is flat)."""
    sin_part, cos_part = _corner_terms(mesh, a, corner, b)
    if sin_part == 0.0:
        return math.copysign(math.inf, cos_part) if cos_part != 0.0 else math.nan
    return cos_part / sin_part


def _around(neighbors: np.ndarray, position: int) -> tuple[int, int, int]:
    """(previous, current, next) neighbor ids around a cyclic position."""
    count = len(neighbors)
    j = int(neighbors[position % count])
    k = int(neighbors[(position - 1) % count])
    l_ = int(neighbors[(position + 1) % count])
    return k, j, l_


class WeightStrategy(ABC):
    """Base class; ``always_positive`` tells whether w_ij > 0 on valid geometry."""

    name = "base"
    always_positive = False

    @abstractmethod
    def weight(self, mesh: MeshData, i: int, neighbors: np.ndarray, position: int) -> float:
        """w_ij for the neighbor at ``position`` in the cycle of vertex i."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class MeanValueWeights(WeightStrategy):
    """
    Floater's mean value coordinates.

        w_ij = (tan(gamma_ij / 2) + tan(delta_ij / 2)) / |P_i - P_j|

    gamma_ij is the angle at P_i between P_j and the previous neighbor P_k,
    delta_ij the angle at P_i between the next neighbor P_l and P_j. Both are
    in (0, pi) on a valid mesh, so the weight is positive and the map is
    one-to-one whenever the border lands on a convex polygon.
    """

    name = "mean_value"
    always_positive = True

    def weight(self, mesh: MeshData, i: int, neighbors: np.ndarray, position: int) -> float:
        k, j, l_ = _around(neighbors, position)
        _, length = _edge(mesh.get_vertex_position(j), mesh.get_vertex_position(i), (j, i))

        gamma_ij = corner_angle(mesh, j, i, k)
        delta_ij = corner_angle(mesh, l_, i, j)
        return (math.tan(0.5 * gamma_ij) + math.tan(0.5 * delta_ij)) / length


class UniformWeights(WeightStrategy):
    """Tutte barycentric mapping: every neighbor weighs 1."""

    name = "uniform"
    always_positive = True

    def weight(self, mesh: MeshData, i: int, neighbors: np.ndarray, position: int) -> float:
        _, j, _ = _around(neighbors, position)
        _edge(mesh.get_vertex_position(j), mesh.get_vertex_position(i), (j, i))
        return 1.0


class DiscreteConformalWeights(WeightStrategy):
    """
    Cotangent weights (discrete harmonic / conformal map).

        w_ij = cot(alpha_ij) + cot(beta_ij)

    alpha_ij and beta_ij are the angles opposite edge ij, at P_k and P_l.
    Negative for obtuse configurations, so no one-to-one guarantee by itself.
    """

    name = "conformal"
    always_positive = False

    def weight(self, mesh: MeshData, i: int, neighbors: np.ndarray, position: int) -> float:
        k, j, l_ = _around(neighbors, position)
        _edge(mesh.get_vertex_position(j), mesh.get_vertex_position(i), (j, i))
        return corner_cotangent(mesh, i, k, j) + corner_cotangent(mesh, i, l_, j)


class DiscreteAuthalicWeights(WeightStrategy):
    """
    Discrete authalic (area-preserving) weights.

        w_ij = (cot(psi_ij) + cot(theta_ij)) / |P_i - P_j|^2

    psi_ij and theta_ij are the angles at P_j in triangles (P_i, P_j, P_k)
    and (P_i, P_j, P_l).
    """

    name = "authalic"
    always_positive = False

    def weight(self, mesh: MeshData, i: int, neighbors: np.ndarray, position: int) -> float:
        k, j, l_ = _around(neighbors, position)
        _, length = _edge(mesh.get_vertex_position(j), mesh.get_vertex_position(i), (j, i))
        psi_ij = corner_cotangent(mesh, i, j, k)
        theta_ij = corner_cotangent(mesh, i, j, l_)
        return (psi_ij + theta_ij) / (length * length)


_STRATEGIES = {
    "mean_value": MeanValueWeights,
    "uniform": UniformWeights,
    "conformal": DiscreteConformalWeights,
    "authalic": DiscreteAuthalicWeights,
}


def normalize_weights_name(name: str) -> str:
    raw = str(name or "mean_value").strip().lower().replace("-", "_").replace(" ", "_")
    if raw in {"mean_value", "meanvalue", "mvc", "floater", "mean_value_coordinates"}:
        return "mean_value"
    if raw in {"uniform", "tutte", "barycentric", "barycentric_mapping"}:
        return "uniform"
    if raw in {"conformal", "cotangent", "cot", "harmonic", "discrete_conformal"}:
        return "conformal"
    if raw in {"authalic", "discrete_authalic", "area"}:
        return "authalic"
    raise ValueError(f"Unsupported weight strategy: {name}")


def make_weight_strategy(name: str = "mean_value") -> WeightStrategy:
    return _STRATEGIES[normalize_weights_name(name)]()
