"""
Fixed-Border Parameterization Module
고정 경계 파라미터화 - 경계를 볼록(convex) 도형에 고정하고 내부 정점을 선형 시스템으로 풂

Based on: "Mean Value Coordinates" (Floater, 2003) and
"Parametrization and smooth approximation of surface triangulations" (Floater, 1997)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple
import logging
import numpy as np

from .border import BorderParameterizer, CircularBorderParameterizer, make_border_parameterizer
from .distortion import compute_distortion
from .errors import ErrorCode
from .linear_algebra import DirectSolver, SparseLinearSystem, make_solver
from .logging_utils import log_once
from .mesh_adaptor import MeshData
from .runtime_defaults import DEFAULTS
from .weights import MeanValueWeights, WeightStrategy, make_weight_strategy

_LOGGER = logging.getLogger(__name__)


class Stage(str, Enum):
    """파라미터화 진행 단계 (FAILED는 흡수 상태)"""
    INIT = "init"
    BORDER_MAPPED = "border_mapped"
    SYSTEM_BUILT = "system_built"
    SOLVED_U = "solved_u"
    SOLVED_V = "solved_v"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ParameterizationResult:
    """
    파라미터화 결과

    Attributes:
        status: 결과 코드 (ErrorCode.OK 이면 성공)
        stage: 마지막으로 도달한 단계
        mesh: 입력 메쉬 (성공 시 mesh.uv_coords 에 결과가 기록됨)
        uv: (N, 2) 2D 좌표 (실패 시 None)
        is_one_to_one: 1:1 매핑 보장 여부 (참고용, status에 영향 없음)
        non_positive_weights: 조립 중 관측된 0 이하(또는 비유한) 가중치 수
        min_weight: 관측된 최소 가중치
        distortion_per_face: 각 면의 왜곡도 (0=왜곡없음, 1=최대)
    """
    status: ErrorCode
    stage: Stage
    mesh: MeshData
    uv: Optional[np.ndarray] = None
    is_one_to_one: bool = False
    n_border_vertices: int = 0
    n_interior_vertices: int = 0
    non_positive_weights: int = 0
    min_weight: float = float("inf")
    distortion_per_face: Optional[np.ndarray] = None
    meta: dict = field(default_factory=dict)

    # 캐시
    _bounds: Optional[np.ndarray] = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.status is ErrorCode.OK

    @property
    def faces(self) -> np.ndarray:
        return self.mesh.faces

    @property
    def n_vertices(self) -> int:
        return 0 if self.uv is None else len(self.uv)

    @property
    def bounds(self) -> np.ndarray:
        """2D 경계 [[min_u, min_v], [max_u, max_v]]"""
        if self._bounds is None:
            if self.uv is None or self.uv.size == 0:
                self._bounds = np.zeros((2, 2), dtype=np.float64)
            else:
                self._bounds = np.array([self.uv.min(axis=0), self.uv.max(axis=0)])
        return self._bounds

    @property
    def extents(self) -> np.ndarray:
        """2D 크기 [width, height]"""
        return self.bounds[1] - self.bounds[0]

    @property
    def width(self) -> float:
        return float(self.extents[0])

    @property
    def height(self) -> float:
        return float(self.extents[1])

    @property
    def mean_distortion(self) -> float:
        """평균 왜곡도"""
        if self.distortion_per_face is None or self.distortion_per_face.size == 0:
            return 0.0
        return float(np.mean(self.distortion_per_face))

    @property
    def max_distortion(self) -> float:
        """최대 왜곡도"""
        if self.distortion_per_face is None or self.distortion_per_face.size == 0:
            return 0.0
        return float(np.max(self.distortion_per_face))

    def normalize(self) -> 'ParameterizationResult':
        """UV 좌표를 [0, 1] 범위로 정규화한 사본 (종횡비 유지)"""
        if self.uv is None or self.uv.size == 0:
            return replace(self, _bounds=None)

        min_uv = self.uv.min(axis=0)
        extent = float(np.max(self.uv.max(axis=0) - min_uv))
        if extent <= 0:
            extent = 1.0  # 0으로 나누기 방지
        return replace(self, uv=(self.uv - min_uv) / extent, _bounds=None)

    def get_pixel_coordinates(self, width: int, height: int) -> np.ndarray:
        """
        UV를 픽셀 좌표로 변환 (Y축은 이미지 좌표계로 뒤집힘)

        Returns:
            (N, 2) float 픽셀 좌표
        """
        if self.uv is None:
            return np.zeros((0, 2), dtype=np.float64)
        pixels = self.normalize().uv.copy()
        pixels[:, 0] *= (width - 1)
        pixels[:, 1] *= (height - 1)
        pixels[:, 1] = (height - 1) - pixels[:, 1]
        return pixels


def validate_mesh(mesh: MeshData) -> ErrorCode:
    """
    고정 경계 파라미터화의 입력 조건을 검사합니다.

    - 비어있지 않음, 모든 면이 삼각형
    - 연결된 단일 표면, edge-manifold, 일관된 면 방향
    - 경계 루프가 정확히 하나 (3개 이상의 정점), Euler characteristic == 1
    """
    if mesh is None:
        raise ValueError("mesh is None")

    if mesh.n_vertices == 0 or mesh.n_faces == 0:
        return ErrorCode.ERROR_EMPTY_MESH
    if not mesh.is_triangular:
        return ErrorCode.ERROR_NON_TRIANGULAR_MESH

    n = mesh.n_vertices
    faces = mesh.faces
    if np.any(faces >= n):
        _LOGGER.debug("validate_mesh: face index out of range")
        return ErrorCode.ERROR_NO_SURFACE_MESH
    if np.any((faces[:, 0] == faces[:, 1]) | (faces[:, 1] == faces[:, 2]) | (faces[:, 0] == faces[:, 2])):
        _LOGGER.debug("validate_mesh: face with repeated vertex")
        return ErrorCode.ERROR_NO_SURFACE_MESH
    if not np.isfinite(mesh.vertices).all():
        _LOGGER.debug("validate_mesh: non-finite vertex positions")
        return ErrorCode.ERROR_NO_SURFACE_MESH

    referenced = np.zeros(n, dtype=bool)
    referenced[faces.reshape(-1)] = True
    if not referenced.all():
        _LOGGER.debug("validate_mesh: %d unreferenced vertices", int(np.count_nonzero(~referenced)))
        return ErrorCode.ERROR_NO_SURFACE_MESH

    topo = mesh.topology
    if any(count > 1 for count in topo.half_edges.values()):
        _LOGGER.debug("validate_mesh: non-manifold edge or inconsistent face orientation")
        return ErrorCode.ERROR_NO_SURFACE_MESH
    if len(mesh.get_face_components()) != 1:
        _LOGGER.debug("validate_mesh: mesh is not connected")
        return ErrorCode.ERROR_NO_SURFACE_MESH

    loops = mesh.get_boundary_loops()
    if len(loops) != 1 or topo.open_chains or topo.branching_vertices.size:
        _LOGGER.debug(
            "validate_mesh: %d boundary loops (open=%d, branching=%d)",
            len(loops), topo.open_chains, int(topo.branching_vertices.size),
        )
        return ErrorCode.ERROR_NO_SURFACE_MESH
    if len(loops[0]) < 3:
        return ErrorCode.ERROR_BORDER_TOO_SHORT

    if not topo.manifold.all():
        _LOGGER.debug("validate_mesh: %d non-manifold vertices", int(np.count_nonzero(~topo.manifold)))
        return ErrorCode.ERROR_NO_SURFACE_MESH
    for i in mesh.get_interior_vertices():
        if len(mesh.get_vertex_neighbors(int(i))) < 3:
            return ErrorCode.ERROR_NO_SURFACE_MESH

    chi = mesh.euler_characteristic()
    if chi != 1:
        _LOGGER.debug("validate_mesh: Euler characteristic %d (genus > 0)", chi)
        return ErrorCode.ERROR_NO_SURFACE_MESH

    return ErrorCode.OK


class FixedBorderParameterizer:
    """
    고정 경계 파라미터화

    경계 정점을 볼록 도형에 고정한 뒤, 각 내부 정점이 이웃의 가중 평균이
    되도록 하는 선형 시스템을 u, v 축마다 풉니다.
    """

    def __init__(
        self,
        border: Optional[BorderParameterizer] = None,
        weights: Optional[WeightStrategy] = None,
        solver=None,
        *,
        check_weights: bool = True,
    ):
        """
        Args:
            border: 경계 매핑 정책 (기본: arc-length 원)
            weights: 엣지 가중치 전략 (기본: mean value coordinates)
            solver: solve(A, b) -> (x, success) 를 제공하는 객체 (기본: sparse LU)
            check_weights: 조립 중 가중치 부호를 검사해 1:1 보장 여부에 반영
        """
        self.border = border if border is not None else CircularBorderParameterizer()
        self.weights = weights if weights is not None else MeanValueWeights()
        self.solver = solver if solver is not None else DirectSolver()
        self.check_weights = bool(check_weights)

    def is_one_to_one_mapping(self, non_positive_weights: int = 0) -> bool:
        """
        Theorem: 모든 w_ij > 0 이고 경계가 볼록 다각형에 매핑되면 1:1 매핑이 보장됩니다.
        """
        if not self.border.is_border_convex():
            return False
        if non_positive_weights > 0:
            return False
        if self.weights.always_positive:
            return True
        return self.check_weights

    def _fail(self, result: ParameterizationResult, status: ErrorCode) -> ParameterizationResult:
        _LOGGER.debug("Parameterization failed at stage %s: %s", result.stage.value, status.value)
        result.status = status
        result.stage = Stage.FAILED
        result.uv = None
        return result

    def _build_system(
        self,
        mesh: MeshData,
        border: np.ndarray,
        border_uv: np.ndarray,
    ) -> Tuple[SparseLinearSystem, int, float]:
        n = mesh.n_vertices
        system = SparseLinearSystem(n, n_rhs=2)

        is_border = np.zeros(n, dtype=bool)
        is_border[border] = True
        border_coord = np.zeros((n, 2), dtype=np.float64)
        border_coord[border] = border_uv

        non_positive = 0
        min_weight = float("inf")

        for i in range(n):
            if is_border[i]:
                # 경계 정점: 고정 (identity row)
                system.add_coef(i, i, 1.0)
                system.set_rhs(i, border_coord[i])
                continue

            # 내부 정점: 이웃의 가중 평균
            neighbors = mesh.get_vertex_neighbors(i)
            diagonal = 0.0
            for position in range(len(neighbors)):
                j = int(neighbors[position])
                w = float(self.weights.weight(mesh, i, neighbors, position))
                if self.check_weights:
                    min_weight = min(min_weight, w)
                    if not (w > 0.0 and np.isfinite(w)):
                        non_positive += 1
                system.add_coef(i, j, -w)
                diagonal += w
            system.add_coef(i, i, diagonal)

        if non_positive:
            log_once(
                _LOGGER,
                f"parameterizer:non_positive_weights:{self.weights.name}",
                logging.WARNING,
                "%d non-positive %s weights (min=%.3e); one-to-one mapping is not guaranteed",
                non_positive,
                self.weights.name,
                min_weight,
            )
        return system, non_positive, min_weight

    def _solve_axis(self, A, b: np.ndarray) -> Tuple[np.ndarray, bool]:
        try:
            x, success = self.solver.solve(A, b)
        except (RuntimeError, ValueError, ArithmeticError):
            _LOGGER.debug("Solver %r raised", self.solver, exc_info=True)
            return np.zeros_like(b), False
        x = np.asarray(x, dtype=np.float64).ravel()
        if not success or x.shape != b.shape or not np.isfinite(x).all():
            return x, False
        return x, True

    def parameterize(self, mesh: MeshData) -> ParameterizationResult:
        """
        메쉬를 파라미터화하고 성공 시 mesh.uv_coords 에 결과를 기록합니다.

        Returns:
            ParameterizationResult (status != OK 이면 uv는 None, 메쉬는 변경되지 않음)

        Raises:
            DegenerateGeometryError: 길이가 0인 엣지 (입력 메쉬 전제 조건 위반)
        """
        if mesh is None:
            raise ValueError("mesh is None")

        result = ParameterizationResult(status=ErrorCode.OK, stage=Stage.INIT, mesh=mesh)
        result.meta.update(
            border=type(self.border).__name__,
            border_convex=bool(self.border.is_border_convex()),
            weights=self.weights.name,
            solver=getattr(self.solver, "name", type(self.solver).__name__),
        )

        # 1) 입력 검증
        status = validate_mesh(mesh)
        if status is not ErrorCode.OK:
            return self._fail(result, status)

        # 2) 경계 매핑
        status, border, border_uv = self.border.parameterize_border(mesh)
        if status is not ErrorCode.OK:
            return self._fail(result, status)
        result.stage = Stage.BORDER_MAPPED
        result.n_border_vertices = int(border.size)
        result.n_interior_vertices = int(mesh.n_vertices - border.size)
        _LOGGER.debug("Border mapped: %d vertices", border.size)

        # 3) 선형 시스템 조립
        system, non_positive, min_weight = self._build_system(mesh, border, border_uv)
        result.non_positive_weights = int(non_positive)
        result.min_weight = float(min_weight)
        result.meta["n_matrix_entries"] = system.n_entries
        A = system.matrix()
        result.stage = Stage.SYSTEM_BUILT
        _LOGGER.debug("System built: %d rows, %d entries", A.shape[0], A.nnz)

        # 4) u, v 축별 풀이
        uv = np.zeros((mesh.n_vertices, 2), dtype=np.float64)
        for axis, stage in ((0, Stage.SOLVED_U), (1, Stage.SOLVED_V)):
            x, success = self._solve_axis(A, system.rhs[:, axis])
            if not success:
                return self._fail(result, ErrorCode.ERROR_CANNOT_SOLVE_LINEAR_SYSTEM)
            uv[:, axis] = x
            result.stage = stage
            _LOGGER.debug("Solved axis %s", "uv"[axis])

        # 5) 결과 기록 (경계는 정확한 값 유지)
        uv[border] = border_uv
        mesh.uv_coords = uv.copy()
        result.uv = uv

        # 6) 1:1 매핑 보장 여부 (참고용)
        result.is_one_to_one = self.is_one_to_one_mapping(non_positive)
        result.distortion_per_face = compute_distortion(mesh, uv)
        result.stage = Stage.DONE

        _LOGGER.info(
            "Parameterized %d vertices (%d border) with %s weights; one-to-one=%s",
            mesh.n_vertices, border.size, self.weights.name, result.is_one_to_one,
        )
        return result


class MeanValueCoordinatesParameterizer(FixedBorderParameterizer):
    """
    Floater's mean value coordinates parameterization.

    1:1 매핑은 경계가 볼록 다각형에 매핑될 때 보장됩니다.
    각도를 보존하려는(conformal에 가까운) 파라미터화입니다.
    """

    def __init__(self, border: Optional[BorderParameterizer] = None, solver=None, *, check_weights: bool = True):
        super().__init__(border=border, weights=MeanValueWeights(), solver=solver, check_weights=check_weights)


def parameterize_with_method(
    mesh: MeshData,
    *,
    method: str = "mean_value",
    border: Optional[str] = None,
    spacing: Optional[str] = None,
    solver: Optional[str] = None,
    preserve_scale: bool = False,
    check_weights: bool = True,
) -> ParameterizationResult:
    """
    Convenience wrapper selecting weights / border / solver by name.

    Supported methods: 'mean_value' (default), 'uniform' (Tutte),
    'conformal' (cotangent), 'authalic'. ``border``, ``spacing`` and
    ``solver`` default to the runtime defaults (environment overridable).
    """
    border_policy = make_border_parameterizer(
        border or DEFAULTS.border,
        spacing or DEFAULTS.border_spacing,
        preserve_scale=bool(preserve_scale),
    )
    solver_obj = make_solver(
        solver or DEFAULTS.solver,
        tolerance=DEFAULTS.solver_tolerance,
        max_iterations=DEFAULTS.solver_max_iterations,
    )
    parameterizer = FixedBorderParameterizer(
        border=border_policy,
        weights=make_weight_strategy(method),
        solver=solver_obj,
        check_weights=check_weights,
    )
    return parameterizer.parameterize(mesh)
