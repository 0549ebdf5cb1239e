"""
Parameterization quality checks
UV 결과 검증 - 뒤집힌 삼각형 검출 및 면별 왜곡도
"""

from __future__ import annotations

import logging

import numpy as np

from .errors import ErrorCode
from .mesh_adaptor import MeshData

_LOGGER = logging.getLogger(__name__)

_AREA_EPS = 1e-14


def signed_uv_areas(faces: np.ndarray, uv: np.ndarray) -> np.ndarray:
    """각 삼각형의 부호 있는 2D 면적 (CCW > 0)"""
    faces = np.asarray(faces, dtype=np.int32)
    uv = np.asarray(uv, dtype=np.float64)
    if faces.ndim != 2 or faces.shape[0] == 0 or uv.ndim != 2 or uv.shape[0] == 0:
        return np.zeros((0,), dtype=np.float64)

    tri = uv[faces[:, :3], :2]
    e1 = tri[:, 1] - tri[:, 0]
    e2 = tri[:, 2] - tri[:, 0]
    return 0.5 * (e1[:, 0] * e2[:, 1] - e1[:, 1] * e2[:, 0])


def triangle_areas_3d(mesh: MeshData) -> np.ndarray:
    tri = np.asarray(mesh.vertices, dtype=np.float64)[mesh.faces[:, :3]]
    return 0.5 * np.linalg.norm(np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0]), axis=1)


def count_flipped_faces(faces: np.ndarray, uv: np.ndarray) -> int:
    """
    방향이 다수(majority)와 반대이거나 면적이 0에 가까운 삼각형 수

    경계를 시계방향으로 배치한 경우도 허용하기 위해 전체 부호를 기준으로 판단합니다.
    """
    areas = signed_uv_areas(faces, uv)
    if areas.size == 0:
        return 0
    if not np.isfinite(areas).all():
        return int(areas.size)

    scale = float(np.max(np.abs(areas)))
    eps = max(_AREA_EPS, 1e-12 * scale)
    orientation = 1.0 if float(areas.sum()) >= 0.0 else -1.0
    return int(np.count_nonzero(areas * orientation <= eps))


def check_parameterization(mesh: MeshData, uv: np.ndarray | None = None) -> ErrorCode:
    """
    UV가 유효한 1:1 매핑인지 사후 검증합니다.

    Returns:
        ErrorCode.OK 또는 ErrorCode.ERROR_NO_1_TO_1_MAPPING
    """
    if uv is None:
        uv = mesh.uv_coords
    if uv is None:
        return ErrorCode.ERROR_NO_1_TO_1_MAPPING

    uv = np.asarray(uv, dtype=np.float64)
    if uv.ndim != 2 or uv.shape[0] != mesh.n_vertices or not np.isfinite(uv).all():
        return ErrorCode.ERROR_NO_1_TO_1_MAPPING

    flipped = count_flipped_faces(mesh.faces, uv)
    if flipped > 0:
        _LOGGER.info("check_parameterization: %d flipped/degenerate faces", flipped)
        return ErrorCode.ERROR_NO_1_TO_1_MAPPING
    return ErrorCode.OK


def area_scale(mesh: MeshData, uv: np.ndarray) -> float:
    """3D 표면적과 UV 면적을 맞추는 전역 스케일 sqrt(A3d / A2d)"""
    area_3d = float(triangle_areas_3d(mesh).sum())
    area_2d = float(np.abs(signed_uv_areas(mesh.faces, uv)).sum())
    if area_2d < 1e-12 or area_3d < 1e-12:
        return 1.0
    return float(np.sqrt(area_3d / area_2d))


def compute_distortion(mesh: MeshData, uv: np.ndarray) -> np.ndarray:
    """
    각 면의 왜곡도 계산 (0 = 왜곡 없음, 1 = 최대)

    UV를 전체 면적 기준으로 3D 스케일에 맞춘 뒤, 면적 비율 왜곡과
    엣지 길이(stretch) 왜곡의 평균을 사용합니다.
    """
    faces = np.asarray(mesh.faces, dtype=np.int32)
    if faces.ndim != 2 or faces.shape[0] == 0:
        return np.zeros((0,), dtype=np.float64)

    uv = np.asarray(uv, dtype=np.float64)[:, :2] * area_scale(mesh, uv)
    vertices = np.asarray(mesh.vertices, dtype=np.float64)

    tri3 = vertices[faces[:, :3]]
    tri2 = uv[faces[:, :3]]

    area_3d = triangle_areas_3d(mesh)
    area_2d = np.abs(signed_uv_areas(faces, uv))

    with np.errstate(divide="ignore", invalid="ignore"):
        area_ratio = np.minimum(area_2d, area_3d) / np.maximum(area_2d, area_3d)
        area_distortion = 1.0 - area_ratio

        # 각 면의 첫 두 엣지 길이 비율
        ratios = []
        for a, b in ((1, 0), (2, 0)):
            len3 = np.linalg.norm(tri3[:, a] - tri3[:, b], axis=1)
            len2 = np.linalg.norm(tri2[:, a] - tri2[:, b], axis=1)
            ratios.append(np.minimum(len2, len3) / np.maximum(len2, len3))
        stretch_distortion = 1.0 - 0.5 * (ratios[0] + ratios[1])

    distortion = 0.5 * (area_distortion + stretch_distortion)
    degenerate = (area_3d < 1e-10) | (area_2d < 1e-10) | ~np.isfinite(distortion)
    distortion[degenerate] = 1.0
    return np.clip(distortion, 0.0, 1.0)
