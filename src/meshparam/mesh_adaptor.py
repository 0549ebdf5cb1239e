"""
Mesh Adaptor Module
메쉬 데이터 구조와 위상(topology) 질의 - 파라미터화 입력 어댑터

Supports loading: OBJ, PLY, STL, OFF, GLTF/GLB (via trimesh)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List, Union
import logging
import numpy as np

try:
    import trimesh
except ImportError:
    raise ImportError("trimesh is required. Install with: pip install trimesh")

_LOGGER = logging.getLogger(__name__)


def _as_face_array(faces) -> np.ndarray:
    """
    면 배열을 (M, k) int32로 변환합니다.

    길이가 서로 다른 polygon 목록은 -1로 패딩되어, 이후 검증 단계에서
    non-triangular로 보고됩니다.
    """
    try:
        arr = np.asarray(faces, dtype=np.int32)
    except (TypeError, ValueError):
        rows = [[int(v) for v in face] for face in faces]
        width = max((len(r) for r in rows), default=3)
        arr = np.full((len(rows), width), -1, dtype=np.int32)
        for k, row in enumerate(rows):
            arr[k, :len(row)] = row
        return arr

    if arr.size == 0:
        return arr.reshape(0, 3)
    if arr.ndim == 1:
        if arr.size % 3 == 0:
            return arr.reshape(-1, 3)
        return arr.reshape(1, -1)
    return arr


@dataclass
class _Topology:
    """MeshData에서 파생된 위상 정보 (lazy cache)"""
    half_edges: dict[tuple[int, int], int]
    boundary_edges: np.ndarray
    boundary_loops: list[np.ndarray]
    open_chains: int
    branching_vertices: np.ndarray
    neighbors: list[np.ndarray]
    manifold: np.ndarray
    border_mask: np.ndarray


@dataclass
class MeshData:
    """
    3D 메쉬 데이터 컨테이너 + 파라미터화용 geometry adaptor

    Attributes:
        vertices: (N, 3) 정점 좌표 배열
        faces: (M, k) 면 인덱스 배열 (k=3 이면 삼각형 메쉬)
        uv_coords: (N, 2) 파라미터화 결과 2D 좌표 (선택)
        unit: 좌표 단위 ('mm', 'cm', 'm')
        filepath: 원본 파일 경로
    """
    vertices: np.ndarray
    faces: np.ndarray
    uv_coords: Optional[np.ndarray] = None
    unit: str = 'mm'
    filepath: Optional[Path] = None

    # Computed properties cache
    _bounds: Optional[np.ndarray] = field(default=None, repr=False)
    _surface_area: Optional[float] = field(default=None, repr=False)
    _topology: Optional[_Topology] = field(default=None, repr=False)

    def __post_init__(self):
        """데이터 검증 및 타입 변환"""
        vertices = np.asarray(self.vertices, dtype=np.float64)
        if vertices.size == 0:
            vertices = vertices.reshape(0, 3)
        self.vertices = vertices
        self.faces = _as_face_array(self.faces)

        if self.uv_coords is not None:
            self.uv_coords = np.asarray(self.uv_coords, dtype=np.float64)

    @property
    def n_vertices(self) -> int:
        """정점 개수"""
        return len(self.vertices)

    @property
    def n_faces(self) -> int:
        """면 개수"""
        return len(self.faces)

    @property
    def is_triangular(self) -> bool:
        """모든 면이 삼각형인지 (패딩 없음)"""
        faces = self.faces
        if faces.ndim != 2 or faces.shape[1] != 3:
            return False
        return bool(np.all(faces >= 0))

    @property
    def bounds(self) -> np.ndarray:
        """경계 박스 [[min_x, min_y, min_z], [max_x, max_y, max_z]]"""
        if self._bounds is None:
            if self.n_vertices == 0:
                self._bounds = np.zeros((2, 3), dtype=np.float64)
            else:
                self._bounds = np.array([
                    self.vertices.min(axis=0),
                    self.vertices.max(axis=0)
                ])
        return self._bounds

    @property
    def extents(self) -> np.ndarray:
        """경계 박스 크기 [width, height, depth]"""
        return self.bounds[1] - self.bounds[0]

    @property
    def centroid(self) -> np.ndarray:
        """메쉬 중심점"""
        if self.n_vertices == 0:
            return np.zeros((3,), dtype=np.float64)
        return self.vertices.mean(axis=0)

    @property
    def surface_area(self) -> float:
        """총 표면적 (삼각형 면만 계산)"""
        if self._surface_area is None:
            if not self.is_triangular or self.n_faces == 0:
                self._surface_area = 0.0
            else:
                tri = self.vertices[self.faces]
                cross = np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0])
                self._surface_area = float(np.linalg.norm(cross, axis=1).sum() / 2.0)
        return self._surface_area

    # ------------------------------------------------------------------
    # Topology
    # ------------------------------------------------------------------

    def _face_rows(self) -> list[list[int]]:
        return [[int(v) for v in face if int(v) >= 0] for face in self.faces]

    def _build_topology(self) -> _Topology:
        n = self.n_vertices
        rows = self._face_rows()

        # 방향 있는 half-edge 개수 + 정점별 wedge(다음 이웃 -> 이전 이웃)
        half_edges: dict[tuple[int, int], int] = {}
        wedges: list[dict[int, int]] = [dict() for _ in range(n)]
        wedge_conflict = np.zeros(n, dtype=bool)
        for row in rows:
            m = len(row)
            if m < 3 or any(v >= n for v in row):
                continue
            for k in range(m):
                u = row[k]
                v = row[(k + 1) % m]
                w = row[(k - 1) % m]
                half_edges[(u, v)] = half_edges.get((u, v), 0) + 1
                fan = wedges[u]
                if v in fan:
                    wedge_conflict[u] = True
                fan[v] = w

        boundary = sorted((u, v) for (u, v) in half_edges if (v, u) not in half_edges)
        boundary_edges = (
            np.asarray(boundary, dtype=np.int32) if boundary else np.zeros((0, 2), dtype=np.int32)
        )

        border_mask = np.zeros(n, dtype=bool)
        outgoing: dict[int, list[int]] = {}
        for u, v in boundary:
            border_mask[u] = True
            border_mask[v] = True
            outgoing.setdefault(u, []).append(v)
        branching = sorted(u for u, targets in outgoing.items() if len(targets) > 1)

        # 경계 루프 추적: 가장 작은 정점에서 시작, 면 방향을 따라감
        unused = set(boundary)
        loops: list[np.ndarray] = []
        open_chains = 0
        while unused:
            start_edge = min(unused)
            unused.remove(start_edge)
            start, curr = start_edge
            loop = [start]
            closed = False
            while True:
                if curr == start:
                    closed = True
                    break
                loop.append(curr)
                nxt = None
                for cand in sorted(outgoing.get(curr, [])):
                    if (curr, cand) in unused:
                        nxt = cand
                        break
                if nxt is None:
                    break
                unused.remove((curr, nxt))
                curr = nxt
            if not closed:
                open_chains += 1
            loops.append(np.asarray(loop, dtype=np.int32))

        neighbors: list[np.ndarray] = []
        manifold = np.ones(n, dtype=bool)
        for i in range(n):
            fan = wedges[i]
            if not fan:
                neighbors.append(np.zeros((0,), dtype=np.int32))
                manifold[i] = False
                continue

            targets = set(fan.values())
            starts = sorted(b for b in fan if b not in targets)
            if wedge_conflict[i] or len(starts) > 1 or len(targets) != len(fan):
                manifold[i] = False

            closed = not starts
            first = starts[0] if starts else min(fan)
            order = [first]
            seen = {first}
            curr = first
            while curr in fan:
                nxt = fan[curr]
                if nxt == first:
                    break
                if nxt in seen:
                    manifold[i] = False
                    break
                order.append(nxt)
                seen.add(nxt)
                curr = nxt

            expected = len(fan) if closed else len(fan) + 1
            if len(order) != expected:
                manifold[i] = False
                rest = sorted((set(fan) | targets) - seen)
                order.extend(rest)
            neighbors.append(np.asarray(order, dtype=np.int32))

        return _Topology(
            half_edges=half_edges,
            boundary_edges=boundary_edges,
            boundary_loops=loops,
            open_chains=open_chains,
            branching_vertices=np.asarray(branching, dtype=np.int32),
            neighbors=neighbors,
            manifold=manifold,
            border_mask=border_mask,
        )

    @property
    def topology(self) -> _Topology:
        if self._topology is None:
            self._topology = self._build_topology()
        return self._topology

    def get_edges(self) -> np.ndarray:
        """모든 (무방향) 엣지 목록 반환 (E, 2), 정렬됨"""
        edges = {(u, v) if u < v else (v, u) for (u, v) in self.topology.half_edges}
        if not edges:
            return np.zeros((0, 2), dtype=np.int32)
        return np.asarray(sorted(edges), dtype=np.int32)

    def get_boundary_edges(self) -> np.ndarray:
        """
        경계 half-edge 목록 반환 (K, 2)

        역방향 half-edge가 존재하지 않는 (u, v)를 경계로 간주합니다.
        """
        return self.topology.boundary_edges.copy()

    def get_boundary_loops(self) -> List[np.ndarray]:
        """
        경계 루프(들)을 면 방향 순서의 정점 인덱스 배열로 반환합니다.

        Returns:
            List[np.ndarray]: 각 루프는 (L,) 형태 (반복된 시작점 없음).
            길이 제한 없이 추적된 모든 루프를 반환합니다.
        """
        return [loop.copy() for loop in self.topology.boundary_loops]

    def get_boundary_vertices(self) -> np.ndarray:
        """가장 긴 경계 루프를 순서대로 반환 (경계가 없으면 빈 배열)"""
        loops = self.topology.boundary_loops
        if not loops:
            return np.zeros((0,), dtype=np.int32)
        main = max(loops, key=lambda a: int(a.size))
        return main.copy()

    def get_interior_vertices(self) -> np.ndarray:
        return np.flatnonzero(~self.topology.border_mask).astype(np.int32)

    @property
    def border_mask(self) -> np.ndarray:
        return self.topology.border_mask.copy()

    def is_border_vertex(self, index: int) -> bool:
        return bool(self.topology.border_mask[int(index)])

    def is_vertex_manifold(self, index: int) -> bool:
        return bool(self.topology.manifold[int(index)])

    def get_vertex_neighbors(self, index: int) -> np.ndarray:
        """
        정점 주변 이웃을 면 방향(CCW) 순서로 반환합니다.

        내부 정점은 순환(cyclic) 배열이며, 위치 p의 이전/다음 이웃은
        (p - 1) % L, (p + 1) % L 입니다. 경계 정점은 경계 이웃에서 시작하는
        열린 fan 입니다.
        """
        return self.topology.neighbors[int(index)]

    def euler_characteristic(self) -> int:
        """V - E + F (원판(disc)이면 1)"""
        return int(self.n_vertices - len(self.get_edges()) + self.n_faces)

    def get_face_components(self) -> list[np.ndarray]:
        """면(face) adjacency(공유 edge) 기준 연결 컴포넌트를 찾습니다."""
        rows = self._face_rows()
        m = len(rows)
        if m == 0:
            return []

        parent = np.arange(m, dtype=np.int32)

        def find(x: int) -> int:
            x = int(x)
            while parent[x] != x:
                parent[x] = parent[parent[x]]
                x = int(parent[x])
            return x

        edge_to_face: dict[tuple[int, int], int] = {}
        for fi, row in enumerate(rows):
            k = len(row)
            for t in range(k):
                u, v = row[t], row[(t + 1) % k]
                key = (u, v) if u < v else (v, u)
                prev = edge_to_face.get(key)
                if prev is None:
                    edge_to_face[key] = fi
                else:
                    ra, rb = find(fi), find(prev)
                    if ra != rb:
                        parent[ra] = rb

        groups: dict[int, list[int]] = {}
        for fi in range(m):
            groups.setdefault(find(fi), []).append(fi)
        return [np.asarray(g, dtype=np.int32) for g in groups.values()]

    # ------------------------------------------------------------------
    # Per-vertex geometry access
    # ------------------------------------------------------------------

    def get_vertex_position(self, index: int) -> np.ndarray:
        return self.vertices[int(index)]

    def get_vertex_uv(self, index: int) -> np.ndarray:
        if self.uv_coords is None:
            raise ValueError("mesh has no uv coordinates")
        return self.uv_coords[int(index)]

    def set_vertex_uv(self, index: int, uv) -> None:
        if self.uv_coords is None or self.uv_coords.shape != (self.n_vertices, 2):
            self.uv_coords = np.zeros((self.n_vertices, 2), dtype=np.float64)
        self.uv_coords[int(index)] = np.asarray(uv, dtype=np.float64).reshape(2)

    # ------------------------------------------------------------------
    # trimesh interop
    # ------------------------------------------------------------------

    def to_trimesh(self) -> 'trimesh.Trimesh':
        """trimesh 객체로 변환 (UV가 있으면 TextureVisuals 포함)"""
        if not self.is_triangular:
            raise ValueError("only triangle meshes can be converted to trimesh")
        visual = None
        if self.uv_coords is not None and self.uv_coords.shape == (self.n_vertices, 2):
            visual = trimesh.visual.TextureVisuals(uv=self.uv_coords)
        return trimesh.Trimesh(
            vertices=self.vertices,
            faces=self.faces,
            visual=visual,
            process=False,
        )

    @classmethod
    def from_trimesh(cls, mesh: 'trimesh.Trimesh',
                     filepath: Optional[Path] = None,
                     unit: str = 'mm') -> 'MeshData':
        """trimesh 객체에서 생성"""
        uv_coords = None
        visual = getattr(mesh, "visual", None)
        uv = getattr(visual, "uv", None) if visual is not None else None
        if uv is not None and len(uv) == len(mesh.vertices):
            uv_coords = uv

        return cls(
            vertices=mesh.vertices,
            faces=mesh.faces,
            uv_coords=uv_coords,
            unit=unit,
            filepath=filepath,
        )


class MeshLoader:
    """
    다양한 3D 포맷의 메쉬 파일 로더

    Supported formats:
        - OBJ (Wavefront)
        - PLY (Polygon File Format)
        - STL (Stereolithography)
        - OFF (Object File Format)
        - GLTF/GLB (GL Transmission Format)
    """

    SUPPORTED_FORMATS = {
        '.obj': 'Wavefront OBJ',
        '.ply': 'Polygon File Format',
        '.stl': 'Stereolithography',
        '.off': 'Object File Format',
        '.gltf': 'GL Transmission Format',
        '.glb': 'GL Transmission Format (Binary)',
    }

    def __init__(self, default_unit: str = 'mm', merge_vertices: bool = True):
        """
        Args:
            default_unit: 기본 좌표 단위 ('mm', 'cm', 'm')
            merge_vertices: UV/법선 seam 때문에 분리된 동일 위치 정점을 병합
                (STL처럼 면마다 정점을 따로 저장하는 포맷은 병합 없이는 원판이 아님)
        """
        self.default_unit = default_unit
        self.merge_vertices = merge_vertices

    @classmethod
    def get_supported_formats(cls) -> dict:
        """지원 포맷 목록 반환"""
        return cls.SUPPORTED_FORMATS.copy()

    def _load_trimesh(self, filepath: Path) -> 'trimesh.Trimesh':
        try:
            mesh = trimesh.load(str(filepath), force='mesh', process=False, maintain_order=True)
        except TypeError:
            # 구버전 trimesh 호환
            mesh = trimesh.load(str(filepath), force='mesh')

        # Scene인 경우 단일 메쉬로 병합
        if isinstance(mesh, trimesh.Scene):
            meshes = [g for g in mesh.geometry.values() if isinstance(g, trimesh.Trimesh)]
            if len(meshes) == 0:
                raise ValueError(f"No valid mesh found in: {filepath}")
            mesh = trimesh.util.concatenate(meshes)

        if not isinstance(mesh, trimesh.Trimesh):
            raise TypeError(f"Expected trimesh.Trimesh, got {type(mesh).__name__}")
        return mesh

    def load(self, filepath: Union[str, Path], unit: Optional[str] = None) -> MeshData:
        """
        메쉬 파일 로드

        Args:
            filepath: 메쉬 파일 경로
            unit: 좌표 단위 (None이면 default_unit 사용)

        Returns:
            MeshData: 로드된 메쉬 데이터

        Raises:
            FileNotFoundError: 파일이 존재하지 않음
            ValueError: 지원하지 않는 포맷
        """
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        ext = filepath.suffix.lower()
        if ext not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {ext}\n"
                f"Supported formats: {list(self.SUPPORTED_FORMATS.keys())}"
            )

        unit = unit or self.default_unit
        mesh = self._load_trimesh(filepath)

        if self.merge_vertices:
            n_before = len(mesh.vertices)
            mesh.merge_vertices(merge_tex=True, merge_norm=True)
            mesh.remove_unreferenced_vertices()
            if len(mesh.vertices) != n_before:
                _LOGGER.debug("Merged vertices: %d -> %d (%s)", n_before, len(mesh.vertices), filepath)

        return MeshData.from_trimesh(mesh, filepath=filepath, unit=unit)

    def get_file_info(self, filepath: Union[str, Path]) -> dict:
        """
        파일 정보 미리보기

        Args:
            filepath: 메쉬 파일 경로

        Returns:
            dict: 파일 정보 딕셔너리
        """
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        ext = filepath.suffix.lower()
        file_size = filepath.stat().st_size

        info = {
            'filename': filepath.name,
            'format': self.SUPPORTED_FORMATS.get(ext, 'Unknown'),
            'extension': ext,
            'file_size_mb': round(file_size / (1024 * 1024), 2),
        }

        try:
            mesh = self.load(filepath)
            info['n_vertices'] = mesh.n_vertices
            info['n_faces'] = mesh.n_faces
            info['n_boundary_loops'] = len(mesh.get_boundary_loops())
            info['euler_characteristic'] = mesh.euler_characteristic()
            info['has_uv'] = mesh.uv_coords is not None
        except Exception as e:
            _LOGGER.debug("get_file_info failed for %s", filepath, exc_info=True)
            info['error'] = str(e)

        return info


class MeshProcessor:
    """메쉬 저장 유틸리티"""

    def save_mesh(self, mesh_data: Union[MeshData, 'trimesh.Trimesh'], filepath: Union[str, Path]) -> str:
        """
        메쉬를 파일로 저장 (OBJ는 UV를 vt로 기록)

        Args:
            mesh_data: MeshData 또는 trimesh.Trimesh 객체
            filepath: 저장할 파일 경로
        """
        filepath = str(filepath)

        if isinstance(mesh_data, MeshData):
            mesh = mesh_data.to_trimesh()
        else:
            mesh = mesh_data

        mesh.export(filepath)
        return filepath
