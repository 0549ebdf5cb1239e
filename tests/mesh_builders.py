"""Small synthetic meshes shared by the tests."""

import numpy as np

from meshparam.mesh_adaptor import MeshData


def make_hexagon_fan(*, center_height: float = 0.0, radius: float = 1.0) -> MeshData:
    """Six triangles around vertex 0; border vertices 1..6 at 0, 60, ..., 300 degrees."""
    vertices = [[0.0, 0.0, float(center_height)]]
    for k in range(6):
        angle = k * np.pi / 3.0
        vertices.append([radius * np.cos(angle), radius * np.sin(angle), 0.0])
    faces = [[0, 1 + k, 1 + (k + 1) % 6] for k in range(6)]
    return MeshData(vertices=np.asarray(vertices), faces=np.asarray(faces), unit="cm")


def make_grid(n: int = 3, *, size: float = 2.0, bowl: float = 0.0) -> MeshData:
    """
    (n x n) vertex grid over [0, size]^2, CCW triangles, optional paraboloid lift.

    index = i * n + j with i along y and j along x.
    """
    coords = np.linspace(0.0, float(size), int(n))
    half = 0.5 * float(size)
    vertices = []
    for y in coords:
        for x in coords:
            z = bowl * ((x - half) ** 2 + (y - half) ** 2)
            vertices.append([x, y, z])

    def idx(i: int, j: int) -> int:
        return i * n + j

    faces = []
    for i in range(n - 1):
        for j in range(n - 1):
            a, b = idx(i, j), idx(i, j + 1)
            c, d = idx(i + 1, j + 1), idx(i + 1, j)
            faces.append([a, b, c])
            faces.append([a, c, d])
    return MeshData(vertices=np.asarray(vertices), faces=np.asarray(faces), unit="cm")


def make_polar_disc(
    *,
    segments: int = 12,
    inner_radius: float = 0.8,
    outer_radius: float = 2.0,
    center=(3.0, 1.0),
    perturb: float = 0.25,
    with_center: bool = True,
) -> MeshData:
    """
    Flat disc: optional center vertex, a wobbly inner ring, and an outer ring
    forming a regular polygon of ``outer_radius``. Outer vertex k sits at angle
    2*pi*k/segments; the first outer vertex is the smallest boundary index.
    """
    cx, cy = float(center[0]), float(center[1])
    m = int(segments)
    vertices = []
    if with_center:
        vertices.append([cx + 0.1, cy - 0.05, 0.0])
    for k in range(m):
        angle = 2.0 * np.pi * k / m + 0.2 * perturb * np.cos(2.0 * k)
        r = inner_radius * (1.0 + perturb * np.sin(3.0 * k + 0.5))
        vertices.append([cx + r * np.cos(angle), cy + r * np.sin(angle), 0.0])
    for k in range(m):
        angle = 2.0 * np.pi * k / m
        vertices.append([cx + outer_radius * np.cos(angle), cy + outer_radius * np.sin(angle), 0.0])

    base = 1 if with_center else 0
    faces = []
    for k in range(m):
        a0, a1 = base + k, base + (k + 1) % m
        b0, b1 = base + m + k, base + m + (k + 1) % m
        if with_center:
            faces.append([0, a0, a1])
        faces.append([a0, b0, b1])
        faces.append([a0, b1, a1])
    return MeshData(vertices=np.asarray(vertices), faces=np.asarray(faces), unit="cm")


def min_pairwise_distance(points: np.ndarray) -> float:
    pts = np.asarray(points, dtype=np.float64)
    diff = pts[:, None, :] - pts[None, :, :]
    dist = np.linalg.norm(diff, axis=-1)
    dist[np.diag_indices(len(pts))] = np.inf
    return float(dist.min())
