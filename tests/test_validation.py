import unittest

import numpy as np

from meshparam.errors import ErrorCode
from meshparam.mesh_adaptor import MeshData
from meshparam.parameterizer import validate_mesh

from mesh_builders import make_grid, make_hexagon_fan, make_polar_disc


def _tetrahedron() -> MeshData:
    vertices = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]], dtype=np.float64)
    faces = np.array([[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]])
    return MeshData(vertices=vertices, faces=faces)


def _open_cylinder(segments: int = 8) -> MeshData:
    vertices = []
    for z in (0.0, 1.0):
        for k in range(segments):
            angle = 2.0 * np.pi * k / segments
            vertices.append([np.cos(angle), np.sin(angle), z])
    faces = []
    for k in range(segments):
        a0, a1 = k, (k + 1) % segments
        b0, b1 = segments + k, segments + (k + 1) % segments
        faces.append([a0, a1, b1])
        faces.append([a0, b1, b0])
    return MeshData(vertices=np.asarray(vertices), faces=np.asarray(faces))


class TestValidateMesh(unittest.TestCase):
    def test_valid_discs(self):
        for mesh in (make_hexagon_fan(), make_grid(4, bowl=0.2), make_polar_disc()):
            self.assertIs(validate_mesh(mesh), ErrorCode.OK)

    def test_empty(self):
        mesh = MeshData(vertices=np.zeros((0, 3)), faces=np.zeros((0, 3), dtype=np.int32))
        self.assertIs(validate_mesh(mesh), ErrorCode.ERROR_EMPTY_MESH)

    def test_quad_faces(self):
        vertices = np.array([[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0]], dtype=np.float64)
        mesh = MeshData(vertices=vertices, faces=np.array([[0, 1, 2, 3]]))
        self.assertIs(validate_mesh(mesh), ErrorCode.ERROR_NON_TRIANGULAR_MESH)

    def test_mixed_faces(self):
        vertices = np.random.default_rng(0).random((5, 3))
        mesh = MeshData(vertices=vertices, faces=[[0, 1, 2], [0, 2, 3, 4]])
        self.assertIs(validate_mesh(mesh), ErrorCode.ERROR_NON_TRIANGULAR_MESH)

    def test_closed_surface(self):
        self.assertIs(validate_mesh(_tetrahedron()), ErrorCode.ERROR_NO_SURFACE_MESH)

    def test_two_border_loops(self):
        self.assertIs(validate_mesh(make_polar_disc(with_center=False)), ErrorCode.ERROR_NO_SURFACE_MESH)
        self.assertIs(validate_mesh(_open_cylinder()), ErrorCode.ERROR_NO_SURFACE_MESH)

    def test_disconnected(self):
        vertices = np.array(
            [[0, 0, 0], [1, 0, 0], [0, 1, 0], [5, 0, 0], [6, 0, 0], [5, 1, 0]], dtype=np.float64
        )
        mesh = MeshData(vertices=vertices, faces=np.array([[0, 1, 2], [3, 4, 5]]))
        self.assertIs(validate_mesh(mesh), ErrorCode.ERROR_NO_SURFACE_MESH)

    def test_bowtie(self):
        vertices = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [-1, 0, 0], [0, -1, 0]], dtype=np.float64)
        mesh = MeshData(vertices=vertices, faces=np.array([[0, 1, 2], [0, 3, 4]]))
        self.assertIs(validate_mesh(mesh), ErrorCode.ERROR_NO_SURFACE_MESH)

    def test_inconsistent_orientation(self):
        vertices = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [1, -1, 0]], dtype=np.float64)
        mesh = MeshData(vertices=vertices, faces=np.array([[0, 1, 2], [0, 1, 3]]))
        self.assertIs(validate_mesh(mesh), ErrorCode.ERROR_NO_SURFACE_MESH)

    def test_unreferenced_vertex(self):
        mesh = make_hexagon_fan()
        mesh = MeshData(vertices=np.vstack([mesh.vertices, [[9.0, 9.0, 9.0]]]), faces=mesh.faces)
        self.assertIs(validate_mesh(mesh), ErrorCode.ERROR_NO_SURFACE_MESH)

    def test_out_of_range_and_repeated_indices(self):
        vertices = np.eye(3)
        self.assertIs(
            validate_mesh(MeshData(vertices=vertices, faces=np.array([[0, 1, 3]]))),
            ErrorCode.ERROR_NO_SURFACE_MESH,
        )
        self.assertIs(
            validate_mesh(MeshData(vertices=vertices, faces=np.array([[0, 1, 1], [0, 1, 2]]))),
            ErrorCode.ERROR_NO_SURFACE_MESH,
        )

    def test_non_finite_positions(self):
        mesh = make_hexagon_fan()
        mesh.vertices[0, 2] = np.nan
        self.assertIs(validate_mesh(mesh), ErrorCode.ERROR_NO_SURFACE_MESH)

    def test_none(self):
        with self.assertRaises(ValueError):
            validate_mesh(None)


if __name__ == "__main__":
    unittest.main()
