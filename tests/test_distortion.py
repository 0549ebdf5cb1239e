import unittest

import numpy as np
from numpy.testing import assert_allclose

from meshparam.distortion import (
    area_scale,
    check_parameterization,
    compute_distortion,
    count_flipped_faces,
    signed_uv_areas,
)
from meshparam.errors import ErrorCode

from mesh_builders import make_grid, make_hexagon_fan


class TestDistortion(unittest.TestCase):
    def test_signed_areas(self):
        faces = np.array([[0, 1, 2], [0, 2, 1]])
        uv = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
        assert_allclose(signed_uv_areas(faces, uv), [0.5, -0.5])

    def test_similarity_has_no_distortion(self):
        mesh = make_grid(4, size=3.0)
        uv = mesh.vertices[:, :2] * 0.1 + 5.0
        self.assertAlmostEqual(area_scale(mesh, uv), 10.0)
        self.assertLess(float(compute_distortion(mesh, uv).max()), 1e-9)

    def test_clockwise_layout_is_accepted(self):
        mesh = make_grid(4)
        uv = mesh.vertices[:, :2] * np.array([1.0, -1.0])
        self.assertEqual(count_flipped_faces(mesh.faces, uv), 0)
        self.assertIs(check_parameterization(mesh, uv), ErrorCode.OK)

    def test_flipped_face_is_detected(self):
        mesh = make_grid(4)
        uv = mesh.vertices[:, :2].copy()
        # push interior vertex 5 across its neighbor 6
        uv[5] = [2.0, 0.8]
        self.assertGreater(count_flipped_faces(mesh.faces, uv), 0)
        self.assertIs(check_parameterization(mesh, uv), ErrorCode.ERROR_NO_1_TO_1_MAPPING)

    def test_collapsed_layout(self):
        mesh = make_hexagon_fan()
        uv = np.zeros((mesh.n_vertices, 2))
        self.assertIs(check_parameterization(mesh, uv), ErrorCode.ERROR_NO_1_TO_1_MAPPING)
        assert_allclose(compute_distortion(mesh, uv), 1.0)

    def test_missing_or_malformed_uv(self):
        mesh = make_hexagon_fan()
        self.assertIs(check_parameterization(mesh), ErrorCode.ERROR_NO_1_TO_1_MAPPING)
        self.assertIs(check_parameterization(mesh, np.zeros((3, 2))), ErrorCode.ERROR_NO_1_TO_1_MAPPING)
        uv = np.ones((mesh.n_vertices, 2))
        uv[2, 0] = np.inf
        self.assertIs(check_parameterization(mesh, uv), ErrorCode.ERROR_NO_1_TO_1_MAPPING)

    def test_stretch_increases_distortion(self):
        mesh = make_grid(4)
        uv = mesh.vertices[:, :2] * np.array([3.0, 1.0])
        distortion = compute_distortion(mesh, uv)
        self.assertTrue(np.all(distortion > 0.05))
        self.assertTrue(np.all(distortion <= 1.0))


if __name__ == "__main__":
    unittest.main()
