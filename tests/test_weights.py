import math
import unittest

import numpy as np
from numpy.testing import assert_allclose

from meshparam.errors import DegenerateGeometryError
from meshparam.weights import (
    DiscreteAuthalicWeights,
    DiscreteConformalWeights,
    MeanValueWeights,
    UniformWeights,
    WeightStrategy,
    corner_angle,
    make_weight_strategy,
    normalize_weights_name,
)

from mesh_builders import make_grid, make_hexagon_fan, make_polar_disc


def _weights_of(strategy, mesh, i):
    neighbors = mesh.get_vertex_neighbors(i)
    return np.array([strategy.weight(mesh, i, neighbors, p) for p in range(len(neighbors))])


class TestMeanValueWeights(unittest.TestCase):
    def test_regular_hexagon_value(self):
        # all corner angles are 60 degrees and all spokes have length 1
        mesh = make_hexagon_fan()
        weights = _weights_of(MeanValueWeights(), mesh, 0)
        assert_allclose(weights, 2.0 * math.tan(math.pi / 6.0))

    def test_positive_on_curved_surface(self):
        mesh = make_grid(7, bowl=0.8)
        strategy = MeanValueWeights()
        for i in mesh.get_interior_vertices():
            self.assertTrue(np.all(_weights_of(strategy, mesh, int(i)) > 0.0))

    def test_weights_are_not_symmetric(self):
        mesh = make_polar_disc()
        strategy = MeanValueWeights()
        # vertex 0 (center) and vertex 1 (first inner ring vertex) are both interior
        n0 = mesh.get_vertex_neighbors(0)
        n1 = mesh.get_vertex_neighbors(1)
        w01 = strategy.weight(mesh, 0, n0, int(np.flatnonzero(n0 == 1)[0]))
        w10 = strategy.weight(mesh, 1, n1, int(np.flatnonzero(n1 == 0)[0]))
        self.assertGreater(w01, 0.0)
        self.assertGreater(w10, 0.0)
        self.assertFalse(math.isclose(w01, w10, rel_tol=1e-6))

    def test_linear_reproduction_on_flat_star(self):
        mesh = make_polar_disc()
        strategy = MeanValueWeights()
        for i in mesh.get_interior_vertices():
            i = int(i)
            neighbors = mesh.get_vertex_neighbors(i)
            weights = _weights_of(strategy, mesh, i)
            p_i = mesh.vertices[i]
            residual = (weights[:, None] * (mesh.vertices[neighbors] - p_i)).sum(axis=0)
            assert_allclose(residual, 0.0, atol=1e-10)

    def test_coincident_points_raise(self):
        mesh = make_hexagon_fan()
        mesh.vertices[1] = mesh.vertices[0]
        neighbors = mesh.get_vertex_neighbors(0)
        with self.assertRaises(DegenerateGeometryError) as ctx:
            MeanValueWeights().weight(mesh, 0, neighbors, 0)
        self.assertIn(1, ctx.exception.vertices)


class TestOtherWeights(unittest.TestCase):
    def test_uniform_weights(self):
        mesh = make_polar_disc()
        assert_allclose(_weights_of(UniformWeights(), mesh, 0), 1.0)

    def test_conformal_on_equilateral_fan(self):
        mesh = make_hexagon_fan()
        weights = _weights_of(DiscreteConformalWeights(), mesh, 0)
        assert_allclose(weights, 2.0 / math.sqrt(3.0))

    def test_authalic_on_equilateral_fan(self):
        mesh = make_hexagon_fan(radius=2.0)
        weights = _weights_of(DiscreteAuthalicWeights(), mesh, 0)
        assert_allclose(weights, (2.0 / math.sqrt(3.0)) / 4.0)

    def test_conformal_can_be_negative(self):
        # flattened fan: the two angles opposite spoke 0-1 are obtuse
        mesh = make_hexagon_fan()
        mesh.vertices[:, 1] *= 0.2
        mesh.vertices[1, 0] = 3.0
        weights = _weights_of(DiscreteConformalWeights(), mesh, 0)
        self.assertLess(weights.min(), 0.0)
        self.assertTrue(np.all(_weights_of(MeanValueWeights(), mesh, 0) > 0.0))

    def test_corner_angle(self):
        mesh = make_hexagon_fan()
        self.assertAlmostEqual(corner_angle(mesh, 1, 0, 2), math.pi / 3.0)
        self.assertAlmostEqual(corner_angle(mesh, 1, 0, 4), math.pi)


class TestWeightStrategyBase(unittest.TestCase):
    def test_base_class_is_abstract(self):
        with self.assertRaises(TypeError):
            WeightStrategy()

class TestWeightFactory(unittest.TestCase):
    def test_aliases(self):
        self.assertEqual(normalize_weights_name("MVC"), "mean_value")
        self.assertEqual(normalize_weights_name("tutte"), "uniform")
        self.assertEqual(normalize_weights_name("cotangent"), "conformal")
        self.assertEqual(normalize_weights_name("discrete-authalic"), "authalic")
        self.assertEqual(normalize_weights_name(None), "mean_value")

    def test_make_weight_strategy(self):
        self.assertIsInstance(make_weight_strategy(), MeanValueWeights)
        self.assertTrue(make_weight_strategy("mean_value").always_positive)
        self.assertFalse(make_weight_strategy("conformal").always_positive)
        with self.assertRaises(ValueError):
            make_weight_strategy("random")


if __name__ == "__main__":
    unittest.main()
