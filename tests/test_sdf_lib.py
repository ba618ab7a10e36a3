"""Tests for implicit3d/sdf_lib.py — vectorised field math.

Tests verify:
- Correct sign (negative inside, positive outside, zero on surface)
- Exact distances at analytically known points
- Analytic gradients against central differences
- Array shape / broadcasting consistency
"""

import numpy as np
import numpy.testing as npt
import pytest

from implicit3d import sdf_lib as sdf
from implicit3d.fields import numerical_gradient


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _p(*xyz) -> np.ndarray:
    """Single 3-D point as shape ``(1, 3)``."""
    return np.array([list(xyz)], dtype=float)


def _grid(n: int = 6) -> np.ndarray:
    """Uniform ``n³`` grid of points in ``[-1, 1]³`` (shape ``(n, n, n, 3)``)."""
    lin = np.linspace(-1.0, 1.0, n)
    Z, Y, X = np.meshgrid(lin, lin, lin, indexing="ij")
    return np.stack([X, Y, Z], axis=-1)


# ===========================================================================
# Exact primitives
# ===========================================================================

class TestSphere:
    def test_inside_at_origin(self):
        npt.assert_allclose(sdf.sdSphere(_p(0, 0, 0), 0.3), [-0.3], atol=1e-12)

    def test_on_surface(self):
        npt.assert_allclose(sdf.sdSphere(_p(0, 0.3, 0), 0.3), [0.0], atol=1e-12)

    def test_single_point_gives_scalar(self):
        assert sdf.sdSphere(np.array([1.0, 0.0, 0.0]), 0.5).shape == ()

    def test_gradient_is_radial(self):
        npt.assert_allclose(sdf.sphereGradient(_p(0, 0, 4)), [[0, 0, 1]], atol=1e-12)


class TestBox:
    B = np.array([1.0, 1.0, 1.0])

    def test_face_distance(self):
        npt.assert_allclose(sdf.sdBox(_p(2, 0, 0), self.B), [1.0], atol=1e-12)

    def test_corner_distance(self):
        npt.assert_allclose(sdf.sdBox(_p(2, 2, 0), self.B), [np.sqrt(2.0)], atol=1e-12)

    def test_inside(self):
        npt.assert_allclose(sdf.sdBox(_p(0, 0, 0), self.B), [-1.0], atol=1e-12)

    def test_gradient_outside_and_inside(self):
        npt.assert_allclose(sdf.boxGradient(_p(3, 0, 0), self.B), [[1, 0, 0]], atol=1e-12)
        npt.assert_allclose(sdf.boxGradient(_p(0, -0.8, 0.1), self.B), [[0, -1, 0]], atol=1e-12)

    def test_batch(self):
        assert sdf.sdBox(_grid(4), self.B).shape == (4, 4, 4)


class TestRoundBox:
    def test_face_on_surface(self):
        b = np.array([1.0, 1.0, 1.0])
        npt.assert_allclose(sdf.sdRoundBox(_p(1, 0, 0), b, 0.2), [0.0], atol=1e-12)

    def test_rounded_corner_is_outside(self):
        b = np.array([1.0, 1.0, 1.0])
        expected = np.sqrt(3 * 0.2 ** 2) - 0.2
        npt.assert_allclose(sdf.sdRoundBox(_p(1, 1, 1), b, 0.2), [expected], atol=1e-12)


class TestCylinders:
    def test_capped_side_and_cap(self):
        npt.assert_allclose(sdf.sdCappedCylinder(_p(0.5, 0, 0), 0.5, 1.0), [0.0], atol=1e-12)
        npt.assert_allclose(sdf.sdCappedCylinder(_p(0, 1.0, 0), 0.5, 1.0), [0.0], atol=1e-12)

    def test_capped_inside_and_outside(self):
        npt.assert_allclose(sdf.sdCappedCylinder(_p(0, 0, 0), 0.5, 1.0), [-0.5], atol=1e-12)
        npt.assert_allclose(sdf.sdCappedCylinder(_p(0, 0, 1.0), 0.5, 1.0), [0.5], atol=1e-12)

    def test_rounded_side_and_cap(self):
        npt.assert_allclose(sdf.sdRoundedCylinder(_p(0.5, 0, 0), 0.5, 0.1, 1.0), [0.0], atol=1e-12)
        npt.assert_allclose(sdf.sdRoundedCylinder(_p(0, -1.0, 0), 0.5, 0.1, 1.0), [0.0], atol=1e-12)

    def test_rounded_rim_is_inset(self):
        # The sharp rim corner lies outside the rounded solid.
        assert sdf.sdRoundedCylinder(_p(0.5, 1.0, 0), 0.5, 0.1, 1.0)[0] > 0.0


class TestTorus:
    def test_outer_equator_on_surface(self):
        npt.assert_allclose(sdf.sdTorus(_p(1.25, 0, 0), 1.0, 0.25), [0.0], atol=1e-12)
        npt.assert_allclose(sdf.sdTorus(_p(0, 0, -1.25), 1.0, 0.25), [0.0], atol=1e-12)

    def test_origin_is_outside_in_the_hole(self):
        npt.assert_allclose(sdf.sdTorus(_p(0, 0, 0), 1.0, 0.25), [0.75], atol=1e-12)

    def test_tube_centre(self):
        npt.assert_allclose(sdf.sdTorus(_p(1, 0, 0), 1.0, 0.25), [-0.25], atol=1e-12)


class TestOctahedron:
    def test_vertex_and_face_centre(self):
        npt.assert_allclose(sdf.sdOctahedron(_p(1, 0, 0), 1.0), [0.0], atol=1e-7)
        third = 1.0 / 3.0
        npt.assert_allclose(sdf.sdOctahedron(_p(third, third, third), 1.0), [0.0], atol=1e-7)

    def test_beyond_vertex(self):
        npt.assert_allclose(sdf.sdOctahedron(_p(2, 0, 0), 1.0), [1.0], atol=1e-7)
        npt.assert_allclose(sdf.sdOctahedron(_p(0, 0, -3), 1.0), [2.0], atol=1e-7)

    def test_inside(self):
        npt.assert_allclose(sdf.sdOctahedron(_p(0, 0, 0), 1.0), [-0.57735027], atol=1e-7)


# ===========================================================================
# Support-function accumulator
# ===========================================================================

class TestSupport:
    def test_normal_tables_are_unit(self):
        npt.assert_allclose(sdf.length(sdf.ICOSAHEDRON_NORMALS), 1.0, atol=1e-12)
        npt.assert_allclose(sdf.length(sdf.DODECAHEDRON_NORMALS), 1.0, atol=1e-12)
        assert sdf.ICOSAHEDRON_NORMALS.shape == (10, 3)
        assert sdf.DODECAHEDRON_NORMALS.shape == (6, 3)

    @pytest.mark.parametrize("normals", [sdf.ICOSAHEDRON_NORMALS, sdf.DODECAHEDRON_NORMALS])
    def test_face_centre_on_surface(self, normals):
        r = 0.5
        p = (r * normals[0])[None]
        npt.assert_allclose(sdf.sdSupport(p, normals, r), [0.0], atol=1e-12)

    def test_origin_is_minus_radius(self):
        for e in (None, 8.0, 50.0):
            npt.assert_allclose(sdf.sdIcosahedron(_p(0, 0, 0), 0.5, e), [-0.5], atol=1e-12)

    def test_pnorm_never_below_sharp(self):
        p = _grid(5)
        sharp = sdf.sdDodecahedron(p, 0.5)
        rounded = sdf.sdDodecahedron(p, 0.5, 8.0)
        assert np.all(rounded >= sharp - 1e-12)

    def test_large_exponent_approaches_sharp(self):
        p = _grid(5)
        sharp = sdf.sdIcosahedron(p, 0.5)
        rounded = sdf.sdIcosahedron(p, 0.5, 400.0)
        npt.assert_allclose(rounded, sharp, atol=0.02)

    def test_large_exponent_far_away_stays_finite(self):
        d = sdf.sdIcosahedron(_p(1e8, 2e8, -3e8), 0.5, 50.0)
        assert np.all(np.isfinite(d))

    def test_dodecahedron_along_z(self):
        # Along Z the steepest face normal is (+-1, 0, PHI)/|.|.
        k = sdf.PHI / np.sqrt(1.0 + sdf.PHI ** 2)
        npt.assert_allclose(sdf.sdDodecahedron(_p(0, 0, 2), 0.5), [2 * k - 0.5], atol=1e-12)


# ===========================================================================
# Implicit fields
# ===========================================================================

class TestGoursat:
    def test_value_on_axis(self):
        val, _ = sdf.goursatTangle(_p(1, 0, 0), 0.0, -2.0, 1.5)
        npt.assert_allclose(val, [0.5], atol=1e-12)

    def test_gradient_matches_central_difference(self):
        p = _p(0.3, -0.7, 1.1)
        _, grad = sdf.goursatTangle(p, 0.1, -2.0, 1.5)
        numeric = numerical_gradient(lambda q: sdf.goursatTangle(q, 0.1, -2.0, 1.5)[0], p, 1e-5)
        npt.assert_allclose(grad, numeric, atol=1e-6)

    def test_gradient_vanishes_at_critical_point(self):
        _, grad = sdf.goursatTangle(_p(1, 1, 1), 0.0, -2.0, 1.5)
        npt.assert_allclose(grad, [[0, 0, 0]], atol=1e-12)


class TestMobius:
    R, W, T = 2.0, 1.0, 0.1

    def _d(self, p):
        return sdf.sdMobius(p, self.R, self.W, self.T, 1.0, 0.8)

    def test_face_on_surface(self):
        npt.assert_allclose(self._d(_p(2.3, 0, 0.1)), [0.0], atol=1e-12)

    def test_inside_scaled_by_distortion(self):
        npt.assert_allclose(self._d(_p(2.3, 0, 0.05)), [-0.04], atol=1e-12)

    def test_outside_scaled_by_distortion(self):
        npt.assert_allclose(self._d(_p(2.3, 0, 0.15)), [0.04], atol=1e-12)

    def test_quarter_turn_swaps_frame_axes(self):
        # At angle pi/2 the cross-section has rotated by pi/4.
        c = np.cos(np.pi / 4)
        u, v = 0.5, self.T
        nqx, nqy = c * u + c * v, -c * u + c * v
        p = _p(0.0, self.R + nqx, nqy)
        npt.assert_allclose(self._d(p), [0.0], atol=1e-12)

    def test_projection_clamps_outside_point(self):
        q = sdf.projectMobius(_p(2.3, 0, 0.15), self.R, self.W, self.T, 1.0)
        npt.assert_allclose(q, [[2.3, 0, 0.1]], atol=1e-12)

    def test_projection_snaps_inside_point_to_nearer_edge(self):
        thin = sdf.projectMobius(_p(2.3, 0, 0.05), self.R, self.W, self.T, 1.0)
        npt.assert_allclose(thin, [[2.3, 0, 0.1]], atol=1e-12)
        wide = sdf.projectMobius(_p(2.95, 0, 0.0), self.R, self.W, self.T, 1.0)
        npt.assert_allclose(wide, [[3.0, 0, 0.0]], atol=1e-12)

    def test_projected_points_lie_on_surface(self):
        rng = np.random.default_rng(3)
        angle = rng.uniform(-3.0, 3.0, 50)
        ring = self.R + rng.uniform(-1.5, 1.5, 50)
        p = np.stack([np.cos(angle) * ring, np.sin(angle) * ring, rng.uniform(-1, 1, 50)], axis=-1)
        q = sdf.projectMobius(p, self.R, self.W, self.T, 1.0)
        npt.assert_allclose(self._d(q), 0.0, atol=1e-9)


class TestSphube:
    R, S = 0.45, 0.9

    def test_far_point_uses_box_distance(self):
        npt.assert_allclose(sdf.sdSphube(_p(3, 0, 0), self.R, self.S, 0.2), [2.55], atol=1e-12)

    def test_axis_point_on_surface(self):
        npt.assert_allclose(sdf.sdSphube(_p(self.R, 0, 0), self.R, self.S, 0.2), [0.0], atol=1e-12)

    def test_origin_inside(self):
        assert sdf.sdSphube(_p(0, 0, 0), self.R, self.S, 0.2)[0] < 0.0

    def test_potential_skipped_far_from_bounds(self, monkeypatch):
        def _boom(*args):
            raise AssertionError("potential evaluated outside the bounding margin")

        monkeypatch.setattr(sdf, "sphubePotential", _boom)
        out = sdf.sdSphube(np.array([[3.0, 0, 0], [0, -2.0, 0]]), self.R, self.S, 0.2)
        npt.assert_allclose(out, [2.55, 1.55], atol=1e-12)

    def test_potential_gradient_matches_central_difference(self):
        p = _p(0.3, 0.2, 0.1)
        _, grad = sdf.sphubePotential(p, self.R, self.S)
        numeric = numerical_gradient(lambda q: sdf.sphubePotential(q, self.R, self.S)[0], p, 1e-5)
        npt.assert_allclose(grad, numeric, atol=1e-6)

    def test_gradient_far_away_is_box_normal(self):
        g = sdf.sphubeGradient(_p(3, 0.1, 0), self.R, self.S, 0.2)
        npt.assert_allclose(g, [[1, 0, 0]], atol=1e-12)

    def test_shapes_are_preserved(self):
        p = _grid(4) * 0.5
        assert sdf.sdSphube(p, self.R, self.S, 0.2).shape == (4, 4, 4)
        assert sdf.sphubeGradient(p, self.R, self.S, 0.2).shape == (4, 4, 4, 3)


class TestSampledTube:
    def test_closed_sampling_wraps(self):
        a, b = sdf.sampleCurve(sdf.trefoilKnot, 120, 0.0, 2 * np.pi, True)
        assert a.shape == b.shape == (120, 3)
        npt.assert_allclose(b[-1], a[0], atol=1e-12)

    def test_open_sampling(self):
        a, b = sdf.sampleCurve(sdf.trefoilKnot, 10, 0.0, 1.0, False)
        assert a.shape == (9, 3)

    def test_on_curve_is_minus_radius(self):
        a, b = sdf.sampleCurve(sdf.trefoilKnot, 120, 0.0, 2 * np.pi, True)
        on_curve = sdf.trefoilKnot(np.array([0.0]))
        npt.assert_allclose(on_curve, [[0, -1, 0]], atol=1e-12)
        npt.assert_allclose(sdf.sdSegments(on_curve, a, b, 0.5), [-0.5], atol=1e-12)

    def test_single_segment_is_capsule(self):
        a = np.array([[0.0, 0.0, 0.0]])
        b = np.array([[1.0, 0.0, 0.0]])
        npt.assert_allclose(sdf.sdSegments(_p(0.5, 2, 0), a, b, 0.5), [1.5], atol=1e-12)
        npt.assert_allclose(sdf.sdSegments(_p(-1, 0, 0), a, b, 0.5), [0.5], atol=1e-12)


class TestGyroid:
    def test_origin_inside_sheet(self):
        npt.assert_allclose(sdf.sdGyroid(_p(0, 0, 0), 10.0, 1.0, 1.0), [-1.0], atol=1e-12)

    def test_clipped_by_cube(self):
        assert sdf.sdGyroid(_p(20, 0, 0), 10.0, 1.0, 1.0)[0] >= 10.0


class TestSuperShape:
    def test_superformula_unit_profile(self):
        npt.assert_allclose(sdf.superformula(np.array([0.3, 1.2]), 0.0, 1.0, 1.0, 1.0), [1.0, 1.0])

    def test_unit_profiles_give_unit_sphere(self):
        unit = (0.0, 1.0, 1.0, 1.0, 1.0, 1.0)
        p = np.array([[2.0, 0, 0], [0, 0.5, 0], [0.3, -0.4, 1.2]])
        npt.assert_allclose(sdf.sdSuperShape(p, unit, unit, 0.0), sdf.length(p) - 1.0, atol=1e-12)

    def test_centre_is_zero(self):
        unit = (4.0, 10.0, 10.0, 10.0, 1.0, 1.0)
        npt.assert_allclose(sdf.sdSuperShape(_p(0, 0, 0), unit, unit, 0.0), [0.0])
