"""Tests for signed and approximate distances."""

import numpy as np
import numpy.testing as npt
import pytest

from implicit3d import (
    Accuracy, Box, GoursatTangle, Intersection, MobiusBand, Sphere, Sphube, Torus,
    approximate_distance, closest_point, exact_closest_point, signed_distance,
)


def _band_point(band: MobiusBand, angle: float, u: float, v: float) -> np.ndarray:
    """World point at cross-section coordinates ``(u, v)`` on the ring at *angle*."""
    twist = band.twists * 0.5 * angle
    c, s = np.cos(twist), np.sin(twist)
    nqx = c * u + s * v
    nqy = -s * u + c * v
    ring = band.radius + nqx
    return np.array([np.cos(angle) * ring, np.sin(angle) * ring, nqy])


class TestSignedDistance:
    def test_exact_fields_answer_directly(self):
        assert signed_distance([2.0, 0.0, 0.0], Box((1.0, 1.0, 1.0))) == pytest.approx(1.0)
        assert signed_distance([0.0, 0.0, 0.0], Torus(1.0, 0.25)) == pytest.approx(0.75)
        assert signed_distance([1.25, 0.0, 0.0], Torus(1.0, 0.25)) == pytest.approx(0.0, abs=1e-12)

    def test_batch(self):
        p = np.array([[2.0, 0.0, 0.0], [0.0, 0.0, 0.0]])
        npt.assert_allclose(signed_distance(p, Sphere(1.0)), [1.0, -1.0])

    def test_goursat_sign(self):
        g = GoursatTangle()
        inside = signed_distance([0.9, 0.9, 0.9], g)
        outside = signed_distance([2.0, 2.0, 2.0], g)
        assert inside < 0.0
        assert outside > 0.0

    def test_goursat_magnitude_is_projection_distance(self):
        g = GoursatTangle()
        p = np.array([0.9, 0.9, 0.9])
        surface = closest_point(p, g).point
        assert signed_distance(p, g) == pytest.approx(-np.linalg.norm(p - surface))

    def test_sphube_outside(self):
        assert signed_distance([1.0, 0.0, 0.0], Sphube(0.45, 0.9)) == pytest.approx(0.55, abs=1e-3)

    def test_sphube_centre(self):
        assert signed_distance([0.0, 0.0, 0.0], Sphube(0.45, 0.9)) == pytest.approx(-0.45, abs=1e-3)

    def test_mobius_uses_analytic_projection(self):
        band = MobiusBand()
        assert signed_distance([2.3, 0.0, 0.15], band) == pytest.approx(0.05, abs=1e-12)
        assert signed_distance([2.3, 0.0, 0.05], band) == pytest.approx(-0.05, abs=1e-12)

    def test_mobius_batch(self):
        band = MobiusBand()
        p = np.array([[2.3, 0.0, 0.15], [2.3, 0.0, 0.05]])
        npt.assert_allclose(signed_distance(p, band), [0.05, -0.05], atol=1e-12)

    def test_lens_is_projected_not_bounded(self):
        lens = Intersection(Sphere(1.0).translate(0.5, 0, 0), Sphere(1.0).translate(-0.5, 0, 0))
        assert lens.accuracy is Accuracy.APPROXIMATE
        # the max of the two spheres reads sqrt(4.25) - 1 here; the rim is farther
        assert signed_distance([0.0, 2.0, 0.0], lens) == pytest.approx(2.0 - np.sqrt(0.75), abs=1e-3)


class TestMobiusCrossCheck:
    @pytest.mark.parametrize("angle", [0.0, 0.7, 2.0])
    @pytest.mark.parametrize("u, v", [
        (0.2, 0.15), (-0.4, 0.15), (0.2, -0.18), (-0.4, -0.18),
        (0.2, 0.05), (0.5, -0.08),
    ])
    def test_exact_agrees_with_iterative(self, angle, u, v):
        band = MobiusBand()
        p = _band_point(band, angle, u, v)
        exact = exact_closest_point(p, band)
        iterative = closest_point(p, band).point
        npt.assert_allclose(iterative, exact, atol=2e-2)

    def test_exact_lands_on_band_edge(self):
        band = MobiusBand()
        p = _band_point(band, 0.7, 0.2, 0.15)
        q = exact_closest_point(p, band)
        npt.assert_allclose(q, _band_point(band, 0.7, 0.2, band.thickness), atol=1e-12)
        assert band.eval(q) == pytest.approx(0.0, abs=1e-12)

    def test_exact_snaps_inside_points_to_nearer_edge(self):
        band = MobiusBand()
        p = _band_point(band, 0.7, 0.5, -0.08)
        q = exact_closest_point(p, band)
        npt.assert_allclose(q, _band_point(band, 0.7, 0.5, -band.thickness), atol=1e-12)
        assert band.eval(p) < 0.0


class TestApproximateDistance:
    def test_exact_field_is_halved(self):
        assert approximate_distance([3.0, 0.0, 0.0], Sphere(1.0)) == pytest.approx(1.0)

    def test_vanishing_gradient_gives_zero(self):
        assert approximate_distance([1.0, 1.0, 1.0], GoursatTangle()) == 0.0

    def test_near_goursat_surface(self):
        # The tangle surface crosses the diagonal at s = sqrt(1 + sqrt(0.5)).
        s = np.sqrt(1.0 + np.sqrt(0.5))
        ds = 1e-4
        p = np.full(3, s + ds)
        true = np.sqrt(3.0) * ds
        assert approximate_distance(p, GoursatTangle()) == pytest.approx(0.5 * true, rel=1e-2)

    def test_batch(self):
        p = np.array([[3.0, 0.0, 0.0], [0.0, 0.0, 0.5]])
        npt.assert_allclose(approximate_distance(p, Sphere(1.0)), [1.0, -0.25])


class TestExactClosestPoint:
    def test_rejects_iterative_fields(self):
        with pytest.raises(TypeError):
            exact_closest_point([1.0, 0.0, 0.0], Sphere(1.0))
        with pytest.raises(TypeError):
            exact_closest_point([1.0, 0.0, 0.0], GoursatTangle())

    def test_matches_project(self):
        band = MobiusBand(radius=3.0, width=0.5, thickness=0.05, twists=3.0)
        p = np.array([[3.2, 0.4, 0.3], [-2.0, 1.0, -0.1]])
        npt.assert_array_equal(exact_closest_point(p, band), band.project(p))
