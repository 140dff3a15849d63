"""Unit tests for the dielectric (glass) material.

Tests cover:
- Refraction ratio for entering and exiting rays
- Index 1 glass passes rays through undeviated
- Refraction bends toward the normal on entry
- Total internal reflection on exit at grazing angles
- Attenuation is always white
"""

import math

import pytest
import taichi as ti


def _scatter(ior, direction, normal):
    """Run scatter_dielectric and return (direction, attenuation, refracted)."""
    from pathtracer.materials.dielectric import scatter_dielectric, vec3

    dir_result = ti.field(dtype=ti.math.vec3, shape=())
    atten_result = ti.field(dtype=ti.math.vec3, shape=())
    refracted_result = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(eta: ti.f32, d: vec3, n: vec3):
        scattered, atten, refracted = scatter_dielectric(eta, d, n)
        dir_result[None] = scattered
        atten_result[None] = atten
        refracted_result[None] = refracted

    test_kernel(ior, vec3(*direction), vec3(*normal))
    d = dir_result[None]
    a = atten_result[None]
    return (d[0], d[1], d[2]), (a[0], a[1], a[2]), int(refracted_result[None])


class TestRefractionRatio:
    """Tests for choosing n_incident / n_transmitted."""

    @pytest.mark.parametrize(
        "direction, expected",
        [
            ((0.0, -1.0, 0.0), 1.0 / 1.5),  # entering: against the outward normal
            ((0.0, 1.0, 0.0), 1.5),  # exiting: along the outward normal
        ],
    )
    def test_ratio_depends_on_side(self, direction, expected):
        """Test the ratio is 1/ior entering and ior exiting."""
        from pathtracer.materials.dielectric import refraction_ratio, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(d: vec3):
            result[None] = refraction_ratio(1.5, d, vec3(0.0, 1.0, 0.0))

        test_kernel(vec3(*direction))
        assert result[None] == pytest.approx(expected)


class TestScatterDielectric:
    """Tests for scatter_dielectric."""

    def test_ior_one_passes_through(self):
        """Test that glass with index 1 does not bend entering rays."""
        incident = (0.3, -0.9, 0.1)
        direction, attenuation, refracted = _scatter(1.0, incident, (0.0, 1.0, 0.0))

        norm = math.sqrt(sum(c * c for c in incident))
        expected = tuple(c / norm for c in incident)
        assert refracted == 1
        assert direction == pytest.approx(expected, abs=1e-5)
        assert attenuation == pytest.approx((1.0, 1.0, 1.0))

    def test_ior_one_passes_through_when_exiting(self):
        """Test that a ray leaving index-1 glass continues undeviated."""
        incident = (0.2, 0.8, -0.3)
        direction, _, refracted = _scatter(1.0, incident, (0.0, 1.0, 0.0))

        norm = math.sqrt(sum(c * c for c in incident))
        expected = tuple(c / norm for c in incident)
        assert refracted == 1
        assert direction == pytest.approx(expected, abs=1e-5)

    def test_entering_bends_toward_normal(self):
        """Test Snell's law for a ray entering glass at 45 degrees."""
        s = math.sqrt(0.5)
        direction, _, refracted = _scatter(1.5, (s, -s, 0.0), (0.0, 1.0, 0.0))

        assert refracted == 1
        # sin(theta_t) = sin(45) / 1.5
        assert direction[0] == pytest.approx(s / 1.5, abs=1e-5)
        assert direction[1] < -s

    def test_exiting_bends_away_from_normal(self):
        """Test a ray leaving glass at a shallow angle continues outward."""
        sin_i = 0.4
        cos_i = math.sqrt(1.0 - sin_i * sin_i)
        direction, _, refracted = _scatter(1.5, (sin_i, cos_i, 0.0), (0.0, 1.0, 0.0))

        assert refracted == 1
        assert direction[0] == pytest.approx(1.5 * sin_i, abs=1e-5)
        # Continues out of the sphere, along the outward normal
        assert direction[1] > 0.0

    def test_total_internal_reflection(self):
        """Test that a grazing ray leaving glass is reflected back inside."""
        sin_i = math.sin(math.radians(60.0))
        cos_i = math.cos(math.radians(60.0))
        direction, attenuation, refracted = _scatter(
            1.5, (sin_i, cos_i, 0.0), (0.0, 1.0, 0.0)
        )

        assert refracted == 0
        assert direction == pytest.approx((sin_i, -cos_i, 0.0), abs=1e-5)
        assert attenuation == pytest.approx((1.0, 1.0, 1.0))

    def test_will_reflect(self):
        """Test will_reflect agrees with the refracted flag."""
        from pathtracer.materials.dielectric import vec3, will_reflect

        grazing = ti.field(dtype=ti.i32, shape=())
        head_on = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            grazing[None] = will_reflect(1.5, vec3(0.866, 0.5, 0.0), normal)
            head_on[None] = will_reflect(1.5, vec3(0.0, -1.0, 0.0), normal)

        test_kernel()
        assert grazing[None] == 1
        assert head_on[None] == 0
