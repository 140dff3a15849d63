"""Tests for the light transport integrator and render loop.

This module tests:
- Render target setup and validation
- Sky background gradient
- Depth budget handling
- Material behaviour seen through the integrator
- Full-frame rendering, determinism and framebuffer layout

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run, so module-level
imports of modules containing ti.field() declarations would fail.
"""

import numpy as np
import pytest

SKY_BLUE = (0.5, 0.7, 1.0)
WHITE = (1.0, 1.0, 1.0)


class TestRenderTargetSetup:
    """Test render target initialization and management."""

    def test_setup_render_target_sets_dimensions(self):
        """Test that setup_render_target records the active size."""
        from pathtracer.core.integrator import get_image_dimensions, setup_render_target

        setup_render_target(64, 48)
        assert get_image_dimensions() == (64, 48)

    @pytest.mark.parametrize("width, height", [(1, 10), (10, 1), (4096, 10), (10, 4096)])
    def test_setup_render_target_rejects_bad_sizes(self, width, height):
        """Test that sizes outside 2..MAX are rejected."""
        from pathtracer.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(width, height)

    def test_framebuffer_is_cleared(self):
        """Test that a fresh render target reads back as zeros."""
        from pathtracer.core.integrator import get_framebuffer_numpy, setup_render_target

        setup_render_target(8, 4)
        image = get_framebuffer_numpy()
        assert image.shape == (4, 8, 3)
        assert image.dtype == np.float32
        assert np.all(image == 0.0)


class TestBackground:
    """Tests for the sky gradient."""

    def test_straight_up_is_sky_blue(self):
        """Test the zenith color."""
        from pathtracer.core.integrator import background_color

        assert background_color((0.0, 5.0, 0.0)) == pytest.approx(SKY_BLUE, abs=1e-6)

    def test_straight_down_is_white(self):
        """Test the nadir color."""
        from pathtracer.core.integrator import background_color

        assert background_color((0.0, -2.0, 0.0)) == pytest.approx(WHITE, abs=1e-6)

    def test_horizontal_is_midpoint(self):
        """Test the horizon is halfway between white and blue."""
        from pathtracer.core.integrator import background_color

        assert background_color((1.0, 0.0, 0.0)) == pytest.approx((0.75, 0.85, 1.0), abs=1e-6)

    @pytest.mark.parametrize(
        "direction",
        [(0.3, 0.4, -1.0), (-2.0, -1.0, 0.5), (0.0, 0.1, -1.0), (7.0, 3.0, 2.0)],
    )
    def test_background_within_gradient_bounds(self, direction):
        """Test each channel lies between its white and blue endpoints."""
        from pathtracer.core.integrator import background_color

        color = background_color(direction)
        for channel, low, high in zip(color, SKY_BLUE, WHITE):
            assert low - 1e-6 <= channel <= high + 1e-6


class TestTraceRay:
    """Tests for single-ray radiance estimates."""

    def test_depth_zero_is_black(self):
        """Test that a zero bounce budget gives black, even for sky rays."""
        from pathtracer.core.integrator import trace_ray

        assert trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), 0) == (0.0, 0.0, 0.0)

    def test_negative_depth_is_black(self):
        """Test that a negative bounce budget gives black."""
        from pathtracer.core.integrator import trace_ray

        assert trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), -3) == (0.0, 0.0, 0.0)

    def test_miss_returns_background(self):
        """Test that a ray missing everything returns the sky gradient."""
        from pathtracer.core.integrator import background_color, trace_ray

        direction = (0.2, 0.6, -1.0)
        assert trace_ray((0.0, 0.0, 0.0), direction, 5) == pytest.approx(
            background_color(direction), abs=1e-6
        )

    def test_diffuse_hit_darker_than_background(self):
        """Test a diffuse bounce keeps each channel in [0, background]."""
        from pathtracer.core.integrator import background_color, trace_ray
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_diffuse_sphere((0.0, 0.0, -1.0), 0.5, (0.9, 0.9, 0.9))

        for seed in range(8):
            color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 2, seed=seed)
            # Scatter leaves the sphere into the sky with throughput 0.5 * albedo
            assert all(c >= 0.0 for c in color)
            assert all(c <= 0.5 * 0.9 + 1e-6 for c in color)

    def test_diffuse_average_between_black_and_background(self):
        """Test the mean over many seeds lies strictly between black and the sky."""
        from pathtracer.core.integrator import background_color, trace_ray
        from pathtracer.scene.defaults import populate_default_spheres
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        populate_default_spheres(scene)

        direction = (0.0, 0.0, -1.0)
        samples = np.array(
            [trace_ray((0.0, 0.0, 0.0), direction, 25, seed=seed) for seed in range(64)]
        )
        mean = samples.mean(axis=0)
        sky = np.array(background_color(direction))

        assert np.all(mean > 0.0)
        assert np.all(mean < sky)

    def test_depth_one_hit_is_black(self):
        """Test that a path whose only query hits a sphere contributes nothing."""
        from pathtracer.core.integrator import trace_ray
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_diffuse_sphere((0.0, 0.0, -1.0), 0.5, (0.9, 0.9, 0.9))

        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 1) == (0.0, 0.0, 0.0)

    def test_index_one_glass_is_invisible(self):
        """Test that a ratio-1 glass sphere passes rays straight through."""
        from pathtracer.core.integrator import background_color, trace_ray
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_glass_sphere((0.0, 0.0, -2.0), 0.5, refractive_index=1.0)

        direction = (0.1, 0.15, -1.0)
        color = trace_ray((0.0, 0.0, 0.0), direction, 5)
        assert color == pytest.approx(background_color(direction), abs=1e-4)

    def test_metal_mirror_reflects_sky(self):
        """Test a ray reflected up off a metal floor sees the tinted sky."""
        from pathtracer.core.integrator import background_color, trace_ray
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_metal_sphere((0.0, -1000.0, 0.0), 999.0, (0.5, 0.5, 0.5))

        color = trace_ray((0.0, 0.0, 0.0), (0.0, -1.0, 0.0), 3)
        # Reflection is straight up plus a small non-negative fuzz
        sky = background_color((0.0, 1.0, 0.0))
        for channel, expected in zip(color, sky):
            assert channel == pytest.approx(0.5 * expected, abs=0.01)


class TestRenderImage:
    """Tests for full-frame rendering."""

    def _settings(self, **overrides):
        from pathtracer.core.settings import RenderSettings

        values = dict(image_width=32, aspect_ratio=2.0, samples_per_pixel=4, max_depth=10)
        values.update(overrides)
        return RenderSettings(**values)

    def test_empty_scene_renders_sky(self, default_camera):
        """Test an empty scene gives a sky gradient brighter at the bottom."""
        from pathtracer.core.integrator import get_framebuffer_numpy, render_image

        render_image(self._settings())
        image = get_framebuffer_numpy()

        assert image.shape == (16, 32, 3)
        # Blue channel is 1 everywhere in the sky gradient
        np.testing.assert_allclose(image[:, :, 2], 1.0, atol=1e-5)
        # Top row first: red channel grows toward the bottom (white)
        assert image[0, :, 0].mean() < image[-1, :, 0].mean()

    def test_render_is_deterministic(self, default_camera):
        """Test the same seed and scene render identical framebuffers."""
        from pathtracer.core.integrator import get_framebuffer_numpy, render_image
        from pathtracer.scene.defaults import populate_default_spheres
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        populate_default_spheres(scene)

        render_image(self._settings(seed=123))
        first = get_framebuffer_numpy()
        render_image(self._settings(seed=123))
        second = get_framebuffer_numpy()

        np.testing.assert_array_equal(first, second)

    def test_different_seeds_differ(self, default_camera):
        """Test the seed changes the noise pattern."""
        from pathtracer.core.integrator import get_framebuffer_numpy, render_image
        from pathtracer.scene.defaults import populate_default_spheres
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        populate_default_spheres(scene)

        render_image(self._settings(seed=1))
        first = get_framebuffer_numpy()
        render_image(self._settings(seed=2))
        second = get_framebuffer_numpy()

        assert not np.array_equal(first, second)

    def test_default_scene_values_in_range(self, default_camera):
        """Test every pixel of the default scene is finite and within [0, 1]."""
        from pathtracer.core.integrator import get_framebuffer_numpy, render_image
        from pathtracer.scene.defaults import populate_default_spheres
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        populate_default_spheres(scene)

        render_image(self._settings(image_width=48, samples_per_pixel=8))
        image = get_framebuffer_numpy()

        assert np.all(np.isfinite(image))
        assert np.all(image >= 0.0)
        assert np.all(image <= 1.0 + 1e-5)

    def test_ground_sphere_fills_bottom_rows(self, default_camera):
        """Test the ground sphere darkens the bottom of the image relative to the sky."""
        from pathtracer.core.integrator import get_framebuffer_numpy, render_image
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_diffuse_sphere((0.0, -100.5, -1.0), 100.0, (0.8, 0.8, 0.0))

        render_image(self._settings(samples_per_pixel=8))
        image = get_framebuffer_numpy()

        # Diffuse ground returns at most half its albedo per bounce
        assert image[-1, :, :].mean() < image[0, :, :].mean()

    def test_invalid_settings_raise(self):
        """Test that invalid settings are rejected before rendering."""
        from pathtracer.core.integrator import render_image

        settings = self._settings()
        settings.samples_per_pixel = 0
        with pytest.raises(ValueError, match="samples_per_pixel"):
            render_image(settings)


class TestRenderSample:
    """Tests for single-sample rendering."""

    def test_render_sample_requires_render_target(self):
        """Test that render_sample raises before a render target exists."""
        from pathtracer.core import integrator

        initialized = integrator._render_target_initialized[None]
        integrator._render_target_initialized[None] = 0
        try:
            with pytest.raises(RuntimeError, match="Render target not set up"):
                integrator.render_sample(0, 0)
        finally:
            integrator._render_target_initialized[None] = initialized

    def test_render_sample_of_sky_pixel(self, default_camera):
        """Test a sample of an empty scene lies within the sky gradient."""
        from pathtracer.core.integrator import render_sample, setup_render_target

        setup_render_target(16, 9)
        color = render_sample(8, 8, max_depth=5, seed=3)

        for channel, low, high in zip(color, SKY_BLUE, WHITE):
            assert low - 1e-6 <= channel <= high + 1e-6
