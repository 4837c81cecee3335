"""Tests for the radiance estimator and the render loop.

This module tests:
- Render target setup and validation
- The cast recurrence (emission, reflectance, bounce budget)
- Unknown scatter types surfacing as UnknownMaterialError
- Whole-image rendering: determinism, row orientation, opacity

Note: Imports are done inside test methods so that modules declaring
ti.field() are imported after the session fixture has called ti.init.
"""

import numpy as np
import pytest


def upload_two_material_scene(sky_emit, material, center=(0.0, 0.0, 1.0), radius=1.0):
    """Upload a scene with one sphere using ``material`` (index 1)."""
    from spheretrace.scene.manager import upload_scene
    from spheretrace.scene.model import Material, ScatterType, Scene, Sphere

    sky = Material(emit_color=sky_emit, reflect_color=(0.0, 0.0, 0.0), scatter=ScatterType.SPECULAR)
    scene = Scene(materials=(sky, material), spheres=(Sphere(center=center, radius=radius, material=1),))
    upload_scene(scene)
    return scene


class TestRenderTargetSetup:
    """Tests for the packed pixel buffer."""

    def test_setup_render_target(self):
        """Test setup sets the size and clears the buffer."""
        from spheretrace.core.integrator import get_image_dimensions, get_pixels_numpy, setup_render_target

        setup_render_target(64, 36)
        assert get_image_dimensions() == (64, 36)
        pixels = get_pixels_numpy()
        assert pixels.shape == (64 * 36,)
        assert pixels.dtype == np.uint32
        assert not pixels.any()

    @pytest.mark.parametrize("size", [(1, 10), (10, 1), (0, 0)])
    def test_too_small_rejected(self, size):
        """Test sizes below 2x2 are rejected."""
        from spheretrace.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(*size)

    def test_too_large_rejected(self):
        """Test sizes above the preallocated buffer are rejected."""
        from spheretrace.core.integrator import MAX_IMAGE_WIDTH, setup_render_target

        with pytest.raises(ValueError, match="exceed"):
            setup_render_target(MAX_IMAGE_WIDTH + 1, 10)

    def test_render_before_setup_raises(self):
        """Test rendering without a render target raises."""
        from spheretrace.core.integrator import _render_target_initialized, render_image

        _render_target_initialized[None] = 0
        with pytest.raises(RuntimeError, match="setup_render_target"):
            render_image(samples_per_pixel=1)


class TestCast:
    """Tests for the radiance estimator on single rays."""

    def test_miss_returns_sky(self, reference_scene):
        """Test a ray that hits nothing returns the sky emission."""
        from spheretrace.core.integrator import cast_ray
        from spheretrace.scene.reference import SKY_EMISSION

        color = cast_ray((0.0, -10.0, 5.0), (0.0, 0.0, 1.0), bounces=8)
        assert color == pytest.approx(SKY_EMISSION, abs=1e-6)

    def test_zero_budget_returns_emission(self, reference_scene):
        """Test a spent budget returns the hit material's emission only."""
        from spheretrace.core.integrator import cast_ray
        from spheretrace.scene.reference import CENTER_EMISSION

        color = cast_ray((0.0, -10.0, 1.0), (0.0, 1.0, 0.0), bounces=0)
        assert color == pytest.approx(CENTER_EMISSION, abs=1e-6)

    def test_emissive_black_sphere(self):
        """Test a black emitter returns its emission with budget left."""
        from spheretrace.core.integrator import cast_ray
        from spheretrace.scene.model import Material, ScatterType

        glow = Material(emit_color=(1.0, 0.5, 0.25), reflect_color=(0.0, 0.0, 0.0), scatter=ScatterType.SPECULAR)
        upload_two_material_scene((0.0, 0.0, 0.0), glow)
        color = cast_ray((0.0, -10.0, 1.0), (0.0, 1.0, 0.0), bounces=8)
        assert color == pytest.approx((1.0, 0.5, 0.25), abs=1e-6)

    def test_mirror_scales_sky(self):
        """Test a head-on mirror bounce returns reflectance * sky."""
        from spheretrace.core.integrator import cast_ray
        from spheretrace.scene.model import Material, ScatterType

        mirror = Material(emit_color=(0.0, 0.0, 0.0), reflect_color=(0.5, 0.25, 1.0), scatter=ScatterType.SPECULAR)
        upload_two_material_scene((1.0, 1.0, 1.0), mirror)

        assert cast_ray((0.0, -10.0, 1.0), (0.0, 1.0, 0.0), bounces=1) == pytest.approx(
            (0.5, 0.25, 1.0), abs=1e-5
        )
        assert cast_ray((0.0, -10.0, 1.0), (0.0, 1.0, 0.0), bounces=0) == pytest.approx(
            (0.0, 0.0, 0.0), abs=1e-6
        )

    def test_emission_plus_reflection(self):
        """Test emission adds to the reflected sky."""
        from spheretrace.core.integrator import cast_ray
        from spheretrace.scene.model import Material, ScatterType

        mirror = Material(emit_color=(0.1, 0.2, 0.3), reflect_color=(0.5, 0.5, 0.5), scatter=ScatterType.SPECULAR)
        upload_two_material_scene((0.2, 0.2, 0.2), mirror)
        color = cast_ray((0.0, -10.0, 1.0), (0.0, 1.0, 0.0), bounces=8)
        assert color == pytest.approx((0.2, 0.3, 0.4), abs=1e-5)

    def test_diffuse_bounce_is_bounded(self):
        """Test a diffuse hit under a uniform sky never exceeds the sky."""
        from spheretrace.core.integrator import cast_ray
        from spheretrace.scene.model import Material, ScatterType

        grey = Material(emit_color=(0.0, 0.0, 0.0), reflect_color=(0.5, 0.5, 0.5), scatter=ScatterType.DIFFUSE)
        upload_two_material_scene((1.0, 1.0, 1.0), grey)
        for worker in range(4):
            color = cast_ray((0.0, -10.0, 1.0), (0.0, 1.0, 0.0), bounces=8, worker=worker)
            assert all(0.0 <= c <= 0.5 + 1e-6 for c in color)

    def test_negative_budget_rejected(self):
        """Test a negative bounce budget is refused before any ray is cast."""
        from spheretrace.core.integrator import cast_ray
        from spheretrace.scene.model import Material, ScatterType

        mirror = Material(emit_color=(0.0, 0.0, 0.0), reflect_color=(1.0, 1.0, 1.0), scatter=ScatterType.SPECULAR)
        upload_two_material_scene((1.0, 1.0, 1.0), mirror, center=(0.0, 0.0, 0.0), radius=5.0)
        with pytest.raises(ValueError, match="max_bounces"):
            cast_ray((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), bounces=-1)

    def test_invalid_worker(self, reference_scene):
        """Test an out-of-range worker id is rejected."""
        from spheretrace.core.integrator import cast_ray
        from spheretrace.core.rng import MAX_WORKERS

        with pytest.raises(ValueError):
            cast_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), worker=MAX_WORKERS)


class TestUnknownMaterial:
    """Tests for unknown scatter types reaching the kernel."""

    def _corrupt_scene(self):
        from spheretrace.materials.table import material_scatter_types
        from spheretrace.scene.model import Material, ScatterType

        grey = Material(emit_color=(0.0, 0.0, 0.0), reflect_color=(0.5, 0.5, 0.5), scatter=ScatterType.DIFFUSE)
        upload_two_material_scene((1.0, 1.0, 1.0), grey, center=(0.0, 0.0, 1.0), radius=3.0)
        material_scatter_types[1] = 7

    def test_cast_raises(self):
        """Test hitting an unknown scatter type raises."""
        from spheretrace.core.integrator import UnknownMaterialError, cast_ray

        self._corrupt_scene()
        with pytest.raises(UnknownMaterialError, match="Material 1"):
            cast_ray((0.0, -10.0, 1.0), (0.0, 1.0, 0.0), bounces=8)

    def test_no_scatter_no_fault(self):
        """Test a spent budget never consults the scatter type."""
        from spheretrace.core.integrator import cast_ray

        self._corrupt_scene()
        assert cast_ray((0.0, -10.0, 1.0), (0.0, 1.0, 0.0), bounces=0) == pytest.approx((0.0, 0.0, 0.0))

    def test_render_raises(self):
        """Test a full render surfaces an unknown scatter type."""
        from spheretrace.camera.pinhole import setup_camera
        from spheretrace.core.integrator import UnknownMaterialError, render_image, setup_render_target
        from spheretrace.scene.reference import create_reference_camera

        self._corrupt_scene()
        setup_camera(create_reference_camera(16.0 / 9.0))
        setup_render_target(16, 9)
        with pytest.raises(UnknownMaterialError):
            render_image(samples_per_pixel=1, max_bounces=2, num_workers=2)

    def test_fault_is_cleared_after_raising(self):
        """Test the fault flag resets once reported."""
        from spheretrace.core.integrator import UnknownMaterialError, _scatter_fault, cast_ray

        self._corrupt_scene()
        with pytest.raises(UnknownMaterialError):
            cast_ray((0.0, -10.0, 1.0), (0.0, 1.0, 0.0), bounces=8)
        assert _scatter_fault[None] == 0


class TestRenderImage:
    """Tests for whole-image and single-pixel rendering."""

    def test_deterministic_for_same_worker_count(self, reference_scene):
        """Test repeated renders with the same settings match."""
        from spheretrace.core.integrator import get_pixels_numpy, render_image, setup_render_target

        setup_render_target(32, 18)
        render_image(samples_per_pixel=4, max_bounces=4, num_workers=3)
        first = get_pixels_numpy()
        render_image(samples_per_pixel=4, max_bounces=4, num_workers=3)
        second = get_pixels_numpy()
        np.testing.assert_array_equal(first, second)

    def test_pixels_are_opaque(self, reference_scene):
        """Test every pixel has full alpha."""
        from spheretrace.core.integrator import get_pixels_numpy, render_image, setup_render_target

        setup_render_target(32, 18)
        render_image(samples_per_pixel=2, max_bounces=4, num_workers=4)
        pixels = get_pixels_numpy()
        assert np.all((pixels >> 24) == 0xFF)

    def test_every_row_written(self, reference_scene):
        """Test rows of every worker's chunks are rendered (sky is never black)."""
        from spheretrace.core.integrator import get_pixels_numpy, render_image, setup_render_target

        setup_render_target(24, 20)
        render_image(samples_per_pixel=1, max_bounces=2, num_workers=7)
        rgb = get_pixels_numpy() & 0x00FFFFFF
        assert np.all(rgb.reshape(20, 24).max(axis=1) > 0)

    def test_top_row_is_top_of_image(self):
        """Test buffer row 0 shows what is above the camera's view."""
        from spheretrace.camera.pinhole import setup_camera
        from spheretrace.core.integrator import get_pixels_numpy, render_image, setup_render_target
        from spheretrace.scene.model import Material, ScatterType
        from spheretrace.scene.reference import create_reference_camera

        glow = Material(emit_color=(1.0, 1.0, 1.0), reflect_color=(0.0, 0.0, 0.0), scatter=ScatterType.SPECULAR)
        upload_two_material_scene((0.0, 0.0, 0.0), glow, center=(0.0, 0.0, 6.0), radius=3.0)
        setup_camera(create_reference_camera(32 / 18))
        setup_render_target(32, 18)
        render_image(samples_per_pixel=4, max_bounces=2, num_workers=2)

        image = get_pixels_numpy().reshape(18, 32)
        assert image[0, 16] == 0xFFFFFFFF
        assert image[17, 16] == 0xFF000000

    def test_render_pixel_matches_emission(self):
        """Test a pixel on a pure emitter averages to its emission."""
        from spheretrace.camera.pinhole import setup_camera
        from spheretrace.core.integrator import render_pixel, setup_render_target
        from spheretrace.scene.model import Material, ScatterType
        from spheretrace.scene.reference import create_reference_camera

        glow = Material(emit_color=(0.25, 0.5, 0.75), reflect_color=(0.0, 0.0, 0.0), scatter=ScatterType.SPECULAR)
        upload_two_material_scene((0.0, 0.0, 0.0), glow, center=(0.0, 0.0, 6.0), radius=3.0)
        setup_camera(create_reference_camera(32 / 18))
        setup_render_target(32, 18)

        color = render_pixel(16, 0, samples_per_pixel=8)
        assert color == pytest.approx((0.25, 0.5, 0.75), abs=1e-5)

    @pytest.mark.parametrize("kwargs", [{"samples_per_pixel": 0}, {"max_bounces": -1}, {"num_workers": 0}])
    def test_invalid_arguments(self, reference_scene, kwargs):
        """Test out-of-range render arguments raise ValueError."""
        from spheretrace.core.integrator import render_image, setup_render_target

        setup_render_target(8, 4)
        with pytest.raises(ValueError):
            render_image(**kwargs)

    def test_render_pixel_negative_budget_rejected(self, reference_scene):
        """Test render_pixel refuses a negative bounce budget."""
        from spheretrace.core.integrator import render_pixel, setup_render_target

        setup_render_target(8, 4)
        with pytest.raises(ValueError, match="max_bounces"):
            render_pixel(0, 0, samples_per_pixel=1, max_bounces=-1)


class TestSampleCount:
    """Tests for how the sample count affects a pixel estimate."""

    def _estimates(self, samples, count):
        """Return ``count`` successive estimates of one pixel from worker 0."""
        from spheretrace.core.integrator import render_pixel

        return np.array([render_pixel(16, 0, samples_per_pixel=samples, max_bounces=8)[0] for _ in range(count)])

    def test_more_samples_keep_mean_and_shrink_spread(self):
        """Test raising samples per pixel keeps the expected value and lowers variance.

        A grey diffuse sphere (reflectance 0.5) under a white sky escapes on
        half of its scatters, so a camera hit is worth sum(0.25**k), about 1/3.
        """
        from spheretrace.camera.pinhole import setup_camera
        from spheretrace.core.integrator import setup_render_target
        from spheretrace.core.rng import seed_workers
        from spheretrace.scene.model import Material, ScatterType
        from spheretrace.scene.reference import create_reference_camera

        grey = Material(emit_color=(0.0, 0.0, 0.0), reflect_color=(0.5, 0.5, 0.5), scatter=ScatterType.DIFFUSE)
        upload_two_material_scene((1.0, 1.0, 1.0), grey, center=(0.0, 0.0, 6.0), radius=3.0)
        setup_camera(create_reference_camera(32 / 18))
        setup_render_target(32, 18)
        seed_workers(1)

        few = self._estimates(64, 8)
        many = self._estimates(1024, 8)
        expected = sum(0.25**k for k in range(1, 9))

        assert few.mean() == pytest.approx(expected, abs=0.04)
        assert many.mean() == pytest.approx(expected, abs=0.02)
        assert few.mean() == pytest.approx(many.mean(), abs=0.04)
        assert many.std() < few.std()
