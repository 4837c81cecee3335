"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and make_ray
- Mirror reflection
"""

import math

import pytest
import taichi as ti


class TestRayBasics:
    """Tests for the Ray dataclass."""

    def test_make_ray_keeps_fields(self):
        """Test make_ray stores origin and direction unchanged."""
        from spheretrace.core.ray import make_ray, vec3

        origin = ti.field(dtype=ti.math.vec3, shape=())
        direction = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, 2.0, 3.0), vec3(0.0, 0.0, -1.0))
            origin[None] = ray.origin
            direction[None] = ray.direction

        test_kernel()
        o = origin[None]
        d = direction[None]
        assert (o[0], o[1], o[2]) == pytest.approx((1.0, 2.0, 3.0))
        assert (d[0], d[1], d[2]) == pytest.approx((0.0, 0.0, -1.0))

    def test_direction_is_not_normalized(self):
        """Test a non-unit direction is kept as given."""
        from spheretrace.core.ray import Ray, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 2.0, 0.0))
            result[None] = ray.direction

        test_kernel()
        assert result[None][1] == pytest.approx(2.0)


class TestReflect:
    """Tests for mirror reflection."""

    def test_reflect_about_normal(self):
        """Test reflection flips the normal component only."""
        from spheretrace.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert (r[0], r[1], r[2]) == pytest.approx((1.0, 1.0, 0.0))

    def test_reflect_preserves_magnitude(self):
        """Test |reflect(d, n)| == |d| for a unit normal."""
        from spheretrace.core.ray import reflect, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            n = ti.math.normalize(vec3(0.3, -0.4, 0.87))
            result[None] = ti.math.length(reflect(vec3(2.0, 1.0, -3.0), n))

        test_kernel()
        assert result[None] == pytest.approx(math.sqrt(14.0), rel=1e-5)
