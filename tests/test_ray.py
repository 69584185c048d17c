"""Unit tests for the Ray dataclass and vector helpers.

Tests cover:
- Ray evaluation at parameter t
- Normalization, including the zero-vector guard
- Bounce directions from cube samples
"""

import pytest
import taichi as ti


def _vector_result(func, v):
    result = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel():
        result[None] = func(ti.math.vec3(v[0], v[1], v[2]))

    test_kernel()
    return result.to_numpy()


class TestRay:
    """Tests for Ray construction and evaluation."""

    def test_ray_at(self):
        from src.spherepath.core.ray import Ray, ray_at, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(0.0, 0.0, -5.0), direction=vec3(0.0, 0.0, 1.0))
            result[0] = ray_at(ray, 0.0)
            result[1] = ray_at(ray, 4.0)
            result[2] = ray_at(ray, -1.0)

        test_kernel()
        points = result.to_numpy()
        assert tuple(points[0]) == pytest.approx((0.0, 0.0, -5.0))
        assert tuple(points[1]) == pytest.approx((0.0, 0.0, -1.0))
        assert tuple(points[2]) == pytest.approx((0.0, 0.0, -6.0))

    def test_make_ray_keeps_direction_magnitude(self):
        from src.spherepath.core.ray import make_ray, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, 2.0, 3.0), vec3(0.0, 2.0, 0.0))
            result[0] = ray.origin
            result[1] = ray.direction

        test_kernel()
        rows = result.to_numpy()
        assert tuple(rows[0]) == pytest.approx((1.0, 2.0, 3.0))
        assert tuple(rows[1]) == pytest.approx((0.0, 2.0, 0.0))


class TestVectorHelpers:
    """Tests for normalize and cube_direction."""

    def test_dot_and_length_squared(self):
        from src.spherepath.core.ray import dot, length_squared, vec3

        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = dot(vec3(1.0, 2.0, 3.0), vec3(4.0, -5.0, 6.0))
            result[1] = length_squared(vec3(1.0, 2.0, 2.0))

        test_kernel()
        assert result[0] == pytest.approx(12.0)
        assert result[1] == pytest.approx(9.0)

    def test_normalize(self):
        from src.spherepath.core.ray import normalize

        v = _vector_result(normalize, (3.0, 0.0, 4.0))
        assert tuple(v) == pytest.approx((0.6, 0.0, 0.8), abs=1e-6)

    def test_normalize_zero_vector_stays_zero(self):
        from src.spherepath.core.ray import normalize

        v = _vector_result(normalize, (0.0, 0.0, 0.0))
        assert tuple(v) == (0.0, 0.0, 0.0)

    def test_normalize_tiny_vector_stays_zero(self):
        from src.spherepath.core.ray import normalize

        v = _vector_result(normalize, (1e-7, 0.0, 0.0))
        assert tuple(v) == (0.0, 0.0, 0.0)

    def test_cube_direction_is_unit_length(self):
        from src.spherepath.core.ray import cube_direction

        v = _vector_result(cube_direction, (-1.0, 0.5, 0.25))
        length_sq = sum(c * c for c in v)
        assert length_sq == pytest.approx(1.0, abs=1e-5)
        assert v[0] < 0.0

    def test_cube_direction_can_point_anywhere(self):
        """Directions are not flipped toward any hemisphere."""
        from src.spherepath.core.ray import cube_direction

        v = _vector_result(cube_direction, (0.0, 0.0, -1.0))
        assert tuple(v) == pytest.approx((0.0, 0.0, -1.0))
