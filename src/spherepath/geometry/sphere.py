"""Sphere primitive with closed-form ray-sphere intersection.

The intersection solves the quadratic

    dot(D, D) * t^2 + 2 * dot(d, D) * t + (dot(d, d) - r^2) = 0

with d = O - C, using the plain discriminant formula. Roots closer than
HIT_EPSILON are discarded so that a ray leaving a surface does not hit that
surface again because of floating-point error.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spherepath.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, 0), radius=1.0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Minimum accepted hit time. Anything nearer is treated as self-intersection.
HIT_EPSILON = 0.01

# Stand-in for "no hit time yet"
NO_HIT_TIME = 3.0e38


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: 1 if the ray hit the sphere, 0 otherwise.
        t: The hit time along the ray. Only valid if hit == 1.
        point: The hit position origin + t * direction. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3


@ti.func
def solve_quadratic(a2: ti.f32, a1: ti.f32, a0: ti.f32):
    """Solve a2*x^2 + a1*x + a0 = 0 with the textbook formula.

    Args:
        a2: Quadratic coefficient.
        a1: Linear coefficient.
        a0: Constant term.

    Returns:
        Tuple (ok, x0, x1). ok is 0 when the discriminant is negative or the
        equation is degenerate (a2 <= 0); otherwise x0 = (-a1 - sqrt(disc)) / 2a2
        and x1 = (-a1 + sqrt(disc)) / 2a2, so x0 <= x1.
    """
    ok = 0
    x0 = NO_HIT_TIME
    x1 = NO_HIT_TIME
    discriminant = a1 * a1 - 4.0 * a2 * a0
    if discriminant >= 0.0 and a2 > 0.0:
        sqrt_d = ti.sqrt(discriminant)
        x0 = (-a1 - sqrt_d) / (2.0 * a2)
        x1 = (-a1 + sqrt_d) / (2.0 * a2)
        ok = 1
    return ok, x0, x1


@ti.func
def nearest_valid_root(x0: ti.f32, x1: ti.f32):
    """Pick the smallest root that is not below HIT_EPSILON.

    Returns:
        Tuple (ok, t). ok is 0 when both roots are below the epsilon.
    """
    ok = 0
    t = NO_HIT_TIME
    if x0 >= HIT_EPSILON:
        ok = 1
        t = x0
    if x1 >= HIT_EPSILON and x1 < t:
        ok = 1
        t = x1
    return ok, t


@ti.func
def hit_sphere(ray_origin: vec3, ray_direction: vec3, sphere: Sphere) -> HitRecord:
    """Test a ray against one sphere.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The ray direction (any non-zero magnitude).
        sphere: The sphere to test.

    Returns:
        A HitRecord for the nearest root at or beyond HIT_EPSILON. Check the
        hit field before reading t or point.
    """
    d = ray_origin - sphere.center
    a2 = tm.dot(ray_direction, ray_direction)
    a1 = 2.0 * tm.dot(d, ray_direction)
    a0 = tm.dot(d, d) - sphere.radius * sphere.radius

    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)

    has_roots, x0, x1 = solve_quadratic(a2, a1, a0)
    if has_roots == 1:
        valid, t = nearest_valid_root(x0, x1)
        if valid == 1:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction

    return HitRecord(hit=did_hit, t=hit_t, point=hit_point)


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    return Sphere(center=center, radius=radius)
