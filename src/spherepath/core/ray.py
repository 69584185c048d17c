"""Ray data structure and vector utilities for the sphere path tracer.

This module provides the Ray dataclass and the handful of vector helpers the
kernels need. All operations are Taichi functions so they can be inlined into
the sampling kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, -5.0)
    >>> direction = ti.math.vec3(0.0, 0.0, 1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 4.0)  # (0, 0, -1)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Vectors shorter than this normalize to zero instead of blowing up
NORMALIZE_EPSILON = 1e-5


@ti.dataclass
class Ray:
    """Half-line traced through the sphere scene.

    Attributes:
        origin: Camera position or the hit point a bounce leaves from.
        direction: The direction vector of the ray (vec3). Intersection math
            accepts any magnitude; generated rays are always normalized.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Point reached after travelling t direction-lengths from the origin.

    Hit times are only meaningful for t >= HIT_EPSILON; negative t lies behind
    the origin.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    return tm.dot(a, b)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Squared Euclidean length; the a2 coefficient of the hit quadratic."""
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Vectors with a length below NORMALIZE_EPSILON come back as the zero
    vector. A zero direction never hits anything, so a degenerate random
    bounce simply ends the walk.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v, or the zero vector.
    """
    result = vec3(0.0, 0.0, 0.0)
    len_sq = tm.dot(v, v)
    if len_sq > NORMALIZE_EPSILON * NORMALIZE_EPSILON:
        result = v / ti.sqrt(len_sq)
    return result


@ti.func
def cube_direction(sample: vec3) -> vec3:
    """Turn a uniform sample of the cube [-1, 1]^3 into a bounce direction.

    This is the crude diffuse model of the tracer: the direction is neither
    cosine weighted nor restricted to the hemisphere around the surface
    normal, so a bounce can point back into the sphere it left.

    Args:
        sample: Three independent uniform values in [-1, 1].

    Returns:
        The normalized direction (zero for a degenerate sample).
    """
    return normalize(sample)
