"""Geometry module: the sphere primitive.

Intersection routines are Taichi functions (@ti.func) inlined into the
sampling kernels. Spheres are the only primitive; scenes are scanned linearly.
"""

from .sphere import (
    HIT_EPSILON,
    HitRecord,
    Sphere,
    hit_sphere,
    make_sphere,
    nearest_valid_root,
    solve_quadratic,
)

__all__ = [
    "HIT_EPSILON",
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "nearest_valid_root",
    "solve_quadratic",
]
