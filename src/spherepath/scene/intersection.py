"""Scene-level hit records and reflected-ray synthesis.

The per-scene nearest-hit scan lives on SceneSnapshot (it needs the snapshot's
fields); this module holds the record it returns plus the helpers shared by the
sampler and the host-side query API.

Example:
    >>> from src.spherepath.scene.intersection import HitRecord
    >>> hit = snapshot.cast_ray((0, 0, -5), (0, 0, 1))
    >>> if hit is not None:
    ...     print(hit.time, hit.position)
"""


from dataclasses import dataclass
from typing import TYPE_CHECKING

import taichi as ti
import taichi.math as tm

from src.spherepath.core.ray import Ray, cube_direction, make_ray

if TYPE_CHECKING:
    from src.spherepath.scene.snapshot import SphereSpec

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

Vec3Tuple = tuple[float, float, float]


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection.

    Attributes:
        hit: 1 if any sphere was hit, 0 otherwise.
        t: Hit time of the nearest sphere. Only valid if hit == 1.
        point: Hit position. Only valid if hit == 1.
        sphere_index: Index of the hit sphere in the snapshot, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    sphere_index: ti.i32


@ti.func
def make_miss_record() -> SceneHitRecord:
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        sphere_index=-1,
    )


@ti.func
def bounce_ray(hit_point: vec3, sample: vec3) -> Ray:
    """Synthesize the reflected ray leaving a hit point.

    Args:
        hit_point: Where the incoming ray hit the sphere.
        sample: Three uniform values in [-1, 1] drawn for this bounce.

    Returns:
        A ray starting at the hit point with direction normalize(sample).
    """
    return make_ray(hit_point, cube_direction(sample))


@dataclass(frozen=True)
class HitRecord:
    """Host-side result of SceneSnapshot.cast_ray.

    cast_ray returns None for "no hit", so an instance always describes a
    real intersection.

    Attributes:
        time: Ray parameter of the hit.
        position: World-space hit position.
        sphere_index: Index of the hit sphere in the snapshot.
        sphere: The hit sphere's spec.
        reflected_origin: Origin of the synthesized reflected ray.
        reflected_direction: Unit direction of the reflected ray (zero for a
            degenerate sample).
    """

    time: float
    position: Vec3Tuple
    sphere_index: int
    sphere: "SphereSpec"
    reflected_origin: Vec3Tuple
    reflected_direction: Vec3Tuple
