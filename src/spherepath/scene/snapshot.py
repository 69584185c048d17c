"""Immutable scene snapshots made of spheres.

A SceneSnapshot copies an ordered list of SphereSpec records into Taichi fields
once per render pass. The kernels only read from it: the nearest-hit scan, the
material lookups used by the path sampler, and a host-side cast_ray query for
debugging and tests.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spherepath.scene.snapshot import SceneSnapshot, SphereSpec
    >>> light = SphereSpec((0, 4, 0), 1.0, emission=(8, 8, 8), is_light=True)
    >>> ball = SphereSpec((0, 0, 0), 1.0, albedo=(0.8, 0.3, 0.3))
    >>> snapshot = SceneSnapshot([light, ball])
    >>> hit = snapshot.cast_ray((0, 0, -5), (0, 0, 1))
    >>> hit.sphere_index
    1
"""


import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from src.spherepath.geometry.sphere import NO_HIT_TIME, hit_sphere, make_sphere
from src.spherepath.scene.intersection import (
    HitRecord,
    SceneHitRecord,
    bounce_ray,
    make_miss_record,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

Vec3Tuple = tuple[float, float, float]


def _as_vec3(value: Sequence[float], name: str) -> Vec3Tuple:
    """Coerce a 3-sequence to a tuple of finite floats."""
    if len(value) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(value)}")
    result = (float(value[0]), float(value[1]), float(value[2]))
    if not all(math.isfinite(c) for c in result):
        raise ValueError(f"{name} must be finite, got {result}")
    return result


def _as_color(value: Sequence[float], name: str) -> Vec3Tuple:
    color = _as_vec3(value, name)
    if min(color) < 0.0:
        raise ValueError(f"{name} channels must be non-negative, got {color}")
    return color


@dataclass(frozen=True)
class SphereSpec:
    """Geometry and material of one sphere.

    Attributes:
        center: Center of the sphere in world space.
        radius: Radius (must be positive).
        albedo: Per-channel fraction of light reflected at each bounce.
        emission: Radiance emitted by the surface.
        is_light: Tag used by the visibility policy to identify light sources.

    Raises:
        ValueError: On a non-positive radius, non-finite values or negative
            color channels.
    """

    center: Vec3Tuple
    radius: float
    albedo: Vec3Tuple = (1.0, 1.0, 1.0)
    emission: Vec3Tuple = (0.0, 0.0, 0.0)
    is_light: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", _as_vec3(self.center, "center"))
        object.__setattr__(self, "albedo", _as_color(self.albedo, "albedo"))
        object.__setattr__(self, "emission", _as_color(self.emission, "emission"))
        radius = float(self.radius)
        if not math.isfinite(radius) or radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")
        object.__setattr__(self, "radius", radius)
        object.__setattr__(self, "is_light", bool(self.is_light))

    @classmethod
    def from_transform(
        cls,
        position: Sequence[float],
        scale: float,
        *,
        albedo: Sequence[float] = (1.0, 1.0, 1.0),
        emission: Sequence[float] = (0.0, 0.0, 0.0),
        is_light: bool = False,
    ) -> "SphereSpec":
        """Build a sphere from an engine transform.

        Engine-authored unit spheres have a diameter of one, so the uniform
        scale of the transform is the sphere's diameter.

        Args:
            position: Transform position (sphere center).
            scale: Uniform scale of the transform (sphere diameter).
            albedo: Surface albedo.
            emission: Emitted radiance.
            is_light: Light tag for the visibility policy.

        Returns:
            A validated SphereSpec with radius = scale / 2.
        """
        return cls(
            center=tuple(position),
            radius=float(scale) * 0.5,
            albedo=tuple(albedo),
            emission=tuple(emission),
            is_light=is_light,
        )


@ti.data_oriented
class SceneSnapshot:
    """Read-only copy of a sphere list stored in Taichi fields.

    The fields are allocated with at least one slot so that an empty scene is
    representable; the active count lives in a scalar field and the scan only
    visits that many spheres.

    Attributes:
        spheres: The specs this snapshot was built from, in order.
    """

    def __init__(self, spheres: Iterable[SphereSpec]) -> None:
        specs = tuple(spheres)
        for spec in specs:
            if not isinstance(spec, SphereSpec):
                raise TypeError(f"Expected SphereSpec, got {type(spec).__name__}")
        self._specs = specs

        capacity = max(len(specs), 1)
        self._centers = ti.Vector.field(3, dtype=ti.f32, shape=capacity)
        self._radii = ti.field(dtype=ti.f32, shape=capacity)
        self._albedos = ti.Vector.field(3, dtype=ti.f32, shape=capacity)
        self._emissions = ti.Vector.field(3, dtype=ti.f32, shape=capacity)
        self._is_light = ti.field(dtype=ti.i32, shape=capacity)
        self._count = ti.field(dtype=ti.i32, shape=())

        # Host query scratch: origin, direction, bounce sample
        self._query = ti.Vector.field(3, dtype=ti.f32, shape=3)
        self._query_result = SceneHitRecord.field(shape=())
        self._query_reflected = ti.Vector.field(3, dtype=ti.f32, shape=())

        self._upload(capacity)
        logger.debug(f"Scene snapshot uploaded: {len(specs)} spheres")

    def _upload(self, capacity: int) -> None:
        centers = np.zeros((capacity, 3), dtype=np.float32)
        radii = np.ones(capacity, dtype=np.float32)
        albedos = np.zeros((capacity, 3), dtype=np.float32)
        emissions = np.zeros((capacity, 3), dtype=np.float32)
        is_light = np.zeros(capacity, dtype=np.int32)
        for i, spec in enumerate(self._specs):
            centers[i] = spec.center
            radii[i] = spec.radius
            albedos[i] = spec.albedo
            emissions[i] = spec.emission
            is_light[i] = int(spec.is_light)

        self._centers.from_numpy(centers)
        self._radii.from_numpy(radii)
        self._albedos.from_numpy(albedos)
        self._emissions.from_numpy(emissions)
        self._is_light.from_numpy(is_light)
        self._count[None] = len(self._specs)

    @property
    def spheres(self) -> tuple[SphereSpec, ...]:
        return self._specs

    def __len__(self) -> int:
        return len(self._specs)

    def __repr__(self) -> str:
        return f"SceneSnapshot(spheres={len(self._specs)})"

    # =========================================================================
    # Kernel-side queries
    # =========================================================================

    @ti.func
    def intersect(self, origin: vec3, direction: vec3) -> SceneHitRecord:
        """Find the nearest sphere hit by a ray.

        Linear scan over every sphere. A sphere replaces the current best only
        when its hit time is strictly smaller, so on an exact tie the sphere
        that comes first in the list wins.

        Args:
            origin: Ray origin.
            direction: Ray direction.

        Returns:
            The nearest hit, or a miss record.
        """
        result = make_miss_record()
        closest_t = NO_HIT_TIME
        for i in range(self._count[None]):
            sphere = make_sphere(self._centers[i], self._radii[i])
            rec = hit_sphere(origin, direction, sphere)
            if rec.hit == 1 and rec.t < closest_t:
                closest_t = rec.t
                result = SceneHitRecord(hit=1, t=rec.t, point=rec.point, sphere_index=i)
        return result

    @ti.func
    def albedo(self, index: ti.i32) -> vec3:
        return self._albedos[index]

    @ti.func
    def emission(self, index: ti.i32) -> vec3:
        return self._emissions[index]

    @ti.func
    def is_light(self, index: ti.i32) -> ti.i32:
        return self._is_light[index]

    # =========================================================================
    # Host-side query
    # =========================================================================

    @ti.kernel
    def _cast_kernel(self):
        # Single iteration keeps the sphere scan out of the parallel top level
        for _ in range(1):
            rec = self.intersect(self._query[0], self._query[1])
            self._query_result[None].hit = rec.hit
            self._query_result[None].t = rec.t
            self._query_result[None].point = rec.point
            self._query_result[None].sphere_index = rec.sphere_index
            self._query_reflected[None] = bounce_ray(rec.point, self._query[2]).direction

    def cast_ray(
        self,
        origin: Sequence[float],
        direction: Sequence[float],
        rng: np.random.Generator | None = None,
    ) -> HitRecord | None:
        """Intersect one ray with the scene from Python.

        Args:
            origin: Ray origin.
            direction: Ray direction (any non-zero magnitude).
            rng: Random source for the reflected ray. A fresh default
                generator is used when omitted.

        Returns:
            The nearest HitRecord, or None when no sphere is hit.
        """
        if rng is None:
            rng = np.random.default_rng()
        sample = rng.uniform(-1.0, 1.0, size=3)

        self._query[0] = _as_vec3(origin, "origin")
        self._query[1] = _as_vec3(direction, "direction")
        self._query[2] = [float(c) for c in sample]
        self._cast_kernel()

        rec = self._query_result[None]
        if rec.hit == 0:
            return None

        index = int(rec.sphere_index)
        point = rec.point
        reflected = self._query_reflected[None]
        position = (float(point[0]), float(point[1]), float(point[2]))
        return HitRecord(
            time=float(rec.t),
            position=position,
            sphere_index=index,
            sphere=self._specs[index],
            reflected_origin=position,
            reflected_direction=(
                float(reflected[0]),
                float(reflected[1]),
                float(reflected[2]),
            ),
        )
