"""Pinhole camera model and primary ray generation.

The camera is described by a position, an orthonormal basis (right, up,
forward) and a vertical field of view. Rays are built in a pixel-sized frame
centered on the image:

    fx = sx - width / 2
    fy = sy - height / 2
    z  = (height / 2) / tan(vfov / 2)
    direction = normalize(fx * right + fy * up + z * forward)

where (sx, sy) is a continuous screen position. The center of pixel (x, y) is
(x + 0.5, y + 0.5); pixel row 0 is the bottom of the image. The image plane at
distance z subtends exactly the vertical field of view.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spherepath.camera.pinhole import PinholeCamera, RayGenerator
    >>>
    >>> camera = PinholeCamera.look_at(
    ...     position=(0.0, 1.0, -6.0),
    ...     target=(0.0, 1.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=60.0,
    ... )
    >>> generator = RayGenerator(256, 256)
    >>> generator.set_camera(camera)
    >>> origin, direction = generator.primary_ray(128, 128)
"""


import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import taichi as ti

from src.spherepath.core.ray import Ray, make_ray, normalize

# Tolerance used when checking that a camera basis is orthonormal
BASIS_TOLERANCE = 1e-3

Vec3Tuple = tuple[float, float, float]


# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class PinholeCamera:
    """Read-only camera snapshot supplied by the host for a render pass.

    Attributes:
        position: Camera position in world space.
        right: Unit vector pointing right in the image.
        up: Unit vector pointing up in the image.
        forward: Unit vector pointing into the scene.
        vfov: Vertical field of view in degrees, in (0, 180).

    Raises:
        ValueError: If the basis is not orthonormal or vfov is out of range.
    """

    position: Vec3Tuple
    right: Vec3Tuple = (1.0, 0.0, 0.0)
    up: Vec3Tuple = (0.0, 1.0, 0.0)
    forward: Vec3Tuple = (0.0, 0.0, 1.0)
    vfov: float = 60.0

    def __post_init__(self) -> None:
        for name in ("position", "right", "up", "forward"):
            value = np.asarray(getattr(self, name), dtype=np.float64)
            if value.shape != (3,) or not np.all(np.isfinite(value)):
                raise ValueError(f"Camera {name} must be 3 finite floats, got {value}")
            object.__setattr__(self, name, tuple(float(c) for c in value))

        vfov = float(self.vfov)
        if not 0.0 < vfov < 180.0:
            raise ValueError(f"Vertical field of view must be in (0, 180), got {vfov}")
        object.__setattr__(self, "vfov", vfov)

        basis = np.array([self.right, self.up, self.forward], dtype=np.float64)
        if not np.allclose(basis @ basis.T, np.eye(3), atol=BASIS_TOLERANCE):
            raise ValueError("Camera basis (right, up, forward) must be orthonormal")

    @classmethod
    def look_at(
        cls,
        position: Sequence[float],
        target: Sequence[float],
        vup: Sequence[float] = (0.0, 1.0, 0.0),
        vfov: float = 60.0,
    ) -> "PinholeCamera":
        """Build a camera looking from position toward target.

        The basis follows the default camera orientation: right = vup x forward,
        up = forward x right, so looking down +z with +y up gives right = +x.

        Args:
            position: Camera position in world space.
            target: Point the camera looks at.
            vup: Approximate up direction (must not be parallel to the view).
            vfov: Vertical field of view in degrees.

        Returns:
            A PinholeCamera with an orthonormal basis.

        Raises:
            ValueError: If position equals target or vup is parallel to the
                view direction.
        """
        eye = np.asarray(position, dtype=np.float64)
        forward = np.asarray(target, dtype=np.float64) - eye
        norm = np.linalg.norm(forward)
        if norm < 1e-12:
            raise ValueError("Camera position and target must differ")
        forward = forward / norm

        right = np.cross(np.asarray(vup, dtype=np.float64), forward)
        norm = np.linalg.norm(right)
        if norm < 1e-12:
            raise ValueError("vup must not be parallel to the view direction")
        right = right / norm

        up = np.cross(forward, right)

        return cls(
            position=tuple(eye.tolist()),
            right=tuple(right.tolist()),
            up=tuple(up.tolist()),
            forward=tuple(forward.tolist()),
            vfov=vfov,
        )


def image_plane_distance(height: int, vfov: float) -> float:
    """Distance from the eye to an image plane measured in pixels.

    Args:
        height: Image height in pixels.
        vfov: Vertical field of view in degrees.

    Returns:
        z such that tan(vfov / 2) = (height / 2) / z.
    """
    return (height * 0.5) / math.tan(math.radians(vfov) * 0.5)


# =============================================================================
# Ray Generation (Taichi-side)
# =============================================================================


@ti.data_oriented
class RayGenerator:
    """Camera state in Taichi fields plus kernel-side ray generation.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height

        self._origin = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._right = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._up = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._forward = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._distance = ti.field(dtype=ti.f32, shape=())

        # Host query scratch: screen position in, ray out
        self._query_screen = ti.Vector.field(2, dtype=ti.f32, shape=())
        self._query_ray = Ray.field(shape=())

        self._camera: PinholeCamera | None = None

    @property
    def camera(self) -> PinholeCamera | None:
        return self._camera

    def set_camera(self, camera: PinholeCamera) -> None:
        """Upload a camera snapshot.

        Args:
            camera: The camera to use for subsequent rays.
        """
        self._origin[None] = list(camera.position)
        self._right[None] = list(camera.right)
        self._up[None] = list(camera.up)
        self._forward[None] = list(camera.forward)
        self._distance[None] = image_plane_distance(self.height, camera.vfov)
        self._camera = camera

    @ti.func
    def generate_ray(self, sx: ti.f32, sy: ti.f32) -> Ray:
        """Generate the world-space ray through a screen position.

        Args:
            sx: Horizontal screen position in [0, width).
            sy: Vertical screen position in [0, height), 0 at the bottom.

        Returns:
            A ray from the camera position with a normalized direction.
        """
        fx = sx - self.width * 0.5
        fy = sy - self.height * 0.5
        direction = (
            fx * self._right[None] + fy * self._up[None] + self._distance[None] * self._forward[None]
        )
        return make_ray(self._origin[None], normalize(direction))

    @ti.func
    def pixel_ray(self, x: ti.i32, y: ti.i32) -> Ray:
        """Generate the ray through the center of pixel (x, y)."""
        return self.generate_ray(ti.cast(x, ti.f32) + 0.5, ti.cast(y, ti.f32) + 0.5)

    @ti.kernel
    def _query_kernel(self):
        screen = self._query_screen[None]
        ray = self.generate_ray(screen.x, screen.y)
        self._query_ray[None].origin = ray.origin
        self._query_ray[None].direction = ray.direction

    @ti.kernel
    def _pixel_query_kernel(self, x: ti.i32, y: ti.i32):
        ray = self.pixel_ray(x, y)
        self._query_ray[None].origin = ray.origin
        self._query_ray[None].direction = ray.direction

    def _read_query(self) -> tuple[Vec3Tuple, Vec3Tuple]:
        origin = self._query_ray[None].origin
        direction = self._query_ray[None].direction
        return (
            (float(origin[0]), float(origin[1]), float(origin[2])),
            (float(direction[0]), float(direction[1]), float(direction[2])),
        )

    def screen_ray(self, sx: float, sy: float) -> tuple[Vec3Tuple, Vec3Tuple]:
        """Generate a ray through a continuous screen position from Python.

        Returns:
            Tuple (origin, direction) of the world-space ray.

        Raises:
            RuntimeError: If no camera has been set.
        """
        if self._camera is None:
            raise RuntimeError("Camera not set. Call set_camera() first.")
        self._query_screen[None] = [sx, sy]
        self._query_kernel()
        return self._read_query()

    def primary_ray(self, x: int, y: int) -> tuple[Vec3Tuple, Vec3Tuple]:
        """Generate the ray through the center of pixel (x, y) from Python.

        Raises:
            IndexError: If the pixel lies outside the image.
            RuntimeError: If no camera has been set.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")
        if self._camera is None:
            raise RuntimeError("Camera not set. Call set_camera() first.")
        self._pixel_query_kernel(x, y)
        return self._read_query()
