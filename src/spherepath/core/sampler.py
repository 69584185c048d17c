"""Path sampler: random walks from the camera through the sphere scene.

One sample picks a screen position, shoots the camera ray through it and walks
up to max_reflection bounces. What happens at each hit is decided by a policy
object injected into the sampler:

    AccumulatePolicy (progressive)
        color += emission * throughput
        throughput *= albedo
    VisibilityPolicy (non-progressive)
        hitting a sphere tagged as a light makes the sample white and ends
        the walk; a miss or running out of bounces leaves it black

A miss always ends the walk. Progressive policies add the sample color into
the pixel sum; non-progressive ones overwrite the pixel. Every traced sample
counts once toward the buffer's global sample counter.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spherepath.core.sampler import PathSampler, make_policy
    >>> sampler = PathSampler(
    ...     scene, ray_generator, buffer, make_policy("accumulate"), max_reflection=2
    ... )
    >>> sampler.render(SampleBatch.draw(rng, 4096, width=64, height=64, max_reflection=2))
"""


import logging

import numpy as np
import taichi as ti
import taichi.math as tm

from src.spherepath.camera.pinhole import RayGenerator
from src.spherepath.core.accumulation import AccumulationBuffer
from src.spherepath.core.sampling import RandomSource, SampleBatch
from src.spherepath.scene.intersection import bounce_ray
from src.spherepath.scene.snapshot import SceneSnapshot

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# Default number of samples uploaded per kernel launch
DEFAULT_CAPACITY = 2048


# =============================================================================
# Per-bounce Policies
# =============================================================================


@ti.data_oriented
class AccumulatePolicy:
    """Emission weighted by throughput, attenuated by albedo at every hit."""

    name = "accumulate"
    progressive = True

    @ti.func
    def bounce(self, color: vec3, throughput: vec3, albedo: vec3, emission: vec3, is_light: ti.i32):
        """Update the path state at a hit.

        Returns:
            Tuple (color, throughput, stop). This policy never stops early.
        """
        stop = 0
        return color + emission * throughput, throughput * albedo, stop


@ti.data_oriented
class VisibilityPolicy:
    """Binary test: does the walk reach a light within the bounce budget."""

    name = "visibility"
    progressive = False

    @ti.func
    def bounce(self, color: vec3, throughput: vec3, albedo: vec3, emission: vec3, is_light: ti.i32):
        result = color
        stop = 0
        if is_light == 1:
            result = vec3(1.0, 1.0, 1.0)
            stop = 1
        return result, throughput, stop


POLICIES = {
    AccumulatePolicy.name: AccumulatePolicy,
    VisibilityPolicy.name: VisibilityPolicy,
}


def make_policy(name: str):
    """Create a policy from its name ("accumulate" or "visibility").

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        return POLICIES[name]()
    except KeyError:
        raise ValueError(
            f"Unknown sampler policy {name!r}, expected one of {sorted(POLICIES)}"
        ) from None


# =============================================================================
# Path Sampler
# =============================================================================


@ti.data_oriented
class PathSampler:
    """Traces batches of samples into an accumulation buffer.

    The scene, camera and buffer are bound at construction; the compiled
    kernel refers to their fields, so a new scene snapshot needs a new
    sampler. The camera can be updated in place through the RayGenerator.

    Attributes:
        scene: The scene snapshot being rendered.
        camera: Ray generator holding the camera state.
        buffer: Destination accumulation buffer.
        policy: Per-bounce policy.
        max_reflection: Maximum number of bounces per sample.
        capacity: Maximum samples per kernel launch.
    """

    def __init__(
        self,
        scene: SceneSnapshot,
        camera: RayGenerator,
        buffer: AccumulationBuffer,
        policy,
        *,
        max_reflection: int,
        capacity: int = DEFAULT_CAPACITY,
    ) -> None:
        """Bind the sampler to its inputs and allocate the batch upload fields.

        Raises:
            ValueError: On mismatched dimensions, a negative bounce budget or
                a non-positive capacity.
        """
        if (camera.width, camera.height) != (buffer.width, buffer.height):
            raise ValueError(
                f"Camera image {camera.width}x{camera.height} does not match "
                f"buffer {buffer.width}x{buffer.height}"
            )
        if max_reflection < 0:
            raise ValueError(f"max_reflection must be non-negative, got {max_reflection}")
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")

        self.scene = scene
        self.camera = camera
        self.buffer = buffer
        self.policy = policy
        self.max_reflection = max_reflection
        self.capacity = capacity
        self.width = buffer.width
        self.height = buffer.height

        # At least one bounce slot so the field shape stays valid
        self._depth_slots = max(max_reflection, 1)
        self._positions = ti.Vector.field(2, dtype=ti.f32, shape=capacity)
        self._bounces = ti.Vector.field(3, dtype=ti.f32, shape=(capacity, self._depth_slots))

    # =========================================================================
    # Path Tracing Core
    # =========================================================================

    @ti.func
    def trace_path(self, origin: vec3, direction: vec3, s: ti.i32) -> vec3:
        """Walk one path and return its radiance estimate.

        Args:
            origin: Camera ray origin.
            direction: Camera ray direction.
            s: Slot of this sample in the batch (selects its bounce samples).

        Returns:
            The sample color produced by the policy.
        """
        color = vec3(0.0, 0.0, 0.0)
        throughput = vec3(1.0, 1.0, 1.0)
        ray_origin = origin
        ray_direction = direction

        # Taichi doesn't support break in ti.func loops
        active = 1
        for depth in range(self.max_reflection):
            if active == 1:
                rec = self.scene.intersect(ray_origin, ray_direction)
                if rec.hit == 0:
                    active = 0
                else:
                    i = rec.sphere_index
                    color, throughput, stop = self.policy.bounce(
                        color,
                        throughput,
                        self.scene.albedo(i),
                        self.scene.emission(i),
                        self.scene.is_light(i),
                    )
                    if stop == 1:
                        active = 0
                    else:
                        reflected = bounce_ray(rec.point, self._bounces[s, depth])
                        ray_origin = reflected.origin
                        ray_direction = reflected.direction

        return color

    @ti.func
    def _sample(self, s: ti.i32):
        position = self._positions[s]
        x = ti.min(ti.max(ti.cast(ti.floor(position.x), ti.i32), 0), self.width - 1)
        y = ti.min(ti.max(ti.cast(ti.floor(position.y), ti.i32), 0), self.height - 1)

        ray = self.camera.generate_ray(position.x, position.y)
        color = self.trace_path(ray.origin, ray.direction, s)

        index = y * self.width + x
        if ti.static(self.policy.progressive):
            self.buffer.accumulate(index, color)
        else:
            self.buffer.store(index, color)

    @ti.kernel
    def _trace_kernel(self, num_samples: ti.i32):
        if ti.static(self.policy.progressive):
            for s in range(num_samples):
                self._sample(s)
        else:
            # Overwrites must land in batch order
            ti.loop_config(serialize=True)
            for s in range(num_samples):
                self._sample(s)

    # =========================================================================
    # Host-side API
    # =========================================================================

    def _upload(self, batch: SampleBatch, start: int, count: int) -> None:
        positions = np.zeros((self.capacity, 2), dtype=np.float32)
        positions[:count] = batch.positions[start : start + count]
        self._positions.from_numpy(positions)

        if self.max_reflection > 0:
            bounces = np.zeros((self.capacity, self._depth_slots, 3), dtype=np.float32)
            bounces[:count] = batch.bounces[start : start + count]
            self._bounces.from_numpy(bounces)

    def render(self, batch: SampleBatch) -> int:
        """Trace every sample of a batch into the buffer.

        Batches larger than the capacity are traced in several launches.

        Args:
            batch: Samples drawn for this sampler's bounce budget.

        Returns:
            The number of samples traced.

        Raises:
            RuntimeError: If the camera has not been set.
            ValueError: If the batch was drawn for a different bounce budget.
        """
        if self.camera.camera is None:
            raise RuntimeError("Camera not set. Call set_camera() first.")
        if batch.max_reflection != self.max_reflection:
            raise ValueError(
                f"Batch has {batch.max_reflection} bounces per sample, "
                f"sampler expects {self.max_reflection}"
            )

        total = len(batch)
        for start in range(0, total, self.capacity):
            count = min(self.capacity, total - start)
            self._upload(batch, start, count)
            self._trace_kernel(count)
            self.buffer.record_samples(count)

        logger.debug(f"Traced {total} samples ({self.policy.name})")
        return total

    def render_pixel(self, x: int, y: int, count: int, rng: RandomSource) -> int:
        """Trace count samples through the center of pixel (x, y).

        Raises:
            IndexError: If the pixel lies outside the image.
            ValueError: If count is negative.
        """
        self.buffer.pixel_index(x, y)
        if count < 0:
            raise ValueError(f"Sample count must be non-negative, got {count}")
        batch = SampleBatch.for_pixel(rng, x, y, count, max_reflection=self.max_reflection)
        return self.render(batch)
