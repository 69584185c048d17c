"""Progressive renderer driving the path sampler one batch at a time.

This module exposes the API an external frame loop talks to:
- begin_render(): start a pass with fresh scene/camera snapshots
- render_batch(): trace one batch of random samples
- get_image(): the normalized frame for presentation
- request_restart() / restart(): discard the pass and start over

The renderer owns its AccumulationBuffer. A lock serializes batches and
restarts, so a restart requested from another thread waits for the in-flight
batch to finish and then clears everything it added.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spherepath.core.config import RenderConfig
    >>> from src.spherepath.core.progressive import ProgressiveRenderer
    >>> from src.spherepath.scene.presets import create_demo_scene
    >>>
    >>> spheres, camera = create_demo_scene()
    >>> renderer = ProgressiveRenderer(RenderConfig(width=128, height=128), spheres, camera)
    >>> for _ in range(10):
    ...     frame = renderer.tick()
    >>> renderer.sample_count
    20480
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Generator, Iterable
from typing import Any

import numpy as np
import numpy.typing as npt

from src.spherepath.camera.pinhole import PinholeCamera, RayGenerator
from src.spherepath.core.accumulation import AccumulationBuffer
from src.spherepath.core.config import RenderConfig
from src.spherepath.core.sampler import PathSampler, make_policy
from src.spherepath.core.sampling import RandomSource, SampleBatch, make_random_source
from src.spherepath.scene.snapshot import SceneSnapshot, SphereSpec

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates random samples over time.

    Attributes:
        config: The render configuration.
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(
        self,
        config: RenderConfig,
        scene: SceneSnapshot | Iterable[SphereSpec],
        camera: PinholeCamera,
        rng: RandomSource | None = None,
    ) -> None:
        """Create the renderer and begin the first pass.

        Args:
            config: Render configuration.
            scene: A SceneSnapshot, or sphere specs to build one from.
            camera: Camera snapshot.
            rng: Random source. Defaults to a generator seeded with
                config.seed.
        """
        self.config = config
        self._rng = rng if rng is not None else make_random_source(config.seed)
        self._lock = threading.Lock()
        self._restart_requested = threading.Event()

        self._ray_generator = RayGenerator(config.width, config.height)
        self._buffer = AccumulationBuffer(config.width, config.height)
        self._policy = make_policy(config.policy)
        self._scene: SceneSnapshot | None = None
        self._sampler: PathSampler | None = None

        self.begin_render(scene, camera)

    @property
    def width(self) -> int:
        return self.config.width

    @property
    def height(self) -> int:
        return self.config.height

    @property
    def sample_count(self) -> int:
        """Cumulative number of samples in the current pass."""
        return self._buffer.sample_count

    @property
    def buffer(self) -> AccumulationBuffer:
        return self._buffer

    @property
    def scene(self) -> SceneSnapshot:
        if self._scene is None:
            raise RuntimeError("No scene set. Call begin_render() first.")
        return self._scene

    @property
    def camera(self) -> PinholeCamera | None:
        return self._ray_generator.camera

    # =========================================================================
    # Pass lifecycle
    # =========================================================================

    def begin_render(
        self,
        scene: SceneSnapshot | Iterable[SphereSpec] | None = None,
        camera: PinholeCamera | None = None,
    ) -> None:
        """Start a new render pass.

        Clears the buffer and the sample counter. A new scene snapshot
        replaces the sampler; a new camera is uploaded in place.

        Args:
            scene: New scene for this pass, or None to keep the current one.
            camera: New camera for this pass, or None to keep the current one.

        Raises:
            RuntimeError: If no scene or camera is available.
        """
        with self._lock:
            if camera is not None:
                self._ray_generator.set_camera(camera)
            if self._ray_generator.camera is None:
                raise RuntimeError("No camera set for the render pass")

            if scene is not None:
                if not isinstance(scene, SceneSnapshot):
                    scene = SceneSnapshot(scene)
                self._scene = scene
                self._sampler = PathSampler(
                    scene,
                    self._ray_generator,
                    self._buffer,
                    self._policy,
                    max_reflection=self.config.max_reflection,
                    capacity=self.config.samples_per_batch,
                )
            if self._sampler is None:
                raise RuntimeError("No scene set for the render pass")

            self._buffer.reset()
            self._restart_requested.clear()

        logger.info(
            f"Render pass started: {self.width}x{self.height}, "
            f"{len(self.scene)} spheres, policy={self._policy.name}, "
            f"max_reflection={self.config.max_reflection}"
        )

    def restart(self) -> None:
        """Discard the current pass immediately (waits for a running batch)."""
        with self._lock:
            self._buffer.reset()
            self._restart_requested.clear()
        logger.info("Render pass restarted")

    def request_restart(self) -> None:
        """Ask for a restart at the start of the next tick.

        Requests are edge-triggered: several requests before the next tick
        cause a single restart.
        """
        self._restart_requested.set()

    @property
    def restart_pending(self) -> bool:
        return self._restart_requested.is_set()

    # =========================================================================
    # Rendering
    # =========================================================================

    def _draw_batch(self, num_samples: int) -> SampleBatch:
        return SampleBatch.draw(
            self._rng,
            num_samples,
            width=self.width,
            height=self.height,
            max_reflection=self.config.max_reflection,
            jitter=self.config.jitter,
        )

    def render_batch(self, num_samples: int | None = None) -> int:
        """Trace one batch of random samples into the buffer.

        Args:
            num_samples: Batch size. Defaults to config.samples_per_batch.

        Returns:
            The sample count after the batch.
        """
        if num_samples is None:
            num_samples = self.config.samples_per_batch
        if num_samples <= 0:
            return self.sample_count

        with self._lock:
            batch = self._draw_batch(num_samples)
            self._sampler.render(batch)
            return self._buffer.sample_count

    def render_pixel(self, x: int, y: int, count: int) -> int:
        """Trace count samples through the center of pixel (x, y).

        Returns:
            The sample count after the samples were added.

        Raises:
            IndexError: If the pixel lies outside the image.
            ValueError: If count is negative.
        """
        with self._lock:
            self._sampler.render_pixel(x, y, count, self._rng)
            return self._buffer.sample_count

    def render(
        self,
        num_batches: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render several batches with an optional progress callback.

        Args:
            num_batches: Number of batches to trace.
            callback: Called after each batch with (current_total_samples,
                target_total_samples).

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(10, callback=progress)
        """
        for current, target in self.render_progressive(num_batches):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_batches: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render batches, yielding progress after each one.

        Yields:
            Tuple of (current_total_samples, target_total_samples).
        """
        if num_batches <= 0:
            return

        target_samples = self.sample_count + num_batches * self.config.samples_per_batch
        for _ in range(num_batches):
            current = self.render_batch()
            yield (current, target_samples)

    def tick(self) -> npt.NDArray[np.float32]:
        """Run one frame of the host loop.

        Honors a pending restart, renders one batch and returns the frame.
        """
        if self._restart_requested.is_set():
            self.restart()
        self.render_batch()
        return self.get_image()

    # =========================================================================
    # Output
    # =========================================================================

    def get_image(self, exposure: float | None = None) -> npt.NDArray[np.float32]:
        """Get the current frame as a (height, width, 3) float32 array.

        Progressive policies return the normalized buffer; non-progressive
        ones return the raw buffer, which already holds final pixel values.

        Args:
            exposure: Override of config.exposure. Only progressive policies
                normalize, so it is rejected for non-progressive ones.

        Raises:
            ValueError: If exposure is given for a non-progressive policy.
        """
        with self._lock:
            if not self._policy.progressive:
                if exposure is not None:
                    raise ValueError(
                        f"exposure does not apply to the {self._policy.name} policy"
                    )
                return self._buffer.snapshot()
            return self._buffer.normalize(self.config.exposure if exposure is None else exposure)

    def get_image_uint8(self, gamma: float = 2.2) -> npt.NDArray[np.uint8]:
        """Get the frame as an 8-bit array, clamped and gamma corrected."""
        from src.spherepath.preview.export import image_to_uint8

        return image_to_uint8(self.get_image(), gamma=gamma)

    def save_image(self, filepath: str, gamma: float = 2.2, **kwargs: Any) -> None:
        """Save the current frame as a PNG file."""
        from src.spherepath.preview.export import save_png_from_array

        save_png_from_array(self.get_image(), filepath, gamma=gamma, **kwargs)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
