"""Accumulation buffer for progressive Monte Carlo rendering.

The buffer keeps a running per-pixel sum of sample radiance together with one
global sample counter. Pixels are addressed by pixel_index = y * width + x with
row 0 at the bottom of the image.

Normalization assumes samples are spread uniformly over the image: after N
samples each pixel expects N / (width * height) of them, so

    normalized = sum * (width * height / N) * exposure

Dividing by the global counter instead of a per-pixel count is a deliberate
simplification. It is noisy and biased while N is small compared to the pixel
count and converges as N grows.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spherepath.core.accumulation import AccumulationBuffer
    >>> buffer = AccumulationBuffer(1, 1)
    >>> buffer.add_sample(0, (1.0, 1.0, 1.0))
    >>> buffer.normalize(exposure=1.0)[0, 0]
    array([1., 1., 1.], dtype=float32)
"""


import logging
import math
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.data_oriented
class AccumulationBuffer:
    """Per-pixel radiance sums plus the global sample counter.

    Kernels add into the sums with atomic adds, so any number of samples in a
    parallel loop may target the same pixel. The sample counter is a host
    integer advanced once per batch by the number of samples traced.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        """Allocate a zeroed buffer.

        Args:
            width: Image width in pixels.
            height: Image height in pixels.

        Raises:
            ValueError: If either dimension is not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Buffer dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self._sums = ti.Vector.field(3, dtype=ti.f32, shape=width * height)
        self._sample_count = 0

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def sample_count(self) -> int:
        """Total number of samples recorded since the last reset."""
        return self._sample_count

    def pixel_index(self, x: int, y: int) -> int:
        """Flat index of pixel (x, y).

        Raises:
            IndexError: If the pixel lies outside the buffer.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} buffer")
        return y * self.width + x

    # =========================================================================
    # Kernel-side writes
    # =========================================================================

    @ti.func
    def accumulate(self, index: ti.i32, color: vec3):
        """Atomically add a sample color to a pixel sum."""
        self._sums[index] += color

    @ti.func
    def store(self, index: ti.i32, color: vec3):
        """Overwrite a pixel with a sample color (non-progressive policies)."""
        self._sums[index] = color

    @ti.kernel
    def _add_kernel(self, index: ti.i32, r: ti.f32, g: ti.f32, b: ti.f32):
        self.accumulate(index, vec3(r, g, b))

    @ti.kernel
    def _store_kernel(self, index: ti.i32, r: ti.f32, g: ti.f32, b: ti.f32):
        self.store(index, vec3(r, g, b))

    # =========================================================================
    # Host-side API
    # =========================================================================

    def _check_sample(self, pixel_index: int, color: Sequence[float]) -> tuple[float, ...]:
        if not 0 <= pixel_index < self.pixel_count:
            raise IndexError(
                f"Pixel index {pixel_index} outside buffer of {self.pixel_count} pixels"
            )
        if len(color) != 3:
            raise ValueError(f"Color must have 3 channels, got {len(color)}")
        rgb = tuple(float(c) for c in color)
        if not all(math.isfinite(c) and c >= 0.0 for c in rgb):
            raise ValueError(f"Color channels must be finite and non-negative, got {rgb}")
        return rgb

    def add_sample(self, pixel_index: int, color: Sequence[float]) -> None:
        """Add one sample to a pixel and count it.

        Args:
            pixel_index: Flat pixel index (y * width + x).
            color: Sample radiance (R, G, B), each channel >= 0.

        Raises:
            IndexError: If the index is out of range.
            ValueError: If the color is malformed or has a negative channel.
        """
        r, g, b = self._check_sample(pixel_index, color)
        self._add_kernel(pixel_index, r, g, b)
        self._sample_count += 1

    def overwrite(self, pixel_index: int, color: Sequence[float]) -> None:
        """Replace a pixel's value with one sample and count it."""
        r, g, b = self._check_sample(pixel_index, color)
        self._store_kernel(pixel_index, r, g, b)
        self._sample_count += 1

    def record_samples(self, count: int) -> None:
        """Advance the counter after a kernel traced count samples."""
        if count < 0:
            raise ValueError(f"Sample count increment must be non-negative, got {count}")
        self._sample_count += count

    def reset(self) -> None:
        """Zero every pixel sum and the sample counter."""
        self._sums.fill(0.0)
        self._sample_count = 0
        logger.debug(f"Accumulation buffer {self.width}x{self.height} reset")

    def sums_numpy(self) -> npt.NDArray[np.float32]:
        """Raw pixel sums as a (width * height, 3) array indexed by pixel index."""
        return self._sums.to_numpy()

    def _as_image(self, flat: npt.NDArray[np.floating]) -> npt.NDArray[np.float32]:
        # Rows are stored bottom-up; images are read top-down
        image = flat.reshape(self.height, self.width, 3)
        return np.ascontiguousarray(np.flipud(image)).astype(np.float32)

    def snapshot(self) -> npt.NDArray[np.float32]:
        """Raw buffer contents as a (height, width, 3) image, top row first."""
        return self._as_image(self.sums_numpy())

    def normalize(self, exposure: float = 1.0) -> npt.NDArray[np.float32]:
        """Turn the running sums into a displayable image.

        Args:
            exposure: Non-negative brightness multiplier.

        Returns:
            (height, width, 3) float32 image, top row first. All zeros while
            no sample has been recorded.

        Raises:
            ValueError: If exposure is negative or not finite.
        """
        if not math.isfinite(exposure) or exposure < 0.0:
            raise ValueError(f"Exposure must be finite and non-negative, got {exposure}")
        if self._sample_count == 0:
            return np.zeros((self.height, self.width, 3), dtype=np.float32)

        factor = (self.pixel_count / self._sample_count) * exposure
        return self._as_image(self.sums_numpy().astype(np.float64) * factor)

    def __repr__(self) -> str:
        return (
            f"AccumulationBuffer(width={self.width}, height={self.height}, "
            f"samples={self._sample_count})"
        )
