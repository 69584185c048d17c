"""Host-side random number draws for sample batches.

Kernels never call a device RNG. Every random number a batch consumes (pixel
positions and bounce directions) is drawn here from an injectable
numpy.random.Generator and uploaded with the batch, so equal seeds reproduce
equal sample sequences.

Example:
    >>> from src.spherepath.core.sampling import SampleBatch, make_random_source
    >>> rng = make_random_source(seed=7)
    >>> batch = SampleBatch.draw(rng, 1024, width=64, height=64, max_reflection=2)
    >>> batch.positions.shape, batch.bounces.shape
    ((1024, 2), (1024, 2, 3))
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

# The random source is any numpy Generator; tests pass seeded ones
RandomSource = np.random.Generator


def make_random_source(seed: int | None = None) -> RandomSource:
    """Create a random source, seeded for reproducibility when seed is given."""
    return np.random.default_rng(seed)


@dataclass(frozen=True)
class SampleBatch:
    """Random numbers for one batch of samples.

    Attributes:
        positions: (n, 2) float32 continuous screen positions. Pixel centers
            sit at integer + 0.5.
        bounces: (n, max_reflection, 3) float32 values uniform in [-1, 1], one
            triple per bounce.
    """

    positions: npt.NDArray[np.float32]
    bounces: npt.NDArray[np.float32]

    def __len__(self) -> int:
        return int(self.positions.shape[0])

    @property
    def max_reflection(self) -> int:
        return int(self.bounces.shape[1])

    def pixels(self, width: int, height: int) -> npt.NDArray[np.int32]:
        """Integer pixel coordinates (n, 2) covered by each screen position."""
        pixels = np.floor(self.positions).astype(np.int32)
        pixels[:, 0] = np.clip(pixels[:, 0], 0, width - 1)
        pixels[:, 1] = np.clip(pixels[:, 1], 0, height - 1)
        return pixels

    @classmethod
    def draw(
        cls,
        rng: RandomSource,
        num_samples: int,
        *,
        width: int,
        height: int,
        max_reflection: int,
        jitter: bool = False,
    ) -> SampleBatch:
        """Draw a batch of uniformly distributed samples.

        Args:
            rng: Random source.
            num_samples: Number of samples in the batch.
            width: Image width in pixels.
            height: Image height in pixels.
            max_reflection: Bounces per sample.
            jitter: If True, positions are continuous within the image.
                Otherwise each sample targets a pixel center.

        Returns:
            A SampleBatch of num_samples samples.
        """
        if jitter:
            positions = rng.random((num_samples, 2)) * np.array([width, height])
        else:
            xs = rng.integers(0, width, size=num_samples)
            ys = rng.integers(0, height, size=num_samples)
            positions = np.stack([xs, ys], axis=1) + 0.5
        bounces = rng.uniform(-1.0, 1.0, size=(num_samples, max_reflection, 3))
        return cls(
            positions=positions.astype(np.float32),
            bounces=bounces.astype(np.float32),
        )

    @classmethod
    def for_pixel(
        cls,
        rng: RandomSource,
        x: int,
        y: int,
        count: int,
        *,
        max_reflection: int,
    ) -> SampleBatch:
        """Draw count samples that all go through the center of pixel (x, y)."""
        positions = np.tile(np.array([x + 0.5, y + 0.5]), (count, 1))
        bounces = rng.uniform(-1.0, 1.0, size=(count, max_reflection, 3))
        return cls(
            positions=positions.astype(np.float32),
            bounces=bounces.astype(np.float32),
        )
