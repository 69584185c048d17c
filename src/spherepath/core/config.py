"""Render configuration.

Example:
    >>> from src.spherepath.core.config import RenderConfig
    >>> config = RenderConfig(width=256, height=256, samples_per_batch=4096, seed=1)
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, replace
from typing import Any, Literal

# Names accepted for RenderConfig.policy
PolicyName = Literal["accumulate", "visibility"]


@dataclass(frozen=True)
class RenderConfig:
    """Settings of a progressive render pass.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_batch: Samples traced per render_batch() call (one tick).
        max_reflection: Maximum bounces per sample. 0 renders black.
        exposure: Brightness multiplier applied at normalization.
        policy: Per-bounce policy, "accumulate" or "visibility".
        jitter: Sample continuous positions inside pixels instead of pixel
            centers.
        seed: Seed of the default random source. None draws fresh entropy.

    Raises:
        ValueError: If any value is out of range.
    """

    width: int = 512
    height: int = 512
    samples_per_batch: int = 2048
    max_reflection: int = 2
    exposure: float = 1.0
    policy: PolicyName = "accumulate"
    jitter: bool = False
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.samples_per_batch <= 0:
            raise ValueError(
                f"samples_per_batch must be positive, got {self.samples_per_batch}"
            )
        if self.max_reflection < 0:
            raise ValueError(f"max_reflection must be non-negative, got {self.max_reflection}")
        if not math.isfinite(self.exposure) or self.exposure < 0.0:
            raise ValueError(f"exposure must be finite and non-negative, got {self.exposure}")
        if self.policy not in ("accumulate", "visibility"):
            raise ValueError(
                f"policy must be 'accumulate' or 'visibility', got {self.policy!r}"
            )

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def with_changes(self, **changes: Any) -> RenderConfig:
        """Return a copy with some fields replaced (validated again)."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
