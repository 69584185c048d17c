"""Display processing for normalized frames.

Normalized frames are linear, non-negative and unbounded. A host that presents
them needs them squeezed into [0, 1] and gamma encoded; these helpers do that
on NumPy arrays.

Example:
    >>> from src.spherepath.preview.display import process_image_for_display
    >>> frame = renderer.get_image()
    >>> shown = process_image_for_display(frame, tone_map="reinhard", gamma=2.2)
"""

from __future__ import annotations

from typing import Literal

import numpy as np
import numpy.typing as npt

# Type alias for tone mapping options
ToneMapMethod = Literal["none", "reinhard"]


def clamp_image(image: npt.NDArray[np.floating]) -> npt.NDArray[np.float32]:
    """Clamp every channel to the displayable [0, 1] range."""
    return np.clip(image, 0.0, 1.0).astype(np.float32)


def tone_map_reinhard(
    image: npt.NDArray[np.float32],
) -> npt.NDArray[np.float32]:
    """Apply Reinhard tone mapping: L / (1 + L).

    Compresses bright emitters into [0, 1) instead of clipping them.

    Args:
        image: Linear image array of shape (H, W, 3).

    Returns:
        Tone mapped image in [0, 1) range.
    """
    image = np.maximum(image, 0.0)
    return (image / (1.0 + image)).astype(np.float32)


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Apply gamma encoding: out = in^(1/gamma).

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma value (default 2.2 for sRGB). 1.0 leaves the image as is.

    Returns:
        Gamma encoded image, clamped to [0, 1].

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"Gamma must be positive, got {gamma}")
    if gamma == 1.0:
        return image

    # Clamp to [0, 1] before gamma to avoid NaN from negative values
    image = np.clip(image, 0.0, 1.0)
    return np.power(image, 1.0 / gamma).astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Run the display pipeline: tone mapping, gamma, clamp.

    Args:
        image: Linear image array of shape (H, W, 3).
        tone_map: "none" clamps bright values, "reinhard" compresses them.
        gamma: Gamma correction value (default 2.2 for sRGB).

    Returns:
        Image ready for display, in [0, 1] range.

    Raises:
        ValueError: If the tone mapping method is unknown.
    """
    result = image.copy()

    if tone_map == "reinhard":
        result = tone_map_reinhard(result)
    elif tone_map != "none":
        raise ValueError(f"Unknown tone mapping method: {tone_map}")

    result = apply_gamma(result, gamma)
    return clamp_image(result)
