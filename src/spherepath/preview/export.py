"""Image export utilities for rendered frames.

Supported formats:
    - PNG (8-bit via Pillow)

Example:
    >>> from src.spherepath.preview.export import save_png
    >>> renderer.render(20)
    >>> save_png(renderer, "spheres.png", tone_map="reinhard")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from src.spherepath.preview.display import ToneMapMethod, process_image_for_display

if TYPE_CHECKING:
    from src.spherepath.core.progressive import ProgressiveRenderer

logger = logging.getLogger(__name__)


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to uint8 for display or export.

    Args:
        image: Linear image array of shape (H, W, 3).
        tone_map: Tone mapping method ("none" or "reinhard").
        gamma: Gamma correction value (default 2.2 for sRGB).

    Returns:
        8-bit image array of shape (H, W, 3).
    """
    processed = process_image_for_display(image, tone_map=tone_map, gamma=gamma)
    return (processed * 255.0 + 0.5).astype(np.uint8)


def save_png_from_array(
    image: npt.NDArray[np.float32],
    filepath: str,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
) -> None:
    """Save a linear float image as an 8-bit PNG file.

    Args:
        image: Linear image array of shape (H, W, 3).
        filepath: Output file path (should end in .png).
        tone_map: Tone mapping method ("none" or "reinhard").
        gamma: Gamma correction value (default 2.2 for sRGB).
    """
    image_uint8 = image_to_uint8(image, tone_map=tone_map, gamma=gamma)
    PILImage.fromarray(image_uint8).save(filepath)
    logger.info(f"Saved {image.shape[1]}x{image.shape[0]} image to {filepath}")


def save_png(
    renderer: ProgressiveRenderer,
    filepath: str,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
) -> None:
    """Save the renderer's current frame as a PNG file."""
    save_png_from_array(renderer.get_image(), filepath, tone_map=tone_map, gamma=gamma)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Root mean squared per-channel difference of two frames.

    Used to watch a progressive render converge toward a high sample
    reference: the value should shrink as samples accumulate.

    Raises:
        ValueError: If the frames differ in shape.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
