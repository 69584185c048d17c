"""Preview module for frame output.

Components:
    display: Clamping, Reinhard tone mapping and gamma encoding
    export: 8-bit conversion and PNG export via Pillow

Example:
    >>> from src.spherepath.preview import save_png
    >>> save_png(renderer, "output.png", tone_map="reinhard", gamma=2.2)
"""

from src.spherepath.preview.display import (
    ToneMapMethod,
    apply_gamma,
    clamp_image,
    process_image_for_display,
    tone_map_reinhard,
)
from src.spherepath.preview.export import (
    compute_rmse,
    image_to_uint8,
    save_png,
    save_png_from_array,
)

__all__ = [
    "ToneMapMethod",
    "apply_gamma",
    "clamp_image",
    "process_image_for_display",
    "tone_map_reinhard",
    "compute_rmse",
    "image_to_uint8",
    "save_png",
    "save_png_from_array",
]
