"""Camera module for view and ray generation.

Components:
    pinhole: Pinhole camera snapshot and the Taichi-side ray generator

The camera is an explicit basis (right, up, forward) plus a vertical field of
view. Rays go through continuous screen positions measured in pixels, with
pixel centers at integer + 0.5 and row 0 at the bottom of the image.
"""

from .pinhole import PinholeCamera, RayGenerator, image_plane_distance

__all__ = [
    "PinholeCamera",
    "RayGenerator",
    "image_plane_distance",
]
