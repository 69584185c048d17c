"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    sampling: Injectable random source and per-batch random draws
    accumulation: Per-pixel running sums plus the global sample counter
    sampler: Path sampler with pluggable per-bounce policies
    config: Render configuration
    progressive: Renderer API driven by an external frame loop

Kernels never draw random numbers themselves. Every sample consumes values
drawn on the host from a numpy Generator, which keeps renders reproducible
under a fixed seed.
"""

from .ray import (
    Ray,
    cube_direction,
    dot,
    length_squared,
    make_ray,
    normalize,
    ray_at,
    vec3,
)
from .sampling import RandomSource, SampleBatch, make_random_source

# Note: accumulation, sampler and progressive are NOT imported here to avoid
# circular imports. Import them directly:
#   from src.spherepath.core.progressive import ProgressiveRenderer

__all__ = [
    "Ray",
    "make_ray",
    "ray_at",
    "vec3",
    "dot",
    "length_squared",
    "normalize",
    "cube_direction",
    "RandomSource",
    "SampleBatch",
    "make_random_source",
]
