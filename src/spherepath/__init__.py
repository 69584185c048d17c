"""Progressive Monte Carlo path tracer for scenes made of spheres.

This package estimates the radiance reaching a pinhole camera by tracing random
light paths through emissive and diffuse spheres, accumulating the samples into
a per-pixel buffer that is normalized into a displayable frame. Kernels run on
Taichi; host-side state and random draws use NumPy.

Subpackages:
    core: Rays, the accumulation buffer, the path sampler and the renderer
    geometry: Sphere primitive and the quadratic intersection test
    scene: Scene snapshots, hit records and demo scenes
    camera: Pinhole camera model with ray generation
    preview: Display processing and PNG export
"""

__version__ = "0.1.0"
