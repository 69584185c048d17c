"""Ready-made sphere scenes.

The demo scene is a few diffuse spheres standing on a huge ground sphere and lit
by one bright emissive sphere hanging above them. Everything is a sphere, so
the ground is a sphere large enough to look flat from the camera.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spherepath.core.config import RenderConfig
    >>> from src.spherepath.core.progressive import ProgressiveRenderer
    >>> from src.spherepath.scene.presets import create_demo_scene
    >>> spheres, camera = create_demo_scene()
    >>> renderer = ProgressiveRenderer(RenderConfig(), spheres, camera)
"""

from dataclasses import dataclass

from src.spherepath.camera.pinhole import PinholeCamera
from src.spherepath.scene.snapshot import SphereSpec

# =============================================================================
# Demo Scene Parameters
# =============================================================================


@dataclass
class DemoSceneParams:
    """Parameters for configuring the demo scene.

    Attributes:
        light_intensity: Emission of the light sphere, per channel.
        light_color: RGB tint of the light (each component in [0, 1]).
        ground_albedo: Albedo of the ground sphere.
        vfov: Vertical field of view of the camera in degrees.
    """

    light_intensity: float = 8.0
    light_color: tuple[float, float, float] = (1.0, 0.95, 0.85)
    ground_albedo: tuple[float, float, float] = (0.6, 0.6, 0.6)
    vfov: float = 60.0


# Radius of the ground sphere; its top sits at y = 0
GROUND_RADIUS = 1000.0

# Diffuse spheres on the ground: (center, radius, albedo)
DEMO_BALLS = (
    ((-2.2, 1.0, 0.5), 1.0, (0.8, 0.25, 0.2)),
    ((0.0, 1.0, 1.5), 1.0, (0.9, 0.9, 0.9)),
    ((2.2, 1.0, 0.5), 1.0, (0.2, 0.35, 0.8)),
)


def create_demo_scene(
    params: DemoSceneParams | None = None,
) -> tuple[list[SphereSpec], PinholeCamera]:
    """Create the demo scene and a camera framing it.

    Args:
        params: Scene parameters. Defaults to DemoSceneParams().

    Returns:
        Tuple of (spheres, camera). The light sphere comes first and is
        tagged is_light for the visibility policy.
    """
    if params is None:
        params = DemoSceneParams()

    emission = tuple(c * params.light_intensity for c in params.light_color)
    spheres = [
        SphereSpec(
            center=(0.0, 6.0, 0.5),
            radius=1.5,
            albedo=(0.0, 0.0, 0.0),
            emission=emission,
            is_light=True,
        ),
        SphereSpec(
            center=(0.0, -GROUND_RADIUS, 0.0),
            radius=GROUND_RADIUS,
            albedo=params.ground_albedo,
        ),
    ]
    for center, radius, albedo in DEMO_BALLS:
        spheres.append(SphereSpec(center=center, radius=radius, albedo=albedo))

    camera = PinholeCamera.look_at(
        position=(0.0, 2.0, -7.0),
        target=(0.0, 1.0, 0.5),
        vup=(0.0, 1.0, 0.0),
        vfov=params.vfov,
    )
    return spheres, camera


def create_light_only_scene(
    emission: tuple[float, float, float] = (1.0, 1.0, 1.0),
) -> tuple[list[SphereSpec], PinholeCamera]:
    """A single white emissive sphere straight ahead of the camera.

    The sphere sits at z = 5 with radius 2 and the camera looks down +z with
    a narrow field of view, so every camera ray hits it.

    Returns:
        Tuple of (spheres, camera).
    """
    sphere = SphereSpec(
        center=(0.0, 0.0, 5.0),
        radius=2.0,
        albedo=(1.0, 1.0, 1.0),
        emission=emission,
        is_light=True,
    )
    camera = PinholeCamera(position=(0.0, 0.0, 0.0), vfov=20.0)
    return [sphere], camera
