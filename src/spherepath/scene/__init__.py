"""Scene module: sphere snapshots and hit records.

Components:
    snapshot: SphereSpec records and the immutable SceneSnapshot
    intersection: Kernel and host hit records, reflected-ray synthesis
    presets: Demo scenes
"""

from .intersection import HitRecord, SceneHitRecord, bounce_ray
from .presets import DemoSceneParams, create_demo_scene, create_light_only_scene
from .snapshot import SceneSnapshot, SphereSpec

__all__ = [
    "SphereSpec",
    "SceneSnapshot",
    "HitRecord",
    "SceneHitRecord",
    "bounce_ray",
    "DemoSceneParams",
    "create_demo_scene",
    "create_light_only_scene",
]
