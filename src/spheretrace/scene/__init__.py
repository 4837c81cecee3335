"""Scene module.

Components:
    model: Immutable scene description with JSON round trip
    intersection: Device sphere table and nearest-hit query
    manager: Upload of a Scene into the device tables
    reference: The built-in reference scene and camera

Material index 0 is the background: a ray that hits nothing reports it.
"""

from .model import (
    BACKGROUND_MATERIAL,
    Material,
    ScatterType,
    Scene,
    Sphere,
    load_scene,
    save_scene,
)

__all__ = [
    "BACKGROUND_MATERIAL",
    "Material",
    "ScatterType",
    "Scene",
    "Sphere",
    "load_scene",
    "save_scene",
]
