"""Upload of an immutable scene into the device tables.

The host-side :class:`~spheretrace.scene.model.Scene` is validated once and
then copied, in table order, into the Taichi fields read by the intersector
and the material dispatch. Sphere ``i`` of the scene becomes device sphere
``i`` and material ``m`` becomes device material ``m``, so indices stay
meaningful on both sides.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.scene.manager import upload_scene
    >>> from spheretrace.scene.reference import create_reference_scene
    >>> upload_scene(create_reference_scene())
"""

import logging

from spheretrace.materials.table import (
    MAX_MATERIALS,
    add_material,
    clear_materials,
    get_material_count,
)
from spheretrace.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_spheres,
    get_sphere_count,
)
from spheretrace.scene.model import Scene

logger = logging.getLogger(__name__)

_uploaded_scene: Scene | None = None


def clear_scene_data() -> None:
    """Clear the device sphere and material tables."""
    global _uploaded_scene
    clear_spheres()
    clear_materials()
    _uploaded_scene = None


def upload_scene(scene: Scene) -> None:
    """Replace the device tables with the contents of a scene.

    Args:
        scene: The scene to upload.

    Raises:
        RuntimeError: If the scene exceeds the device table capacities.
    """
    global _uploaded_scene
    if len(scene.materials) > MAX_MATERIALS:
        raise RuntimeError(
            f"Scene has {len(scene.materials)} materials; at most {MAX_MATERIALS} are supported"
        )
    if len(scene.spheres) > MAX_SPHERES:
        raise RuntimeError(
            f"Scene has {len(scene.spheres)} spheres; at most {MAX_SPHERES} are supported"
        )

    clear_scene_data()
    for material in scene.materials:
        add_material(material.emit_color, material.reflect_color, int(material.scatter))
    for sphere in scene.spheres:
        add_sphere(sphere.center, sphere.radius, sphere.material)
    _uploaded_scene = scene

    logger.debug(
        "Uploaded scene: %d materials, %d spheres",
        get_material_count(),
        get_sphere_count(),
    )


def get_uploaded_scene() -> Scene | None:
    """The scene currently held in the device tables, if any."""
    return _uploaded_scene
