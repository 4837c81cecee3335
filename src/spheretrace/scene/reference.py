"""Reference scene: five spheres on a large ground sphere under a blue sky.

The scene is laid out with +Z up:
- Ground: radius-100 diffuse grey sphere whose top touches z = 0
- Center: unit mirror sphere that also glows light cyan
- Two small and one large near-white mirror spheres around it
- One red mirror sphere up and to the left
- Background: light blue sky emission

The camera sits at (0, -10, 1) and looks at the origin.

Example:
    >>> from spheretrace.scene.reference import create_reference_scene, create_reference_camera
    >>> scene = create_reference_scene()
    >>> camera = create_reference_camera(1920 / 1080)
"""

from spheretrace.camera.pinhole import PinholeCamera
from spheretrace.scene.model import Material, ScatterType, Scene, Sphere

# =============================================================================
# Reference Scene Constants
# =============================================================================

SKY_EMISSION = (0.3, 0.4, 0.8)
GROUND_ALBEDO = (0.5, 0.5, 0.5)
CENTER_EMISSION = (0.4, 0.8, 0.9)
CENTER_ALBEDO = (0.8, 0.8, 0.8)
RED_ALBEDO = (1.0, 0.0, 0.0)
MIRROR_ALBEDO = (0.95, 0.95, 0.95)

REFERENCE_LOOKFROM = (0.0, -10.0, 1.0)
REFERENCE_LOOKAT = (0.0, 0.0, 0.0)

BLACK = (0.0, 0.0, 0.0)


def create_reference_materials() -> tuple[Material, ...]:
    """Material table of the reference scene.

    Returns:
        Materials in index order: background, ground, center, red, mirror.
    """
    return (
        # Background; specular with zero reflectance so it only ever emits
        Material(emit_color=SKY_EMISSION, reflect_color=BLACK, scatter=ScatterType.SPECULAR),
        Material(emit_color=BLACK, reflect_color=GROUND_ALBEDO, scatter=ScatterType.DIFFUSE),
        Material(emit_color=CENTER_EMISSION, reflect_color=CENTER_ALBEDO, scatter=ScatterType.SPECULAR),
        Material(emit_color=BLACK, reflect_color=RED_ALBEDO, scatter=ScatterType.SPECULAR),
        Material(emit_color=BLACK, reflect_color=MIRROR_ALBEDO, scatter=ScatterType.SPECULAR),
    )


def create_reference_scene() -> Scene:
    """Create the reference scene.

    Returns:
        A Scene with five materials and six spheres.
    """
    spheres = (
        Sphere(center=(0.0, 0.0, -100.0), radius=100.0, material=1),
        Sphere(center=(0.0, 0.0, 1.0), radius=1.0, material=2),
        Sphere(center=(-2.0, -3.0, 1.5), radius=0.3, material=4),
        Sphere(center=(-3.0, -6.0, 0.0), radius=0.3, material=4),
        Sphere(center=(-3.0, -5.0, 2.0), radius=0.5, material=3),
        Sphere(center=(3.0, -3.0, 0.8), radius=1.0, material=4),
    )
    return Scene(materials=create_reference_materials(), spheres=spheres)


def create_reference_camera(aspect_ratio: float) -> PinholeCamera:
    """Camera looking from (0, -10, 1) at the origin.

    Args:
        aspect_ratio: Image width divided by height (must be > 1).
    """
    return PinholeCamera(
        lookfrom=REFERENCE_LOOKFROM,
        lookat=REFERENCE_LOOKAT,
        aspect_ratio=aspect_ratio,
    )
