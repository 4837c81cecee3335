"""Scene-level ray intersection.

Spheres are stored in Taichi fields (Structure of Arrays) together with the
material index of each sphere. ``intersect_scene`` scans them in table order
and keeps the nearest accepted hit; a ray that hits nothing reports the
background material (index 0) and no sphere.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.scene.intersection import add_sphere, clear_spheres
    >>> clear_spheres()
    >>> add_sphere((0.0, 0.0, 1.0), 1.0, material_id=2)
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from spheretrace.geometry.sphere import SphereShape, hit_sphere
from spheretrace.scene.model import BACKGROUND_MATERIAL

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Minimum accepted hit distance; rejects hits at the ray's own origin
HIT_TOLERANCE = 0.0001

# Largest finite f32, the initial "nearest hit" distance
F32_MAX = 3.4028234e38

# Sphere index reported for background hits
NO_SPHERE = -1


@ti.dataclass
class SceneHit:
    """Nearest hit of a ray against the whole scene.

    Attributes:
        t: Distance to the hit. F32_MAX when nothing was hit.
        material: Material index of the hit sphere, or BACKGROUND_MATERIAL.
        sphere: Index of the hit sphere, or NO_SPHERE.
    """

    t: ti.f32
    material: ti.i32
    sphere: ti.i32


# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_inv_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_spheres() -> None:
    """Remove all spheres from the scene.

    Resets the sphere count to zero. The field data is overwritten when new
    spheres are added.
    """
    num_spheres[None] = 0


def add_sphere(center: tuple[float, float, float], radius: float, material_id: int) -> int:
    """Add a sphere to the scene.

    The reciprocal radius is computed here, so it always matches the stored
    radius.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere (must be positive).
        material_id: The material index to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        ValueError: If the radius is not positive.
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    if radius <= 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = vec3(center[0], center[1], center[2])
    sphere_radii[idx] = radius
    sphere_inv_radii[idx] = 1.0 / radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def get_sphere(sphere_id: ti.i32) -> SphereShape:
    """Load a sphere from the scene fields."""
    return SphereShape(
        center=sphere_centers[sphere_id],
        radius=sphere_radii[sphere_id],
        inv_radius=sphere_inv_radii[sphere_id],
    )


@ti.func
def intersect_scene(ray_origin: vec3, ray_direction: vec3) -> SceneHit:
    """Find the nearest sphere hit along a ray.

    Every sphere is tested in table order against the current nearest
    distance, so a later sphere only wins when it is strictly nearer.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit-length direction of the ray.

    Returns:
        The nearest hit, or a background hit if no sphere was hit.
    """
    hit_dist = F32_MAX
    hit_material = BACKGROUND_MATERIAL
    hit_sphere_id = NO_SPHERE

    for i in range(num_spheres[None]):
        rec = hit_sphere(ray_origin, ray_direction, get_sphere(i), HIT_TOLERANCE, hit_dist)
        if rec.hit == 1:
            hit_dist = rec.t
            hit_material = sphere_material_ids[i]
            hit_sphere_id = i

    return SceneHit(t=hit_dist, material=hit_material, sphere=hit_sphere_id)
