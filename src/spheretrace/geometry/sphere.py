"""Sphere primitive with reduced-discriminant ray-sphere intersection.

The ray-sphere intersection solves

    |origin + t * dir - center|^2 = radius^2

With ``oc = origin - center`` and a unit-length ``dir`` the quadratic
coefficient is 1, so only

    b = dot(dir, oc)
    c = dot(oc, oc) - radius^2
    discr = b^2 - c

are needed and the roots are ``-b - sqrt(discr)`` and ``-b + sqrt(discr)``.
A direction that is not unit length gives silently wrong distances; callers
are responsible for normalizing.

Root order matters. ``sqrt(discr)`` is positive and ``b`` may have either
sign, so ``-b - sqrt(discr)`` is always the smaller root and is tested
first. The larger root is only considered when the smaller one is rejected,
which is what lets rays leaving a surface (or starting inside a sphere) skip
the root sitting at or behind their own origin.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.geometry.sphere import SphereShape, hit_sphere
    >>> sphere = SphereShape(center=ti.math.vec3(0, 0, 1), radius=1.0, inv_radius=1.0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SphereShape:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
        inv_radius: Cached 1 / radius, used to normalize surface normals.
    """

    center: vec3
    radius: ti.f32
    inv_radius: ti.f32


@ti.dataclass
class SphereHit:
    """Result of a single ray-sphere test.

    Attributes:
        hit: 1 if a root inside (t_min, t_max) was found, 0 otherwise.
        t: Distance along the ray to the accepted root. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: SphereShape,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SphereHit:
    """Find the nearest accepted root of the ray-sphere quadratic.

    A root is accepted when ``t_min < t < t_max``. The smaller root is
    tested first; the larger root is only tested if the smaller one is
    rejected. A zero or negative discriminant is a miss.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit-length direction of the ray.
        sphere: The sphere to test.
        t_min: Tolerance below which roots are rejected (self-intersection).
        t_max: Current nearest distance; roots at or beyond it are rejected.

    Returns:
        A SphereHit. Check the hit field to see whether a root was accepted.
    """
    sphere_relative_origin = ray_origin - sphere.center
    b = tm.dot(ray_direction, sphere_relative_origin)
    c = tm.dot(sphere_relative_origin, sphere_relative_origin) - sphere.radius * sphere.radius
    discr = b * b - c

    did_hit = 0
    hit_t = 0.0

    if discr > 0.0:
        root_term = ti.sqrt(discr)

        t = -b - root_term
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = -b + root_term
            valid = (t > t_min) and (t < t_max)

        if valid:
            did_hit = 1
            hit_t = t

    return SphereHit(hit=did_hit, t=hit_t)


@ti.func
def outward_normal(sphere: SphereShape, point: vec3) -> vec3:
    """Outward unit normal at a point on the sphere surface.

    Uses the cached reciprocal radius instead of normalizing, so points that
    are slightly off the surface give slightly off-unit normals.
    """
    return (point - sphere.center) * sphere.inv_radius

