"""Ray data structure and mirror reflection for the path tracer.

This module provides the Ray dataclass and the mirror reflection used
by specular scattering. Both helpers are Taichi functions so they can be
inlined into rendering kernels.

Ray directions are expected to be unit length by convention of the callers.
Nothing here re-normalizes them; the sphere intersector relies on that to use
a reduced discriminant.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, -10.0, 1.0)
    >>> direction = ti.math.vec3(0.0, 1.0, 0.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> # Inside a kernel: mirrored = reflect(ray.direction, normal)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Assumed to be unit
            length; this is not enforced.
    """

    origin: vec3
    direction: vec3


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes d' = d - 2 (d . n) n. The result has the same length as the
    incident vector when the normal is unit length.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal
