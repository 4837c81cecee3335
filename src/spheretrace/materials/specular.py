"""Specular (perfect mirror) material scattering.

The incoming direction is reflected about the outward surface normal:

    R = I - 2(I . N)N

The normal comes from :func:`spheretrace.geometry.sphere.outward_normal`,
which multiplies by the cached reciprocal radius instead of taking a square
root; a hit point that is slightly off the surface yields a normal that is
slightly off unit length, which is accepted as a small bias.
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import reflect
from spheretrace.geometry.sphere import SphereShape, outward_normal

vec3 = tm.vec3


@ti.func
def scatter_specular(incident_direction: vec3, hit_point: vec3, sphere: SphereShape) -> vec3:
    """Compute the mirror-reflected direction at a sphere hit.

    Args:
        incident_direction: The incoming ray direction.
        hit_point: Point on the sphere surface.
        sphere: The hit sphere.

    Returns:
        The reflected direction, with the same length as the incident one.
    """
    normal = outward_normal(sphere, hit_point)
    return reflect(incident_direction, normal)
