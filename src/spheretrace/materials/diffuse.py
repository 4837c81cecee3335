"""Diffuse material scattering.

A diffuse surface sends the incoming ray off in a direction drawn uniformly
over the whole unit sphere. The draw does not look at the surface normal, so
roughly half of the scattered rays head back into the surface they left.
This is a simplification of Lambertian reflection (no hemisphere
restriction, no cosine weighting) and is kept as is: changing it would change
the rendered image.

Uniform sphere point picking uses two draws:

    a = U[0, 2 pi)
    z = U[-1, 1)
    r = sqrt(1 - z^2)
    dir = (r cos a, r sin a, z)

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.materials.diffuse import scatter_diffuse
    >>> # Inside a kernel, for worker w: direction = scatter_diffuse(w)
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.rng import rand_range

vec3 = tm.vec3


@ti.func
def random_on_unit_sphere(worker: ti.i32) -> vec3:
    """Draw a unit vector uniformly distributed over the sphere.

    Args:
        worker: Id of the worker whose random state is consumed.

    Returns:
        A unit-length direction.
    """
    a = rand_range(worker, 0.0, 2.0 * tm.pi)
    z = rand_range(worker, -1.0, 1.0)
    r = ti.sqrt(ti.max(1.0 - z * z, 0.0))
    return vec3(r * ti.cos(a), r * ti.sin(a), z)


@ti.func
def scatter_diffuse(worker: ti.i32) -> vec3:
    """Sample the outgoing direction for a diffuse bounce.

    Args:
        worker: Id of the worker whose random state is consumed.

    Returns:
        The scattered direction (unit length, independent of the normal).
    """
    return random_on_unit_sphere(worker)
