"""Core rendering module.

Components:
    ray: Ray data structure and mirror reflection
    rng: Per-worker xorshift random state
    tone: sRGB transfer curve and ARGB packing
    scheduler: Guided partition of image rows across workers
    integrator: Radiance estimator, render target and render kernel
    renderer: High-level Renderer wrapper

Only modules without Taichi fields are imported here, so that importing the
package does not allocate fields before ``ti.init``. Import rng, integrator
and renderer directly, e.g. ``from spheretrace.core.renderer import Renderer``.
"""

from .ray import Ray, make_ray, reflect, vec3
from .scheduler import RowChunk, partition_rows, rows_for_worker

__all__ = [
    "Ray",
    "make_ray",
    "vec3",
    "reflect",
    "RowChunk",
    "partition_rows",
    "rows_for_worker",
]
