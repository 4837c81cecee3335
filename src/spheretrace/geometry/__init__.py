"""Geometry module.

Components:
    sphere: Sphere record and ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) called from the
render kernel:
    hit = hit_sphere(ray_origin, ray_direction, sphere, t_min, t_max)
"""

from .sphere import SphereHit, SphereShape, hit_sphere, outward_normal

__all__ = [
    "SphereShape",
    "SphereHit",
    "hit_sphere",
    "outward_normal",
]
