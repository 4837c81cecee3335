"""Taichi-based Monte Carlo path tracer for scenes made of spheres.

The renderer estimates the radiance reaching a pinhole camera by tracing
jittered rays through a fixed table of spheres, bouncing them off diffuse
and mirror materials, and averaging many noisy estimates per pixel before
encoding the result to packed 8-bit ARGB.

Subpackages:
    core: Ray utilities, random state, tone encoding, row scheduling,
        the radiance estimator and the render loop
    geometry: Ray-sphere intersection
    materials: Diffuse and specular scattering, device material table
    scene: Immutable scene description, device upload, reference scene
    camera: Look-at pinhole camera with jittered ray generation
    preview: Decoding and writing the packed pixel buffer
"""

__version__ = "0.1.0"
