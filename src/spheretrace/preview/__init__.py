"""Preview module for decoding and writing rendered images.

Components:
    export: Packed ARGB decoding and Pillow-based image writing
"""

from .export import save_image, unpack_alpha, unpack_argb

__all__ = [
    "save_image",
    "unpack_argb",
    "unpack_alpha",
]
