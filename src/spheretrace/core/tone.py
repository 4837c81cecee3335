"""Linear-to-display tone encoding and ARGB packing.

Averaged linear radiance is clamped to [0, 1], passed through the sRGB
transfer curve, scaled to [0, 255] and truncated. Three encoded channels are
packed with full opacity into one 32-bit ARGB value:

    0xFF << 24 | r << 16 | g << 8 | b

The curve is monotonically non-decreasing and maps 0 to 0, so unlit pixels
encode to black.
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# sRGB transfer curve constants
SRGB_LINEAR_THRESHOLD = 0.0031308
SRGB_LINEAR_SLOPE = 12.92
SRGB_GAMMA = 2.4
SRGB_SCALE = 1.055
SRGB_OFFSET = 0.055


@ti.func
def linear_to_srgb(x: ti.f32) -> ti.f32:
    """Map a linear channel value to display-encoded [0, 1].

    Args:
        x: Linear radiance for one channel. Values outside [0, 1] are clamped.

    Returns:
        The sRGB-encoded value in [0, 1].
    """
    v = tm.clamp(x, 0.0, 1.0)
    srgb = 0.0
    if v <= SRGB_LINEAR_THRESHOLD:
        srgb = v * SRGB_LINEAR_SLOPE
    else:
        srgb = SRGB_SCALE * ti.pow(v, 1.0 / SRGB_GAMMA) - SRGB_OFFSET
    return tm.clamp(srgb, 0.0, 1.0)


@ti.func
def encode_channel(x: ti.f32) -> ti.u32:
    """Encode one linear channel to an 8-bit value in [0, 255]."""
    return ti.cast(255.0 * linear_to_srgb(x), ti.u32)


@ti.func
def pack_argb(color: vec3) -> ti.u32:
    """Pack a linear color into an opaque 32-bit ARGB pixel."""
    alpha = ti.cast(255, ti.u32)
    r = encode_channel(color.x)
    g = encode_channel(color.y)
    b = encode_channel(color.z)
    return (alpha << 24) | (r << 16) | (g << 8) | b
