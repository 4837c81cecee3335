"""Image export for the packed pixel buffer.

The renderer produces a flat buffer of 32-bit ARGB values (row-major, top
row first). This module decodes it with NumPy and writes it with Pillow; the
file format follows the extension (BMP, PNG, ...).

Example:
    >>> from spheretrace.preview.export import save_image
    >>> save_image(pixels, 1920, 1080, "out.bmp")
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage


def unpack_argb(
    pixels: npt.NDArray[np.uint32],
    width: int,
    height: int,
) -> npt.NDArray[np.uint8]:
    """Decode packed ARGB pixels into an RGB image.

    Args:
        pixels: Flat array of width * height packed ARGB values.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        Array of shape (height, width, 3) with dtype uint8.

    Raises:
        ValueError: If the buffer size does not match the dimensions.
    """
    flat = np.asarray(pixels, dtype=np.uint32).reshape(-1)
    if flat.size != width * height:
        raise ValueError(
            f"Pixel buffer has {flat.size} entries, expected {width}x{height} = {width * height}"
        )
    image = flat.reshape(height, width)
    rgb = np.empty((height, width, 3), dtype=np.uint8)
    rgb[..., 0] = (image >> 16) & 0xFF
    rgb[..., 1] = (image >> 8) & 0xFF
    rgb[..., 2] = image & 0xFF
    return rgb


def unpack_alpha(pixels: npt.NDArray[np.uint32]) -> npt.NDArray[np.uint8]:
    """Extract the alpha channel of packed ARGB pixels."""
    return ((np.asarray(pixels, dtype=np.uint32) >> 24) & 0xFF).astype(np.uint8)


def save_image(
    pixels: npt.NDArray[np.uint32],
    width: int,
    height: int,
    filepath: str | Path,
) -> Path:
    """Write a packed pixel buffer to an image file.

    Args:
        pixels: Flat array of width * height packed ARGB values.
        width: Image width in pixels.
        height: Image height in pixels.
        filepath: Output path; the extension selects the format.

    Returns:
        The path written.
    """
    output = Path(filepath)
    rgb = unpack_argb(pixels, width, height)
    pil_image = PILImage.fromarray(rgb, mode="RGB")
    pil_image.save(output)
    return output
