"""High-level renderer wrapping the integrator.

The Renderer class owns the image settings (size, samples, bounce budget,
worker count) and delegates to the integrator's render target and kernels.
Scene and camera are uploaded separately, once, before rendering.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.camera.pinhole import setup_camera
    >>> from spheretrace.core.renderer import Renderer
    >>> from spheretrace.scene.manager import upload_scene
    >>> from spheretrace.scene.reference import create_reference_camera, create_reference_scene
    >>>
    >>> upload_scene(create_reference_scene())
    >>> setup_camera(create_reference_camera(320 / 180))
    >>> renderer = Renderer(320, 180, samples_per_pixel=16)
    >>> pixels = renderer.render()
    >>> renderer.save("out.bmp")
"""

from __future__ import annotations

import os
from pathlib import Path

import numpy as np
import numpy.typing as npt

from spheretrace.core.integrator import (
    DEFAULT_MAX_BOUNCES,
    DEFAULT_SAMPLES_PER_PIXEL,
    get_pixels_numpy,
    render_image,
    setup_render_target,
)
from spheretrace.core.rng import MAX_WORKERS


def default_worker_count() -> int:
    """Number of CPUs, capped at MAX_WORKERS."""
    return max(1, min(os.cpu_count() or 1, MAX_WORKERS))


class Renderer:
    """Renders the uploaded scene into a packed ARGB buffer.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Jittered samples averaged per pixel.
        max_bounces: Bounce budget of every camera ray.
        num_workers: Number of workers sharing the image rows.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        samples_per_pixel: int = DEFAULT_SAMPLES_PER_PIXEL,
        max_bounces: int = DEFAULT_MAX_BOUNCES,
        num_workers: int | None = None,
    ) -> None:
        """Initialize the renderer and its render target.

        Args:
            width: Image width in pixels.
            height: Image height in pixels.
            samples_per_pixel: Jittered samples averaged per pixel.
            max_bounces: Bounce budget of every camera ray.
            num_workers: Number of workers; defaults to the CPU count.

        Raises:
            ValueError: If any setting is out of range or the image does not
                fit the render target.
        """
        if samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel must be positive, got {samples_per_pixel}")
        if max_bounces < 0:
            raise ValueError(f"max_bounces must be non-negative, got {max_bounces}")
        if num_workers is None:
            num_workers = default_worker_count()
        if not 1 <= num_workers <= MAX_WORKERS:
            raise ValueError(f"num_workers must be in [1, {MAX_WORKERS}], got {num_workers}")

        self._width = width
        self._height = height
        self.samples_per_pixel = samples_per_pixel
        self.max_bounces = max_bounces
        self.num_workers = num_workers
        self._rendered = False
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self._width / self._height

    def render(self) -> npt.NDArray[np.uint32]:
        """Render the image.

        Returns:
            Flat array of width * height packed ARGB values, top row first.

        Raises:
            UnknownMaterialError: If a material with an unknown scatter type
                was hit.
        """
        setup_render_target(self._width, self._height)
        render_image(
            samples_per_pixel=self.samples_per_pixel,
            max_bounces=self.max_bounces,
            num_workers=self.num_workers,
        )
        self._rendered = True
        return get_pixels_numpy()

    def get_pixels(self) -> npt.NDArray[np.uint32]:
        """Get the packed buffer of the last render.

        Raises:
            RuntimeError: If nothing has been rendered yet.
        """
        if not self._rendered:
            raise RuntimeError("Nothing rendered yet. Call render() first.")
        return get_pixels_numpy()

    def render_rgb(self) -> npt.NDArray[np.uint8]:
        """Render and decode to an (height, width, 3) uint8 image."""
        from spheretrace.preview.export import unpack_argb

        return unpack_argb(self.render(), self._width, self._height)

    def save(self, filepath: str | Path) -> Path:
        """Save the last render to an image file.

        Args:
            filepath: Output path; the extension selects the format.

        Returns:
            The path written.
        """
        from spheretrace.preview.export import save_image

        return save_image(self.get_pixels(), self._width, self._height, filepath)
