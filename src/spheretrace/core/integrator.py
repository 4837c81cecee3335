"""Monte Carlo radiance estimator and parallel render loop.

This module implements the rendering kernel. For every pixel it averages
many jittered radiance estimates, each produced by ``cast``:

    cast(o, d, n) = emit(hit)                                  if background or n == 0
                  = emit(hit) + reflect(hit) * cast(p, d', n - 1)   otherwise

where ``p`` is the hit point and ``d'`` the direction chosen by the hit
material (uniform sphere for diffuse, mirror for specular). Taichi functions
cannot recurse, so the recurrence is unrolled into a loop that carries the
product of reflectances seen so far and adds ``weight * emit`` at each
vertex. The bounce budget bounds the loop.

Rows are split across workers by :func:`spheretrace.core.scheduler.partition_rows`.
The kernel's outermost loop runs over workers in parallel; each worker walks
its own chunks, draws only from its own random state slot, and writes only
its own rows of the pixel buffer.

Key features:
    - Nearest-hit sphere intersection with a fixed tolerance
    - Diffuse / specular material dispatch
    - Jittered per-pixel sampling with a per-worker random stream
    - sRGB tone encoding packed into 32-bit ARGB
    - Device fault flag for unknown scatter types

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.core.integrator import render_image, setup_render_target
    >>> from spheretrace.camera.pinhole import setup_camera
    >>> from spheretrace.scene.manager import upload_scene
    >>> from spheretrace.scene.reference import create_reference_camera, create_reference_scene
    >>>
    >>> upload_scene(create_reference_scene())
    >>> setup_camera(create_reference_camera(320 / 180))
    >>> setup_render_target(320, 180)
    >>> render_image(samples_per_pixel=16, max_bounces=8, num_workers=4)
"""

import logging
import time

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from spheretrace.camera.pinhole import get_ray_jittered
from spheretrace.core.rng import MAX_WORKERS, rand01, seed_workers
from spheretrace.core.scheduler import RowChunk, partition_rows
from spheretrace.core.tone import pack_argb
from spheretrace.materials.diffuse import scatter_diffuse
from spheretrace.materials.specular import scatter_specular
from spheretrace.materials.table import get_emit, get_reflect, get_scatter_type
from spheretrace.scene.intersection import get_sphere, intersect_scene
from spheretrace.scene.model import BACKGROUND_MATERIAL, ScatterType

logger = logging.getLogger(__name__)

_DIFFUSE = int(ScatterType.DIFFUSE)
_SPECULAR = int(ScatterType.SPECULAR)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Bounce budget of the reference configuration
DEFAULT_MAX_BOUNCES = 8

# Jittered samples per pixel of the reference configuration
DEFAULT_SAMPLES_PER_PIXEL = 100


class UnknownMaterialError(RuntimeError):
    """A material with an unrecognized scatter type was hit during rendering."""


# =============================================================================
# Render Target (Packed Pixel Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Packed ARGB pixels, row-major, top row first
_pixels = ti.field(dtype=ti.u32, shape=MAX_IMAGE_WIDTH * MAX_IMAGE_HEIGHT)

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Row schedule: chunk c covers rows [_chunk_start[c], _chunk_stop[c]) for _chunk_worker[c]
_chunk_start = ti.field(dtype=ti.i32, shape=MAX_IMAGE_HEIGHT)
_chunk_stop = ti.field(dtype=ti.i32, shape=MAX_IMAGE_HEIGHT)
_chunk_worker = ti.field(dtype=ti.i32, shape=MAX_IMAGE_HEIGHT)

# Set by any worker that meets an unknown scatter type
_scatter_fault = ti.field(dtype=ti.i32, shape=())
_fault_material = ti.field(dtype=ti.i32, shape=())

# Result slot for the single-ray and single-pixel helpers
_single_result = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target.

    Sets the active image dimensions and clears the pixel buffer. The buffer
    is preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT.

    Args:
        width: Image width in pixels (2..MAX_IMAGE_WIDTH).
        height: Image height in pixels (2..MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are smaller than 2 or exceed the maximum
            supported size.
    """
    if width < 2 or height < 2:
        raise ValueError(f"Image dimensions ({width}x{height}) must be at least 2x2")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the pixel buffer and the fault flag."""
    _pixels.fill(0)
    clear_scatter_fault()


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_pixels_numpy() -> npt.NDArray[np.uint32]:
    """Get the packed pixel buffer as a flat NumPy array.

    Returns:
        Array of width * height packed ARGB values, row-major, top row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    return _pixels.to_numpy()[: width * height].copy()


# =============================================================================
# Fault Reporting
# =============================================================================


def clear_scatter_fault() -> None:
    """Reset the unknown-material fault flag."""
    _scatter_fault[None] = 0
    _fault_material[None] = -1


def raise_on_scatter_fault() -> None:
    """Raise if any worker met an unknown scatter type since the last reset.

    Raises:
        UnknownMaterialError: If the fault flag is set.
    """
    if _scatter_fault[None] != 0:
        material_id = int(_fault_material[None])
        clear_scatter_fault()
        raise UnknownMaterialError(
            f"Material {material_id} has an unknown scatter type; the scene tables are corrupt"
        )


# =============================================================================
# Scattering and Radiance Estimation
# =============================================================================


@ti.func
def is_known_scatter_type(scatter_type: ti.i32) -> ti.i32:
    """Return 1 if the scatter type is diffuse or specular, 0 otherwise."""
    known = 0
    if scatter_type == _DIFFUSE or scatter_type == _SPECULAR:
        known = 1
    return known


@ti.func
def scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    hit_point: vec3,
    sphere_id: ti.i32,
    worker: ti.i32,
) -> vec3:
    """Choose the continuation direction at a hit according to its material.

    Diffuse materials scatter uniformly over the unit sphere; specular
    materials mirror the incident direction about the sphere normal. The
    caller checks the scatter type with :func:`is_known_scatter_type` first.

    Returns:
        The scattered direction.
    """
    scattered_direction = vec3(0.0, 0.0, 0.0)
    if get_scatter_type(material_id) == _DIFFUSE:
        scattered_direction = scatter_diffuse(worker)
    else:
        scattered_direction = scatter_specular(incident_direction, hit_point, get_sphere(sphere_id))
    return scattered_direction


@ti.func
def cast(origin: vec3, direction: vec3, bounces: ti.i32, worker: ti.i32) -> vec3:
    """Estimate the radiance arriving at ``origin`` from ``direction``.

    Terminates at a background hit or when the bounce budget is spent,
    returning the hit material's emission there. Otherwise the hit material
    emits and scatters, and the estimate along the scattered ray is scaled by
    the material's reflectance.

    Args:
        origin: Ray origin.
        direction: Unit-length ray direction.
        bounces: Remaining bounce budget.
        worker: Id of the worker whose random state is consumed.

    Returns:
        The linear radiance estimate (RGB).
    """
    radiance = vec3(0.0, 0.0, 0.0)
    weight = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction
    remaining = bounces
    active = 1

    while active == 1:
        hit = intersect_scene(ray_origin, ray_direction)
        radiance += weight * get_emit(hit.material)

        if hit.material == BACKGROUND_MATERIAL or remaining == 0:
            active = 0
        else:
            hit_point = ray_origin + ray_direction * hit.t
            if is_known_scatter_type(get_scatter_type(hit.material)) == 0:
                _scatter_fault[None] = 1
                _fault_material[None] = hit.material
                active = 0
            else:
                new_direction = scatter_material(
                    hit.material, ray_direction, hit_point, hit.sphere, worker
                )
                weight *= get_reflect(hit.material)
                ray_origin = hit_point
                ray_direction = new_direction
                remaining -= 1

    return radiance


@ti.func
def sample_pixel(
    col: ti.i32,
    row: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_bounces: ti.i32,
    worker: ti.i32,
) -> vec3:
    """Average ``samples`` jittered radiance estimates for one pixel.

    Row 0 is the top of the image; the camera counts rows from the bottom.

    Returns:
        The averaged linear color of the pixel.
    """
    color = vec3(0.0, 0.0, 0.0)
    image_y = height - 1 - row
    for _ in range(samples):
        jitter_x = rand01(worker)
        jitter_y = rand01(worker)
        ray = get_ray_jittered(col, image_y, jitter_x, jitter_y, width, height)
        color += cast(ray.origin, ray.direction, max_bounces, worker)
    return color * (1.0 / ti.cast(samples, ti.f32))


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_bounces: ti.i32,
    num_workers: ti.i32,
    num_chunks: ti.i32,
):
    """Render every row of the image, one parallel task per worker."""
    for worker in range(num_workers):
        for c in range(num_chunks):
            if _chunk_worker[c] == worker:
                for row in range(_chunk_start[c], _chunk_stop[c]):
                    for col in range(width):
                        color = sample_pixel(col, row, width, height, samples, max_bounces, worker)
                        _pixels[row * width + col] = pack_argb(color)


@ti.kernel
def _cast_single_ray(origin: vec3, direction: vec3, bounces: ti.i32, worker: ti.i32):
    """Run one radiance estimate and store it in the single-result slot."""
    ti.loop_config(serialize=True)
    for _ in range(1):
        _single_result[None] = cast(origin, direction, bounces, worker)


@ti.kernel
def _render_single_pixel(
    col: ti.i32,
    row: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_bounces: ti.i32,
    worker: ti.i32,
):
    """Sample one pixel and store its averaged linear color in the single-result slot."""
    ti.loop_config(serialize=True)
    for _ in range(1):
        _single_result[None] = sample_pixel(col, row, width, height, samples, max_bounces, worker)


# =============================================================================
# Public Rendering API
# =============================================================================


def _load_row_schedule(chunks: list[RowChunk]) -> None:
    for c, chunk in enumerate(chunks):
        _chunk_start[c] = chunk.start
        _chunk_stop[c] = chunk.stop
        _chunk_worker[c] = chunk.worker


def _check_worker(worker: int) -> None:
    if worker < 0 or worker >= MAX_WORKERS:
        raise ValueError(f"worker must be in [0, {MAX_WORKERS}), got {worker}")


def _check_bounces(max_bounces: int) -> None:
    if max_bounces < 0:
        raise ValueError(f"max_bounces must be non-negative, got {max_bounces}")


def render_image(
    samples_per_pixel: int = DEFAULT_SAMPLES_PER_PIXEL,
    max_bounces: int = DEFAULT_MAX_BOUNCES,
    num_workers: int = 1,
) -> None:
    """Render the whole image into the pixel buffer.

    Worker random states are reseeded first, so the same arguments always
    produce the same image.

    Args:
        samples_per_pixel: Jittered samples averaged per pixel.
        max_bounces: Bounce budget of every camera ray.
        num_workers: Number of workers sharing the rows.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If an argument is out of range.
        UnknownMaterialError: If a material with an unknown scatter type was hit.
    """
    _check_render_target_initialized()
    if samples_per_pixel < 1:
        raise ValueError(f"samples_per_pixel must be positive, got {samples_per_pixel}")
    _check_bounces(max_bounces)

    width, height = get_image_dimensions()
    chunks = partition_rows(height, num_workers)
    seed_workers(num_workers)
    _load_row_schedule(chunks)
    clear_scatter_fault()

    logger.info(
        "Rendering %dx%d, %d spp, %d bounces, %d workers (%d row chunks)",
        width,
        height,
        samples_per_pixel,
        max_bounces,
        num_workers,
        len(chunks),
    )
    start_time = time.perf_counter()
    _render_rows(width, height, samples_per_pixel, max_bounces, num_workers, len(chunks))
    ti.sync()
    logger.info("Rendered in %.2fs", time.perf_counter() - start_time)

    raise_on_scatter_fault()


def cast_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    bounces: int = DEFAULT_MAX_BOUNCES,
    worker: int = 0,
) -> tuple[float, float, float]:
    """Estimate the radiance along a single ray.

    This is a Python-callable helper for testing. The worker's random state is
    consumed as-is; call :func:`spheretrace.core.rng.seed_workers` first.

    Args:
        origin: Ray origin.
        direction: Ray direction (expected to be unit length).
        bounces: Bounce budget.
        worker: Id of the worker whose random state is used.

    Returns:
        Tuple of (R, G, B) linear radiance.

    Raises:
        ValueError: If the bounce budget is negative or the worker id is out of range.
        UnknownMaterialError: If a material with an unknown scatter type was hit.
    """
    _check_worker(worker)
    _check_bounces(bounces)
    _cast_single_ray(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        bounces,
        worker,
    )
    raise_on_scatter_fault()
    color = _single_result[None]
    return (float(color[0]), float(color[1]), float(color[2]))


def render_pixel(
    col: int,
    row: int,
    samples_per_pixel: int = DEFAULT_SAMPLES_PER_PIXEL,
    max_bounces: int = DEFAULT_MAX_BOUNCES,
    worker: int = 0,
) -> tuple[float, float, float]:
    """Average the samples of a single pixel without tone encoding.

    Args:
        col: Pixel column (0 = left).
        row: Pixel row (0 = top).
        samples_per_pixel: Jittered samples to average.
        max_bounces: Bounce budget of every camera ray.
        worker: Id of the worker whose random state is used.

    Returns:
        Tuple of (R, G, B) averaged linear radiance.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If an argument is out of range.
        UnknownMaterialError: If a material with an unknown scatter type was hit.
    """
    _check_render_target_initialized()
    _check_worker(worker)
    if samples_per_pixel < 1:
        raise ValueError(f"samples_per_pixel must be positive, got {samples_per_pixel}")
    _check_bounces(max_bounces)
    width, height = get_image_dimensions()
    _render_single_pixel(col, row, width, height, samples_per_pixel, max_bounces, worker)
    raise_on_scatter_fault()
    color = _single_result[None]
    return (float(color[0]), float(color[1]), float(color[2]))
