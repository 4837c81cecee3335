"""Pinhole camera model for perspective projection ray generation.

The camera is placed with a look-from / look-at pair and an up vector (world
+Z by default). It builds an orthonormal basis:
- z: points from the look-at point back toward the camera (we look down -z)
- x: points right in the image plane
- y: points up in the image plane

A viewport "plate" sits one unit in front of the camera. Its height is
``viewport_height`` and its width is ``viewport_height * aspect_ratio``; only
landscape images (aspect ratio > 1) are supported.

Rays are generated from normalized viewport coordinates:
- u = 0: left edge, u = 1: right edge
- v = 0: bottom edge, v = 1: top edge

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.camera.pinhole import PinholeCamera, setup_camera, get_ray
    >>>
    >>> camera = PinholeCamera(
    ...     lookfrom=(0.0, -10.0, 1.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     aspect_ratio=16.0 / 9.0,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through image center
"""

from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import Ray, make_ray, vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class PinholeCamera:
    """Configuration for a pinhole (perspective) camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        aspect_ratio: Width divided by height of the output image (> 1).
        vup: Up direction vector for camera orientation (default +Z).
        viewport_height: Height of the viewport plate at unit distance.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    aspect_ratio: float
    vup: tuple[float, float, float] = (0.0, 0.0, 1.0)
    viewport_height: float = 1.0


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_x = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_y = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_z = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport vectors for ray computation
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: PinholeCamera) -> None:
    """Initialize camera state from configuration.

    Computes the camera basis and viewport geometry and stores them in
    Taichi fields. Must be called before rendering.

    Args:
        camera: Camera configuration.

    Raises:
        ValueError: If the aspect ratio is not greater than 1, or the view
            direction is parallel to the up vector.
    """
    if not camera.aspect_ratio > 1.0:
        raise ValueError(
            f"aspect_ratio must be greater than 1 (width > height), got {camera.aspect_ratio}"
        )

    viewport_height = camera.viewport_height
    viewport_width = viewport_height * camera.aspect_ratio

    lookfrom = np.array(camera.lookfrom, dtype=np.float32)
    lookat = np.array(camera.lookat, dtype=np.float32)
    vup = np.array(camera.vup, dtype=np.float32)

    # z points from lookat toward lookfrom (backward)
    z = lookfrom - lookat
    z = z / np.linalg.norm(z)

    x = np.cross(vup, z)
    x_norm = np.linalg.norm(x)
    if x_norm < 1e-8:
        raise ValueError("View direction must not be parallel to the up vector")
    x = x / x_norm

    y = np.cross(z, x)
    y = y / np.linalg.norm(y)

    _camera_origin[None] = lookfrom.tolist()
    _camera_x[None] = x.tolist()
    _camera_y[None] = y.tolist()
    _camera_z[None] = z.tolist()

    horizontal = viewport_width * x
    vertical = viewport_height * y

    # Viewport plate one unit in front of the camera
    viewport_center = lookfrom - z
    lower_left = viewport_center - horizontal / 2.0 - vertical / 2.0

    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()


# =============================================================================
# Ray Generation (Taichi functions)
# =============================================================================


@ti.func
def get_ray(u: ti.f32, v: ti.f32) -> Ray:
    """Generate a ray through normalized viewport coordinates (u, v).

    Args:
        u: Horizontal coordinate (0 = left edge, 1 = right edge).
        v: Vertical coordinate (0 = bottom edge, 1 = top edge).

    Returns:
        A Ray from the camera origin with a unit-length direction.
    """
    point_on_viewport = (
        _lower_left_corner[None] + u * _viewport_horizontal[None] + v * _viewport_vertical[None]
    )
    origin = _camera_origin[None]
    direction = tm.normalize(point_on_viewport - origin)
    return make_ray(origin, direction)


@ti.func
def get_ray_jittered(
    pixel_x: ti.i32,
    pixel_y: ti.i32,
    jitter_x: ti.f32,
    jitter_y: ti.f32,
    width: ti.i32,
    height: ti.i32,
) -> Ray:
    """Generate a ray through a jittered position inside a pixel.

    The pixel is treated as the range [p, p + 1) and the caller supplies the
    offsets into it, so the random stream stays under the caller's control.
    Coordinates are normalized by ``width - 1`` and ``height - 1``.

    Args:
        pixel_x: Pixel column (0 = left).
        pixel_y: Pixel row counted from the bottom (0 = bottom).
        jitter_x: Horizontal offset in [0, 1).
        jitter_y: Vertical offset in [0, 1).
        width: Image width in pixels (>= 2).
        height: Image height in pixels (>= 2).

    Returns:
        A Ray through the jittered viewport position.
    """
    u = (ti.cast(pixel_x, ti.f32) + jitter_x) / ti.cast(width - 1, ti.f32)
    v = (ti.cast(pixel_y, ti.f32) + jitter_y) / ti.cast(height - 1, ti.f32)
    return get_ray(u, v)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, x, y, z, horizontal, vertical, lower_left.
    """
    fields = {
        "origin": _camera_origin,
        "x": _camera_x,
        "y": _camera_y,
        "z": _camera_z,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
        "lower_left": _lower_left_corner,
    }
    info = {}
    for name, f in fields.items():
        vec = f[None]
        info[name] = (float(vec[0]), float(vec[1]), float(vec[2]))
    return info
