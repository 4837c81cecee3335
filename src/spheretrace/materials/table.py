"""Device-side material table.

Materials are stored as a Structure of Arrays in Taichi fields, indexed by
the material index used in the scene. Index 0 is the background material.

Each entry holds:
    - emission color (RGB)
    - reflectance color (RGB)
    - scatter type code (see ScatterType)

The table is filled once from the host before rendering and only read by
kernels.
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Maximum number of materials in the scene
MAX_MATERIALS = 256

material_emit = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_reflect = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_scatter_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear the material table.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_materials[None] = 0


def add_material(
    emit_color: tuple[float, float, float],
    reflect_color: tuple[float, float, float],
    scatter_type: int,
) -> int:
    """Append a material to the device table.

    The scatter type code is stored as given; validation of the host-side
    scene happens in :mod:`spheretrace.scene.model`.

    Args:
        emit_color: Emitted radiance (RGB).
        reflect_color: Reflectance applied to the scattered estimate (RGB).
        scatter_type: Integer scatter type code.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")
    material_emit[idx] = vec3(emit_color[0], emit_color[1], emit_color[2])
    material_reflect[idx] = vec3(reflect_color[0], reflect_color[1], reflect_color[2])
    material_scatter_types[idx] = int(scatter_type)
    num_materials[None] = idx + 1
    return idx


def get_material_count() -> int:
    """Get the number of materials in the table."""
    return int(num_materials[None])


@ti.func
def get_emit(material_id: ti.i32) -> vec3:
    """Emission color of a material."""
    return material_emit[material_id]


@ti.func
def get_reflect(material_id: ti.i32) -> vec3:
    """Reflectance color of a material."""
    return material_reflect[material_id]


@ti.func
def get_scatter_type(material_id: ti.i32) -> ti.i32:
    """Scatter type code of a material."""
    return material_scatter_types[material_id]
