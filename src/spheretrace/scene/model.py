"""Immutable host-side scene description.

A scene is two fixed tables: materials and spheres. Material index 0 is the
background ("sky"): rays that hit nothing return its emission, and no sphere
may reference it. Both tables are built once, validated, and never mutated;
the renderer copies them into device fields with
:func:`spheretrace.scene.manager.upload_scene`.

Scenes round-trip through plain dictionaries (and JSON files) in the same
shape as they are written by hand:

    {
        "materials": [
            {"type": "specular", "emit_color": [0.3, 0.4, 0.8],
             "reflect_color": [0, 0, 0]},
            {"type": "diffuse", "emit_color": [0, 0, 0],
             "reflect_color": [0.5, 0.5, 0.5]}
        ],
        "spheres": [
            {"center": [0, 0, -100], "radius": 100, "material": 1}
        ]
    }
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any

Color = tuple[float, float, float]
Point = tuple[float, float, float]

# Index of the implicit background material
BACKGROUND_MATERIAL = 0


class ScatterType(IntEnum):
    """How a material scatters incoming rays.

    Used for material dispatch in the path tracer.
    """

    DIFFUSE = 0
    SPECULAR = 1


def _as_triple(value: Any, name: str) -> tuple[float, float, float]:
    """Convert a 3-element sequence to a float tuple, validating it."""
    try:
        items = tuple(float(v) for v in value)
    except TypeError as e:
        raise ValueError(f"{name} must be a sequence of 3 numbers, got {value!r}") from e
    if len(items) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(items)}")
    if not all(math.isfinite(v) for v in items):
        raise ValueError(f"{name} must be finite, got {items}")
    return items  # type: ignore[return-value]


def _parse_scatter_type(name: Any) -> ScatterType:
    if isinstance(name, ScatterType):
        return name
    try:
        return ScatterType[str(name).upper()]
    except KeyError:
        raise ValueError(f"Unknown material type: {name}") from None


@dataclass(frozen=True)
class Material:
    """A surface material.

    Attributes:
        emit_color: Radiance emitted regardless of incoming light (RGB,
            non-negative).
        reflect_color: Per-channel factor applied to the radiance estimated
            along the scattered ray. Usually in [0, 1] but not clamped.
        scatter: The scattering law.
    """

    emit_color: Color
    reflect_color: Color
    scatter: ScatterType

    def __post_init__(self) -> None:
        emit = _as_triple(self.emit_color, "emit_color")
        if any(c < 0.0 for c in emit):
            raise ValueError(f"emit_color must be non-negative, got {emit}")
        object.__setattr__(self, "emit_color", emit)
        object.__setattr__(self, "reflect_color", _as_triple(self.reflect_color, "reflect_color"))
        object.__setattr__(self, "scatter", _parse_scatter_type(self.scatter))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.scatter.name.lower(),
            "emit_color": list(self.emit_color),
            "reflect_color": list(self.reflect_color),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Material:
        return cls(
            emit_color=data.get("emit_color", [0.0, 0.0, 0.0]),
            reflect_color=data.get("reflect_color", [0.0, 0.0, 0.0]),
            scatter=data.get("type", ""),
        )


@dataclass(frozen=True)
class Sphere:
    """A sphere in the scene.

    Attributes:
        center: The center point of the sphere.
        radius: The radius (positive).
        material: Index into the scene's material table. Never 0.
        inv_radius: 1 / radius, derived at construction.
    """

    center: Point
    radius: float
    material: int
    inv_radius: float = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", _as_triple(self.center, "center"))
        radius = float(self.radius)
        if not (radius > 0.0 and math.isfinite(radius)):
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")
        object.__setattr__(self, "radius", radius)
        object.__setattr__(self, "material", int(self.material))
        object.__setattr__(self, "inv_radius", 1.0 / radius)

    def to_dict(self) -> dict[str, Any]:
        return {
            "center": list(self.center),
            "radius": self.radius,
            "material": self.material,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Sphere:
        return cls(
            center=data.get("center", [0.0, 0.0, 0.0]),
            radius=data.get("radius", 1.0),
            material=int(data.get("material", BACKGROUND_MATERIAL)),
        )


@dataclass(frozen=True)
class Scene:
    """A fixed table of materials and spheres.

    Attributes:
        materials: Material table. Entry 0 is the background.
        spheres: Sphere table, scanned in order by the intersector.
    """

    materials: tuple[Material, ...]
    spheres: tuple[Sphere, ...] = ()

    def __post_init__(self) -> None:
        materials = tuple(self.materials)
        spheres = tuple(self.spheres)
        if not materials:
            raise ValueError("A scene needs at least the background material (index 0)")
        for i, sphere in enumerate(spheres):
            if sphere.material == BACKGROUND_MATERIAL:
                raise ValueError(f"Sphere {i} uses the background material (index 0)")
            if not 0 < sphere.material < len(materials):
                raise ValueError(
                    f"Sphere {i} references material {sphere.material}, "
                    f"but the scene has {len(materials)} materials"
                )
        object.__setattr__(self, "materials", materials)
        object.__setattr__(self, "spheres", spheres)

    @property
    def background(self) -> Material:
        """The background material returned by rays that hit nothing."""
        return self.materials[BACKGROUND_MATERIAL]

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        return {
            "materials": [m.to_dict() for m in self.materials],
            "spheres": [s.to_dict() for s in self.spheres],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Scene:
        """Build a scene from a dictionary.

        Raises:
            ValueError: If the dictionary describes an invalid scene.
        """
        return cls(
            materials=tuple(Material.from_dict(m) for m in data.get("materials", [])),
            spheres=tuple(Sphere.from_dict(s) for s in data.get("spheres", [])),
        )


def load_scene(path: str | Path) -> Scene:
    """Load a scene from a JSON file."""
    with open(path, encoding="utf-8") as f:
        return Scene.from_dict(json.load(f))


def save_scene(scene: Scene, path: str | Path) -> None:
    """Write a scene to a JSON file."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(scene.to_dict(), f, indent=2)
