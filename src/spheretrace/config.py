"""Render settings.

The defaults reproduce the reference render: 1920x1080, 100 samples per
pixel, 8 bounces, written to ``out.bmp``.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import Literal

Arch = Literal["cpu", "gpu"]

DEFAULT_WIDTH = 1920
DEFAULT_HEIGHT = 1080
DEFAULT_OUTPUT = "out.bmp"


@dataclass
class RenderSettings:
    """Settings for one render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels (must be smaller than width).
        samples_per_pixel: Jittered samples averaged per pixel.
        max_bounces: Bounce budget of every camera ray.
        num_workers: Number of workers; None uses the CPU count.
        output: Output image path.
        scene_path: Optional JSON scene file; None renders the reference scene.
        arch: Taichi backend to initialize.
    """

    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    samples_per_pixel: int = 100
    max_bounces: int = 8
    num_workers: int | None = None
    output: str = DEFAULT_OUTPUT
    scene_path: str | None = None
    arch: Arch = "cpu"

    def __post_init__(self) -> None:
        if self.width < 2 or self.height < 2:
            raise ValueError(f"Image must be at least 2x2, got {self.width}x{self.height}")
        if self.width <= self.height:
            raise ValueError(
                f"Only landscape images are supported (width > height), got {self.width}x{self.height}"
            )
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.max_bounces < 0:
            raise ValueError(f"max_bounces must be non-negative, got {self.max_bounces}")
        if self.num_workers is not None and self.num_workers < 1:
            raise ValueError(f"num_workers must be positive, got {self.num_workers}")
        if self.arch not in ("cpu", "gpu"):
            raise ValueError(f"Unknown arch: {self.arch}")

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> RenderSettings:
        """Build settings from parsed command-line arguments."""
        return cls(
            width=args.width,
            height=args.height,
            samples_per_pixel=args.samples,
            max_bounces=args.bounces,
            num_workers=args.workers,
            output=args.output,
            scene_path=args.scene,
            arch=args.arch,
        )
