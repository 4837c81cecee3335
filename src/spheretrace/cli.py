"""Render a sphere scene to an image file.

With no options this renders the reference scene at 1920x1080 with 100
samples per pixel and 8 bounces, writes ``out.bmp`` and prints ``Fin.``.

Usage:
    spheretrace [options]
    python -m spheretrace [options]

Options:
    --width WIDTH       Image width in pixels (default: 1920)
    --height HEIGHT     Image height in pixels (default: 1080)
    --samples SAMPLES   Number of samples per pixel (default: 100)
    --bounces BOUNCES   Bounce budget per camera ray (default: 8)
    --workers WORKERS   Number of workers (default: CPU count)
    --output OUTPUT     Output file path (default: out.bmp)
    --scene SCENE       JSON scene file (default: reference scene)
    --arch {cpu,gpu}    Taichi backend (default: cpu)
    --quiet             Suppress progress output
    --verbose           Enable INFO logging

Example:
    spheretrace --width 320 --height 180 --samples 16 --output small.png
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path

import taichi as ti

from spheretrace.config import DEFAULT_HEIGHT, DEFAULT_OUTPUT, DEFAULT_WIDTH, RenderSettings

logger = logging.getLogger(__name__)

COMPLETION_MARKER = "Fin."


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sphere scene with a Monte Carlo path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=DEFAULT_WIDTH,
        help=f"Image width in pixels (default: {DEFAULT_WIDTH})",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=DEFAULT_HEIGHT,
        help=f"Image height in pixels (default: {DEFAULT_HEIGHT})",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--bounces",
        type=int,
        default=8,
        help="Bounce budget per camera ray (default: 8)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of workers (default: CPU count)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=DEFAULT_OUTPUT,
        help=f"Output file path (default: {DEFAULT_OUTPUT})",
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="JSON scene file (default: reference scene)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable INFO logging",
    )
    return parser.parse_args(argv)


def render_to_file(settings: RenderSettings, quiet: bool = False) -> Path:
    """Render the configured scene and save it.

    Taichi must already be initialized.

    Args:
        settings: Render settings.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from spheretrace.camera.pinhole import setup_camera
    from spheretrace.core.renderer import Renderer
    from spheretrace.scene.manager import upload_scene
    from spheretrace.scene.model import load_scene
    from spheretrace.scene.reference import create_reference_camera, create_reference_scene

    if settings.scene_path is None:
        scene = create_reference_scene()
        scene_name = "reference scene"
    else:
        scene = load_scene(settings.scene_path)
        scene_name = settings.scene_path

    if not quiet:
        print(
            f"Loading {scene_name} ({len(scene.spheres)} spheres, "
            f"{len(scene.materials)} materials)..."
        )
    upload_scene(scene)
    setup_camera(create_reference_camera(settings.aspect_ratio))

    renderer = Renderer(
        settings.width,
        settings.height,
        samples_per_pixel=settings.samples_per_pixel,
        max_bounces=settings.max_bounces,
        num_workers=settings.num_workers,
    )

    if not quiet:
        print(
            f"Rendering {settings.width}x{settings.height}, "
            f"{settings.samples_per_pixel} samples per pixel, "
            f"{renderer.num_workers} workers..."
        )

    start_time = time.time()
    renderer.render()
    output_file = renderer.save(settings.output)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    try:
        settings = RenderSettings.from_args(args)
        ti.init(arch=ti.gpu if settings.arch == "gpu" else ti.cpu)
        render_to_file(settings, quiet=args.quiet)
    except Exception as e:
        logger.debug("Render failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(COMPLETION_MARKER)
    return 0


if __name__ == "__main__":
    sys.exit(main())
