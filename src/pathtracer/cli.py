"""Command-line entry point for rendering a scene to an image file.

Usage:
    pathtracer [options]

Options:
    --scene FILE        JSON scene file (default: built-in four-sphere scene)
    --output OUTPUT     Output file path (default: images/output.ppm)
    --width WIDTH       Image width in pixels (overrides the scene)
    --samples SAMPLES   Samples per pixel (overrides the scene)
    --max-depth DEPTH   Bounce budget per camera ray (overrides the scene)
    --seed SEED         Render seed (overrides the scene)
    --arch {cpu,gpu}    Taichi backend (default: cpu)
    --threads N         CPU worker threads (default: all cores)
    --quiet             Suppress progress output

Example:
    pathtracer --width 200 --samples 10 --output images/preview.png
"""

from __future__ import annotations

import argparse
import dataclasses
import sys
import time
from collections.abc import Sequence
from pathlib import Path

import taichi as ti

DEFAULT_OUTPUT = "images/output.ppm"


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="pathtracer",
        description="Render a scene of spheres with a Monte Carlo path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="JSON scene file (default: built-in four-sphere scene)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=DEFAULT_OUTPUT,
        help=f"Output file path (default: {DEFAULT_OUTPUT})",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=None,
        help="Image width in pixels (default: from the scene, 400)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=None,
        help="Samples per pixel (default: from the scene, 50)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Bounce budget per camera ray (default: from the scene, 25)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Render seed (default: from the scene, 0)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--threads",
        type=int,
        default=None,
        help="Number of CPU worker threads (default: all cores)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def _log(message: str, quiet: bool) -> None:
    if not quiet:
        print(message, file=sys.stderr, flush=True)


def run(args: argparse.Namespace) -> Path:
    """Build the scene, render it and save the image.

    Taichi must already be initialized.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports: these modules allocate Taichi fields at import time
    from pathtracer.camera.viewport import setup_camera
    from pathtracer.core.integrator import get_framebuffer_numpy, render_image
    from pathtracer.output.export import save_image
    from pathtracer.scene.defaults import create_default_scene
    from pathtracer.scene.loader import load_scene_file

    if args.scene is not None:
        _log(f"Loading scene from {args.scene}...", args.quiet)
        scene, camera, settings = load_scene_file(args.scene)
    else:
        scene, camera, settings = create_default_scene()

    overrides = {
        "image_width": args.width,
        "samples_per_pixel": args.samples,
        "max_depth": args.max_depth,
        "seed": args.seed,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if overrides:
        settings = dataclasses.replace(settings, **overrides)

    setup_camera(camera)

    _log(
        f"Rendering {scene.get_sphere_count()} spheres at "
        f"{settings.image_width}x{settings.image_height}, "
        f"{settings.samples_per_pixel} spp, max depth {settings.max_depth}...",
        args.quiet,
    )
    start_time = time.time()
    render_image(settings)
    render_time = time.time() - start_time
    _log(f"  Rendered in {render_time:.2f}s", args.quiet)

    output_file = save_image(get_framebuffer_numpy(), args.output)
    _log(f"Saved to: {output_file.absolute()}", args.quiet)

    return output_file


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    init_kwargs = {"arch": ti.gpu if args.arch == "gpu" else ti.cpu}
    if args.threads is not None:
        if args.threads < 1:
            print("Error: --threads must be at least 1", file=sys.stderr)
            return 1
        init_kwargs["cpu_max_num_threads"] = args.threads

    try:
        ti.init(**init_kwargs)
        _log(f"Using {args.arch.upper()} backend", args.quiet)
        run(args)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
