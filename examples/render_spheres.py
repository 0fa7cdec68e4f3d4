#!/usr/bin/env python3
"""Render a preset sphere scene to a PPM image.

This script builds one of the preset scenes, renders it with the path tracer
and writes a plain-text PPM (P3) image to a file or to standard output.
Progress goes to standard error, so the image can be piped.

Usage:
    python -m examples.render_spheres [options]

Options:
    --scene {three,random}  Scene to render (default: three)
    --width WIDTH           Image width in pixels (default: 400)
    --samples SAMPLES       Number of samples per pixel (default: 100)
    --max-depth DEPTH       Maximum scatter depth (default: 50)
    --seed SEED             Render RNG seed, also used for sphere placement (default: 0)
    --output OUTPUT         Output file path, "-" for stdout (default: -)
    --quiet                 Suppress progress output

Example:
    python -m examples.render_spheres --scene random --width 300 --samples 20 > image.ppm
"""

from __future__ import annotations

import argparse
import logging
import sys
import time

import taichi as ti

logger = logging.getLogger("render_spheres")

# Aspect ratio of each preset scene
SCENE_ASPECT_RATIOS = {
    "three": 16.0 / 9.0,
    "random": 3.0 / 2.0,
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a preset sphere scene to a PPM image.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=sorted(SCENE_ASPECT_RATIOS),
        default="three",
        help="Scene to render (default: three)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Maximum scatter depth (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Render RNG seed, also used for sphere placement (default: 0)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="-",
        help='Output file path, "-" for stdout (default: -)',
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def render_scene(
    scene_name: str = "three",
    width: int = 400,
    num_samples: int = 100,
    max_depth: int = 50,
    seed: int = 0,
    output_path: str = "-",
    quiet: bool = False,
) -> None:
    """Render a preset scene and write it as PPM.

    Args:
        scene_name: "three" or "random".
        width: Image width in pixels. The height follows the scene's aspect ratio.
        num_samples: Number of samples per pixel.
        max_depth: Maximum scatter depth.
        seed: Render RNG seed, also used for sphere placement.
        output_path: Output file path, or "-" for standard output.
        quiet: If True, suppress progress output.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.config import RenderConfig
    from pathtracer.core.renderer import Renderer
    from pathtracer.output.ppm import PPMWriter
    from pathtracer.scene.presets import create_random_scene, create_three_sphere_scene

    aspect_ratio = SCENE_ASPECT_RATIOS[scene_name]
    if scene_name == "random":
        scene, camera = create_random_scene(aspect_ratio, seed=seed)
    else:
        scene, camera = create_three_sphere_scene(aspect_ratio)

    config = RenderConfig(
        image_width=width,
        aspect_ratio=aspect_ratio,
        samples_per_pixel=num_samples,
        max_depth=max_depth,
        seed=seed,
    )
    height = config.image_height
    logger.info(
        "Rendering %s scene (%d spheres) at %dx%d, %d spp",
        scene_name,
        scene.get_sphere_count(),
        width,
        height,
        num_samples,
    )

    renderer = Renderer(
        scene,
        camera,
        width,
        height,
        config.samples_per_pixel,
        config.max_depth,
        seed=config.seed,
    )

    def progress_callback(rows_done: int, total_rows: int) -> None:
        if not quiet:
            print(
                f"\rScanlines remaining: {total_rows - rows_done} ",
                end="",
                file=sys.stderr,
                flush=True,
            )

    start_time = time.time()
    if output_path == "-":
        renderer.render_to(PPMWriter(sys.stdout), progress_callback)
    else:
        with open(output_path, "w", encoding="ascii") as stream:
            renderer.render_to(PPMWriter(stream), progress_callback)

    if not quiet:
        print("\nDone.", file=sys.stderr)
    logger.info("Total time: %.2fs", time.time() - start_time)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    ti.init(arch=ti.cpu, default_fp=ti.f64)

    try:
        render_scene(
            scene_name=args.scene,
            width=args.width,
            num_samples=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            output_path=args.output,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
