#!/usr/bin/env python3
"""Render the demo sphere scene progressively.

This script plays the part of the host frame loop: every tick it asks the
renderer for one batch of random samples, reports the cumulative sample count
and finally saves the normalized frame.

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH           Image width in pixels (default: 256)
    --height HEIGHT         Image height in pixels (default: 256)
    --ticks TICKS           Number of frame ticks to run (default: 200)
    --samples-per-batch N   Samples traced per tick (default: 2048)
    --max-reflection N      Maximum bounces per sample (default: 2)
    --exposure EXPOSURE     Exposure at normalization (default: 1.0)
    --policy POLICY         accumulate or visibility (default: accumulate)
    --jitter                Sample inside pixels instead of pixel centers
    --seed SEED             Random seed (default: none)
    --output OUTPUT         Output file path (default: spheres.png)
    --quiet                 Suppress progress output

Example:
    python -m examples.render_spheres --width 128 --height 128 --ticks 50
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the demo sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=256, help="Image width in pixels (default: 256)")
    parser.add_argument("--height", type=int, default=256, help="Image height in pixels (default: 256)")
    parser.add_argument("--ticks", type=int, default=200, help="Number of frame ticks (default: 200)")
    parser.add_argument(
        "--samples-per-batch",
        type=int,
        default=2048,
        help="Samples traced per tick (default: 2048)",
    )
    parser.add_argument(
        "--max-reflection",
        type=int,
        default=2,
        help="Maximum bounces per sample (default: 2)",
    )
    parser.add_argument("--exposure", type=float, default=1.0, help="Exposure (default: 1.0)")
    parser.add_argument(
        "--policy",
        choices=("accumulate", "visibility"),
        default="accumulate",
        help="Per-bounce policy (default: accumulate)",
    )
    parser.add_argument("--jitter", action="store_true", help="Sample inside pixels")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--output",
        type=str,
        default="spheres.png",
        help="Output file path (default: spheres.png)",
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args()


def render_spheres(args: argparse.Namespace) -> Path:
    """Run the frame loop and save the result.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.spherepath.core.config import RenderConfig
    from src.spherepath.core.progressive import ProgressiveRenderer
    from src.spherepath.preview.export import save_png
    from src.spherepath.scene.presets import create_demo_scene

    config = RenderConfig(
        width=args.width,
        height=args.height,
        samples_per_batch=args.samples_per_batch,
        max_reflection=args.max_reflection,
        exposure=args.exposure,
        policy=args.policy,
        jitter=args.jitter,
        seed=args.seed,
    )

    spheres, camera = create_demo_scene()
    if not args.quiet:
        print(f"Rendering {len(spheres)} spheres at {config.width}x{config.height}...")

    renderer = ProgressiveRenderer(config, spheres, camera)

    start_time = time.time()
    for _ in range(args.ticks):
        renderer.tick()
        if not args.quiet:
            elapsed = time.time() - start_time
            rate = renderer.sample_count / elapsed if elapsed > 0 else 0
            print(f"\r  RAYS: {renderer.sample_count} ({rate:.0f} samples/s)", end="", flush=True)

    if not args.quiet:
        print()  # Newline after progress

    output_file = Path(args.output)
    tone_map = "reinhard" if config.policy == "accumulate" else "none"
    save_png(renderer, str(output_file), tone_map=tone_map, gamma=2.2)

    if not args.quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {time.time() - start_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(level=logging.WARNING if args.quiet else logging.INFO)

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
    except Exception:
        ti.init(arch=ti.cpu)

    try:
        render_spheres(args)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
