#!/usr/bin/env python3

"""Approximate an image with a sequence of primitive shapes."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path

from primitive_fit.config import DEFAULT_CONFIG_NAME, SearchConfig, config_to_argv, default_config_path
from primitive_fit.constants import DEFAULT_ALPHA, RASTER_SUFFIXES, VECTOR_SUFFIXES
from primitive_fit.core import average_color, parse_hex_color
from primitive_fit.image_io import load_image
from primitive_fit.logging_utils import setup_logger
from primitive_fit.model import Model
from primitive_fit.shapes import ShapeType


def _is_frame_pattern(output: str) -> bool:
    return "%d" in output or "%0" in output


def _frame_path(output: str, frame: int) -> str:
    return output % frame if _is_frame_pattern(output) else output


def _check_outputs(ap: argparse.ArgumentParser, outputs: list[str]) -> None:
    for output in outputs:
        suffix = Path(output).suffix.lower()
        if suffix not in RASTER_SUFFIXES | VECTOR_SUFFIXES:
            ap.error(f"unrecognized output format: {output!r} (use .png, .jpg or .svg)")
        if _is_frame_pattern(output):
            try:
                _frame_path(output, 1)
            except (TypeError, ValueError) as exc:
                ap.error(f"bad frame pattern {output!r}: {exc}")


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, fit shapes to the input image and write every output."""
    argv = list(sys.argv[1:] if argv is None else argv)

    cfg_default = default_config_path(DEFAULT_CONFIG_NAME)
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", type=Path, default=None, help="Path to JSON/YAML config (optional)")
    pre.add_argument("--no-config", action="store_true", help="Disable loading the default config (if any).")
    pre_args, _ = pre.parse_known_args(argv)

    if pre_args.no_config and pre_args.config is not None:
        raise SystemExit("Use either --config or --no-config, not both.")

    config_path = None if pre_args.no_config else (pre_args.config or cfg_default)
    config_args = config_to_argv(config_path) if config_path is not None else []

    ap = argparse.ArgumentParser(description="Reproduce an image with geometric primitives")
    ap.add_argument(
        "--config",
        type=Path,
        default=config_path,
        help="JSON/YAML config file with defaults (defaults to configs/primitive.json when present).",
    )
    ap.add_argument("--no-config", action="store_true", help="Disable loading the default config (if any).")
    ap.add_argument("-i", "--input", type=Path, required=True, help="Input image")
    ap.add_argument(
        "-o",
        "--output",
        action="append",
        default=None,
        help="Output image (.png/.jpg/.svg); repeatable; '%%d' in the name writes numbered frames",
    )
    ap.add_argument("-n", "--count", type=int, required=True, help="Number of shapes")
    ap.add_argument(
        "-m",
        "--mode",
        type=int,
        default=int(ShapeType.TRIANGLE),
        help="0=any 1=triangle 2=rect 3=ellipse 4=circle 5=rotatedrect 6=beziers 7=rotatedellipse 8=polygon",
    )
    ap.add_argument("-a", "--alpha", type=int, default=DEFAULT_ALPHA, help="Shape alpha (0 lets the search choose)")
    ap.add_argument("-r", "--resize", type=int, default=256, help="Resize the input to this size before fitting")
    ap.add_argument("-s", "--size", type=int, default=1024, help="Output image size (longer side)")
    ap.add_argument("--rep", type=int, default=0, help="Extra shapes derived from each winner")
    ap.add_argument("--nth", type=int, default=1, help="Save every Nth frame (only with '%%d' outputs)")
    ap.add_argument("--bg", type=str, default=None, help="Background colour (hex); default is the average colour")
    ap.add_argument("-j", "--workers", type=int, default=0, help="Number of parallel workers (0=all cores)")
    ap.add_argument("--n-random", type=int, default=SearchConfig.n_random, help="Random samples per trial")
    ap.add_argument("--max-age", type=int, default=SearchConfig.max_age, help="Hill-climb patience")
    ap.add_argument("--trials", type=int, default=SearchConfig.trials, help="Hill-climb trials per shape")
    ap.add_argument("--seed", type=int, default=None, help="Base seed (worker i uses seed+i)")
    ap.add_argument("-v", "--verbose", action="count", default=0, help="Verbose output (-vv for search traces)")
    args = ap.parse_args(config_args + argv)

    outputs = list(args.output or [])
    if not outputs:
        ap.error("at least one --output is required")
    _check_outputs(ap, outputs)
    if args.count < 1:
        ap.error("--count must be >= 1")
    if not 0 <= args.alpha <= 255:
        ap.error("--alpha must be in [0, 255]")
    if args.nth < 1:
        ap.error("--nth must be >= 1")
    if args.rep < 0:
        ap.error("--rep must be >= 0")
    if args.size < 1:
        ap.error("--size must be >= 1")
    try:
        search = SearchConfig(n_random=args.n_random, max_age=args.max_age, trials=args.trials)
    except ValueError as exc:
        ap.error(str(exc))

    if args.verbose >= 2:
        setup_logger(level=logging.DEBUG)
    elif args.verbose == 1:
        setup_logger(level=logging.INFO)
    logger = logging.getLogger("primitive_fit.cli")

    workers = int(args.workers) if args.workers > 0 else (os.cpu_count() or 1)

    try:
        target = load_image(args.input, size=args.resize)
    except OSError as exc:
        raise SystemExit(f"cannot read {args.input}: {exc}") from exc

    if args.bg:
        try:
            background = parse_hex_color(args.bg)
        except ValueError as exc:
            ap.error(str(exc))
    else:
        background = average_color(target)

    model = Model(target, background, args.size, workers, seed=args.seed)
    logger.info(
        "input=%s size=%dx%d workers=%d mode=%d alpha=%d",
        args.input,
        model.width,
        model.height,
        workers,
        args.mode,
        args.alpha,
    )
    if args.verbose:
        print(f"0: t=0.000, score={model.score:.6f}")

    start = time.perf_counter()
    for i in range(args.count):
        frame = i + 1
        t0 = time.perf_counter()
        n = model.step(args.mode, args.alpha, args.rep, search=search)
        dt = time.perf_counter() - t0
        if args.verbose:
            nps = n / dt if dt > 0 else 0.0
            print(f"{frame}: t={time.perf_counter() - start:.3f}, score={model.score:.6f}, n={n}, n/s={nps:.0f}")

        last = frame == args.count
        for output in outputs:
            frames = _is_frame_pattern(output)
            if (frames and frame % args.nth == 0) or last:
                path = _frame_path(output, frame)
                model.save(path)
                logger.info("wrote: %s", path)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
