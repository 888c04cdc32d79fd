# ───────────────────────────────────────────────────────────
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import yaml
from pydantic import ValidationError

from .config import LogLevel, ShipMapConfig, load_config
from .errors import ShipMapError
from .logging_config import configure
from .models import OverlaySpec
from .pipeline import run_pipeline

log = logging.getLogger("shipmap.cli")


def _overlay(text: str) -> OverlaySpec:
    """PATH:XMIN:XMAX:YMIN:YMAX → OverlaySpec"""
    parts = text.rsplit(":", 4)
    if len(parts) != 5:
        raise argparse.ArgumentTypeError(f"expected PATH:XMIN:XMAX:YMIN:YMAX, got {text!r}")
    path, *bbox = parts
    try:
        xmin, xmax, ymin, ymax = (float(v) for v in bbox)
        return OverlaySpec(path=path, xmin=xmin, xmax=xmax, ymin=ymin, ymax=ymax)
    except (ValueError, ValidationError) as exc:
        raise argparse.ArgumentTypeError(f"bad overlay {text!r}: {exc}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shipmap",
        description="Draw 18th-century ship logbook routes and animate them year by year",
    )
    parser.add_argument("--config", help="YAML/JSON config file")
    parser.add_argument("--csv", help="Track-point CSV (lon, lat, trp, group.regroup, year, nat)")
    parser.add_argument("--world", help="World polygon file (shapefile, GeoJSON, GPKG …)")
    parser.add_argument("--out", help="Output directory")
    parser.add_argument("--overlay", action="append", type=_overlay, default=[],
                        metavar="PATH:XMIN:XMAX:YMIN:YMAX",
                        help="Decorative image placed at a lon/lat box (repeatable)")
    parser.add_argument("--column", help="Grouping column for the animation (default: year)")
    parser.add_argument("--fps", type=float, help="Animation frames per second")
    parser.add_argument("--unsorted", action="store_true",
                        help="Keep frames in order of first appearance instead of ascending")
    parser.add_argument("--skip-failed-frames", action="store_true",
                        help="Log and drop frames that fail instead of aborting")
    parser.add_argument("--gif", action="store_true", help="Also write an animated GIF")
    parser.add_argument("--no-static", action="store_true", help="Skip the static map")
    parser.add_argument("--no-animation", action="store_true", help="Skip the animation")
    parser.add_argument("--log-level", type=str.lower,
                        choices=[lvl.value for lvl in LogLevel],
                        help="Console log level (default: from the config)")
    return parser


def apply_overrides(config: ShipMapConfig, args: argparse.Namespace) -> ShipMapConfig:
    if args.csv:
        config.paths.tracks_csv = Path(args.csv)
    if args.world:
        config.paths.world_path = Path(args.world)
    if args.out:
        config.paths.output_dir = Path(args.out)
    if args.overlay:
        config.overlays = list(args.overlay)
    if args.column is not None:
        config.animation.column = args.column
    if args.fps is not None:
        config.animation.fps = args.fps
    if args.unsorted:
        config.animation.sort_values = False
    if args.skip_failed_frames:
        config.animation.skip_failed_frames = True
    if args.gif:
        config.animation.gif = True
    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError, TypeError, yaml.YAMLError) as exc:
        configure(args.log_level or "INFO")
        log.error("Cannot load config: %s", exc)
        return 2

    config = apply_overrides(config, args)
    configure(args.log_level or config.logging.level.value)

    issues = config.validate()
    if issues:
        for issue in issues:
            log.error("Config: %s", issue)
        return 2

    try:
        result = run_pipeline(config, static=not args.no_static, animate=not args.no_animation)
    except ShipMapError as exc:
        log.error("Run aborted: %s", exc)
        return 1

    for path in result.artefacts():
        log.info("→ %s", path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
