"""
pipeline.py – load ▸ compose ▸ capture ▸ export, for the static map and
the per-year animation.

Both builders load every input before the first frame is drawn, so a missing
asset stops the run before any rendering work is done.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import pandas as pd

from .animate import FrameSequence, FrameSequenceGenerator
from .composer import LayerTemplates, compose_scene
from .config import ShipMapConfig
from .export import export_gif, export_html, save_scene_png
from .io import load_overlays, load_tracks, load_world
from .render import open_surface

logger = logging.getLogger("shipmap.pipeline")


@dataclass
class RunResult:
    static_map: Optional[Path] = None
    animation: Optional[Path] = None
    gif: Optional[Path] = None
    frames: int = 0
    skipped: List = field(default_factory=list)

    def artefacts(self) -> List[Path]:
        return [p for p in (self.static_map, self.animation, self.gif) if p is not None]


@dataclass
class LoadedInputs:
    tracks: pd.DataFrame
    templates: LayerTemplates


# --------------------------------------------------------------------------- #
def load_inputs(config: ShipMapConfig) -> LoadedInputs:
    logger.info("==> load")
    tracks = load_tracks(config.paths.tracks_csv)
    world = load_world(config.paths.world_path)
    overlays = load_overlays(config.overlays)
    return LoadedInputs(tracks, LayerTemplates.build(world, config.style, overlays))


def build_static_map(config: ShipMapConfig, inputs: Optional[LoadedInputs] = None) -> Path:
    """All routes of the table on one map, saved as ``static_map.png``."""
    inputs = inputs or load_inputs(config)

    logger.info("==> static map")
    scene = compose_scene(inputs.templates, inputs.tracks, config.style.static_title, config.style)
    return save_scene_png(scene, config.paths.output_dir / "static_map.png", config.style)


def generate_frames(config: ShipMapConfig, inputs: LoadedInputs) -> FrameSequenceGenerator:
    generator = FrameSequenceGenerator(inputs.tracks, inputs.templates,
                                       config.style, config.animation)
    with open_surface(config.style) as surface:
        generator.run(surface)
    return generator


def build_animation(config: ShipMapConfig,
                    inputs: Optional[LoadedInputs] = None) -> tuple[FrameSequence, RunResult]:
    """One frame per distinct value of the grouping column, exported as HTML."""
    inputs = inputs or load_inputs(config)

    logger.info("==> animation")
    generator = generate_frames(config, inputs)
    frames = generator.frames
    anim = config.animation

    result = RunResult(frames=len(frames), skipped=list(generator.skipped))
    result.animation = export_html(frames, config.paths.output_dir,
                                   fps=anim.fps, default_mode=anim.default_mode,
                                   name=anim.name)
    if anim.gif:
        result.gif = export_gif(frames, config.paths.output_dir / f"{anim.name}.gif",
                                fps=anim.fps)
    return frames, result


def run_pipeline(config: ShipMapConfig, static: bool = True, animate: bool = True) -> RunResult:
    inputs = load_inputs(config)
    result = RunResult()

    if static:
        result.static_map = build_static_map(config, inputs)
    if animate:
        _, anim_result = build_animation(config, inputs)
        anim_result.static_map = result.static_map
        result = anim_result

    logger.info("✓ %d artefact(s) in %s", len(result.artefacts()), config.paths.output_dir)
    return result
