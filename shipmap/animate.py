"""
animate.py – one frame per distinct grouping value (normally the year)

Flow per value
--------------
①  filter the track table to rows carrying that value,
②  compose a scene titled with the value,
③  render it on the shared surface and append the captured frame.

Values are visited in ascending order by default.  Visiting them in order of
first appearance (``sort=False``) reproduces the jumbled animation of the
classic logbook-map tutorial.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Hashable, Iterator, List, Optional

import numpy as np
import pandas as pd
from tqdm import tqdm

from .composer import LayerTemplates, compose_scene
from .config import AnimationConfig, StyleConfig
from .errors import AnimationStateError, ComposeError, ShipMapError
from .models import Scene
from .render import RenderSurface

logger = logging.getLogger("shipmap.animate")


class SequenceState(Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    DONE = "done"


@dataclass(frozen=True)
class Frame:
    index: int
    value: Hashable
    title: str
    scene: Scene
    image: np.ndarray

    @property
    def size(self) -> tuple:
        """(width, height) in pixels."""
        return self.image.shape[1], self.image.shape[0]


class FrameSequence:
    """
    Ordered, append-only frames of one run.

    idle ──first append──▶ capturing ──finish()──▶ done
      ▲                                               │
      └────────────────────── reset() ◀───────────────┘
    """

    def __init__(self):
        self._frames: List[Frame] = []
        self.state = SequenceState.IDLE

    def append(self, frame: Frame) -> None:
        if self.state is SequenceState.DONE:
            raise AnimationStateError("Frame sequence is complete – reset() before a new run")
        if frame.index != len(self._frames):
            raise AnimationStateError(
                f"Frame index {frame.index} out of order (expected {len(self._frames)})"
            )
        self._frames.append(frame)
        self.state = SequenceState.CAPTURING

    def begin(self) -> None:
        if self.state is not SequenceState.IDLE:
            raise AnimationStateError(
                f"Cannot start a run while {self.state.value} – call reset() first"
            )

    def finish(self) -> None:
        self.state = SequenceState.DONE

    def reset(self) -> None:
        self._frames.clear()
        self.state = SequenceState.IDLE

    # -- read access --------------------------------------------------------
    @property
    def values(self) -> List[Hashable]:
        return [f.value for f in self._frames]

    @property
    def titles(self) -> List[str]:
        return [f.title for f in self._frames]

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[Frame]:
        return iter(list(self._frames))

    def __getitem__(self, idx: int) -> Frame:
        return self._frames[idx]


# ────────────────────────────────────────────────────────────────────────────
def distinct_values(tracks: pd.DataFrame, column: str, sort: bool = True) -> List[Any]:
    """
    Distinct values of *column*.  ``pd.unique`` keeps first-appearance order;
    with *sort* they are put in natural ascending order.  A null key has no
    place in either order and is rejected.
    """
    if column not in tracks.columns:
        raise ComposeError(f"Grouping column {column!r} not in track table")

    series = tracks[column]
    if series.isna().any():
        bad = series.index[series.isna()].tolist()[:5]
        raise ComposeError(f"Undefined {column!r} value in rows {bad}")

    values = [v.item() if isinstance(v, np.generic) else v for v in pd.unique(series)]
    if sort:
        try:
            values = sorted(values)
        except TypeError as exc:
            raise ComposeError(f"{column!r} values have no common order: {exc}") from exc
    return values


def filter_by_value(tracks: pd.DataFrame, column: str, value: Hashable) -> pd.DataFrame:
    """Rows whose *column* equals *value*; an unknown value gives an empty frame."""
    return tracks.loc[tracks[column] == value]


# ────────────────────────────────────────────────────────────────────────────
class FrameSequenceGenerator:
    """Runs the static composer once per grouping value and keeps the frames."""

    def __init__(
        self,
        tracks: pd.DataFrame,
        templates: LayerTemplates,
        style: StyleConfig,
        animation: Optional[AnimationConfig] = None,
    ):
        self.tracks = tracks
        self.templates = templates
        self.style = style
        self.animation = animation or AnimationConfig()
        self.frames = FrameSequence()
        self.skipped: List[Hashable] = []

    @property
    def state(self) -> SequenceState:
        return self.frames.state

    def values(self) -> List[Any]:
        return distinct_values(self.tracks, self.animation.column, self.animation.sort_values)

    def compose_frame(self, value: Hashable) -> Scene:
        subset = filter_by_value(self.tracks, self.animation.column, value)
        return compose_scene(self.templates, subset, str(value), self.style)

    def reset(self) -> None:
        self.frames.reset()
        self.skipped.clear()

    def run(self, surface: RenderSurface) -> FrameSequence:
        """
        Capture every frame, strictly one after another.  By default the first
        failing frame aborts the run; with ``skip_failed_frames`` it is logged
        and left out.
        """
        self.frames.begin()
        values = self.values()
        logger.info("Generating %d frame(s) over %r", len(values), self.animation.column)

        for value in tqdm(values, desc="Rendering frames", unit="frame",
                          disable=not self.animation.progress):
            try:
                scene = self.compose_frame(value)
                image = surface.render(scene)
            except ShipMapError as exc:
                if not self.animation.skip_failed_frames:
                    logger.error("Frame %s failed – aborting run", value)
                    raise
                logger.warning("Skipping frame %s: %s", value, exc)
                self.skipped.append(value)
                continue

            self.frames.append(
                Frame(index=len(self.frames), value=value, title=scene.title,
                      scene=scene, image=image)
            )
            logger.debug("Frame %d ← %s (%d segments)",
                         len(self.frames) - 1, value, scene.segment_count)

        self.frames.finish()
        logger.info("Captured %d frame(s)%s", len(self.frames),
                    f", skipped {len(self.skipped)}" if self.skipped else "")
        return self.frames
