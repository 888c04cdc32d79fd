"""
composer.py – assemble one scene from the fixed layer templates

A scene is rebuilt from scratch for every call: base frame, world polygons,
the routes of the (possibly filtered) track table, the image overlays and a
title.  Templates are built once per run and never mutated, so frames cannot
leak state into each other.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Tuple

import geopandas as gpd
import pandas as pd

from .config import StyleConfig
from .errors import ComposeError
from .io import LAT, LON, NATIONALITY, SUBPATH, TRACK_COLUMNS, TRIP
from .models import (
    BaseFrameLayer,
    ImageLayer,
    PathSegment,
    PolygonLayer,
    RouteLayer,
    Scene,
    TitleLayer,
    palette_tuple,
)

logger = logging.getLogger("shipmap.composer")


@dataclass(frozen=True)
class LayerTemplates:
    """The layers that are identical in every frame."""

    base: BaseFrameLayer
    world: PolygonLayer
    overlays: Tuple[ImageLayer, ...] = ()

    @classmethod
    def build(
        cls,
        world: gpd.GeoDataFrame,
        style: StyleConfig,
        overlays: Sequence[ImageLayer] = (),
    ) -> "LayerTemplates":
        return cls(
            base=BaseFrameLayer(extent=style.bbox, background=style.background),
            world=PolygonLayer(
                name="world",
                facecolor=style.land_fill,
                edgecolor=style.land_edge,
                polygons=world,
                linewidth=style.land_linewidth,
            ),
            overlays=tuple(overlays),
        )


# ---------------------------------------------------------------------------
def _segment(key, group: pd.DataFrame) -> PathSegment:
    trip, subpath = key
    try:
        lon = group[LON].to_numpy(dtype=float)
        lat = group[LAT].to_numpy(dtype=float)
        return PathSegment(
            trip=trip,
            subpath=subpath,
            nationality=str(group[NATIONALITY].iloc[0]),
            coords=tuple(zip(lon.tolist(), lat.tolist())),
        )
    except (TypeError, ValueError) as exc:
        raise ComposeError(f"trip {trip!r} / sub-path {subpath!r}: {exc}") from exc


def build_route_layer(tracks: pd.DataFrame, style: StyleConfig) -> RouteLayer:
    """
    One path per (trip, sub-path) pair.  Groups come out in order of first
    appearance and points keep their stored order; nothing is sorted or
    deduplicated.
    """
    segments = []
    if not tracks.empty:
        grouped = tracks.groupby([TRIP, SUBPATH], sort=False, dropna=False)
        segments = [_segment(key, group) for key, group in grouped]

    return RouteLayer(
        segments=tuple(segments),
        palette=palette_tuple(style.palette),
        fallback_colour=style.fallback_colour,
        alpha=style.route_alpha,
        linewidth=style.route_linewidth,
        legend=style.legend,
    )


def compose_scene(
    templates: LayerTemplates,
    tracks: pd.DataFrame,
    title: str,
    style: StyleConfig,
) -> Scene:
    """Return a fresh scene; an empty *tracks* gives a scene with no paths."""
    missing = [c for c in TRACK_COLUMNS if c not in tracks.columns]
    if missing:
        raise ComposeError(f"route table lacks columns {missing}")

    route = build_route_layer(tracks, style)
    scene = Scene(
        layers=(
            templates.base,
            templates.world,
            route,
            *templates.overlays,
            TitleLayer(text=title, fontsize=style.title_fontsize, colour=style.title_colour),
        )
    )
    logger.debug("Composed '%s': %d segments, %d points",
                 title, scene.segment_count, scene.point_count)
    return scene
