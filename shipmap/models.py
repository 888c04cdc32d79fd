"""Scene value types: bounding boxes, overlay entries and the drawable layers."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Hashable, Optional, Tuple, Union

import geopandas as gpd
import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


@dataclass(frozen=True)
class BoundingBox:
    xmin: float
    xmax: float
    ymin: float
    ymax: float

    def __post_init__(self):
        if self.xmin >= self.xmax:
            raise ValueError(f"xmin {self.xmin} must be below xmax {self.xmax}")
        if self.ymin >= self.ymax:
            raise ValueError(f"ymin {self.ymin} must be below ymax {self.ymax}")

    def as_extent(self) -> Tuple[float, float, float, float]:
        """(left, right, bottom, top) – the order ``Axes.imshow`` expects."""
        return self.xmin, self.xmax, self.ymin, self.ymax


class OverlaySpec(BaseModel):
    """
    One decorative raster overlay (compass rose, ship engraving …).
    The image carries no georeference; its placement is given here.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    xmin: float
    xmax: float
    ymin: float
    ymax: float
    zorder: int = 5
    alpha: float = Field(1.0, ge=0, le=1)

    @field_validator("path", mode="before")
    @classmethod
    def _strip_path(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def _check_bbox(self) -> "OverlaySpec":
        BoundingBox(self.xmin, self.xmax, self.ymin, self.ymax)  # raises on inverted box
        return self

    @property
    def bbox(self) -> BoundingBox:
        return BoundingBox(self.xmin, self.xmax, self.ymin, self.ymax)


# ────────────────────────────────────────────────────────────────────────────
# Layers
# ────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class BaseFrameLayer:
    """Coordinate frame: axis limits, background colour, aspect."""

    extent: BoundingBox
    background: str
    aspect: str = "equal"


@dataclass(frozen=True)
class PolygonLayer:
    """Background landmasses. The GeoDataFrame is shared read-only."""

    name: str
    facecolor: str
    edgecolor: str
    polygons: gpd.GeoDataFrame = field(compare=False, repr=False)
    linewidth: float = 0.3


@dataclass(frozen=True)
class PathSegment:
    """One continuous drawn path: a (trip, sub-path) group in stored order."""

    trip: Hashable
    subpath: Hashable
    nationality: str
    coords: Tuple[Tuple[float, float], ...]

    def __post_init__(self):
        for lon, lat in self.coords:
            if not (math.isfinite(lon) and math.isfinite(lat)):
                raise ValueError(
                    f"non-finite coordinate ({lon}, {lat}) in trip {self.trip!r}"
                )

    @property
    def n_points(self) -> int:
        return len(self.coords)


@dataclass(frozen=True)
class RouteLayer:
    segments: Tuple[PathSegment, ...]
    palette: Tuple[Tuple[str, str], ...]
    fallback_colour: str = "#555555"
    alpha: float = 0.4
    linewidth: float = 0.6
    legend: bool = True

    def colour_for(self, nationality: str) -> str:
        return dict(self.palette).get(nationality, self.fallback_colour)

    @property
    def nationalities(self) -> Tuple[str, ...]:
        return tuple(sorted({s.nationality for s in self.segments}))


@dataclass(frozen=True)
class ImageLayer:
    """Raster annotation placed at a caller-supplied bounding box."""

    source: str
    extent: BoundingBox
    pixels: np.ndarray = field(compare=False, repr=False)
    zorder: int = 5
    alpha: float = 1.0


@dataclass(frozen=True)
class TitleLayer:
    text: str
    fontsize: float = 16
    colour: str = "#3b2f1e"


Layer = Union[BaseFrameLayer, PolygonLayer, RouteLayer, ImageLayer, TitleLayer]


@dataclass(frozen=True)
class Scene:
    """An ordered tuple of layers; drawn first to last."""

    layers: Tuple[Layer, ...]

    @property
    def route(self) -> Optional[RouteLayer]:
        for layer in self.layers:
            if isinstance(layer, RouteLayer):
                return layer
        return None

    @property
    def title(self) -> Optional[str]:
        for layer in self.layers:
            if isinstance(layer, TitleLayer):
                return layer.text
        return None

    @property
    def segment_count(self) -> int:
        route = self.route
        return len(route.segments) if route else 0

    @property
    def point_count(self) -> int:
        route = self.route
        return sum(s.n_points for s in route.segments) if route else 0

    def layer_kinds(self) -> Tuple[str, ...]:
        return tuple(type(layer).__name__ for layer in self.layers)


def palette_tuple(palette: Dict[str, str]) -> Tuple[Tuple[str, str], ...]:
    """Freeze a nationality → colour mapping in a deterministic order."""
    return tuple(sorted(palette.items()))
