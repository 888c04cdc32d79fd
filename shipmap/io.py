"""
io.py – load stage: track table, world polygons and raster overlays

Nothing here validates individual rows.  A bad coordinate travels on to the
composer and fails there; only missing files and missing columns stop the
run at load time.
"""

from __future__ import annotations

import logging
import warnings
from pathlib import Path
from typing import Final, Iterable, List

import geopandas as gpd
import numpy as np
import pandas as pd
import rasterio
from rasterio.errors import NotGeoreferencedWarning, RasterioIOError

from .errors import LoadError
from .models import ImageLayer, OverlaySpec

logger = logging.getLogger("shipmap.io")

# ────────────────────────────────────────────────────────────────────────────
LON: Final[str] = "lon"
LAT: Final[str] = "lat"
TRIP: Final[str] = "trp"
SUBPATH: Final[str] = "group.regroup"
YEAR: Final[str] = "year"
NATIONALITY: Final[str] = "nat"

TRACK_COLUMNS: Final[List[str]] = [LON, LAT, TRIP, SUBPATH, YEAR, NATIONALITY]


# ────────────────────────────────────────────────────────────────────────────
def load_tracks(csv_path: Path | str) -> pd.DataFrame:
    """
    Read the track-point CSV once.

    Only the header is checked; the frame is returned as read so that the
    stored point order inside every (trip, sub-path) group is preserved.
    """
    csv_path = Path(csv_path)
    if not csv_path.is_file():
        raise LoadError(f"Track table not found: {csv_path}")

    try:
        df = pd.read_csv(csv_path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise LoadError(f"Cannot parse {csv_path}: {exc}") from exc

    missing = [c for c in TRACK_COLUMNS if c not in df.columns]
    if missing:
        raise LoadError(f"{csv_path.name}: missing columns {missing}")

    logger.info("Loaded %d track points (%d trips) from %s",
                len(df), df[TRIP].nunique(), csv_path.name)
    return df


def load_world(path: Path | str) -> gpd.GeoDataFrame:
    """Background landmasses; used in whatever CRS the file declares."""
    path = Path(path)
    if not path.exists():
        raise LoadError(f"Boundary file not found: {path}")

    try:
        gdf = gpd.read_file(path)
    except Exception as exc:  # noqa: BLE001 – driver errors vary by engine
        raise LoadError(f"Cannot read boundary file {path}: {exc}") from exc

    logger.info("Loaded %d world polygons from %s (crs=%s)", len(gdf), path.name, gdf.crs)
    return gdf


# ────────────────────────────────────────────────────────────────────────────
def _colormap(src) -> dict | None:
    if src.count != 1:
        return None
    try:
        return src.colormap(1)
    except ValueError:  # band has no colour table
        return None


def read_raster_pixels(path: Path | str) -> np.ndarray:
    """
    Return the image as a (rows, cols, bands) array, or (rows, cols) when it
    only has one band.  Plain PNG/JPEG files carry no transform, so rasterio's
    not-georeferenced warning is silenced.  A palette-indexed image is
    expanded to RGBA through its colour table.
    """
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", NotGeoreferencedWarning)
        with rasterio.open(path) as src:
            data = src.read()
            colormap = _colormap(src)

    if colormap is not None:
        lut = np.array([colormap.get(i, (0, 0, 0, 0)) for i in range(256)], dtype=np.uint8)
        return lut[data[0].astype(np.uint8)]

    pixels = np.moveaxis(data, 0, -1)
    if pixels.shape[-1] == 1:
        pixels = pixels[..., 0]
    return pixels


def load_overlay(spec: OverlaySpec) -> ImageLayer:
    if not spec.path.is_file():
        raise LoadError(f"Overlay image not found: {spec.path}")

    try:
        pixels = read_raster_pixels(spec.path)
    except RasterioIOError as exc:
        raise LoadError(f"Cannot read overlay {spec.path}: {exc}") from exc

    logger.debug("Overlay %s: %s px at %s", spec.path.name, pixels.shape[:2], spec.bbox)
    return ImageLayer(
        source=spec.path.name,
        extent=spec.bbox,
        pixels=pixels,
        zorder=spec.zorder,
        alpha=spec.alpha,
    )


def load_overlays(specs: Iterable[OverlaySpec]) -> List[ImageLayer]:
    """All overlays, in the given order; the first missing asset is fatal."""
    layers = [load_overlay(s) for s in specs]
    if layers:
        logger.info("Loaded %d overlay image(s)", len(layers))
    return layers
