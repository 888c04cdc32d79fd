from pathlib import Path

import geopandas as gpd
import matplotlib.image as mpimg
import numpy as np
import pandas as pd
import pytest
from shapely.geometry import Polygon

from shipmap.composer import LayerTemplates
from shipmap.config import AnimationConfig, PathConfig, ShipMapConfig, StyleConfig

# years deliberately out of order: 1792 is seen first
TRACK_ROWS = [
    # lon,  lat,   trp, group.regroup, year, nat
    (-5.0, 50.0, 1, 1, 1792, "British"),
    (-12.0, 40.0, 1, 1, 1792, "British"),
    (-20.0, 30.0, 1, 1, 1792, "British"),
    (-25.0, 10.0, 1, 2, 1792, "British"),
    (-20.0, -5.0, 1, 2, 1792, "British"),
    (4.0, 52.0, 2, 1, 1791, "Dutch"),
    (-3.0, 45.0, 2, 1, 1791, "Dutch"),
    (-15.0, 25.0, 2, 1, 1791, "Dutch"),
    (-6.0, 36.0, 3, 1, 1793, "Spanish"),
    (-30.0, 28.0, 3, 1, 1793, "Spanish"),
    (-55.0, 18.0, 3, 1, 1793, "Spanish"),
    (-1.5, 47.0, 4, 1, 1791, "French"),
    (-30.0, 40.0, 4, 1, 1791, "French"),
]
COLUMNS = ["lon", "lat", "trp", "group.regroup", "year", "nat"]


@pytest.fixture
def tracks() -> pd.DataFrame:
    return pd.DataFrame(TRACK_ROWS, columns=COLUMNS)


@pytest.fixture
def tracks_csv(tmp_path, tracks) -> Path:
    path = tmp_path / "tracks.csv"
    tracks.to_csv(path, index=False)
    return path


@pytest.fixture
def world() -> gpd.GeoDataFrame:
    return gpd.GeoDataFrame(
        {"name": ["Europe", "Africa"]},
        geometry=[
            Polygon([(-10, 36), (30, 36), (30, 60), (-10, 55)]),
            Polygon([(-17, 21), (32, 31), (40, -15), (12, -17)]),
        ],
        crs="EPSG:4326",
    )


@pytest.fixture
def world_file(tmp_path, world) -> Path:
    path = tmp_path / "world.geojson"
    world.to_file(path, driver="GeoJSON")
    return path


@pytest.fixture
def overlay_png(tmp_path) -> Path:
    rgba = np.zeros((16, 24, 4), dtype=np.uint8)
    rgba[..., 0] = 200
    rgba[..., 3] = 255
    rgba[4:12, 6:18, 2] = 180
    path = tmp_path / "compass.png"
    mpimg.imsave(path, rgba)
    return path


@pytest.fixture
def style() -> StyleConfig:
    return StyleConfig(figsize=(4.0, 2.5), dpi=50, extent=[-60.0, 60.0, -40.0, 60.0])


@pytest.fixture
def animation() -> AnimationConfig:
    return AnimationConfig(progress=False)


@pytest.fixture
def templates(world, style) -> LayerTemplates:
    return LayerTemplates.build(world, style)


@pytest.fixture
def config(tmp_path, tracks_csv, world_file, style, animation) -> ShipMapConfig:
    return ShipMapConfig(
        paths=PathConfig(tracks_csv=tracks_csv, world_path=world_file,
                         output_dir=tmp_path / "out"),
        style=style,
        animation=animation,
    )
