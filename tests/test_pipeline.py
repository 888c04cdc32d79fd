import pytest

from shipmap.errors import ComposeError, LoadError
from shipmap.models import OverlaySpec
from shipmap.pipeline import build_animation, build_static_map, load_inputs, run_pipeline


def test_run_pipeline_produces_all_artefacts(config):
    result = run_pipeline(config)

    out = config.paths.output_dir
    assert result.static_map == out / "static_map.png"
    assert result.animation == out / "animation.html"
    assert result.gif is None
    assert result.frames == 3
    assert all(p.exists() for p in result.artefacts())


def test_build_animation_returns_frames(config):
    config.animation.gif = True
    frames, result = build_animation(config)
    assert frames.titles == ["1791", "1792", "1793"]
    assert result.gif.is_file()
    assert result.static_map is None


def test_static_map_from_preloaded_inputs(config):
    inputs = load_inputs(config)
    path = build_static_map(config, inputs)
    assert path.is_file()


def test_missing_overlay_stops_before_rendering(config, tmp_path):
    config.overlays = [OverlaySpec(path=tmp_path / "ship.png", xmin=0, xmax=1, ymin=0, ymax=1)]
    with pytest.raises(LoadError):
        run_pipeline(config)
    assert not config.paths.output_dir.exists()


def test_bad_row_aborts_without_animation(config, tracks):
    tracks["lat"] = tracks["lat"].astype(object)
    tracks.loc[0, "lat"] = "?"
    tracks.to_csv(config.paths.tracks_csv, index=False)

    with pytest.raises(ComposeError):
        run_pipeline(config, static=False)
    assert not (config.paths.output_dir / "animation.html").exists()
