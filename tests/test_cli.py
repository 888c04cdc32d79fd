import importlib
from unittest import mock

import pytest

from shipmap import PROJECT_ROOT, cli


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    # keep pytest's own log capture in place
    monkeypatch.setattr(cli, "configure", mock.MagicMock())


def test_overlay_argument():
    spec = cli._overlay("img/compass.png:-95:-70:-50:-25")
    assert str(spec.path) == "img/compass.png"
    assert (spec.xmin, spec.xmax, spec.ymin, spec.ymax) == (-95, -70, -50, -25)


@pytest.mark.parametrize("text", ["compass.png:1:2:3", "c.png:5:1:0:1", "c.png:a:b:c:d"])
def test_overlay_argument_rejects(text):
    with pytest.raises(Exception):
        cli._overlay(text)


def test_main_writes_static_map_and_animation(tracks_csv, world_file, overlay_png, tmp_path):
    out = tmp_path / "out"
    status = cli.main([
        "--csv", str(tracks_csv),
        "--world", str(world_file),
        "--out", str(out),
        "--overlay", f"{overlay_png}:-50:-30:-35:-20",
        "--gif",
    ])
    assert status == 0
    assert (out / "static_map.png").is_file()
    assert (out / "animation.html").is_file()
    assert len(list((out / "animation_frames").glob("*.png"))) == 3
    assert (out / "animation.gif").is_file()


def test_main_reports_missing_asset(tracks_csv, tmp_path, caplog):
    status = cli.main([
        "--csv", str(tracks_csv),
        "--world", str(tmp_path / "missing.geojson"),
        "--out", str(tmp_path / "out"),
        "--no-static",
    ])
    assert status == 1
    assert "[load]" in caplog.text
    assert not (tmp_path / "out").exists()


def test_main_rejects_invalid_config(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("animation:\n  fps: 0\n")
    assert cli.main(["--config", str(path)]) == 2


def test_overrides_apply(tmp_path):
    args = cli.build_parser().parse_args(
        ["--unsorted", "--skip-failed-frames", "--fps", "5", "--column", "nat"]
    )
    config = cli.apply_overrides(cli.load_config(), args)
    assert config.animation.sort_values is False
    assert config.animation.skip_failed_frames is True
    assert config.animation.fps == 5
    assert config.animation.column == "nat"


def test_defaults_do_not_depend_on_working_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    out = tmp_path / "out"
    assert cli.main(["--no-animation", "--out", str(out)]) == 0
    assert (out / "static_map.png").is_file()


def test_example_config_draws_overlays(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    out = tmp_path / "out"
    status = cli.main([
        "--config", str(PROJECT_ROOT / "config" / "example.yaml"),
        "--no-animation",
        "--out", str(out),
    ])
    assert status == 0
    assert (out / "static_map.png").is_file()


def test_main_rejects_malformed_yaml(tmp_path, caplog):
    path = tmp_path / "broken.yaml"
    path.write_text("animation: [fps: 2\n")
    assert cli.main(["--config", str(path)]) == 2
    assert "Cannot load config" in caplog.text


def test_log_level_choices():
    parser = cli.build_parser()
    assert parser.parse_args(["--log-level", "DEBUG"]).log_level == "debug"
    with pytest.raises(SystemExit) as exc:
        parser.parse_args(["--log-level", "verbose"])
    assert exc.value.code == 2


def test_zero_fps_reaches_validation(caplog):
    assert cli.main(["--fps", "0"]) == 2
    assert "fps must be positive" in caplog.text


def test_empty_column_reaches_validation():
    args = cli.build_parser().parse_args(["--column", ""])
    config = cli.apply_overrides(cli.load_config(), args)
    assert config.animation.column == ""
    assert "animation column must not be empty" in config.validate()


def test_module_import_does_not_run_cli(monkeypatch):
    run = mock.MagicMock(return_value=0)
    monkeypatch.setattr(cli, "main", run)
    importlib.import_module("shipmap.__main__")
    run.assert_not_called()
