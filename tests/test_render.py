import numpy as np
import pytest

from shipmap.composer import compose_scene
from shipmap.errors import CaptureError
from shipmap.models import BoundingBox, ImageLayer, Scene
from shipmap.render import RenderSurface, open_surface


def test_render_returns_rgba_buffer(templates, tracks, style):
    scene = compose_scene(templates, tracks, "1791", style)
    with open_surface(style) as surface:
        image = surface.render(scene)

    # 4 in × 2.5 in at 50 dpi
    assert image.shape == (125, 200, 4)
    assert image.dtype == np.uint8


def test_surface_is_cleared_after_each_frame(templates, tracks, style):
    surface = RenderSurface(style)
    surface.render(compose_scene(templates, tracks, "a", style))
    assert surface.is_clear


def test_surface_is_cleared_when_drawing_fails(templates, style):
    surface = RenderSurface(style)
    broken = Scene(layers=(templates.base, object()))
    with pytest.raises(CaptureError) as err:
        surface.render(broken)
    assert err.value.stage == "capture"
    assert surface.is_clear


def test_rendering_is_deterministic(templates, tracks, style):
    scene = compose_scene(templates, tracks, "1792", style)
    with open_surface(style) as surface:
        first = surface.render(scene)
        second = surface.render(scene)
    assert np.array_equal(first, second)


def test_routes_change_the_picture(templates, tracks, style):
    with open_surface(style) as surface:
        empty = surface.render(compose_scene(templates, tracks.iloc[0:0], "x", style))
        full = surface.render(compose_scene(templates, tracks, "x", style))
    assert not np.array_equal(empty, full)


def test_image_overlay_is_drawn(templates, style):
    red = np.zeros((8, 8, 3), dtype=np.uint8)
    red[..., 0] = 255
    overlay = ImageLayer("red.png", BoundingBox(-20, 20, -10, 30), red, zorder=9)
    with open_surface(style) as surface:
        plain = surface.render(Scene(layers=(templates.base,)))
        marked = surface.render(Scene(layers=(templates.base, overlay)))
    assert not np.array_equal(plain, marked)


def test_closed_surface_refuses_frames(templates, style):
    with open_surface(style) as surface:
        pass
    with pytest.raises(CaptureError):
        surface.render(Scene(layers=(templates.base,)))
