"""
render.py – the one rendering surface a run draws on

A single matplotlib Figure on an Agg canvas is acquired before the frame
loop and handed to every capture.  ``RenderSurface.frame`` clears it on the
way out, whether the drawing finished or raised.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from functools import singledispatch
from typing import Iterator

import numpy as np
from matplotlib.axes import Axes
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.lines import Line2D

from .config import StyleConfig
from .errors import CaptureError
from .models import BaseFrameLayer, ImageLayer, PolygonLayer, RouteLayer, Scene, TitleLayer

log = logging.getLogger("shipmap.render")


# ────────────────────────────────────────────────────────────────────────────
# layer painters
# ────────────────────────────────────────────────────────────────────────────
@singledispatch
def draw_layer(layer, ax: Axes) -> None:
    raise CaptureError(f"No painter for layer type {type(layer).__name__}")


@draw_layer.register
def _(layer: BaseFrameLayer, ax: Axes) -> None:
    xmin, xmax, ymin, ymax = layer.extent.as_extent()
    ax.figure.set_facecolor(layer.background)
    ax.set_facecolor(layer.background)
    ax.set_xlim(xmin, xmax)
    ax.set_ylim(ymin, ymax)
    ax.set_aspect(layer.aspect)
    # later layers must not rescale the frame
    ax.set_autoscale_on(False)
    ax.set_xticks([])
    ax.set_yticks([])


@draw_layer.register
def _(layer: PolygonLayer, ax: Axes) -> None:
    if layer.polygons.empty:
        return
    layer.polygons.plot(
        ax=ax,
        facecolor=layer.facecolor,
        edgecolor=layer.edgecolor,
        linewidth=layer.linewidth,
        aspect=None,
        zorder=1,
    )


@draw_layer.register
def _(layer: RouteLayer, ax: Axes) -> None:
    if not layer.segments:
        return
    for seg in layer.segments:
        xy = np.asarray(seg.coords, dtype=float).reshape(-1, 2)
        ax.plot(xy[:, 0], xy[:, 1], color=layer.colour_for(seg.nationality),
                linewidth=layer.linewidth, alpha=layer.alpha, zorder=2)

    if layer.legend:
        handles = [
            Line2D([], [], color=layer.colour_for(nat), linewidth=2, label=nat)
            for nat in layer.nationalities
        ]
        ax.legend(handles=handles, loc="lower left", frameon=False, fontsize=8)


@draw_layer.register
def _(layer: ImageLayer, ax: Axes) -> None:
    ax.imshow(
        layer.pixels,
        extent=layer.extent.as_extent(),
        zorder=layer.zorder,
        alpha=layer.alpha,
        cmap="gray" if layer.pixels.ndim == 2 else None,
        aspect=ax.get_aspect(),
    )


@draw_layer.register
def _(layer: TitleLayer, ax: Axes) -> None:
    ax.set_title(layer.text, fontsize=layer.fontsize, color=layer.colour)


# ────────────────────────────────────────────────────────────────────────────
# surface
# ────────────────────────────────────────────────────────────────────────────
class RenderSurface:
    """A reusable Figure; one frame is drawn on it at a time."""

    def __init__(self, style: StyleConfig):
        self.style = style
        self.figure = Figure(figsize=style.figsize, dpi=style.dpi)
        self.canvas = FigureCanvasAgg(self.figure)
        self.closed = False

    @property
    def is_clear(self) -> bool:
        return not self.figure.axes

    @contextmanager
    def frame(self) -> Iterator[Axes]:
        if self.closed:
            raise CaptureError("Rendering surface is already closed")
        ax = self.figure.add_subplot(1, 1, 1)
        try:
            yield ax
        finally:
            self.figure.clf()

    def render(self, scene: Scene) -> np.ndarray:
        """Draw *scene* and return a copy of the RGBA pixel buffer."""
        with self.frame() as ax:
            try:
                for layer in scene.layers:
                    draw_layer(layer, ax)
                self.canvas.draw()
            except CaptureError:
                raise
            except Exception as exc:  # noqa: BLE001 – matplotlib raises many types
                raise CaptureError(f"Drawing '{scene.title}' failed: {exc}") from exc
            image = np.asarray(self.canvas.buffer_rgba()).copy()

        log.debug("Captured '%s' (%dx%d px)", scene.title, image.shape[1], image.shape[0])
        return image

    def close(self) -> None:
        self.figure.clf()
        self.closed = True


@contextmanager
def open_surface(style: StyleConfig) -> Iterator[RenderSurface]:
    surface = RenderSurface(style)
    try:
        yield surface
    finally:
        surface.close()
