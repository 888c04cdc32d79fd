"""
export.py – write finished frames out (HTML player, GIF, single PNG)

Artefacts are rendered into a staging location next to the destination and
moved into place only once complete, so a failed export leaves nothing
half-written behind.
"""
from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Sequence

import matplotlib.image as mpimg
from matplotlib.animation import AbstractMovieWriter, HTMLWriter, PillowWriter
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure

from .animate import Frame
from .config import StyleConfig
from .errors import ExportError
from .models import Scene
from .render import open_surface

logger = logging.getLogger("shipmap.export")

_PLAYER_DPI = 100


# ────────────────────────────────────────────────────────────────────────────
def _write_movie(frames: Sequence[Frame], writer: AbstractMovieWriter, outfile: Path) -> None:
    """Replay the captured pixel buffers through a matplotlib movie writer."""
    h, w = frames[0].image.shape[:2]
    for frame in frames:
        if frame.image.shape[:2] != (h, w):
            raise ExportError(
                f"Frame {frame.index} is {frame.size}, expected {(w, h)} – mixed surfaces?"
            )

    fig = Figure(figsize=(w / _PLAYER_DPI, h / _PLAYER_DPI), dpi=_PLAYER_DPI)
    FigureCanvasAgg(fig)
    ax = fig.add_axes([0, 0, 1, 1])
    ax.set_axis_off()
    im = ax.imshow(frames[0].image)

    with writer.saving(fig, str(outfile), _PLAYER_DPI):
        for frame in frames:
            im.set_data(frame.image)
            writer.grab_frame()


def _replace(src: Path, dst: Path) -> None:
    if dst.is_dir():
        shutil.rmtree(dst)
    os.replace(src, dst)


def _staging_dir(out_dir: Path, name: str) -> Path:
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        return Path(tempfile.mkdtemp(prefix=f".{name}-", dir=out_dir))
    except OSError as exc:
        raise ExportError(f"Output directory {out_dir} is not writable: {exc}") from exc


# ────────────────────────────────────────────────────────────────────────────
def export_html(
    frames: Sequence[Frame],
    out_dir: Path | str,
    fps: float = 2.0,
    default_mode: str = "loop",
    name: str = "animation",
) -> Path:
    """
    Write ``<name>.html`` (a JavaScript frame player) plus the PNG frames it
    loads from ``<name>_frames/``.  Returns the HTML path.
    """
    frames = list(frames)
    if not frames:
        raise ExportError("Nothing to export – the frame sequence is empty")

    out_dir = Path(out_dir)
    staging = _staging_dir(out_dir, name)
    html = out_dir / f"{name}.html"
    frame_dir = out_dir / f"{name}_frames"

    try:
        writer = HTMLWriter(fps=fps, embed_frames=False, default_mode=default_mode)
        _write_movie(frames, writer, staging / html.name)
        _replace(staging / frame_dir.name, frame_dir)
        _replace(staging / html.name, html)
    except ExportError:
        raise
    except Exception as exc:  # noqa: BLE001 – writer/OS errors are all fatal here
        raise ExportError(f"HTML export to {out_dir} failed: {exc}") from exc
    finally:
        shutil.rmtree(staging, ignore_errors=True)

    logger.info("Animation written to %s (%d frames @ %.1f fps)", html, len(frames), fps)
    return html


def export_gif(frames: Sequence[Frame], path: Path | str, fps: float = 2.0) -> Path:
    frames = list(frames)
    if not frames:
        raise ExportError("Nothing to export – the frame sequence is empty")

    path = Path(path)
    staging = _staging_dir(path.parent, path.stem)
    try:
        _write_movie(frames, PillowWriter(fps=fps), staging / path.name)
        _replace(staging / path.name, path)
    except ExportError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise ExportError(f"GIF export to {path} failed: {exc}") from exc
    finally:
        shutil.rmtree(staging, ignore_errors=True)

    logger.info("GIF written to %s (%d frames)", path, len(frames))
    return path


def save_scene_png(scene: Scene, path: Path | str, style: StyleConfig) -> Path:
    """Render a single scene (the static map) straight to a PNG file."""
    path = Path(path)
    with open_surface(style) as surface:
        image = surface.render(scene)

    staging = _staging_dir(path.parent, path.stem)
    try:
        mpimg.imsave(staging / path.name, image, format="png")
        _replace(staging / path.name, path)
    except OSError as exc:
        raise ExportError(f"Cannot write {path}: {exc}") from exc
    finally:
        shutil.rmtree(staging, ignore_errors=True)

    logger.info("Static map written to %s", path)
    return path
