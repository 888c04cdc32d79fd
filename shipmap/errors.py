"""
errors.py – one exception per pipeline stage.

The CLI reports ``exc.stage`` so a failed run always says whether it died
while loading, composing, capturing or exporting.
"""
from __future__ import annotations


class ShipMapError(RuntimeError):
    """Base class; ``stage`` names the pipeline step that failed."""

    stage = "shipmap"

    def __str__(self) -> str:
        return f"[{self.stage}] {super().__str__()}"


class LoadError(ShipMapError):
    """Missing or unreadable input table, boundary file or overlay image."""

    stage = "load"


class ComposeError(ShipMapError):
    """A scene could not be assembled (bad coordinates, undefined key …)."""

    stage = "compose"


class CaptureError(ShipMapError):
    """The rendering backend failed while drawing a scene."""

    stage = "capture"


class ExportError(ShipMapError):
    """The finished frames could not be written out."""

    stage = "export"


class AnimationStateError(ShipMapError):
    """Illegal frame-sequence transition (e.g. a second run without reset)."""

    stage = "animate"
