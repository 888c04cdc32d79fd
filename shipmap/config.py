"""
config.py – run configuration for the static map and the year animation.

Every section has working defaults; a YAML or JSON file only needs the keys
it overrides.  The CLI applies its flags on top of whatever was loaded.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml
from pydantic import BaseModel

from . import INPUT_DIR, OUTPUT_DIR
from .models import BoundingBox, OverlaySpec


class LogLevel(Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


ANIMATION_MODES = ("loop", "once", "reflect")

DEFAULT_PALETTE: Dict[str, str] = {
    "British": "#b2182b",
    "Dutch": "#e08214",
    "French": "#2166ac",
    "Spanish": "#1b7837",
    "Swedish": "#762a83",
    "Danish": "#8c510a",
}


@dataclass
class PathConfig:
    """Input and output locations"""
    tracks_csv: Path = INPUT_DIR / "cliwoc_sample.csv"
    world_path: Path = INPUT_DIR / "world.geojson"
    output_dir: Path = OUTPUT_DIR

    def __post_init__(self):
        """Ensure paths are Path objects"""
        for field_name in self.__dataclass_fields__:
            value = getattr(self, field_name)
            if isinstance(value, str):
                setattr(self, field_name, Path(value))

    def resolve(self, base: Path) -> None:
        """Anchor relative paths at *base*"""
        for field_name in self.__dataclass_fields__:
            value = getattr(self, field_name)
            if not value.is_absolute():
                setattr(self, field_name, base / value)


@dataclass
class StyleConfig:
    """Figure geometry, colours and line styling shared by every frame"""
    figsize: Tuple[float, float] = (12.0, 6.5)
    dpi: int = 100
    extent: List[float] = None  # xmin, xmax, ymin, ymax (degrees)
    background: str = "#f3ead3"
    land_fill: str = "#d9c9a3"
    land_edge: str = "#a8976f"
    land_linewidth: float = 0.3
    route_alpha: float = 0.4
    route_linewidth: float = 0.6
    palette: Dict[str, str] = None
    fallback_colour: str = "#555555"
    title_fontsize: float = 16
    title_colour: str = "#3b2f1e"
    legend: bool = True
    static_title: str = "Ship logbook routes, 1750–1850"

    def __post_init__(self):
        if self.extent is None:
            self.extent = [-180.0, 180.0, -60.0, 85.0]
        if self.palette is None:
            self.palette = dict(DEFAULT_PALETTE)
        self.figsize = tuple(self.figsize)

    @property
    def bbox(self) -> BoundingBox:
        return BoundingBox(*self.extent)


@dataclass
class AnimationConfig:
    """Frame generation and export settings"""
    column: str = "year"
    sort_values: bool = True
    fps: float = 2.0
    default_mode: str = "loop"
    skip_failed_frames: bool = False
    gif: bool = False
    progress: bool = True
    name: str = "animation"


@dataclass
class LoggingConfig:
    level: LogLevel = LogLevel.INFO


@dataclass
class ShipMapConfig:
    """Main configuration class containing all settings"""
    paths: PathConfig = None
    style: StyleConfig = None
    animation: AnimationConfig = None
    logging: LoggingConfig = None
    overlays: List[OverlaySpec] = field(default_factory=list)

    def __post_init__(self):
        if self.paths is None:
            self.paths = PathConfig()
        if self.style is None:
            self.style = StyleConfig()
        if self.animation is None:
            self.animation = AnimationConfig()
        if self.logging is None:
            self.logging = LoggingConfig()
        self.overlays = [
            o if isinstance(o, OverlaySpec) else OverlaySpec(**o) for o in self.overlays
        ]

    def resolve_paths(self, base: Path) -> None:
        """Relative paths in a config file are relative to that file's folder"""
        self.paths.resolve(base)
        self.overlays = [
            o if o.path.is_absolute() else o.model_copy(update={"path": base / o.path})
            for o in self.overlays
        ]

    def save_to_file(self, file_path: Union[str, Path]):
        """Save configuration to file (JSON or YAML)"""
        file_path = Path(file_path)
        config_dict = self.to_dict()

        if file_path.suffix.lower() in [".yaml", ".yml"]:
            with open(file_path, "w") as f:
                yaml.safe_dump(config_dict, f, default_flow_style=False, indent=2,
                               sort_keys=False, allow_unicode=True)
        else:
            with open(file_path, "w") as f:
                json.dump(config_dict, f, indent=2, default=str)

    @classmethod
    def load_from_file(cls, file_path: Union[str, Path]) -> "ShipMapConfig":
        """Load configuration from file"""
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        if file_path.suffix.lower() in [".yaml", ".yml"]:
            with open(file_path, "r") as f:
                config_data = yaml.safe_load(f) or {}
        else:
            with open(file_path, "r") as f:
                config_data = json.load(f)

        config = cls.from_dict(config_data)
        config.resolve_paths(file_path.resolve().parent)
        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to plain YAML/JSON-safe values"""
        def convert_value(value):
            if isinstance(value, BaseModel):
                return value.model_dump(mode="json")
            elif isinstance(value, Path):
                return str(value)
            elif isinstance(value, Enum):
                return value.value
            elif isinstance(value, dict):
                return {k: convert_value(v) for k, v in value.items()}
            elif isinstance(value, (list, tuple)):
                return [convert_value(item) for item in value]
            else:
                return value

        data = {
            name: convert_value(asdict(getattr(self, name)))
            for name in ("paths", "style", "animation", "logging")
        }
        data["overlays"] = convert_value(self.overlays)
        return data

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "ShipMapConfig":
        """Create configuration from dictionary"""
        config_kwargs: Dict[str, Any] = {}

        if "paths" in config_dict:
            config_kwargs["paths"] = PathConfig(**config_dict["paths"])

        if "style" in config_dict:
            config_kwargs["style"] = StyleConfig(**config_dict["style"])

        if "animation" in config_dict:
            config_kwargs["animation"] = AnimationConfig(**config_dict["animation"])

        if "logging" in config_dict:
            level = config_dict["logging"].get("level", LogLevel.INFO.value)
            config_kwargs["logging"] = LoggingConfig(level=LogLevel(str(level).lower()))

        if "overlays" in config_dict:
            config_kwargs["overlays"] = [OverlaySpec(**o) for o in config_dict["overlays"] or []]

        return cls(**config_kwargs)

    def validate(self) -> List[str]:
        """Validate configuration and return list of issues"""
        issues = []

        if len(self.style.extent) != 4:
            issues.append(f"extent needs 4 values, got {len(self.style.extent)}")
        else:
            try:
                self.style.bbox
            except ValueError as exc:
                issues.append(f"Invalid extent: {exc}")

        if self.style.dpi <= 0:
            issues.append(f"dpi must be positive, got {self.style.dpi}")

        if any(v <= 0 for v in self.style.figsize):
            issues.append(f"figsize must be positive, got {self.style.figsize}")

        if not 0 <= self.style.route_alpha <= 1:
            issues.append(f"route_alpha must lie in [0, 1], got {self.style.route_alpha}")

        if self.animation.fps <= 0:
            issues.append(f"fps must be positive, got {self.animation.fps}")

        if self.animation.default_mode not in ANIMATION_MODES:
            issues.append(
                f"Unknown animation mode {self.animation.default_mode!r} "
                f"(expected one of {', '.join(ANIMATION_MODES)})"
            )

        if not self.animation.column:
            issues.append("animation column must not be empty")

        return issues


def load_config(path: Optional[Union[str, Path]] = None) -> ShipMapConfig:
    """Defaults when *path* is None, otherwise the file's contents."""
    if path is None:
        return ShipMapConfig()
    return ShipMapConfig.load_from_file(path)
