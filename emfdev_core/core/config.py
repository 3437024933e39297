from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
import tomllib
from typing import Any

from .document import DEFAULT_DESCRIPTION, DEFAULT_FONT_FAMILY
from .graphics import Color, parse_color


@dataclass(frozen=True)
class DeviceConfig:
    """Page and default drawing parameters for an EMF device."""

    width_in: float = 7.0
    height_in: float = 7.0
    pointsize: float = 12.0
    family: str = DEFAULT_FONT_FAMILY
    bg: str = "transparent"
    fg: str = "black"
    user_lty: bool = True
    description: str = DEFAULT_DESCRIPTION
    buffered: bool = False

    def __post_init__(self) -> None:
        if self.width_in <= 0 or self.height_in <= 0:
            raise ValueError("DeviceConfig `width_in` and `height_in` must be > 0")
        if self.pointsize <= 0:
            raise ValueError("DeviceConfig `pointsize` must be > 0")
        if parse_color(self.bg) is None and self.bg.strip().lower() != "none":
            raise ValueError(f"DeviceConfig `bg` is not a color: {self.bg!r}")
        if parse_color(self.fg) is None:
            raise ValueError(f"DeviceConfig `fg` is not a color: {self.fg!r}")

    @property
    def bg_color(self) -> Color:
        return parse_color(self.bg) or (255, 255, 255, 0)

    @property
    def fg_color(self) -> Color:
        color = parse_color(self.fg)
        assert color is not None
        return color


_FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "width_in": (int, float),
    "height_in": (int, float),
    "pointsize": (int, float),
    "family": (str,),
    "bg": (str,),
    "fg": (str,),
    "user_lty": (bool,),
    "description": (str,),
    "buffered": (bool,),
}


def load_device_config(path: str | Path, **overrides: Any) -> DeviceConfig:
    """Read the `[device]` table of a TOML file; keyword overrides win."""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"device config not found: {config_path}")
    with config_path.open("rb") as f:
        raw = tomllib.load(f)
    table = raw.get("device", {})
    if not isinstance(table, dict):
        raise ValueError("device config `device` must be a table")
    return device_config_from_mapping({**table, **{k: v for k, v in overrides.items() if v is not None}})


def device_config_from_mapping(values: dict[str, Any]) -> DeviceConfig:
    known = {f.name for f in fields(DeviceConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"unknown device config field(s): {', '.join(unknown)}")
    kwargs: dict[str, Any] = {}
    for name, value in values.items():
        expected = _FIELD_TYPES[name]
        # bool is an int subclass; keep numeric fields numeric.
        if isinstance(value, bool) and bool not in expected:
            raise ValueError(f"device config `{name}` must be {expected[0].__name__}")
        if not isinstance(value, expected):
            raise ValueError(f"device config `{name}` must be {expected[0].__name__}")
        kwargs[name] = float(value) if float in expected else value
    return DeviceConfig(**kwargs)
