from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal, Optional


Color = tuple[int, int, int, int]
LineEnd = Literal["round", "butt", "square"]
LineJoin = Literal["round", "mitre", "bevel"]

TRANSPARENT_WHITE: Color = (255, 255, 255, 0)
BLACK: Color = (0, 0, 0, 255)
WHITE: Color = (255, 255, 255, 255)

# Line types are packed dash/gap lengths, one hex digit each, in points.
LTY_BLANK = -1
LTY_SOLID = 0
LTY_DASHED = 0x44
LTY_DOTTED = 0x31
LTY_DOTDASH = 0x3431
LTY_LONGDASH = 0x37
LTY_TWODASH = 0x2622

NAMED_COLORS: dict[str, Color] = {
    "transparent": TRANSPARENT_WHITE,
    "black": BLACK,
    "white": WHITE,
    "red": (255, 0, 0, 255),
    "green": (0, 255, 0, 255),
    "blue": (0, 0, 255, 255),
    "gray": (190, 190, 190, 255),
    "grey": (190, 190, 190, 255),
}


@dataclass(frozen=True)
class GraphicsContext:
    """Drawing parameters for a single primitive call.

    `lwd` is in 1/96 inch, `ps` in points, `fontface` is 1 plain, 2 bold,
    3 italic, 4 bold italic, 5 symbol.
    """

    col: Color = BLACK
    fill: Color = TRANSPARENT_WHITE
    lwd: float = 1.0
    lty: int = LTY_SOLID
    lend: LineEnd = "round"
    ljoin: LineJoin = "round"
    lmitre: float = 10.0
    cex: float = 1.0
    ps: float = 12.0
    fontface: int = 1
    fontfamily: str = ""

    def __post_init__(self) -> None:
        if self.lwd < 0:
            raise ValueError("GraphicsContext `lwd` must be >= 0")
        if self.lmitre < 1.0:
            raise ValueError("GraphicsContext `lmitre` must be >= 1")
        if self.cex <= 0 or self.ps <= 0:
            raise ValueError("GraphicsContext `cex` and `ps` must be > 0")

    @property
    def effective_pointsize(self) -> float:
        return float(int(self.cex * self.ps + 0.5))

    def with_changes(self, **changes: object) -> "GraphicsContext":
        return replace(self, **changes)


def is_transparent(color: Color) -> bool:
    return color[3] == 0


def is_opaque(color: Color) -> bool:
    return color[3] == 255


def is_partially_transparent(color: Color) -> bool:
    return 0 < color[3] < 255


def rgb(color: Color) -> tuple[int, int, int]:
    return (color[0], color[1], color[2])


def parse_color(value: Optional[str]) -> Optional[Color]:
    """Parse `#rgb[a]`, `#rrggbb[aa]`, `rgb(r, g, b)` or a color name."""
    if not value:
        return None
    value = value.strip().lower()
    if value == "none":
        return None
    if value in NAMED_COLORS:
        return NAMED_COLORS[value]
    if value.startswith("#"):
        hex_value = value[1:]
        try:
            if len(hex_value) in (3, 4):
                parts = [int(ch * 2, 16) for ch in hex_value]
            elif len(hex_value) in (6, 8):
                parts = [int(hex_value[i : i + 2], 16) for i in range(0, len(hex_value), 2)]
            else:
                return None
        except ValueError:
            return None
        if len(parts) == 3:
            parts.append(255)
        return (parts[0], parts[1], parts[2], parts[3])
    if value.startswith("rgb"):
        numbers = value[value.find("(") + 1 : value.find(")")].split(",")
        if len(numbers) >= 3:
            try:
                r = int(numbers[0])
                g = int(numbers[1])
                b = int(numbers[2])
            except ValueError:
                return None
            # Out-of-range components clamp, as in CSS.
            return (_clamp_channel(r), _clamp_channel(g), _clamp_channel(b), 255)
    return None


def _clamp_channel(value: int) -> int:
    return max(0, min(255, value))
