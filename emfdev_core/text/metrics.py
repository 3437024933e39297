from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Protocol

from PIL import ImageFont


FONT_FALLBACK_PATTERNS = (
    "helvetica",
    "arial",
    "liberationsans",
    "liberation sans",
    "dejavusans",
    "dejavu sans",
)
FONT_DIRS = (
    Path.home() / "Library" / "Fonts",
    Path("/Library/Fonts"),
    Path("/System/Library/Fonts"),
    Path("/System/Library/Fonts/Supplemental"),
    Path("/usr/share/fonts"),
    Path("/usr/local/share/fonts"),
    Path("C:/Windows/Fonts"),
)
# U+FFFF is a noncharacter; every font renders it with its missing-glyph box.
_MISSING_GLYPH_PROBE = "\uffff"


class FontMetrics(Protocol):
    """Measurements for one loaded font, in device units."""

    def has_char(self, code: int) -> bool:
        ...

    def char_metrics(self, code: int) -> tuple[float, float, float]:
        """Return `(ascent, descent, advance_width)` for a code point."""
        ...

    def string_width(self, text: str) -> float:
        ...


class FontMetricsProvider(Protocol):
    def load(self, family: str, size: int, face: int) -> FontMetrics:
        """Load metrics for `family` at `size` device units.

        `face` follows the graphics-context convention: 1 plain, 2 bold,
        3 italic, 4 bold italic, 5 symbol.
        """
        ...


@dataclass(frozen=True)
class FixedPitchMetrics:
    size: int
    ascent_ratio: float = 0.75
    descent_ratio: float = 0.25
    advance_ratio: float = 0.6

    def has_char(self, code: int) -> bool:
        return 0 <= code < 0x110000 and not 0xD800 <= code <= 0xDFFF

    def char_metrics(self, code: int) -> tuple[float, float, float]:
        advance = 0.0 if code == 0 else self.size * self.advance_ratio
        return (self.size * self.ascent_ratio, self.size * self.descent_ratio, advance)

    def string_width(self, text: str) -> float:
        return len(text) * self.size * self.advance_ratio


class FixedPitchMetricsProvider:
    """Deterministic approximation used where no font files are available."""

    def load(self, family: str, size: int, face: int) -> FontMetrics:
        return FixedPitchMetrics(size=size)


class PillowFontMetrics:
    def __init__(self, font: ImageFont.FreeTypeFont | ImageFont.ImageFont, size: int) -> None:
        self._font = font
        self._freetype = isinstance(font, ImageFont.FreeTypeFont)
        if self._freetype:
            self._scale = size / float(font.size)
        else:
            left, top, right, bottom = font.getbbox("Ag")
            self._scale = size / float(max(1, bottom - top))
        self._missing = self._signature(_MISSING_GLYPH_PROBE) if self._freetype else None

    def has_char(self, code: int) -> bool:
        if code == 0:
            return True
        if not self._freetype:
            return 0 < code < 256
        if not 0 < code < 0x110000 or 0xD800 <= code <= 0xDFFF:
            return False
        ch = chr(code)
        if ch.isspace():
            return True
        return self._signature(ch) != self._missing

    def char_metrics(self, code: int) -> tuple[float, float, float]:
        if code == 0:
            ascent, descent = self._font_extent()
            return (ascent, descent, 0.0)
        if not 0 < code < 0x110000 or 0xD800 <= code <= 0xDFFF:
            return (0.0, 0.0, 0.0)
        ch = chr(code)
        if self._freetype:
            left, top, right, bottom = self._font.getbbox(ch, anchor="ls")
            ascent = max(0.0, -float(top))
            descent = max(0.0, float(bottom))
        else:
            left, top, right, bottom = self._font.getbbox(ch)
            ascent = float(bottom - top)
            descent = 0.0
        width = float(self._font.getlength(ch))
        return (ascent * self._scale, descent * self._scale, width * self._scale)

    def string_width(self, text: str) -> float:
        if not text:
            return 0.0
        return float(self._font.getlength(text)) * self._scale

    def _font_extent(self) -> tuple[float, float]:
        if self._freetype:
            ascent, descent = self._font.getmetrics()
            return (ascent * self._scale, descent * self._scale)
        left, top, right, bottom = self._font.getbbox("Ag")
        return ((bottom - top) * self._scale, 0.0)

    def _signature(self, ch: str) -> tuple[object, ...]:
        return (self._font.getbbox(ch), self._font.getlength(ch))


class PillowFontMetricsProvider:
    """Font metrics from system TrueType/OpenType files via Pillow."""

    def load(self, family: str, size: int, face: int) -> FontMetrics:
        return PillowFontMetrics(_load_font(family, max(1, size), face), max(1, size))


@lru_cache(maxsize=64)
def _load_font(family: str, size: int, face: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    font_path = _resolve_font_path(family, face)
    if font_path is not None:
        try:
            return ImageFont.truetype(str(font_path), size=size)
        except OSError:
            pass
    try:
        return ImageFont.load_default(size=size)
    except (ImportError, TypeError):
        return ImageFont.load_default()


@lru_cache(maxsize=1)
def _font_candidates() -> tuple[Path, ...]:
    candidates: list[Path] = []
    for base in FONT_DIRS:
        if not base.exists():
            continue
        for ext in ("*.ttf", "*.otf", "*.ttc"):
            candidates.extend(base.rglob(ext))
    return tuple(sorted(candidates))


def _resolve_font_path(family: str, face: int) -> Path | None:
    wanted = family.strip().lower()
    patterns = ((wanted,) if wanted else ()) + FONT_FALLBACK_PATTERNS
    style_hints = {2: ("bold",), 3: ("italic", "oblique"), 4: ("bolditalic", "boldoblique")}.get(face, ())
    candidates = _font_candidates()
    for pattern in patterns:
        p = pattern.replace(" ", "")
        matches = [path for path in candidates if p in path.stem.lower().replace(" ", "").replace("-", "")]
        if not matches:
            continue
        for hint in style_hints:
            for path in matches:
                if path.stem.lower().replace("-", "").endswith(hint):
                    return path
        return min(matches, key=lambda path: len(path.stem))
    return None
