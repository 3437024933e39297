"""Interned pens, brushes and fonts.

Each distinct value is created once per document: the first request allocates
a handle from the document's shared counter and writes the creation record;
later requests for an equal value reuse that handle. Selection records are
only written when a category's active handle changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import struct
from typing import Generic, Hashable, Iterator, TypeVar

from ..text.encoding import encode_utf16le
from ..text.metrics import FontMetrics, FontMetricsProvider
from .coordinates import inches_to_device, LWD_UNITS_PER_INCH, POINTS_PER_INCH, points_to_device
from .errors import EmfFontError
from .graphics import (
    Color,
    GraphicsContext,
    LTY_BLANK,
    LTY_DASHED,
    LTY_DOTDASH,
    LTY_DOTTED,
    LTY_LONGDASH,
    LTY_SOLID,
    is_partially_transparent,
    is_transparent,
    rgb,
)
from .records import (
    CreateBrushRecord,
    EMR_SETMITERLIMIT,
    ExtCreateFontRecord,
    ExtCreatePenRecord,
    LOGFONT_FACESIZE,
    ModeRecord,
    Record,
    RecordWriter,
    SelectObjectRecord,
)

LOGGER = logging.getLogger(__name__)

PS_SOLID = 0x0
PS_DASH = 0x1
PS_DOT = 0x2
PS_DASHDOT = 0x3
PS_DASHDOTDOT = 0x4
PS_NULL = 0x5
PS_USERSTYLE = 0x7
PS_ENDCAP_ROUND = 0x000
PS_ENDCAP_SQUARE = 0x100
PS_ENDCAP_FLAT = 0x200
PS_JOIN_ROUND = 0x0000
PS_JOIN_BEVEL = 0x1000
PS_JOIN_MITER = 0x2000
PS_GEOMETRIC = 0x10000

BS_SOLID = 0
BS_NULL = 1

FW_NORMAL = 400
FW_BOLD = 700
DEFAULT_CHARSET = 1
OUT_STROKE_PRECIS = 3
CLIP_DEFAULT_PRECIS = 0
DEFAULT_QUALITY = 0
FF_DONTCARE_DEFAULT_PITCH = 0

MAX_DASH_ENTRIES = 8

_STANDARD_LTY_STYLES = {
    LTY_SOLID: PS_SOLID,
    LTY_DASHED: PS_DASH,
    LTY_DOTTED: PS_DOT,
    LTY_DOTDASH: PS_DASHDOT,
    LTY_LONGDASH: PS_DASHDOTDOT,
}
_CAP_STYLES = {"round": PS_ENDCAP_ROUND, "butt": PS_ENDCAP_FLAT, "square": PS_ENDCAP_SQUARE}
_JOIN_STYLES = {"round": PS_JOIN_ROUND, "mitre": PS_JOIN_MITER, "bevel": PS_JOIN_BEVEL}


@dataclass(frozen=True)
class Pen:
    style: int
    width: int
    brush_style: int
    rgb: tuple[int, int, int]
    hatch: int = 0
    style_entries: tuple[int, ...] = ()

    def creation_record(self, handle: int) -> Record:
        return ExtCreatePenRecord(
            handle=handle,
            style=self.style,
            width=self.width,
            brush_style=self.brush_style,
            rgb=self.rgb,
            hatch=self.hatch,
            style_entries=self.style_entries,
        )


@dataclass(frozen=True)
class Brush:
    style: int
    rgb: tuple[int, int, int]
    hatch: int = 0

    def creation_record(self, handle: int) -> Record:
        return CreateBrushRecord(handle=handle, style=self.style, rgb=self.rgb, hatch=self.hatch)


@dataclass(frozen=True)
class FontSource:
    """What the metrics provider needs to load the font; not part of identity."""

    family: str
    size: int
    face: int


@dataclass(frozen=True)
class Font:
    height: int
    width: int
    escapement: int
    orientation: int
    weight: int
    italic: int
    underline: int
    strike_out: int
    charset: int
    out_precision: int
    clip_precision: int
    quality: int
    pitch_and_family: int
    face: bytes
    source: FontSource | None = field(default=None, compare=False)

    def logfont(self) -> bytes:
        return struct.pack(
            "<iiiii8B",
            self.height,
            self.width,
            self.escapement,
            self.orientation,
            self.weight,
            self.italic,
            self.underline,
            self.strike_out,
            self.charset,
            self.out_precision,
            self.clip_precision,
            self.quality,
            self.pitch_and_family,
        ) + self.face.ljust(LOGFONT_FACESIZE * 2, b"\x00")

    def creation_record(self, handle: int) -> Record:
        return ExtCreateFontRecord(handle=handle, logfont=self.logfont())


def dash_entries(lty: int) -> tuple[int, ...]:
    """Dash/gap lengths in device units from a packed line type, low nibble first."""
    entries: list[int] = []
    while len(entries) < MAX_DASH_ENTRIES and lty & 15:
        entries.append(points_to_device(lty & 15))
        lty >>= 4
    return tuple(entries)


def pen_from_gc(gc: GraphicsContext, *, user_lty: bool) -> tuple[Pen, list[str]]:
    """Build the pen for a graphics context and list the approximations made."""
    notes: list[str] = []
    width = inches_to_device(gc.lwd / LWD_UNITS_PER_INCH)
    color = rgb(gc.col)
    if is_transparent(gc.col) or gc.lty == LTY_BLANK:
        return Pen(style=PS_GEOMETRIC | PS_NULL, width=width, brush_style=BS_NULL, rgb=color), notes
    if is_partially_transparent(gc.col):
        notes.append("partial transparency is not supported for EMF")

    style = PS_GEOMETRIC
    entries: tuple[int, ...] = ()
    if not user_lty:
        mapped = _STANDARD_LTY_STYLES.get(gc.lty)
        if mapped is None:
            notes.append(f"line type {gc.lty:#x} is not supported by EMF; using solid")
            mapped = PS_SOLID
        style |= mapped
    else:
        entries = dash_entries(gc.lty)
        style |= PS_USERSTYLE if entries else PS_SOLID
    style |= _CAP_STYLES.get(gc.lend, 0)
    style |= _JOIN_STYLES.get(gc.ljoin, 0)
    pen = Pen(style=style, width=width, brush_style=BS_SOLID, rgb=color, style_entries=entries)
    return pen, notes


def brush_from_color(color: Color) -> tuple[Brush, list[str]]:
    notes: list[str] = []
    if is_partially_transparent(color):
        notes.append("partial transparency is not supported for EMF")
    style = BS_NULL if is_transparent(color) else BS_SOLID
    return Brush(style=style, rgb=rgb(color)), notes


def font_for(face: int, pointsize: float, rot: float, family: str) -> Font:
    size = inches_to_device(pointsize / POINTS_PER_INCH)
    return Font(
        height=-size,
        width=0,
        escapement=int(rot) * 10,
        orientation=0,
        weight=FW_BOLD if face in (2, 4) else FW_NORMAL,
        italic=1 if face in (3, 4) else 0,
        underline=0,
        strike_out=0,
        charset=DEFAULT_CHARSET,
        out_precision=OUT_STROKE_PRECIS,
        clip_precision=CLIP_DEFAULT_PRECIS,
        quality=DEFAULT_QUALITY,
        pitch_and_family=FF_DONTCARE_DEFAULT_PITCH,
        face=encode_utf16le(family).data[: (LOGFONT_FACESIZE - 1) * 2],
        source=FontSource(family=family, size=size, face=face),
    )


class HandleAllocator:
    """One monotonic, 1-based handle counter shared by every resource kind."""

    def __init__(self) -> None:
        self._last = 0

    def allocate(self) -> int:
        self._last += 1
        return self._last

    @property
    def last_handle(self) -> int:
        return self._last

    @property
    def handle_count(self) -> int:
        # Readers expect one slot beyond the highest handle.
        return self._last + 1


R = TypeVar("R", bound=Hashable)


@dataclass
class CacheEntry(Generic[R]):
    handle: int
    value: R
    metrics: FontMetrics | None = None


class ResourceCache(Generic[R]):
    def __init__(self, kind: str, writer: RecordWriter, handles: HandleAllocator) -> None:
        self.kind = kind
        self._writer = writer
        self._handles = handles
        self._entries: dict[R, CacheEntry[R]] = {}
        self._active_handle = 0

    @property
    def active_handle(self) -> int:
        return self._active_handle

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, value: object) -> bool:
        return value in self._entries

    def __iter__(self) -> Iterator[CacheEntry[R]]:
        return iter(self._entries.values())

    def intern(self, candidate: R) -> tuple[CacheEntry[R], bool]:
        """Return the entry for `candidate` and whether it was just created."""
        entry = self._entries.get(candidate)
        if entry is not None:
            return entry, False
        entry = CacheEntry(handle=0, value=candidate)
        # Handles are taken only once the resource can be created.
        self._on_created(entry)
        entry.handle = self._handles.allocate()
        self._entries[candidate] = entry
        self._writer.write(candidate.creation_record(entry.handle))  # type: ignore[attr-defined]
        LOGGER.debug("created %s handle=%d", self.kind, entry.handle)
        return entry, True

    def select_if_changed(self, handle: int) -> bool:
        if handle == self._active_handle:
            return False
        self._writer.write(SelectObjectRecord(handle=handle))
        self._active_handle = handle
        return True

    def _on_created(self, entry: CacheEntry[R]) -> None:
        return None


class PenCache(ResourceCache[Pen]):
    def __init__(self, writer: RecordWriter, handles: HandleAllocator) -> None:
        super().__init__("pen", writer, handles)

    def select_if_changed(self, handle: int, miter_limit: int | None = None) -> bool:
        """Select a pen; a mitred pen is followed by its miter limit once per change."""
        changed = super().select_if_changed(handle)
        if changed and miter_limit is not None:
            self._writer.write(ModeRecord(record_type=EMR_SETMITERLIMIT, value=miter_limit))
        return changed


class BrushCache(ResourceCache[Brush]):
    def __init__(self, writer: RecordWriter, handles: HandleAllocator) -> None:
        super().__init__("brush", writer, handles)


class FontCache(ResourceCache[Font]):
    def __init__(self, writer: RecordWriter, handles: HandleAllocator, metrics: FontMetricsProvider) -> None:
        super().__init__("font", writer, handles)
        self._metrics = metrics

    def _on_created(self, entry: CacheEntry[Font]) -> None:
        source = entry.value.source
        if source is None:
            return
        try:
            entry.metrics = self._metrics.load(source.family, source.size, source.face)
        except (OSError, ValueError) as exc:
            raise EmfFontError(f"cannot load font metrics for {source.family!r} size={source.size}: {exc}") from exc
