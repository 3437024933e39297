from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
import logging
from pathlib import Path
from typing import BinaryIO, Iterator, Literal, Sequence

from ..text.encoding import encode_utf16le
from ..text.metrics import FontMetricsProvider, PillowFontMetricsProvider
from .coordinates import lround, points_to_device, to_device_points
from .errors import DocumentStateError, EmfError, EmfIOError, warn_unsupported
from .graphics import Color, GraphicsContext, TRANSPARENT_WHITE, is_opaque
from .records import (
    BoxRecord,
    EMR_ELLIPSE,
    EMR_POLYGON,
    EMR_POLYLINE,
    EMR_RECTANGLE,
    EMR_SETBKMODE,
    EMR_SETMAPMODE,
    EMR_SETTEXTALIGN,
    EofRecord,
    ExtTextOutRecord,
    HEADER_COUNTS_OFFSET,
    HeaderRecord,
    MM_TEXT,
    ModeRecord,
    PolyRecord,
    RecordSink,
    RecordWriter,
    TA_BASELINE,
    TA_CENTER,
    TA_LEFT,
    TA_RIGHT,
    TextColorRecord,
    TRANSPARENT,
    pack_header_counts,
)
from .resources import (
    BrushCache,
    CacheEntry,
    Font,
    FontCache,
    HandleAllocator,
    PenCache,
    brush_from_color,
    font_for,
    pen_from_gc,
)
from .sink import open_sink

LOGGER = logging.getLogger(__name__)

DocumentState = Literal["closed", "open", "finished", "failed"]

DEFAULT_DESCRIPTION = "Created by emfdev."
DEFAULT_FONT_FAMILY = "Helvetica"
SYMBOL_FONT_FAMILY = "Symbol"
MAX_HEADER_HANDLES = 0xFFFF


@dataclass(frozen=True)
class DocumentSummary:
    n_bytes: int
    n_records: int
    n_handles: int


class EmfDocument:
    """One EMF container, from open to close.

    Drawing calls take bottom-left-origin device-unit coordinates and are
    flipped against the canvas height before being written.
    """

    def __init__(
        self,
        *,
        user_lty: bool = True,
        default_family: str = DEFAULT_FONT_FAMILY,
        description: str = DEFAULT_DESCRIPTION,
        metrics: FontMetricsProvider | None = None,
    ) -> None:
        self._user_lty = user_lty
        self._default_family = default_family
        self._description = description
        self._metrics = metrics or PillowFontMetricsProvider()
        self._state: DocumentState = "closed"
        self._width = 0
        self._height = 0
        self._page_number = 0
        self._sink: RecordSink | None = None
        self._writer: RecordWriter | None = None
        self._handles = HandleAllocator()
        self._pens: PenCache | None = None
        self._brushes: BrushCache | None = None
        self._fonts: FontCache | None = None
        self._text_align: float | None = None
        self._text_color: Color | None = None
        self._summary: DocumentSummary | None = None

    @property
    def state(self) -> DocumentState:
        return self._state

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def page_number(self) -> int:
        return self._page_number

    @property
    def record_count(self) -> int:
        return self._writer.record_count if self._writer is not None else 0

    @property
    def handle_count(self) -> int:
        return self._handles.handle_count

    @property
    def pens(self) -> PenCache:
        return self._caches()[0]

    @property
    def brushes(self) -> BrushCache:
        return self._caches()[1]

    @property
    def fonts(self) -> FontCache:
        return self._caches()[2]

    @property
    def summary(self) -> DocumentSummary | None:
        return self._summary

    def __enter__(self) -> "EmfDocument":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._state == "open":
            self.close()

    def open(
        self,
        target: str | Path | BinaryIO,
        width: int,
        height: int,
        *,
        buffered: bool = False,
    ) -> "EmfDocument":
        """Create the sink and write the provisional header and fixed state records.

        Raises `EmfIOError` and stays closed if the sink cannot be created.
        """
        if self._state != "closed":
            raise DocumentStateError(f"cannot open a document in state {self._state!r}")
        if width <= 0 or height <= 0:
            raise ValueError("width and height must be > 0")
        LOGGER.debug("open: %d x %d -> %r", width, height, target)
        sink = open_sink(target, buffered=buffered)
        self._sink = sink
        self._width = int(width)
        self._height = int(height)
        self._writer = RecordWriter(sink)
        self._pens = PenCache(self._writer, self._handles)
        self._brushes = BrushCache(self._writer, self._handles)
        self._fonts = FontCache(self._writer, self._handles, self._metrics)
        self._state = "open"
        with self._guard():
            self._writer.write(
                HeaderRecord(
                    width=self._width,
                    height=self._height,
                    description=encode_utf16le(self._description).data,
                )
            )
            self._writer.write(ModeRecord(record_type=EMR_SETBKMODE, value=TRANSPARENT))
            self._writer.write(ModeRecord(record_type=EMR_SETMAPMODE, value=MM_TEXT))
        return self

    def new_page(self, gc: GraphicsContext) -> None:
        self._require_open("new_page")
        self._page_number += 1
        if self._page_number > 1:
            warn_unsupported(LOGGER, "multiple pages are not available for EMF output")
        if is_opaque(gc.fill):
            # Background only; no border line.
            self.rect(0, 0, self._width, self._height, gc.with_changes(col=TRANSPARENT_WHITE))

    def clip(self, x0: float, x1: float, y0: float, y1: float) -> None:
        self._require_open("clip")
        LOGGER.debug("clip ignored: (%s, %s, %s, %s)", x0, x1, y0, y1)

    def line(self, x1: float, y1: float, x2: float, y2: float, gc: GraphicsContext) -> None:
        self._require_open("line")
        if x1 == x2 and y1 == y2:
            LOGGER.debug("line skipped: zero length at (%s, %s)", x1, y1)
            return
        self.polyline([x1, x2], [y1, y2], gc)

    def polyline(self, xs: Sequence[float], ys: Sequence[float], gc: GraphicsContext) -> None:
        self._require_open("polyline")
        if len(xs) < 2:
            LOGGER.debug("polyline skipped: %d point(s)", len(xs))
            return
        LOGGER.debug("polyline: %d points", len(xs))
        with self._guard():
            points = to_device_points(xs, ys, self._height)
            self._select_pen(gc)
            self._writer.write(PolyRecord(record_type=EMR_POLYLINE, points=points))

    def polygon(self, xs: Sequence[float], ys: Sequence[float], gc: GraphicsContext) -> None:
        self._require_open("polygon")
        if len(xs) < 3:
            LOGGER.debug("polygon skipped: %d point(s)", len(xs))
            return
        LOGGER.debug("polygon: %d points", len(xs))
        with self._guard():
            points = to_device_points(xs, ys, self._height)
            self._select_pen(gc)
            self._select_brush(gc.fill)
            self._writer.write(PolyRecord(record_type=EMR_POLYGON, points=points))

    def rect(self, x0: float, y0: float, x1: float, y1: float, gc: GraphicsContext) -> None:
        self._require_open("rect")
        LOGGER.debug("rect: (%s, %s)-(%s, %s)", x0, y0, x1, y1)
        self._box_record(EMR_RECTANGLE, x0, y0, x1, y1, gc)

    def ellipse(self, x0: float, y0: float, x1: float, y1: float, gc: GraphicsContext) -> None:
        self._require_open("ellipse")
        LOGGER.debug("ellipse: (%s, %s)-(%s, %s)", x0, y0, x1, y1)
        self._box_record(EMR_ELLIPSE, x0, y0, x1, y1, gc)

    def circle(self, x: float, y: float, r: float, gc: GraphicsContext) -> None:
        self.ellipse(x - r, y + r, x + r, y - r, gc)

    def text(
        self,
        x: float,
        y: float,
        text: str | bytes,
        rot: float,
        hadj: float,
        gc: GraphicsContext,
    ) -> None:
        """Write a UTF-8 text run anchored on its baseline at `(x, y)`.

        `hadj` 0, 1 and anything else select left, right and centre
        alignment. Invalid UTF-8 raises `EmfEncodingError` before any record
        is written, leaving the document usable; so does `EmfFontError` when
        the font metrics cannot be loaded.
        """
        self._require_open("text")
        encoded = encode_utf16le(text)
        LOGGER.debug("text: %d chars at (%s, %s) rot=%s hadj=%s", encoded.length, x, y, rot, hadj)
        with self._guard():
            font = self._load_font(gc.fontface, gc.effective_pointsize, rot, gc.fontfamily)
            self.fonts.select_if_changed(font.handle)
            self._set_text_align(hadj)
            self._set_text_color(gc.col)
            self._writer.write(
                ExtTextOutRecord(
                    reference=(lround(x), lround(self._height - y)),
                    text=encoded.data,
                    n_chars=encoded.length,
                )
            )

    def metric_info(self, c: int, gc: GraphicsContext) -> tuple[float, float, float]:
        """Ascent, descent and advance width of code point `c` for the gc's font."""
        self._require_open("metric_info")
        code = abs(c)
        pointsize = gc.effective_pointsize
        with self._guard():
            entry = self._load_font(max(1, min(5, gc.fontface)), pointsize, 0, gc.fontfamily)
            if entry.metrics is not None and not entry.metrics.has_char(code) and gc.fontface == 5:
                entry = self._load_font(5, pointsize, 0, SYMBOL_FONT_FAMILY)
        if entry.metrics is None:
            return (0.0, 0.0, 0.0)
        return entry.metrics.char_metrics(code)

    def str_width(self, text: str | bytes, gc: GraphicsContext) -> float:
        self._require_open("str_width")
        if isinstance(text, (bytes, bytearray)):
            text = encode_utf16le(text).data.decode("utf-16-le")
        with self._guard():
            entry = self._load_font(max(1, min(5, gc.fontface)), gc.effective_pointsize, 0, gc.fontfamily)
        if entry.metrics is None:
            return 0.0
        return entry.metrics.string_width(text)

    def raster(self, *args: object, **kwargs: object) -> None:
        self._require_open("raster")
        warn_unsupported(LOGGER, "raster rendering is not implemented for EMF")

    def capture(self) -> None:
        self._require_open("capture")
        warn_unsupported(LOGGER, "raster capture is not available for EMF")
        return None

    def path(self, *args: object, **kwargs: object) -> None:
        self._require_open("path")
        warn_unsupported(LOGGER, "path rendering is not implemented for EMF")

    def text_native(self, *args: object, **kwargs: object) -> None:
        self._require_open("text_native")
        warn_unsupported(LOGGER, "non-UTF-8 text is not supported for EMF; use text()")

    def close(self) -> DocumentSummary:
        """Write EOF, patch the header counts and release the sink.

        Every step is attempted even if an earlier one fails; the first
        failure is raised afterwards and the document ends up `failed`.
        """
        self._require_open("close")
        assert self._sink is not None and self._writer is not None
        sink = self._sink
        first_error: EmfError | None = None
        try:
            self._writer.write(EofRecord())
        except EmfIOError as exc:
            first_error = exc

        n_handles = self._handles.handle_count
        if n_handles > MAX_HEADER_HANDLES:
            LOGGER.warning("handle count %d exceeds header field; clamping", n_handles)
            n_handles = MAX_HEADER_HANDLES
        n_bytes = 0
        try:
            n_bytes = sink.tell()
            sink.overwrite(
                HEADER_COUNTS_OFFSET,
                pack_header_counts(n_bytes, self._writer.record_count, n_handles),
            )
        except (OSError, ValueError) as exc:
            first_error = first_error or _io_error("failed to patch EMF header", exc)
        try:
            sink.close()
        except (OSError, ValueError) as exc:
            first_error = first_error or _io_error("failed to close EMF output", exc)

        self._sink = None
        if first_error is not None:
            self._state = "failed"
            raise first_error
        self._state = "finished"
        self._summary = DocumentSummary(
            n_bytes=n_bytes,
            n_records=self._writer.record_count,
            n_handles=n_handles,
        )
        LOGGER.debug(
            "close: bytes=%d records=%d handles=%d",
            self._summary.n_bytes,
            self._summary.n_records,
            self._summary.n_handles,
        )
        return self._summary

    def _box_record(self, record_type: int, x0: float, y0: float, x1: float, y1: float, gc: GraphicsContext) -> None:
        with self._guard():
            self._select_pen(gc)
            self._select_brush(gc.fill)
            box = (lround(x0), lround(self._height - y0), lround(x1), lround(self._height - y1))
            self._writer.write(BoxRecord(record_type=record_type, box=box))

    def _select_pen(self, gc: GraphicsContext) -> None:
        pen, notes = pen_from_gc(gc, user_lty=self._user_lty)
        entry, created = self.pens.intern(pen)
        if created:
            for note in notes:
                warn_unsupported(LOGGER, note)
        miter_limit = points_to_device(gc.lmitre) if gc.ljoin == "mitre" else None
        self.pens.select_if_changed(entry.handle, miter_limit=miter_limit)

    def _select_brush(self, color: Color) -> None:
        brush, notes = brush_from_color(color)
        entry, created = self.brushes.intern(brush)
        if created:
            for note in notes:
                warn_unsupported(LOGGER, note)
        self.brushes.select_if_changed(entry.handle)

    def _load_font(self, face: int, pointsize: float, rot: float, family: str) -> CacheEntry[Font]:
        family = family or self._default_family
        entry, created = self.fonts.intern(font_for(face, pointsize, rot, family))
        if created:
            LOGGER.debug("font: family=%s face=%d size=%.1f rot=%s", family, face, pointsize, rot)
        return entry

    def _set_text_align(self, hadj: float) -> None:
        if self._text_align == hadj:
            return
        if hadj == 0.0:
            mode = TA_BASELINE | TA_LEFT
        elif hadj == 1.0:
            mode = TA_BASELINE | TA_RIGHT
        else:
            mode = TA_BASELINE | TA_CENTER
        self._writer.write(ModeRecord(record_type=EMR_SETTEXTALIGN, value=mode))
        self._text_align = hadj

    def _set_text_color(self, color: Color) -> None:
        if self._text_color == color:
            return
        self._writer.write(TextColorRecord(rgb=(color[0], color[1], color[2])))
        self._text_color = color

    def _caches(self) -> tuple[PenCache, BrushCache, FontCache]:
        if self._pens is None or self._brushes is None or self._fonts is None:
            raise DocumentStateError("document has not been opened")
        return (self._pens, self._brushes, self._fonts)

    def _require_open(self, operation: str) -> None:
        if self._state != "open":
            raise DocumentStateError(f"{operation} requires an open document (state={self._state!r})")

    @contextmanager
    def _guard(self) -> Iterator[None]:
        """Fail fast on sink errors: close what reached the sink and refuse further calls."""
        try:
            yield
        except EmfIOError:
            self._abandon()
            raise

    def _abandon(self) -> None:
        self._state = "failed"
        sink, self._sink = self._sink, None
        if sink is None:
            return
        try:
            sink.close()
        except (OSError, ValueError) as exc:
            LOGGER.warning("failed to close EMF output after write error: %s", exc)


def _io_error(message: str, cause: BaseException) -> EmfIOError:
    err = EmfIOError(f"{message}: {cause}")
    err.__cause__ = cause
    return err
