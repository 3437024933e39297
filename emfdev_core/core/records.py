"""EMF record kinds and the length-framed record writer.

Every record starts with a little-endian `type` and `size` (u32 each); `size`
covers the whole record including this header and trailing zero padding, and
is always a multiple of 4.
"""

from __future__ import annotations

from dataclasses import dataclass
import struct
from typing import ClassVar, Protocol

import numpy as np

from .errors import EmfIOError


EMR_HEADER = 1
EMR_POLYGON = 3
EMR_POLYLINE = 4
EMR_EOF = 14
EMR_SETMAPMODE = 17
EMR_SETBKMODE = 18
EMR_SETTEXTALIGN = 22
EMR_SETTEXTCOLOR = 24
EMR_SELECTOBJECT = 37
EMR_CREATEBRUSHINDIRECT = 39
EMR_ELLIPSE = 42
EMR_RECTANGLE = 43
EMR_SETMITERLIMIT = 58
EMR_EXTCREATEFONTINDIRECTW = 82
EMR_EXTTEXTOUTW = 84
EMR_EXTCREATEPEN = 95

EMF_SIGNATURE = 0x464D4520
EMF_VERSION = 0x00010000

TRANSPARENT = 1
MM_TEXT = 1
GM_COMPATIBLE = 1

TA_LEFT = 0x00
TA_RIGHT = 0x02
TA_CENTER = 0x06
TA_BASELINE = 0x18

RECORD_HEADER_SIZE = 8
EMF_HEADER_FIXED_SIZE = 108
# nBytes, nRecords, nHandles live at this offset of the header record.
HEADER_COUNTS_OFFSET = 48
EOF_RECORD_SIZE = 20
EXTTEXTOUTW_STRING_OFFSET = 76
LOGFONT_FACESIZE = 32

Box = tuple[int, int, int, int]


def colorref(rgb: tuple[int, int, int]) -> bytes:
    r, g, b = rgb
    return struct.pack("<BBBB", r & 0xFF, g & 0xFF, b & 0xFF, 0)


def _rectl(box: Box) -> bytes:
    return struct.pack("<iiii", *box)


class Record(Protocol):
    record_type: ClassVar[int]

    def payload(self) -> bytes:
        ...


@dataclass(frozen=True)
class HeaderRecord:
    record_type: ClassVar[int] = EMR_HEADER
    width: int
    height: int
    description: bytes
    n_bytes: int = 0
    n_records: int = 0
    n_handles: int = 0

    def payload(self) -> bytes:
        w, h = self.width, self.height
        fixed = b"".join(
            (
                _rectl((0, 0, w, h)),
                _rectl((0, 0, w, h)),
                struct.pack("<II", EMF_SIGNATURE, EMF_VERSION),
                pack_header_counts(self.n_bytes, self.n_records, self.n_handles),
                struct.pack(
                    "<III",
                    len(self.description) // 2,
                    EMF_HEADER_FIXED_SIZE if self.description else 0,
                    0,
                ),
                struct.pack("<ii", w, h),
                struct.pack("<ii", w // 100, h // 100),
                struct.pack("<III", 0, 0, 0),
                struct.pack("<ii", w * 10, h * 10),
            )
        )
        return fixed + self.description


def pack_header_counts(n_bytes: int, n_records: int, n_handles: int) -> bytes:
    return struct.pack("<IIHH", n_bytes, n_records, n_handles, 0)


@dataclass(frozen=True)
class EofRecord:
    record_type: ClassVar[int] = EMR_EOF

    def payload(self) -> bytes:
        return struct.pack("<III", 0, 0, EOF_RECORD_SIZE)


@dataclass(frozen=True)
class ModeRecord:
    """Single u32 state record: map mode, background mode, text alignment, miter limit."""

    record_type: int
    value: int

    def payload(self) -> bytes:
        return struct.pack("<I", self.value)


@dataclass(frozen=True)
class SelectObjectRecord:
    record_type: ClassVar[int] = EMR_SELECTOBJECT
    handle: int

    def payload(self) -> bytes:
        return struct.pack("<I", self.handle)


@dataclass(frozen=True)
class TextColorRecord:
    record_type: ClassVar[int] = EMR_SETTEXTCOLOR
    rgb: tuple[int, int, int]

    def payload(self) -> bytes:
        return colorref(self.rgb)


@dataclass(frozen=True)
class ExtCreatePenRecord:
    record_type: ClassVar[int] = EMR_EXTCREATEPEN
    handle: int
    style: int
    width: int
    brush_style: int
    rgb: tuple[int, int, int]
    hatch: int
    style_entries: tuple[int, ...]

    def payload(self) -> bytes:
        return b"".join(
            (
                struct.pack("<IIIII", self.handle, 0, 0, 0, 0),
                struct.pack("<III", self.style, self.width, self.brush_style),
                colorref(self.rgb),
                struct.pack("<II", self.hatch, len(self.style_entries)),
                struct.pack(f"<{len(self.style_entries)}I", *self.style_entries),
            )
        )


@dataclass(frozen=True)
class CreateBrushRecord:
    record_type: ClassVar[int] = EMR_CREATEBRUSHINDIRECT
    handle: int
    style: int
    rgb: tuple[int, int, int]
    hatch: int

    def payload(self) -> bytes:
        return struct.pack("<II", self.handle, self.style) + colorref(self.rgb) + struct.pack("<I", self.hatch)


@dataclass(frozen=True)
class ExtCreateFontRecord:
    record_type: ClassVar[int] = EMR_EXTCREATEFONTINDIRECTW
    handle: int
    logfont: bytes

    def payload(self) -> bytes:
        return struct.pack("<I", self.handle) + self.logfont


@dataclass(frozen=True, eq=False)
class PolyRecord:
    record_type: int
    points: np.ndarray

    def payload(self) -> bytes:
        pts = np.ascontiguousarray(self.points, dtype="<i4")
        if pts.size:
            mins = pts.min(axis=0)
            maxs = pts.max(axis=0)
            bounds = (int(mins[0]), int(mins[1]), int(maxs[0]), int(maxs[1]))
        else:
            bounds = (0, 0, 0, 0)
        return _rectl(bounds) + struct.pack("<I", len(pts)) + pts.tobytes()


@dataclass(frozen=True)
class BoxRecord:
    """Rectangle or ellipse inscribed in an inclusive device-unit box."""

    record_type: int
    box: Box

    def payload(self) -> bytes:
        return _rectl(self.box)


@dataclass(frozen=True)
class ExtTextOutRecord:
    record_type: ClassVar[int] = EMR_EXTTEXTOUTW
    reference: tuple[int, int]
    text: bytes
    n_chars: int
    options: int = 0

    def payload(self) -> bytes:
        return b"".join(
            (
                _rectl((0, 0, 0, 0)),
                struct.pack("<Iff", GM_COMPATIBLE, 1.0, 1.0),
                struct.pack("<ii", *self.reference),
                struct.pack("<III", self.n_chars, EXTTEXTOUTW_STRING_OFFSET, self.options),
                _rectl((0, 0, 0, 0)),
                struct.pack("<I", 0),
                self.text,
            )
        )


def frame_record(record: Record) -> bytes:
    """Serialize a record with its padded size written into its own header."""
    buff = bytearray(struct.pack("<II", record.record_type, 0))
    buff += record.payload()
    buff += b"\x00" * (-len(buff) % 4)
    struct.pack_into("<I", buff, 4, len(buff))
    return bytes(buff)


class RecordSink(Protocol):
    def write(self, data: bytes) -> None:
        ...

    def tell(self) -> int:
        ...

    def overwrite(self, offset: int, data: bytes) -> None:
        ...

    def close(self) -> None:
        ...


class RecordWriter:
    """Appends framed records to a sink and counts them."""

    def __init__(self, sink: RecordSink) -> None:
        self._sink = sink
        self._record_count = 0

    @property
    def record_count(self) -> int:
        return self._record_count

    @property
    def sink(self) -> RecordSink:
        return self._sink

    def write(self, record: Record) -> int:
        data = frame_record(record)
        try:
            self._sink.write(data)
        except (OSError, ValueError) as exc:
            raise EmfIOError(f"failed to write EMF record type {record.record_type}") from exc
        self._record_count += 1
        return len(data)
