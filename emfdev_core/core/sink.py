from __future__ import annotations

from pathlib import Path
from typing import BinaryIO

from .errors import EmfIOError
from .records import RecordSink


class FileSink:
    """Seekable file: append records now, overwrite the header counts at close."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()
        self._file: BinaryIO | None = self.path.open("wb")

    def write(self, data: bytes) -> None:
        self._require_open().write(data)

    def tell(self) -> int:
        return self._require_open().tell()

    def overwrite(self, offset: int, data: bytes) -> None:
        f = self._require_open()
        end = f.tell()
        f.seek(offset)
        f.write(data)
        f.seek(end)

    def close(self) -> None:
        if self._file is None:
            return
        f, self._file = self._file, None
        f.close()

    @property
    def closed(self) -> bool:
        return self._file is None

    def _require_open(self) -> BinaryIO:
        if self._file is None:
            raise ValueError("sink is closed")
        return self._file


class BufferedSink:
    """Whole document kept in memory and written once at close.

    Used for targets that cannot seek (pipes, sockets, stdout); the bytes
    written are identical to what `FileSink` leaves on disk.
    """

    def __init__(self, target: str | Path | BinaryIO) -> None:
        self._buffer = bytearray()
        self._owns_stream = isinstance(target, (str, Path))
        if isinstance(target, (str, Path)):
            self.path: Path | None = Path(target).expanduser()
            self._stream: BinaryIO | None = self.path.open("wb")
        else:
            self.path = None
            self._stream = target
        self._closed = False

    def write(self, data: bytes) -> None:
        self._require_open()
        self._buffer += data

    def tell(self) -> int:
        return len(self._buffer)

    def overwrite(self, offset: int, data: bytes) -> None:
        self._require_open()
        if offset < 0 or offset + len(data) > len(self._buffer):
            raise ValueError("overwrite region outside buffered data")
        self._buffer[offset : offset + len(data)] = data

    def getvalue(self) -> bytes:
        return bytes(self._buffer)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        stream = self._stream
        self._stream = None
        if stream is None:
            return
        try:
            stream.write(bytes(self._buffer))
            stream.flush()
        finally:
            if self._owns_stream:
                stream.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def _require_open(self) -> None:
        if self._closed:
            raise ValueError("sink is closed")


def open_sink(target: str | Path | BinaryIO, *, buffered: bool = False) -> RecordSink:
    """Create the output sink for a document.

    Binary streams are always buffered since their seekability is not known.
    """
    try:
        if buffered or not isinstance(target, (str, Path)):
            return BufferedSink(target)
        return FileSink(target)
    except OSError as exc:
        raise EmfIOError(f"cannot open EMF output {target!r}: {exc}") from exc
