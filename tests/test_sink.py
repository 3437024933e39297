from __future__ import annotations

import io
from pathlib import Path
import tempfile
import unittest

from emfdev_core.core.errors import EmfIOError
from emfdev_core.core.sink import BufferedSink, FileSink, open_sink


class FileSinkTests(unittest.TestCase):
    def test_overwrite_then_continue_appending(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "out.bin"
            sink = FileSink(path)
            sink.write(b"aaaabbbb")
            sink.overwrite(4, b"XY")
            sink.write(b"cc")
            self.assertEqual(sink.tell(), 10)
            sink.close()
            self.assertTrue(sink.closed)
            self.assertEqual(path.read_bytes(), b"aaaaXYbbcc")

    def test_close_is_idempotent(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            sink = FileSink(Path(td) / "out.bin")
            sink.close()
            sink.close()
            with self.assertRaises(ValueError):
                sink.write(b"x")


class BufferedSinkTests(unittest.TestCase):
    def test_stream_receives_everything_once_at_close(self) -> None:
        stream = io.BytesIO()
        sink = BufferedSink(stream)
        sink.write(b"aaaabbbb")
        self.assertEqual(stream.getvalue(), b"")
        sink.overwrite(0, b"ZZ")
        sink.close()
        self.assertEqual(stream.getvalue(), b"ZZaabbbb")
        self.assertFalse(stream.closed)

    def test_overwrite_outside_buffer_rejected(self) -> None:
        sink = BufferedSink(io.BytesIO())
        sink.write(b"abcd")
        with self.assertRaises(ValueError):
            sink.overwrite(3, b"xy")

    def test_path_target_matches_file_sink_bytes(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            a = Path(td) / "a.bin"
            b = Path(td) / "b.bin"
            for sink in (FileSink(a), BufferedSink(b)):
                sink.write(b"header..")
                sink.write(b"body")
                sink.overwrite(0, b"HEAD")
                sink.close()
            self.assertEqual(a.read_bytes(), b.read_bytes())


class OpenSinkTests(unittest.TestCase):
    def test_unwritable_path_raises_io_error(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(EmfIOError):
                open_sink(Path(td) / "missing" / "out.emf")

    def test_streams_are_buffered(self) -> None:
        self.assertIsInstance(open_sink(io.BytesIO()), BufferedSink)

    def test_paths_are_seekable_unless_buffered_requested(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            file_sink = open_sink(Path(td) / "a.emf")
            buffered = open_sink(Path(td) / "b.emf", buffered=True)
            try:
                self.assertIsInstance(file_sink, FileSink)
                self.assertIsInstance(buffered, BufferedSink)
            finally:
                file_sink.close()
                buffered.close()


if __name__ == "__main__":
    unittest.main()
