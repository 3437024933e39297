from __future__ import annotations

import unittest

from emfdev_core.core.errors import EmfEncodingError
from emfdev_core.text.encoding import encode_utf16le


class EncodeUtf16LETests(unittest.TestCase):
    def test_ascii_letter(self) -> None:
        encoded = encode_utf16le(b"A")
        self.assertEqual(encoded.data, b"\x41\x00")
        self.assertEqual(encoded.length, 1)

    def test_str_input_matches_utf8_bytes(self) -> None:
        self.assertEqual(encode_utf16le("µm²"), encode_utf16le("µm²".encode("utf-8")))

    def test_embedded_nul_is_preserved(self) -> None:
        encoded = encode_utf16le(b"a\x00b")
        self.assertEqual(encoded.data, b"a\x00\x00\x00b\x00")
        self.assertEqual(encoded.length, 3)

    def test_astral_character_counts_two_code_units(self) -> None:
        encoded = encode_utf16le("\U0001F600".encode("utf-8"))
        self.assertEqual(len(encoded.data), 4)
        self.assertEqual(encoded.length, 2)

    def test_invalid_utf8_raises(self) -> None:
        with self.assertRaises(EmfEncodingError):
            encode_utf16le(b"\xff\xfe\x41")

    def test_truncated_sequence_raises(self) -> None:
        with self.assertRaises(EmfEncodingError):
            encode_utf16le(b"\xe2\x82")

    def test_lone_surrogate_in_str_raises(self) -> None:
        with self.assertRaises(EmfEncodingError):
            encode_utf16le("\ud800")

    def test_empty_text(self) -> None:
        encoded = encode_utf16le(b"")
        self.assertEqual((encoded.data, encoded.length), (b"", 0))


if __name__ == "__main__":
    unittest.main()
