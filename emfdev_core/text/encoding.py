from __future__ import annotations

from dataclasses import dataclass

from ..core.errors import EmfEncodingError


@dataclass(frozen=True)
class EncodedText:
    data: bytes
    length: int


def encode_utf16le(text: str | bytes) -> EncodedText:
    """Re-encode UTF-8 (or an already decoded str) as UTF-16LE.

    `length` counts 16-bit code units of the converted output, so embedded
    NUL characters and surrogate pairs are both accounted for.
    """
    if isinstance(text, (bytes, bytearray, memoryview)):
        try:
            text = bytes(text).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EmfEncodingError("text is not valid UTF-8") from exc
    try:
        data = text.encode("utf-16-le")
    except UnicodeEncodeError as exc:
        raise EmfEncodingError(f"text cannot be encoded as UTF-16LE: {exc.reason}") from exc
    return EncodedText(data=data, length=len(data) // 2)
