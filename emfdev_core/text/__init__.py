"""Text encoding and font measurement for EMF text records."""

from .encoding import EncodedText, encode_utf16le
from .metrics import (
    FixedPitchMetrics,
    FixedPitchMetricsProvider,
    FontMetrics,
    FontMetricsProvider,
    PillowFontMetrics,
    PillowFontMetricsProvider,
)

__all__ = [
    "EncodedText",
    "FixedPitchMetrics",
    "FixedPitchMetricsProvider",
    "FontMetrics",
    "FontMetricsProvider",
    "PillowFontMetrics",
    "PillowFontMetricsProvider",
    "encode_utf16le",
]
