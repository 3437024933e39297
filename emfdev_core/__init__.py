"""Enhanced Metafile (EMF) output for vector drawing primitives."""

from emfdev_core.core import (
    DeviceConfig,
    DocumentStateError,
    DocumentSummary,
    EmfDevice,
    EmfDocument,
    EmfEncodingError,
    EmfError,
    EmfFontError,
    EmfIOError,
    GraphicsContext,
    UnsupportedFeatureWarning,
    load_device_config,
)
from emfdev_core.text import FixedPitchMetricsProvider, PillowFontMetricsProvider, encode_utf16le

__all__ = [
    "DeviceConfig",
    "DocumentStateError",
    "DocumentSummary",
    "EmfDevice",
    "EmfDocument",
    "EmfEncodingError",
    "EmfError",
    "EmfFontError",
    "EmfIOError",
    "FixedPitchMetricsProvider",
    "GraphicsContext",
    "PillowFontMetricsProvider",
    "UnsupportedFeatureWarning",
    "encode_utf16le",
    "load_device_config",
]
