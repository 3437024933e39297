from .errors import (
    DocumentStateError,
    EmfEncodingError,
    EmfError,
    EmfFontError,
    EmfIOError,
    UnsupportedFeatureWarning,
)
from .coordinates import (
    DEVICE_UNITS_PER_INCH,
    flip_y,
    inches_to_device,
    lround,
    points_to_device,
    round_half_away,
    to_device_points,
)
from .graphics import (
    BLACK,
    Color,
    GraphicsContext,
    LTY_BLANK,
    LTY_DASHED,
    LTY_DOTDASH,
    LTY_DOTTED,
    LTY_LONGDASH,
    LTY_SOLID,
    LTY_TWODASH,
    TRANSPARENT_WHITE,
    WHITE,
    parse_color,
)
from .records import RecordWriter, frame_record
from .sink import BufferedSink, FileSink, open_sink
from .resources import (
    Brush,
    BrushCache,
    Font,
    FontCache,
    HandleAllocator,
    Pen,
    PenCache,
    ResourceCache,
)
from .document import DocumentSummary, EmfDocument
from .config import DeviceConfig, load_device_config
from .device import EmfDevice

__all__ = [
    "BLACK",
    "Brush",
    "BrushCache",
    "BufferedSink",
    "Color",
    "DEVICE_UNITS_PER_INCH",
    "DeviceConfig",
    "DocumentStateError",
    "DocumentSummary",
    "EmfDevice",
    "EmfDocument",
    "EmfEncodingError",
    "EmfError",
    "EmfFontError",
    "EmfIOError",
    "FileSink",
    "Font",
    "FontCache",
    "GraphicsContext",
    "HandleAllocator",
    "LTY_BLANK",
    "LTY_DASHED",
    "LTY_DOTDASH",
    "LTY_DOTTED",
    "LTY_LONGDASH",
    "LTY_SOLID",
    "LTY_TWODASH",
    "Pen",
    "PenCache",
    "RecordWriter",
    "ResourceCache",
    "TRANSPARENT_WHITE",
    "UnsupportedFeatureWarning",
    "WHITE",
    "flip_y",
    "frame_record",
    "inches_to_device",
    "load_device_config",
    "lround",
    "open_sink",
    "parse_color",
    "points_to_device",
    "round_half_away",
    "to_device_points",
]
