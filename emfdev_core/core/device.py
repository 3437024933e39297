from __future__ import annotations

from pathlib import Path
import math
from typing import BinaryIO

from ..text.metrics import FontMetricsProvider
from .config import DeviceConfig
from .coordinates import inches_to_device, POINTS_PER_INCH
from .document import DocumentSummary, EmfDocument
from .graphics import GraphicsContext


class EmfDevice:
    """An EMF page sized and styled from a `DeviceConfig`.

    Coordinates passed to the document are device units (2540 per inch)
    with the origin in the bottom-left corner of the page.
    """

    def __init__(self, config: DeviceConfig | None = None, *, metrics: FontMetricsProvider | None = None) -> None:
        self.config = config or DeviceConfig()
        self.width = inches_to_device(self.config.width_in)
        self.height = inches_to_device(self.config.height_in)
        self.document = EmfDocument(
            user_lty=self.config.user_lty,
            default_family=self.config.family,
            description=self.config.description,
            metrics=metrics,
        )

    @property
    def base_pointsize(self) -> float:
        return float(math.floor(self.config.pointsize))

    @property
    def char_size(self) -> tuple[int, int]:
        """Nominal character width and height in device units."""
        ps = self.base_pointsize
        return (
            inches_to_device(0.9 * ps / POINTS_PER_INCH),
            inches_to_device(1.2 * ps / POINTS_PER_INCH),
        )

    def default_gc(self) -> GraphicsContext:
        return GraphicsContext(
            col=self.config.fg_color,
            fill=self.config.bg_color,
            ps=self.base_pointsize,
        )

    def start(self, target: str | Path | BinaryIO) -> EmfDocument:
        """Open the document and paint the first page's background."""
        self.document.open(target, self.width, self.height, buffered=self.config.buffered)
        self.document.new_page(self.default_gc())
        return self.document

    def close(self) -> DocumentSummary:
        return self.document.close()

    def __enter__(self) -> "EmfDevice":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.document.state == "open":
            self.document.close()
