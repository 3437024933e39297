from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Optional, Union
import xml.etree.ElementTree as ET

from ..core.coordinates import DEVICE_UNITS_PER_INCH, LWD_UNITS_PER_INCH, POINTS_PER_INCH
from ..core.document import EmfDocument
from ..core.graphics import Color, GraphicsContext, TRANSPARENT_WHITE, parse_color

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SvgRect:
    x: float
    y: float
    width: float
    height: float
    fill: Optional[Color]
    stroke: Optional[Color]
    stroke_width: float


@dataclass(frozen=True)
class SvgEllipse:
    cx: float
    cy: float
    rx: float
    ry: float
    fill: Optional[Color]
    stroke: Optional[Color]
    stroke_width: float


@dataclass(frozen=True)
class SvgLine:
    x1: float
    y1: float
    x2: float
    y2: float
    stroke: Optional[Color]
    stroke_width: float


@dataclass(frozen=True)
class SvgPolygon:
    points: list[tuple[float, float]]
    fill: Optional[Color]
    stroke: Optional[Color]
    stroke_width: float
    closed: bool = True


@dataclass(frozen=True)
class SvgText:
    x: float
    y: float
    text: str
    fill: Optional[Color]
    font_size: float
    font_family: str
    anchor: str
    bold: bool
    italic: bool


SvgShape = Union[SvgRect, SvgEllipse, SvgLine, SvgPolygon, SvgText]


@dataclass
class SvgDocument:
    width: float
    height: float
    viewbox: tuple[float, float, float, float]
    shapes: list[SvgShape]

    @classmethod
    def from_file(cls, path: Path) -> "SvgDocument":
        tree = ET.parse(path)
        return cls._from_root(tree.getroot())

    @classmethod
    def from_markup(cls, svg_markup: str) -> "SvgDocument":
        return cls._from_root(ET.fromstring(svg_markup))

    @classmethod
    def _from_root(cls, root: ET.Element) -> "SvgDocument":
        width = _parse_length(root.attrib.get("width"))
        height = _parse_length(root.attrib.get("height"))
        viewbox = _parse_viewbox(root.attrib.get("viewBox"))
        vb = viewbox if viewbox is not None else (0.0, 0.0, width or 100.0, height or 100.0)
        if width is None:
            width = vb[2]
        if height is None:
            height = vb[3]
        shapes: list[SvgShape] = []
        for elem in root.iter():
            shape = _parse_shape(elem)
            if shape is not None:
                shapes.append(shape)
        return cls(width=width, height=height, viewbox=vb, shapes=shapes)

    def render(self, document: EmfDocument) -> int:
        """Draw every shape onto an open document, scaled to fill its canvas.

        Returns the number of shapes drawn.
        """
        vb_x, vb_y, vb_w, vb_h = self.viewbox
        sx = document.width / vb_w if vb_w else 1.0
        sy = document.height / vb_h if vb_h else 1.0
        scale = (abs(sx) + abs(sy)) / 2.0
        canvas_h = float(document.height)

        def px(x: float) -> float:
            return (x - vb_x) * sx

        def py(y: float) -> float:
            # SVG is top-left; the document expects bottom-left.
            return canvas_h - (y - vb_y) * sy

        drawn = 0
        for shape in self.shapes:
            if isinstance(shape, SvgRect):
                gc = _shape_gc(shape.fill, shape.stroke, shape.stroke_width, scale)
                document.rect(px(shape.x), py(shape.y), px(shape.x + shape.width), py(shape.y + shape.height), gc)
            elif isinstance(shape, SvgEllipse):
                gc = _shape_gc(shape.fill, shape.stroke, shape.stroke_width, scale)
                document.ellipse(
                    px(shape.cx - shape.rx),
                    py(shape.cy - shape.ry),
                    px(shape.cx + shape.rx),
                    py(shape.cy + shape.ry),
                    gc,
                )
            elif isinstance(shape, SvgLine):
                if shape.stroke is None:
                    continue
                gc = _shape_gc(None, shape.stroke, shape.stroke_width, scale)
                document.line(px(shape.x1), py(shape.y1), px(shape.x2), py(shape.y2), gc)
            elif isinstance(shape, SvgPolygon):
                xs = [px(x) for x, _ in shape.points]
                ys = [py(y) for _, y in shape.points]
                if shape.closed:
                    gc = _shape_gc(shape.fill, shape.stroke, shape.stroke_width, scale)
                    document.polygon(xs, ys, gc)
                else:
                    if shape.stroke is None:
                        continue
                    gc = _shape_gc(None, shape.stroke, shape.stroke_width, scale)
                    document.polyline(xs, ys, gc)
            else:
                gc = GraphicsContext(
                    col=shape.fill or (0, 0, 0, 255),
                    ps=max(1.0, shape.font_size * scale * POINTS_PER_INCH / DEVICE_UNITS_PER_INCH),
                    fontface=_fontface(shape.bold, shape.italic),
                    fontfamily=shape.font_family,
                )
                hadj = {"middle": 0.5, "end": 1.0}.get(shape.anchor, 0.0)
                document.text(px(shape.x), py(shape.y), shape.text, 0.0, hadj, gc)
            drawn += 1
        LOGGER.debug("svg: drew %d of %d shapes", drawn, len(self.shapes))
        return drawn


def render_svg(source: str | Path, document: EmfDocument) -> int:
    """Draw an SVG file path or markup string onto an open document."""
    if isinstance(source, Path) or not source.lstrip().startswith("<"):
        svg = SvgDocument.from_file(Path(source))
    else:
        svg = SvgDocument.from_markup(source)
    return svg.render(document)


def _shape_gc(fill: Optional[Color], stroke: Optional[Color], stroke_width: float, scale: float) -> GraphicsContext:
    lwd = stroke_width * scale * LWD_UNITS_PER_INCH / DEVICE_UNITS_PER_INCH
    if stroke is None or stroke_width <= 0:
        return GraphicsContext(col=TRANSPARENT_WHITE, fill=fill or TRANSPARENT_WHITE, lwd=0.0)
    return GraphicsContext(col=stroke, fill=fill or TRANSPARENT_WHITE, lwd=lwd, lend="butt", ljoin="mitre")


def _fontface(bold: bool, italic: bool) -> int:
    if bold and italic:
        return 4
    if bold:
        return 2
    if italic:
        return 3
    return 1


def _parse_shape(elem: ET.Element) -> Optional[SvgShape]:
    tag = _strip_namespace(elem.tag)
    if tag == "rect":
        return _parse_rect(elem)
    if tag == "circle":
        return _parse_circle(elem)
    if tag == "ellipse":
        return _parse_ellipse(elem)
    if tag == "line":
        return _parse_line(elem)
    if tag in ("polygon", "polyline"):
        return _parse_polygon(elem, closed=tag == "polygon")
    if tag == "text":
        return _parse_text(elem)
    return None


def _strip_namespace(tag: str) -> str:
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


def _parse_length(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    value = value.strip()
    if value.endswith("px"):
        value = value[:-2]
    try:
        return float(value)
    except ValueError:
        return None


def _parse_viewbox(value: Optional[str]) -> Optional[tuple[float, float, float, float]]:
    if not value:
        return None
    parts = value.replace(",", " ").split()
    if len(parts) != 4:
        return None
    try:
        return tuple(float(p) for p in parts)  # type: ignore[return-value]
    except ValueError:
        return None


def _paint(elem: ET.Element, default_fill: Optional[str]) -> tuple[Optional[Color], Optional[Color], float]:
    fill = parse_color(elem.attrib.get("fill", default_fill))
    stroke = parse_color(elem.attrib.get("stroke"))
    stroke_width = _parse_length(elem.attrib.get("stroke-width"))
    return fill, stroke, 1.0 if stroke_width is None else stroke_width


def _parse_rect(elem: ET.Element) -> SvgRect:
    fill, stroke, stroke_width = _paint(elem, "black")
    return SvgRect(
        x=_parse_length(elem.attrib.get("x")) or 0.0,
        y=_parse_length(elem.attrib.get("y")) or 0.0,
        width=_parse_length(elem.attrib.get("width")) or 0.0,
        height=_parse_length(elem.attrib.get("height")) or 0.0,
        fill=fill,
        stroke=stroke,
        stroke_width=stroke_width,
    )


def _parse_circle(elem: ET.Element) -> SvgEllipse:
    fill, stroke, stroke_width = _paint(elem, "black")
    r = _parse_length(elem.attrib.get("r")) or 0.0
    return SvgEllipse(
        cx=_parse_length(elem.attrib.get("cx")) or 0.0,
        cy=_parse_length(elem.attrib.get("cy")) or 0.0,
        rx=r,
        ry=r,
        fill=fill,
        stroke=stroke,
        stroke_width=stroke_width,
    )


def _parse_ellipse(elem: ET.Element) -> SvgEllipse:
    fill, stroke, stroke_width = _paint(elem, "black")
    return SvgEllipse(
        cx=_parse_length(elem.attrib.get("cx")) or 0.0,
        cy=_parse_length(elem.attrib.get("cy")) or 0.0,
        rx=_parse_length(elem.attrib.get("rx")) or 0.0,
        ry=_parse_length(elem.attrib.get("ry")) or 0.0,
        fill=fill,
        stroke=stroke,
        stroke_width=stroke_width,
    )


def _parse_line(elem: ET.Element) -> Optional[SvgLine]:
    x1 = _parse_length(elem.attrib.get("x1"))
    y1 = _parse_length(elem.attrib.get("y1"))
    x2 = _parse_length(elem.attrib.get("x2"))
    y2 = _parse_length(elem.attrib.get("y2"))
    if x1 is None or y1 is None or x2 is None or y2 is None:
        return None
    _, stroke, stroke_width = _paint(elem, None)
    return SvgLine(x1=x1, y1=y1, x2=x2, y2=y2, stroke=stroke, stroke_width=stroke_width)


def _parse_polygon(elem: ET.Element, *, closed: bool) -> Optional[SvgPolygon]:
    points = _parse_points(elem.attrib.get("points"))
    if not points:
        return None
    fill, stroke, stroke_width = _paint(elem, "black" if closed else None)
    return SvgPolygon(points=points, fill=fill, stroke=stroke, stroke_width=stroke_width, closed=closed)


def _parse_text(elem: ET.Element) -> Optional[SvgText]:
    content = "".join(elem.itertext()).strip()
    if not content:
        return None
    fill, _, _ = _paint(elem, "black")
    weight = elem.attrib.get("font-weight", "normal").strip().lower()
    return SvgText(
        x=_parse_length(elem.attrib.get("x")) or 0.0,
        y=_parse_length(elem.attrib.get("y")) or 0.0,
        text=content,
        fill=fill,
        font_size=_parse_length(elem.attrib.get("font-size")) or 16.0,
        font_family=elem.attrib.get("font-family", "").split(",")[0].strip().strip("'\""),
        anchor=elem.attrib.get("text-anchor", "start").strip(),
        bold=weight in ("bold", "bolder") or (weight.isdigit() and int(weight) >= 600),
        italic=elem.attrib.get("font-style", "").strip().lower() in ("italic", "oblique"),
    )


def _parse_points(value: Optional[str]) -> list[tuple[float, float]]:
    if not value:
        return []
    parts = value.replace(",", " ").split()
    points: list[tuple[float, float]] = []
    it = iter(parts)
    for x_str, y_str in zip(it, it):
        try:
            points.append((float(x_str), float(y_str)))
        except ValueError:
            continue
    return points
