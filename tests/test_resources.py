from __future__ import annotations

import io
import unittest

from emfdev_core.core.graphics import GraphicsContext, LTY_DASHED, LTY_DOTTED, LTY_TWODASH
from emfdev_core.core.records import (
    EMR_CREATEBRUSHINDIRECT,
    EMR_EXTCREATEFONTINDIRECTW,
    EMR_EXTCREATEPEN,
    EMR_SELECTOBJECT,
    EMR_SETMITERLIMIT,
    RecordWriter,
)
from emfdev_core.core.resources import (
    BS_NULL,
    BS_SOLID,
    BrushCache,
    FontCache,
    HandleAllocator,
    PenCache,
    PS_DASH,
    PS_DOT,
    PS_ENDCAP_FLAT,
    PS_GEOMETRIC,
    PS_JOIN_BEVEL,
    PS_JOIN_MITER,
    PS_NULL,
    PS_SOLID,
    PS_USERSTYLE,
    brush_from_color,
    dash_entries,
    font_for,
    pen_from_gc,
)
from emfdev_core.core.sink import BufferedSink

from emf_stream import RecordingMetricsProvider, record_types, u32


class _Harness:
    def __init__(self) -> None:
        self.stream = io.BytesIO()
        self.sink = BufferedSink(self.stream)
        self.writer = RecordWriter(self.sink)
        self.handles = HandleAllocator()
        self.metrics = RecordingMetricsProvider()
        self.pens = PenCache(self.writer, self.handles)
        self.brushes = BrushCache(self.writer, self.handles)
        self.fonts = FontCache(self.writer, self.handles, self.metrics)

    def types(self) -> list[int]:
        return record_types(self.sink.getvalue())


class HandleAllocatorTests(unittest.TestCase):
    def test_one_based_and_reports_one_extra(self) -> None:
        handles = HandleAllocator()
        self.assertEqual(handles.handle_count, 1)
        self.assertEqual([handles.allocate(), handles.allocate()], [1, 2])
        self.assertEqual(handles.last_handle, 2)
        self.assertEqual(handles.handle_count, 3)


class ResourceCacheTests(unittest.TestCase):
    def test_equal_values_share_one_creation_record(self) -> None:
        h = _Harness()
        pen_a, _ = pen_from_gc(GraphicsContext(), user_lty=True)
        pen_b, _ = pen_from_gc(GraphicsContext(), user_lty=True)
        first, created_first = h.pens.intern(pen_a)
        second, created_second = h.pens.intern(pen_b)
        self.assertTrue(created_first)
        self.assertFalse(created_second)
        self.assertEqual(first.handle, second.handle)
        self.assertEqual(h.types(), [EMR_EXTCREATEPEN])
        self.assertEqual(len(h.pens), 1)

    def test_dash_arrays_are_part_of_identity(self) -> None:
        h = _Harness()
        dashed, _ = pen_from_gc(GraphicsContext(lty=LTY_DASHED), user_lty=True)
        dotted, _ = pen_from_gc(GraphicsContext(lty=LTY_DOTTED), user_lty=True)
        a, _ = h.pens.intern(dashed)
        b, _ = h.pens.intern(dotted)
        self.assertNotEqual(a.handle, b.handle)

    def test_handle_counter_is_shared_across_kinds(self) -> None:
        h = _Harness()
        pen, _ = pen_from_gc(GraphicsContext(), user_lty=True)
        brush, _ = brush_from_color((255, 0, 0, 255))
        font = font_for(1, 12.0, 0, "Helvetica")
        handles = [h.pens.intern(pen)[0].handle, h.brushes.intern(brush)[0].handle, h.fonts.intern(font)[0].handle]
        self.assertEqual(handles, [1, 2, 3])
        self.assertEqual(h.types(), [EMR_EXTCREATEPEN, EMR_CREATEBRUSHINDIRECT, EMR_EXTCREATEFONTINDIRECTW])
        self.assertEqual(h.handles.handle_count, 4)

    def test_select_only_on_change(self) -> None:
        h = _Harness()
        brush, _ = brush_from_color((0, 0, 0, 255))
        entry, _ = h.brushes.intern(brush)
        self.assertTrue(h.brushes.select_if_changed(entry.handle))
        self.assertFalse(h.brushes.select_if_changed(entry.handle))
        self.assertEqual(h.brushes.active_handle, entry.handle)
        records = h.types()
        self.assertEqual(records.count(EMR_SELECTOBJECT), 1)

    def test_miter_limit_follows_each_selection_change_only(self) -> None:
        h = _Harness()
        mitred, _ = pen_from_gc(GraphicsContext(ljoin="mitre"), user_lty=True)
        plain, _ = pen_from_gc(GraphicsContext(), user_lty=True)
        m, _ = h.pens.intern(mitred)
        p, _ = h.pens.intern(plain)
        h.pens.select_if_changed(m.handle, miter_limit=352)
        h.pens.select_if_changed(m.handle, miter_limit=352)
        h.pens.select_if_changed(p.handle)
        h.pens.select_if_changed(m.handle, miter_limit=352)
        self.assertEqual(
            h.types(),
            [
                EMR_EXTCREATEPEN,
                EMR_EXTCREATEPEN,
                EMR_SELECTOBJECT,
                EMR_SETMITERLIMIT,
                EMR_SELECTOBJECT,
                EMR_SELECTOBJECT,
                EMR_SETMITERLIMIT,
            ],
        )

    def test_font_metrics_loaded_only_on_creation(self) -> None:
        h = _Harness()
        entry, _ = h.fonts.intern(font_for(2, 12.0, 0, "Helvetica"))
        again, _ = h.fonts.intern(font_for(2, 12.0, 0, "Helvetica"))
        self.assertIs(entry, again)
        self.assertEqual(h.metrics.loads, [("Helvetica", 423, 2)])
        self.assertIsNotNone(entry.metrics)


class PenConstructionTests(unittest.TestCase):
    def test_default_solid_pen(self) -> None:
        pen, notes = pen_from_gc(GraphicsContext(), user_lty=True)
        self.assertEqual(pen.style, PS_GEOMETRIC | PS_SOLID)
        self.assertEqual(pen.width, 26)
        self.assertEqual(pen.brush_style, BS_SOLID)
        self.assertEqual(pen.rgb, (0, 0, 0))
        self.assertEqual(notes, [])

    def test_transparent_color_gives_null_pen_without_caps(self) -> None:
        pen, _ = pen_from_gc(GraphicsContext(col=(10, 20, 30, 0), lend="butt", ljoin="bevel"), user_lty=True)
        self.assertEqual(pen.style, PS_GEOMETRIC | PS_NULL)
        self.assertEqual(pen.brush_style, BS_NULL)

    def test_user_line_type_becomes_dash_entries(self) -> None:
        pen, _ = pen_from_gc(GraphicsContext(lty=LTY_DASHED), user_lty=True)
        self.assertEqual(pen.style & 0xF, PS_USERSTYLE)
        self.assertEqual(pen.style_entries, (141, 141))

    def test_standard_line_types_map_to_stock_styles(self) -> None:
        dashed, _ = pen_from_gc(GraphicsContext(lty=LTY_DASHED), user_lty=False)
        dotted, _ = pen_from_gc(GraphicsContext(lty=LTY_DOTTED), user_lty=False)
        self.assertEqual(dashed.style & 0xF, PS_DASH)
        self.assertEqual(dotted.style & 0xF, PS_DOT)
        self.assertEqual(dashed.style_entries, ())

    def test_unsupported_standard_line_type_degrades_to_solid(self) -> None:
        pen, notes = pen_from_gc(GraphicsContext(lty=LTY_TWODASH), user_lty=False)
        self.assertEqual(pen.style & 0xF, PS_SOLID)
        self.assertEqual(len(notes), 1)

    def test_cap_and_join_bits(self) -> None:
        pen, _ = pen_from_gc(GraphicsContext(lend="butt", ljoin="mitre"), user_lty=True)
        self.assertEqual(pen.style & 0xF00, PS_ENDCAP_FLAT)
        self.assertEqual(pen.style & 0xF000, PS_JOIN_MITER)
        bevel, _ = pen_from_gc(GraphicsContext(ljoin="bevel"), user_lty=True)
        self.assertEqual(bevel.style & 0xF000, PS_JOIN_BEVEL)

    def test_partial_transparency_noted(self) -> None:
        _, notes = pen_from_gc(GraphicsContext(col=(0, 0, 0, 128)), user_lty=True)
        self.assertEqual(len(notes), 1)
        _, brush_notes = brush_from_color((0, 0, 0, 128))
        self.assertEqual(len(brush_notes), 1)

    def test_dash_entries_stop_at_zero_nibble_and_cap_at_eight(self) -> None:
        self.assertEqual(dash_entries(0), ())
        self.assertEqual(len(dash_entries(0x0F3)), 2)
        self.assertEqual(len(dash_entries(0x1111111111)), 8)


class FontConstructionTests(unittest.TestCase):
    def test_logfont_fields(self) -> None:
        font = font_for(4, 12.0, 90.0, "Arial")
        self.assertEqual(font.height, -423)
        self.assertEqual(font.escapement, 900)
        self.assertEqual(font.weight, 700)
        self.assertEqual(font.italic, 1)
        logfont = font.logfont()
        self.assertEqual(len(logfont), 92)
        self.assertEqual(logfont[28:38], "Arial".encode("utf-16-le"))
        self.assertEqual(logfont[38:], bytes(54))

    def test_long_face_names_keep_a_terminator(self) -> None:
        font = font_for(1, 12.0, 0, "X" * 40)
        self.assertEqual(len(font.face), 62)
        self.assertEqual(font.logfont()[-2:], b"\x00\x00")

    def test_symbol_face_matches_plain_face_descriptor(self) -> None:
        self.assertEqual(font_for(1, 12.0, 0, "Helvetica"), font_for(5, 12.0, 0, "Helvetica"))

    def test_creation_record_carries_handle(self) -> None:
        h = _Harness()
        h.fonts.intern(font_for(1, 10.0, 0, "Helvetica"))
        data = h.sink.getvalue()
        self.assertEqual(u32(data, 8), 1)


if __name__ == "__main__":
    unittest.main()
