from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

from emfdev_core.core.config import DeviceConfig, device_config_from_mapping, load_device_config
from emfdev_core.core.graphics import TRANSPARENT_WHITE, parse_color


class LoadDeviceConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.addCleanup(self._td.cleanup)
        self.root = Path(self._td.name)

    def _write(self, text: str) -> Path:
        path = self.root / "device.toml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_reads_device_table(self) -> None:
        path = self._write(
            """
[device]
width_in = 4
height_in = 3.5
family = "Arial"
bg = "#ffffff"
user_lty = false
"""
        )
        config = load_device_config(path)
        self.assertEqual(config.width_in, 4.0)
        self.assertIsInstance(config.width_in, float)
        self.assertEqual(config.height_in, 3.5)
        self.assertEqual(config.family, "Arial")
        self.assertEqual(config.bg_color, (255, 255, 255, 255))
        self.assertFalse(config.user_lty)
        self.assertEqual(config.pointsize, 12.0)

    def test_overrides_win_and_none_is_ignored(self) -> None:
        path = self._write('[device]\nfamily = "Arial"\npointsize = 10\n')
        config = load_device_config(path, pointsize=9, family=None)
        self.assertEqual(config.pointsize, 9.0)
        self.assertEqual(config.family, "Arial")

    def test_missing_table_gives_defaults(self) -> None:
        path = self._write('[other]\nname = "x"\n')
        self.assertEqual(load_device_config(path), DeviceConfig())

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_device_config(self.root / "absent.toml")

    def test_device_must_be_a_table(self) -> None:
        with self.assertRaises(ValueError):
            load_device_config(self._write("device = 3\n"))

    def test_unknown_field_rejected(self) -> None:
        with self.assertRaisesRegex(ValueError, "colour"):
            load_device_config(self._write('[device]\ncolour = "red"\n'))


class DeviceConfigValidationTests(unittest.TestCase):
    def test_bool_is_not_a_number(self) -> None:
        with self.assertRaises(ValueError):
            device_config_from_mapping({"width_in": True})

    def test_string_is_not_a_bool(self) -> None:
        with self.assertRaises(ValueError):
            device_config_from_mapping({"user_lty": "yes"})

    def test_non_positive_sizes_rejected(self) -> None:
        with self.assertRaises(ValueError):
            DeviceConfig(width_in=0)
        with self.assertRaises(ValueError):
            DeviceConfig(pointsize=-1)

    def test_bad_colors_rejected(self) -> None:
        with self.assertRaises(ValueError):
            DeviceConfig(bg="nope")
        with self.assertRaises(ValueError):
            DeviceConfig(fg="none")

    def test_none_background_is_transparent(self) -> None:
        self.assertEqual(DeviceConfig(bg="none").bg_color, TRANSPARENT_WHITE)
        self.assertEqual(DeviceConfig().bg_color, TRANSPARENT_WHITE)


class ParseColorTests(unittest.TestCase):
    def test_hex_forms(self) -> None:
        self.assertEqual(parse_color("#f00"), (255, 0, 0, 255))
        self.assertEqual(parse_color("#f008"), (255, 0, 0, 136))
        self.assertEqual(parse_color("#112233"), (0x11, 0x22, 0x33, 255))
        self.assertEqual(parse_color("#11223344"), (0x11, 0x22, 0x33, 0x44))

    def test_rgb_function_and_names(self) -> None:
        self.assertEqual(parse_color("rgb(1, 2, 3)"), (1, 2, 3, 255))
        self.assertEqual(parse_color(" GREY "), (190, 190, 190, 255))

    def test_rgb_components_clamp_to_byte_range(self) -> None:
        self.assertEqual(parse_color("rgb(300, -5, 128)"), (255, 0, 128, 255))

    def test_unparseable_values(self) -> None:
        for value in (None, "", "none", "#12", "#zzz", "rgb(1, x, 3)", "mauve"):
            self.assertIsNone(parse_color(value), value)


if __name__ == "__main__":
    unittest.main()
