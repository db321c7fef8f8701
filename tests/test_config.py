from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

from chartview_core.config import ChartConfig, load_config
from chartview_core.geometry import Insets
from chartview_core.scales import ChartTransform, TimeScale, ValueScale
from chartview_core.view import ViewState


class ChartConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = ChartConfig()
        self.assertIsNone(cfg.downsample_target)
        self.assertEqual((cfg.x_tick_target, cfg.y_tick_target), (8, 6))
        self.assertEqual((cfg.min_bar_spacing, cfg.max_bar_spacing), (0.5, 200.0))
        self.assertEqual((cfg.min_zoom_factor, cfg.max_zoom_factor), (0.1, 10.0))
        self.assertEqual(cfg.y_margin_frac, 0.02)
        self.assertEqual(cfg.insets, Insets(left=72, right=24, top=24, bottom=56))

    def test_downsample_threshold(self) -> None:
        self.assertEqual(ChartConfig().downsample_threshold(1000.0), 1000)
        self.assertEqual(ChartConfig().downsample_threshold(0.5), 2)
        self.assertEqual(ChartConfig(downsample_target=250).downsample_threshold(1000.0), 250)

    def test_invalid_values_rejected(self) -> None:
        with self.assertRaises(ValueError):
            ChartConfig(downsample_target=1)
        with self.assertRaises(ValueError):
            ChartConfig(y_tick_target=0)
        with self.assertRaises(ValueError):
            ChartConfig(min_bar_spacing=10.0, max_bar_spacing=5.0)
        with self.assertRaises(ValueError):
            ChartConfig(min_zoom_factor=0.0)
        with self.assertRaises(ValueError):
            ChartConfig(min_candle_px=0.0)
        with self.assertRaises(ValueError):
            Insets(left=-1)


class LoadConfigTests(unittest.TestCase):
    def test_load_chart_and_insets_tables(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "chart.toml"
            path.write_text(
                "\n".join(
                    [
                        "[chart]",
                        "downsample_target = 500",
                        "y_tick_target = 4",
                        "max_zoom_factor = 5",
                        "y_margin_frac = 0.05",
                        "",
                        "[insets]",
                        "left = 40",
                        "bottom = 30",
                    ]
                )
            )
            cfg = load_config(path)
        self.assertEqual(cfg.downsample_target, 500)
        self.assertEqual(cfg.y_tick_target, 4)
        self.assertEqual(cfg.x_tick_target, 8)
        self.assertEqual(cfg.max_zoom_factor, 5.0)
        self.assertIsInstance(cfg.max_zoom_factor, float)
        self.assertEqual(cfg.y_margin_frac, 0.05)
        self.assertEqual(cfg.insets, Insets(left=40, right=24, top=24, bottom=30))

    def test_empty_file_gives_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "chart.toml"
            path.write_text("")
            self.assertEqual(load_config(path), ChartConfig())

    def test_missing_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(FileNotFoundError):
                load_config(Path(td) / "absent.toml")

    def test_bad_types_rejected(self) -> None:
        cases = [
            '[chart]\nx_tick_target = "eight"',
            "[chart]\nx_tick_target = 2.5",
            "[chart]\nmin_candle_px = true",
            '[insets]\nleft = "wide"',
            'chart = "flat"',
            "[chart]\nmin_bar_spacing = 300.0",
        ]
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "chart.toml"
            for text in cases:
                path.write_text(text)
                with self.subTest(text=text):
                    with self.assertRaises(ValueError):
                        load_config(path)


class ConfiguredZoomTests(unittest.TestCase):
    def _load(self, text: str) -> ChartConfig:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "chart.toml"
            path.write_text(text)
            return load_config(path)

    def test_zoom_factor_bounds_from_config(self) -> None:
        cfg = self._load("[chart]\nmin_zoom_factor = 0.5\nmax_zoom_factor = 2.0")
        configured = ViewState(x_min=0.0, x_max=100.0, y_min=0.0, y_max=100.0)
        default = ViewState(x_min=0.0, x_max=100.0, y_min=0.0, y_max=100.0)
        # Default insets leave a 1000x600 plot; (572, 324) is its centre.
        configured.zoom_with_config(0.9, 572.0, 324.0, 1096, 680, cfg)
        default.zoom_at_pixel(0.9, 572.0, 324.0, 1096, 680)
        self.assertAlmostEqual(configured.x_max - configured.x_min, 50.0)
        self.assertAlmostEqual(default.x_max - default.x_min, 10.0)
        configured.zoom_with_config(-50.0, 572.0, 324.0, 1096, 680, cfg)
        self.assertAlmostEqual(configured.y_max - configured.y_min, 100.0)

    def test_zoom_uses_configured_insets(self) -> None:
        cfg = self._load("[insets]\nleft = 0\nright = 0\ntop = 0\nbottom = 0")
        view = ViewState(x_min=0.0, x_max=100.0, y_min=0.0, y_max=100.0)
        view.zoom_with_config(0.5, 0.0, 0.0, 1000, 600, cfg)
        # Cursor at the plot's top-left corner pins x_min and y_max.
        self.assertAlmostEqual(view.x_min, 0.0)
        self.assertAlmostEqual(view.y_max, 100.0)
        self.assertAlmostEqual(view.x_max, 50.0)

    def test_bar_spacing_bounds_from_config(self) -> None:
        cfg = self._load("[chart]\nmin_bar_spacing = 1.0\nmax_bar_spacing = 4.0")
        transform = ChartTransform(
            time=TimeScale(left_px=0.0, start_logical=0.0, bar_spacing=2.0),
            value=ValueScale.linear(0.0, 100.0, 0.0, 1.0),
        )
        transform.zoom_with_config(50.0, 10.0, cfg)
        self.assertEqual(transform.time.bar_spacing, 4.0)
        transform.zoom_with_config(50.0, 0.01, cfg)
        self.assertEqual(transform.time.bar_spacing, 1.0)


if __name__ == "__main__":
    unittest.main()
