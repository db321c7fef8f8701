from __future__ import annotations

import math
import unittest

import numpy as np

from chartview_core.config import ChartConfig
from chartview_core.frame import prepare_frame
from chartview_core.series import Candle, Dataset, Series
from chartview_core.view import ViewState


def _walk(count: int) -> np.ndarray:
    x = np.arange(count, dtype=np.float64)
    return np.column_stack((x, 50.0 + 10.0 * np.sin(x / 30.0)))


def _candles(count: int) -> list[Candle]:
    out = []
    for i in range(count):
        base = 100.0 + math.sin(i / 20.0) * 5.0
        out.append(Candle(t=float(i), o=base, h=base + 1.0, l=base - 1.0, c=base + 0.5))
    return out


class PrepareFrameTests(unittest.TestCase):
    # Default insets leave a 1000x600 plot area.
    WIDTH = 1096
    HEIGHT = 680

    def test_line_series_is_reduced_to_plot_width(self) -> None:
        points = _walk(10_000)
        dataset = Dataset().add_series(Series.line(points))
        view = ViewState.from_chart(dataset)
        frame = prepare_frame(dataset, view, self.WIDTH, self.HEIGHT)

        self.assertEqual((frame.rect.width, frame.rect.height), (1000.0, 600.0))
        layout = frame.series[0]
        self.assertEqual(layout.source_count, 10_000)
        self.assertEqual(layout.reduced_count, 1000)
        self.assertTrue(np.array_equal(layout.points[0], points[0]))
        self.assertTrue(np.array_equal(layout.points[-1], points[-1]))
        self.assertAlmostEqual(float(layout.px[0]), frame.rect.left)
        self.assertAlmostEqual(float(layout.px[-1]), frame.rect.right)
        self.assertTrue(np.all((layout.py >= frame.rect.top) & (layout.py <= frame.rect.bottom)))

    def test_configured_downsample_target(self) -> None:
        dataset = Dataset().add_series(Series.line(_walk(5000)))
        view = ViewState.from_chart(dataset)
        frame = prepare_frame(dataset, view, self.WIDTH, self.HEIGHT, ChartConfig(downsample_target=300))
        self.assertEqual(frame.series[0].reduced_count, 300)

    def test_only_visible_window_is_reduced(self) -> None:
        dataset = Dataset().add_series(Series.line(_walk(10_000)))
        view = ViewState(x_min=1000.0, x_max=1099.0, y_min=0.0, y_max=100.0)
        frame = prepare_frame(dataset, view, self.WIDTH, self.HEIGHT)
        layout = frame.series[0]
        self.assertEqual(layout.source_count, 102)
        self.assertEqual(layout.reduced_count, 102)
        self.assertEqual(float(layout.points[0, 0]), 999.0)

    def test_candles_are_bucketed_to_fit_plot(self) -> None:
        dataset = Dataset().add_series(Series.candlestick(_candles(5000)))
        view = ViewState.from_chart(dataset)
        frame = prepare_frame(dataset, view, self.WIDTH, self.HEIGHT)
        layout = frame.series[0]
        # 1000px / 3px per candle -> at most 333 buckets.
        self.assertEqual(layout.bucket_size, 16)
        self.assertEqual(len(layout.candles), math.ceil(5000 / 16))
        self.assertEqual(layout.py.shape, (len(layout.candles), 4))
        # Highs sit above lows on screen.
        self.assertTrue(np.all(layout.py[:, 1] <= layout.py[:, 2]))
        self.assertTrue(np.all(np.diff(layout.px) > 0))

    def test_log_mode_and_ticks(self) -> None:
        dataset = Dataset().add_series(Series.line([(0.0, 1.0), (1.0, 10.0), (2.0, 1000.0)]))
        view = ViewState(x_min=0.0, x_max=2.0, y_min=1.0, y_max=1000.0)
        frame = prepare_frame(dataset, view, self.WIDTH, self.HEIGHT, mode="log10")
        self.assertEqual(frame.y_ticks.labels, ["1", "10", "100", "1000"])
        self.assertAlmostEqual(float(frame.series[0].py[1]), frame.rect.bottom - 200.0)
        self.assertGreater(len(frame.x_ticks), 0)

    def test_frame_keeps_view_snapshot(self) -> None:
        dataset = Dataset().add_series(Series.line(_walk(100)))
        view = ViewState.from_chart(dataset)
        frame = prepare_frame(dataset, view, self.WIDTH, self.HEIGHT)
        view.pan_by_pixels(200.0, 0.0, self.WIDTH, self.HEIGHT)
        self.assertNotEqual(frame.view.x_min, view.x_min)

    def test_empty_series_produce_empty_layouts(self) -> None:
        dataset = Dataset().add_series(Series.line([])).add_series(Series.bar([]))
        frame = prepare_frame(dataset, ViewState.unit(), self.WIDTH, self.HEIGHT)
        self.assertEqual([layout.reduced_count for layout in frame.series], [0, 0])
        self.assertEqual(frame.series[1].py.shape, (0, 4))


if __name__ == "__main__":
    unittest.main()
