from __future__ import annotations

import math
import unittest

import numpy as np

from chartview_core.downsample import (
    aggregate_ohlc_buckets,
    bucket_size_for,
    lttb,
    lttb_indices,
    visible_slice,
)
from chartview_core.series import Candle


def _random_candles(count: int, seed: int = 3) -> list[Candle]:
    rng = np.random.default_rng(seed)
    out: list[Candle] = []
    price = 100.0
    for i in range(count):
        o = price
        c = price + float(rng.normal(0.0, 1.0))
        h = max(o, c) + float(abs(rng.normal(0.0, 0.5)))
        l = min(o, c) - float(abs(rng.normal(0.0, 0.5)))
        out.append(Candle(t=float(i), o=o, h=h, l=l, c=c))
        price = c
    return out


class LttbTests(unittest.TestCase):
    def test_quadratic_example_keeps_endpoints(self) -> None:
        pts = [(0, 0), (1, 1), (2, 4), (3, 9), (4, 16), (5, 25)]
        out = lttb(pts, 4)
        self.assertEqual(out.shape, (4, 2))
        self.assertEqual(tuple(out[0]), (0.0, 0.0))
        self.assertEqual(tuple(out[-1]), (5.0, 25.0))

    def test_equal_areas_keep_first_index(self) -> None:
        pts = [(0, 0), (1, 1), (2, 4), (3, 9), (4, 16), (5, 25)]
        # Candidates (3, 9) and (4, 16) form equal areas in the last bucket.
        self.assertEqual(lttb_indices(pts, 4).tolist(), [0, 2, 3, 5])

    def test_output_length_and_endpoints_for_long_series(self) -> None:
        x = np.arange(5000, dtype=np.float64)
        pts = np.column_stack((x, np.sin(x / 40.0) * 10.0))
        for threshold in (3, 10, 250, 4999):
            out = lttb(pts, threshold)
            self.assertEqual(out.shape[0], min(threshold, pts.shape[0]))
            self.assertTrue(np.array_equal(out[0], pts[0]))
            self.assertTrue(np.array_equal(out[-1], pts[-1]))

    def test_indices_are_strictly_increasing_and_deterministic(self) -> None:
        rng = np.random.default_rng(11)
        pts = np.column_stack((np.arange(2000, dtype=np.float64), rng.normal(size=2000)))
        first = lttb_indices(pts, 300)
        second = lttb_indices(pts, 300)
        self.assertTrue(np.array_equal(first, second))
        self.assertTrue(np.all(np.diff(first) > 0))

    def test_keeps_spike(self) -> None:
        y = np.zeros(1000, dtype=np.float64)
        y[517] = 50.0
        pts = np.column_stack((np.arange(1000, dtype=np.float64), y))
        out = lttb(pts, 50)
        self.assertIn(50.0, out[:, 1].tolist())

    def test_special_cases(self) -> None:
        pts = [(0.0, 1.0), (1.0, 2.0), (2.0, 0.5), (3.0, 4.0)]
        self.assertEqual(lttb(pts, 0).shape, (0, 2))
        self.assertEqual(lttb([], 10).shape, (0, 2))
        self.assertEqual(lttb(pts, 1).tolist(), [[0.0, 1.0]])
        self.assertEqual(lttb(pts, 2).tolist(), [[0.0, 1.0], [3.0, 4.0]])
        self.assertEqual(lttb(pts, 10).tolist(), [list(p) for p in pts])
        self.assertEqual(lttb(pts[:2], 1).tolist(), [[0.0, 1.0], [1.0, 2.0]])

    def test_unchanged_result_is_a_copy(self) -> None:
        pts = np.asarray([(0.0, 1.0), (1.0, 2.0), (2.0, 3.0)], dtype=np.float64)
        out = lttb(pts, 5)
        out[0, 1] = 99.0
        self.assertEqual(pts[0, 1], 1.0)

    def test_visible_slice_includes_one_neighbour_each_side(self) -> None:
        xs = np.arange(10, dtype=np.float64)
        window = visible_slice(xs, 3.5, 6.0)
        self.assertEqual((window.start, window.stop), (3, 8))
        self.assertEqual(visible_slice(xs, -5.0, 100.0), slice(0, 10))
        self.assertEqual(visible_slice(np.empty(0), 0.0, 1.0), slice(0, 0))


class AggregateTests(unittest.TestCase):
    def test_two_bucket_example(self) -> None:
        candles = [
            Candle(0, 10, 12, 9, 11),
            Candle(1, 11, 13, 10, 12),
            Candle(2, 12, 14, 11, 13),
        ]
        out = aggregate_ohlc_buckets(candles, 2)
        self.assertEqual(out, [Candle(0, 10, 13, 9, 12), Candle(2, 12, 14, 11, 13)])

    def test_bucket_size_one_is_identity(self) -> None:
        candles = _random_candles(25)
        self.assertEqual(aggregate_ohlc_buckets(candles, 1), candles)
        self.assertEqual(aggregate_ohlc_buckets(candles, 0), candles)

    def test_short_input_is_unchanged(self) -> None:
        candles = _random_candles(2)
        self.assertEqual(aggregate_ohlc_buckets(candles, 5), candles)

    def test_length_order_and_extrema(self) -> None:
        candles = _random_candles(103)
        for bucket in (2, 5, 10, 200):
            out = aggregate_ohlc_buckets(candles, bucket)
            self.assertEqual(len(out), math.ceil(len(candles) / bucket))
            self.assertTrue(all(a.t < b.t for a, b in zip(out, out[1:])))
            for k, agg in enumerate(out):
                window = candles[k * bucket : (k + 1) * bucket]
                self.assertEqual(agg.t, window[0].t)
                self.assertEqual(agg.o, window[0].o)
                self.assertEqual(agg.c, window[-1].c)
                self.assertEqual(agg.h, max(c.h for c in window))
                self.assertEqual(agg.l, min(c.l for c in window))
                self.assertGreaterEqual(agg.h, max(max(c.o, c.c) for c in window))
                self.assertLessEqual(agg.l, min(min(c.o, c.c) for c in window))

    def test_bucket_size_for(self) -> None:
        self.assertEqual(bucket_size_for(1000, 500), 2)
        self.assertEqual(bucket_size_for(1001, 500), 3)
        self.assertEqual(bucket_size_for(10, 500), 1)
        self.assertEqual(bucket_size_for(0, 500), 1)
        self.assertEqual(bucket_size_for(10, 0.2), 10)


if __name__ == "__main__":
    unittest.main()
