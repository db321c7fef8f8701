from __future__ import annotations

import math
from typing import Any, Sequence

import numpy as np

from chartview_core.series import Candle, as_points


def lttb_indices(points: Any, threshold: int) -> np.ndarray:
    """Indices selected by Largest-Triangle-Three-Buckets, ascending.

    The first and last point are always kept. The interior is split into
    `threshold - 2` buckets; each bucket contributes the point forming the
    largest triangle with the previously selected point and the average of
    the next bucket. Equal areas keep the earliest index.
    """
    pts = as_points(points)
    n = int(pts.shape[0])
    if threshold <= 0 or n == 0:
        return np.empty(0, dtype=np.intp)
    if threshold >= n or n <= 2:
        return np.arange(n, dtype=np.intp)
    if threshold == 1:
        return np.zeros(1, dtype=np.intp)
    if threshold == 2:
        return np.asarray([0, n - 1], dtype=np.intp)

    every = (n - 2) / (threshold - 2)
    xs = pts[:, 0]
    ys = pts[:, 1]
    selected = np.empty(threshold, dtype=np.intp)
    selected[0] = 0
    a = 0
    for i in range(threshold - 2):
        start = int(math.floor(1.0 + i * every))
        end = min(int(math.floor(1.0 + (i + 1) * every)), n - 1)
        next_end = min(int(math.floor(1.0 + (i + 2) * every)), n - 1)

        if next_end > end:
            avg_x = float(np.mean(xs[end:next_end]))
            avg_y = float(np.mean(ys[end:next_end]))
        else:
            avg_x = float(xs[end])
            avg_y = float(ys[end])

        stop = max(end, start + 1)
        ax = float(xs[a])
        ay = float(ys[a])
        # Doubled triangle area; only relative magnitude matters.
        area = np.abs((ax - xs[start:stop]) * (avg_y - ay) - (ax - avg_x) * (ys[start:stop] - ay))
        a = start + int(np.argmax(area))
        selected[i + 1] = a

    selected[-1] = n - 1
    return selected


def lttb(points: Any, threshold: int) -> np.ndarray:
    """Reduce an x-ascending `(n, 2)` point sequence to at most `threshold` points."""
    pts = as_points(points)
    return pts[lttb_indices(pts, threshold)].copy()


def visible_slice(xs: np.ndarray, x_min: float, x_max: float) -> slice:
    """Index window of ascending `xs` covering `[x_min, x_max]` plus one neighbour per side."""
    n = int(xs.shape[0])
    if n == 0:
        return slice(0, 0)
    lo = int(np.searchsorted(xs, x_min, side="left"))
    hi = int(np.searchsorted(xs, x_max, side="right"))
    return slice(max(lo - 1, 0), min(hi + 1, n))


def aggregate_ohlc_buckets(candles: Sequence[Candle], bucket_size: int) -> list[Candle]:
    """Merge consecutive fixed-width windows of candles into one candle each.

    Each window keeps the first time and open, the last close, and the true
    high/low extrema, so the OHLC ordering holds for every output candle.
    """
    data = list(candles)
    n = len(data)
    if bucket_size <= 1 or n <= 2:
        return data

    starts = np.arange(0, n, bucket_size)
    highs = np.fromiter((c.h for c in data), dtype=np.float64, count=n)
    lows = np.fromiter((c.l for c in data), dtype=np.float64, count=n)
    bucket_highs = np.maximum.reduceat(highs, starts)
    bucket_lows = np.minimum.reduceat(lows, starts)

    out: list[Candle] = []
    for k, start in enumerate(starts.tolist()):
        first = data[start]
        last = data[min(start + bucket_size, n) - 1]
        out.append(
            Candle(
                t=first.t,
                o=first.o,
                h=float(bucket_highs[k]),
                l=float(bucket_lows[k]),
                c=last.c,
            )
        )
    return out


def bucket_size_for(count: int, max_buckets: float) -> int:
    """Smallest bucket size that fits `count` candles into `max_buckets` buckets."""
    if count <= 0:
        return 1
    limit = max(1, int(math.floor(max_buckets)))
    return max(1, int(math.ceil(count / limit)))
