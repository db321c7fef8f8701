from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import time

import numpy as np

from chartview_core import (
    Candle,
    ChartConfig,
    Dataset,
    Series,
    ViewState,
    aggregate_ohlc_buckets,
    load_config,
    lttb,
    prepare_frame,
)


def synthetic_walk(points: int, *, seed: int = 7) -> np.ndarray:
    rng = np.random.default_rng(seed)
    y = 100.0 + np.cumsum(rng.normal(0.0, 1.0, size=points))
    x = np.arange(points, dtype=np.float64)
    return np.column_stack((x, y))


def synthetic_candles(count: int, *, seed: int = 7, start: float = 1_700_000_000.0, step: float = 60.0) -> list[Candle]:
    rng = np.random.default_rng(seed)
    closes = 100.0 + np.cumsum(rng.normal(0.0, 0.5, size=count))
    opens = np.concatenate(([closes[0]], closes[:-1]))
    wick = np.abs(rng.normal(0.0, 0.3, size=(count, 2)))
    highs = np.maximum(opens, closes) + wick[:, 0]
    lows = np.minimum(opens, closes) - wick[:, 1]
    return [
        Candle(t=start + i * step, o=float(opens[i]), h=float(highs[i]), l=float(lows[i]), c=float(closes[i]))
        for i in range(count)
    ]


def _timed(fn, repeat: int) -> float:
    started = time.perf_counter()
    for _ in range(repeat):
        fn()
    return (time.perf_counter() - started) / repeat * 1000.0


def run_bench(args: argparse.Namespace) -> dict[str, object]:
    points = synthetic_walk(args.points)
    candles = synthetic_candles(args.points)
    dataset = Dataset().add_series(Series.line(points))
    view = ViewState.from_chart(dataset)
    return {
        "points": args.points,
        "lttb_ms": round(_timed(lambda: lttb(points, args.threshold), args.repeat), 3),
        "aggregate_ms": round(_timed(lambda: aggregate_ohlc_buckets(candles, args.bucket), args.repeat), 3),
        "prepare_frame_ms": round(_timed(lambda: prepare_frame(dataset, view, args.width, args.height), args.repeat), 3),
    }


def run_frame(args: argparse.Namespace) -> dict[str, object]:
    config = load_config(args.config) if args.config is not None else ChartConfig()
    dataset = Dataset().add_series(Series.candlestick(synthetic_candles(args.candles), label="synthetic"))
    view = ViewState.from_chart(dataset, y_margin_frac=config.y_margin_frac)
    frame = prepare_frame(dataset, view, args.width, args.height, config, mode="log10" if args.log else "linear")
    return {
        "plot_rect": [frame.rect.left, frame.rect.top, frame.rect.right, frame.rect.bottom],
        "view": [view.x_min, view.x_max, view.y_min, view.y_max],
        "series": [
            {
                "label": layout.series.label,
                "source_count": layout.source_count,
                "reduced_count": layout.reduced_count,
                "bucket_size": layout.bucket_size,
            }
            for layout in frame.series
        ],
        "x_ticks": frame.x_ticks.labels,
        "y_ticks": frame.y_ticks.labels,
    }


def main() -> None:
    parser = argparse.ArgumentParser(prog="chartview")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    bench = sub.add_parser("bench", help="Time downsampling, aggregation and frame preparation on synthetic data.")
    bench.add_argument("--points", type=int, default=100_000)
    bench.add_argument("--threshold", type=int, default=1000)
    bench.add_argument("--bucket", type=int, default=8)
    bench.add_argument("--repeat", type=int, default=5)
    bench.add_argument("--width", type=int, default=1024)
    bench.add_argument("--height", type=int, default=640)

    frame = sub.add_parser("frame", help="Print a JSON summary of one prepared frame over synthetic candles.")
    frame.add_argument("--config", type=Path, default=None, help="TOML chart config ([chart] and [insets] tables).")
    frame.add_argument("--candles", type=int, default=5000)
    frame.add_argument("--width", type=int, default=1024)
    frame.add_argument("--height", type=int, default=640)
    frame.add_argument("--log", action="store_true", help="Use a log10 value scale.")

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.command == "bench":
        if args.points <= 0 or args.repeat <= 0:
            parser.error("--points and --repeat must be > 0")
        print(json.dumps(run_bench(args), indent=2))
        return
    if args.command == "frame":
        if args.candles <= 0:
            parser.error("--candles must be > 0")
        print(json.dumps(run_frame(args), indent=2))
        return


if __name__ == "__main__":
    main()
