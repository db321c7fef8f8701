from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Literal, Sequence

import numpy as np

from chartview_core.scales import ChartTransform
from chartview_core.series import Candle, Dataset, Series, as_points


IndicatorFn = Callable[[Series, int], np.ndarray]
OverlayEventKind = Literal["pointer_down", "pointer_up", "pointer_move"]

DEFAULT_PERIOD = 14

INDICATORS: dict[str, IndicatorFn] = {}


def sma_xy(points: Any, period: int) -> np.ndarray:
    """Trailing simple moving average of y, stamped with the x of each window's last point."""
    pts = as_points(points)
    n = int(pts.shape[0])
    if period <= 0 or n == 0 or n < period:
        return np.empty((0, 2), dtype=np.float64)
    csum = np.concatenate(([0.0], np.cumsum(pts[:, 1])))
    avg = (csum[period:] - csum[:-period]) / float(period)
    return np.column_stack((pts[period - 1 :, 0], avg))


def sma_candles(candles: Sequence[Candle], period: int) -> np.ndarray:
    closes = np.asarray([(c.t, c.c) for c in candles], dtype=np.float64).reshape(-1, 2)
    return sma_xy(closes, period)


def register_indicator(name: str) -> Callable[[IndicatorFn], IndicatorFn]:
    def _register(fn: IndicatorFn) -> IndicatorFn:
        INDICATORS[name] = fn
        return fn

    return _register


@register_indicator("sma")
def _sma_indicator(series: Series, period: int) -> np.ndarray:
    if series.is_ohlc:
        return sma_candles(series.candles, period)
    return sma_xy(series.xy, period)


def compute_indicator(name: str, series: Series, period: int = DEFAULT_PERIOD) -> Series:
    try:
        fn = INDICATORS[name]
    except KeyError:
        raise KeyError(f"unknown indicator: {name}") from None
    return Series.line(fn(series, period), label=f"{name}({period})")


@dataclass(frozen=True)
class SmaOverlay:
    period: int = DEFAULT_PERIOD
    kind: Literal["sma"] = "sma"


@dataclass(frozen=True)
class HLineOverlay:
    """Horizontal guide line; a pointer-down sets its value."""

    y: float | None = None
    kind: Literal["hline"] = "hline"


Overlay = SmaOverlay | HLineOverlay


@dataclass(frozen=True)
class OverlayEvent:
    """Pointer event in logical chart coordinates."""

    kind: OverlayEventKind
    x: float
    y: float

    @classmethod
    def from_pixels(cls, kind: OverlayEventKind, px: float, py: float, transform: ChartTransform) -> "OverlayEvent":
        x, y = transform.from_screen(px, py)
        return cls(kind=kind, x=float(x), y=float(y))


def compute_overlay(overlay: Overlay, dataset: Dataset) -> list[Series]:
    if isinstance(overlay, SmaOverlay):
        period = max(1, overlay.period)
        # Prefer XY input; fall back to candle closes.
        for series in dataset.series:
            if not series.is_ohlc:
                return [compute_indicator("sma", series, period)]
        for series in dataset.series:
            if series.is_ohlc:
                return [compute_indicator("sma", series, period)]
        return []
    if isinstance(overlay, HLineOverlay):
        if overlay.y is None:
            return []
        line = [(dataset.x_axis.min, overlay.y), (dataset.x_axis.max, overlay.y)]
        return [Series.line(line, label="hline")]
    raise TypeError(f"unknown overlay: {overlay!r}")


def handle_overlay_event(overlay: Overlay, event: OverlayEvent) -> Overlay:
    """Return the overlay state after `event`; the input overlay is never mutated."""
    if isinstance(overlay, HLineOverlay) and event.kind == "pointer_down":
        return replace(overlay, y=event.y)
    return overlay
