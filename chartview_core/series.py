from __future__ import annotations

from dataclasses import dataclass, field
import math
from typing import Any, Literal, Sequence

import numpy as np

from chartview_core.errors import CandleError


SeriesType = Literal["line", "histogram", "baseline", "candlestick", "bar"]

XY_SERIES_TYPES: frozenset[str] = frozenset({"line", "histogram", "baseline"})
OHLC_SERIES_TYPES: frozenset[str] = frozenset({"candlestick", "bar"})

DEGENERATE_SPAN = 1e-12


@dataclass(frozen=True)
class Candle:
    """One OHLC candle. Construction rejects invalid OHLC relationships."""

    t: float
    o: float
    h: float
    l: float
    c: float

    def __post_init__(self) -> None:
        if self.l > min(self.o, self.c):
            raise CandleError("low_above_open_close", t=self.t)
        if self.h < max(self.o, self.c):
            raise CandleError("high_below_open_close", t=self.t)
        # Only reachable when open/close are NaN and the checks above pass.
        if self.l > self.h:
            raise CandleError("low_above_high", t=self.t)

    @classmethod
    def try_new(cls, t: float, o: float, h: float, l: float, c: float) -> "Candle | None":
        try:
            return cls(t=float(t), o=float(o), h=float(h), l=float(l), c=float(c))
        except CandleError:
            return None


@dataclass(frozen=True)
class LogicalRange:
    min: float
    max: float

    @property
    def span(self) -> float:
        return self.max - self.min

    def normalized(self) -> "LogicalRange":
        if abs(self.max - self.min) < DEGENERATE_SPAN:
            return LogicalRange(min=self.min, max=self.min + 1.0)
        return self

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


def as_points(points: Any) -> np.ndarray:
    """Coerce array-like `(x, y)` pairs into an `(n, 2)` float64 array."""
    arr = np.asarray(points, dtype=np.float64)
    if arr.size == 0:
        return np.empty((0, 2), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"points must have shape (n, 2), got {arr.shape}")
    return arr


@dataclass
class Series:
    series_type: SeriesType
    xy: np.ndarray = field(default_factory=lambda: np.empty((0, 2), dtype=np.float64))
    candles: list[Candle] = field(default_factory=list)
    baseline: float | None = None
    label: str | None = None

    def __post_init__(self) -> None:
        if self.series_type not in XY_SERIES_TYPES and self.series_type not in OHLC_SERIES_TYPES:
            raise ValueError(f"unknown series type: {self.series_type}")
        self.xy = as_points(self.xy)
        self.candles = list(self.candles)

    @classmethod
    def line(cls, points: Any, *, label: str | None = None) -> "Series":
        return cls(series_type="line", xy=as_points(points), label=label)

    @classmethod
    def histogram(cls, points: Any, *, label: str | None = None) -> "Series":
        return cls(series_type="histogram", xy=as_points(points), label=label)

    @classmethod
    def baseline_series(cls, points: Any, baseline: float, *, label: str | None = None) -> "Series":
        return cls(series_type="baseline", xy=as_points(points), baseline=float(baseline), label=label)

    @classmethod
    def candlestick(cls, candles: Sequence[Candle], *, label: str | None = None) -> "Series":
        return cls(series_type="candlestick", candles=list(candles), label=label)

    @classmethod
    def bar(cls, candles: Sequence[Candle], *, label: str | None = None) -> "Series":
        return cls(series_type="bar", candles=list(candles), label=label)

    @property
    def is_ohlc(self) -> bool:
        return self.series_type in OHLC_SERIES_TYPES

    def __len__(self) -> int:
        return len(self.candles) if self.is_ohlc else int(self.xy.shape[0])

    def x_values(self) -> np.ndarray:
        if self.is_ohlc:
            return np.fromiter((c.t for c in self.candles), dtype=np.float64, count=len(self.candles))
        return self.xy[:, 0]

    def extents(self) -> tuple[float, float, float, float] | None:
        """(x_min, x_max, y_min, y_max) over the whole series, including the baseline."""
        if self.is_ohlc:
            if not self.candles:
                return None
            x_min = min(c.t for c in self.candles)
            x_max = max(c.t for c in self.candles)
            y_min = min(c.l for c in self.candles)
            y_max = max(c.h for c in self.candles)
            return (x_min, x_max, y_min, y_max)
        if self.xy.shape[0] == 0:
            return None
        x_min = float(np.min(self.xy[:, 0]))
        x_max = float(np.max(self.xy[:, 0]))
        y_min = float(np.min(self.xy[:, 1]))
        y_max = float(np.max(self.xy[:, 1]))
        if self.baseline is not None:
            y_min = min(y_min, self.baseline)
            y_max = max(y_max, self.baseline)
        return (x_min, x_max, y_min, y_max)


@dataclass
class Axis:
    label: str
    min: float
    max: float

    @classmethod
    def default_x(cls) -> "Axis":
        return cls(label="Time", min=0.0, max=10.0)

    @classmethod
    def default_y(cls) -> "Axis":
        return cls(label="Price", min=0.0, max=100.0)


@dataclass
class Dataset:
    """Every series shown on one chart plus the axis ranges they are drawn with."""

    series: list[Series] = field(default_factory=list)
    x_axis: Axis = field(default_factory=Axis.default_x)
    y_axis: Axis = field(default_factory=Axis.default_y)

    def add_series(self, series: Series) -> "Dataset":
        self.series.append(series)
        return self

    def extents(self) -> tuple[float, float, float, float] | None:
        x_min = math.inf
        x_max = -math.inf
        y_min = math.inf
        y_max = -math.inf
        for s in self.series:
            ext = s.extents()
            if ext is None:
                continue
            x_min = min(x_min, ext[0])
            x_max = max(x_max, ext[1])
            y_min = min(y_min, ext[2])
            y_max = max(y_max, ext[3])
        if not all(math.isfinite(v) for v in (x_min, x_max, y_min, y_max)):
            return None
        return (x_min, x_max, y_min, y_max)

    def autoscale_axes(self, y_margin_frac: float = 0.0) -> None:
        """Fit both axes to all series; leaves the axes untouched when nothing is finite."""
        ext = self.extents()
        if ext is None:
            return
        x_min, x_max, y_min, y_max = ext
        if abs(x_max - x_min) < DEGENERATE_SPAN:
            x_max = x_min + 1.0
        if abs(y_max - y_min) < DEGENERATE_SPAN:
            y_max = y_min + 1.0
        margin = (y_max - y_min) * max(0.0, y_margin_frac)
        self.x_axis.min = x_min
        self.x_axis.max = x_max
        self.y_axis.min = y_min - margin
        self.y_axis.max = y_max + margin
