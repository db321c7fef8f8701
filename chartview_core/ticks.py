from __future__ import annotations

from dataclasses import dataclass
import datetime as dt
from decimal import Decimal, InvalidOperation
import math
from typing import Literal, Sequence

import numpy as np

from chartview_core.scales import TimeScale, ValueScale


TimeUnit = Literal["s", "ms"]

EPOCH_SECONDS_BOUNDS = (9.466e8, 4.1e9)
EPOCH_MILLIS_BOUNDS = (9.466e11, 4.1e12)

MINUTE = 60.0
HOUR = 3600.0
DAY = 86400.0
YEAR = 365.0 * DAY

# Calendar-friendly steps in seconds, smallest first.
TIME_STEPS = (
    1.0, 2.0, 5.0, 10.0, 15.0, 30.0,
    MINUTE, 2 * MINUTE, 5 * MINUTE, 10 * MINUTE, 15 * MINUTE, 30 * MINUTE,
    HOUR, 2 * HOUR, 3 * HOUR, 6 * HOUR, 12 * HOUR,
    DAY, 2 * DAY, 7 * DAY, 14 * DAY, 30 * DAY, 90 * DAY, 180 * DAY, YEAR,
)

_SI_SUFFIXES = ((1e3, "K"), (1e6, "M"), (1e9, "B"), (1e12, "T"))
_EMPTY = np.empty(0, dtype=np.float64)


@dataclass(frozen=True)
class AxisTicks:
    """Major/minor tick values with their pixel positions and major labels."""

    values: np.ndarray
    positions: np.ndarray
    labels: list[str]
    minor_values: np.ndarray
    minor_positions: np.ndarray

    def __len__(self) -> int:
        return int(self.values.size)


def nice_step(raw_step: float) -> float:
    """Round `raw_step` up onto the 1-2-5 ladder of its power of ten."""
    base = 10.0 ** math.floor(math.log10(raw_step))
    frac = raw_step / base
    if frac <= 1.0:
        nice = 1.0
    elif frac <= 2.0:
        nice = 2.0
    elif frac <= 5.0:
        nice = 5.0
    else:
        nice = 10.0
    return nice * base


def nice_ticks(vmin: float, vmax: float, target_count: int) -> np.ndarray:
    if target_count <= 0 or not (math.isfinite(vmin) and math.isfinite(vmax)):
        return _EMPTY.copy()
    span = vmax - vmin
    if span <= 1e-12:
        return _EMPTY.copy()
    step = nice_step(span / target_count)
    eps = step * 1e-9
    first = math.ceil(vmin / step - 1e-9)
    out: list[float] = []
    for i in range(target_count * 4):
        value = (first + i) * step
        if value > vmax + eps:
            break
        if abs(value) <= eps:
            value = 0.0
        out.append(value)
    return np.asarray(out, dtype=np.float64)


def log_ticks(vmin: float, vmax: float, target: int = 6) -> np.ndarray:
    """One tick per power of ten from `floor(log10 vmin)` to `ceil(log10 vmax)`.

    `target` is accepted for symmetry with `nice_ticks`; every decade is kept.
    """
    if not (math.isfinite(vmin) and math.isfinite(vmax)) or vmin <= 0.0 or vmax <= vmin:
        return _EMPTY.copy()
    lo = math.floor(math.log10(vmin))
    hi = math.ceil(math.log10(vmax))
    return np.asarray([10.0**k for k in range(lo, hi + 1)], dtype=np.float64)


def minor_ticks_linear(majors: Sequence[float] | np.ndarray, subdivisions: int) -> np.ndarray:
    arr = np.asarray(majors, dtype=np.float64)
    if subdivisions <= 0 or arr.size < 2:
        return _EMPTY.copy()
    fractions = np.arange(1, subdivisions + 1, dtype=np.float64) / float(subdivisions + 1)
    lows = arr[:-1, None]
    highs = arr[1:, None]
    return (lows + (highs - lows) * fractions[None, :]).ravel()


def minor_ticks_log(vmin: float, vmax: float) -> np.ndarray:
    if not (math.isfinite(vmin) and math.isfinite(vmax)) or vmin <= 0.0 or vmax <= vmin:
        return _EMPTY.copy()
    out: list[float] = []
    for k in range(math.floor(math.log10(vmin)), math.ceil(math.log10(vmax)) + 1):
        decade = 10.0**k
        for m in range(2, 10):
            value = m * decade
            if vmin <= value <= vmax:
                out.append(value)
    return np.asarray(out, dtype=np.float64)


def format_tick(value: float, value_range: float) -> str:
    """Label for a linear tick; precision follows the displayed range's magnitude."""
    if not math.isfinite(value):
        return str(value)
    rng = abs(value_range)
    if rng >= 1e6:
        return _format_si(value)
    decimals = _decimals_for_range(rng)
    d = Decimal(repr(float(value)))
    try:
        q = d.quantize(Decimal("1").scaleb(-decimals))
    except InvalidOperation:
        q = d
    out = format(q, "f")
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    if out == "-0":
        out = "0"
    return out


def format_log_tick(value: float) -> str:
    if not math.isfinite(value):
        return str(value)
    if value == 0.0:
        return "0"
    abs_v = abs(value)
    if abs_v >= 1.0:
        return f"{value:.0f}"
    exp = math.floor(math.log10(abs_v) + 1e-9)
    mantissa = round(value / 10.0**exp, 6)
    if mantissa == 1.0:
        return f"1e{exp}"
    if mantissa == -1.0:
        return f"-1e{exp}"
    return f"{mantissa:g}e{exp}"


def detect_time_unit(vmin: float, vmax: float) -> TimeUnit | None:
    """Guess whether axis bounds are UNIX epoch seconds or milliseconds."""
    if not (math.isfinite(vmin) and math.isfinite(vmax)):
        return None
    lo, hi = EPOCH_SECONDS_BOUNDS
    if lo <= vmin <= hi and lo <= vmax <= hi:
        return "s"
    lo, hi = EPOCH_MILLIS_BOUNDS
    if lo <= vmin <= hi and lo <= vmax <= hi:
        return "ms"
    return None


def time_label_format(span_seconds: float) -> str:
    span = abs(span_seconds)
    if span <= 2 * MINUTE:
        return "%H:%M:%S"
    if span <= 2 * DAY:
        return "%H:%M"
    if span <= 31 * DAY:
        return "%m-%d %H:%M"
    return "%Y-%m-%d"


def format_time_tick(value: float, unit: TimeUnit, span_seconds: float) -> str:
    if not math.isfinite(value):
        return str(value)
    seconds = value / 1000.0 if unit == "ms" else value
    stamp = dt.datetime.fromtimestamp(seconds, tz=dt.timezone.utc)
    return stamp.strftime(time_label_format(span_seconds))


def time_ticks(vmin: float, vmax: float, target_count: int, unit: TimeUnit) -> np.ndarray:
    """Ticks aligned to calendar-friendly UTC steps, returned in the axis unit."""
    scale = 1000.0 if unit == "ms" else 1.0
    lo = vmin / scale
    hi = vmax / scale
    if target_count <= 0 or not (math.isfinite(lo) and math.isfinite(hi)) or hi - lo <= 1e-12:
        return _EMPTY.copy()
    raw = (hi - lo) / target_count
    step = next((s for s in TIME_STEPS if s >= raw), None)
    if step is None:
        step = nice_step(raw / YEAR) * YEAR
    first = math.ceil(lo / step - 1e-9)
    out: list[float] = []
    for i in range(target_count * 4):
        value = (first + i) * step
        if value > hi + step * 1e-9:
            break
        out.append(value * scale)
    return np.asarray(out, dtype=np.float64)


def plan_value_axis(scale: ValueScale, target: int = 6, *, minor_subdivisions: int = 4) -> AxisTicks:
    vmin, vmax = scale.vmin, scale.vmax
    if scale.is_log:
        majors = _ticks_within_range(log_ticks(vmin, vmax, target), vmin=vmin, vmax=vmax)
        minors = minor_ticks_log(vmin, vmax)
        labels = [format_log_tick(float(v)) for v in majors]
    else:
        majors = nice_ticks(vmin, vmax, target)
        minors = _ticks_within_range(minor_ticks_linear(majors, minor_subdivisions), vmin=vmin, vmax=vmax)
        labels = [format_tick(float(v), vmax - vmin) for v in majors]
    return AxisTicks(
        values=majors,
        positions=np.asarray(scale.to_px(majors), dtype=np.float64),
        labels=labels,
        minor_values=minors,
        minor_positions=np.asarray(scale.to_px(minors), dtype=np.float64),
    )


def plan_time_axis(
    scale: TimeScale,
    x_min: float,
    x_max: float,
    target: int = 8,
    *,
    minor_subdivisions: int = 0,
) -> AxisTicks:
    unit = detect_time_unit(x_min, x_max)
    if unit is None:
        majors = nice_ticks(x_min, x_max, target)
        labels = [format_tick(float(v), x_max - x_min) for v in majors]
    else:
        majors = time_ticks(x_min, x_max, target, unit)
        span_seconds = (x_max - x_min) / (1000.0 if unit == "ms" else 1.0)
        labels = [format_time_tick(float(v), unit, span_seconds) for v in majors]
    minors = _ticks_within_range(minor_ticks_linear(majors, minor_subdivisions), vmin=x_min, vmax=x_max)
    return AxisTicks(
        values=majors,
        positions=np.asarray(scale.to_px(majors), dtype=np.float64),
        labels=labels,
        minor_values=minors,
        minor_positions=np.asarray(scale.to_px(minors), dtype=np.float64),
    )


def _ticks_within_range(ticks: np.ndarray, *, vmin: float, vmax: float) -> np.ndarray:
    if ticks.size == 0:
        return ticks
    eps = max(1e-12, abs(vmax - vmin) * 1e-9)
    return ticks[(ticks >= vmin - eps) & (ticks <= vmax + eps)]


def _decimals_for_range(value_range: float) -> int:
    if value_range <= 0 or not math.isfinite(value_range):
        return 6
    magnitude = math.floor(math.log10(value_range))
    return int(min(10, max(0, 2 - magnitude)))


def _format_si(value: float) -> str:
    label = _trim_zeros(f"{value:.2f}")
    # Largest suffix whose scaled value still rounds to at least 1; 999_999.9 -> "1M".
    for threshold, suffix in _SI_SUFFIXES:
        scaled = round(value / threshold, 2)
        if abs(scaled) < 1.0:
            break
        label = f"{_trim_zeros(f'{scaled:.2f}')}{suffix}"
    return label


def _trim_zeros(text: str) -> str:
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        return "0"
    return text
