from __future__ import annotations

from collections.abc import Mapping, Sequence
import logging
from typing import Any

import numpy as np

from chartview_core.errors import ChartDataError
from chartview_core.series import Candle

LOGGER = logging.getLogger(__name__)


try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]

try:
    import torch
except Exception:  # pragma: no cover - optional dependency
    torch = None  # type: ignore[assignment]


def normalize_points(y: Any = None, *, x: Any = None, data: Any = None) -> np.ndarray:
    """Coerce y (and optional x) input into an `(n, 2)` array of finite points."""
    y_values = _resolve_input(y, data=data)
    if y_values is None:
        raise ChartDataError("y input is required")

    y_arr = _as_float_column(y_values, label="y")
    if y_arr.size == 0:
        raise ChartDataError("empty series")

    if x is None:
        x_arr = np.arange(y_arr.size, dtype=np.float64)
    else:
        x_arr = _as_float_column(_resolve_input(x, data=data), label="x")

    if x_arr.shape != y_arr.shape:
        raise ChartDataError(f"x and y length mismatch: {x_arr.size} != {y_arr.size}")

    mask = np.isfinite(x_arr) & np.isfinite(y_arr)
    if not np.any(mask):
        raise ChartDataError("series contains no finite points")
    dropped = int(mask.size - np.count_nonzero(mask))
    if dropped:
        LOGGER.warning("dropped %d non-finite points from series input", dropped)
    return np.column_stack((x_arr[mask], y_arr[mask]))


def normalize_candles(
    data: Any,
    *,
    t: str = "t",
    o: str = "o",
    h: str = "h",
    l: str = "l",
    c: str = "c",
) -> list[Candle]:
    """Build validated candles from a DataFrame or a mapping of columns."""
    columns = []
    for key in (t, o, h, l, c):
        columns.append(_as_float_column(_column(data, key), label=key))
    length = columns[0].size
    if any(col.size != length for col in columns):
        raise ChartDataError("candle columns must have equal length")

    stacked = np.column_stack(columns) if length else np.empty((0, 5), dtype=np.float64)
    mask = np.all(np.isfinite(stacked), axis=1)
    dropped = int(mask.size - np.count_nonzero(mask))
    if dropped:
        LOGGER.warning("dropped %d non-finite candles from input", dropped)
    return [Candle(t=row[0], o=row[1], h=row[2], l=row[3], c=row[4]) for row in stacked[mask].tolist()]


def _column(data: Any, key: str) -> Any:
    if pd is not None and isinstance(data, pd.DataFrame):
        if key not in data.columns:
            raise ChartDataError(f"column not found: {key}")
        return data[key]
    if isinstance(data, Mapping):
        if key not in data:
            raise ChartDataError(f"column not found: {key}")
        return data[key]
    raise ChartDataError(f"unsupported candle input type: {type(data)!r}")


def _resolve_input(value: Any, *, data: Any) -> Any:
    """Turn column names and single-column DataFrames into 1-D inputs."""
    if data is not None:
        if pd is None or not isinstance(data, pd.DataFrame):
            raise ChartDataError("`data` must be a pandas DataFrame")
        if isinstance(value, str):
            return _column(data, value)
        if value is None:
            return _only_numeric_column(data)
        return value
    if pd is not None and isinstance(value, pd.DataFrame):
        return _only_numeric_column(value)
    return value


def _only_numeric_column(frame: Any) -> Any:
    numeric = [col for col in frame.columns if pd.api.types.is_numeric_dtype(frame[col])]
    if len(numeric) != 1:
        raise ChartDataError("DataFrame input must have exactly one numeric column")
    return frame[numeric[0]]


def _as_float_column(value: Any, *, label: str) -> np.ndarray:
    if torch is not None and isinstance(value, torch.Tensor):
        arr = value.detach().cpu().to(torch.float64).numpy()
    elif pd is not None and isinstance(value, pd.Series):
        arr = value.to_numpy()
    elif isinstance(value, np.ndarray):
        arr = value
    elif isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        arr = np.asarray(value, dtype=object)
    else:
        raise ChartDataError(f"unsupported {label} input type: {type(value)!r}")

    if arr.ndim != 1:
        raise ChartDataError(f"{label} must be 1-D")
    if arr.dtype.kind in "iufb":
        return arr.astype(np.float64, copy=False)
    # Object columns: None becomes NaN, Decimal and numeric strings go through float().
    try:
        return np.asarray([np.nan if raw is None else float(raw) for raw in arr.tolist()], dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ChartDataError(f"{label} contains non-numeric values") from exc
