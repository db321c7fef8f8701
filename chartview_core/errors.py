from __future__ import annotations

from typing import Literal


CandleErrorKind = Literal["low_above_open_close", "high_below_open_close", "low_above_high"]

_CANDLE_MESSAGES: dict[str, str] = {
    "low_above_open_close": "low above min(open,close)",
    "high_below_open_close": "high below max(open,close)",
    "low_above_high": "low above high",
}


class ChartCoreError(ValueError):
    """Base class for errors raised at chartview_core input boundaries."""


class ChartDataError(ChartCoreError):
    pass


class CandleError(ChartCoreError):
    def __init__(self, kind: CandleErrorKind, *, t: float | None = None) -> None:
        self.kind = kind
        self.t = t
        message = _CANDLE_MESSAGES[kind]
        if t is not None:
            message = f"{message} (t={t!r})"
        super().__init__(message)
