from chartview_core.config import ChartConfig, load_config
from chartview_core.downsample import aggregate_ohlc_buckets, lttb, lttb_indices
from chartview_core.errors import CandleError, ChartCoreError, ChartDataError
from chartview_core.frame import FrameLayout, SeriesLayout, prepare_frame
from chartview_core.geometry import Insets, PlotRect, plot_rect
from chartview_core.scales import ChartTransform, TimeScale, ValueScale
from chartview_core.series import Axis, Candle, Dataset, LogicalRange, Series
from chartview_core.ticks import (
    AxisTicks,
    format_log_tick,
    format_tick,
    log_ticks,
    minor_ticks_linear,
    minor_ticks_log,
    nice_ticks,
)
from chartview_core.view import ViewState

__all__ = [
    "Axis",
    "AxisTicks",
    "Candle",
    "CandleError",
    "ChartConfig",
    "ChartCoreError",
    "ChartDataError",
    "ChartTransform",
    "Dataset",
    "FrameLayout",
    "Insets",
    "LogicalRange",
    "PlotRect",
    "Series",
    "SeriesLayout",
    "TimeScale",
    "ValueScale",
    "ViewState",
    "aggregate_ohlc_buckets",
    "format_log_tick",
    "format_tick",
    "load_config",
    "log_ticks",
    "lttb",
    "lttb_indices",
    "minor_ticks_linear",
    "minor_ticks_log",
    "nice_ticks",
    "plot_rect",
    "prepare_frame",
]
