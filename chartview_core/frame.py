from __future__ import annotations

from dataclasses import dataclass, replace
import logging

import numpy as np

from chartview_core.config import ChartConfig
from chartview_core.downsample import aggregate_ohlc_buckets, bucket_size_for, lttb, visible_slice
from chartview_core.geometry import PlotRect, plot_rect
from chartview_core.scales import ChartTransform, ScaleMode
from chartview_core.series import Candle, Dataset, Series
from chartview_core.ticks import AxisTicks, plan_time_axis, plan_value_axis
from chartview_core.view import ViewState

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeriesLayout:
    """Reduced data of one series and where it lands on screen.

    XY series fill `points` and give one `py` per point. OHLC series fill
    `candles`; their `py` has shape `(k, 4)` holding open/high/low/close pixels.
    """

    series: Series
    source_count: int
    points: np.ndarray
    candles: list[Candle]
    bucket_size: int
    px: np.ndarray
    py: np.ndarray

    @property
    def reduced_count(self) -> int:
        return int(self.px.size)


@dataclass(frozen=True)
class FrameLayout:
    rect: PlotRect
    view: ViewState
    transform: ChartTransform
    series: list[SeriesLayout]
    x_ticks: AxisTicks
    y_ticks: AxisTicks


def prepare_frame(
    dataset: Dataset,
    view: ViewState,
    width: float,
    height: float,
    config: ChartConfig | None = None,
    mode: ScaleMode = "linear",
) -> FrameLayout:
    """Everything a drawing backend needs for one redraw, recomputed from current state."""
    cfg = config or ChartConfig()
    rect = plot_rect(width, height, cfg.insets)
    transform = ChartTransform.from_view(view, rect, mode)
    layouts = [_layout_series(s, view, rect, transform, cfg) for s in dataset.series]
    x_ticks = plan_time_axis(transform.time, view.x_min, view.x_max, cfg.x_tick_target)
    y_ticks = plan_value_axis(transform.value, cfg.y_tick_target, minor_subdivisions=cfg.minor_subdivisions)
    LOGGER.debug(
        "prepared frame: series=%d reduced=%s x_ticks=%d y_ticks=%d",
        len(layouts),
        [layout.reduced_count for layout in layouts],
        len(x_ticks),
        len(y_ticks),
    )
    return FrameLayout(
        rect=rect,
        view=replace(view),
        transform=transform,
        series=layouts,
        x_ticks=x_ticks,
        y_ticks=y_ticks,
    )


def _layout_series(
    series: Series,
    view: ViewState,
    rect: PlotRect,
    transform: ChartTransform,
    cfg: ChartConfig,
) -> SeriesLayout:
    window = visible_slice(series.x_values(), view.x_min, view.x_max)
    if series.is_ohlc:
        visible = series.candles[window]
        bucket = bucket_size_for(len(visible), rect.width / cfg.min_candle_px)
        reduced = aggregate_ohlc_buckets(visible, bucket)
        t = np.fromiter((c.t for c in reduced), dtype=np.float64, count=len(reduced))
        ohlc = np.asarray([(c.o, c.h, c.l, c.c) for c in reduced], dtype=np.float64).reshape(-1, 4)
        return SeriesLayout(
            series=series,
            source_count=len(visible),
            points=np.empty((0, 2), dtype=np.float64),
            candles=reduced,
            bucket_size=bucket,
            px=np.asarray(transform.time.to_px(t), dtype=np.float64),
            py=np.asarray(transform.value.to_px(ohlc), dtype=np.float64),
        )

    visible_xy = series.xy[window]
    reduced_xy = lttb(visible_xy, cfg.downsample_threshold(rect.width))
    px, py = transform.map_points(reduced_xy)
    return SeriesLayout(
        series=series,
        source_count=int(visible_xy.shape[0]),
        points=reduced_xy,
        candles=[],
        bucket_size=1,
        px=px,
        py=py,
    )
