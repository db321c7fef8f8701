from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import TYPE_CHECKING

import numpy as np

from chartview_core.geometry import Insets, clamp
from chartview_core.series import Dataset, LogicalRange

if TYPE_CHECKING:
    from chartview_core.config import ChartConfig

LOGGER = logging.getLogger(__name__)

Y_MARGIN_FRAC = 0.02
DEGENERATE_VIEW_SPAN = 1e-9
MIN_ZOOM_FACTOR = 0.1
MAX_ZOOM_FACTOR = 10.0


@dataclass
class ViewState:
    """Visible logical window of one chart, mutated in place by interaction."""

    x_min: float
    x_max: float
    y_min: float
    y_max: float

    @classmethod
    def unit(cls) -> "ViewState":
        return cls(x_min=0.0, x_max=1.0, y_min=0.0, y_max=1.0)

    @classmethod
    def from_chart(cls, dataset: Dataset, *, y_margin_frac: float = Y_MARGIN_FRAC) -> "ViewState":
        ext = dataset.extents()
        if ext is None:
            LOGGER.debug("ViewState.from_chart found no finite extents; using unit range")
            return cls.unit()
        x_min, x_max, y_min, y_max = ext
        if abs(x_max - x_min) < DEGENERATE_VIEW_SPAN:
            x_max = x_min + 1.0
        if abs(y_max - y_min) < DEGENERATE_VIEW_SPAN:
            y_max = y_min + 1.0
        margin = (y_max - y_min) * y_margin_frac
        return cls(x_min=x_min, x_max=x_max, y_min=y_min - margin, y_max=y_max + margin)

    @property
    def x_range(self) -> LogicalRange:
        return LogicalRange(min=self.x_min, max=self.x_max)

    @property
    def y_range(self) -> LogicalRange:
        return LogicalRange(min=self.y_min, max=self.y_max)

    def apply_to_chart(self, dataset: Dataset) -> None:
        dataset.x_axis.min = self.x_min
        dataset.x_axis.max = self.x_max
        dataset.y_axis.min = self.y_min
        dataset.y_axis.max = self.y_max

    def pan_by_pixels(self, dx: float, dy: float, width: float, height: float, insets: Insets | None = None) -> None:
        ins = insets or Insets()
        plot_w = max(float(width) - ins.hsum, 1.0)
        plot_h = max(float(height) - ins.vsum, 1.0)
        wx = -dx / plot_w * (self.x_max - self.x_min)
        # Screen y grows downward while values grow upward.
        wy = dy / plot_h * (self.y_max - self.y_min)
        self.x_min += wx
        self.x_max += wx
        self.y_min += wy
        self.y_max += wy

    def zoom_at_pixel(
        self,
        scroll_delta: float,
        cursor_x: float,
        cursor_y: float,
        width: float,
        height: float,
        insets: Insets | None = None,
        *,
        min_factor: float = MIN_ZOOM_FACTOR,
        max_factor: float = MAX_ZOOM_FACTOR,
    ) -> None:
        """Scale both spans by `clamp(1 - scroll_delta)` keeping the cursor's logical point fixed."""
        ins = insets or Insets()
        left = float(ins.left)
        right = float(width) - ins.right
        top = float(ins.top)
        bottom = float(height) - ins.bottom
        plot_w = max(right - left, 1.0)
        plot_h = max(bottom - top, 1.0)
        cx = clamp(cursor_x, left, max(left, right))
        cy = clamp(cursor_y, top, max(top, bottom))

        x_span = self.x_max - self.x_min
        y_span = self.y_max - self.y_min
        anchor_x = self.x_min + (cx - left) / plot_w * x_span
        anchor_y = self.y_max - (cy - top) / plot_h * y_span

        factor = clamp(1.0 - scroll_delta, min_factor, max_factor)
        new_x_span = x_span * factor
        new_y_span = y_span * factor
        rx = (anchor_x - self.x_min) / x_span if x_span != 0.0 else 0.0
        ry = (self.y_max - anchor_y) / y_span if y_span != 0.0 else 0.0

        self.x_min = anchor_x - rx * new_x_span
        self.x_max = self.x_min + new_x_span
        self.y_max = anchor_y + ry * new_y_span
        self.y_min = self.y_max - new_y_span

    def zoom_with_config(
        self,
        scroll_delta: float,
        cursor_x: float,
        cursor_y: float,
        width: float,
        height: float,
        config: "ChartConfig",
    ) -> None:
        """`zoom_at_pixel` with insets and factor bounds taken from `config`."""
        self.zoom_at_pixel(
            scroll_delta,
            cursor_x,
            cursor_y,
            width,
            height,
            config.insets,
            min_factor=config.min_zoom_factor,
            max_factor=config.max_zoom_factor,
        )

    def autoscale_y_visible(self, dataset: Dataset, *, y_margin_frac: float = Y_MARGIN_FRAC) -> bool:
        """Fit y to the points inside the current x window. Returns False when none are visible."""
        found = visible_y_range(dataset, self.x_min, self.x_max)
        if found is None:
            LOGGER.debug("autoscale_y_visible: no points in [%s, %s]", self.x_min, self.x_max)
            return False
        y_min, y_max = found
        margin = (y_max - y_min) * y_margin_frac
        self.y_min = y_min - margin
        self.y_max = y_max + margin
        return True


def visible_y_range(dataset: Dataset, x_min: float, x_max: float) -> tuple[float, float] | None:
    y_min = math.inf
    y_max = -math.inf
    any_visible = False
    for s in dataset.series:
        if s.is_ohlc:
            for c in s.candles:
                if x_min <= c.t <= x_max:
                    y_min = min(y_min, c.l)
                    y_max = max(y_max, c.h)
                    any_visible = True
            continue
        if s.xy.shape[0] == 0:
            continue
        inside = (s.xy[:, 0] >= x_min) & (s.xy[:, 0] <= x_max)
        if not np.any(inside):
            continue
        ys = s.xy[inside, 1]
        y_min = min(y_min, float(np.min(ys)))
        y_max = max(y_max, float(np.max(ys)))
        any_visible = True
        if s.baseline is not None:
            y_min = min(y_min, s.baseline)
            y_max = max(y_max, s.baseline)
    if not any_visible:
        return None
    return (y_min, y_max)
