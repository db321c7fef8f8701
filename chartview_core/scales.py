from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

import numpy as np

from chartview_core.geometry import PlotRect, clamp
from chartview_core.series import LogicalRange, as_points

if TYPE_CHECKING:
    from chartview_core.config import ChartConfig
    from chartview_core.view import ViewState


ScaleMode = Literal["linear", "log10"]

EPSILON = 1e-12
SPACING_FLOOR = 0.01
MIN_BAR_SPACING = 0.5
MAX_BAR_SPACING = 200.0
MIN_ZOOM_SPAN = 1e-9
LOG_LIMIT = 300.0


@dataclass
class TimeScale:
    """Horizontal affine map: `px = left_px + (x - start_logical) * bar_spacing`."""

    left_px: float
    start_logical: float
    bar_spacing: float
    spacing_floor: float = SPACING_FLOOR

    def __post_init__(self) -> None:
        self.left_px = float(self.left_px)
        self.start_logical = float(self.start_logical)
        self.bar_spacing = max(float(self.bar_spacing), self.spacing_floor)

    def to_px(self, x: Any) -> Any:
        return self.left_px + (x - self.start_logical) * self.bar_spacing

    def from_px(self, px: Any) -> Any:
        return self.start_logical + (px - self.left_px) / self.bar_spacing

    def zoom_at(
        self,
        cursor_px: float,
        factor: float,
        *,
        min_spacing: float = MIN_BAR_SPACING,
        max_spacing: float = MAX_BAR_SPACING,
    ) -> None:
        """Rescale around `cursor_px`; the logical value under the cursor stays put."""
        cx = self.from_px(cursor_px)
        self.bar_spacing = clamp(self.bar_spacing * factor, min_spacing, max_spacing)
        self.start_logical = cx - (cursor_px - self.left_px) / self.bar_spacing

    def pan_px(self, dx_px: float) -> None:
        self.start_logical -= dx_px / self.bar_spacing

    def visible_range(self, right_px: float) -> LogicalRange:
        return LogicalRange(min=float(self.from_px(self.left_px)), max=float(self.from_px(right_px)))


@dataclass
class ValueScale:
    """Vertical map of `[vmin, vmax]` onto `[bottom_px, top_px]`, linear or log10.

    Both modes share one pixel formula; log10 applies it to `log10(y)` against
    the cached `log_min`/`log_max`. Pan and zoom run in whichever space is
    linear in pixels for the active mode.
    """

    top_px: float
    bottom_px: float
    vmin: float
    vmax: float
    mode: ScaleMode = "linear"
    log_min: float = field(init=False, default=0.0)
    log_max: float = field(init=False, default=0.0)

    def __post_init__(self) -> None:
        if self.mode not in ("linear", "log10"):
            raise ValueError(f"unknown value scale mode: {self.mode}")
        self.top_px = float(self.top_px)
        self.bottom_px = float(self.bottom_px)
        vmin = float(self.vmin)
        vmax = float(self.vmax)
        if self.mode == "log10":
            if vmin <= EPSILON:
                vmin = EPSILON
            if vmax <= vmin:
                vmax = vmin * 10.0
            self.log_min = float(np.log10(vmin))
            self.log_max = float(np.log10(vmax))
        elif abs(vmax - vmin) < EPSILON:
            vmax = vmin + 1.0
        self.vmin = vmin
        self.vmax = vmax

    @classmethod
    def linear(cls, top_px: float, bottom_px: float, vmin: float, vmax: float) -> "ValueScale":
        return cls(top_px=top_px, bottom_px=bottom_px, vmin=vmin, vmax=vmax, mode="linear")

    @classmethod
    def log10(cls, top_px: float, bottom_px: float, vmin: float, vmax: float) -> "ValueScale":
        return cls(top_px=top_px, bottom_px=bottom_px, vmin=vmin, vmax=vmax, mode="log10")

    @property
    def is_log(self) -> bool:
        return self.mode == "log10"

    def with_mode(self, mode: ScaleMode) -> "ValueScale":
        return ValueScale(top_px=self.top_px, bottom_px=self.bottom_px, vmin=self.vmin, vmax=self.vmax, mode=mode)

    def to_px(self, y: Any) -> Any:
        height = self.bottom_px - self.top_px
        if self.is_log:
            frac = (np.log10(np.maximum(y, EPSILON)) - self.log_min) / self._log_span()
        else:
            frac = (y - self.vmin) / self._span()
        return self.bottom_px - frac * height

    def from_px(self, py: Any) -> Any:
        frac = (self.bottom_px - py) / self._pixel_extent()
        if self.is_log:
            return 10.0 ** (self.log_min + frac * self._log_span())
        return self.vmin + frac * self._span()

    def pan_px(self, dy_px: float) -> None:
        frac = dy_px / max(self.bottom_px - self.top_px, 1.0)
        if self.is_log:
            delta = self._log_span() * frac
            self._set_log_bounds(self.log_min + delta, self.log_max + delta)
            return
        delta = self._span() * frac
        self.vmin += delta
        self.vmax += delta

    def zoom_center(self, center_y: float, factor: float) -> None:
        """Shrink (factor > 1) or grow the visible span around `center_y`.

        Non-positive or NaN factors are floored at `EPSILON`, so the span
        grows instead of failing.
        """
        if not factor > EPSILON:
            factor = EPSILON
        if self.is_log:
            cy = float(np.log10(max(center_y, EPSILON)))
            new_span = max(self._log_span() / factor, MIN_ZOOM_SPAN)
            self._set_log_bounds(cy - new_span * 0.5, cy + new_span * 0.5)
            return
        new_span = max(self._span() / factor, MIN_ZOOM_SPAN)
        self.vmin = center_y - new_span * 0.5
        self.vmax = center_y + new_span * 0.5

    def _set_log_bounds(self, log_min: float, log_max: float) -> None:
        # Decades past +-LOG_LIMIT would overflow float64 on the way back.
        log_min = clamp(log_min, -LOG_LIMIT, LOG_LIMIT)
        log_max = clamp(log_max, -LOG_LIMIT, LOG_LIMIT)
        self.log_min = log_min
        self.log_max = log_max
        self.vmin = float(10.0**log_min)
        self.vmax = float(10.0**log_max)

    def _span(self) -> float:
        return max(self.vmax - self.vmin, EPSILON)

    def _log_span(self) -> float:
        return max(self.log_max - self.log_min, EPSILON)

    def _pixel_extent(self) -> float:
        height = self.bottom_px - self.top_px
        return height if height != 0.0 else 1.0


@dataclass
class ChartTransform:
    """Per-frame logical <-> pixel transform for both axes."""

    time: TimeScale
    value: ValueScale

    @classmethod
    def from_view(cls, view: "ViewState", rect: PlotRect, mode: ScaleMode = "linear") -> "ChartTransform":
        x_span = view.x_max - view.x_min
        if abs(x_span) < EPSILON:
            x_span = 1.0
        # Data views can span far more logical units than pixels (epoch seconds),
        # so the bar-spacing floor is lowered to keep the fit exact.
        time = TimeScale(
            left_px=rect.left,
            start_logical=view.x_min,
            bar_spacing=rect.width / x_span,
            spacing_floor=EPSILON,
        )
        value = ValueScale(top_px=rect.top, bottom_px=rect.bottom, vmin=view.y_min, vmax=view.y_max, mode=mode)
        return cls(time=time, value=value)

    def to_screen(self, x: Any, y: Any) -> tuple[Any, Any]:
        return self.time.to_px(x), self.value.to_px(y)

    def from_screen(self, px: Any, py: Any) -> tuple[Any, Any]:
        return self.time.from_px(px), self.value.from_px(py)

    def map_points(self, points: Any) -> tuple[np.ndarray, np.ndarray]:
        pts = as_points(points)
        return (
            np.asarray(self.time.to_px(pts[:, 0]), dtype=np.float64),
            np.asarray(self.value.to_px(pts[:, 1]), dtype=np.float64),
        )

    def zoom(
        self,
        cursor_px: float,
        factor: float,
        *,
        min_spacing: float = MIN_BAR_SPACING,
        max_spacing: float = MAX_BAR_SPACING,
    ) -> None:
        self.time.zoom_at(cursor_px, factor, min_spacing=min_spacing, max_spacing=max_spacing)

    def zoom_with_config(self, cursor_px: float, factor: float, config: "ChartConfig") -> None:
        self.zoom(cursor_px, factor, min_spacing=config.min_bar_spacing, max_spacing=config.max_bar_spacing)

    def pan(self, dx_px: float, dy_px: float) -> None:
        self.time.pan_px(dx_px)
        self.value.pan_px(dy_px)
