from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
import tomllib

from chartview_core.geometry import Insets
from chartview_core.scales import MAX_BAR_SPACING, MIN_BAR_SPACING
from chartview_core.view import MAX_ZOOM_FACTOR, MIN_ZOOM_FACTOR, Y_MARGIN_FRAC

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChartConfig:
    """Tunables for frame preparation and interaction clamps."""

    downsample_target: int | None = None
    x_tick_target: int = 8
    y_tick_target: int = 6
    minor_subdivisions: int = 4
    min_bar_spacing: float = MIN_BAR_SPACING
    max_bar_spacing: float = MAX_BAR_SPACING
    min_zoom_factor: float = MIN_ZOOM_FACTOR
    max_zoom_factor: float = MAX_ZOOM_FACTOR
    y_margin_frac: float = Y_MARGIN_FRAC
    min_candle_px: float = 3.0
    insets: Insets = field(default_factory=Insets)

    def __post_init__(self) -> None:
        if self.downsample_target is not None and self.downsample_target < 2:
            raise ValueError("downsample_target must be >= 2 when provided")
        if self.x_tick_target <= 0 or self.y_tick_target <= 0:
            raise ValueError("tick targets must be > 0")
        if self.minor_subdivisions < 0:
            raise ValueError("minor_subdivisions must be >= 0")
        if not 0 < self.min_bar_spacing <= self.max_bar_spacing:
            raise ValueError("bar spacing bounds must satisfy 0 < min <= max")
        if not 0 < self.min_zoom_factor <= self.max_zoom_factor:
            raise ValueError("zoom factor bounds must satisfy 0 < min <= max")
        if self.y_margin_frac < 0:
            raise ValueError("y_margin_frac must be >= 0")
        if self.min_candle_px <= 0:
            raise ValueError("min_candle_px must be > 0")

    def downsample_threshold(self, plot_width: float) -> int:
        """Point budget for one XY series: configured, or one point per pixel column."""
        if self.downsample_target is not None:
            return self.downsample_target
        return max(2, int(plot_width))


def load_config(path: str | Path) -> ChartConfig:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"chart config not found: {config_path}")
    with config_path.open("rb") as f:
        raw = tomllib.load(f)
    chart = raw.get("chart", {})
    if not isinstance(chart, dict):
        raise ValueError("[chart] must be a table")
    insets_raw = raw.get("insets", {})
    if not isinstance(insets_raw, dict):
        raise ValueError("[insets] must be a table")

    defaults = ChartConfig()
    config = ChartConfig(
        downsample_target=_coerce_optional_int(chart.get("downsample_target"), "downsample_target"),
        x_tick_target=_coerce_int(chart.get("x_tick_target", defaults.x_tick_target), "x_tick_target"),
        y_tick_target=_coerce_int(chart.get("y_tick_target", defaults.y_tick_target), "y_tick_target"),
        minor_subdivisions=_coerce_int(
            chart.get("minor_subdivisions", defaults.minor_subdivisions), "minor_subdivisions"
        ),
        min_bar_spacing=_coerce_float(chart.get("min_bar_spacing", defaults.min_bar_spacing), "min_bar_spacing"),
        max_bar_spacing=_coerce_float(chart.get("max_bar_spacing", defaults.max_bar_spacing), "max_bar_spacing"),
        min_zoom_factor=_coerce_float(chart.get("min_zoom_factor", defaults.min_zoom_factor), "min_zoom_factor"),
        max_zoom_factor=_coerce_float(chart.get("max_zoom_factor", defaults.max_zoom_factor), "max_zoom_factor"),
        y_margin_frac=_coerce_float(chart.get("y_margin_frac", defaults.y_margin_frac), "y_margin_frac"),
        min_candle_px=_coerce_float(chart.get("min_candle_px", defaults.min_candle_px), "min_candle_px"),
        insets=Insets(
            left=_coerce_int(insets_raw.get("left", defaults.insets.left), "insets.left"),
            right=_coerce_int(insets_raw.get("right", defaults.insets.right), "insets.right"),
            top=_coerce_int(insets_raw.get("top", defaults.insets.top), "insets.top"),
            bottom=_coerce_int(insets_raw.get("bottom", defaults.insets.bottom), "insets.bottom"),
        ),
    )
    LOGGER.debug("loaded chart config from %s", config_path)
    return config


def _coerce_int(value: object, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    return value


def _coerce_optional_int(value: object, field_name: str) -> int | None:
    if value is None:
        return None
    return _coerce_int(value, field_name)


def _coerce_float(value: object, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{field_name} must be a number")
    return float(value)
