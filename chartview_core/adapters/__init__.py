from .normalize import normalize_candles, normalize_points

__all__ = ["normalize_candles", "normalize_points"]
