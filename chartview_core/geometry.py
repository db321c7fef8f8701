from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Insets:
    """Screen margins around the plot area, in pixels."""

    left: int = 72
    right: int = 24
    top: int = 24
    bottom: int = 56

    def __post_init__(self) -> None:
        if min(self.left, self.right, self.top, self.bottom) < 0:
            raise ValueError("insets must be >= 0")

    @property
    def hsum(self) -> int:
        return self.left + self.right

    @property
    def vsum(self) -> int:
        return self.top + self.bottom


@dataclass(frozen=True)
class PlotRect:
    left: float
    top: float
    right: float
    bottom: float

    @classmethod
    def from_ltrb(cls, left: float, top: float, right: float, bottom: float) -> "PlotRect":
        return cls(left=left, top=top, right=right, bottom=bottom)

    @classmethod
    def from_ltwh(cls, left: float, top: float, width: float, height: float) -> "PlotRect":
        return cls(left=left, top=top, right=left + width, bottom=top + height)

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom


def plot_rect(width: float, height: float, insets: Insets | None = None) -> PlotRect:
    """Plot area of a `width` x `height` surface; degenerate sizes keep a 1px area."""
    ins = insets or Insets()
    left = float(ins.left)
    top = float(ins.top)
    right = max(left + 1.0, float(width) - float(ins.right))
    bottom = max(top + 1.0, float(height) - float(ins.bottom))
    return PlotRect(left=left, top=top, right=right, bottom=bottom)


def clamp(value: float, lo: float, hi: float) -> float:
    if value < lo:
        return lo
    if value > hi:
        return hi
    return value


def linspace(start: float, end: float, steps: int) -> list[float]:
    if steps < 2:
        return [start, end]
    step = (end - start) / float(steps - 1)
    return [start + step * i for i in range(steps)]
