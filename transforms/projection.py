from __future__ import annotations

from dataclasses import dataclass
from typing import List, NamedTuple

import numpy as np

from .core import ArrayLike, as_float_array

NORMALIZED_CLAMP = (0.0, 5.0)

MARGIN_LEFT = 60
MARGIN_TOP = 10
MARGIN_RIGHT = 10
MARGIN_BOTTOM = 40


class PixelPoint(NamedTuple):
    x: float
    y: float


@dataclass(frozen=True)
class PlotGeometry:
    left: float
    top: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def right(self) -> float:
        return self.left + self.width

    @classmethod
    def from_canvas(cls, canvas_width: int, canvas_height: int) -> "PlotGeometry":
        """Plot rectangle inside a canvas, leaving room for the axes."""
        width = max(1, canvas_width - MARGIN_LEFT - MARGIN_RIGHT)
        height = max(1, canvas_height - MARGIN_TOP - MARGIN_BOTTOM)
        return cls(left=MARGIN_LEFT, top=MARGIN_TOP, width=width, height=height)


def normalize(series: ArrayLike, scale: float = 1.0) -> np.ndarray:
    """Min/max normalize, apply ``scale`` and clamp into ``NORMALIZED_CLAMP``.

    A flat series has its range treated as 1, so every value maps to 0.
    """
    arr = as_float_array(series)
    if len(arr) == 0:
        return arr
    lo = float(np.min(arr))
    rng = float(np.max(arr)) - lo
    if rng == 0:
        rng = 1.0
    return np.clip(((arr - lo) / rng) * scale, *NORMALIZED_CLAMP)


def project(series: ArrayLike, plot: PlotGeometry, scale: float = 1.0) -> List[PixelPoint]:
    """Map a processed series onto pixel coordinates inside ``plot``."""
    arr = as_float_array(series)
    n = len(arr)
    if n < 2:
        return []

    norm = normalize(arr, scale)
    xs = plot.left + plot.width * (np.arange(n, dtype="float64") / (n - 1))
    ys = plot.top + plot.height - norm * plot.height
    ys = np.clip(ys, plot.top, plot.bottom)
    return [PixelPoint(float(x), float(y)) for x, y in zip(xs, ys)]
