from __future__ import annotations

from typing import Sequence, Union

import numpy as np

AGGREGATION_CHOICES = (1, 2, 5, 10, 25)

ArrayLike = Union[Sequence[float], np.ndarray]


def as_float_array(values: ArrayLike) -> np.ndarray:
    """Return ``values`` as a fresh 1-D float64 array."""
    return np.array(values, dtype="float64").reshape(-1)


def population_std(values: np.ndarray) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.sqrt(np.mean((values - np.mean(values)) ** 2)))


def safe_mean(values: np.ndarray) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def limit_recent(column: ArrayLike, count: int) -> np.ndarray:
    """Keep only the trailing ``count`` samples of ``column``."""
    arr = as_float_array(column)
    count = max(1, int(count))
    if count >= len(arr):
        return arr
    return arr[len(arr) - count:]


def aggregate(column: ArrayLike, window: int) -> np.ndarray:
    """Windowed-average downsampling.

    Consecutive chunks of ``window`` samples are replaced by their mean;
    the last chunk may be shorter. ``window <= 1`` is a pass-through.
    """
    arr = as_float_array(column)
    window = int(window)
    if window <= 1 or len(arr) == 0:
        return arr

    starts = np.arange(0, len(arr), window)
    sums = np.add.reduceat(arr, starts)
    counts = np.minimum(window, len(arr) - starts)
    return sums / counts


def derivative(series: ArrayLike) -> np.ndarray:
    """First derivative with respect to sample index.

    Forward difference at the first sample, backward difference at the
    last one and central differences in between, so the output has the
    same length as the input.
    """
    arr = as_float_array(series)
    n = len(arr)
    if n < 2:
        return np.empty(0, dtype="float64")

    d = np.empty(n, dtype="float64")
    d[0] = arr[1] - arr[0]
    d[-1] = arr[-1] - arr[-2]
    if n > 2:
        d[1:-1] = (arr[2:] - arr[:-2]) / 2.0
    return d


def smooth(series: ArrayLike) -> np.ndarray:
    """Single-pass 3-point moving average; endpoints are kept as is."""
    arr = as_float_array(series)
    if len(arr) < 3:
        return arr

    out = arr.copy()
    out[1:-1] = (arr[:-2] + arr[1:-1] + arr[2:]) / 3.0
    return out
