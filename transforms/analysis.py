from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

import numpy as np

from .core import (
    ArrayLike,
    aggregate,
    as_float_array,
    derivative,
    limit_recent,
    population_std,
    safe_mean,
)

if TYPE_CHECKING:
    from csv_loader import ColumnTable
    from view_state import ViewState

TREND_EPSILON = 0.001

NOISE_REDUCTION_LABELS = {
    1: "None (raw data)",
    2: "Minimal (2-point averaging)",
    5: "Light (5-point averaging)",
    10: "Moderate (10-point averaging)",
    25: "Strong (25-point averaging)",
}


@dataclass
class AnalysisReport:
    name: str
    original_length: int
    processed_length: int
    aggregation_window: int
    minimum: float
    maximum: float
    mean: float
    std: float
    derivative_mean: float
    derivative_std: float
    peaks: List[int] = field(default_factory=list)
    valleys: List[int] = field(default_factory=list)
    trend: str = ""
    noise_reduction: str = ""
    smoothing_effect: str = ""


def find_peaks(series: ArrayLike) -> List[int]:
    """Indices strictly greater than both neighbours (endpoints excluded)."""
    arr = as_float_array(series)
    if len(arr) < 3:
        return []
    mid = arr[1:-1]
    hits = (mid > arr[:-2]) & (mid > arr[2:])
    return (np.flatnonzero(hits) + 1).tolist()


def find_valleys(series: ArrayLike) -> List[int]:
    """Indices strictly smaller than both neighbours (endpoints excluded)."""
    arr = as_float_array(series)
    if len(arr) < 3:
        return []
    mid = arr[1:-1]
    hits = (mid < arr[:-2]) & (mid < arr[2:])
    return (np.flatnonzero(hits) + 1).tolist()


def classify_trend(deriv: ArrayLike) -> str:
    d = as_float_array(deriv)
    if len(d) == 0:
        return "No trend data"
    mean = float(np.mean(d))
    if abs(mean) < TREND_EPSILON:
        return "Stable"
    return "Increasing" if mean > 0 else "Decreasing"


def classify_noise_reduction(window: int) -> str:
    window = int(window)
    if window in NOISE_REDUCTION_LABELS:
        return NOISE_REDUCTION_LABELS[window]
    return f"Custom ({window}-point averaging)"


def classify_smoothing_effect(processed_length: int, original_length: int) -> str:
    # Equal lengths are reported on their own even though the ratio also
    # falls in the light band.
    if processed_length == original_length:
        return "No aggregation applied"
    ratio = processed_length / original_length
    if ratio > 0.8:
        return "Light smoothing effect"
    if ratio > 0.5:
        return "Moderate smoothing effect"
    if ratio > 0.2:
        return "Strong smoothing effect"
    return "Very strong smoothing effect"


def analyze(original: ArrayLike, aggregation_window: int, name: str = "") -> AnalysisReport:
    """Summary statistics, extrema and qualitative labels for one column.

    ``original`` must not be empty; callers skip empty columns.
    """
    raw = as_float_array(original)
    if len(raw) == 0:
        raise ValueError(f"Cannot analyze empty column {name!r}")

    processed = aggregate(raw, aggregation_window)
    deriv = derivative(processed)

    return AnalysisReport(
        name=name,
        original_length=len(raw),
        processed_length=len(processed),
        aggregation_window=int(aggregation_window),
        minimum=float(np.min(processed)),
        maximum=float(np.max(processed)),
        mean=float(np.mean(processed)),
        std=population_std(processed),
        derivative_mean=safe_mean(deriv),
        derivative_std=population_std(deriv),
        peaks=find_peaks(processed),
        valleys=find_valleys(processed),
        trend=classify_trend(deriv),
        noise_reduction=classify_noise_reduction(aggregation_window),
        smoothing_effect=classify_smoothing_effect(len(processed), len(raw)),
    )


def analyze_table(
    table: "ColumnTable",
    view_state: "ViewState",
    recent_limit: Optional[int] = None,
) -> List[AnalysisReport]:
    """Build one report per visible, non-empty column using its own window."""
    reports: List[AnalysisReport] = []
    for name, values in table.items():
        view = view_state.series_view(name)
        if not view.visible or len(values) == 0:
            continue
        if recent_limit is not None:
            values = limit_recent(values, recent_limit)
        reports.append(analyze(values, view.aggregation_window, name=name))
    return reports


def _fmt_indices(indices: List[int], max_items: int = 20) -> str:
    if not indices:
        return "none"
    shown = ", ".join(str(i) for i in indices[:max_items])
    if len(indices) > max_items:
        shown += f", … (+{len(indices) - max_items} more)"
    return shown


def format_report(report: AnalysisReport) -> str:
    """Plain-text block for the read-only analysis panel."""
    lines = [
        f"=== {report.name or 'series'} ===",
        f"Samples: {report.original_length} raw → {report.processed_length} processed "
        f"(window {report.aggregation_window})",
        f"Min: {report.minimum:.4f}   Max: {report.maximum:.4f}",
        f"Mean: {report.mean:.4f}   Std dev: {report.std:.4f}",
        f"Rate of change: mean {report.derivative_mean:.4f}, std {report.derivative_std:.4f}",
        f"Trend: {report.trend}",
        f"Peaks ({len(report.peaks)}): {_fmt_indices(report.peaks)}",
        f"Valleys ({len(report.valleys)}): {_fmt_indices(report.valleys)}",
        f"Noise reduction: {report.noise_reduction}",
        f"Smoothing: {report.smoothing_effect}",
    ]
    return "\n".join(lines)
