"""Pure frame rendering: table + view state + geometry -> draw commands."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

import numpy as np

from csv_loader import ColumnTable
from transforms.analysis import find_peaks, find_valleys
from transforms.core import aggregate, derivative, limit_recent, smooth
from transforms.projection import PixelPoint, PlotGeometry, project
from view_state import SeriesView, ViewState

logger = logging.getLogger(__name__)


@dataclass
class Polyline:
    name: str
    slot: int
    points: List[PixelPoint]
    style: str = "solid"  # "solid" | "dash"


@dataclass
class Markers:
    name: str
    slot: int
    points: List[PixelPoint]
    kind: str = "point"  # "point" | "peak" | "valley"


@dataclass
class LegendEntry:
    name: str
    slot: int
    text: str


@dataclass
class Frame:
    geometry: PlotGeometry
    polylines: List[Polyline] = field(default_factory=list)
    markers: List[Markers] = field(default_factory=list)
    legend: List[LegendEntry] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.polylines and not self.markers


def processed_series(values: np.ndarray, view: SeriesView, state: ViewState) -> np.ndarray:
    """Cutoff then aggregation; the input of both trace branches."""
    if state.recent_limit is not None:
        values = limit_recent(values, state.recent_limit)
    return aggregate(values, view.aggregation_window)


def legend_text(name: str, processed: np.ndarray, view: SeriesView) -> str:
    if len(processed) == 0:
        return f"{name}: no data"
    delta = processed[-1] - processed[0]
    avg = float(np.mean(processed))
    text = f"{name}: Δ={delta:.2f} | Avg={avg:.2f} | x{view.scale * 100:.0f}%"
    if view.aggregation_window > 1:
        text += f" | avg/{view.aggregation_window}"
    return text


def _pick(points: List[PixelPoint], indices: List[int]) -> List[PixelPoint]:
    return [points[i] for i in indices if i < len(points)]


def render_frame(table: ColumnTable, state: ViewState, geometry: PlotGeometry) -> Frame:
    """Build the draw commands for every visible column in table order."""
    frame = Frame(geometry=geometry)

    for slot, (name, values) in enumerate(table.items()):
        view = state.series_view(name)
        if not view.visible:
            continue

        processed = processed_series(values, view, state)
        frame.legend.append(LegendEntry(name=name, slot=slot, text=legend_text(name, processed, view)))

        primary = smooth(processed) if state.smoothing else processed
        points = project(primary, geometry, view.scale)
        if not points:
            logger.debug("%s: fewer than two samples after processing, nothing drawn", name)
            continue
        frame.polylines.append(Polyline(name=name, slot=slot, points=points))

        if state.show_points:
            frame.markers.append(Markers(name=name, slot=slot, points=points))

        if state.show_extrema:
            frame.markers.append(Markers(name=name, slot=slot, points=_pick(points, find_peaks(primary)), kind="peak"))
            frame.markers.append(Markers(name=name, slot=slot, points=_pick(points, find_valleys(primary)), kind="valley"))

        if state.show_derivative:
            deriv = derivative(processed)
            if state.smoothing:
                deriv = smooth(deriv)
            deriv_points = project(deriv, geometry, view.scale)
            if deriv_points:
                frame.polylines.append(Polyline(name=f"d/dn({name})", slot=slot, points=deriv_points, style="dash"))

    return frame
