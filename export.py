"""Figure building plus PNG and CSV export of the current view."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

import plotly.graph_objects as go

from csv_loader import ColumnTable
from render import Frame

logger = logging.getLogger(__name__)

PALETTE: Sequence[str] = (
    "#ff4b4b", "#00d4ff", "#2ecc71", "#ffa500",
    "#ff00ff", "#ffff00", "#ffafaf", "#ffffff",
)
BACKGROUND = "#1e1e1e"
AXIS_COLOR = "#c0c0c0"

_MARKER_SYMBOLS = {"point": "circle", "peak": "triangle-up", "valley": "triangle-down"}


class ExportError(RuntimeError):
    """Writing an export failed; the loaded table is unaffected."""


def color_for(slot: int) -> str:
    return PALETTE[slot % len(PALETTE)]


def frame_to_figure(frame: Frame, canvas_width: int, canvas_height: int) -> go.Figure:
    """Draw a rendered frame in pixel space (origin top-left, y down)."""
    g = frame.geometry
    fig = go.Figure()

    for line in frame.polylines:
        fig.add_trace(
            go.Scatter(
                x=[p.x for p in line.points],
                y=[p.y for p in line.points],
                mode="lines",
                name=line.name,
                line=dict(color=color_for(line.slot), width=2, dash=line.style),
                hoverinfo="name",
            )
        )

    for mk in frame.markers:
        if not mk.points:
            continue
        fig.add_trace(
            go.Scatter(
                x=[p.x for p in mk.points],
                y=[p.y for p in mk.points],
                mode="markers",
                name=f"{mk.name} ({mk.kind}s)",
                marker=dict(
                    color=color_for(mk.slot),
                    size=5 if mk.kind == "point" else 9,
                    symbol=_MARKER_SYMBOLS.get(mk.kind, "circle"),
                ),
                showlegend=mk.kind != "point",
                hoverinfo="name",
            )
        )

    # Axes drawn as lines on the plot rectangle's left and bottom edges
    fig.add_shape(type="line", x0=g.left, y0=g.top, x1=g.left, y1=g.bottom,
                  line=dict(color=AXIS_COLOR, width=1))
    fig.add_shape(type="line", x0=g.left, y0=g.bottom, x1=g.right, y1=g.bottom,
                  line=dict(color=AXIS_COLOR, width=1))

    for i, entry in enumerate(frame.legend):
        fig.add_annotation(
            x=10, y=15 + 15 * i, xanchor="left", yanchor="middle",
            text=entry.text, showarrow=False,
            font=dict(color=color_for(entry.slot), size=11),
        )

    fig.update_layout(
        width=canvas_width,
        height=canvas_height,
        margin=dict(l=0, r=0, t=0, b=0),
        paper_bgcolor=BACKGROUND,
        plot_bgcolor=BACKGROUND,
        showlegend=True,
        legend=dict(orientation="h", yanchor="top", y=-0.02, xanchor="left", x=0,
                    font=dict(color=AXIS_COLOR)),
    )
    fig.update_xaxes(range=[0, canvas_width], visible=False, fixedrange=True)
    fig.update_yaxes(range=[canvas_height, 0], visible=False, fixedrange=True)
    return fig


def figure_png_bytes(fig: go.Figure, scale: float = 1.0) -> bytes:
    try:
        return fig.to_image(format="png", scale=scale)
    except Exception as e:  # kaleido missing or failed to start
        logger.warning("PNG export failed: %s", e)
        raise ExportError(f"PNG export unavailable (install/pin kaleido): {e}") from e


def csv_bytes(table: ColumnTable, names: Optional[List[str]] = None) -> bytes:
    """Header row of names, one row per sample index, missing cells empty."""
    names = table.names if names is None else [n for n in names if n in table]
    out = table.to_frame(names)
    return out.to_csv(index=False, na_rep="").encode("utf-8")


def write_bytes(path: str, data: bytes) -> Path:
    target = Path(path)
    try:
        target.write_bytes(data)
    except OSError as e:
        logger.warning("Export to %s failed: %s", target, e)
        raise ExportError(f"Could not write {target}: {e}") from e
    logger.info("Exported %d bytes to %s", len(data), target)
    return target
