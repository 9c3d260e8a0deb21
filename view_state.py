"""Per-frame view state collected from Streamlit session widget values."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, MutableMapping, Optional, Sequence

from transforms.core import AGGREGATION_CHOICES

VIS_PREFIX = "vis_"
SCALE_PREFIX = "scale_"
AGG_PREFIX = "agg_"
VIEW_PREFIX = "view_"

VIEW_WIDGET_PREFIXES: Sequence[str] = (
    VIS_PREFIX,
    SCALE_PREFIX,
    AGG_PREFIX,
    VIEW_PREFIX,
)

DEFAULT_RECENT_LIMIT = 100


@dataclass(frozen=True)
class SeriesView:
    visible: bool = True
    scale: float = 1.0
    aggregation_window: int = 1


@dataclass(frozen=True)
class ViewState:
    series: Dict[str, SeriesView] = field(default_factory=dict)
    show_derivative: bool = False
    smoothing: bool = False
    show_points: bool = False
    show_extrema: bool = False
    limit_recent: bool = True
    recent_count: int = DEFAULT_RECENT_LIMIT

    def series_view(self, name: str) -> SeriesView:
        return self.series.get(name, SeriesView())

    @property
    def visible_names(self) -> List[str]:
        return [name for name, view in self.series.items() if view.visible]

    @property
    def recent_limit(self) -> Optional[int]:
        """Sample count to keep, or ``None`` when the cutoff is off."""
        return self.recent_count if self.limit_recent else None


def widget_key(prefix: str, name: str) -> str:
    return f"{prefix}{name}"


def _coerce_window(value: Any) -> int:
    try:
        window = int(value)
    except (TypeError, ValueError):
        return 1
    return window if window in AGGREGATION_CHOICES else 1


def _coerce_scale(value: Any) -> float:
    """Widgets hold the scale as a percentage."""
    try:
        pct = float(value)
    except (TypeError, ValueError):
        return 1.0
    return pct / 100.0 if pct > 0 else 1.0


def collect_view_state(
    session_state: Mapping[str, Any],
    column_names: Iterable[str],
) -> ViewState:
    """Build the immutable view state for one frame from widget values."""

    series: Dict[str, SeriesView] = {}
    for name in column_names:
        series[name] = SeriesView(
            visible=bool(session_state.get(widget_key(VIS_PREFIX, name), True)),
            scale=_coerce_scale(session_state.get(widget_key(SCALE_PREFIX, name), 100)),
            aggregation_window=_coerce_window(session_state.get(widget_key(AGG_PREFIX, name), 1)),
        )

    return ViewState(
        series=series,
        show_derivative=bool(session_state.get("view_derivative", False)),
        smoothing=bool(session_state.get("view_smoothing", False)),
        show_points=bool(session_state.get("view_points", False)),
        show_extrema=bool(session_state.get("view_extrema", False)),
        limit_recent=bool(session_state.get("view_limit_recent", True)),
        recent_count=max(1, int(session_state.get("view_recent_count", DEFAULT_RECENT_LIMIT))),
    )


def reset_view_widgets(
    session_state: MutableMapping[str, Any],
    prefixes: Sequence[str] = VIEW_WIDGET_PREFIXES,
) -> None:
    """Drop every per-column and display widget value (used on a new load)."""

    for key in [k for k in session_state.keys() if any(k.startswith(p) for p in prefixes)]:
        del session_state[key]


def is_new_upload(session_state: Mapping[str, Any], file_id: Any) -> bool:
    """True unless ``file_id`` was already loaded or already failed to load."""

    return file_id not in (
        session_state.get("loaded_file_id"),
        session_state.get("failed_file_id"),
    )


def record_load_result(
    session_state: MutableMapping[str, Any],
    file_id: Any,
    error: Optional[str] = None,
) -> None:
    """Remember the outcome of a load so reruns do not parse the same upload again."""

    if error is None:
        session_state["loaded_file_id"] = file_id
        session_state["failed_file_id"] = None
    else:
        session_state["failed_file_id"] = file_id
    session_state["load_error"] = error
