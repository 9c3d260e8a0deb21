from __future__ import annotations

from typing import Any, List, MutableMapping

import streamlit as st

from view_state import (
    AGG_PREFIX,
    DEFAULT_RECENT_LIMIT,
    SCALE_PREFIX,
    VIS_PREFIX,
    ViewState,
    collect_view_state,
    widget_key,
)

from .core import AGGREGATION_CHOICES


def _recent_bounds(max_length: int) -> tuple:
    upper = max(11, max_length)
    return 10, upper, min(upper, DEFAULT_RECENT_LIMIT)


def render_display_controls(max_length: int) -> None:
    """Global display toggles shared by every series."""
    st.checkbox("Show derivative (dashed)", value=False, key="view_derivative")
    st.checkbox("Smooth (3-point moving average)", value=False, key="view_smoothing")
    st.checkbox("Show point markers", value=False, key="view_points")
    st.checkbox("Mark peaks & valleys", value=False, key="view_extrema")

    limit = st.checkbox(
        "Limit to recent samples",
        value=True,
        key="view_limit_recent",
        help="Only the trailing samples are aggregated, analyzed and drawn.",
    )
    low, high, default = _recent_bounds(max_length)
    st.slider(
        "Recent samples",
        min_value=low,
        max_value=high,
        value=default,
        step=1,
        key="view_recent_count",
        disabled=not limit,
    )


def render_series_controls(names: List[str]) -> None:
    """Visibility, scale (%) and aggregation window per column."""
    for name in names:
        with st.expander(name, expanded=False):
            st.checkbox("Visible", value=True, key=widget_key(VIS_PREFIX, name))
            st.slider(
                "Vertical scale (%)",
                min_value=10,
                max_value=500,
                value=100,
                step=10,
                key=widget_key(SCALE_PREFIX, name),
                help="Applied after normalization; values above 100% may run past the top edge.",
            )
            st.selectbox(
                "Aggregation window",
                options=list(AGGREGATION_CHOICES),
                index=0,
                key=widget_key(AGG_PREFIX, name),
                help="Average consecutive groups of samples (1 = off).",
            )


def render_view_controls(
    names: List[str],
    max_length: int,
    session_state: MutableMapping[str, Any],
) -> ViewState:
    """Render all view widgets in the sidebar and return this frame's state."""
    with st.sidebar:
        st.header("🎛️ 2) Display")
        render_display_controls(max_length)
        st.header("📊 3) Series")
        render_series_controls(names)
    return collect_view_state(session_state, names)
