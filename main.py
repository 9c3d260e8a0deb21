# -*- coding: utf-8 -*-
# Time-Series CSV Viewer (Streamlit + Plotly)
# Run with: streamlit run main.py
from __future__ import annotations

import logging
from typing import Optional

import streamlit as st

from csv_loader import ColumnTable, TableLoadError, load_table_async
from export import ExportError, csv_bytes, figure_png_bytes, frame_to_figure, write_bytes
from render import render_frame
from transforms.analysis import analyze_table, format_report
from transforms.projection import PlotGeometry
from transforms.ui import render_view_controls
from view_state import is_new_upload, record_load_result, reset_view_widgets

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# ----------------------------------
# Page config
# ----------------------------------
st.set_page_config(page_title="Time-Series CSV Viewer", layout="wide")
st.markdown("""
<h1 style="display:flex;align-items:center;gap:.5rem;margin:0">
  📈 Time-Series CSV Viewer
</h1>
<p style="color:#6b7280;margin:.25rem 0 0">
  Load a delimited file and explore every numeric column as a line: scale, aggregate,
  smooth, overlay derivatives, find peaks and valleys, then export PNG or CSV.
</p>
""", unsafe_allow_html=True)

with st.expander("Quick start", expanded=False):
    st.markdown("""
1) **Upload** a CSV/TSV file (`,` `;` tab or `|` separated)
2) Toggle **Display** options (derivative, smoothing, markers, recent window)
3) Tune each **Series**: visibility, vertical scale, aggregation window
4) Read the **Analysis** panel and **Download** PNG or CSV
""")

# ----------------------------------
# Session state
# ----------------------------------
if "table" not in st.session_state:
    st.session_state.table = None
for _key in ("loaded_file_id", "failed_file_id", "load_error"):
    if _key not in st.session_state:
        st.session_state[_key] = None

# ----------------------------------
# Sidebar - Upload
# ----------------------------------
st.sidebar.header("📥 1) Upload")
up = st.sidebar.file_uploader(
    "Upload data file",
    type=["csv", "tsv", "txt"],
    accept_multiple_files=False,
)

if up is not None:
    file_id = (up.name, up.size)
    if is_new_upload(st.session_state, file_id):
        try:
            with st.spinner(f"Loading {up.name}…"):
                new_table = load_table_async(up.name, up.getvalue()).result()
        except TableLoadError as e:
            # Previous table stays installed
            logger.warning("Load of %s failed: %s", up.name, e)
            record_load_result(st.session_state, file_id, error=str(e))
        else:
            reset_view_widgets(st.session_state)
            st.session_state.table = new_table
            record_load_result(st.session_state, file_id)

if st.session_state.load_error:
    st.sidebar.error(f"Read failed: {st.session_state.load_error}")

table: Optional[ColumnTable] = st.session_state.table
if table is None:
    st.info("Upload a file to begin.")
    st.stop()

st.sidebar.success(
    f"{table.source_name}: {len(table)} numeric columns, up to {table.max_length:,} samples."
)

view = render_view_controls(table.names, table.max_length, st.session_state)

# ----------------------------------
# Chart
# ----------------------------------
st.header("📈 Chart")
with st.expander("Canvas size", expanded=False):
    canvas_w = st.slider("Width (px)", 400, 2000, 1000, 50, key="canvas_w")
    canvas_h = st.slider("Height (px)", 300, 1200, 600, 50, key="canvas_h")

geometry = PlotGeometry.from_canvas(canvas_w, canvas_h)
frame = render_frame(table, view, geometry)
fig = frame_to_figure(frame, canvas_w, canvas_h)

if frame.is_empty:
    st.info("No visible series with at least two samples to draw.")
st.plotly_chart(fig, use_container_width=False, config={"displayModeBar": False})

# ----------------------------------
# Analysis
# ----------------------------------
with st.expander("🔎 Analysis", expanded=False):
    reports = analyze_table(table, view, recent_limit=view.recent_limit)
    if not reports:
        st.caption("No visible series to analyze.")
    else:
        st.text_area(
            "Per-series report",
            value="\n\n".join(format_report(r) for r in reports),
            height=320,
            disabled=True,
        )

# ----------------------------------
# Export
# ----------------------------------
with st.expander("💾 Export", expanded=False):
    col_png, col_csv = st.columns(2)

    if col_png.button("Render PNG", key="export_png"):
        try:
            png = figure_png_bytes(fig)
        except ExportError as e:
            col_png.error(str(e))
        else:
            col_png.download_button(
                "Download chart (PNG)",
                data=png,
                file_name="chart.png",
                mime="image/png",
            )

    visible = view.visible_names
    if visible:
        col_csv.download_button(
            "Download visible columns (CSV)",
            data=csv_bytes(table, visible),
            file_name="visible_columns.csv",
            mime="text/csv",
            help="Raw samples of the visible columns; shorter columns leave empty cells.",
        )
        save_path = col_csv.text_input("…or save CSV to a local path", key="export_csv_path")
        if save_path and col_csv.button("Save CSV", key="export_csv_save"):
            try:
                target = write_bytes(save_path, csv_bytes(table, visible))
            except ExportError as e:
                col_csv.error(str(e))
            else:
                col_csv.success(f"Saved to: {target.resolve()}")
    else:
        col_csv.caption("No visible columns to export.")
