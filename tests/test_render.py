import numpy as np
import pytest

from csv_loader import ColumnTable, read_column_table
from render import legend_text, processed_series, render_frame
from transforms.analysis import analyze_table
from transforms.core import aggregate, derivative, smooth
from transforms.projection import PlotGeometry, project
from view_state import SeriesView, ViewState

GEOMETRY = PlotGeometry.from_canvas(800, 400)


def _flat(points):
    return [c for p in points for c in p]


def _hundred_by_three() -> ColumnTable:
    rows = ["a,b,c"] + [f"{i},{i * 2},{np.sin(i / 5):.6f}" for i in range(100)]
    return read_column_table("scenario.csv", ("\n".join(rows) + "\n").encode("utf-8"))


def test_window_applies_only_to_its_column():
    table = _hundred_by_three()
    state = ViewState(
        series={"a": SeriesView(aggregation_window=10), "b": SeriesView(), "c": SeriesView()},
        limit_recent=False,
    )

    lengths = {n: len(processed_series(table[n], state.series_view(n), state)) for n in table}
    assert lengths == {"a": 10, "b": 100, "c": 100}

    frame = render_frame(table, state, GEOMETRY)
    assert [len(p.points) for p in frame.polylines] == [10, 100, 100]

    reports = analyze_table(table, state, recent_limit=state.recent_limit)
    assert [r.processed_length for r in reports] == [10, 100, 100]


def test_recent_limit_applies_before_aggregation():
    table = ColumnTable(columns={"x": np.arange(200, dtype=float)})
    state = ViewState(series={"x": SeriesView(aggregation_window=5)}, recent_count=50)

    out = processed_series(table["x"], state.series_view("x"), state)

    assert len(out) == 10
    assert out[0] == np.mean(np.arange(150, 155))


def test_hidden_series_and_toggles():
    table = ColumnTable(columns={"a": [1.0, 3.0, 2.0, 5.0, 4.0], "b": [1.0, 2.0]})
    state = ViewState(
        series={"a": SeriesView(), "b": SeriesView(visible=False)},
        show_derivative=True,
        show_points=True,
        show_extrema=True,
    )

    frame = render_frame(table, state, GEOMETRY)

    assert [(p.name, p.style) for p in frame.polylines] == [("a", "solid"), ("d/dn(a)", "dash")]
    kinds = {m.kind: len(m.points) for m in frame.markers}
    assert kinds == {"point": 5, "peak": 2, "valley": 1}
    assert [e.name for e in frame.legend] == ["a"]


def test_single_sample_series_draws_nothing_but_keeps_legend():
    table = ColumnTable(columns={"one": [4.0]})
    frame = render_frame(table, ViewState(), GEOMETRY)

    assert frame.is_empty
    assert frame.legend[0].text.startswith("one: Δ=0.00")


def test_legend_text_mentions_window_and_scale():
    text = legend_text("a", np.array([1.0, 3.0]), SeriesView(scale=1.5, aggregation_window=5))
    assert text == "a: Δ=2.00 | Avg=2.00 | x150% | avg/5"


def test_flat_series_renders_flat_row():
    table = ColumnTable(columns={"flat": [7.0] * 20})
    frame = render_frame(table, ViewState(smoothing=True), GEOMETRY)

    ys = {p.y for p in frame.polylines[0].points}
    assert ys == {GEOMETRY.bottom}


def test_smoothed_derivative_trace_follows_pipeline_order():
    raw = np.array([1.0, 4.0, 2.0, 8.0, 5.0, 9.0, 3.0, 7.0, 6.0, 10.0, 2.0, 12.0])
    table = ColumnTable(columns={"x": raw})
    view = SeriesView(scale=1.5, aggregation_window=2)
    state = ViewState(series={"x": view}, smoothing=True, show_derivative=True)

    frame = render_frame(table, state, GEOMETRY)
    dashed = [p for p in frame.polylines if p.style == "dash"]

    expected = project(smooth(derivative(aggregate(raw, 2))), GEOMETRY, 1.5)
    unsmoothed = project(derivative(aggregate(raw, 2)), GEOMETRY, 1.5)
    assert len(dashed) == 1
    assert _flat(dashed[0].points) == pytest.approx(_flat(expected))
    assert _flat(dashed[0].points) != pytest.approx(_flat(unsmoothed))
