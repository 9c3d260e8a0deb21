import plotly.graph_objects as go
import pytest

from csv_loader import ColumnTable
from export import ExportError, csv_bytes, figure_png_bytes, frame_to_figure, write_bytes
from render import render_frame
from transforms.projection import PlotGeometry
from view_state import SeriesView, ViewState


def test_csv_bytes_pads_missing_cells_with_empty_fields():
    table = ColumnTable(columns={"a": [1.0, 2.0, 3.0], "b": [4.0], "c": [0.0]})

    text = csv_bytes(table, ["a", "b", "missing"]).decode("utf-8")

    assert text.splitlines() == ["a,b", "1.0,4.0", "2.0,", "3.0,"]


def test_frame_to_figure_uses_pixel_axes():
    table = ColumnTable(columns={"a": [1.0, 3.0, 2.0], "b": [2.0, 1.0, 0.0]})
    state = ViewState(series={"a": SeriesView(), "b": SeriesView()}, show_derivative=True)
    frame = render_frame(table, state, PlotGeometry.from_canvas(640, 480))

    fig = frame_to_figure(frame, 640, 480)

    assert len(fig.data) == 4
    assert [t.line.dash for t in fig.data] == ["solid", "dash", "solid", "dash"]
    assert tuple(fig.layout.yaxis.range) == (480, 0)
    assert len(fig.layout.annotations) == 2


def test_figure_png_bytes_wraps_engine_failure(monkeypatch):
    def _boom(self, *args, **kwargs):
        raise RuntimeError("no engine")

    monkeypatch.setattr(go.Figure, "to_image", _boom)

    with pytest.raises(ExportError):
        figure_png_bytes(go.Figure())


def test_write_bytes_reports_io_failure(tmp_path):
    target = write_bytes(str(tmp_path / "out.csv"), b"a\n1\n")
    assert target.read_bytes() == b"a\n1\n"

    with pytest.raises(ExportError):
        write_bytes(str(tmp_path / "no_such_dir" / "out.csv"), b"x")
