import pytest

from csv_loader import ColumnTable
from transforms.analysis import (
    analyze,
    analyze_table,
    classify_noise_reduction,
    classify_smoothing_effect,
    classify_trend,
    find_peaks,
    find_valleys,
    format_report,
)
from view_state import SeriesView, ViewState


def test_extrema_strict_interior():
    data = [1, 3, 2, 5, 4]
    assert find_peaks(data) == [1, 3]
    assert find_valleys(data) == [2]


def test_extrema_ignore_plateaus_and_endpoints():
    assert find_peaks([5, 1, 1, 1, 5]) == []
    assert find_valleys([5, 1, 1, 1, 5]) == []
    assert find_peaks([9, 1]) == []


def test_classify_trend():
    assert classify_trend([]) == "No trend data"
    assert classify_trend([0.0005, -0.0002]) == "Stable"
    assert classify_trend([1, 2]) == "Increasing"
    assert classify_trend([-1, -2]) == "Decreasing"


def test_classify_noise_reduction():
    assert classify_noise_reduction(1) == "None (raw data)"
    assert classify_noise_reduction(10) == "Moderate (10-point averaging)"
    assert classify_noise_reduction(7) == "Custom (7-point averaging)"


@pytest.mark.parametrize(
    "processed,original,expected",
    [
        (100, 100, "No aggregation applied"),
        (90, 100, "Light smoothing effect"),
        (50, 100, "Strong smoothing effect"),
        (60, 100, "Moderate smoothing effect"),
        (20, 100, "Very strong smoothing effect"),
    ],
)
def test_classify_smoothing_effect(processed, original, expected):
    assert classify_smoothing_effect(processed, original) == expected


def test_analyze_report_fields():
    report = analyze([1, 3, 2, 5, 4, 6], 2, name="a")

    assert report.processed_length == 3
    assert report.original_length == 6
    assert report.minimum == pytest.approx(2.0)
    assert report.maximum == pytest.approx(5.0)
    assert report.mean == pytest.approx(3.5)
    assert report.trend == "Increasing"
    assert report.noise_reduction == "Minimal (2-point averaging)"
    assert report.smoothing_effect == "Strong smoothing effect"
    assert "a" in format_report(report)


def test_analyze_population_std_and_single_sample():
    report = analyze([2, 4, 4, 4, 5, 5, 7, 9], 1)
    assert report.std == pytest.approx(2.0)

    single = analyze([3.0], 1)
    assert single.trend == "No trend data"
    assert single.derivative_mean == 0.0
    assert single.peaks == [] and single.valleys == []


def test_analyze_rejects_empty_column():
    with pytest.raises(ValueError):
        analyze([], 1)


def test_analyze_table_uses_per_column_window_and_visibility():
    table = ColumnTable(columns={"a": [1.0] * 10, "b": [2.0] * 10, "c": [0.0] * 10})
    state = ViewState(
        series={
            "a": SeriesView(aggregation_window=5),
            "b": SeriesView(visible=False),
            "c": SeriesView(),
        }
    )

    reports = analyze_table(table, state)

    assert [r.name for r in reports] == ["a", "c"]
    assert reports[0].processed_length == 2
    assert reports[1].trend == "Stable"
