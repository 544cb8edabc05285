import sys
from pathlib import Path

import pandas as pd
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from schema_detect import detect_schema
from series_builder import ViewSelection, build_chart, matches_line

HEADER = [
    "Time",
    "Urms L1 MAX",
    "Urms L2 MAX",
    "Urms L3 MAX",
    "Irms L1 MAX",
    "Irms L2 MAX",
    "Irms L3 MAX",
    "Ipk L1 MAX",
    "Ipk L2 MAX",
    "Ipk L3 MAX",
    "P L1 MAX",
    "P L2 MAX",
    "P L3 MAX",
    "P All MAX",
]


def _rows(count: int = 3):
    rows = []
    for i in range(count):
        row = {"Time": f"01/02/2024 10:{i:02d}"}
        for j, col in enumerate(HEADER[1:], start=1):
            row[col] = f"{j},{i}"
        rows.append(row)
    return rows


def test_power_all_phases_includes_total_in_fixed_order():
    rows = _rows()
    result = build_chart(rows, detect_schema(HEADER), ViewSelection("power", "ALL"))

    assert result.labels == ["P L1", "P L2", "P L3", "P Total (All)"]
    assert result.y_axis_label == "W"
    assert result.title == "Power - All phases + Total"


def test_power_single_phase():
    rows = _rows()
    result = build_chart(rows, detect_schema(HEADER), ViewSelection("power", "L2"))

    assert result.labels == ["P L2"]
    assert result.title == "Power - L2"


def test_total_power_ignores_phase():
    rows = _rows()
    schema = detect_schema(HEADER)
    selection = ViewSelection("total_power", "L1")

    result = build_chart(rows, schema, selection)

    assert selection.phase == "ALL"
    assert result.labels == ["P Total (All)"]
    assert result.series[0].values[0] == pytest.approx(13.0)


@pytest.mark.parametrize(
    "metric, prefix, unit",
    [("voltage", "Urms", "V"), ("current", "Irms", "A"), ("peak_current", "Ipk", "A")],
)
def test_per_phase_metrics(metric, prefix, unit):
    rows = _rows()
    schema = detect_schema(HEADER)

    all_phases = build_chart(rows, schema, ViewSelection(metric, "ALL"))
    single = build_chart(rows, schema, ViewSelection(metric, "L3"))

    assert all_phases.labels == [f"{prefix} L1", f"{prefix} L2", f"{prefix} L3"]
    assert all_phases.y_axis_label == unit
    assert all_phases.title.endswith("All phases")
    assert single.labels == [f"{prefix} L3"]
    assert single.title.endswith("- L3")


def test_values_and_timestamps_are_parsed():
    rows = _rows(2)
    result = build_chart(rows, detect_schema(HEADER), ViewSelection("voltage", "L1"))

    series = result.series[0]
    assert series.values == (1.0, 1.1)
    assert series.timestamps[1] == pd.Timestamp(2024, 2, 1, 10, 1)


def test_all_metric_keeps_sparse_column_and_drops_empty_one():
    rows = [
        {"Time": f"01/01/2024 00:0{i}", "X": "5" if i == 2 else "", "Empty": "n/a"}
        for i in range(5)
    ]
    schema = detect_schema(list(rows[0]))

    result = build_chart(rows, schema, ViewSelection("all"))

    assert result.labels == ["X"]
    assert result.series[0].values == (None, None, 5.0, None, None)
    assert len(result.series[0].timestamps) == 5
    assert result.y_axis_label == "Value"


def test_all_metric_preserves_column_order_and_filters_lines():
    header = ["Time", "Freq", "Urms L2 MAX", "P_L1", "L11_Status", "Urms L1 MAX"]
    rows = [{col: ("01/01/2024 00:00" if col == "Time" else "1") for col in header}]
    schema = detect_schema(header)

    everything = build_chart(rows, schema, ViewSelection("all", line_filter="ALL"))
    line_one = build_chart(rows, schema, ViewSelection("all", line_filter="L1"))

    assert everything.labels == header[1:]
    assert line_one.labels == ["P_L1", "Urms L1 MAX"]


def test_missing_role_yields_no_series():
    rows = [{"Time": "01/01/2024 00:00", "Urms L1 MAX": "230"}]
    result = build_chart(rows, detect_schema(list(rows[0])), ViewSelection("voltage", "L2"))

    assert result.series == ()


def test_empty_or_timeless_inputs_give_empty_result():
    rows = [{"Stamp": "x", "Urms L1 MAX": "230"}]

    assert build_chart([], None, ViewSelection()).series == ()
    assert build_chart(rows, detect_schema(list(rows[0])), ViewSelection()).title == "No data"


def test_build_chart_is_idempotent():
    rows = _rows()
    schema = detect_schema(HEADER)
    selection = ViewSelection("power", "ALL")

    assert build_chart(rows, schema, selection) == build_chart(rows, schema, selection)


def test_to_frame_is_long_format():
    rows = _rows(2)
    rows[0]["Urms L2 MAX"] = ""
    result = build_chart(rows, detect_schema(HEADER), ViewSelection("voltage", "ALL"))

    frame = result.to_frame()
    compact = result.to_frame(dropna=True)

    assert list(frame.columns) == ["DateTime", "Value", "Series"]
    assert len(frame) == 6
    assert len(compact) == 5
    assert frame["Series"].unique().tolist() == ["Urms L1", "Urms L2", "Urms L3"]


@pytest.mark.parametrize(
    "column, line, expected",
    [
        ("Urms L1 MAX", "L1", True),
        ("L1 Urms", "L1", True),
        ("Urms L1", "L1", True),
        ("P_L2_MAX", "L2", True),
        ("urms l3 max", "L3", True),
        ("L11_Status", "L1", False),
        ("XL1 value", "L1", False),
        ("Urms L2 MAX", "L1", False),
        ("anything", "ALL", True),
    ],
)
def test_matches_line_uses_delimited_tokens(column, line, expected):
    assert matches_line(column, line) is expected


def test_view_selection_rejects_unknown_values():
    with pytest.raises(ValueError):
        ViewSelection("frequency")
    with pytest.raises(ValueError):
        ViewSelection("voltage", "L4")
