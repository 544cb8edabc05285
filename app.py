import hashlib
from pathlib import Path
import sys
from typing import List

import streamlit as st
import pandas as pd

# Ensure imports work whether the app is executed as a module or as a script
# where the repository directory might not already be on ``sys.path``.
CURRENT_DIR = Path(__file__).resolve().parent
if str(CURRENT_DIR) not in sys.path:
    sys.path.insert(0, str(CURRENT_DIR))

from charts import TIME_WINDOWS, build_altair_chart, result_frame
from power_ingest import read_power_csv
from series_builder import METRIC_LABELS, METRICS, ViewSelection
from session import ChartSession


st.set_page_config(page_title="Power Quality Charts", layout="wide", page_icon="⚡")

st.title("CSV → charts by phase")
st.caption(
    "Upload a power-quality export with *_MAX columns (Time, Urms L1/2/3, "
    "Irms L1/2/3, Ipk L1/2/3, P L1/2/3, P All) and plot per line or all at once."
)

LINE_OPTIONS = {
    "ALL": "All lines",
    "L1": "L1 only",
    "L2": "L2 only",
    "L3": "L3 only",
}
PHASE_LABELS = {"ALL": "All", "L1": "L1", "L2": "L2", "L3": "L3"}


def _state_key(prefix: str, identifier: str) -> str:
    digest = hashlib.sha1(identifier.encode('utf-8')).hexdigest()[:10]
    return f"{prefix}_{digest}"


@st.cache_data(show_spinner=False, max_entries=16)
def _parse_cached(file_name: str, file_bytes: bytes):
    class _MemoryFile:
        def __init__(self, name: str, data: bytes):
            self.name = name
            self._data = data

        def read(self) -> bytes:
            return self._data

    return read_power_csv(_MemoryFile(file_name, file_bytes))


def _export_name(selection: ViewSelection, ext: str) -> str:
    return f"{selection.metric}_{selection.phase}.{ext}"


st.sidebar.header("⚡ Data Upload & Configuration")
uploaded = st.sidebar.file_uploader("CSV file", type=["csv"], key="csv_uploader")

if "chart_session" not in st.session_state:
    st.session_state["chart_session"] = ChartSession()
session: ChartSession = st.session_state["chart_session"]

if uploaded is not None:
    file_bytes = uploaded.getvalue()
    dataset_key = _state_key("dataset", uploaded.name + hashlib.sha1(file_bytes).hexdigest())
    if st.session_state.get("dataset_key") != dataset_key:
        try:
            rows = _parse_cached(uploaded.name, file_bytes)
        except Exception as exc:  # pragma: no cover - Streamlit UI feedback
            st.sidebar.error(f"Failed to parse {uploaded.name}")
            st.sidebar.exception(exc)
            rows = []
        session.load_dataset(rows)
        st.session_state["dataset_key"] = dataset_key
elif st.session_state.get("dataset_key"):
    session.load_dataset([])
    st.session_state["dataset_key"] = None

metric = st.sidebar.selectbox(
    "Metric",
    list(METRICS),
    format_func=lambda value: METRIC_LABELS[value],
    key="metric",
)

line_filter = "ALL"
phase = "ALL"
if metric == "all":
    line_filter = st.sidebar.selectbox(
        "Line filter",
        list(LINE_OPTIONS),
        format_func=lambda value: LINE_OPTIONS[value],
        key="line_filter",
    )
elif metric != "total_power":
    phase = st.sidebar.selectbox(
        "Phase",
        list(PHASE_LABELS),
        format_func=lambda value: PHASE_LABELS[value],
        key="phase",
    )

selection = ViewSelection(metric=metric, phase=phase, line_filter=line_filter)
session.set_selection(selection)
status = session.get_validation_status()
detected: List[str] = session.get_detected_columns()

if detected:
    st.sidebar.caption(f"Detected columns: `{', '.join(detected)}`")
    st.sidebar.caption(f"{len(session.rows):,} rows")

if status.is_empty:
    st.info("Upload a CSV to see the charts.")
    st.stop()

if not status.is_ok:
    st.error(status.error.message)
    st.caption(f"Detected columns: `{', '.join(detected)}`")
    st.stop()

result = session.get_chart_result()
if not result.series:
    st.warning("None of the selected columns contain numeric values.")
    st.stop()

window = st.sidebar.radio(
    "Time window",
    list(TIME_WINDOWS),
    index=len(TIME_WINDOWS) - 1,
    horizontal=True,
    key="time_window",
)
chart = build_altair_chart(result, window=window)
st.altair_chart(chart, use_container_width=True)

export_cols = st.sidebar.columns(2)
with export_cols[0]:
    st.download_button(
        "Export HTML",
        data=chart.to_html(),
        file_name=_export_name(selection, "html"),
        mime="text/html",
    )
with export_cols[1]:
    frame: pd.DataFrame = result_frame(result)
    st.download_button(
        "Export CSV",
        data=frame.to_csv(index=False).encode("utf-8"),
        file_name=_export_name(selection, "csv"),
        mime="text/csv",
    )
