"""Turn a loaded dataset into the named series for one chart view."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from parsing import parse_number, parse_timestamp
from schema_detect import PHASES, LogicalSchema

METRICS: Tuple[str, ...] = (
    "all",
    "voltage",
    "current",
    "peak_current",
    "power",
    "total_power",
)
PHASE_OPTIONS: Tuple[str, ...] = ("ALL",) + PHASES

# Human-readable names used in the metric dropdown and chart titles.
METRIC_LABELS: Dict[str, str] = {
    "all": "All columns",
    "voltage": "Voltage (Urms)",
    "current": "Current (Irms)",
    "peak_current": "Peak current (Ipk)",
    "power": "Power (P)",
    "total_power": "Total power (P All)",
}

# Series label prefix for each per-phase metric.
SERIES_PREFIXES: Dict[str, str] = {
    "voltage": "Urms",
    "current": "Irms",
    "peak_current": "Ipk",
    "power": "P",
}

Y_AXIS_LABELS: Dict[str, str] = {
    "all": "Value",
    "voltage": "V",
    "current": "A",
    "peak_current": "A",
    "power": "W",
    "total_power": "W",
}

TOTAL_POWER_LABEL = "P Total (All)"
NO_DATA_TITLE = "No data"

_TOKEN_SPLIT_RE = re.compile(r"[\s_]+")


@dataclass(frozen=True)
class ViewSelection:
    """Metric/phase/line-filter combination picked by the user.

    ``phase`` is forced to ``ALL`` for ``total_power``; ``line_filter`` only
    matters for ``all``.
    """

    metric: str = "all"
    phase: str = "ALL"
    line_filter: str = "ALL"

    def __post_init__(self) -> None:
        if self.metric not in METRICS:
            raise ValueError(f"Unknown metric: {self.metric!r}")
        if self.phase not in PHASE_OPTIONS:
            raise ValueError(f"Unknown phase: {self.phase!r}")
        if self.line_filter not in PHASE_OPTIONS:
            raise ValueError(f"Unknown line filter: {self.line_filter!r}")
        if self.metric == "total_power" and self.phase != "ALL":
            object.__setattr__(self, "phase", "ALL")


@dataclass(frozen=True)
class Series:
    label: str
    timestamps: Tuple[Optional[pd.Timestamp], ...]
    values: Tuple[Optional[float], ...]

    @property
    def usable(self) -> bool:
        return any(value is not None for value in self.values)

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class ChartResult:
    series: Tuple[Series, ...]
    title: str
    y_axis_label: str

    @property
    def labels(self) -> List[str]:
        return [s.label for s in self.series]

    def to_frame(self, dropna: bool = False) -> pd.DataFrame:
        """Return a long-format frame with ``DateTime``, ``Value`` and ``Series``.

        With ``dropna`` rows missing a timestamp or value are removed.
        """

        columns = ["DateTime", "Value", "Series"]
        frames = [
            pd.DataFrame(
                {
                    "DateTime": pd.to_datetime(
                        pd.Series(s.timestamps, dtype="object"), errors="coerce"
                    ),
                    "Value": pd.to_numeric(pd.Series(s.values, dtype="object"), errors="coerce"),
                    "Series": s.label,
                }
            )
            for s in self.series
        ]
        if not frames:
            return pd.DataFrame(columns=columns)
        frame = pd.concat(frames, ignore_index=True)[columns]
        if dropna:
            frame = frame.dropna(subset=["DateTime", "Value"]).reset_index(drop=True)
        return frame


def _tokens(column: str) -> List[str]:
    """Split a column name on whitespace/underscore runs, upper-cased."""

    return [tok for tok in _TOKEN_SPLIT_RE.split(str(column).upper()) if tok]


def matches_line(column: str, line: str) -> bool:
    """Return True when ``column`` carries ``line`` as a delimited token.

    ``ALL`` admits every column. ``Urms L1 MAX`` and ``P_L2`` match their
    line; ``L11_Status`` does not match ``L1``.
    """

    if not line or line == "ALL":
        return True
    return line.upper() in _tokens(column)


def _phase_suffix(phase: str) -> str:
    return "All phases" if phase == "ALL" else phase


def _candidates(
    schema: LogicalSchema, selection: ViewSelection
) -> Tuple[List[Tuple[str, Optional[str]]], str]:
    """Return ordered ``(label, column)`` candidates plus the chart title."""

    metric = selection.metric
    phase = selection.phase

    if metric == "all":
        columns = [
            col
            for col in schema.columns
            if col != schema.time and matches_line(col, selection.line_filter)
        ]
        return [(col, col) for col in columns], METRIC_LABELS["all"]

    if metric == "total_power":
        return [(TOTAL_POWER_LABEL, schema.total_power)], METRIC_LABELS["total_power"]

    prefix = SERIES_PREFIXES[metric]
    phase_cols = schema.phase_columns(metric)
    phases = PHASES if phase == "ALL" else (phase,)
    candidates = [(f"{prefix} {ph}", phase_cols.get(ph)) for ph in phases]

    if metric == "power":
        if phase == "ALL":
            candidates.append((TOTAL_POWER_LABEL, schema.total_power))
            return candidates, "Power - All phases + Total"
        return candidates, f"Power - {phase}"

    return candidates, f"{METRIC_LABELS[metric]} - {_phase_suffix(phase)}"


def build_chart(
    dataset: Sequence[Mapping[str, object]],
    schema: Optional[LogicalSchema],
    selection: ViewSelection,
) -> ChartResult:
    """Assemble the chart series for ``selection``.

    Candidates whose every value is unparseable are left out. An empty
    dataset or a schema without a time column gives an empty result.
    """

    y_label = Y_AXIS_LABELS[selection.metric]
    if not dataset or schema is None or not schema.time:
        return ChartResult(series=(), title=NO_DATA_TITLE, y_axis_label=y_label)

    timestamps = tuple(parse_timestamp(row.get(schema.time)) for row in dataset)
    candidates, title = _candidates(schema, selection)

    series: List[Series] = []
    seen = set()
    for label, column in candidates:
        if not column or label in seen:
            continue
        values = tuple(parse_number(row.get(column)) for row in dataset)
        candidate = Series(label=label, timestamps=timestamps, values=values)
        if not candidate.usable:
            continue
        seen.add(label)
        series.append(candidate)

    return ChartResult(series=tuple(series), title=title, y_axis_label=y_label)


__all__ = [
    "METRICS",
    "METRIC_LABELS",
    "PHASE_OPTIONS",
    "ChartResult",
    "Series",
    "ViewSelection",
    "build_chart",
    "matches_line",
]
