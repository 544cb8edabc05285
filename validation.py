"""Decide whether a dataset/selection combination can be charted."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Tuple

from parsing import parse_number
from schema_detect import LogicalSchema
from series_builder import ViewSelection

# Candidate spellings quoted back to the user when a metric has no columns.
_METRIC_HINTS = {
    "voltage": "Urms L1/L2/L3 MAX",
    "current": "Irms L1/L2/L3 MAX",
    "peak_current": "Ipk L1/L2/L3 MAX",
    "power": "P L1/L2/L3 MAX or P All MAX",
}


@dataclass(frozen=True)
class ValidationError:
    """Base for recoverable "cannot plot this" diagnostics."""

    columns: Tuple[str, ...] = ()

    @property
    def message(self) -> str:
        return "The selected view cannot be plotted."

    def describe(self) -> str:
        detected = ", ".join(self.columns) if self.columns else "(none)"
        return f"{self.message}\nDetected columns: {detected}"


@dataclass(frozen=True)
class MissingTimeColumn(ValidationError):
    @property
    def message(self) -> str:
        return "Time column not found."


@dataclass(frozen=True)
class NoNumericColumns(ValidationError):
    @property
    def message(self) -> str:
        return "No numeric columns found to plot."


@dataclass(frozen=True)
class MissingMetricColumns(ValidationError):
    metric: str = ""

    @property
    def message(self) -> str:
        hint = _METRIC_HINTS.get(self.metric, self.metric)
        return f"No {self.metric.replace('_', ' ')} columns found ({hint})."


@dataclass(frozen=True)
class ValidationStatus:
    """``empty``, ``ok`` or ``error`` (with the diagnostic attached)."""

    state: str
    error: Optional[ValidationError] = None

    @property
    def is_empty(self) -> bool:
        return self.state == "empty"

    @property
    def is_ok(self) -> bool:
        return self.state == "ok"


def _has_numeric_value(dataset: Sequence[Mapping[str, object]], column: str) -> bool:
    return any(parse_number(row.get(column)) is not None for row in dataset)


def validate(
    dataset: Sequence[Mapping[str, object]],
    schema: Optional[LogicalSchema],
    selection: ViewSelection,
) -> Optional[ValidationError]:
    """Return the first reason ``selection`` cannot be plotted, or ``None``.

    An empty dataset is not an error; :func:`validation_status` reports it as
    ``empty``.
    """

    if not dataset or schema is None:
        return None

    columns = schema.columns
    if not schema.time:
        return MissingTimeColumn(columns=columns)

    metric = selection.metric
    if metric == "all":
        data_cols = [col for col in columns if col != schema.time]
        if not any(_has_numeric_value(dataset, col) for col in data_cols):
            return NoNumericColumns(columns=columns)
        return None

    if metric in ("voltage", "current", "peak_current"):
        if not schema.phase_columns(metric).any_resolved():
            return MissingMetricColumns(columns=columns, metric=metric)
        return None

    if not (schema.power.any_resolved() or schema.total_power):
        return MissingMetricColumns(columns=columns, metric="power")
    return None


def validation_status(
    dataset: Sequence[Mapping[str, object]],
    schema: Optional[LogicalSchema],
    selection: ViewSelection,
) -> ValidationStatus:
    if not dataset:
        return ValidationStatus("empty")
    error = validate(dataset, schema, selection)
    if error is not None:
        return ValidationStatus("error", error)
    return ValidationStatus("ok")


__all__ = [
    "MissingMetricColumns",
    "MissingTimeColumn",
    "NoNumericColumns",
    "ValidationError",
    "ValidationStatus",
    "validate",
    "validation_status",
]
