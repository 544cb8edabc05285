"""Stateful front door used by the page: dataset, schema, selection, cache."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from parsing import dprint
from schema_detect import LogicalSchema, detect_schema
from series_builder import ChartResult, ViewSelection, build_chart
from validation import ValidationStatus, validation_status


class ChartSession:
    """Hold the current dataset and recompute chart data on demand.

    ``load_dataset`` replaces the data wholesale and re-detects the schema;
    chart results are memoized per selection until the next load.
    """

    def __init__(self, selection: Optional[ViewSelection] = None):
        self._rows: Tuple[Dict[str, str], ...] = ()
        self._schema: Optional[LogicalSchema] = None
        self._selection = selection or ViewSelection()
        self._cache: Dict[ViewSelection, ChartResult] = {}

    @property
    def schema(self) -> Optional[LogicalSchema]:
        return self._schema

    @property
    def selection(self) -> ViewSelection:
        return self._selection

    @property
    def rows(self) -> Tuple[Dict[str, str], ...]:
        return self._rows

    def load_dataset(self, rows: Iterable[Mapping[str, str]]) -> None:
        self._rows = tuple(dict(row) for row in rows)
        self._cache = {}
        if self._rows:
            self._schema = detect_schema(list(self._rows[0].keys()))
        else:
            self._schema = None
        dprint(f"[ChartSession] loaded {len(self._rows)} rows")

    def set_selection(self, selection: ViewSelection) -> None:
        self._selection = selection

    def get_chart_result(self) -> ChartResult:
        cached = self._cache.get(self._selection)
        if cached is None:
            cached = build_chart(self._rows, self._schema, self._selection)
            self._cache[self._selection] = cached
        return cached

    def get_validation_status(self) -> ValidationStatus:
        return validation_status(self._rows, self._schema, self._selection)

    def get_detected_columns(self) -> List[str]:
        if self._schema is None:
            return []
        return list(self._schema.columns)


__all__ = ["ChartSession"]
