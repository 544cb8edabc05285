"""Map raw power-quality column names onto the logical measurement schema.

Meter exports have drifted in naming over the years (``Urms L1 MAX`` versus
``Urms_L1_MAX`` and so on), so each logical role keeps an ordered tuple of
literal spellings and resolves to the first one present in the header.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple

from parsing import dprint

PHASES: Tuple[str, ...] = ("L1", "L2", "L3")

# Measurement prefixes per per-phase role, in preference order.
PHASE_ROLE_PREFIXES: Dict[str, Tuple[str, ...]] = {
    "voltage": ("Urms", "Vrms", "U", "V"),
    "current": ("Irms", "I"),
    "peak_current": ("Ipk", "Ipeak"),
    "power": ("P",),
}

TIME_CANDIDATES: Tuple[str, ...] = (
    "Time",
    "Date/Time",
    "DateTime",
    "Date Time",
    "Timestamp",
    "Fecha/Hora",
    "Fecha",
    "Hora",
)

TOTAL_POWER_CANDIDATES: Tuple[str, ...] = (
    "P All MAX",
    "P_All_MAX",
    "P ALL MAX",
    "P Total MAX",
    "P All",
    "P Total",
)


def _phase_variants(prefixes: Iterable[str], phase: str) -> Tuple[str, ...]:
    """Return the literal spellings accepted for ``prefix`` on ``phase``."""

    variants = []
    for prefix in prefixes:
        variants.extend(
            [
                f"{prefix} {phase} MAX",
                f"{prefix}_{phase}_MAX",
                f"{prefix} {phase}",
                f"{prefix}_{phase}",
            ]
        )
    return tuple(variants)


def _build_role_candidates() -> Dict[str, Tuple[str, ...]]:
    table: Dict[str, Tuple[str, ...]] = {"time": TIME_CANDIDATES}
    for role, prefixes in PHASE_ROLE_PREFIXES.items():
        for phase in PHASES:
            table[f"{role}.{phase}"] = _phase_variants(prefixes, phase)
    table["total_power"] = TOTAL_POWER_CANDIDATES
    return table


# Role key -> ordered candidate column names. Per-phase keys are ``role.Lx``.
ROLE_CANDIDATES: Dict[str, Tuple[str, ...]] = _build_role_candidates()


@dataclass(frozen=True)
class PhaseColumns:
    """Resolved column names for one measurement across the three phases."""

    L1: Optional[str] = None
    L2: Optional[str] = None
    L3: Optional[str] = None

    def get(self, phase: str) -> Optional[str]:
        if phase not in PHASES:
            return None
        return getattr(self, phase)

    def any_resolved(self) -> bool:
        return any(self.get(phase) for phase in PHASES)


@dataclass(frozen=True)
class LogicalSchema:
    columns: Tuple[str, ...]
    time: Optional[str] = None
    voltage: PhaseColumns = PhaseColumns()
    current: PhaseColumns = PhaseColumns()
    peak_current: PhaseColumns = PhaseColumns()
    power: PhaseColumns = PhaseColumns()
    total_power: Optional[str] = None

    def phase_columns(self, role: str) -> PhaseColumns:
        """Return the per-phase columns for ``role`` (``voltage``, ``power``...)."""

        if role not in PHASE_ROLE_PREFIXES:
            raise ValueError(f"Unknown per-phase role: {role!r}")
        return getattr(self, role)

    def resolved_roles(self) -> Dict[str, str]:
        """Return role key -> column for every resolved role."""

        resolved: Dict[str, str] = {}
        if self.time:
            resolved["time"] = self.time
        for role in PHASE_ROLE_PREFIXES:
            cols = self.phase_columns(role)
            for phase in PHASES:
                column = cols.get(phase)
                if column:
                    resolved[f"{role}.{phase}"] = column
        if self.total_power:
            resolved["total_power"] = self.total_power
        return resolved


def _select_first_available(present: set, candidates: Sequence[str]) -> Optional[str]:
    """Return the first name from ``candidates`` that is in ``present``."""

    for candidate in candidates:
        if candidate in present:
            return candidate
    return None


def detect_schema(column_names: Sequence[str]) -> LogicalSchema:
    """Resolve every logical role against the dataset header.

    ``column_names`` must be non-empty; callers skip detection for empty
    datasets.
    """

    columns = tuple(str(name) for name in column_names)
    if not columns:
        raise ValueError("Schema detection requires at least one column name")

    present = set(columns)

    def resolve(key: str) -> Optional[str]:
        return _select_first_available(present, ROLE_CANDIDATES[key])

    per_phase = {
        role: PhaseColumns(**{phase: resolve(f"{role}.{phase}") for phase in PHASES})
        for role in PHASE_ROLE_PREFIXES
    }
    schema = LogicalSchema(
        columns=columns,
        time=resolve("time"),
        total_power=resolve("total_power"),
        **per_phase,
    )
    dprint(f"[detect_schema] resolved roles: {schema.resolved_roles()}")
    return schema


__all__ = [
    "PHASES",
    "ROLE_CANDIDATES",
    "LogicalSchema",
    "PhaseColumns",
    "detect_schema",
]
