"""Scalar parsing helpers for power-quality exports.

Cells arrive as raw text from the meter software, so numbers may use
thousands separators or comma decimals depending on the locale the export was
made in, and timestamps are written day-first. Everything here returns
``None`` instead of raising so that noisy rows simply drop out of a series.
"""

from __future__ import annotations

import math
import os
import re
from typing import Optional

import pandas as pd

# Debug toggler: set PQ_DEBUG=1 to enable verbose parse logs
DEBUG = os.getenv("PQ_DEBUG", "0") == "1"


def dprint(*args, **kwargs):
    if DEBUG:
        print(*args, **kwargs)


_THOUSANDS_RE = re.compile(r"^\d{1,3}(,\d{3})+(\.\d+)?$")
_DAY_FIRST_RE = re.compile(
    r"^(\d{2})/(\d{2})/(\d{4})\s+(\d{2}):(\d{2})(?::(\d{2}))?$"
)


def parse_number(raw: object) -> Optional[float]:
    """Return a float parsed from locale-variant numeric text.

    ``1,234.56`` loses its grouping commas, ``12,5`` is read as a comma
    decimal. Empty, non-numeric and non-finite input yields ``None``.
    """

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
        return value if math.isfinite(value) else None

    text = re.sub(r"\s+", "", str(raw).strip())
    if not text or "_" in text:
        return None

    if _THOUSANDS_RE.match(text):
        text = text.replace(",", "")
    elif "," in text and "." not in text:
        text = text.replace(",", ".")

    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_timestamp(raw: object) -> Optional[pd.Timestamp]:
    """Return a timestamp for ``dd/mm/yyyy HH:MM[:SS]`` text.

    The day-first pattern is authoritative; other layouts go through
    :func:`pandas.to_datetime`. Invalid dates yield ``None``.
    """

    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None

    match = _DAY_FIRST_RE.match(text)
    if match:
        day, month, year, hour, minute, second = match.groups()
        try:
            return pd.Timestamp(
                year=int(year),
                month=int(month),
                day=int(day),
                hour=int(hour),
                minute=int(minute),
                second=int(second or 0),
            )
        except ValueError:
            dprint(f"[parse_timestamp] invalid day-first value: {text!r}")
            return None

    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed


__all__ = ["DEBUG", "dprint", "parse_number", "parse_timestamp"]
