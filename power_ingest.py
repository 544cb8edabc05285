"""CSV ingestion for power-quality analyser exports.

Produces the plain row dictionaries consumed by :class:`session.ChartSession`.
Header names leave this module trimmed, BOM-free and whitespace-collapsed;
cell text is trimmed but otherwise untouched, numeric and time parsing
happen later in :mod:`parsing`.
"""

from __future__ import annotations

import io
import re
from typing import Dict, List, Optional

import pandas as pd

from parsing import dprint

DELIMITERS = (",", ";", "\t", "|")

_ZERO_WIDTH_CHARS = ("\ufeff", "\u200b", "\u200c", "\u200d")


def _strip_bom_and_zero_width(text: str) -> str:
    for ch in _ZERO_WIDTH_CHARS:
        text = text.replace(ch, "")
    return text


def _read_text(file_obj) -> str:
    """Return the decoded contents of an uploaded file or text stream."""

    raw = file_obj.read()
    if isinstance(raw, bytes):
        raw = raw.replace(b"\x00", b"")
        text = raw.decode("utf-8-sig", errors="replace")
    else:
        text = str(raw).replace("\x00", "")
    return _strip_bom_and_zero_width(text)


def _normalize_header(name: object) -> str:
    return re.sub(r"\s+", " ", str(name or "")).strip()


def _guess_delimiter(text: str) -> str:
    """Pick the most frequent known delimiter on the first non-blank line."""

    header = next((line for line in text.splitlines() if line.strip()), "")
    counts = {sep: header.count(sep) for sep in DELIMITERS}
    best = max(DELIMITERS, key=lambda sep: counts[sep])
    return best if counts[best] else ","


def _read_frame(text: str, sep: str) -> pd.DataFrame:
    return pd.read_csv(
        io.StringIO(text),
        sep=sep,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        index_col=False,
    )


def records_from_frame(df: pd.DataFrame) -> List[Dict[str, str]]:
    """Return trimmed row dictionaries in header order."""

    if df is None or df.empty:
        return []
    frame = df.copy()
    frame.columns = [_normalize_header(col) for col in frame.columns]
    frame = frame.fillna("").astype(str)
    for col in frame.columns:
        frame[col] = frame[col].str.strip()
    return frame.to_dict(orient="records")


def read_power_csv(file_obj, name: Optional[str] = None) -> List[Dict[str, str]]:
    """Parse a power-quality CSV export into raw records.

    Parameters
    ----------
    file_obj:
        Any object with ``read()`` returning bytes or text (an upload, an
        open file, ``io.BytesIO``).
    name:
        Optional display name used in debug output.

    Returns
    -------
    List[Dict[str, str]]
        One mapping per data row, keys in header order. Empty input gives an
        empty list.
    """

    label = name or getattr(file_obj, "name", "<stream>")
    text = _read_text(file_obj)
    if not text.strip():
        dprint(f"[read_power_csv] {label}: empty input")
        return []

    guessed = _guess_delimiter(text)
    attempts = [guessed] + [sep for sep in DELIMITERS if sep != guessed]
    last_exc: Optional[Exception] = None
    for sep in attempts:
        try:
            df = _read_frame(text, sep)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as exc:
            dprint(f"[read_power_csv] {label}: sep={sep!r} failed: {exc}")
            last_exc = exc
            continue
        records = records_from_frame(df)
        dprint(
            f"[read_power_csv] {label}: sep={sep!r} rows={len(records)} "
            f"columns={list(df.columns)}"
        )
        return records

    raise ValueError("Failed to read power-quality CSV") from last_exc


__all__ = ["DELIMITERS", "read_power_csv", "records_from_frame"]
