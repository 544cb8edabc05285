import sys
from pathlib import Path

import pandas as pd
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from parsing import parse_number, parse_timestamp


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1,234.56", 1234.56),
        ("12,345,678", 12345678.0),
        ("12,5", 12.5),
        ("  230.4 ", 230.4),
        ("1 234.5", 1234.5),
        ("-3.75", -3.75),
        ("0", 0.0),
        (7, 7.0),
    ],
)
def test_parse_number_handles_locale_variants(raw, expected):
    assert parse_number(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", ["", "   ", "abc", None, "-", "1.234,5", "inf", "nan", "1_000"])
def test_parse_number_returns_none_for_unusable_text(raw):
    assert parse_number(raw) is None


def test_parse_number_does_not_treat_empty_as_zero():
    assert parse_number("") is None
    assert parse_number("0") == 0.0


def test_parse_timestamp_is_day_first():
    ts = parse_timestamp("31/01/2024 08:15")

    assert isinstance(ts, pd.Timestamp)
    assert (ts.year, ts.month, ts.day) == (2024, 1, 31)
    assert (ts.hour, ts.minute, ts.second) == (8, 15, 0)


def test_parse_timestamp_keeps_seconds_and_does_not_swap_day_month():
    ts = parse_timestamp("05/03/2024 23:59:42")

    assert (ts.day, ts.month) == (5, 3)
    assert ts.second == 42


def test_parse_timestamp_rejects_invalid_calendar_dates():
    assert parse_timestamp("31/02/2024 10:00") is None
    assert parse_timestamp("01/13/2024 10:00") is None


def test_parse_timestamp_falls_back_to_general_parse():
    ts = parse_timestamp("2024-02-10 12:30:00")

    assert ts == pd.Timestamp("2024-02-10 12:30:00")


@pytest.mark.parametrize("raw", ["", None, "not a date"])
def test_parse_timestamp_returns_none_for_garbage(raw):
    assert parse_timestamp(raw) is None
