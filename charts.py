"""Altair rendering for :class:`series_builder.ChartResult`."""

from __future__ import annotations

import math
from typing import Dict, Optional

import altair as alt
import pandas as pd

from series_builder import ChartResult

DEFAULT_MAX_POINTS = 5000

# Quick-range presets for the x axis; ``None`` keeps the whole dataset.
TIME_WINDOWS: Dict[str, Optional[pd.Timedelta]] = {
    "1d": pd.Timedelta(days=1),
    "3d": pd.Timedelta(days=3),
    "7d": pd.Timedelta(days=7),
    "All": None,
}


def result_frame(result: ChartResult) -> pd.DataFrame:
    """Long-format chart data; missing points are dropped so lines connect."""

    return result.to_frame(dropna=True)


def filter_window(df: pd.DataFrame, window: str = "All") -> pd.DataFrame:
    """Keep the trailing ``window`` of data, counted back from the last sample."""

    if window not in TIME_WINDOWS:
        raise ValueError(f"Unknown time window: {window!r}")
    span = TIME_WINDOWS[window]
    if df is None or df.empty or span is None:
        return df
    start = df["DateTime"].max() - span
    return df[df["DateTime"] >= start].reset_index(drop=True)


def _bucket_seconds(span_seconds: int, budget: int) -> int:
    """Return a bucket width giving at most ``budget`` buckets over the span."""

    if budget <= 1:
        return span_seconds + 1
    return span_seconds // (budget - 1) + 1


def _downsample(df: pd.DataFrame, max_points: int = DEFAULT_MAX_POINTS) -> pd.DataFrame:
    """Bucket-average the series so the frame holds at most ``max_points`` rows.

    The budget is split evenly across series; series already under their
    share are left untouched.
    """

    if df is None or df.empty or max_points <= 0:
        return df
    if len(df) <= max_points:
        return df

    groups = list(df.groupby("Series", sort=False))
    budget = max(1, max_points // len(groups))

    parts = []
    for label, part in groups:
        if len(part) <= budget:
            parts.append(part[["DateTime", "Value", "Series"]])
            continue
        span = part["DateTime"].max() - part["DateTime"].min()
        span_seconds = int(math.ceil(span.total_seconds()))
        step = _bucket_seconds(span_seconds, budget)
        resampled = (
            part.set_index("DateTime")["Value"]
            .resample(f"{step}s", origin="start")
            .mean()
            .dropna()
            .reset_index()
        )
        resampled["Series"] = label
        parts.append(resampled)
    return pd.concat(parts, ignore_index=True)[["DateTime", "Value", "Series"]]


def build_altair_chart(
    result: ChartResult, max_points: int = DEFAULT_MAX_POINTS, window: str = "All"
) -> alt.Chart:
    """Return a zoomable line chart with one colour per series."""

    df_chart = _downsample(filter_window(result_frame(result), window), max_points)
    order = result.labels

    chart = (
        alt.Chart(df_chart)
        .mark_line()
        .encode(
            x=alt.X("DateTime:T", title="Date/Time"),
            y=alt.Y("Value:Q", title=result.y_axis_label),
            color=alt.Color(
                "Series:N",
                sort=order,
                scale=alt.Scale(domain=order),
                legend=alt.Legend(orient="bottom", direction="horizontal", title=None),
            ),
            tooltip=[
                alt.Tooltip("DateTime:T", title="Date/Time"),
                alt.Tooltip("Series:N"),
                alt.Tooltip("Value:Q"),
            ],
        )
        .properties(title={"text": result.title, "anchor": "start"}, height=480)
        .interactive(bind_y=False)
    )
    return chart


__all__ = [
    "DEFAULT_MAX_POINTS",
    "TIME_WINDOWS",
    "build_altair_chart",
    "filter_window",
    "result_frame",
]
