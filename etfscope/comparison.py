"""
Side-by-side comparison data for a set of ETF histories.

These helpers only reshape already-validated ``InstrumentHistory`` values;
they do not fetch anything.
"""
from __future__ import annotations

import logging
from typing import Iterable, Literal

import pandas as pd
from pydantic import BaseModel, Field

from etfscope.models import InstrumentHistory, Source

logger = logging.getLogger(__name__)


class PerformanceSummary(BaseModel):
    """Window statistics for one ETF."""

    code: str
    name: str
    first_date: str
    last_date: str
    start_close: float
    latest_close: float
    change: float = Field(..., description="latest_close - start_close.")
    change_pct: float = Field(..., description="Change relative to start_close, in percent.")
    high: float
    low: float


def summarize(history: InstrumentHistory) -> PerformanceSummary:
    points = history.history
    first, last = points[0], points[-1]
    closes = [p.close for p in points]
    change = last.close - first.close
    return PerformanceSummary(
        code=history.code,
        name=history.name,
        first_date=first.date,
        last_date=last.date,
        start_close=first.close,
        latest_close=last.close,
        change=change,
        change_pct=change / first.close * 100,
        high=max(closes),
        low=min(closes),
    )


def comparison_frame(
    histories: Iterable[InstrumentHistory],
    mode: Literal["price", "percentage"] = "price",
) -> pd.DataFrame:
    """
    Align several histories on a shared date index.

    Args:
        histories: Histories to compare; each becomes one column named by code.
        mode: ``"price"`` for raw closes, ``"percentage"`` for the change
            from each ETF's first close, rounded to 2 decimals.

    Returns:
        DataFrame indexed by the sorted union of dates. Days an ETF did not
        report are NaN.
    """
    if mode not in ("price", "percentage"):
        raise ValueError(f"mode must be 'price' or 'percentage', got {mode!r}.")

    columns: dict[str, pd.Series] = {}
    for history in histories:
        series = pd.Series(
            [p.close for p in history.history],
            index=[p.date for p in history.history],
            dtype="float64",
        )
        if mode == "percentage":
            series = ((series - series.iloc[0]) / series.iloc[0] * 100).round(2)
        columns[history.code] = series

    if not columns:
        return pd.DataFrame()

    frame = pd.DataFrame(columns).sort_index()
    frame.index.name = "date"
    logger.debug("comparison_frame | %d dates x %d columns", *frame.shape)
    return frame


def merge_sources(
    histories: Iterable[InstrumentHistory], limit: int = 5
) -> list[Source]:
    """Unique citations across histories (first seen wins), at most ``limit``."""
    seen: dict[str, Source] = {}
    for history in histories:
        for source in history.sources:
            if source.uri and source.uri not in seen:
                seen[source.uri] = source
    return list(seen.values())[:limit]
