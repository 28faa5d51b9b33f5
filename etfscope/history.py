"""
Turn a shape-ambiguous ``history`` payload into validated price points.

Rows arrive either positional (``["2024-01-02", 1.10]``) or keyed
(``{"date": ..., "close": ...}`` under a few aliases). Both shapes are resolved
here, once, into ``(date, close)`` token pairs; nothing past this module sees
the raw rows.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from typing import Any, Optional

from etfscope.cleaning import clean_number, is_canonical_date, normalize_date
from etfscope.errors import EmptyHistory
from etfscope.models import PricePoint

logger = logging.getLogger(__name__)

DATE_ALIASES: tuple[str, ...] = ("date", "time", "day")
CLOSE_ALIASES: tuple[str, ...] = ("close", "price", "value")


def _first_present(row: Mapping[str, Any], aliases: tuple[str, ...]) -> Any:
    for key in aliases:
        if key in row and row[key] is not None:
            return row[key]
    return None


def _resolve_row(row: Any) -> Optional[tuple[Any, Any]]:
    """Return the raw ``(date, close)`` tokens of a row, or None if unrecognised."""
    if isinstance(row, Mapping):
        return _first_present(row, DATE_ALIASES), _first_present(row, CLOSE_ALIASES)
    if isinstance(row, Sequence) and not isinstance(row, (str, bytes)) and len(row) >= 2:
        return row[0], row[1]
    return None


def normalize_history(raw: Any) -> list[PricePoint]:
    """
    Clean, deduplicate and sort a raw history payload.

    Steps:
        1. Resolve each row's shape into raw date/close tokens.
        2. Run the tokens through ``normalize_date`` and ``clean_number``.
        3. Drop rows without a canonical date or a finite close > 0.
        4. Keep the last row seen for each date.
        5. Sort ascending by date.

    Args:
        raw: The ``history`` value of the parsed payload. Anything that is not
            a list/tuple is treated as empty.

    Returns:
        Non-empty list of ``PricePoint`` sorted by date.

    Raises:
        EmptyHistory: If no row survives validation.
    """
    rows = raw if isinstance(raw, (list, tuple)) else []
    by_date: dict[str, float] = {}
    dropped = 0

    for row in rows:
        tokens = _resolve_row(row)
        if tokens is None:
            dropped += 1
            continue
        day = normalize_date(tokens[0])
        close = clean_number(tokens[1])
        if not is_canonical_date(day) or not math.isfinite(close) or close <= 0:
            logger.debug("normalize_history | dropped row %r", row)
            dropped += 1
            continue
        by_date[day] = close

    if dropped:
        logger.warning(
            "normalize_history | dropped %d of %d rows", dropped, len(rows)
        )

    if not by_date:
        raise EmptyHistory(
            f"No valid history rows among {len(rows)} received.", raw_count=len(rows)
        )

    return [PricePoint(date=day, close=by_date[day]) for day in sorted(by_date)]
