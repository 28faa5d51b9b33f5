"""
Leaf coercers for model-reported values.

Neither function raises on bad input: ``clean_number`` returns NaN and
``normalize_date`` returns its input unchanged, so one malformed row can never
abort a whole batch. Callers check the result (``math.isfinite`` /
``is_canonical_date``) before use.
"""
from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime, timezone
from numbers import Real
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)

# Currency glyphs/codes, thousands separators (ASCII and full-width) and whitespace.
_NUMBER_NOISE = re.compile(r"[\s,，¥￥$€£元]|RMB|CNY|USD|HKD", re.IGNORECASE)

_CANONICAL_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

# 2024年1月5日 -> 2024-1-5
_CJK_DATE = re.compile(r"^\s*([0-9]{4})\s*年\s*([0-9]{1,2})\s*月\s*([0-9]{1,2})\s*日?\s*$")

# A calendar date names its year; relative words ("today", "now") are not dates.
_YEAR = re.compile(r"[0-9]{4}")


def clean_number(value: Any) -> float:
    """
    Coerce a reported price into a float.

    Numbers pass through. Strings lose currency symbols, grouping commas and
    whitespace before parsing. Anything else yields ``nan``.
    """
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, Real):
        return float(value)
    if not isinstance(value, str):
        return math.nan
    stripped = _NUMBER_NOISE.sub("", value)
    try:
        return float(stripped)
    except ValueError:
        return math.nan


def is_canonical_date(value: Any) -> bool:
    """True if ``value`` is a ``YYYY-MM-DD`` string naming a real calendar day."""
    if not isinstance(value, str) or not _CANONICAL_DATE.fullmatch(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def normalize_date(value: Any) -> Any:
    """
    Return ``value`` as a canonical ``YYYY-MM-DD`` string (UTC, no time of day).

    Unparseable input is returned unchanged.
    """
    if is_canonical_date(value):
        return value
    if isinstance(value, (date, datetime)):
        return _to_utc_date(pd.Timestamp(value))
    if not isinstance(value, str) or not value.strip():
        return value

    text = value.strip()
    cjk = _CJK_DATE.match(text)
    if cjk:
        text = "-".join(cjk.groups())
    if not _YEAR.search(text):
        return value

    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError) as exc:
        logger.debug("normalize_date | %r not parseable: %s", value, exc)
        return value
    if parsed is None or pd.isna(parsed):
        return value
    return _to_utc_date(parsed)


def _to_utc_date(stamp: pd.Timestamp) -> str:
    if stamp.tzinfo is not None:
        stamp = stamp.tz_convert(timezone.utc)
    return stamp.strftime("%Y-%m-%d")
