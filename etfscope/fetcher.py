"""
etfscope.fetcher - end-to-end ETF history and profile retrieval.

Public API
----------
- ``ETFFetcher.fetch_history(query, start=None, end=None)`` → ``InstrumentHistory``
- ``ETFFetcher.lookup_profile(code, name)``                → ``ProfileLookup``
- ``ETFFetcher.fetch_profile(code, name)``                 → ``InstrumentProfile``

History pipeline:
1. Resolve the date range (default: the 60 business days before today).
2. Render the history prompt and query the model channel.
3. Extract the embedded JSON payload.
4. Normalize ``payload["history"]`` into sorted, unique price points.
5. Read ``code``/``name`` with fallbacks, attach citations that have a URI.

Invariants
----------
- ``fetch_history`` raises ``ValueError`` for caller mistakes (empty query,
  inverted range) and ``DataUnavailable`` for everything else. Internal
  error kinds are chained as ``__cause__`` but never raised directly.
- ``lookup_profile`` / ``fetch_profile`` never raise; failures produce the
  fallback profile.
- No retries: one channel call per fetch.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

import pandas as pd
from pydantic import ValidationError

from etfscope.channel import ModelChannel
from etfscope.cleaning import is_canonical_date, normalize_date
from etfscope.errors import (
    DataUnavailable,
    NoResponseText,
    ProfileUnavailable,
)
from etfscope.extraction import extract_payload
from etfscope.history import normalize_history
from etfscope.models import (
    InstrumentHistory,
    InstrumentProfile,
    ProfileLookup,
    RawModelResponse,
    Source,
)
from etfscope.prompts import build_history_prompt, build_profile_prompt

logger = logging.getLogger(__name__)

DEFAULT_TRADING_DAYS = 60
UNKNOWN_CODE = "Unknown"


def default_date_range(
    today: Optional[date] = None,
    trading_days: int = DEFAULT_TRADING_DAYS,
) -> tuple[str, str]:
    """
    Return ``(start, end)`` covering ``trading_days`` business days up to ``today``.

    Business days ignore exchange holidays, so the window holds roughly
    60–65 actual sessions around Chinese holidays.
    """
    end = pd.Timestamp(today or date.today())
    start = end - pd.offsets.BDay(trading_days)
    return start.strftime("%Y-%m-%d"), end.strftime("%Y-%m-%d")


def collect_sources(citations: list[Source]) -> list[Source]:
    """Keep only citations with a non-empty URI, in their original order."""
    return [c for c in citations if c.uri]


class ETFFetcher:
    """
    Fetch ETF price history and profile data through a web-grounded model.

    Usage::

        from etfscope import ETFFetcher, WebSearchChannel

        fetcher = ETFFetcher(WebSearchChannel(), debug=True)
        history = fetcher.fetch_history("510300")
        print(history.model_dump_json(indent=2))

    Args:
        channel: Object with a ``query(prompt, search_terms=None)`` method
            returning ``RawModelResponse`` (normally a ``WebSearchChannel``).
        trading_days: Size of the default date window.
        debug: When ``True``, sets this module's logger to ``DEBUG`` level and
            attaches a ``StreamHandler`` if none is already configured.
    """

    def __init__(
        self,
        channel: ModelChannel,
        trading_days: int = DEFAULT_TRADING_DAYS,
        debug: bool = False,
    ) -> None:
        if debug:
            logger.setLevel(logging.DEBUG)
            if not logger.handlers:
                logger.addHandler(logging.StreamHandler())

        self._channel = channel
        self.trading_days = trading_days

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def fetch_history(
        self,
        query: str,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> InstrumentHistory:
        """
        Run the history pipeline for one ETF.

        Args:
            query: ETF code or name. Whitespace is stripped.
            start: First date (any parseable form); defaults to the start of
                the default window.
            end: Last date; defaults to today.

        Returns:
            A validated ``InstrumentHistory`` with at least one price point.

        Raises:
            ValueError: If ``query`` is empty, a date is unparseable, or
                ``start`` is after ``end``.
            DataUnavailable: If the upstream call fails or no usable history
                can be extracted.
        """
        query = query.strip()
        if not query:
            raise ValueError("query must be a non-empty string.")
        start, end = self.resolve_range(start, end)

        logger.debug("fetch_history | query=%r range=%s..%s", query, start, end)

        try:
            response = self._channel.query(
                build_history_prompt(query, start, end),
                search_terms=f"{query} ETF 历史净值 {start} {end}",
            )
            return self._build_history(query, response)
        except Exception as exc:
            logger.warning(
                "fetch_history | query=%r failed (%s): %s", query, type(exc).__name__, exc
            )
            raise DataUnavailable(
                f"Unable to retrieve price history for {query!r}. Please try again.",
                query=query,
            ) from exc

    def resolve_range(
        self, start: Optional[str], end: Optional[str]
    ) -> tuple[str, str]:
        """
        Return a canonical ``(start, end)``, filling gaps from the default window.

        Raises:
            ValueError: If a date is unparseable or ``start`` is after ``end``.
        """
        default_start, default_end = default_date_range(trading_days=self.trading_days)
        start = normalize_date(start) if start else default_start
        end = normalize_date(end) if end else default_end
        for label, value in (("start", start), ("end", end)):
            if not is_canonical_date(value):
                raise ValueError(f"{label} is not a recognisable date: {value!r}")
        if start > end:
            raise ValueError(f"start ({start}) is after end ({end}).")
        return start, end

    def _build_history(self, query: str, response: RawModelResponse) -> InstrumentHistory:
        if not response.text or not response.text.strip():
            raise NoResponseText(f"Empty response for {query!r}.")

        payload = extract_payload(response.text)
        history = normalize_history(payload.get("history"))

        code = _text_field(payload, "code") or UNKNOWN_CODE
        name = _text_field(payload, "name") or query
        sources = collect_sources(response.citations)

        logger.debug(
            "fetch_history | code=%s name=%r points=%d sources=%d",
            code,
            name,
            len(history),
            len(sources),
        )
        return InstrumentHistory(code=code, name=name, history=history, sources=sources)

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def lookup_profile(self, code: str, name: str) -> ProfileLookup:
        """
        Fetch descriptive metadata for one ETF.

        Returns:
            ``ProfileLookup`` holding the parsed profile, or the fallback
            profile with ``degraded=True`` and the failure reason. Never raises.
        """
        try:
            profile = self._fetch_profile_strict(code, name)
        except Exception as exc:
            logger.warning(
                "lookup_profile | code=%s degraded (%s): %s", code, type(exc).__name__, exc
            )
            return ProfileLookup(
                profile=InstrumentProfile.fallback(),
                degraded=True,
                reason=str(exc) or type(exc).__name__,
            )
        return ProfileLookup(profile=profile)

    def fetch_profile(self, code: str, name: str) -> InstrumentProfile:
        """Return the profile for one ETF, or the fallback profile on any failure."""
        return self.lookup_profile(code, name).profile

    def _fetch_profile_strict(self, code: str, name: str) -> InstrumentProfile:
        logger.debug("lookup_profile | code=%s name=%r", code, name)
        response = self._channel.query(
            build_profile_prompt(code, name),
            search_terms=f"{code} {name} ETF 基金经理 跟踪指数 基金规模",
        )
        if not response.text or not response.text.strip():
            raise ProfileUnavailable(f"Empty profile response for {code}.")
        payload = extract_payload(response.text)
        try:
            return InstrumentProfile.model_validate(payload)
        except ValidationError as exc:
            raise ProfileUnavailable(f"Malformed profile for {code}: {exc}") from exc


def _text_field(payload: dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# ---------------------------------------------------------------------------
# Smoke-test / quick verification
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    from dotenv import load_dotenv

    from etfscope.channel import WebSearchChannel

    load_dotenv()

    _fetcher = ETFFetcher(WebSearchChannel(debug=True), debug=True)

    _history = _fetcher.fetch_history("510300")
    assert _history.history
    assert all(a.date < b.date for a, b in zip(_history.history, _history.history[1:]))

    print("=== InstrumentHistory ===")
    print(_history.model_dump_json(indent=2))

    _profile = _fetcher.lookup_profile(_history.code, _history.name)
    print("\n=== ProfileLookup ===")
    print(_profile.model_dump_json(indent=2, by_alias=True))
