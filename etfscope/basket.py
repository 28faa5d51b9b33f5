"""
etfscope.basket - a user's working set of ETFs keyed by code.

Invariants
----------
- Each held code appears once.
- ``refresh`` never drops or degrades an entry: an instrument whose re-fetch
  fails keeps its previous history.
- Profiles are cached per code once fetched successfully; degraded profiles
  are returned but not cached.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional

from etfscope.errors import DuplicateInstrument
from etfscope.fetcher import ETFFetcher
from etfscope.models import InstrumentHistory, InstrumentProfile

logger = logging.getLogger(__name__)


class ETFBasket:
    """
    Holds fetched histories and profiles for a set of ETFs.

    Args:
        fetcher: The ``ETFFetcher`` used for every network call.
        start: Initial start of the shared date range (default window if None).
            Any parseable date; stored in canonical form.
        end: Initial end of the shared date range (today if None).
        max_workers: Thread pool size for ``refresh`` (default 8).
    """

    def __init__(
        self,
        fetcher: ETFFetcher,
        start: Optional[str] = None,
        end: Optional[str] = None,
        max_workers: int = 8,
    ) -> None:
        self._fetcher = fetcher
        self.max_workers = max_workers
        self.start, self.end = fetcher.resolve_range(start, end)
        self._entries: dict[str, InstrumentHistory] = {}
        self._profiles: dict[str, InstrumentProfile] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, code: object) -> bool:
        return code in self._entries

    @property
    def codes(self) -> list[str]:
        """Held codes in insertion order."""
        return list(self._entries)

    @property
    def histories(self) -> list[InstrumentHistory]:
        return list(self._entries.values())

    def get(self, code: str) -> Optional[InstrumentHistory]:
        return self._entries.get(code)

    def add(self, query: str) -> InstrumentHistory:
        """
        Fetch ``query`` over the basket's date range and add it.

        Raises:
            DuplicateInstrument: If ``query`` matches a held code or name, or
                the fetched code is already held.
            ValueError: If ``query`` is empty.
            DataUnavailable: If the fetch fails.
        """
        query = query.strip()
        if not query:
            raise ValueError("query must be a non-empty string.")
        for held in self._entries.values():
            if held.code == query or query in held.name:
                raise DuplicateInstrument(
                    f"{held.name} ({held.code}) is already in the basket.", code=held.code
                )

        history = self._fetcher.fetch_history(query, self.start, self.end)
        if history.code in self._entries:
            raise DuplicateInstrument(
                f"{history.name} ({history.code}) is already in the basket.",
                code=history.code,
            )

        self._entries[history.code] = history
        logger.debug("add | %s (%s) points=%d", history.code, history.name, len(history.history))
        return history

    def remove(self, code: str) -> bool:
        """Drop ``code`` and its cached profile. Returns False if it was not held."""
        self._profiles.pop(code, None)
        return self._entries.pop(code, None) is not None

    def refresh(
        self,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> dict[str, Exception]:
        """
        Re-fetch every held ETF by code, concurrently.

        ``start``/``end`` replace the basket's date range when given. Each
        fetch is independent: a failure keeps that ETF's previous history and
        does not affect the others.

        Returns:
            Mapping of code to the error for every fetch that failed.

        Raises:
            ValueError: If the new range is unparseable or inverted. The
                basket's range is left unchanged.
        """
        self.start, self.end = self._fetcher.resolve_range(
            start or self.start, end or self.end
        )
        if not self._entries:
            return {}

        failures: dict[str, Exception] = {}
        n_workers = min(len(self._entries), self.max_workers)

        with ThreadPoolExecutor(max_workers=n_workers) as executor:
            future_to_code = {
                executor.submit(self._fetcher.fetch_history, code, self.start, self.end): code
                for code in self._entries
            }
            for future in as_completed(future_to_code):
                code = future_to_code[future]
                try:
                    fresh = future.result()
                except Exception as exc:
                    logger.warning("refresh | %s failed, keeping previous data: %s", code, exc)
                    failures[code] = exc
                    continue
                previous = self._entries[code]
                # Keyed by the held code; only history, sources and name are updated.
                self._entries[code] = previous.model_copy(
                    update={
                        "name": fresh.name,
                        "history": fresh.history,
                        "sources": fresh.sources,
                    }
                )

        logger.debug(
            "refresh | %d refreshed, %d failed",
            len(self._entries) - len(failures),
            len(failures),
        )
        return failures

    def profile(self, code: str) -> InstrumentProfile:
        """
        Return the profile for a held ETF, fetching it on first use.

        Raises:
            KeyError: If ``code`` is not held.
        """
        if code not in self._entries:
            raise KeyError(code)
        cached = self._profiles.get(code)
        if cached is not None:
            return cached

        lookup = self._fetcher.lookup_profile(code, self._entries[code].name)
        if not lookup.degraded:
            self._profiles[code] = lookup.profile
        return lookup.profile
