"""
Error taxonomy for ETF history and profile retrieval.

Internal kinds (``NoResponseText``, ``NoPayloadFound``, ``EmptyHistory``,
``ProfileUnavailable``) describe *why* an extraction failed and are meant for
logging only. Callers of the fetch pipelines only ever see ``DataUnavailable``
(history) or a degraded ``ProfileLookup`` (profile).
"""
from __future__ import annotations

from typing import Optional


class ETFScopeError(Exception):
    """Base class for all etfscope errors."""


class ExtractionError(ETFScopeError):
    """Base class for failures while turning model text into data."""


class NoResponseText(ExtractionError):
    """The model returned an empty body."""


class NoPayloadFound(ExtractionError):
    """No parseable JSON object could be located in the response text."""


class EmptyHistory(ExtractionError):
    """The payload parsed, but no history row survived validation."""

    def __init__(self, message: str, raw_count: int = 0):
        super().__init__(message)
        self.raw_count = raw_count


class ProfileUnavailable(ExtractionError):
    """Profile enrichment failed. Never escapes the profile pipeline."""


class DataUnavailable(ETFScopeError, RuntimeError):
    """User-facing failure of a history fetch."""

    def __init__(self, message: str, query: Optional[str] = None):
        super().__init__(message)
        self.query = query


class DuplicateInstrument(ETFScopeError, ValueError):
    """The instrument is already held by the basket."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code
