"""Pytest configuration and shared fixtures."""

from typing import Callable, Optional, Union

import pytest

from etfscope.fetcher import ETFFetcher
from etfscope.models import RawModelResponse, Source


class FakeChannel:
    """
    Stand-in for ``WebSearchChannel``.

    ``responder`` maps a prompt to a ``RawModelResponse`` or an exception to
    raise. Every call is recorded in ``calls``.
    """

    def __init__(self, responder: Callable[[str], Union[RawModelResponse, Exception]]):
        self._responder = responder
        self.calls: list[tuple[str, Optional[str]]] = []

    def query(self, prompt: str, search_terms: Optional[str] = None) -> RawModelResponse:
        self.calls.append((prompt, search_terms))
        result = self._responder(prompt)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def make_channel():
    def _make(responder):
        if isinstance(responder, (RawModelResponse, Exception)):
            fixed = responder
            return FakeChannel(lambda prompt: fixed)
        return FakeChannel(responder)

    return _make


@pytest.fixture
def history_text() -> str:
    """A typical answer: prose, a fenced json block, then more prose."""
    return (
        "I found the following data for 沪深300ETF.\n\n"
        "```json\n"
        "{\n"
        '  "code": "510300",\n'
        '  "name": "300ETF",\n'
        '  "history": [\n'
        '    {"date": "2024-01-03", "close": "¥3.512"},\n'
        '    ["2024/1/2", 3.498],\n'
        '    {"time": "Jan 4 2024", "price": 3.476},\n'
        '    {"date": "2024-01-05", "close": 0}\n'
        "  ]\n"
        "}\n"
        "```\n\n"
        "Prices are from {sina finance}."
    )


@pytest.fixture
def citations() -> list[Source]:
    return [
        Source(title="Sina Finance", uri="https://finance.sina.com.cn/fund/510300"),
        Source(title="Source", uri=""),
        Source(title="East Money", uri="https://fund.eastmoney.com/510300.html"),
    ]


@pytest.fixture
def history_response(history_text, citations) -> RawModelResponse:
    return RawModelResponse(text=history_text, citations=citations)


@pytest.fixture
def profile_text() -> str:
    return (
        "```json\n"
        "{\n"
        '  "description": "Tracks the CSI 300 index.",\n'
        '  "manager": "Liu Shuo",\n'
        '  "fundSize": 1234.5,\n'
        '  "launchDate": "2012-05-04",\n'
        '  "company": "Huatai-PineBridge",\n'
        '  "trackingIndex": "CSI 300"\n'
        "}\n"
        "```"
    )


@pytest.fixture
def fetcher_for(make_channel):
    def _fetcher(responder) -> ETFFetcher:
        return ETFFetcher(make_channel(responder))

    return _fetcher
