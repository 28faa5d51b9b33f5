"""Tests for comparison helpers."""

import math

import pytest

from etfscope.comparison import comparison_frame, merge_sources, summarize
from etfscope.models import InstrumentHistory, PricePoint, Source


def _history(code, points, sources=()):
    return InstrumentHistory(
        code=code,
        name=f"{code} ETF",
        history=[PricePoint(date=d, close=c) for d, c in points],
        sources=list(sources),
    )


@pytest.fixture
def a():
    return _history(
        "510300",
        [("2024-01-02", 4.0), ("2024-01-03", 5.0), ("2024-01-04", 3.0)],
        [Source(title="Sina", uri="https://sina.example/1")],
    )


@pytest.fixture
def b():
    return _history(
        "159915",
        [("2024-01-03", 2.0), ("2024-01-05", 2.5)],
        [Source(title="Sina again", uri="https://sina.example/1"), Source(title="EM", uri="https://em.example")],
    )


class TestSummarize:

    def test_window_statistics(self, a):
        summary = summarize(a)
        assert summary.first_date == "2024-01-02"
        assert summary.last_date == "2024-01-04"
        assert summary.start_close == 4.0
        assert summary.latest_close == 3.0
        assert summary.change == -1.0
        assert summary.change_pct == pytest.approx(-25.0)
        assert summary.high == 5.0
        assert summary.low == 3.0

    def test_single_point(self):
        summary = summarize(_history("588000", [("2024-01-02", 1.0)]))
        assert summary.change == 0.0
        assert summary.high == summary.low == 1.0


class TestComparisonFrame:

    def test_price_mode_aligns_dates(self, a, b):
        frame = comparison_frame([a, b])
        assert list(frame.index) == ["2024-01-02", "2024-01-03", "2024-01-04", "2024-01-05"]
        assert list(frame.columns) == ["510300", "159915"]
        assert frame.loc["2024-01-03", "510300"] == 5.0
        assert math.isnan(frame.loc["2024-01-02", "159915"])

    def test_percentage_mode(self, a, b):
        frame = comparison_frame([a, b], mode="percentage")
        assert frame.loc["2024-01-02", "510300"] == 0.0
        assert frame.loc["2024-01-03", "510300"] == 25.0
        assert frame.loc["2024-01-05", "159915"] == 25.0

    def test_empty(self):
        assert comparison_frame([]).empty

    def test_bad_mode(self, a):
        with pytest.raises(ValueError):
            comparison_frame([a], mode="log")


class TestMergeSources:

    def test_unique_by_uri_first_wins(self, a, b):
        merged = merge_sources([a, b])
        assert [s.title for s in merged] == ["Sina", "EM"]

    def test_limit(self):
        sources = [Source(title=str(i), uri=f"https://x.example/{i}") for i in range(8)]
        merged = merge_sources([_history("510300", [("2024-01-02", 1.0)], sources)])
        assert len(merged) == 5
