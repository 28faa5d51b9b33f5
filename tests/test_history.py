"""Tests for history normalization."""

import pytest

from etfscope.errors import EmptyHistory
from etfscope.history import normalize_history
from etfscope.models import PricePoint


def _pairs(points):
    return [(p.date, p.close) for p in points]


class TestNormalizeHistory:

    def test_mixed_shapes_dedup_and_sort(self):
        raw = [
            ["2024-01-02", 1.10],
            {"date": "2024-01-01", "close": "1.05"},
            ["2024-01-02", 1.15],
        ]
        assert normalize_history(raw) == [
            PricePoint(date="2024-01-01", close=1.05),
            PricePoint(date="2024-01-02", close=1.15),
        ]

    def test_field_aliases(self):
        raw = [
            {"time": "2024/3/4", "price": "¥2.10"},
            {"day": "Mar 5 2024", "value": 2.2},
        ]
        assert _pairs(normalize_history(raw)) == [("2024-03-04", 2.1), ("2024-03-05", 2.2)]

    def test_alias_order_prefers_date_and_close(self):
        raw = [{"date": "2024-03-04", "time": "garbage", "close": 1.0, "price": 9.0}]
        assert _pairs(normalize_history(raw)) == [("2024-03-04", 1.0)]

    def test_positional_rows_may_carry_extra_fields(self):
        raw = [["2024-03-04", "3.3", 123456]]
        assert _pairs(normalize_history(raw)) == [("2024-03-04", 3.3)]

    @pytest.mark.parametrize(
        "bad_row",
        [
            {"date": "2024-01-03", "close": 0},
            {"date": "2024-01-03", "close": -5},
            {"date": "2024-13-40", "close": 1.0},
            {"date": "not-a-date", "close": 1.0},
            {"date": "2024-01-03", "close": "n/a"},
            {"date": "2024-01-03"},
            ["2024-01-03"],
            "2024-01-03 1.0",
            None,
            42,
        ],
    )
    def test_invalid_rows_are_dropped(self, bad_row):
        raw = [["2024-01-02", 1.0], bad_row]
        assert _pairs(normalize_history(raw)) == [("2024-01-02", 1.0)]

    @pytest.mark.parametrize(
        "bad_row",
        [{"date": "2024-01-03", "close": 0}, {"date": "2024-01-03", "close": -5}, ["2024-13-40", 1.0]],
    )
    def test_only_invalid_row_is_empty_history(self, bad_row):
        with pytest.raises(EmptyHistory) as exc_info:
            normalize_history([bad_row])
        assert exc_info.value.raw_count == 1

    @pytest.mark.parametrize("raw", [None, {}, "history", 3, []])
    def test_wrong_type_is_empty(self, raw):
        with pytest.raises(EmptyHistory):
            normalize_history(raw)

    def test_result_is_strictly_increasing(self):
        raw = [[f"2024-02-{d:02d}", d] for d in (9, 1, 5, 5, 3, 9)]
        dates = [p.date for p in normalize_history(raw)]
        assert dates == sorted(set(dates))
        assert dates == ["2024-02-01", "2024-02-03", "2024-02-05", "2024-02-09"]

    def test_relative_date_words_are_dropped(self):
        raw = [["2024-01-02", 1.0], {"date": "today", "close": 1.2}, ["now", 1.3]]
        assert _pairs(normalize_history(raw)) == [("2024-01-02", 1.0)]
