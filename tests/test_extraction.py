"""Tests for locating the JSON payload in model text."""

import pytest

from etfscope.errors import NoPayloadFound
from etfscope.extraction import extract_payload


class TestExtractPayload:

    def test_fenced_block_with_trailing_prose(self):
        text = (
            'Here is the data:\n```json {"code":"510300","name":"X","history":[]}```\n'
            "Note: {prices may lag by one day}."
        )
        assert extract_payload(text) == {"code": "510300", "name": "X", "history": []}

    def test_fence_tag_is_case_insensitive(self):
        text = '```JSON\n{"code": "159915"}\n```'
        assert extract_payload(text) == {"code": "159915"}

    def test_first_fence_wins(self):
        text = '```json\n{"n": 1}\n```\nand\n```json\n{"n": 2}\n```'
        assert extract_payload(text) == {"n": 1}

    def test_brace_span_without_fence(self):
        text = 'Sure! {"code": "512880", "history": [["2024-01-02", 1.0]]} Hope this helps.'
        assert extract_payload(text) == {"code": "512880", "history": [["2024-01-02", 1.0]]}

    def test_broken_fence_and_unbalanced_brace_span(self):
        text = '```json\n{"code": "510500",\n```\nCorrected: {"code": "510500"}'
        # The brace span runs from the fence's "{" to the last "}", which is not JSON.
        with pytest.raises(NoPayloadFound):
            extract_payload(text)

    def test_unfenced_object_after_unparseable_fence(self):
        text = '```json\nnot json\n```\n{"code": "588000"}'
        assert extract_payload(text) == {"code": "588000"}

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "I could not find any data for that fund.",
            "} backwards {",
            "```json\n[1, 2, 3]\n```",
            "Prices {in CNY} and {not json}",
        ],
    )
    def test_no_payload(self, text):
        with pytest.raises(NoPayloadFound):
            extract_payload(text)
