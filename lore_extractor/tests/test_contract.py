"""Tests for lore_extractor.core.contract module."""

import json

import pytest

from lore_extractor.core.contract import parse_oracle_json, strip_fences
from lore_extractor.core.errors import SNIPPET_LIMIT, ErrorCode, PipelineError


# =============================================================================
# strip_fences tests
# =============================================================================


class TestStripFences:
    """Tests for fence removal."""

    def test_plain_text_unchanged(self):
        assert strip_fences('{"a": 1}') == '{"a": 1}'

    def test_json_fence(self):
        assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_fences('```\n[1, 2]\n```') == "[1, 2]"

    def test_surrounding_whitespace(self):
        assert strip_fences('\n\n  ```json\n{"a": 1}\n```  \n') == '{"a": 1}'

    def test_fence_without_newlines(self):
        assert strip_fences('```json{"a": 1}```') == '{"a": 1}'


# =============================================================================
# parse_oracle_json tests
# =============================================================================


class TestParseOracleJson:
    """Parsing is all-or-nothing."""

    def test_fenced_payload_round_trips(self):
        value = {
            "characters": [
                {"name": "Jon", "aliases": ["Lord Snow"], "role": None},
                {"name": "Arya", "abilities": ["needlework", "stealth"]},
            ],
            "count": 2,
        }
        fenced = f"```json\n{json.dumps(value, indent=2)}\n```"
        assert parse_oracle_json(fenced) == value

    def test_list_payload(self):
        assert parse_oracle_json("[1, 2, 3]") == [1, 2, 3]

    def test_invalid_json_raises_parse_error(self):
        with pytest.raises(PipelineError) as exc_info:
            parse_oracle_json('{"characters": [', phase="character")
        error = exc_info.value
        assert error.code == ErrorCode.JSON_PARSE_ERROR
        assert error.phase == "character"
        assert not error.recoverable

    def test_partial_payload_is_not_repaired(self):
        truncated = '{"characters": [{"name": "Jon"}, {"name": "Ar'
        with pytest.raises(PipelineError):
            parse_oracle_json(truncated)

    def test_snippet_is_truncated(self):
        garbage = "not json " * 200
        with pytest.raises(PipelineError) as exc_info:
            parse_oracle_json(garbage)
        snippet = exc_info.value.details["snippet"]
        assert 0 < len(snippet) <= SNIPPET_LIMIT

    def test_empty_text(self):
        with pytest.raises(PipelineError) as exc_info:
            parse_oracle_json("")
        assert exc_info.value.code == ErrorCode.JSON_PARSE_ERROR

    def test_prose_around_payload_is_rejected(self):
        with pytest.raises(PipelineError) as exc_info:
            parse_oracle_json('Here are the characters:\n{"characters": []}')
        assert exc_info.value.code == ErrorCode.JSON_PARSE_ERROR
