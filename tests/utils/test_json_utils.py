"""Tests for JSON extraction from LLM output and the exception types it raises."""

import pytest

from core.constants.errors import ErrorCode
from core.constants.exceptions import LLMResponseParseException
from utils.json_utils import extract_json_array, extract_json_object


def test_extract_object_from_fenced_block():
    response = 'Result:\n```json\n{"items": ["a", "b"], "summary": "ok"}\n```\nDone.'

    assert extract_json_object(response) == {"items": ["a", "b"], "summary": "ok"}


def test_extract_array_with_prefix():
    assert extract_json_array('Queries: ["q1", "q2"]') == ["q1", "q2"]


@pytest.mark.parametrize("response", ["", "plain text", "{broken", "} reversed {"])
def test_extract_object_failures(response):
    with pytest.raises(LLMResponseParseException) as exc_info:
        extract_json_object(response)

    assert exc_info.value.code == ErrorCode.LLM_RESPONSE_PARSE_ERROR.value


def test_extract_object_requires_object():
    with pytest.raises(LLMResponseParseException):
        extract_json_object('["a", "b"]')


def test_parse_exception_truncates_raw_response():
    with pytest.raises(LLMResponseParseException) as exc_info:
        extract_json_object("{" + "x" * 500)

    error = exc_info.value
    assert len(error.details["raw_response"]) == 200
    assert error.to_dict()["exception_type"] == "LLMResponseParseException"
    assert str(error).startswith(f"[{ErrorCode.LLM_RESPONSE_PARSE_ERROR.value}]")
