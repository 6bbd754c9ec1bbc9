"""
Unit tests for the AI response parser
"""

import pytest
from app.exceptions import ParseFailure
from app.services.response_parser import extract_json_text, parse_analysis_response


def test_extract_json_fence():
    text = 'Sure!\n```json\n{"errors": []}\n```\nLet me know.'
    assert extract_json_text(text) == '{"errors": []}'


def test_extract_plain_fence():
    text = '```\n{"confidence_score": 0.9}\n```'
    assert extract_json_text(text) == '{"confidence_score": 0.9}'


def test_json_fence_preferred_over_earlier_plain_fence():
    text = '```\nnot json\n```\n```json\n{"a": 1}\n```'
    assert extract_json_text(text) == '{"a": 1}'


def test_unfenced_text_used_whole():
    assert extract_json_text('  {"a": 1}  ') == '{"a": 1}'


def test_parse_fenced_response(sample_response_text):
    parsed = parse_analysis_response(sample_response_text)

    assert parsed.metadata["provider_name"]["value"] == "Memorial Regional Medical Center"
    assert len(parsed.errors) == 2
    assert parsed.total_potential_savings == 100.00
    assert parsed.confidence_score == 0.85
    assert parsed.extraction_warnings == ["Patient name is hard to read"]


def test_parse_keeps_values_untyped():
    """Parser must not coerce: validation decides what the values mean."""
    parsed = parse_analysis_response('{"confidence_score": "high", "total_potential_savings": "$12"}')

    assert parsed.confidence_score == "high"
    assert parsed.total_potential_savings == "$12"


def test_parse_ignores_wrongly_typed_containers():
    parsed = parse_analysis_response('{"metadata": [], "errors": {"a": 1}, "extraction_warnings": "x"}')

    assert parsed.metadata is None
    assert parsed.errors == []
    assert parsed.extraction_warnings == []


@pytest.mark.parametrize("text", [
    "I could not read this bill.",
    "```json\n{\"errors\": [\n```",
    "[1, 2, 3]",
    "",
])
def test_parse_failure(text):
    with pytest.raises(ParseFailure) as exc_info:
        parse_analysis_response(text)

    assert exc_info.value.message == "Failed to parse AI analysis"
