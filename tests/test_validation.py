"""Tests for kdo_dado.validation — best-effort decoding and optimistic fallback."""

import json

import pytest

from kdo_dado.models import ValidationResult
from kdo_dado.validation import OPTIMISTIC_DEFAULT, decode_validation, parse_validation


# ── decode_validation ────────────────────────────────────────


def test_decode_plain_object():
    decoded = decode_validation('{"isValid": false, "issues": ["boss too strong"]}')
    assert decoded.ok
    assert decoded.result == ValidationResult(is_valid=False, issues=["boss too strong"])


def test_decode_object_wrapped_in_prose():
    text = 'Here is my verdict:\n{"isValid": true, "issues": []}\nHope that helps!'
    decoded = decode_validation(text)
    assert decoded.ok
    assert decoded.result == ValidationResult(is_valid=True, issues=[])


def test_decode_object_in_markdown_fence():
    text = '```json\n{\n  "isValid": false,\n  "issues": ["dead end in act 2", "no heal items"]\n}\n```'
    decoded = decode_validation(text)
    assert decoded.ok
    assert decoded.result.issues == ["dead end in act 2", "no heal items"]


def test_decode_nested_braces_use_outermost_object():
    text = '{"isValid": false, "issues": ["stats {hp} undefined"], "meta": {"tool": "validate_balance"}}'
    decoded = decode_validation(text)
    assert decoded.ok
    assert decoded.result.issues == ["stats {hp} undefined"]


def test_decode_accepts_snake_case_key():
    decoded = decode_validation('{"is_valid": false}')
    assert decoded.ok
    assert decoded.result == ValidationResult(is_valid=False, issues=[])


def test_decode_missing_issues_defaults_to_empty():
    decoded = decode_validation('{"isValid": false}')
    assert decoded.ok
    assert decoded.result.issues == []


def test_decode_no_braces():
    decoded = decode_validation("Looks great, ship it.")
    assert not decoded.ok
    assert decoded.result is None
    assert "no JSON object" in decoded.error


def test_decode_greedy_match_spanning_two_objects_fails():
    # First "{" to last "}" covers both objects, which is not valid JSON
    decoded = decode_validation('{"isValid": true} and also {"isValid": false}')
    assert not decoded.ok
    assert "invalid JSON" in decoded.error


def test_decode_missing_is_valid_counts_as_failed_review():
    decoded = decode_validation('{"issues": ["boss unbeatable", "dead end in act 2"]}')
    assert decoded.ok
    assert decoded.result == ValidationResult(is_valid=False, issues=["boss unbeatable", "dead end in act 2"])


def test_decode_wrong_field_types():
    decoded = decode_validation('{"isValid": true, "issues": [1, 2]}')
    assert not decoded.ok


def test_decode_never_raises_on_garbage():
    for text in ["", "{", "}{", "{not json}", "{{}}", "null"]:
        assert decode_validation(text).ok is False


def test_decode_idempotent_after_reserialising():
    text = 'verdict: {"isValid": false, "issues": ["too easy", "typo in intro"]} end'
    first = decode_validation(text).result
    reserialised = json.dumps(first.model_dump(by_alias=True))
    assert decode_validation(reserialised).result == first


# ── parse_validation ─────────────────────────────────────────


def test_parse_returns_decoded_result():
    result = parse_validation('{"isValid": false, "issues": ["a", "b"]}')
    assert result == ValidationResult(is_valid=False, issues=["a", "b"])


@pytest.mark.parametrize("text", [
    "",
    "no structured data here",
    "{broken json",
    '{"isValid": maybe}',
])
def test_parse_falls_back_to_optimistic_default(text):
    result = parse_validation(text)
    assert result == ValidationResult(is_valid=True, issues=[])
    assert result == OPTIMISTIC_DEFAULT


def test_parse_fallback_logs_warning(caplog):
    with caplog.at_level("WARNING", logger="kdo_dado.validation"):
        parse_validation("nothing to see")
    assert "assuming valid" in caplog.text


def test_parse_keeps_issues_when_verdict_missing(caplog):
    with caplog.at_level("WARNING", logger="kdo_dado.validation"):
        result = parse_validation('{"issues": ["boss unbeatable"]}')
    assert result == ValidationResult(is_valid=False, issues=["boss unbeatable"])
    assert "assuming valid" not in caplog.text
