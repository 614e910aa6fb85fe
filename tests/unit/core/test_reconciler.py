"""
Tests for oracle response cleaning and answer-evaluation reconciliation.
"""

import pytest

from skillsync.core.reconciler import (
    FALLBACK_FEEDBACK,
    FALLBACK_SUGGESTIONS,
    clean_ai_response,
    extract_json_object,
    fallback_evaluation,
    reconcile_evaluation,
)


def test_clean_strips_markdown():
    text = "## Answer\n\n**Assets** = *Liabilities* + `Equity`\n\n\n\nDone."
    assert clean_ai_response(text) == "Answer\n\nAssets = Liabilities + Equity\n\nDone."


def test_clean_removes_fenced_code():
    text = "Before\n```python\nprint('x')\n```\nAfter"
    assert clean_ai_response(text) == "Before\n\nAfter"


def test_clean_empty_input():
    assert clean_ai_response("") == ""
    assert clean_ai_response(None) == ""


@pytest.mark.parametrize("text", [
    "**bold** and *italic*",
    "****nested****",
    "# H1\n## H2\n### H3",
    "``double``",
    "* * *",
    "a\n  \n \n\nb",
    "```unterminated fence",
])
def test_clean_is_idempotent(text):
    once = clean_ai_response(text)
    assert clean_ai_response(once) == once


def test_extract_json_embedded_in_prose():
    text = 'Here you go:\n{"isCorrect": true, "confidence": "high"}\nHope that helps!'
    assert extract_json_object(text) == {"isCorrect": True, "confidence": "high"}


@pytest.mark.parametrize("text", [None, "", "no braces", "{not json}", "[1, 2]", "{'single': 'quotes'}"])
def test_extract_json_returns_none_when_unusable(text):
    assert extract_json_object(text) is None


def test_reconcile_well_formed_json():
    text = (
        '{"isCorrect": true, "confidence": "High", '
        '"feedback": "**Correct**, well done.", "suggestions": ""}'
    )
    evaluation = reconcile_evaluation(text)

    assert evaluation.is_correct is True
    assert evaluation.confidence == "high"
    assert evaluation.feedback == "Correct, well done."
    assert evaluation.suggestions == ""


def test_reconcile_serializes_with_wire_names():
    evaluation = reconcile_evaluation('{"isCorrect": false, "confidence": "low", "feedback": "f", "suggestions": "s"}')
    assert evaluation.model_dump(by_alias=True) == {
        "isCorrect": False,
        "confidence": "low",
        "feedback": "f",
        "suggestions": "s",
    }


def test_reconcile_coerces_loose_values():
    evaluation = reconcile_evaluation('{"isCorrect": "yes", "confidence": "certain", "feedback": 42}')

    assert evaluation.is_correct is True
    assert evaluation.confidence == "low"
    assert evaluation.feedback == "42"
    assert evaluation.suggestions == ""


@pytest.mark.parametrize("text", [
    "",
    "The answer is correct.",
    "{broken json",
    '{"confidence": "high", "feedback": "missing the verdict"}',
    '["isCorrect", true]',
])
def test_reconcile_falls_back(text):
    assert reconcile_evaluation(text) == fallback_evaluation()


def test_fallback_evaluation_fields():
    evaluation = fallback_evaluation()
    assert evaluation.is_correct is False
    assert evaluation.confidence == "low"
    assert evaluation.feedback == FALLBACK_FEEDBACK
    assert evaluation.suggestions == FALLBACK_SUGGESTIONS
