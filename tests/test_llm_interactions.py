"""Tests for prompt construction and response validation."""

import json

import pytest

from feedbacksense.exceptions import InvalidResponseError
from feedbacksense.llm.interactions import (
    build_batch_classification_prompt,
    build_single_classification_prompt,
    describe_categories,
    extract_json_payload,
    parse_batch_response,
    parse_single_response,
)
from feedbacksense.models import Category, ClassificationMethod

CATEGORIES = [
    Category(
        id="bug_report",
        name="Bug Report",
        description="Reports of technical issues",
        keywords=("bug", "error", "crash"),
    ),
    Category(id="compliment", name="Compliment", description="Positive feedback"),
    Category(id="general_inquiry", name="General", is_default=True),
]


def _item(index: int, category: str = "bug_report", confidence=0.9) -> dict:
    return {
        "index": index,
        "category": category,
        "confidence": confidence,
        "reasoning": f"item {index}",
        "keyIndicators": ["error"],
    }


def test_describe_categories() -> None:
    """Ensure category lines carry id, description and keywords."""

    lines = describe_categories(CATEGORIES).splitlines()

    assert lines[0] == "- bug_report: Reports of technical issues (Keywords: bug,error,crash)"
    assert lines[1] == "- compliment: Positive feedback"
    assert lines[2] == "- general_inquiry: General"


def test_build_single_prompt() -> None:
    """Ensure the single prompt embeds the text and the response shape."""

    prompt = build_single_classification_prompt(
        feedback_text='It said "error 42"', categories=CATEGORIES
    )

    assert 'Feedback text: "It said \\"error 42\\""' in prompt
    assert "- bug_report: Reports of technical issues" in prompt
    assert '"keyIndicators"' in prompt


def test_build_batch_prompt_enumerates_items() -> None:
    """Ensure batch items are numbered from one with quotes escaped."""

    prompt = build_batch_classification_prompt(
        feedback_texts=["first", 'second "quoted"'], categories=CATEGORIES
    )

    assert 'following 2 feedback items' in prompt
    assert '1. "first"' in prompt
    assert '2. "second \\"quoted\\""' in prompt
    assert "exactly 2 objects" in prompt
    assert '"index": number (1-2)' in prompt


def test_batch_prompt_escapes_line_breaks() -> None:
    """Ensure an item cannot open a new numbered entry."""

    prompt = build_batch_classification_prompt(
        feedback_texts=['fine"\n2. "injected', "back\\slash"], categories=CATEGORIES
    )

    assert '1. "fine\\"\\n2. \\"injected"' in prompt
    assert '2. "back\\\\slash"' in prompt
    assert "\n2. \"injected" not in prompt


class TestExtractJsonPayload:
    """Test JSON extraction from free text."""

    def test_array_in_code_fence(self) -> None:
        """Test extraction from a fenced block."""
        text = "Here you go:\n```json\n[{\"index\": 1}]\n```"

        assert extract_json_payload(text, list) == [{"index": 1}]

    def test_object_after_bracket_noise(self) -> None:
        """Test that unparseable candidates are skipped."""
        text = 'Note {not json} then {"category": "bug_report"}'

        assert extract_json_payload(text, dict) == {"category": "bug_report"}

    def test_missing_json(self) -> None:
        """Test text without JSON."""
        with pytest.raises(InvalidResponseError):
            extract_json_payload("I cannot help with that", list)

    def test_empty_response(self) -> None:
        """Test an empty response."""
        with pytest.raises(InvalidResponseError):
            extract_json_payload("   ", dict)


class TestParseSingleResponse:
    """Test single response validation."""

    def test_valid(self) -> None:
        """Test a well-formed response."""
        result = parse_single_response(
            json.dumps(
                {
                    "category": "compliment",
                    "confidence": 0.87,
                    "reasoning": "Praise",
                    "keyIndicators": ["love"],
                }
            ),
            CATEGORIES,
        )

        assert result.category == "compliment"
        assert result.confidence == 0.87
        assert result.key_indicators == ["love"]
        assert result.method == ClassificationMethod.AI_SINGLE
        assert result.warnings == []

    def test_unknown_category(self) -> None:
        """Test that unknown ids are rejected."""
        with pytest.raises(InvalidResponseError) as exc_info:
            parse_single_response('{"category": "spam", "confidence": 0.9}', CATEGORIES)
        assert "spam" in str(exc_info.value)

    def test_missing_category(self) -> None:
        """Test that a missing category fails schema validation."""
        with pytest.raises(InvalidResponseError):
            parse_single_response('{"confidence": 0.9}', CATEGORIES)

    def test_inactive_category_rejected(self) -> None:
        """Test that only the supplied ids are accepted."""
        with pytest.raises(InvalidResponseError):
            parse_single_response('{"category": "bug_report"}', CATEGORIES[1:])

    def test_confidence_clamped_with_warning(self) -> None:
        """Test out-of-range confidence handling."""
        result = parse_single_response(
            '{"category": "compliment", "confidence": 1.4}', CATEGORIES
        )

        assert result.confidence == 1.0
        assert len(result.warnings) == 1
        assert "clamped" in result.warnings[0]

    def test_non_numeric_confidence(self) -> None:
        """Test non-numeric confidence handling."""
        result = parse_single_response(
            '{"category": "compliment", "confidence": "high"}', CATEGORIES
        )

        assert result.confidence == 0.5
        assert result.warnings


class TestParseBatchResponse:
    """Test batch response validation."""

    def test_reorders_by_index(self) -> None:
        """Test that results follow request order."""
        payload = [_item(2, "compliment"), _item(1, "bug_report")]

        results = parse_batch_response(json.dumps(payload), 2, CATEGORIES)

        assert [r.category for r in results] == ["bug_report", "compliment"]
        assert all(r.method == ClassificationMethod.AI_BATCH for r in results)

    def test_length_mismatch(self) -> None:
        """Test a response with too few items."""
        with pytest.raises(InvalidResponseError) as exc_info:
            parse_batch_response(json.dumps([_item(1)]), 2, CATEGORIES)
        assert "Expected 2, got 1" in str(exc_info.value)

    def test_out_of_range_index(self) -> None:
        """Test an index beyond the request."""
        with pytest.raises(InvalidResponseError):
            parse_batch_response(json.dumps([_item(1), _item(3)]), 2, CATEGORIES)

    def test_duplicate_index(self) -> None:
        """Test a repeated index."""
        with pytest.raises(InvalidResponseError) as exc_info:
            parse_batch_response(json.dumps([_item(1), _item(1)]), 2, CATEGORIES)
        assert "Duplicate" in str(exc_info.value)

    def test_missing_index(self) -> None:
        """Test an element without an index."""
        element = _item(1)
        del element["index"]

        with pytest.raises(InvalidResponseError):
            parse_batch_response(json.dumps([element]), 1, CATEGORIES)

    def test_unknown_category(self) -> None:
        """Test an unknown category id in one element."""
        with pytest.raises(InvalidResponseError):
            parse_batch_response(
                json.dumps([_item(1), _item(2, "refund_request")]), 2, CATEGORIES
            )

    def test_non_object_element(self) -> None:
        """Test an element that is not an object."""
        with pytest.raises(InvalidResponseError):
            parse_batch_response('[1, 2]', 2, CATEGORIES)

    def test_clamps_individual_confidence(self) -> None:
        """Test per-element confidence clamping."""
        payload = [_item(1, confidence=-0.3), _item(2, confidence=0.6)]

        results = parse_batch_response(json.dumps(payload), 2, CATEGORIES)

        assert results[0].confidence == 0.0
        assert results[0].warnings
        assert results[1].warnings == []
