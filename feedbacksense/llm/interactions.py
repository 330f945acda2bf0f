"""Prompt construction and response validation for AI classification."""

from __future__ import annotations

import json
import logging
from typing import Any, List, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import InvalidResponseError
from ..models import Category, ClassificationMethod, ClassificationResult
from .schemas import BatchItemClassification, ItemClassification

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.5

CONFIDENCE_GUIDANCE = """Consider these factors for confidence scoring:
- How clearly the feedback matches category keywords and patterns
- Ambiguity or overlap with other categories
- Completeness and clarity of the feedback text
- Specificity of language used"""


def describe_categories(categories: Sequence[Category]) -> str:
    """Render one ``- id: description (Keywords: ...)`` line per category."""
    lines: list[str] = []
    for category in categories:
        line = f"- {category.id}: {category.description or category.name}"
        if category.keywords:
            line += f" (Keywords: {','.join(category.keywords)})"
        lines.append(line)
    return "\n".join(lines)


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def build_single_classification_prompt(
    *, feedback_text: str, categories: Sequence[Category]
) -> str:
    """Construct the prompt used for single feedback classification."""

    return f"""Analyze the following feedback text and categorize it into one of these categories:
{describe_categories(categories)}

Feedback text: {_quote(feedback_text)}

{CONFIDENCE_GUIDANCE}

Respond with a JSON object containing:
{{
  "category": "one of the category IDs above",
  "confidence": number between 0 and 1 (be precise, consider context and clarity),
  "reasoning": "detailed explanation including confidence factors",
  "keyIndicators": ["list", "of", "key", "words", "or", "phrases", "that", "influenced", "decision"]
}}

Higher confidence (0.8+) should only be given when the categorization is very clear and unambiguous."""


def build_batch_classification_prompt(
    *, feedback_texts: Sequence[str], categories: Sequence[Category]
) -> str:
    """Construct the prompt used for batch classification.

    Items are enumerated with a 1-based index that the response must echo.
    """

    count = len(feedback_texts)
    items = "\n".join(
        f"{index}. {_quote(text)}" for index, text in enumerate(feedback_texts, start=1)
    )

    return f"""Analyze and categorize the following {count} feedback items into one of these categories:
{describe_categories(categories)}

Feedback items to analyze:
{items}

{CONFIDENCE_GUIDANCE}

Respond with a JSON array containing exactly {count} objects, one for each feedback item in the same order. Each object should contain:
{{
  "index": number (1-{count}),
  "category": "one of the category IDs above",
  "confidence": number between 0 and 1 (be precise, consider context and clarity),
  "reasoning": "detailed explanation including confidence factors",
  "keyIndicators": ["list", "of", "key", "words", "or", "phrases"]
}}

Example response format:
[
  {{
    "index": 1,
    "category": "bug_report",
    "confidence": 0.95,
    "reasoning": "Clear technical issue with specific error description",
    "keyIndicators": ["error", "crash", "not working"]
  }}
]

Higher confidence (0.8+) should only be given when categorization is very clear and unambiguous."""


def extract_json_payload(raw_text: str, expected_type: type) -> Any:
    """
    Locate and decode the first JSON value of ``expected_type`` in a response.

    The model may wrap its JSON in prose or code fences, so every opening
    bracket is tried in order until one decodes to the expected type.

    Raises:
        InvalidResponseError: If no such JSON value is present
    """
    if not isinstance(raw_text, str) or not raw_text.strip():
        raise InvalidResponseError("Empty response from AI service", raw_response=raw_text)

    opener = "[" if expected_type is list else "{"
    decoder = json.JSONDecoder()

    position = raw_text.find(opener)
    while position != -1:
        try:
            value, _ = decoder.raw_decode(raw_text, position)
        except json.JSONDecodeError:
            value = None
        if isinstance(value, expected_type):
            return value
        position = raw_text.find(opener, position + 1)

    kind = "array" if expected_type is list else "object"
    raise InvalidResponseError(
        f"No JSON {kind} found in AI response", raw_response=raw_text
    )


def _normalize_confidence(
    value: Optional[float], label: str, warnings: List[str]
) -> float:
    if value is None:
        message = f"Missing or non-numeric confidence for {label}, using {DEFAULT_CONFIDENCE}"
        logger.warning(message)
        warnings.append(message)
        return DEFAULT_CONFIDENCE

    if value < 0.0 or value > 1.0:
        clamped = min(max(value, 0.0), 1.0)
        message = f"Confidence {value} out of range for {label}, clamped to {clamped}"
        logger.warning(message)
        warnings.append(message)
        return clamped

    return value


def _check_category(category: str, valid_ids: set, label: str, raw_text: str) -> None:
    if category not in valid_ids:
        raise InvalidResponseError(
            f"Invalid category returned for {label}: {category}",
            raw_response=raw_text,
        )


def parse_single_response(
    raw_text: str, categories: Sequence[Category]
) -> ClassificationResult:
    """
    Parse and validate a single-item classification response.

    Raises:
        InvalidResponseError: On unparseable JSON, schema violations or an
            unknown category id
    """
    payload = extract_json_payload(raw_text, dict)

    try:
        item = ItemClassification.model_validate(payload)
    except PydanticValidationError as exc:
        raise InvalidResponseError(
            f"Response failed schema validation: {exc.error_count()} error(s)",
            raw_response=raw_text,
        ) from exc

    _check_category(item.category, {c.id for c in categories}, "item", raw_text)

    warnings: List[str] = []
    confidence = _normalize_confidence(item.confidence, "item", warnings)

    return ClassificationResult(
        category=item.category,
        confidence=confidence,
        reasoning=item.reasoning or "AI-based categorization",
        method=ClassificationMethod.AI_SINGLE,
        key_indicators=item.key_indicators,
        warnings=warnings,
    )


def parse_batch_response(
    raw_text: str, expected_count: int, categories: Sequence[Category]
) -> List[ClassificationResult]:
    """
    Parse and validate a batch classification response.

    Results are ordered by their ``index`` so the i-th result belongs to the
    i-th requested item.

    Raises:
        InvalidResponseError: On unparseable JSON, a length mismatch, missing,
            duplicated or out-of-range indices, or an unknown category id
    """
    payload = extract_json_payload(raw_text, list)

    if len(payload) != expected_count:
        raise InvalidResponseError(
            f"Batch response length mismatch. Expected {expected_count}, got {len(payload)}",
            raw_response=raw_text,
        )

    valid_ids = {c.id for c in categories}
    by_index: dict[int, ClassificationResult] = {}

    for position, element in enumerate(payload, start=1):
        if not isinstance(element, dict):
            raise InvalidResponseError(
                f"Batch element {position} is not an object", raw_response=raw_text
            )

        try:
            item = BatchItemClassification.model_validate(element)
        except PydanticValidationError as exc:
            raise InvalidResponseError(
                f"Batch element {position} failed schema validation: "
                f"{exc.error_count()} error(s)",
                raw_response=raw_text,
            ) from exc

        if item.index < 1 or item.index > expected_count:
            raise InvalidResponseError(
                f"Invalid item index: {item.index}", raw_response=raw_text
            )
        if item.index in by_index:
            raise InvalidResponseError(
                f"Duplicate item index: {item.index}", raw_response=raw_text
            )

        label = f"item {item.index}"
        _check_category(item.category, valid_ids, label, raw_text)

        warnings: List[str] = []
        confidence = _normalize_confidence(item.confidence, label, warnings)

        by_index[item.index] = ClassificationResult(
            category=item.category,
            confidence=confidence,
            reasoning=item.reasoning or "AI-based batch categorization",
            method=ClassificationMethod.AI_BATCH,
            key_indicators=item.key_indicators,
            warnings=warnings,
        )

    return [by_index[index] for index in range(1, expected_count + 1)]
