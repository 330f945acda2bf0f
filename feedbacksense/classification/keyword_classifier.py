"""
Deterministic keyword classifier used whenever the AI path is unavailable.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..models import (
    GENERAL_INQUIRY_ID,
    Category,
    ClassificationMethod,
    ClassificationResult,
    active_categories,
    get_default_category,
)

logger = logging.getLogger(__name__)

NO_MATCH_CONFIDENCE = 0.3
MAX_BASE_CONFIDENCE = 0.7
MAX_FALLBACK_CONFIDENCE = 0.8


@dataclass
class KeywordMatch:
    """Score of one category against a text."""

    category_id: str
    score: int = 0
    matched_keywords: List[str] = field(default_factory=list)


class KeywordFallbackClassifier:
    """
    Keyword overlap scorer.

    Keywords longer than three characters weigh double. The highest scoring
    active category wins and ties keep registry order. The classifier never
    raises and never touches the network.
    """

    def classify(self, text: str, categories: Sequence[Category]) -> ClassificationResult:
        """Classify a single text against the supplied registry."""
        best = self._best_match((text or "").lower(), categories)

        if best is not None and best.score > 0:
            confidence = self._confidence(best)
            reasoning = (
                "Keyword-based classification (fallback). Matched: "
                + ", ".join(best.matched_keywords)
            )
            return ClassificationResult(
                category=best.category_id,
                confidence=confidence,
                reasoning=reasoning,
                method=ClassificationMethod.FALLBACK_KEYWORD,
                key_indicators=list(best.matched_keywords),
            )

        default = get_default_category(categories)
        return ClassificationResult(
            category=default.id if default else GENERAL_INQUIRY_ID,
            confidence=NO_MATCH_CONFIDENCE,
            reasoning="No specific keywords matched, defaulting to general inquiry",
            method=ClassificationMethod.FALLBACK_KEYWORD,
            key_indicators=[],
        )

    def classify_many(
        self, texts: Sequence[str], categories: Sequence[Category]
    ) -> List[ClassificationResult]:
        """Classify texts one by one, preserving order."""
        return [self.classify(text, categories) for text in texts]

    def _best_match(
        self, lowered_text: str, categories: Sequence[Category]
    ) -> Optional[KeywordMatch]:
        best: Optional[KeywordMatch] = None

        for category in active_categories(categories):
            match = KeywordMatch(category_id=category.id)
            for keyword in category.keywords:
                keyword = keyword.strip().lower()
                if not keyword or keyword in match.matched_keywords:
                    continue
                if keyword in lowered_text:
                    match.matched_keywords.append(keyword)
                    match.score += 2 if len(keyword) > 3 else 1

            # Strict comparison keeps the earlier category on ties
            if best is None or match.score > best.score:
                best = match

        return best

    @staticmethod
    def _confidence(match: KeywordMatch) -> float:
        confidence = min(match.score * 0.15, MAX_BASE_CONFIDENCE)

        if len(match.matched_keywords) > 1:
            confidence += 0.1

        average_length = sum(len(k) for k in match.matched_keywords) / len(
            match.matched_keywords
        )
        if average_length > 5:
            confidence += 0.05

        return round(min(confidence, MAX_FALLBACK_CONFIDENCE), 2)


_default_classifier = KeywordFallbackClassifier()


def fallback_classify(text: str, categories: Sequence[Category]) -> ClassificationResult:
    """Classify with the shared keyword classifier."""
    return _default_classifier.classify(text, categories)
