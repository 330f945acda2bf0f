"""Keyword sentiment scoring and topic extraction."""

import re
from typing import Dict, List

from ..models import SentimentLabel, SentimentResult

POSITIVE_WORDS = frozenset(
    {
        "amazing", "awesome", "excellent", "fantastic", "great", "good", "love",
        "perfect", "wonderful", "best", "outstanding", "brilliant", "satisfied",
        "happy", "pleased", "impressed", "recommend", "helpful", "fast", "quick",
        "easy", "smooth", "efficient",
    }
)

NEGATIVE_WORDS = frozenset(
    {
        "terrible", "awful", "bad", "worst", "hate", "horrible", "disgusting",
        "disappointing", "frustrated", "angry", "annoyed", "slow", "difficult",
        "hard", "confusing", "broken", "useless", "poor", "expensive",
        "overpriced", "delayed", "late", "rude", "unhelpful",
    }
)

TOPIC_KEYWORDS: Dict[str, List[str]] = {
    "product": ["product", "item", "quality", "design", "feature"],
    "service": ["service", "support", "help", "staff", "team"],
    "delivery": ["delivery", "shipping", "arrived", "package", "fast", "slow"],
    "price": ["price", "cost", "expensive", "cheap", "value", "money"],
    "website": ["website", "app", "online", "interface", "login"],
    "payment": ["payment", "checkout", "card", "billing", "transaction"],
}

POSITIVE_THRESHOLD = 0.6
NEGATIVE_THRESHOLD = 0.4

_WORD_RE = re.compile(r"[a-z0-9']+")


def tokenize(text: str) -> List[str]:
    """Lower-case a text and split it into words, dropping punctuation."""
    return _WORD_RE.findall((text or "").lower())


def extract_topics(text: str) -> List[str]:
    """Return the topics whose keywords appear in the text, or ``["general"]``."""
    words = set(tokenize(text))
    topics = [
        topic
        for topic, keywords in TOPIC_KEYWORDS.items()
        if any(keyword in words for keyword in keywords)
    ]
    return topics or ["general"]


def analyze_sentiment(text: str) -> SentimentResult:
    """Score the sentiment of a text from positive/negative word counts."""
    words = tokenize(text)

    positive = sum(1 for word in words if word in POSITIVE_WORDS)
    negative = sum(1 for word in words if word in NEGATIVE_WORDS)
    total = positive + negative

    if total > 0:
        score = positive / total
        if score >= POSITIVE_THRESHOLD:
            label = SentimentLabel.POSITIVE
        elif score <= NEGATIVE_THRESHOLD:
            label = SentimentLabel.NEGATIVE
        else:
            label = SentimentLabel.NEUTRAL
        confidence = min(total * 0.2, 1.0)
    else:
        score = 0.5
        label = SentimentLabel.NEUTRAL
        confidence = 0.1

    return SentimentResult(
        score=round(score, 4),
        label=label,
        confidence=round(confidence, 2),
        topics=extract_topics(text),
    )
