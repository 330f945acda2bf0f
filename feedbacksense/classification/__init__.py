"""
Classification components for FeedbackSense.
"""

from .batch_orchestrator import (
    BatchOrchestrator,
    BatchRunMetrics,
    ReanalysisResult,
    filter_valid_texts,
)
from .keyword_classifier import KeywordFallbackClassifier, KeywordMatch, fallback_classify
from .sentiment import analyze_sentiment, extract_topics

__all__ = [
    "BatchOrchestrator",
    "BatchRunMetrics",
    "KeywordFallbackClassifier",
    "KeywordMatch",
    "ReanalysisResult",
    "analyze_sentiment",
    "extract_topics",
    "fallback_classify",
    "filter_valid_texts",
]
