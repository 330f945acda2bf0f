"""
FeedbackSense - customer feedback classification with AI and keyword fallback.
"""

from .batching import RateLimiter, get_batch_config, optimal_batch_size, validate_batch_size
from .classification import (
    BatchOrchestrator,
    KeywordFallbackClassifier,
    ReanalysisResult,
    analyze_sentiment,
)
from .config import FeedbackSenseConfig
from .core import FeedbackSense, create_feedbacksense
from .database import CorrectionStore
from .exceptions import (
    AIServiceError,
    ClassificationCancelledError,
    ConfigurationError,
    CorrectionTrackingError,
    DatabaseError,
    FeedbackSenseError,
    InvalidResponseError,
    NoValidInputError,
    PromptTooLargeError,
    RateLimitedError,
    ServiceUnavailableError,
    ValidationError,
)
from .llm import AIClassificationClient
from .metrics import CorrectionTracker
from .models import (
    DEFAULT_CATEGORIES,
    BatchProgress,
    Category,
    ClassificationMethod,
    ClassificationResult,
    CorrectionRecord,
    FeedbackAnalysis,
    SentimentLabel,
    SentimentResult,
)

__version__ = "0.1.0"
__all__ = [
    "FeedbackSense",
    "create_feedbacksense",
    "FeedbackSenseConfig",
    "AIClassificationClient",
    "BatchOrchestrator",
    "KeywordFallbackClassifier",
    "RateLimiter",
    "CorrectionTracker",
    "CorrectionStore",
    "ReanalysisResult",
    "analyze_sentiment",
    "get_batch_config",
    "optimal_batch_size",
    "validate_batch_size",
    "DEFAULT_CATEGORIES",
    "BatchProgress",
    "Category",
    "ClassificationMethod",
    "ClassificationResult",
    "CorrectionRecord",
    "FeedbackAnalysis",
    "SentimentLabel",
    "SentimentResult",
    "FeedbackSenseError",
    "ConfigurationError",
    "ValidationError",
    "NoValidInputError",
    "ServiceUnavailableError",
    "RateLimitedError",
    "AIServiceError",
    "InvalidResponseError",
    "PromptTooLargeError",
    "ClassificationCancelledError",
    "DatabaseError",
    "CorrectionTrackingError",
]
