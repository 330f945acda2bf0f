"""
Data models and type definitions for FeedbackSense.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from .exceptions import ValidationError

ANALYSIS_VERSION = "2.1.0"
GENERAL_INQUIRY_ID = "general_inquiry"


class ClassificationMethod(Enum):
    """Which path produced a classification."""

    AI_SINGLE = "ai_single"
    AI_BATCH = "ai_batch"
    FALLBACK_KEYWORD = "fallback_keyword"


class SentimentLabel(Enum):
    """Coarse sentiment buckets."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class Category:
    """A classification category supplied by the caller."""

    id: str
    name: str
    description: str = ""
    keywords: tuple = ()
    active: bool = True
    is_default: bool = False

    def __post_init__(self):
        if not self.id or not str(self.id).strip():
            raise ValidationError("Category id cannot be empty", field="id", value=self.id)
        # Normalize list input so the dataclass stays hashable
        if not isinstance(self.keywords, tuple):
            object.__setattr__(self, "keywords", tuple(self.keywords))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        """Build a category from a plain mapping.

        Keywords may be a list or a comma-separated string.
        """
        keywords: Union[str, Sequence[str], None] = data.get("keywords")
        if isinstance(keywords, str):
            keyword_list = [k.strip() for k in keywords.split(",") if k.strip()]
        else:
            keyword_list = [str(k).strip() for k in (keywords or []) if str(k).strip()]

        active = data.get("active", data.get("isActive", True))
        return cls(
            id=str(data["id"]),
            name=data.get("name") or str(data["id"]),
            description=data.get("description", ""),
            keywords=tuple(keyword_list),
            active=active is not False,
            is_default=bool(data.get("is_default", data.get("isDefault", False))),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "keywords": list(self.keywords),
            "active": self.active,
            "isDefault": self.is_default,
        }


DEFAULT_CATEGORIES: List[Category] = [
    Category(
        id="feature_request",
        name="Feature Request",
        description="Requests for new features or improvements",
        keywords=("feature", "add", "request", "suggestion", "improve", "enhancement"),
    ),
    Category(
        id="bug_report",
        name="Bug Report",
        description="Reports of technical issues, errors, or malfunctions",
        keywords=(
            "bug",
            "error",
            "broken",
            "crash",
            "issue",
            "problem",
            "not working",
            "fails",
            "glitch",
        ),
    ),
    Category(
        id="shipping_complaint",
        name="Shipping Complaint",
        description="Issues related to delivery, packaging, or shipping",
        keywords=("delivery", "shipping", "arrived", "package", "late", "delayed", "damaged", "lost"),
    ),
    Category(
        id="product_quality",
        name="Product Quality",
        description="Concerns about product quality, materials, or build",
        keywords=("quality", "material", "build", "durability", "defective", "cheap", "flimsy"),
    ),
    Category(
        id="customer_service",
        name="Customer Service",
        description="Feedback about customer support or service experience",
        keywords=(
            "service",
            "support",
            "staff",
            "representative",
            "help",
            "rude",
            "unhelpful",
            "friendly",
        ),
    ),
    Category(
        id=GENERAL_INQUIRY_ID,
        name="General Inquiry",
        description="General questions or neutral feedback",
        keywords=("question", "inquiry", "information", "help", "general"),
        is_default=True,
    ),
    Category(
        id="refund_request",
        name="Refund Request",
        description="Requests for refunds, returns, or billing issues",
        keywords=("refund", "return", "money back", "cancel", "charge", "billing", "payment"),
    ),
    Category(
        id="compliment",
        name="Compliment",
        description="Positive feedback, praise, or compliments",
        keywords=(
            "great",
            "excellent",
            "amazing",
            "love",
            "perfect",
            "awesome",
            "fantastic",
            "thank you",
        ),
    ),
]


def active_categories(categories: Sequence[Category]) -> List[Category]:
    """Return the active categories in registry order."""
    return [category for category in categories if category.active]


def get_default_category(categories: Sequence[Category]) -> Optional[Category]:
    """Find the designated general category of a registry.

    Preference order: an active category flagged ``is_default``, the
    ``general_inquiry`` id, then the first active category.
    """
    active = active_categories(categories)
    for category in active:
        if category.is_default:
            return category
    for category in active:
        if category.id == GENERAL_INQUIRY_ID:
            return category
    return active[0] if active else None


def validate_categories(categories: Sequence[Category]) -> List[Category]:
    """Validate a caller-supplied registry and return its active categories.

    Raises:
        ValidationError: If the registry is empty, has no active category or
            contains duplicate ids
    """
    if not categories:
        raise ValidationError("At least one category is required", field="categories")

    seen: set = set()
    for category in categories:
        if not isinstance(category, Category):
            raise ValidationError(
                "Categories must be Category instances",
                field="categories",
                value=type(category).__name__,
            )
        if category.id in seen:
            raise ValidationError("Duplicate category id", field="categories", value=category.id)
        seen.add(category.id)

    active = active_categories(categories)
    if not active:
        raise ValidationError("No active categories supplied", field="categories")

    return active


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class ClassificationResult:
    """Category assignment for a single feedback text."""

    category: str
    confidence: float
    reasoning: str
    method: ClassificationMethod
    key_indicators: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    # Excluded from equality so repeated deterministic runs compare equal
    timestamp: datetime = field(default_factory=_utcnow, compare=False)

    def __post_init__(self):
        self.confidence = clamp_confidence(self.confidence)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "category": self.category,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "keyIndicators": list(self.key_indicators),
            "method": self.method.value,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class SentimentResult:
    """Local keyword-based sentiment score."""

    score: float
    label: SentimentLabel
    confidence: float
    topics: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "score": self.score,
            "label": self.label.value,
            "confidence": self.confidence,
            "topics": list(self.topics),
        }


@dataclass
class BatchProgress:
    """Progress snapshot reported after each processed chunk."""

    processed: int
    total: int
    percentage: int
    batches_completed: int
    total_batches: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "processed": self.processed,
            "total": self.total,
            "percentage": self.percentage,
            "batchesCompleted": self.batches_completed,
            "totalBatches": self.total_batches,
        }


@dataclass
class FeedbackAnalysis:
    """Combined sentiment and category record for one feedback text."""

    sentiment_score: float
    sentiment_label: SentimentLabel
    sentiment_confidence: float
    topics: List[str]
    ai_category: str
    ai_category_confidence: float
    ai_reasoning: str
    method: ClassificationMethod
    key_indicators: List[str] = field(default_factory=list)
    classification_meta: Dict[str, Any] = field(default_factory=dict)
    history_entry: Dict[str, Any] = field(default_factory=dict)
    analysis_timestamp: datetime = field(default_factory=_utcnow)
    analysis_version: str = ANALYSIS_VERSION

    @classmethod
    def combine(
        cls,
        sentiment: SentimentResult,
        classification: ClassificationResult,
        model_name: Optional[str] = None,
        batch_size: Optional[int] = None,
    ) -> "FeedbackAnalysis":
        """Merge a sentiment score and a classification into one record."""
        now = _utcnow()

        ai_meta: Dict[str, Any] = {
            "method": classification.method.value,
            "reasoning": classification.reasoning,
            "confidence": classification.confidence,
        }
        if classification.method is not ClassificationMethod.FALLBACK_KEYWORD:
            ai_meta["model"] = model_name
        if classification.method is ClassificationMethod.AI_BATCH and batch_size:
            ai_meta["batchSize"] = batch_size
        if classification.warnings:
            ai_meta["warnings"] = list(classification.warnings)

        classification_meta = {
            "sentimentAnalysis": {
                "method": "keyword_based",
                "confidence": sentiment.confidence,
            },
            "aiClassification": ai_meta,
            "timestamp": now.isoformat(),
        }

        history_entry = {
            "timestamp": now.isoformat(),
            "category": classification.category,
            "confidence": classification.confidence,
            "method": classification.method.value,
            "reasoning": classification.reasoning,
        }

        return cls(
            sentiment_score=sentiment.score,
            sentiment_label=sentiment.label,
            sentiment_confidence=sentiment.confidence,
            topics=list(sentiment.topics),
            ai_category=classification.category,
            ai_category_confidence=classification.confidence,
            ai_reasoning=classification.reasoning,
            method=classification.method,
            key_indicators=list(classification.key_indicators),
            classification_meta=classification_meta,
            history_entry=history_entry,
            analysis_timestamp=now,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON-serializable output record."""
        return {
            "sentimentScore": self.sentiment_score,
            "sentimentLabel": self.sentiment_label.value,
            "sentimentConfidence": self.sentiment_confidence,
            "topics": list(self.topics),
            "aiCategory": self.ai_category,
            "aiCategoryConfidence": self.ai_category_confidence,
            "aiReasoning": self.ai_reasoning,
            "keyIndicators": list(self.key_indicators),
            "method": self.method.value,
            "classificationMeta": self.classification_meta,
            "historyEntry": self.history_entry,
            "analysisTimestamp": self.analysis_timestamp.isoformat(),
            "analysisVersion": self.analysis_version,
        }


@dataclass
class CorrectionRecord:
    """A user override of an AI-assigned category."""

    text_excerpt: str
    ai_prediction: str
    user_correction: str
    ai_confidence: float
    was_correct: bool
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "text": self.text_excerpt,
            "aiPrediction": self.ai_prediction,
            "userCorrection": self.user_correction,
            "aiConfidence": self.ai_confidence,
            "wasCorrect": self.was_correct,
            "timestamp": self.timestamp.isoformat(),
        }


def clamp_confidence(value: float) -> float:
    """Clamp a confidence into [0, 1] and round to two decimals."""
    return round(min(max(float(value), 0.0), 1.0), 2)
