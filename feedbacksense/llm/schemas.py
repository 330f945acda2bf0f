"""
Pydantic schemas for validating AI classification responses.

The AI service returns free text; the JSON extracted from it is validated
against these models before any value reaches a result record.
"""

import math
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ItemClassification(BaseModel):
    """Schema for a single-item classification response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    category: str = Field(description="Category id chosen for the item", min_length=1)
    confidence: Optional[float] = Field(
        description="Confidence between 0 and 1; out-of-range values are clamped later",
        default=None,
    )
    reasoning: str = Field(description="Explanation of the decision", default="")
    key_indicators: List[str] = Field(
        description="Words or phrases that drove the decision",
        default_factory=list,
        alias="keyIndicators",
    )

    @field_validator("category", mode="before")
    @classmethod
    def _strip_category(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, value: Any) -> Optional[float]:
        # Non-numeric confidences are reported as missing, not rejected
        if value is None or isinstance(value, bool):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if math.isnan(number):
            return None
        return number

    @field_validator("reasoning", mode="before")
    @classmethod
    def _coerce_reasoning(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    @field_validator("key_indicators", mode="before")
    @classmethod
    def _coerce_indicators(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        if isinstance(value, (list, tuple)):
            return [str(item) for item in value if item is not None]
        return [str(value)]


class BatchItemClassification(ItemClassification):
    """Schema for one element of a batch classification response."""

    index: int = Field(description="1-based position of the item in the request")


class ModelConfiguration(BaseModel):
    """Schema for model configuration."""

    model_name: str = Field(description="Name of the model to use")
    temperature: float = Field(
        description="Temperature for generation", ge=0.0, le=2.0, default=0.1
    )
    max_tokens: Optional[int] = Field(
        description="Maximum tokens for completion", default=None
    )
    timeout: int = Field(description="Timeout in seconds", ge=1, default=30)
    retry_attempts: int = Field(description="Number of retry attempts", ge=0, default=3)
