"""SQLAlchemy database models for FeedbackSense."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, validates

from ..exceptions import ValidationError

TEXT_EXCERPT_LENGTH = 200


class Base(DeclarativeBase):
    """Declarative base class for ORM models."""

    pass


class CorrectionEntry(Base):
    """
    A user correction of an AI-assigned category.

    Rows are append-only; the tracker reloads the most recent ones on start-up.
    """

    __tablename__ = "classification_corrections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    text_excerpt: Mapped[str] = mapped_column(Text, nullable=False, default="")
    ai_prediction: Mapped[str] = mapped_column(String(255), nullable=False)
    user_correction: Mapped[str] = mapped_column(String(255), nullable=False)
    ai_confidence: Mapped[float] = mapped_column(Float, nullable=False)
    was_correct: Mapped[bool] = mapped_column(Boolean, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "ai_confidence >= 0 AND ai_confidence <= 1",
            name="check_correction_confidence_range",
        ),
        Index("idx_corrections_created_at", "created_at"),
    )

    @validates("ai_confidence")
    def validate_confidence(self, key: str, value: float) -> float:
        if value is None or not (0.0 <= value <= 1.0):
            raise ValidationError(
                f"AI confidence {value} must be between 0 and 1",
                field="ai_confidence",
                value=value,
            )
        return value

    @validates("text_excerpt")
    def validate_excerpt(self, key: str, value: str) -> str:
        return (value or "")[:TEXT_EXCERPT_LENGTH]

    def __repr__(self) -> str:
        return (
            f"<CorrectionEntry(id={self.id}, ai_prediction='{self.ai_prediction}', "
            f"user_correction='{self.user_correction}', was_correct={self.was_correct})>"
        )
