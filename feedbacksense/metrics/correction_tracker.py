"""
Classification accuracy tracking from user corrections.

Callers report the category a user settled on next to what the AI predicted;
the tracker keeps a bounded history of these corrections and derives accuracy,
confidence and improvement suggestions from it.
"""

import logging
import threading
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from ..database.correction_store import CorrectionStore
from ..exceptions import CorrectionTrackingError, DatabaseError
from ..models import CorrectionRecord, clamp_confidence

logger = logging.getLogger(__name__)

DEFAULT_MAX_HISTORY = 100
TEXT_EXCERPT_LENGTH = 200

LOW_CONFIDENCE = 0.6
HIGH_CONFIDENCE = 0.8
LOW_CONFIDENCE_ERROR_SHARE = 0.2
HIGH_CONFIDENCE_ERROR_SHARE = 0.1
MIN_AVERAGE_CONFIDENCE = 0.7

SUGGEST_KEYWORDS = "Consider adding more specific keywords to category definitions"
SUGGEST_OVERLAPS = "Review category descriptions for potential overlaps"
SUGGEST_REFINE = "Consider refining category keywords and descriptions"


class CorrectionTracker:
    """
    Bounded, thread-safe history of classification corrections.

    Args:
        max_history: Number of corrections kept; older ones are evicted
        store: Optional persistent store; recent records are reloaded from it
    """

    def __init__(
        self,
        max_history: int = DEFAULT_MAX_HISTORY,
        store: Optional[CorrectionStore] = None,
    ) -> None:
        if max_history <= 0:
            raise ValueError("max_history must be positive")

        self.max_history = max_history
        self.store = store
        self._history: Deque[CorrectionRecord] = deque(maxlen=max_history)
        self._lock = threading.Lock()

        if self.store is not None:
            self._load_from_store()

    def _load_from_store(self) -> None:
        try:
            records = self._call_store("load", lambda: self.store.load_recent(self.max_history))
        except CorrectionTrackingError as e:
            logger.error(f"Could not reload correction history: {e}")
            return

        with self._lock:
            self._history.extend(records)
        logger.info(f"Reloaded {len(records)} corrections from storage")

    @staticmethod
    def _call_store(operation: str, func):
        try:
            return func()
        except DatabaseError as e:
            raise CorrectionTrackingError(str(e), operation=operation) from e

    def record_correction(
        self,
        text: str,
        ai_prediction: str,
        user_correction: str,
        ai_confidence: float,
    ) -> CorrectionRecord:
        """
        Record the outcome of one AI prediction.

        Persistence failures are logged and do not affect the in-memory
        history.

        Returns:
            The stored correction record
        """
        record = CorrectionRecord(
            text_excerpt=(text or "")[:TEXT_EXCERPT_LENGTH],
            ai_prediction=ai_prediction,
            user_correction=user_correction,
            ai_confidence=clamp_confidence(ai_confidence),
            was_correct=ai_prediction == user_correction,
        )

        with self._lock:
            self._history.append(record)

        if self.store is not None:
            try:
                self._call_store("save", lambda: self.store.save(record))
            except CorrectionTrackingError as e:
                logger.error(f"Failed to persist correction: {e}")

        logger.debug(
            f"Recorded correction {ai_prediction} -> {user_correction} "
            f"(correct: {record.was_correct})"
        )
        return record

    @property
    def history(self) -> List[CorrectionRecord]:
        """Snapshot of the current history, oldest first."""
        with self._lock:
            return list(self._history)

    def get_metrics(self) -> Dict[str, Any]:
        """
        Summarize accuracy over the current history.

        Returns:
            Dictionary with ``totalFeedback``, ``accuracy``,
            ``averageConfidence``, ``correctPredictions`` and
            ``improvementSuggestions``
        """
        history = self.history
        total = len(history)

        if total == 0:
            return {
                "totalFeedback": 0,
                "accuracy": 0,
                "averageConfidence": 0,
                "correctPredictions": 0,
                "improvementSuggestions": [],
            }

        correct = sum(1 for record in history if record.was_correct)
        average_confidence = sum(record.ai_confidence for record in history) / total

        return {
            "totalFeedback": total,
            "accuracy": correct / total,
            "averageConfidence": average_confidence,
            "correctPredictions": correct,
            "improvementSuggestions": self._suggestions(history, average_confidence),
        }

    @staticmethod
    def _suggestions(
        history: List[CorrectionRecord], average_confidence: float
    ) -> List[str]:
        total = len(history)
        incorrect = [record for record in history if not record.was_correct]

        low_confidence_errors = sum(
            1 for record in incorrect if record.ai_confidence < LOW_CONFIDENCE
        )
        high_confidence_errors = sum(
            1 for record in incorrect if record.ai_confidence > HIGH_CONFIDENCE
        )

        suggestions: List[str] = []
        if low_confidence_errors > total * LOW_CONFIDENCE_ERROR_SHARE:
            suggestions.append(SUGGEST_KEYWORDS)
        if high_confidence_errors > total * HIGH_CONFIDENCE_ERROR_SHARE:
            suggestions.append(SUGGEST_OVERLAPS)
        if average_confidence < MIN_AVERAGE_CONFIDENCE:
            suggestions.append(SUGGEST_REFINE)
        return suggestions

    def clear(self) -> None:
        """Forget the in-memory history; stored records are kept."""
        with self._lock:
            self._history.clear()
        logger.info("Cleared correction history")
