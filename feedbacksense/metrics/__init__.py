"""
Accuracy metrics for FeedbackSense.
"""

from .correction_tracker import CorrectionTracker

__all__ = ["CorrectionTracker"]
