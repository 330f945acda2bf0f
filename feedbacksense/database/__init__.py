"""
Database module for FeedbackSense.
"""

from .correction_store import CorrectionStore
from .engine import create_correction_engine, engine_options
from .models import Base, CorrectionEntry

__all__ = [
    "Base",
    "CorrectionEntry",
    "CorrectionStore",
    "create_correction_engine",
    "engine_options",
]
