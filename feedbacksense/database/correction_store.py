"""
Durable storage for classification corrections.
"""

import logging
from contextlib import contextmanager
from datetime import UTC
from typing import Iterator, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ..exceptions import DatabaseError
from ..models import CorrectionRecord
from .engine import create_correction_engine
from .models import CorrectionEntry

logger = logging.getLogger(__name__)


class CorrectionStore:
    """
    Stores correction records in a SQL database.

    Args:
        database_url: SQLAlchemy URL; the store owns and disposes the engine
        engine: Existing engine to share; the caller keeps ownership
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        engine: Optional[Engine] = None,
    ):
        self._owns_engine = engine is None
        if engine is None:
            if database_url is None:
                raise DatabaseError(
                    "Either database_url or engine is required",
                    operation="initialize_store",
                )
            engine = create_correction_engine(database_url)

        self.engine: Optional[Engine] = engine
        self._session_factory = sessionmaker(
            autocommit=False, autoflush=False, bind=engine
        )

    @contextmanager
    def _session(self) -> Iterator[Session]:
        """Session committed on success and rolled back on any error."""
        if self.engine is None:
            raise DatabaseError("Correction store is closed", operation="get_session")

        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            raise DatabaseError(
                f"Correction store session error: {str(e)}",
                operation="session_operation",
                table=CorrectionEntry.__tablename__,
            )
        finally:
            session.close()

    def save(self, record: CorrectionRecord) -> int:
        """Persist one correction and return its row id."""
        with self._session() as session:
            entry = CorrectionEntry(
                text_excerpt=record.text_excerpt,
                ai_prediction=record.ai_prediction,
                user_correction=record.user_correction,
                ai_confidence=record.ai_confidence,
                was_correct=record.was_correct,
                created_at=record.timestamp,
            )
            session.add(entry)
            session.flush()
            return entry.id

    def load_recent(self, limit: int) -> List[CorrectionRecord]:
        """Load the most recent ``limit`` corrections, oldest first."""
        with self._session() as session:
            entries = session.scalars(
                select(CorrectionEntry)
                .order_by(CorrectionEntry.id.desc())
                .limit(limit)
            ).all()

            records = [_to_record(entry) for entry in reversed(entries)]

        logger.debug(f"Loaded {len(records)} stored corrections")
        return records

    def count(self) -> int:
        """Number of stored corrections."""
        with self._session() as session:
            return session.scalar(select(func.count()).select_from(CorrectionEntry)) or 0

    def clear(self) -> None:
        """Delete every stored correction."""
        with self._session() as session:
            session.execute(delete(CorrectionEntry))
        logger.info("Cleared stored corrections")

    def close(self) -> None:
        """Dispose the engine if this store created it."""
        if self.engine is not None and self._owns_engine:
            self.engine.dispose()
            logger.info("Corrections database connections closed")
        self.engine = None


def _to_record(entry: CorrectionEntry) -> CorrectionRecord:
    timestamp = entry.created_at
    # SQLite drops tzinfo on the way back
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)

    return CorrectionRecord(
        text_excerpt=entry.text_excerpt,
        ai_prediction=entry.ai_prediction,
        user_correction=entry.user_correction,
        ai_confidence=entry.ai_confidence,
        was_correct=entry.was_correct,
        timestamp=timestamp,
    )
