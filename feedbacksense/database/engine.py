"""
Engine setup for the correction store.
"""

import logging
from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from ..exceptions import DatabaseError
from .models import CorrectionEntry

logger = logging.getLogger(__name__)

SQLITE_BUSY_TIMEOUT_SECONDS = 30
SERVER_POOL_RECYCLE_SECONDS = 3600


def engine_options(database_url: str) -> Dict[str, Any]:
    """
    SQLAlchemy engine options for the corrections database.

    SQLite shares one connection across threads so an in-memory database keeps
    its rows; server databases get connection health checks instead.
    """
    if database_url.lower().startswith("sqlite"):
        return {
            "poolclass": StaticPool,
            "connect_args": {
                "check_same_thread": False,
                "timeout": SQLITE_BUSY_TIMEOUT_SECONDS,
            },
        }
    return {
        "pool_pre_ping": True,
        "pool_recycle": SERVER_POOL_RECYCLE_SECONDS,
    }


def create_correction_engine(database_url: str) -> Engine:
    """
    Connect to ``database_url`` and make sure the corrections table exists.

    Raises:
        DatabaseError: If the URL is empty or the database cannot be reached
    """
    if not database_url or not database_url.strip():
        raise DatabaseError("Database URL cannot be empty", operation="create_engine")

    try:
        engine = create_engine(database_url, **engine_options(database_url))
        CorrectionEntry.__table__.create(bind=engine, checkfirst=True)
    except Exception as e:
        raise DatabaseError(
            f"Failed to open corrections database: {str(e)}",
            operation="create_engine",
            table=CorrectionEntry.__tablename__,
        )

    logger.info(f"Corrections database ready ({engine.dialect.name})")
    return engine
