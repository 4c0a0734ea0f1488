"""
db.py — SQLAlchemy engine and session factory singletons.

Usage:
    from tender_shared.db import get_engine, get_session_factory, init_schema

    engine = get_engine()                  # reads settings.database_url
    Session = get_session_factory()
    init_schema()                          # CREATE TABLE IF NOT EXISTS for all models
"""

from __future__ import annotations

import threading
from typing import Optional

import structlog
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from tender_shared.config import settings
from tender_shared.models.orm import Base

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Engine: one per process, created under a lock
# ---------------------------------------------------------------------------
_engine_lock = threading.Lock()
_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker[Session]] = None


def get_engine() -> Engine:
    """
    Return a singleton SQLAlchemy engine for settings.database_url.

    Raises:
        RuntimeError: if DATABASE_URL is not set.
    """
    global _engine, _session_factory

    with _engine_lock:
        if _engine is None:
            if not settings.database_url:
                raise RuntimeError(
                    "DATABASE_URL is not set. Set it in .env or the environment."
                )
            _engine = create_engine(
                settings.database_url,
                echo=settings.db_echo,
                pool_pre_ping=True,
            )
            _session_factory = None
            logger.info("db_engine_created", dialect=_engine.dialect.name)
        return _engine


def get_session_factory() -> sessionmaker[Session]:
    """
    Return a singleton sessionmaker bound to get_engine().

    Sessions keep attribute values after commit so committed rows can be
    logged without another round trip.
    """
    global _session_factory

    engine = get_engine()
    with _engine_lock:
        if _session_factory is None:
            _session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        return _session_factory


def init_schema(engine: Engine | None = None) -> None:
    """Create all tender tables that don't exist yet."""
    target = engine or get_engine()
    Base.metadata.create_all(target)
    logger.info("db_schema_initialized", tables=sorted(Base.metadata.tables))


def reset_engine() -> None:
    """Dispose of the singleton engine (useful in tests)."""
    global _engine, _session_factory
    with _engine_lock:
        if _engine is not None:
            _engine.dispose()
        _engine = None
        _session_factory = None
