from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from loguru import logger
from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from config import get_settings
from src.db.models import Base

_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def _ensure_sqlite_dir(url: str) -> None:
    """Create the parent directory of a SQLite database file."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite" or not parsed.database:
        return
    if parsed.database == ":memory:":
        return
    Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)


def create_db_engine(url: str) -> Engine:
    """Create an engine, preparing the SQLite directory when needed."""
    _ensure_sqlite_dir(url)
    echo = get_settings().log_level == "DEBUG"
    return create_engine(url, echo=echo, pool_pre_ping=True)


def make_session_factory(bind: Engine) -> sessionmaker:
    """Session factory used by every transactional scope."""
    return sessionmaker(bind=bind, autocommit=False, autoflush=False, expire_on_commit=False)


def get_engine() -> Engine:
    """Get or create the configured engine (lazy initialization)."""
    global _engine
    if _engine is None:
        _engine = create_db_engine(get_settings().database_url)
    return _engine


def _get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = make_session_factory(get_engine())
    return _SessionLocal


def init_db(bind: Engine | None = None) -> None:
    """Initialize database tables."""
    Base.metadata.create_all(bind=bind or get_engine())
    logger.info("Database tables initialized")


@contextmanager
def session_scope(factory: sessionmaker | None = None) -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = (factory or _get_session_factory())()
    try:
        yield session
        session.commit()
    except Exception:  # Intentionally broad - rollback on any error before re-raising
        session.rollback()
        raise
    finally:
        session.close()
