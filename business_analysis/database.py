"""SQLAlchemy engine and session handling for the report store."""

import os
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///data/business_analysis.db"


class Base(DeclarativeBase):
    pass


_engine: Optional[Engine] = None
_sessions: Optional[sessionmaker] = None


def get_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """Return the cached engine, creating it on first call.

    ``database_url`` defaults to ``$DATABASE_URL`` or a SQLite file under
    ``data/``; it is ignored once the engine exists.
    """
    global _engine, _sessions
    if _engine is None:
        url = database_url or os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
        if url.startswith("sqlite:///") and url != "sqlite:///:memory:":
            Path(url.removeprefix("sqlite:///")).parent.mkdir(parents=True, exist_ok=True)
        _engine = create_engine(url, echo=echo)
        _sessions = sessionmaker(bind=_engine, expire_on_commit=False)
        logger.info("Database engine created: %s", url)
    return _engine


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Transactional session: commits on success, rolls back on error.

    Usage::

        with get_session() as session:
            session.add(record)
    """
    get_engine()
    session = _sessions()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(database_url: Optional[str] = None, echo: bool = False) -> None:
    """Create the report tables if they do not exist."""
    engine = get_engine(database_url=database_url, echo=echo)
    import business_analysis.models  # noqa: F401  (registers models on Base)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created / verified.")


def reset_engine() -> None:
    """Dispose of the cached engine so the next call builds a fresh one."""
    global _engine, _sessions
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _sessions = None
