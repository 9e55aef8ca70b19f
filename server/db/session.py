"""Database engine and session management."""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session as DBSession, sessionmaker
from sqlalchemy.pool import StaticPool

from server.config import Settings
from server.db.models import Base


_engine = None
_SessionLocal = None


def build_engine(url: str) -> Engine:
    """
    Create an engine for url.

    SQLite connections get foreign keys switched on so folder deletes
    cascade to flashcards; in-memory databases share one connection across
    threads.
    """
    if not url.startswith("sqlite"):
        return create_engine(url)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def get_engine(settings: Settings) -> Engine:
    global _engine
    if _engine is None:
        _engine = build_engine(settings.database_url)
    return _engine


def get_session_factory(settings: Settings) -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine(settings))
    return _SessionLocal


@contextmanager
def get_db(settings: Settings) -> Generator[DBSession, None, None]:
    """Yield a session that commits on success and rolls back on error."""
    session = get_session_factory(settings)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def reset_engine() -> None:
    """Drop the cached engine and session factory. Used between tests."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def init_db(settings: Settings) -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind=get_engine(settings))
