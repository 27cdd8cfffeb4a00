"""SQLite engine and session handling for the timeline store.

Request handlers run in a thread pool and share one engine. Each connection
waits on SQLite's busy timeout rather than failing when another request holds
the write lock, which is what lets two conditional timeline updates queue up
instead of erroring.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ..config import get_config
from .models import Base

# Seconds a connection waits for a competing writer
BUSY_TIMEOUT = 15

_engine: Engine | None = None
_SessionFactory: sessionmaker | None = None


def _enable_foreign_keys(dbapi_connection, connection_record):
    """Turn on foreign key enforcement, which SQLite leaves off per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _resolve_path(db_path: Path | str | None) -> Path:
    if db_path is None:
        return get_config().paths.database
    return Path(db_path)


def init_db(db_path: Path | str | None = None) -> Engine:
    """Open the timeline database, creating its file and tables if missing.

    Calling this again replaces the current engine, so tests can point the
    store at a fresh file.

    Args:
        db_path: SQLite file. Defaults to paths.database from config

    Returns:
        The new Engine
    """
    global _engine, _SessionFactory

    close_db()
    path = _resolve_path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    _engine = create_engine(
        f"sqlite:///{path}",
        echo=False,
        connect_args={"check_same_thread": False, "timeout": BUSY_TIMEOUT},
    )
    event.listen(_engine, "connect", _enable_foreign_keys)
    Base.metadata.create_all(_engine)

    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)
    return _engine


def get_session() -> Session:
    """New session on the timeline database, opening the configured file on first use."""
    if _SessionFactory is None:
        init_db()
    return _SessionFactory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """One transaction: committed on normal exit, rolled back if the body raises.

    Yields:
        SQLAlchemy Session instance
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def reset_db(db_path: Path | str | None = None) -> None:
    """Drop every campaign, timeline, story arc and event, then reopen empty.

    Args:
        db_path: SQLite file to reopen. Defaults to paths.database from config
    """
    if _engine is not None:
        Base.metadata.drop_all(_engine)
    init_db(db_path)


def close_db() -> None:
    """Dispose of the engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None
