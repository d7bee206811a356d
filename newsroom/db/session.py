"""Engine and session plumbing for the publishing database.

One engine is kept per process and rebuilt whenever ``DATABASE_URL`` changes,
which is what the tests rely on when they point each case at a fresh SQLite
file. The schema itself is owned by Alembic (``alembic upgrade head``).
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from newsroom.settings import Settings, get_settings
from newsroom.utils.logging import get_logger

logger = get_logger(__name__)

SQLITE_BUSY_TIMEOUT_SECONDS = 30
POOL_RECYCLE_SECONDS = 1800


@dataclass
class _Bound:
    url: str
    engine: Engine
    factory: sessionmaker[Session]


_BOUND: Optional[_Bound] = None


def _engine_options(url: str) -> Dict[str, Any]:
    if make_url(url).get_backend_name() == "sqlite":
        return {"connect_args": {"timeout": SQLITE_BUSY_TIMEOUT_SECONDS}}
    return {"pool_pre_ping": True, "pool_recycle": POOL_RECYCLE_SECONDS}


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:  # noqa: ANN001
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _bind(url: str) -> _Bound:
    engine = create_engine(url, future=True, **_engine_options(url))
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    factory = sessionmaker(bind=engine, expire_on_commit=False, autoflush=False, future=True)
    logger.info(
        "db.engine_created",
        extra={"url": make_url(url).render_as_string(hide_password=True), "dialect": engine.dialect.name},
    )
    return _Bound(url=url, engine=engine, factory=factory)


def dispose_engine() -> None:
    """Close pooled connections and forget the engine."""
    global _BOUND
    if _BOUND is not None:
        _BOUND.engine.dispose()
        _BOUND = None


def _current(settings: Settings | None) -> _Bound:
    global _BOUND
    url = (settings or get_settings()).database_url
    if _BOUND is None or _BOUND.url != url:
        dispose_engine()
        _BOUND = _bind(url)
    return _BOUND


def get_engine(settings: Settings | None = None) -> Engine:
    return _current(settings).engine


def get_sessionmaker(settings: Settings | None = None) -> sessionmaker[Session]:
    return _current(settings).factory


@contextmanager
def session_scope(settings: Settings | None = None) -> Iterator[Session]:
    """Commit on success, roll back on any error, always close."""
    session = get_sessionmaker(settings)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
