from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from time import monotonic, perf_counter
from typing import Any, Generator

from anyio import to_thread
from routemap.core.settings import settings
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

HEALTH_CACHE_SECONDS = 5.0


@dataclass
class _DatabaseHandles:
    engine: Engine
    sessions: sessionmaker[Session]


@dataclass
class _HealthReading:
    result: dict[str, Any]
    taken_at: float

    def fresh(self) -> bool:
        return monotonic() - self.taken_at < HEALTH_CACHE_SECONDS


_handles: _DatabaseHandles | None = None
_last_health: _HealthReading | None = None


def _connect_args(url: str) -> dict[str, Any]:
    if url.startswith("postgresql"):
        return {"connect_timeout": 1}
    if url.startswith("sqlite"):
        # sessions cross threads: sync handlers and anyio worker threads
        return {"check_same_thread": False}
    return {}


def _open_handles() -> _DatabaseHandles:
    global _handles
    if _handles is None:
        engine = create_engine(
            settings.database_url,
            connect_args=_connect_args(settings.database_url),
            pool_pre_ping=True,
        )
        # state documents stay readable after the scope commits
        sessions = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        _handles = _DatabaseHandles(engine=engine, sessions=sessions)
    return _handles


def get_engine() -> Engine:
    """Engine for ``settings.database_url``, created on first use."""

    return _open_handles().engine


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Run a unit of work: commit on success, roll back on any error."""

    session = _open_handles().sessions()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def dispose_engine() -> None:
    """Drop the pooled connections so the next call rebinds to the current URL."""

    global _handles, _last_health
    if _handles is not None:
        _handles.engine.dispose()
    _handles = None
    _last_health = None


def _ping_database() -> dict[str, Any]:
    engine = get_engine()
    started = perf_counter()
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        return {"status": "fail", "dialect": engine.dialect.name, "error": str(exc)}
    return {
        "status": "ok",
        "dialect": engine.dialect.name,
        "latency_ms": round((perf_counter() - started) * 1000, 3),
        "error": None,
    }


async def check_db_health(use_cache: bool = True) -> dict[str, Any]:
    """Run ``SELECT 1`` off the event loop; readings are reused for a few seconds."""

    global _last_health
    if use_cache and _last_health is not None and _last_health.fresh():
        return _last_health.result

    result = await to_thread.run_sync(_ping_database)
    _last_health = _HealthReading(result=result, taken_at=monotonic())
    return result
