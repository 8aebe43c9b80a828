from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from core.config import get_settings
from core.models import Base

__all__ = ["Base", "QueryStats", "get_engine", "get_query_stats", "get_session_factory", "reset_engine", "session_scope"]


@dataclass
class QueryStats:
    total: int = 0
    slow: int = 0
    p50_ms: float = 0.0
    p95_ms: float = 0.0


_query_samples: list[float] = []


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


def build_engine(url: str) -> Engine:
    engine = create_engine(url, pool_pre_ping=True, connect_args=_connect_args(url))

    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        context._query_start_time = time.perf_counter()

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        elapsed = (time.perf_counter() - context._query_start_time) * 1000
        _query_samples.append(elapsed)
        if len(_query_samples) > 1000:
            _query_samples.pop(0)

    if url.startswith("sqlite"):

        @event.listens_for(engine, "connect")
        def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return build_engine(get_settings().database_url)


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker[Session]:
    return sessionmaker(bind=get_engine(), autoflush=False, autocommit=False, expire_on_commit=False)


def reset_engine() -> None:
    """Drop cached engine and session factory, e.g. after DATABASE_URL changes."""
    if get_engine.cache_info().currsize:
        get_engine().dispose()
    get_session_factory.cache_clear()
    get_engine.cache_clear()


@contextmanager
def session_scope() -> Iterator[Session]:
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_query_stats() -> QueryStats:
    if not _query_samples:
        return QueryStats()
    ordered = sorted(_query_samples)
    p50 = ordered[int(len(ordered) * 0.5)]
    p95 = ordered[int(len(ordered) * 0.95)]
    return QueryStats(
        total=len(_query_samples),
        slow=sum(1 for s in _query_samples if s > 250),
        p50_ms=round(p50, 2),
        p95_ms=round(p95, 2),
    )
