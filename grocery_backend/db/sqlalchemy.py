"""
SQLAlchemy database initialization for the local grocery store.

Provides:
- Base: Declarative base for ORM models
- build_engine: SQLAlchemy engine for a Settings instance
- build_session_factory: session factory bound to an engine
- get_db: FastAPI dependency yielding a session from the app's session factory
- get_effective_db_params: redacted connection info for diagnostics

Design:
- No engine is created at import time and nothing is cached at module level.
  The application factory builds the engine on startup, keeps it on
  ``app.state`` and disposes it on shutdown; callers receive it explicitly.
"""

from typing import Any, Dict, Generator

from fastapi import HTTPException, Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..core.config import Settings
from ..core.logger import get_logger

logger = get_logger(__name__)

# Global ORM base
Base = declarative_base()


def _is_sqlite_memory(url: str) -> bool:
    parsed = make_url(url)
    return parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:")


# PUBLIC_INTERFACE
def get_effective_db_params(url: str) -> Dict[str, Any]:
    """
    Parse and return effective DB connection params for logging without password.
    Returns:
        {
          "url_redacted": "...",
          "backend": "sqlite" | "postgresql" | ...,
          "driver": "pysqlite" | ...,
          "database": "<path or name or None>",
          "in_memory": bool
        }
    """
    try:
        parsed = make_url(url)
    except ArgumentError as exc:
        return {"url_redacted": "<invalid>", "backend": "unknown", "driver": "unknown", "error": str(exc)}
    return {
        "url_redacted": parsed.render_as_string(hide_password=True),
        "backend": parsed.get_backend_name(),
        "driver": parsed.get_driver_name(),
        "database": parsed.database or None,
        "in_memory": _is_sqlite_memory(url),
    }


# PUBLIC_INTERFACE
def build_engine(settings: Settings) -> Engine:
    """Create the SQLAlchemy Engine described by settings.

    SQLite connections are shared across FastAPI's worker threads; an in-memory
    database is pinned to a single connection so every session sees the same tables.
    """
    url = settings.DATABASE_URL
    engine_kwargs: Dict[str, Any] = {
        "future": True,
        "echo": bool(settings.DB_ECHO),
    }
    if make_url(url).get_backend_name() == "sqlite":
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if _is_sqlite_memory(url):
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs["pool_pre_ping"] = True

    engine = create_engine(url, **engine_kwargs)
    logger.info(
        "SQLAlchemy engine initialized.",
        extra={"echo": bool(settings.DB_ECHO), **get_effective_db_params(url)},
    )
    return engine


# PUBLIC_INTERFACE
def build_session_factory(engine: Engine) -> sessionmaker:
    """Return a sessionmaker bound to engine.

    Objects stay readable after commit so rows can be converted once the
    statement has been committed.
    """
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, class_=Session)


# PUBLIC_INTERFACE
def get_db(request: Request) -> Generator[Session, None, None]:
    """Yield a SQLAlchemy session from the app's session factory and ensure cleanup."""
    SessionLocal = getattr(request.app.state, "session_factory", None)
    if SessionLocal is None:
        raise HTTPException(status_code=503, detail="database_unavailable: not initialized")
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        try:
            db.close()
        except Exception as exc:
            logger.error("Error closing DB session", exc_info=exc)
