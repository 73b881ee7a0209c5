"""
Database utilities for the media catalog backend.

Uses SQLAlchemy 2.0 style engine/sessions, configured by environment variables.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from media_catalog.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)


def _redact_sqlalchemy_url(url: str) -> str:
    """Hide the password of a database URL for logging."""
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return "<redacted>"


def _normalize_sqlalchemy_database_url(database_url: str) -> str:
    """Rewrite the 'postgres://' scheme some hosts hand out to 'postgresql://'."""
    if database_url.startswith("postgres://"):
        return "postgresql://" + database_url[len("postgres://") :]
    return database_url


def _build_database_url() -> str:
    """
    Build a SQLAlchemy database URL from environment variables.

    DATABASE_URL wins when set. Otherwise POSTGRES_URL names the host
    (optionally host:port) and POSTGRES_USER, POSTGRES_PASSWORD and POSTGRES_DB
    are required; POSTGRES_PORT overrides the port.

    Raises:
        RuntimeError: if configuration is missing or incomplete.
    """
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return _normalize_sqlalchemy_database_url(database_url)

    host = (os.getenv("POSTGRES_URL") or "").strip()
    if not host:
        raise RuntimeError(
            "Database configuration missing. Set DATABASE_URL or POSTGRES_URL "
            "with POSTGRES_USER, POSTGRES_PASSWORD and POSTGRES_DB."
        )

    user = os.getenv("POSTGRES_USER")
    password = os.getenv("POSTGRES_PASSWORD")
    database = os.getenv("POSTGRES_DB")
    if not (user and password and database):
        raise RuntimeError(
            "Database configuration incomplete. POSTGRES_USER, POSTGRES_PASSWORD "
            "and POSTGRES_DB are required with POSTGRES_URL."
        )

    port = 5432
    if ":" in host and host.rsplit(":", 1)[1].isdigit():
        host, port_text = host.rsplit(":", 1)
        port = int(port_text)
    port_env = os.getenv("POSTGRES_PORT", "")
    if port_env.isdigit():
        port = int(port_env)

    url = URL.create(
        "postgresql+psycopg2",
        username=user,
        password=password,
        host=host,
        port=port,
        database=database,
    )
    return url.render_as_string(hide_password=False)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


_ENGINE: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


# PUBLIC_INTERFACE
def init_engine(url: Optional[str] = None) -> Engine:
    """
    (Re)create the SQLAlchemy Engine and session factory.

    Args:
        url: explicit database URL; defaults to the environment configuration.

    Returns:
        The new Engine.
    """
    global _ENGINE, _SessionLocal
    url = _normalize_sqlalchemy_database_url(url) if url else _build_database_url()

    logger.info("DB: using database url=%s", _redact_sqlalchemy_url(url))

    kwargs: Dict[str, Any] = {"pool_pre_ping": True}
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees an empty database.
            kwargs["poolclass"] = StaticPool

    if _ENGINE is not None:
        _ENGINE.dispose()

    _ENGINE = create_engine(url, **kwargs)
    if is_sqlite:
        event.listen(_ENGINE, "connect", _enable_sqlite_foreign_keys)

    _SessionLocal = sessionmaker(bind=_ENGINE, autoflush=False, autocommit=False)
    return _ENGINE


# PUBLIC_INTERFACE
def get_engine() -> Engine:
    """Return (and lazily create) the SQLAlchemy Engine."""
    if _ENGINE is None:
        return init_engine()
    return _ENGINE


# PUBLIC_INTERFACE
def dispose_engine() -> None:
    """Close pooled connections and forget the Engine."""
    global _ENGINE, _SessionLocal
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _SessionLocal = None


# PUBLIC_INTERFACE
@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Yield a SQLAlchemy Session, handling commit/rollback.

    Usage:
        with get_db_session() as db:
            ...

    Yields:
        Session: an active SQLAlchemy session.
    """
    get_engine()
    assert _SessionLocal is not None  # created by init_engine()
    db = _SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# PUBLIC_INTERFACE
def db_session_dep() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a DB session.

    - converts missing DB configuration into HTTP 503
    - converts DB connection issues that escape the route into HTTP 503
    """
    try:
        with get_db_session() as db:
            yield db
    except RuntimeError as exc:
        # Typically thrown by _build_database_url() for missing/invalid env configuration.
        raise ServiceUnavailableError(str(exc))
    except SQLAlchemyError as exc:
        logger.exception("DB: session failed")
        raise ServiceUnavailableError(
            f"Database connection/query failed. ({exc.__class__.__name__})"
        )
