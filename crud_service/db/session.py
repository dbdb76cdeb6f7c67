"""Engine, session factory and declarative base."""

from __future__ import annotations

import logging
from typing import Generator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from crud_service.core.config import settings

_LOG = logging.getLogger("crud_service.db")


class Base(DeclarativeBase):
    pass


def _unicode_upper(value):
    return value.upper() if isinstance(value, str) else value


def configure_sqlite_connections(engine: Engine) -> None:
    """Per-connection SQLite setup: FOREIGN KEY enforcement and a Unicode-aware UPPER()."""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        dbapi_connection.create_function("upper", 1, _unicode_upper, deterministic=True)


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine: Engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DATABASE_ECHO,
    **_engine_kwargs(settings.DATABASE_URL),
)
configure_sqlite_connections(engine)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    except SQLAlchemyError as exc:
        db.rollback()
        _LOG.error("Database session rollback due to error: %s", exc)
        raise
    finally:
        db.close()
