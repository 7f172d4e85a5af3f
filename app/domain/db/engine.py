# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging
from collections.abc import Generator
from functools import lru_cache
from pathlib import Path
from sqlite3 import Connection as SQLiteConnection
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from domain.db.models import Base
from settings import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def ensure_data_dir() -> Path:
    """Ensure the database parent directory exists (idempotent)."""
    try:
        settings.db_data_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Ensured data directory exists at {settings.db_data_dir}")
    except Exception:
        logger.exception(f"Failed to create data directory at {settings.db_data_dir}")
        raise
    return settings.db_data_dir


@lru_cache
def get_engine() -> Engine:
    """Lazily create SQLAlchemy engine after ensuring directory."""
    if settings.database_url_override is None:
        ensure_data_dir()
    logger.debug(f"Creating engine using DB: {settings.database_url}")
    connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
    return create_engine(url=settings.database_url, connect_args=connect_args, echo=settings.db_echo)


@event.listens_for(Engine, "connect")
def _set_sqlite_fk(dbapi_connection: Any, _: Any) -> None:
    """Enable foreign key support for SQLite."""
    # https://docs.sqlalchemy.org/en/20/dialects/sqlite.html#foreign-key-support
    if not isinstance(dbapi_connection, SQLiteConnection):
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@lru_cache
def get_session_factory() -> sessionmaker[Session]:
    """Session factory (cached)."""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_session() -> Generator[Session, Any]:
    """Dependency that yields a DB session."""
    factory = get_session_factory()
    with factory() as session:
        yield session


def init_db(engine: Engine | None = None) -> None:
    """Create missing tables."""
    engine = engine or get_engine()
    try:
        logger.info("Initializing database schema...")
        Base.metadata.create_all(bind=engine)
        logger.info("✓ Database schema ready")
    except Exception:
        logger.exception("✗ Database initialization failed")
        raise
