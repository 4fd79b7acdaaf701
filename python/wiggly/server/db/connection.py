"""Database engine and session management for the Wiggly server."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ..config.settings import get_settings
from .models.base import Base


class DatabaseManager:
    """Owns the SQLAlchemy engine and hands out sessions."""

    def __init__(self, database_url: Optional[str] = None) -> None:
        self.database_url = database_url or get_settings().DATABASE_URL
        connect_args = {}
        if self.database_url.startswith("sqlite"):
            # Sessions are used from worker threads (asyncio.to_thread).
            connect_args["check_same_thread"] = False
            self._ensure_sqlite_dir()
        self.engine: Engine = create_engine(
            self.database_url, connect_args=connect_args, future=True
        )
        self.SessionLocal = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False, expire_on_commit=False
        )

    def _ensure_sqlite_dir(self) -> None:
        prefix = "sqlite:///"
        if not self.database_url.startswith(prefix):
            return
        raw_path = self.database_url[len(prefix):]
        if raw_path in ("", ":memory:"):
            return
        Path(raw_path).parent.mkdir(parents=True, exist_ok=True)

    def get_session(self) -> Session:
        return self.SessionLocal()

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self) -> None:
        Base.metadata.drop_all(bind=self.engine)


_db_manager: Optional[DatabaseManager] = None
_lock = threading.Lock()


def get_database_manager() -> DatabaseManager:
    """Get (or create) the process-local DatabaseManager."""
    global _db_manager
    if _db_manager is None:
        with _lock:
            if _db_manager is None:
                _db_manager = DatabaseManager()
    return _db_manager


def set_database_manager(manager: Optional[DatabaseManager]) -> None:
    """Override (or clear, with None) the process-local manager (tests)."""
    global _db_manager
    with _lock:
        _db_manager = manager


def init_database(force: bool = False) -> bool:
    """Create all tables; with ``force`` drop them first."""
    manager = get_database_manager()
    try:
        if force:
            manager.drop_tables()
        manager.create_tables()
        return True
    except Exception as e:
        logger.error("Failed to initialize database {}: {}", manager.database_url, e)
        return False
