"""Database access for the Wiggly server."""

from .connection import (
    DatabaseManager,
    get_database_manager,
    init_database,
    set_database_manager,
)

__all__ = [
    "DatabaseManager",
    "get_database_manager",
    "set_database_manager",
    "init_database",
]
