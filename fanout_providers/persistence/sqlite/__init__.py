from __future__ import annotations

from .completion_store import SqliteCompletionStore
from .engine import create_connection, db_session, get_db_path, init_schema

__all__ = [
    "create_connection",
    "db_session",
    "get_db_path",
    "init_schema",
    "SqliteCompletionStore",
]
