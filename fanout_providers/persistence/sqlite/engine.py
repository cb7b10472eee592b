"""SQLite engine helpers for the persistence layer.

Purpose
-------
Open SQLite connections with the standard PRAGMAs and make sure the
``prompts`` and ``responses`` tables exist.

Timeout and reliability strategy
--------------------------------
- ``busy_timeout`` (milliseconds) from ``config.defaults`` mitigates lock
  contention between provider tasks persisting concurrently.
- WAL journaling with NORMAL synchronous mode.

The default database path is ``~/.fanout/completions.db``; the
``FANOUT_DB_PATH`` environment variable overrides it.
"""

from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from ...config.defaults import (
    SQLITE_BUSY_TIMEOUT_MS,
    SQLITE_JOURNAL_MODE,
    SQLITE_SYNCHRONOUS,
)

DEFAULT_DB_PATH = Path("~/.fanout/completions.db")


def get_db_path(db_path: Optional[str] = None) -> Path:
    """Return a concrete database file path.

    Resolution order: explicit argument, ``FANOUT_DB_PATH``, then
    ``DEFAULT_DB_PATH``. ``~`` is expanded.
    """
    raw = db_path or os.getenv("FANOUT_DB_PATH") or str(DEFAULT_DB_PATH)
    return Path(raw).expanduser()


def create_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    """Open a connection with ``row_factory = sqlite3.Row`` and PRAGMAs applied."""
    path = get_db_path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute(f"PRAGMA journal_mode={SQLITE_JOURNAL_MODE};")
    conn.execute(f"PRAGMA synchronous={SQLITE_SYNCHRONOUS};")
    conn.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS};")  # ms
    return conn


def init_schema(conn: sqlite3.Connection) -> None:
    """Create the tables if they do not exist, then commit.

    - ``prompts``: one row per fan-out request
    - ``responses``: one row per provider outcome, errors included
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS prompts (
            id TEXT PRIMARY KEY,
            prompt TEXT NOT NULL,
            attachments_json TEXT NOT NULL,
            metadata_json TEXT NOT NULL,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        );
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS responses (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            prompt_id TEXT,
            provider_id TEXT NOT NULL,
            model_id TEXT NOT NULL,
            text TEXT NOT NULL,
            error TEXT,
            execution_time_ms INTEGER NOT NULL,
            tokens_used INTEGER,
            metadata_json TEXT NOT NULL,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        );
        """
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_responses_prompt ON responses(prompt_id);")
    conn.commit()


@contextmanager
def db_session(db_path: Optional[str] = None) -> Iterator[sqlite3.Connection]:
    """Yield a connection with schema initialized.

    Commits on normal exit, rolls back on exception, always closes.
    """
    conn = create_connection(db_path)
    try:
        init_schema(conn)
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
