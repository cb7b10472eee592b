"""SQLite-backed implementation of ``ICompletionStore``.

Each operation opens its own connection through :func:`db_session`, so the
store is safe to call from the worker threads ``asyncio.to_thread`` uses.
Attachment payloads are not stored, only their names.
"""

from __future__ import annotations

import json
import uuid
from typing import Any, Dict, List, Optional

from ...base.models import CompletionRequest, CompletionResponse
from ..interfaces.repos import ICompletionStore, PromptRecord, ResponseRecord
from .engine import db_session
from .helpers import _prompt_from_row, _response_from_row, _utc_now_iso


class SqliteCompletionStore(ICompletionStore):
    """Prompt and per-provider response log in a single SQLite file."""

    def __init__(self, db_path: Optional[str] = None) -> None:
        self.db_path = db_path

    def save_prompt(self, request: CompletionRequest, metadata: Dict[str, Any]) -> str:
        prompt_id = uuid.uuid4().hex
        names = [a.name or "" for a in request.attachments]
        with db_session(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO prompts(id, prompt, attachments_json, metadata_json, created_at)
                VALUES(?, ?, ?, ?, ?)
                """,
                (
                    prompt_id,
                    request.prompt,
                    json.dumps(names, ensure_ascii=False),
                    json.dumps(metadata, ensure_ascii=False, default=str),
                    _utc_now_iso(),
                ),
            )
        return prompt_id

    def save(self, response: CompletionResponse, metadata: Dict[str, Any]) -> None:
        extra = {k: v for k, v in metadata.items() if k not in ("provider_id", "prompt_id")}
        with db_session(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO responses(prompt_id, provider_id, model_id, text, error,
                                      execution_time_ms, tokens_used, metadata_json, created_at)
                VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    metadata.get("prompt_id"),
                    metadata.get("provider_id") or "",
                    response.model_id,
                    response.text,
                    response.error,
                    int(response.execution_time_ms),
                    response.tokens_used,
                    json.dumps(extra, ensure_ascii=False, default=str),
                    _utc_now_iso(),
                ),
            )

    def get_prompt(self, prompt_id: str) -> Optional[PromptRecord]:
        with db_session(self.db_path) as conn:
            row = conn.execute(
                "SELECT id, prompt, attachments_json, metadata_json, created_at FROM prompts WHERE id = ?",
                (prompt_id,),
            ).fetchone()
        return _prompt_from_row(row) if row else None

    def list_responses(self, prompt_id: Optional[str] = None, limit: int = 100) -> List[ResponseRecord]:
        """Return responses oldest first, optionally for one prompt."""
        query = (
            "SELECT id, prompt_id, provider_id, model_id, text, error, execution_time_ms,"
            " tokens_used, metadata_json, created_at FROM responses"
        )
        params: tuple = ()
        if prompt_id is not None:
            query += " WHERE prompt_id = ?"
            params = (prompt_id,)
        query += " ORDER BY id ASC LIMIT ?"
        with db_session(self.db_path) as conn:
            rows = conn.execute(query, params + (limit,)).fetchall()
        return [_response_from_row(r) for r in rows]


__all__ = ["SqliteCompletionStore"]
