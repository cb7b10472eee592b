"""Row conversion helpers for the SQLite completion store.

Timestamps are normalized to timezone-aware UTC ``datetime`` objects on read.
"""

from __future__ import annotations

import json
from contextlib import suppress
from datetime import datetime, timezone
from typing import Any, Dict

from ..interfaces.repos import PromptRecord, ResponseRecord


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_created_at(raw: Any) -> datetime:
    """Parse a stored timestamp into an aware UTC ``datetime`` (epoch on garbage)."""
    if isinstance(raw, datetime):
        return raw if raw.tzinfo else raw.replace(tzinfo=timezone.utc)
    if isinstance(raw, str):
        with suppress(ValueError, TypeError):
            dt = datetime.fromisoformat(raw)
            return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    return datetime.fromtimestamp(0, tz=timezone.utc)


def _load_json(raw: Any) -> Dict[str, Any]:
    with suppress(ValueError, TypeError):
        value = json.loads(raw)
        if isinstance(value, dict):
            return value
    return {}


def _prompt_from_row(r: Any) -> PromptRecord:
    names: Any = None
    with suppress(ValueError, TypeError):
        names = json.loads(r["attachments_json"])
    return PromptRecord(
        id=r["id"],
        prompt=r["prompt"],
        attachment_names=list(names) if isinstance(names, list) else [],
        metadata=_load_json(r["metadata_json"]),
        created_at=_parse_created_at(r["created_at"]),
    )


def _response_from_row(r: Any) -> ResponseRecord:
    return ResponseRecord(
        id=int(r["id"]),
        prompt_id=r["prompt_id"],
        provider_id=r["provider_id"],
        model_id=r["model_id"],
        text=r["text"],
        error=r["error"],
        execution_time_ms=int(r["execution_time_ms"]),
        tokens_used=int(r["tokens_used"]) if r["tokens_used"] is not None else None,
        metadata=_load_json(r["metadata_json"]),
        created_at=_parse_created_at(r["created_at"]),
    )
