from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

"""Session snapshot store (PostgreSQL key-value table).

Persists the engine SNAPSHOT payload under a fixed key so a later run can
restore it with LOAD_EXISTING. Entries older than the configured TTL are
treated as absent and deleted on read.

Table layout (created on demand by ``ensure_table``):

    session_store(id TEXT PRIMARY KEY, file_name TEXT, payload JSONB,
                  saved_at TIMESTAMPTZ)
"""

try:  # pragma: no cover - optional until psycopg2 present at runtime
    from psycopg2.extras import Json
except Exception:  # pragma: no cover
    Json = None  # type: ignore

logger = logging.getLogger(__name__)

__all__ = [
    "SESSION_KEY",
    "TABLE_NAME",
    "SessionStoreError",
    "StoredSession",
    "ensure_table",
    "save_snapshot",
    "load_snapshot",
    "refresh_session",
    "clear_session",
]

SESSION_KEY = "current_session"
TABLE_NAME = "session_store"


class SessionStoreError(Exception):
    pass


@dataclass(frozen=True)
class StoredSession:
    session_id: str
    file_name: str | None
    records: list[dict[str, Any]]
    saved_at: datetime


def _now() -> datetime:
    return datetime.now(UTC)


def ensure_table(cursor: Any) -> None:
    cursor.execute(
        f"CREATE TABLE IF NOT EXISTS {TABLE_NAME} ("
        "id TEXT PRIMARY KEY, file_name TEXT, payload JSONB NOT NULL, saved_at TIMESTAMPTZ NOT NULL)"
    )


def save_snapshot(
    cursor: Any,
    records: list[dict[str, Any]],
    file_name: str | None = None,
    session_id: str = SESSION_KEY,
    now: datetime | None = None,
) -> None:
    """Upsert the snapshot records under ``session_id``."""
    if Json is None:
        raise SessionStoreError("psycopg2 not available")
    try:
        cursor.execute(
            f"INSERT INTO {TABLE_NAME} (id, file_name, payload, saved_at) VALUES (%s, %s, %s, %s) "
            "ON CONFLICT (id) DO UPDATE SET file_name = EXCLUDED.file_name, "
            "payload = EXCLUDED.payload, saved_at = EXCLUDED.saved_at",
            (session_id, file_name, Json(records), now or _now()),
        )
    except Exception as e:
        raise SessionStoreError(f"failed to save session: {e}") from e
    logger.debug("session saved id=%s rows=%d", session_id, len(records))


def load_snapshot(
    cursor: Any,
    ttl: timedelta,
    session_id: str = SESSION_KEY,
    now: datetime | None = None,
) -> StoredSession | None:
    """Stored session, or None when absent or expired (expired rows are deleted)."""
    try:
        cursor.execute(
            f"SELECT id, file_name, payload, saved_at FROM {TABLE_NAME} WHERE id = %s",
            (session_id,),
        )
        row = cursor.fetchone()
    except Exception as e:
        raise SessionStoreError(f"failed to load session: {e}") from e
    if row is None:
        return None
    sid, file_name, payload, saved_at = row
    if (now or _now()) - saved_at > ttl:
        logger.info("session %s expired (saved_at=%s); discarding", sid, saved_at.isoformat())
        clear_session(cursor, session_id)
        return None
    return StoredSession(session_id=sid, file_name=file_name, records=list(payload or []), saved_at=saved_at)


def refresh_session(cursor: Any, session_id: str = SESSION_KEY, now: datetime | None = None) -> None:
    """Bump ``saved_at`` so an open session does not expire."""
    cursor.execute(
        f"UPDATE {TABLE_NAME} SET saved_at = %s WHERE id = %s",
        (now or _now(), session_id),
    )


def clear_session(cursor: Any, session_id: str = SESSION_KEY) -> None:
    cursor.execute(f"DELETE FROM {TABLE_NAME} WHERE id = %s", (session_id,))
