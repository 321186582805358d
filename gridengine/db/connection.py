from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from ..models.config_models import DatabaseConfig

"""PostgreSQL connection for the session store.

Connection parameters, highest priority first:
    1. DATABASE_URL / PGDSN environment variables (full DSN)
    2. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    3. the ``database`` section of the engine config
The CLI loads ``.env`` with python-dotenv (override=True) before connecting.
"""

__all__ = [
    "resolve_dsn",
    "session_cursor",
]


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def session_cursor(db_cfg: DatabaseConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """Cursor inside one transaction: committed on success, rolled back on error."""
    try:
        import psycopg2  # type: ignore
    except Exception as e:
        raise RuntimeError(f"psycopg2 not available: {e}") from e

    conn = psycopg2.connect(resolve_dsn(db_cfg))
    try:
        with conn:  # commit / rollback
            with conn.cursor() as cur:
                yield cur
    finally:
        conn.close()
