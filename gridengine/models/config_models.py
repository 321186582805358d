from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the tabular engine.

Loaded from YAML by ``gridengine.config.loader``; every field has a default so
``EngineConfig()`` is a usable configuration on its own.
"""

__all__ = [
    "DatabaseConfig",
    "ExportConfig",
    "SessionConfig",
    "EngineConfig",
]


@dataclass(frozen=True)
class DatabaseConfig:
    """Session store connection fallback.

    Environment variables (DATABASE_URL / PGDSN / PG*) take precedence.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ExportConfig:
    sql_table: str = "data"  # table name in EXPORT sql INSERT statements


@dataclass(frozen=True)
class SessionConfig:
    ttl_minutes: int = 15  # snapshots older than this are discarded on load


@dataclass(frozen=True)
class EngineConfig:
    """Root configuration object for the engine and CLI."""
    history_limit: int = 50
    missing_markers: frozenset[str] = frozenset({"NA"})
    fill_value: str = "NA"  # written into empty cells at decode time
    keep_na_strings: tuple[str, ...] = ("NA",)  # strings pandas must not turn into NaN
    strict_commands: bool = True
    export: ExportConfig = field(default_factory=ExportConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
