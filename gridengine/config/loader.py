from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import DatabaseConfig, EngineConfig, ExportConfig, SessionConfig

"""Config loader.

Responsibilities:
- Load YAML config (default config/engine.yml)
- Validate against the bundled JSON schema (engine_schema.json)
- Apply defaults for every missing key
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "default_config",
    "load_config",
]

DEFAULT_CONFIG_PATH = Path("config/engine.yml")
SCHEMA_PATH = Path(__file__).with_name("engine_schema.json")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            config data fails validation (wrong types, unknown keys, ...).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def default_config() -> EngineConfig:
    return EngineConfig()


def build_config(data: dict[str, Any]) -> EngineConfig:
    """Turn a validated mapping into an EngineConfig, filling defaults."""
    defaults = EngineConfig()
    export_raw = data.get("export") or {}
    session_raw = data.get("session") or {}
    db_raw = data.get("database") or {}
    return EngineConfig(
        history_limit=data.get("history_limit", defaults.history_limit),
        missing_markers=frozenset(data.get("missing_markers", defaults.missing_markers)),
        fill_value=data.get("fill_value", defaults.fill_value),
        keep_na_strings=tuple(data.get("keep_na_strings", defaults.keep_na_strings)),
        strict_commands=data.get("strict_commands", defaults.strict_commands),
        export=ExportConfig(sql_table=export_raw.get("sql_table", defaults.export.sql_table)),
        session=SessionConfig(ttl_minutes=session_raw.get("ttl_minutes", defaults.session.ttl_minutes)),
        database=DatabaseConfig(
            host=db_raw.get("host"),
            port=db_raw.get("port"),
            user=db_raw.get("user"),
            password=db_raw.get("password"),
            database=db_raw.get("database"),
            dsn=db_raw.get("dsn"),
        ),
    )


def load_config(path: Path) -> EngineConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)
    return build_config(data)
