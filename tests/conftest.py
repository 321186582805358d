# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path

import pytest

from gridengine.logging.error_log import ErrorLogBuffer
from gridengine.models.messages import Request, RequestType
from gridengine.services.engine import GridEngine
from gridengine.services.identity import IdentityAssigner


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """history_limit: 5
missing_markers: ["NA"]
fill_value: "NA"
keep_na_strings: ["NA"]
strict_commands: true
export:
  sql_table: people
session:
  ttl_minutes: 15
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "engine.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def sample_rows() -> list[dict]:
    return [
        {"a": 1, "b": "x"},
        {"a": "NA", "b": "y"},
        {"a": 3, "b": "z"},
    ]


@pytest.fixture()
def engine(tmp_path: Path) -> GridEngine:
    return GridEngine(
        assigner=IdentityAssigner(prefix="t"),
        error_log=ErrorLogBuffer(logs_dir=tmp_path / "logs"),
    )


@pytest.fixture()
def loaded_engine(engine: GridEngine, sample_rows: list[dict]) -> GridEngine:
    engine.handle(Request(RequestType.LOAD_FILE, {"rows": sample_rows}))
    return engine
