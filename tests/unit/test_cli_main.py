from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from gridengine.cli import main as cli_main
from gridengine.db.session_store import StoredSession
from gridengine.logging.init import reset_logging


@pytest.fixture()
def people_csv(temp_workdir: Path) -> Path:
    reset_logging()
    p = temp_workdir / "data" / "people.csv"
    p.write_text("name,age\nann,31\nbob,NA\ncid,25\n", encoding="utf-8")
    return p


def test_commands_and_summary(people_csv: Path, capsys):
    code = cli_main([str(people_csv), "-c", "FILTER age > 26", "-c", "STATS age", "-c", "EDIT 0 name Ann"])
    out = capsys.readouterr().out
    assert code == 0
    assert 'INFO result {"column": "age", "count": 1, "min": 31, "max": 31, "sum": 31, "avg": 31}' in out
    assert "SUMMARY rows=3 view=1 requests=4 errors=0 undo=1 redo=0 elapsed_sec=" in out


def test_request_errors_exit_2_and_write_error_log(people_csv: Path, temp_workdir: Path, capsys):
    code = cli_main([str(people_csv), "-c", "FROB age"])
    out = capsys.readouterr().out
    assert code == 2
    assert "ERROR request=RUN_COMMAND failed: unknown command: FROB" in out
    assert "errors=1" in out
    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    record = json.loads(logs[0].read_text(encoding="utf-8").splitlines()[0])
    assert record["error_type"] == "COMMAND_PARSE_ERROR"


def test_no_input_is_fatal(temp_workdir: Path, capsys):
    reset_logging()
    assert cli_main([]) == 1
    assert "ERROR no input file given" in capsys.readouterr().out


def test_unreadable_input_is_fatal(people_csv: Path, temp_workdir: Path, capsys):
    assert cli_main([str(temp_workdir / "data" / "missing.xlsx")]) == 1
    assert "ERROR load failed: file not found" in capsys.readouterr().out


def test_explicit_config_must_exist(people_csv: Path, capsys):
    assert cli_main([str(people_csv), "--config", "config/absent.yml"]) == 1
    assert "ERROR config: config file not found" in capsys.readouterr().out


def test_default_config_file_is_used(people_csv: Path, write_config: Path, temp_workdir: Path):
    out_file = temp_workdir / "out.sql"
    assert cli_main([str(people_csv), "--export", "sql", "--output", str(out_file)]) == 0
    assert out_file.read_text(encoding="utf-8").startswith('INSERT INTO "people" ("name", "age")')


def test_script_file(people_csv: Path, temp_workdir: Path, capsys):
    script = temp_workdir / "steps.txt"
    script.write_text("# clean up\nDELETE 1\nUNDO\nREDO\nSORT age DESC\nEXPORT csv\n", encoding="utf-8")
    assert cli_main([str(people_csv), "--script", str(script)]) == 0
    out = capsys.readouterr().out
    assert "name,age\nann,31\ncid,25\n" in out
    assert "SUMMARY rows=2 view=2 requests=6" in out


def test_script_parse_error_is_fatal(people_csv: Path, temp_workdir: Path, capsys):
    script = temp_workdir / "steps.txt"
    script.write_text("UNDO\nEDIT x y z\n", encoding="utf-8")
    assert cli_main([str(people_csv), "--script", str(script)]) == 1
    assert "ERROR script: line 2: invalid row index: x" in capsys.readouterr().out


def test_inspect_data(people_csv: Path, capsys):
    assert cli_main([str(people_csv), "--inspect-data"]) == 0
    out = capsys.readouterr().out
    assert "ROWS: 3" in out
    assert "COLUMN: name type=text" in out
    assert "COLUMN: age type=number" in out
    assert out.count("sample_row=") == 3
    assert "SUMMARY" not in out


def test_debug_flag(people_csv: Path, capsys):
    assert cli_main([str(people_csv), "--debug", "-c", "SORT age"]) == 0
    out = capsys.readouterr().out
    assert "DEBUG debug mode enabled" in out
    assert "DEBUG view rows=3" in out


def test_session_save_skipped_when_db_disabled(people_csv: Path, capsys):
    assert cli_main([str(people_csv), "--save-session"]) == 0
    assert "INFO session save skipped: DB disabled" in capsys.readouterr().out


@contextmanager
def _fake_cursor(*_args, **_kwargs):
    yield MagicMock()


def test_session_save_and_restore(people_csv: Path, monkeypatch, capsys):
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    with patch("gridengine.cli.__main__.session_cursor", _fake_cursor), \
         patch("gridengine.cli.__main__.save_snapshot") as save:
        assert cli_main([str(people_csv), "--save-session"]) == 0
    records = save.call_args[0][1]
    assert [r["name"] for r in records] == ["ann", "bob", "cid"]
    assert save.call_args[1]["file_name"] == "people.csv"

    reset_logging()
    capsys.readouterr()
    stored = StoredSession("current_session", "people.csv", records[:2], datetime.now(UTC))
    with patch("gridengine.cli.__main__.session_cursor", _fake_cursor), \
         patch("gridengine.cli.__main__.load_snapshot", return_value=stored):
        assert cli_main(["--restore-session", "-c", "STATS age"]) == 0
    out = capsys.readouterr().out
    assert "INFO restoring session file=people.csv rows=2" in out
    assert "SUMMARY rows=2" in out


def test_restore_falls_back_to_file_when_store_unreachable(people_csv: Path, monkeypatch, capsys):
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)

    @contextmanager
    def _down(*_args, **_kwargs):
        raise RuntimeError("connection refused")
        yield

    with patch("gridengine.cli.__main__.session_cursor", _down):
        assert cli_main([str(people_csv), "--restore-session"]) == 0
    out = capsys.readouterr().out
    assert "session store unavailable" in out
    assert "SUMMARY rows=3" in out
