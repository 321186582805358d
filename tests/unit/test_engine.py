from __future__ import annotations

import pytest

from gridengine.models.config_models import EngineConfig
from gridengine.models.messages import Request, RequestType, ResponseType
from gridengine.services.engine import GridEngine


def _types(responses) -> list[ResponseType]:
    return [r.type for r in responses]


def _run(engine: GridEngine, command: str):
    return engine.handle(Request(RequestType.RUN_COMMAND, {"command": command}))


def test_load_file_from_rows(engine, sample_rows):
    out = engine.handle(Request(RequestType.LOAD_FILE, {"rows": sample_rows}))
    assert _types(out) == [ResponseType.DATA_LOADED, ResponseType.PERSIST_NEEDED]
    assert [r["__id"] for r in out[0].payload] == ["rt-1", "rt-2", "rt-3"]
    assert out[0].payload[0] == {"__id": "rt-1", "a": 1, "b": "x"}
    assert out[1].payload == {"reason": "load"}


def test_load_file_from_path(engine, tmp_path):
    csv = tmp_path / "people.csv"
    csv.write_text("name,age\nann,31\nbob,\n", encoding="utf-8")
    out = engine.handle(Request(RequestType.LOAD_FILE, {"path": str(csv)}))
    assert out[0].type is ResponseType.DATA_LOADED
    assert [r.values for r in engine.master] == [{"name": "ann", "age": 31}, {"name": "bob", "age": "NA"}]


def test_load_replaces_state_and_clears_history(loaded_engine):
    loaded_engine.handle(Request(RequestType.CELL_EDIT, {"index": 0, "column": "b", "value": "q"}))
    assert loaded_engine.history.can_undo
    loaded_engine.handle(Request(RequestType.LOAD_FILE, {"rows": [{"a": 9}]}))
    assert len(loaded_engine.master) == 1
    assert loaded_engine.history.can_undo is False


def test_load_existing_keeps_ids_without_persist(engine):
    out = engine.handle(Request(RequestType.LOAD_EXISTING, {"rows": [{"__id": "x1", "a": 1}]}))
    assert _types(out) == [ResponseType.DATA_LOADED]
    assert engine.master[0].row_id == "x1"


def test_filter_chains_on_view(loaded_engine):
    out = _run(loaded_engine, "FILTER b != x")
    assert _types(out) == [ResponseType.DATA_UPDATED]
    assert [r["b"] for r in out[0].payload] == ["y", "z"]
    out = _run(loaded_engine, "FILTER b = z")
    assert [r["b"] for r in out[0].payload] == ["z"]


def test_missing_marker_presets_use_master(loaded_engine):
    _run(loaded_engine, "FILTER b = z")
    out = _run(loaded_engine, 'FILTER a = "NA"')
    assert [r["b"] for r in out[0].payload] == ["y"]
    out = _run(loaded_engine, "FILTER a != NA")
    assert [r["b"] for r in out[0].payload] == ["x", "z"]


def test_stats_does_not_change_view(loaded_engine):
    _run(loaded_engine, "FILTER b != x")
    out = _run(loaded_engine, "STATS a")
    assert _types(out) == [ResponseType.COMMAND_RESULT]
    assert out[0].payload == {"column": "a", "count": 1, "min": 3, "max": 3, "sum": 3, "avg": 3}
    assert len(loaded_engine.view) == 2


def test_export_ready(loaded_engine):
    out = _run(loaded_engine, "EXPORT csv")
    assert _types(out) == [ResponseType.EXPORT_READY]
    assert out[0].payload["mimeType"] == "text/csv"
    assert out[0].payload["format"] == "csv"
    assert out[0].payload["content"].splitlines()[0] == "a,b"


def test_edit_then_undo_redo(loaded_engine):
    out = loaded_engine.handle(Request(RequestType.CELL_EDIT, {"index": 1, "column": "b", "value": "Y"}))
    assert _types(out) == [ResponseType.DATA_UPDATED, ResponseType.PERSIST_NEEDED, ResponseType.HISTORY_STATE]
    assert out[2].payload == {"canUndo": True, "canRedo": False}
    assert loaded_engine.master[1]["b"] == "Y"

    out = loaded_engine.handle(Request(RequestType.UNDO))
    assert out[1].payload == {"reason": "undo"}
    assert loaded_engine.master[1]["b"] == "y"
    out = loaded_engine.handle(Request(RequestType.REDO))
    assert out[2].payload == {"canUndo": True, "canRedo": False}
    assert loaded_engine.master[1]["b"] == "Y"


def test_noop_edit_and_noop_undo(loaded_engine):
    out = loaded_engine.handle(Request(RequestType.CELL_EDIT, {"index": 0, "column": "b", "value": "x"}))
    assert _types(out) == [ResponseType.DATA_UPDATED]
    out = loaded_engine.handle(Request(RequestType.CELL_EDIT, {"index": 99, "column": "b", "value": "q"}))
    assert _types(out) == [ResponseType.DATA_UPDATED]
    out = loaded_engine.handle(Request(RequestType.UNDO))
    assert _types(out) == [ResponseType.DATA_UPDATED, ResponseType.HISTORY_STATE]
    assert loaded_engine.sync.pending == 1  # only the load


def test_delete_rows_and_undo(loaded_engine):
    before = [r.row_id for r in loaded_engine.master]
    out = loaded_engine.handle(Request(RequestType.DELETE_ROWS, {"indices": [0, 2]}))
    assert [r["b"] for r in out[0].payload] == ["y"]
    loaded_engine.handle(Request(RequestType.UNDO))
    assert [r.row_id for r in loaded_engine.master] == before


def test_delete_row_single(loaded_engine):
    loaded_engine.handle(Request(RequestType.DELETE_ROW, {"index": 1}))
    assert [r["b"] for r in loaded_engine.master] == ["x", "z"]


def test_trim_is_undoable(engine):
    engine.handle(Request(RequestType.LOAD_FILE, {"rows": [{"n": "  a "}, {"n": "b"}]}))
    out = _run(engine, "TRIM n")
    assert _types(out)[-1] is ResponseType.HISTORY_STATE
    assert engine.master[0]["n"] == "a"
    engine.handle(Request(RequestType.UNDO))
    assert engine.master[0]["n"] == "  a "
    # second pass finds nothing to strip
    _run(engine, "TRIM n")
    assert _types(_run(engine, "TRIM n")) == [ResponseType.DATA_UPDATED]


def test_select_then_edit_leaves_master(loaded_engine):
    out = _run(loaded_engine, "SELECT b")
    assert out[0].payload[0] == {"__id": "rt-1", "b": "x"}
    loaded_engine.handle(Request(RequestType.CELL_EDIT, {"index": 0, "column": "b", "value": "changed"}))
    assert loaded_engine.view[0]["b"] == "changed"
    assert loaded_engine.master[0]["b"] == "x"


def test_undo_delete_under_select_restores_projection(engine):
    engine.handle(Request(RequestType.LOAD_FILE, {"rows": [{"a": 1, "b": "x"}, {"a": 2, "b": "y"}]}))
    _run(engine, "SELECT b")
    engine.handle(Request(RequestType.DELETE_ROW, {"index": 0}))
    engine.handle(Request(RequestType.UNDO))
    assert [r.to_record() for r in engine.view] == [{"__id": "rt-2", "b": "y"}, {"__id": "rt-1", "b": "x"}]
    assert all(r.detached for r in engine.view)
    engine.handle(Request(RequestType.CELL_EDIT, {"index": 1, "column": "b", "value": "CHANGED"}))
    assert engine.view[1]["b"] == "CHANGED"
    assert [r["b"] for r in engine.master] == ["x", "y"]


def test_reset_restores_full_view(loaded_engine):
    _run(loaded_engine, "SELECT b")
    out = loaded_engine.handle(Request(RequestType.RESET))
    assert len(out[0].payload) == 3
    assert loaded_engine.store.view_detached is False
    assert loaded_engine.view[0] is loaded_engine.master[0]


def test_export_snapshot(loaded_engine):
    _run(loaded_engine, "FILTER b = x")
    out = loaded_engine.handle(Request(RequestType.EXPORT_SNAPSHOT))
    assert _types(out) == [ResponseType.SNAPSHOT]
    assert len(out[0].payload) == 3
    assert all("__id" in r for r in out[0].payload)


def test_selection_stats(loaded_engine):
    out = loaded_engine.handle(Request(RequestType.SELECTION_STATS, {"indices": [0, 1, 2, 9]}))
    assert out[0].payload == {"count": 3, "sum": 4, "avg": 2}


@pytest.mark.parametrize(
    "request_",
    [
        Request(RequestType.RUN_COMMAND, {"command": "FROB a"}),
        Request(RequestType.RUN_COMMAND, {"command": "SORT a sideways"}),
        Request(RequestType.CELL_EDIT, {"column": "a", "value": 1}),
        Request(RequestType.LOAD_FILE, {"path": "does-not-exist.xlsx"}),
    ],
)
def test_errors_become_single_error_response(loaded_engine, request_):
    before = [r.to_record() for r in loaded_engine.master]
    out = loaded_engine.handle(request_)
    assert len(out) == 1
    assert out[0].is_error
    assert isinstance(out[0].payload, str) and out[0].payload
    assert [r.to_record() for r in loaded_engine.master] == before
    assert loaded_engine.errors == 1
    assert len(loaded_engine.error_log) == 1


def test_error_record_classification(loaded_engine):
    _run(loaded_engine, "FROB a")
    record = loaded_engine.error_log.records[0]
    assert record.request == "RUN_COMMAND"
    assert record.error_type == "COMMAND_PARSE_ERROR"


def test_lenient_unknown_verb_returns_view(sample_rows):
    engine = GridEngine(EngineConfig(strict_commands=False))
    engine.handle(Request(RequestType.LOAD_FILE, {"rows": sample_rows}))
    out = _run(engine, "FROB a")
    assert _types(out) == [ResponseType.DATA_UPDATED]
    assert engine.errors == 0


def test_history_limit_from_config(sample_rows):
    engine = GridEngine(EngineConfig(history_limit=1))
    engine.handle(Request(RequestType.LOAD_FILE, {"rows": sample_rows}))
    engine.handle(Request(RequestType.CELL_EDIT, {"index": 0, "column": "b", "value": "1"}))
    engine.handle(Request(RequestType.CELL_EDIT, {"index": 0, "column": "b", "value": "2"}))
    engine.handle(Request(RequestType.UNDO))
    assert engine.master[0]["b"] == "1"
    assert engine.history.can_undo is False
