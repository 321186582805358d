from __future__ import annotations

import pytest

from gridengine.cli.script import parse_script, parse_script_line
from gridengine.models.messages import RequestType
from gridengine.services.interpreter import CommandParseError


def test_comments_and_blank_lines():
    assert parse_script_line("") is None
    assert parse_script_line("   # note") is None


@pytest.mark.parametrize(
    "line,expected",
    [("undo", RequestType.UNDO), ("REDO", RequestType.REDO), ("reset", RequestType.RESET),
     ("SNAPSHOT", RequestType.EXPORT_SNAPSHOT)],
)
def test_simple_verbs(line, expected):
    request = parse_script_line(line)
    assert request.type is expected
    assert request.payload == {}


def test_edit_value_keeps_spaces():
    request = parse_script_line('EDIT 2 name "Ann Lee"')
    assert request.type is RequestType.CELL_EDIT
    assert request.payload == {"index": 2, "column": "name", "value": "Ann Lee"}
    assert parse_script_line("EDIT 0 name").payload["value"] == ""


def test_edit_value_strips_only_outer_quotes():
    assert parse_script_line("EDIT 0 name '\"quoted\"'").payload["value"] == '"quoted"'
    assert parse_script_line("EDIT 0 name it's").payload["value"] == "it's"


def test_delete_single_and_many():
    assert parse_script_line("DELETE 3").payload == {"index": 3}
    request = parse_script_line("delete 1, 4")
    assert request.type is RequestType.DELETE_ROWS
    assert request.payload == {"indices": [1, 4]}


def test_selection():
    request = parse_script_line("SELECTION 0,1")
    assert request.type is RequestType.SELECTION_STATS
    assert request.payload == {"indices": [0, 1]}


def test_everything_else_is_a_command():
    request = parse_script_line("  FILTER age > 30 ")
    assert request.type is RequestType.RUN_COMMAND
    assert request.payload == {"command": "FILTER age > 30"}


@pytest.mark.parametrize("line", ["EDIT x name v", "EDIT 1", "DELETE", "DELETE a,b"])
def test_bad_lines(line):
    with pytest.raises(CommandParseError):
        parse_script_line(line)


def test_parse_script_reports_line_numbers():
    assert [r.type for r in parse_script(["FILTER a > 1", "", "UNDO"])] == [RequestType.RUN_COMMAND, RequestType.UNDO]
    with pytest.raises(CommandParseError, match="line 2"):
        parse_script(["UNDO", "DELETE nope"])
