from __future__ import annotations

import json

import pytest

from gridengine.models.config_models import EngineConfig
from gridengine.models.results import ExportResult, StatsResult, TrimResult, UnrecognizedCommand, ViewResult
from gridengine.models.row import Row
from gridengine.services.interpreter import CommandInterpreter, CommandParseError, tokenize, unquote


@pytest.fixture()
def interp() -> CommandInterpreter:
    return CommandInterpreter()


@pytest.fixture()
def rows() -> list[Row]:
    return [
        Row("r1", {"name": "Ann Lee", "age": 31}),
        Row("r2", {"name": "bob", "age": "NA"}),
        Row("r3", {"name": "Cid", "age": 25}),
    ]


def test_tokenize_strips_quotes():
    assert [t.text for t in tokenize('FILTER name = "Ann Lee"')] == ["FILTER", "name", "=", "Ann Lee"]
    assert [t.text for t in tokenize("SORT 'full name' desc")] == ["SORT", "full name", "desc"]


def test_unquote_removes_one_matching_pair():
    assert unquote('  "x"  ') == "x"
    assert unquote("'\"x\"'") == '"x"'
    assert unquote("\"it's'\"") == "it's'"
    assert unquote("'mixed\"") == "'mixed\""
    assert unquote('"') == '"'


def test_filter_value_keeps_inner_quotes(interp):
    assert interp.parse("FILTER name = '\"Ann\"'").args == ("name", "=", '"Ann"')


def test_parse_filter_takes_rest_of_line_as_value(interp):
    parsed = interp.parse("filter name CONTAINS ann lee")
    assert parsed.verb == "FILTER"
    assert parsed.args == ("name", "contains", "ann lee")
    assert interp.parse('FILTER name = "Ann Lee"').args == ("name", "=", "Ann Lee")
    assert interp.parse("FILTER name =").args == ("name", "=", "")


@pytest.mark.parametrize(
    "text",
    ["", "FILTER name", "FILTER name ~ x", "SORT", "SORT age UP", "SELECT ,", "STATS", "TRIM", "EXPORT xml"],
)
def test_parse_errors(interp, text):
    with pytest.raises(CommandParseError):
        interp.parse(text)


def test_parse_defaults(interp):
    assert interp.parse("SORT age").args == ("age", "ASC")
    assert interp.parse("EXPORT").args == ("json",)
    assert interp.parse("SELECT name, age").args == ("name", "age")


def test_filter_and_sort_return_views(interp, rows):
    out = interp.execute("FILTER age > 26", rows)
    assert isinstance(out, ViewResult)
    assert [r.row_id for r in out.rows] == ["r1"]
    assert out.rows[0] is rows[0]

    out = interp.execute("SORT age DESC", rows)
    assert [r.row_id for r in out.rows] == ["r1", "r3", "r2"]


def test_select_is_detached(interp, rows):
    out = interp.execute("SELECT name", rows)
    assert out.detached is True
    assert out.rows[0].values == {"name": "Ann Lee"}
    assert rows[0].values == {"name": "Ann Lee", "age": 31}


def test_stats(interp, rows):
    out = interp.execute("STATS age", rows)
    assert isinstance(out, StatsResult)
    assert out.to_dict() == {"column": "age", "count": 2, "min": 25, "max": 31, "sum": 56, "avg": 28}


def test_trim_mutates_and_reports_edits(interp):
    rows = [Row("r1", {"n": "  a "}), Row("r2", {"n": "b"}), Row("r3", {"n": 5})]
    out = interp.execute("TRIM n", rows)
    assert isinstance(out, TrimResult)
    assert rows[0]["n"] == "a"
    assert [item.row_id for item in out.action.items] == ["r1"]
    assert out.action.items[0].old_value == "  a "
    assert interp.execute("TRIM n", rows).action is None


def test_export(interp, rows):
    out = interp.execute("EXPORT json", rows)
    assert isinstance(out, ExportResult)
    assert out.mime_type == "application/json"
    assert json.loads(out.content)[0] == {"name": "Ann Lee", "age": 31}


def test_unknown_verb_strict_and_lenient(rows):
    with pytest.raises(CommandParseError, match="unknown command"):
        CommandInterpreter().execute("FROB x", rows)
    lenient = CommandInterpreter(EngineConfig(strict_commands=False))
    out = lenient.execute("FROB x", rows)
    assert isinstance(out, UnrecognizedCommand)
    assert out.verb == "FROB"
    assert out.rows == rows


def test_uses_master_only_for_missing_marker_presets(interp):
    assert interp.uses_master('FILTER age = "NA"')
    assert interp.uses_master("FILTER age !== NA")
    assert not interp.uses_master("FILTER age > NA")
    assert not interp.uses_master("FILTER age = 3")
    assert not interp.uses_master("SORT age")
    assert not interp.uses_master("FILTER broken")


def test_verbs(interp):
    assert interp.verbs == ["FILTER", "SORT", "SELECT", "STATS", "TRIM", "EXPORT"]
