from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ..models.cell import coerce_cell
from ..models.config_models import EngineConfig
from ..models.results import (
    CommandOutcome,
    StatsResult,
    TrimResult,
    UnrecognizedCommand,
    ViewResult,
)
from ..models.row import Row
from ..tabular.writer import EXPORT_FORMATS, export_rows
from .materializer import (
    EQUALITY_OPS,
    FILTER_OPERATORS,
    INEQUALITY_OPS,
    column_stats,
    filter_rows,
    project_rows,
    sort_rows,
)
from .mutations import trim_rows

"""Command interpreter.

Grammar (whitespace separated, verb case-insensitive; double or single quotes
group words and are stripped):

    FILTER <column> <op> <value...>     op: > < = == != !== >= <= contains
    SORT   <column> [ASC|DESC]
    SELECT <col1,col2,...>
    STATS  <column>
    TRIM   <column>
    EXPORT <json|csv|sql|md>

FILTER takes everything after the operator as the value, so unquoted values
may contain spaces.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "CommandParseError",
    "ParsedCommand",
    "CommandInterpreter",
    "tokenize",
    "unquote",
]

_TOKEN_RE = re.compile(r'"([^"]*)"|\'([^\']*)\'|(\S+)')
_QUOTES = "\"'"


class CommandParseError(Exception):
    """Malformed command text."""


@dataclass(frozen=True)
class Token:
    text: str
    start: int
    end: int


@dataclass(frozen=True)
class ParsedCommand:
    verb: str
    args: tuple[str, ...] = ()
    raw: str = ""


def unquote(text: str) -> str:
    """Strip surrounding whitespace and at most one matching pair of quotes."""
    text = text.strip()
    if len(text) >= 2 and text[0] in _QUOTES and text[-1] == text[0]:
        return text[1:-1]
    return text


def tokenize(text: str) -> list[Token]:
    tokens: list[Token] = []
    for m in _TOKEN_RE.finditer(text):
        if m.group(1) is not None:
            value = m.group(1)
        elif m.group(2) is not None:
            value = m.group(2)
        else:
            value = unquote(m.group(3))
        tokens.append(Token(value, m.start(), m.end()))
    return tokens


class CommandInterpreter:
    """Parses command text and evaluates it against a source collection."""

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig()
        self._handlers: dict[str, Callable[[ParsedCommand, Sequence[Row], bool], CommandOutcome]] = {
            "FILTER": self._filter,
            "SORT": self._sort,
            "SELECT": self._select,
            "STATS": self._stats,
            "TRIM": self._trim,
            "EXPORT": self._export,
        }

    @property
    def verbs(self) -> list[str]:
        return list(self._handlers)

    def parse(self, text: str) -> ParsedCommand:
        tokens = tokenize(text)
        if not tokens:
            raise CommandParseError("empty command")
        verb = tokens[0].text.upper()
        rest = text[tokens[0].end:].strip()

        if verb == "FILTER":
            if len(tokens) < 3:
                raise CommandParseError("FILTER requires <column> <op> <value>")
            column, op = tokens[1].text, tokens[2].text.lower()
            if op not in FILTER_OPERATORS:
                raise CommandParseError(f"unsupported FILTER operator: {tokens[2].text}")
            value = unquote(text[tokens[3].start:]) if len(tokens) > 3 else ""
            return ParsedCommand(verb, (column, op, value), text)

        if verb == "SORT":
            if len(tokens) < 2:
                raise CommandParseError("SORT requires <column>")
            direction = tokens[2].text.upper() if len(tokens) > 2 else "ASC"
            if direction not in ("ASC", "DESC"):
                raise CommandParseError(f"SORT direction must be ASC or DESC, got {tokens[2].text}")
            return ParsedCommand(verb, (tokens[1].text, direction), text)

        if verb == "SELECT":
            columns = tuple(c for c in (unquote(part) for part in rest.split(",")) if c)
            if not columns:
                raise CommandParseError("SELECT requires a comma-separated column list")
            return ParsedCommand(verb, columns, text)

        if verb in ("STATS", "TRIM"):
            if len(tokens) < 2:
                raise CommandParseError(f"{verb} requires <column>")
            return ParsedCommand(verb, (tokens[1].text,), text)

        if verb == "EXPORT":
            fmt = tokens[1].text.lower() if len(tokens) > 1 else "json"
            if fmt not in EXPORT_FORMATS:
                raise CommandParseError(
                    f"unsupported EXPORT format: {fmt} (expected one of {', '.join(EXPORT_FORMATS)})"
                )
            return ParsedCommand(verb, (fmt,), text)

        return ParsedCommand(verb, tuple(t.text for t in tokens[1:]), text)

    def uses_master(self, text: str) -> bool:
        """True for the missing-marker presets (``FILTER col = "NA"`` / ``!= "NA"``).

        Those run against the master collection so that the pair always
        partitions the whole dataset; every other command chains on the
        current view.
        """
        try:
            parsed = self.parse(text)
        except CommandParseError:
            return False
        if parsed.verb != "FILTER":
            return False
        _, op, value = parsed.args
        if op not in EQUALITY_OPS and op not in INEQUALITY_OPS:
            return False
        return coerce_cell(value, self.config.missing_markers).missing

    def execute(self, text: str, source: Sequence[Row], detached: bool = False) -> CommandOutcome:
        """Run ``text`` against ``source``.

        ``detached`` tells TRIM that the source rows are SELECT copies so its
        history entries resolve against the projection.
        """
        parsed = self.parse(text)
        handler = self._handlers.get(parsed.verb)
        if handler is None:
            if self.config.strict_commands:
                raise CommandParseError(f"unknown command: {parsed.verb}")
            logger.warning("unrecognized command verb=%s; source returned unchanged", parsed.verb)
            return UnrecognizedCommand(verb=parsed.verb, rows=list(source))
        logger.debug("command verb=%s args=%s source_rows=%d", parsed.verb, parsed.args, len(source))
        return handler(parsed, source, detached)

    def _filter(self, cmd: ParsedCommand, source: Sequence[Row], detached: bool) -> ViewResult:
        column, op, value = cmd.args
        rows = filter_rows(source, column, op, value, self.config.missing_markers)
        return ViewResult(rows=rows, detached=detached)

    def _sort(self, cmd: ParsedCommand, source: Sequence[Row], detached: bool) -> ViewResult:
        column, direction = cmd.args
        rows = sort_rows(source, column, direction == "DESC", self.config.missing_markers)
        return ViewResult(rows=rows, detached=detached)

    def _select(self, cmd: ParsedCommand, source: Sequence[Row], detached: bool) -> ViewResult:
        return ViewResult(rows=project_rows(source, cmd.args), detached=True, columns=tuple(cmd.args))

    def _stats(self, cmd: ParsedCommand, source: Sequence[Row], detached: bool) -> StatsResult:
        return column_stats(source, cmd.args[0], self.config.missing_markers)

    def _trim(self, cmd: ParsedCommand, source: Sequence[Row], detached: bool) -> TrimResult:
        action = trim_rows(source, cmd.args[0], detached=detached)
        return TrimResult(rows=list(source), action=action)

    def _export(self, cmd: ParsedCommand, source: Sequence[Row], detached: bool):
        return export_rows(
            source,
            cmd.args[0],
            sql_table=self.config.export.sql_table,
            missing_markers=self.config.missing_markers,
        )
