from __future__ import annotations

from collections.abc import Iterable

from ..models.messages import Request, RequestType
from ..services.interpreter import CommandParseError, tokenize, unquote

"""Request scripts for the CLI.

One request per line. Blank lines and lines starting with ``#`` are skipped.

    UNDO | REDO | RESET | SNAPSHOT
    EDIT <index> <column> <value...>
    DELETE <index>[,<index>...]
    SELECTION <index>[,<index>...]
    anything else -> RUN_COMMAND (FILTER / SORT / SELECT / STATS / TRIM / EXPORT)
"""

__all__ = [
    "parse_script_line",
    "parse_script",
]

_SIMPLE = {
    "UNDO": RequestType.UNDO,
    "REDO": RequestType.REDO,
    "RESET": RequestType.RESET,
    "SNAPSHOT": RequestType.EXPORT_SNAPSHOT,
}


def _indices(text: str) -> list[int]:
    try:
        return [int(part) for part in text.replace(" ", "").split(",") if part]
    except ValueError as e:
        raise CommandParseError(f"invalid row index list: {text}") from e


def parse_script_line(line: str) -> Request | None:
    text = line.strip()
    if not text or text.startswith("#"):
        return None
    tokens = tokenize(text)
    verb = tokens[0].text.upper()

    if verb in _SIMPLE and len(tokens) == 1:
        return Request(_SIMPLE[verb])

    if verb == "EDIT":
        if len(tokens) < 3:
            raise CommandParseError("EDIT requires <index> <column> <value>")
        try:
            index = int(tokens[1].text)
        except ValueError as e:
            raise CommandParseError(f"invalid row index: {tokens[1].text}") from e
        value = unquote(text[tokens[3].start:]) if len(tokens) > 3 else ""
        return Request(RequestType.CELL_EDIT, {"index": index, "column": tokens[2].text, "value": value})

    if verb in ("DELETE", "SELECTION"):
        if len(tokens) < 2:
            raise CommandParseError(f"{verb} requires <index>[,<index>...]")
        indices = _indices(text[tokens[1].start:])
        if verb == "SELECTION":
            return Request(RequestType.SELECTION_STATS, {"indices": indices})
        if len(indices) == 1:
            return Request(RequestType.DELETE_ROW, {"index": indices[0]})
        return Request(RequestType.DELETE_ROWS, {"indices": indices})

    return Request(RequestType.RUN_COMMAND, {"command": text})


def parse_script(lines: Iterable[str]) -> list[Request]:
    requests: list[Request] = []
    for lineno, line in enumerate(lines, start=1):
        try:
            request = parse_script_line(line)
        except CommandParseError as e:
            raise CommandParseError(f"line {lineno}: {e}") from e
        if request is not None:
            requests.append(request)
    return requests
