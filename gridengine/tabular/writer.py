from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from typing import Any

import pandas as pd

from ..models.cell import DEFAULT_MISSING_MARKERS, coerce_cell, format_number
from ..models.results import ExportResult
from ..models.row import Row

"""Export encoders for the current view.

Row identifiers are internal and never exported. Columns are the union of all
row columns in first-seen order; absent cells are written empty (csv / md) or
as the missing-marker value itself (json).
"""

__all__ = [
    "EXPORT_FORMATS",
    "MIME_TYPES",
    "export_rows",
    "to_json",
    "to_csv",
    "to_sql",
    "to_markdown",
]

MIME_TYPES = {
    "json": "application/json",
    "csv": "text/csv",
    "sql": "application/sql",
    "md": "text/markdown",
}
EXPORT_FORMATS = tuple(MIME_TYPES)


def _columns(rows: Sequence[Row]) -> list[str]:
    columns: dict[str, None] = {}
    for row in rows:
        for column in row.values:
            columns.setdefault(column, None)
    return list(columns)


def to_json(rows: Sequence[Row]) -> str:
    return json.dumps([dict(row.values) for row in rows], indent=2, ensure_ascii=False, default=str)


def to_csv(rows: Sequence[Row]) -> str:
    columns = _columns(rows)
    df = pd.DataFrame([row.values for row in rows], columns=columns)
    return df.to_csv(index=False, lineterminator="\n")


def _sql_literal(value: Any, missing_markers: Iterable[str]) -> str:
    cell = coerce_cell(value, missing_markers)
    if cell.missing:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return format_number(value)
    return "'" + str(value).replace("'", "''") + "'"


def _quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _quote_table(table: str) -> str:
    # "schema.table" quotes each part
    return ".".join(_quote_ident(part) for part in table.split("."))


def to_sql(rows: Sequence[Row], table: str = "data", missing_markers: Iterable[str] = DEFAULT_MISSING_MARKERS) -> str:
    """One INSERT statement per row; strings single-quoted with '' escaping."""
    markers = frozenset(missing_markers)
    target = _quote_table(table)
    statements = []
    for row in rows:
        cols = ", ".join(_quote_ident(c) for c in row.values)
        vals = ", ".join(_sql_literal(v, markers) for v in row.values.values())
        statements.append(f"INSERT INTO {target} ({cols}) VALUES ({vals});")
    return "\n".join(statements) + ("\n" if statements else "")


def _md_cell(value: Any) -> str:
    if value is None:
        return ""
    text = format_number(value) if isinstance(value, float) else str(value)
    return text.replace("|", "\\|").replace("\n", " ")


def to_markdown(rows: Sequence[Row]) -> str:
    columns = _columns(rows)
    if not columns:
        return ""
    lines = [
        "| " + " | ".join(_md_cell(c) for c in columns) + " |",
        "| " + " | ".join("---" for _ in columns) + " |",
    ]
    for row in rows:
        lines.append("| " + " | ".join(_md_cell(row.get(c)) for c in columns) + " |")
    return "\n".join(lines) + "\n"


def export_rows(
    rows: Sequence[Row],
    fmt: str,
    *,
    sql_table: str = "data",
    missing_markers: Iterable[str] = DEFAULT_MISSING_MARKERS,
) -> ExportResult:
    fmt = fmt.lower()
    if fmt == "json":
        content = to_json(rows)
    elif fmt == "csv":
        content = to_csv(rows)
    elif fmt == "sql":
        content = to_sql(rows, sql_table, missing_markers)
    elif fmt == "md":
        content = to_markdown(rows)
    else:
        raise ValueError(f"unsupported export format: {fmt}")
    return ExportResult(content=content, format=fmt, mime_type=MIME_TYPES[fmt])
