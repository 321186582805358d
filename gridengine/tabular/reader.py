from __future__ import annotations

import json
import math
import zipfile
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

"""Tabular file decoding.

Spreadsheet and CSV parsing is pandas' job; this module only picks the reader,
controls NA conversion and turns the frame into plain ``dict`` records:

- first row is the header (names stripped, blank names become ``column_<n>``)
- cells pandas reports as NaN are filled with ``fill_value`` (default "NA")
- strings listed in ``keep_na_strings`` stay text instead of becoming NaN
- numpy scalars become Python int / float (integral floats become int)
- fully empty rows are dropped
"""

__all__ = [
    "SUPPORTED_SUFFIXES",
    "TableReadError",
    "TableData",
    "read_table",
    "read_frame",
    "normalize_frame",
    "records_from_json",
]

SUPPORTED_SUFFIXES = (".xlsx", ".xls", ".csv", ".json")


class TableReadError(Exception):
    """Raised when a file cannot be decoded into records."""


@dataclass
class TableData:
    source: str
    columns: list[str]
    rows: list[dict[str, Any]]


def _na_options(keep_na_strings: Iterable[str] | None) -> dict[str, Any]:
    # pandas' default NA string set lives in pandas._libs.parsers.STR_NA_VALUES
    import pandas._libs.parsers as parsers

    keep = set(keep_na_strings or ())
    if not keep:
        return {"keep_default_na": True}
    return {
        "keep_default_na": False,
        "na_values": sorted(parsers.STR_NA_VALUES - keep),
    }


def read_frame(path: Path, keep_na_strings: Iterable[str] | None = None, sheet: str | int = 0) -> pd.DataFrame:
    """Read a spreadsheet / CSV file into a raw DataFrame (header = first row)."""
    suffix = path.suffix.lower()
    options = _na_options(keep_na_strings)
    try:
        if suffix in (".xlsx", ".xls"):
            return pd.read_excel(path, sheet_name=sheet, **options)
        if suffix == ".csv":
            return pd.read_csv(path, **options)
    except (OSError, ValueError, zipfile.BadZipFile) as e:
        raise TableReadError(f"failed to read {path.name}: {e}") from e
    raise TableReadError(f"unsupported file type: {path.suffix or path.name}")


def _plain_value(value: Any, fill_value: Any) -> Any:
    if value is None:
        return fill_value
    if isinstance(value, (str, bytes)):
        return value
    if pd.isna(value):
        return fill_value
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    if hasattr(value, "item"):
        # numpy scalar -> Python scalar
        value = value.item()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _column_names(raw: Iterable[Any]) -> list[str]:
    names: list[str] = []
    for i, c in enumerate(raw, start=1):
        name = "" if c is None or (isinstance(c, float) and math.isnan(c)) else str(c).strip()
        if not name or name.startswith("Unnamed:"):
            name = f"column_{i}"
        names.append(name)
    return names


def normalize_frame(df: pd.DataFrame, fill_value: Any = "NA") -> TableData:
    columns = _column_names(df.columns.tolist())
    rows: list[dict[str, Any]] = []
    for _, raw in df.iterrows():
        if raw.isna().all():
            continue
        rows.append(
            {col: _plain_value(val, fill_value) for col, val in zip(columns, raw.tolist(), strict=False)}
        )
    return TableData(source="", columns=columns, rows=rows)


def records_from_json(text: str, fill_value: Any = "NA") -> list[dict[str, Any]]:
    """Records from a JSON document: a top-level array, or ``{"data": [...]}``."""
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise TableReadError(f"invalid JSON: {e}") from e
    if isinstance(doc, list):
        items = doc
    elif isinstance(doc, dict):
        items = doc.get("data") or []
    else:
        items = None
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        raise TableReadError("JSON input must be an array of objects")
    return [{str(k): (fill_value if v is None else v) for k, v in item.items()} for item in items]


def read_table(
    path: Path,
    *,
    keep_na_strings: Iterable[str] | None = ("NA",),
    fill_value: Any = "NA",
    sheet: str | int = 0,
) -> TableData:
    """Decode ``path`` into records (first sheet for workbooks)."""
    if not path.exists():
        raise TableReadError(f"file not found: {path}")
    if path.suffix.lower() == ".json":
        rows = records_from_json(path.read_text(encoding="utf-8"), fill_value)
        columns: list[str] = []
        for row in rows:
            columns.extend(k for k in row if k not in columns)
        return TableData(source=path.name, columns=columns, rows=rows)

    df = read_frame(path, keep_na_strings=keep_na_strings, sheet=sheet)
    table = normalize_frame(df, fill_value)
    table.source = path.name
    return table
