from __future__ import annotations

import functools
from collections.abc import Iterable, Sequence

from ..models.cell import DEFAULT_MISSING_MARKERS, Cell, coerce_cell
from ..models.results import SelectionStats, StatsResult
from ..models.row import Row

"""View materialization: filter, sort, project, aggregate.

FILTER and SORT return new lists holding the *same* Row objects as their
input; only ``project_rows`` (SELECT) builds new, detached rows.

Comparison rules:
- both sides numeric -> numeric comparison
- otherwise: ``=`` / ``!=`` compare case-insensitively, ordering operators
  compare the text forms case-sensitively, ``contains`` is a
  case-insensitive substring test
- a missing field never satisfies a predicate, unless the filter value is
  itself the missing-marker: then ``=``/``==`` select missing fields and
  ``!=``/``!==`` select present ones
"""

__all__ = [
    "FILTER_OPERATORS",
    "matches",
    "filter_rows",
    "compare_cells",
    "sort_rows",
    "project_rows",
    "column_stats",
    "selection_stats",
    "infer_column_type",
]

EQUALITY_OPS = {"=", "=="}
INEQUALITY_OPS = {"!=", "!=="}
FILTER_OPERATORS = frozenset(EQUALITY_OPS | INEQUALITY_OPS | {">", "<", ">=", "<=", "contains"})


def matches(field: Cell, op: str, target: Cell) -> bool:
    """Evaluate ``field <op> target`` on classified cells."""
    if target.missing:
        if op in EQUALITY_OPS:
            return field.missing
        if op in INEQUALITY_OPS:
            return not field.missing
        return False
    if field.missing:
        return False

    if op == "contains":
        return target.text.casefold() in field.text.casefold()

    if field.numeric and target.numeric:
        left: float | str = field.number  # type: ignore[assignment]
        right: float | str = target.number  # type: ignore[assignment]
    elif op in EQUALITY_OPS or op in INEQUALITY_OPS:
        left, right = field.text.casefold(), target.text.casefold()
    else:
        left, right = field.text, target.text

    if op in EQUALITY_OPS:
        return left == right
    if op in INEQUALITY_OPS:
        return left != right
    if op == ">":
        return left > right  # type: ignore[operator]
    if op == "<":
        return left < right  # type: ignore[operator]
    if op == ">=":
        return left >= right  # type: ignore[operator]
    if op == "<=":
        return left <= right  # type: ignore[operator]
    raise ValueError(f"unsupported operator: {op}")


def filter_rows(
    rows: Sequence[Row],
    column: str,
    op: str,
    value: object,
    missing_markers: Iterable[str] = DEFAULT_MISSING_MARKERS,
) -> list[Row]:
    markers = frozenset(missing_markers)
    if op not in FILTER_OPERATORS:
        raise ValueError(f"unsupported operator: {op}")
    target = coerce_cell(value, markers)
    return [row for row in rows if matches(coerce_cell(row.get(column), markers), op, target)]


def compare_cells(a: Cell, b: Cell) -> int:
    """Three-way compare of two present cells.

    Numbers order before text; numbers compare numerically and text compares
    lexically (case-sensitive) within its own partition.
    """
    if a.numeric != b.numeric:
        return -1 if a.numeric else 1
    if a.numeric:
        left: float | str = a.number  # type: ignore[assignment]
        right: float | str = b.number  # type: ignore[assignment]
    else:
        left, right = a.text, b.text
    if left == right:
        return 0
    return -1 if left < right else 1  # type: ignore[operator]


def sort_rows(
    rows: Sequence[Row],
    column: str,
    descending: bool = False,
    missing_markers: Iterable[str] = DEFAULT_MISSING_MARKERS,
) -> list[Row]:
    """Stable sort by one column; missing values always go last."""
    markers = frozenset(missing_markers)
    keyed = [(coerce_cell(row.get(column), markers), row) for row in rows]

    def _cmp(x: tuple[Cell, Row], y: tuple[Cell, Row]) -> int:
        a, b = x[0], y[0]
        if a.missing or b.missing:
            return int(a.missing) - int(b.missing)
        result = compare_cells(a, b)
        return -result if descending else result

    # list.sort is stable, so equal keys keep their input order
    keyed.sort(key=functools.cmp_to_key(_cmp))
    return [row for _, row in keyed]


def project_rows(rows: Sequence[Row], columns: Sequence[str]) -> list[Row]:
    """SELECT: detached copies carrying only ``columns`` (identifier kept)."""
    return [row.detached_copy(columns) for row in rows]


def column_stats(
    rows: Sequence[Row],
    column: str,
    missing_markers: Iterable[str] = DEFAULT_MISSING_MARKERS,
) -> StatsResult:
    markers = frozenset(missing_markers)
    values = [
        cell.number
        for cell in (coerce_cell(row.get(column), markers) for row in rows)
        if cell.numeric
    ]
    if not values:
        return StatsResult(column=column)
    total = sum(values)  # type: ignore[arg-type]
    return StatsResult(
        column=column,
        count=len(values),
        minimum=_plain(min(values)),  # type: ignore[type-var]
        maximum=_plain(max(values)),  # type: ignore[type-var]
        total=_plain(total),
        average=_plain(total / len(values)),
    )


def selection_stats(
    rows: Sequence[Row],
    missing_markers: Iterable[str] = DEFAULT_MISSING_MARKERS,
) -> SelectionStats:
    """Count of selected rows plus sum / average over all their numeric values."""
    markers = frozenset(missing_markers)
    numbers = [
        cell.number
        for row in rows
        for cell in (coerce_cell(v, markers) for v in row.values.values())
        if cell.numeric
    ]
    if not numbers:
        return SelectionStats(count=len(rows))
    total = sum(numbers)  # type: ignore[arg-type]
    return SelectionStats(count=len(rows), total=_plain(total), average=_plain(total / len(numbers)))


def infer_column_type(
    rows: Sequence[Row],
    column: str,
    sample_size: int = 50,
    missing_markers: Iterable[str] = DEFAULT_MISSING_MARKERS,
) -> str:
    """'number' when every sampled present value is numeric, else 'text'."""
    markers = frozenset(missing_markers)
    cells = [coerce_cell(row.get(column), markers) for row in rows[:sample_size]]
    present = [c for c in cells if not c.missing]
    if present and all(c.numeric for c in present):
        return "number"
    return "text"


def _plain(value: float) -> int | float:
    # 4.0 -> 4 so aggregates of integer columns read as integers
    return int(value) if float(value).is_integer() else value
