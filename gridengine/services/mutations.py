from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from ..models.action import CellEdit, CellsEdited, RowDeleted, RowsDeleted
from ..models.row import Row
from .store import DatasetStore

"""Mutation processing: cell edits, row deletion and TRIM.

Edits are assigned directly on the shared Row object found in the current
view; because master and view hold the same object, no synchronisation step
is needed. Deletions resolve the view position to an identifier first and then
remove by identifier from both collections.

Every method returns the action to record, or None for a no-op (index out of
range, unchanged value, identifier already deleted).
"""

logger = logging.getLogger(__name__)

__all__ = [
    "MutationProcessor",
    "trim_rows",
]

_MISSING_COLUMN = object()


def trim_rows(rows: Sequence[Row], column: str, detached: bool = False) -> CellsEdited | None:
    """Strip surrounding whitespace from text values of ``column`` in place."""
    edits: list[CellEdit] = []
    for row in rows:
        value = row.get(column)
        if not isinstance(value, str):
            continue
        stripped = value.strip()
        if stripped == value:
            continue
        row[column] = stripped
        edits.append(CellEdit(row.row_id, column, value, stripped, detached=detached or row.detached))
    logger.debug("trim column=%s changed=%d", column, len(edits))
    return CellsEdited(tuple(edits)) if edits else None


class MutationProcessor:
    def __init__(self, store: DatasetStore) -> None:
        self.store = store

    def edit_cell(self, view_index: int, column: str, value: object) -> CellEdit | None:
        row = self.store.view_row(view_index)
        if row is None:
            logger.debug("edit ignored: view index %s out of range", view_index)
            return None
        old = row.values.get(column, _MISSING_COLUMN)
        if old is not _MISSING_COLUMN and old == value and type(old) is type(value):
            return None
        row[column] = value
        return CellEdit(
            row_id=row.row_id,
            column=column,
            old_value=None if old is _MISSING_COLUMN else old,
            new_value=value,
            had_column=old is not _MISSING_COLUMN,
            detached=row.detached,
        )

    def delete_row(self, view_index: int) -> RowDeleted | None:
        row = self.store.view_row(view_index)
        if row is None:
            logger.debug("delete ignored: view index %s out of range", view_index)
            return None
        return self.delete_by_id(row.row_id)

    def delete_rows(self, view_indices: Iterable[int]) -> RowsDeleted | None:
        # Resolve every position before removing anything; positions shift as rows go
        row_ids: list[str] = []
        for index in view_indices:
            row = self.store.view_row(index)
            if row is not None and row.row_id not in row_ids:
                row_ids.append(row.row_id)
        items = [item for item in (self.delete_by_id(rid) for rid in row_ids) if item is not None]
        return RowsDeleted(tuple(items)) if items else None

    def delete_by_id(self, row_id: str) -> RowDeleted | None:
        removed = self.store.remove(row_id)
        if removed is None:
            return None
        row, index = removed
        return RowDeleted(row_id=row_id, row=row, master_index=index)
