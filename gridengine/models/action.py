from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..services.store import DatasetStore
    from .row import Row

"""History actions.

Each action is the minimal record needed to replay a mutation forward
(``apply``) or backward (``revert``). Actions address rows by identifier, never
by view position, so they stay valid after the view is filtered or re-sorted.
"""

__all__ = [
    "Action",
    "CellEdit",
    "CellsEdited",
    "RowDeleted",
    "RowsDeleted",
]


@dataclass(frozen=True)
class CellEdit:
    row_id: str
    column: str
    old_value: Any
    new_value: Any
    had_column: bool = True  # False when the edit introduced the column on this row
    detached: bool = False  # edit went to a SELECT projection copy

    kind = "cell_edit"

    def apply(self, store: DatasetStore) -> bool:
        row = store.lookup(self.row_id, detached=self.detached)
        if row is None:
            return False
        row[self.column] = self.new_value
        return True

    def revert(self, store: DatasetStore) -> bool:
        row = store.lookup(self.row_id, detached=self.detached)
        if row is None:
            return False
        if self.had_column:
            row[self.column] = self.old_value
        else:
            row.values.pop(self.column, None)
        return True


@dataclass(frozen=True)
class CellsEdited:
    """Several cell edits recorded as one history step (TRIM)."""
    items: tuple[CellEdit, ...]

    kind = "cells_edited"

    def apply(self, store: DatasetStore) -> bool:
        changed = False
        for item in self.items:
            changed = item.apply(store) or changed
        return changed

    def revert(self, store: DatasetStore) -> bool:
        changed = False
        for item in reversed(self.items):
            changed = item.revert(store) or changed
        return changed


@dataclass(frozen=True)
class RowDeleted:
    row_id: str
    row: Row  # the removed object itself; undo puts this exact object back
    master_index: int  # position at deletion time, best effort on restore

    kind = "row_deleted"

    def apply(self, store: DatasetStore) -> bool:
        return store.remove(self.row_id) is not None

    def revert(self, store: DatasetStore) -> bool:
        return store.restore(self.row, self.master_index)


@dataclass(frozen=True)
class RowsDeleted:
    items: tuple[RowDeleted, ...]

    kind = "rows_deleted"

    def apply(self, store: DatasetStore) -> bool:
        changed = False
        for item in self.items:
            changed = item.apply(store) or changed
        return changed

    def revert(self, store: DatasetStore) -> bool:
        # Reverse order so recorded indices line up with the master as it was
        changed = False
        for item in reversed(self.items):
            changed = item.revert(store) or changed
        return changed


Action = CellEdit | CellsEdited | RowDeleted | RowsDeleted
