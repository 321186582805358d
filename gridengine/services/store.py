from __future__ import annotations

import logging
from collections.abc import Iterable

from ..models.row import Row

"""Dataset store: master collection, current view and the row arena.

- ``master``: insertion-ordered list of every live Row (the owner)
- ``view``: ordered list of Row references produced by the last command;
  the same objects as in ``master`` unless ``view_detached`` (SELECT)
- ``view_columns``: the columns a detached view projects, None otherwise
- arena: identifier -> Row for every live master row, so history actions and
  deletions resolve rows by identity instead of position
"""

logger = logging.getLogger(__name__)

__all__ = [
    "DatasetStore",
]


class DatasetStore:
    def __init__(self) -> None:
        self.master: list[Row] = []
        self.view: list[Row] = []
        self.view_detached = False
        self.view_columns: tuple[str, ...] | None = None
        self._arena: dict[str, Row] = {}

    def __len__(self) -> int:
        return len(self.master)

    def load(self, rows: Iterable[Row]) -> None:
        """Replace all state with ``rows``; the view mirrors the new master."""
        master = list(rows)
        arena: dict[str, Row] = {}
        for row in master:
            if row.row_id in arena:
                raise ValueError(f"duplicate row identifier: {row.row_id}")
            arena[row.row_id] = row
        self.master = master
        self._arena = arena
        self.reset_view()

    def reset_view(self) -> None:
        self.view = list(self.master)
        self.view_detached = False
        self.view_columns = None

    def set_view(self, rows: list[Row], detached: bool = False, columns: Iterable[str] | None = None) -> None:
        """Install a new view.

        A detached view keeps its projected columns; a SELECT over an already
        projected view narrows them to the columns both projections share.
        """
        if not detached:
            self.view_columns = None
        elif columns is not None:
            picked = tuple(columns)
            if self.view_detached and self.view_columns is not None:
                picked = tuple(c for c in picked if c in self.view_columns)
            self.view_columns = picked
        self.view = rows
        self.view_detached = detached

    def contains(self, row_id: str) -> bool:
        return row_id in self._arena

    def get(self, row_id: str) -> Row | None:
        return self._arena.get(row_id)

    def view_row(self, index: int) -> Row | None:
        """Row at a view position; None when out of range (negative included)."""
        if 0 <= index < len(self.view):
            return self.view[index]
        return None

    def lookup(self, row_id: str, detached: bool = False) -> Row | None:
        """Resolve an identifier for history replay.

        Detached edits only ever resolve against the projection copies that
        are currently on view; master rows are never touched for them.
        """
        if not detached:
            return self._arena.get(row_id)
        if not self.view_detached:
            return None
        for row in self.view:
            if row.row_id == row_id:
                return row
        return None

    def remove(self, row_id: str) -> tuple[Row, int] | None:
        """Remove a row from master and view by identifier.

        Returns the removed master Row and its master index, or None when the
        identifier is not live (already deleted).
        """
        row = self._arena.pop(row_id, None)
        if row is None:
            return None
        index = next(i for i, r in enumerate(self.master) if r is row)
        del self.master[index]
        self.view = [r for r in self.view if r.row_id != row_id]
        logger.debug("removed row=%s master_index=%d", row_id, index)
        return row, index

    def restore(self, row: Row, master_index: int) -> bool:
        """Put a previously removed Row back (exact object, approximate position).

        The master always gets the original object; a detached view gets a
        projection of it over ``view_columns``.
        """
        if row.row_id in self._arena:
            return False
        index = max(0, min(master_index, len(self.master)))
        self.master.insert(index, row)
        self._arena[row.row_id] = row
        if self.view_detached:
            self.view.append(row.detached_copy(self.view_columns or ()))
        else:
            self.view.append(row)
        logger.debug("restored row=%s master_index=%d", row.row_id, index)
        return True
