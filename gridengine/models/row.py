from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

"""Row model.

A Row is the single shared, mutable record for one line of the dataset. The
master collection and the current view hold references to the same Row
object, so assigning a field through either one is visible through both.
Only SELECT builds new Row objects (``detached_copy``).
"""

__all__ = [
    "ROW_ID_KEY",
    "Row",
]

# Key carrying the identifier in serialized records (snapshots, DATA_* payloads)
ROW_ID_KEY = "__id"


@dataclass(eq=False)
class Row:
    """One dataset row: an immutable identifier plus ordered column values.

    ``eq=False`` keeps identity semantics: two rows with equal content are
    still different rows.
    """
    row_id: str
    values: dict[str, Any] = field(default_factory=dict)
    detached: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "_frozen_id", self.row_id)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "row_id" and hasattr(self, "_frozen_id"):
            raise AttributeError("row_id is immutable")
        object.__setattr__(self, name, value)

    def get(self, column: str, default: Any = None) -> Any:
        return self.values.get(column, default)

    def __getitem__(self, column: str) -> Any:
        return self.values[column]

    def __setitem__(self, column: str, value: Any) -> None:
        self.values[column] = value

    def __contains__(self, column: object) -> bool:
        return column in self.values

    @property
    def columns(self) -> list[str]:
        return list(self.values.keys())

    def detached_copy(self, columns: Iterable[str]) -> Row:
        """Projection copy holding only ``columns`` that exist on this row."""
        picked = {c: self.values[c] for c in columns if c in self.values}
        return Row(row_id=self.row_id, values=picked, detached=True)

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {ROW_ID_KEY: self.row_id}
        record.update(self.values)
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Row:
        if ROW_ID_KEY not in record:
            raise ValueError("record has no row identifier")
        values = {k: v for k, v in record.items() if k != ROW_ID_KEY}
        return cls(row_id=str(record[ROW_ID_KEY]), values=values)
