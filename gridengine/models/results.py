from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .action import CellsEdited
    from .row import Row

"""Command outcome models returned by the command interpreter."""

__all__ = [
    "ViewResult",
    "StatsResult",
    "SelectionStats",
    "ExportResult",
    "TrimResult",
    "UnrecognizedCommand",
    "CommandOutcome",
]


@dataclass(frozen=True)
class ViewResult:
    """A new ordered row collection (FILTER / SORT / SELECT)."""
    rows: list[Row]
    detached: bool = False  # True only for SELECT projections
    columns: tuple[str, ...] | None = None  # projected columns, SELECT only


@dataclass(frozen=True)
class StatsResult:
    """Aggregate over the numeric, non-missing values of one column.

    ``minimum`` / ``maximum`` are None when no value qualified.
    """
    column: str
    count: int = 0
    minimum: float | None = None
    maximum: float | None = None
    total: float = 0
    average: float = 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"column": self.column, "count": self.count}
        if self.count:
            data["min"] = self.minimum
            data["max"] = self.maximum
        data["sum"] = self.total
        data["avg"] = self.average
        return data


@dataclass(frozen=True)
class SelectionStats:
    count: int
    total: float | None = None
    average: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"count": self.count}
        if self.total is not None:
            data["sum"] = self.total
            data["avg"] = self.average
        return data


@dataclass(frozen=True)
class ExportResult:
    content: str
    format: str
    mime_type: str


@dataclass(frozen=True)
class TrimResult:
    """TRIM outcome: the (unchanged) source collection plus the edits made."""
    rows: list[Row]
    action: CellsEdited | None = None


@dataclass(frozen=True)
class UnrecognizedCommand:
    """Lenient-mode answer for an unknown verb: the source, untouched."""
    verb: str
    rows: list[Row] = field(default_factory=list)


CommandOutcome = ViewResult | StatsResult | ExportResult | TrimResult | UnrecognizedCommand
