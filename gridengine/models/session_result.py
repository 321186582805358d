from __future__ import annotations

from dataclasses import dataclass

"""Aggregated outcome of one CLI session (feeds the SUMMARY line)."""

__all__ = [
    "SessionResult",
]


@dataclass(frozen=True)
class SessionResult:
    master_rows: int  # live rows at the end of the run
    view_rows: int  # rows in the final current view
    requests: int  # requests handled by the engine
    errors: int  # requests answered with ERROR
    can_undo: bool
    can_redo: bool
    elapsed_seconds: float
