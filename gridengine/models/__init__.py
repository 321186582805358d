"""Domain models for the tabular engine.

This package contains the row, cell, action, result and message types shared
by the services, plus the configuration and error-log records.
"""

from .action import Action, CellEdit, CellsEdited, RowDeleted, RowsDeleted
from .cell import Cell, CellKind, coerce_cell, is_missing
from .config_models import DatabaseConfig, EngineConfig, ExportConfig, SessionConfig
from .error_record import ErrorRecord
from .messages import Request, RequestType, Response, ResponseType
from .results import (
    CommandOutcome,
    ExportResult,
    SelectionStats,
    StatsResult,
    TrimResult,
    UnrecognizedCommand,
    ViewResult,
)
from .row import ROW_ID_KEY, Row
from .session_result import SessionResult

__all__ = [
    # Data model
    "Row",
    "ROW_ID_KEY",
    "Cell",
    "CellKind",
    "coerce_cell",
    "is_missing",
    # History actions
    "Action",
    "CellEdit",
    "CellsEdited",
    "RowDeleted",
    "RowsDeleted",
    # Command outcomes
    "CommandOutcome",
    "ViewResult",
    "StatsResult",
    "SelectionStats",
    "ExportResult",
    "TrimResult",
    "UnrecognizedCommand",
    # Messages
    "Request",
    "RequestType",
    "Response",
    "ResponseType",
    # Configuration / error log
    "EngineConfig",
    "ExportConfig",
    "SessionConfig",
    "DatabaseConfig",
    "ErrorRecord",
    "SessionResult",
]
