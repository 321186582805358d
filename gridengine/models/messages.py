from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""Request / response messages exchanged with the host.

Requests are processed strictly in arrival order. Every request yields a list
of responses; a failed request yields exactly one ERROR response.

Payload shapes:
- LOAD_FILE        {"rows": [...]} or {"path": "data.xlsx"}
- LOAD_EXISTING    {"rows": [records carrying "__id"]}
- RUN_COMMAND      {"command": "FILTER age > 30"}
- CELL_EDIT        {"index": 0, "column": "b", "value": "z"}
- DELETE_ROW       {"index": 0}
- DELETE_ROWS      {"indices": [0, 3]}
- SELECTION_STATS  {"indices": [0, 1]}
- UNDO / REDO / RESET / EXPORT_SNAPSHOT   {}
"""

__all__ = [
    "RequestType",
    "ResponseType",
    "Request",
    "Response",
]


class RequestType(Enum):
    LOAD_FILE = "LOAD_FILE"
    LOAD_EXISTING = "LOAD_EXISTING"
    RUN_COMMAND = "RUN_COMMAND"
    CELL_EDIT = "CELL_EDIT"
    DELETE_ROW = "DELETE_ROW"
    DELETE_ROWS = "DELETE_ROWS"
    UNDO = "UNDO"
    REDO = "REDO"
    RESET = "RESET"
    EXPORT_SNAPSHOT = "EXPORT_SNAPSHOT"
    SELECTION_STATS = "SELECTION_STATS"


class ResponseType(Enum):
    DATA_LOADED = "DATA_LOADED"
    DATA_UPDATED = "DATA_UPDATED"
    COMMAND_RESULT = "COMMAND_RESULT"
    EXPORT_READY = "EXPORT_READY"
    PERSIST_NEEDED = "PERSIST_NEEDED"
    HISTORY_STATE = "HISTORY_STATE"
    SNAPSHOT = "SNAPSHOT"
    SELECTION_STATS = "SELECTION_STATS"
    ERROR = "ERROR"


@dataclass(frozen=True)
class Request:
    type: RequestType
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def of(cls, type_name: str | RequestType, **payload: Any) -> Request:
        """Build a request from a type name (case-insensitive) and payload fields."""
        if isinstance(type_name, RequestType):
            return cls(type_name, dict(payload))
        try:
            request_type = RequestType(type_name.upper())
        except ValueError as e:
            raise ValueError(f"unknown request type: {type_name}") from e
        return cls(request_type, dict(payload))


@dataclass(frozen=True)
class Response:
    type: ResponseType
    payload: Any = None

    @property
    def is_error(self) -> bool:
        return self.type is ResponseType.ERROR
