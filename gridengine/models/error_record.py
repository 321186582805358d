from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the engine error log.

One record per request that ended in an ERROR response. Records are written as
JSON Lines with a fixed key set: timestamp, request, error_type, message.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        request: Request type that failed (e.g. RUN_COMMAND), or "<ENGINE>"
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable failure description
    """
    timestamp: str
    request: str
    error_type: str
    message: str

    @staticmethod
    def create(request: str, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(timestamp=ts, request=request, error_type=error_type, message=message)

    @staticmethod
    def classify(exc: BaseException) -> str:
        """Map an exception to an UPPER_SNAKE error_type (``CommandParseError`` -> ``COMMAND_PARSE_ERROR``)."""
        name = type(exc).__name__
        out: list[str] = []
        for i, ch in enumerate(name):
            if ch.isupper() and i and not name[i - 1].isupper():
                out.append("_")
            out.append(ch.upper())
        return "".join(out)

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
