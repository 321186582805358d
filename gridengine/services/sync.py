from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from ..models.messages import Response, ResponseType
from ..models.row import Row
from .identity import IdentityAssigner
from .store import DatasetStore

"""Synchronization emitter.

Tells the persistence collaborator when the master collection changed
(PERSIST_NEEDED) and converts the master collection to / from the
serializable snapshot form: a list of records each carrying ``__id``.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "SyncEmitter",
]


class SyncEmitter:
    def __init__(self, listener: Callable[[Response], None] | None = None) -> None:
        self.listener = listener
        self.pending = 0  # PERSIST_NEEDED signals since the last snapshot

    def persist_needed(self, reason: str) -> Response:
        self.pending += 1
        response = Response(ResponseType.PERSIST_NEEDED, {"reason": reason})
        logger.debug("persist needed reason=%s pending=%d", reason, self.pending)
        if self.listener is not None:
            self.listener(response)
        return response

    def snapshot(self, store: DatasetStore) -> list[dict[str, Any]]:
        self.pending = 0
        return [row.to_record() for row in store.master]

    def restore(self, records: Iterable[Mapping[str, Any] | Row], assigner: IdentityAssigner) -> list[Row]:
        """Rows from a snapshot; identifiers are kept as-is."""
        return assigner.assign(records)
