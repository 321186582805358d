from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import EngineConfig
from ..models.error_record import ErrorRecord
from ..models.messages import Request, RequestType, Response, ResponseType
from ..models.results import (
    ExportResult,
    StatsResult,
    TrimResult,
    UnrecognizedCommand,
    ViewResult,
)
from ..models.row import Row
from ..tabular.reader import read_table
from .history import HistoryManager
from .identity import IdentityAssigner
from .interpreter import CommandInterpreter
from .materializer import selection_stats
from .mutations import MutationProcessor
from .store import DatasetStore
from .sync import SyncEmitter

"""Engine context and request dispatch.

``GridEngine`` owns every piece of mutable state (store, history, identity
assigner) and turns one Request into a list of Responses. It is
single-threaded by contract; ``services.worker.GridWorker`` gives it a
private thread and a FIFO inbox.

Failure boundary: any exception raised while handling a request is logged,
appended to the error log buffer and answered with a single ERROR response.
Handlers compute their result before touching engine state, so a failed
request leaves the state unchanged.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "GridEngine",
]

Handler = Callable[[dict[str, Any]], list[Response]]


class GridEngine:
    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        assigner: IdentityAssigner | None = None,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.assigner = assigner or IdentityAssigner()
        self.store = DatasetStore()
        self.history = HistoryManager(self.config.history_limit)
        self.interpreter = CommandInterpreter(self.config)
        self.mutations = MutationProcessor(self.store)
        self.sync = SyncEmitter()
        self.error_log = error_log if error_log is not None else ErrorLogBuffer()
        self.requests_handled = 0
        self.errors = 0
        self._handlers: dict[RequestType, Handler] = {
            RequestType.LOAD_FILE: self._load_file,
            RequestType.LOAD_EXISTING: self._load_existing,
            RequestType.RUN_COMMAND: self._run_command,
            RequestType.CELL_EDIT: self._cell_edit,
            RequestType.DELETE_ROW: self._delete_row,
            RequestType.DELETE_ROWS: self._delete_rows,
            RequestType.UNDO: self._undo,
            RequestType.REDO: self._redo,
            RequestType.RESET: self._reset,
            RequestType.EXPORT_SNAPSHOT: self._export_snapshot,
            RequestType.SELECTION_STATS: self._selection_stats,
        }

    # -- public surface ---------------------------------------------------

    @property
    def master(self) -> list[Row]:
        return self.store.master

    @property
    def view(self) -> list[Row]:
        return self.store.view

    def handle(self, request: Request) -> list[Response]:
        self.requests_handled += 1
        try:
            handler = self._handlers[request.type]
            return handler(request.payload or {})
        except Exception as e:
            self.errors += 1
            message = str(e) or type(e).__name__
            logger.error("request=%s failed: %s", request.type.value, message)
            logger.debug("request=%s traceback", request.type.value, exc_info=True)
            self.error_log.append(
                ErrorRecord.create(request.type.value, ErrorRecord.classify(e), message)
            )
            return [Response(ResponseType.ERROR, message)]

    # -- helpers ----------------------------------------------------------

    def _view_payload(self) -> list[dict[str, Any]]:
        return [row.to_record() for row in self.store.view]

    def _history_state(self) -> Response:
        return Response(ResponseType.HISTORY_STATE, self.history.state())

    def _after_mutation(self, reason: str) -> list[Response]:
        return [
            Response(ResponseType.DATA_UPDATED, self._view_payload()),
            self.sync.persist_needed(reason),
            self._history_state(),
        ]

    @staticmethod
    def _index(payload: dict[str, Any], key: str = "index") -> int:
        if key not in payload:
            raise ValueError(f"missing '{key}' in payload")
        return int(payload[key])

    def _adopt(self, rows: list[Row]) -> None:
        self.store.load(rows)
        self.history.clear()

    # -- handlers ---------------------------------------------------------

    def _load_file(self, payload: dict[str, Any]) -> list[Response]:
        if "path" in payload:
            table = read_table(
                Path(payload["path"]),
                keep_na_strings=self.config.keep_na_strings,
                fill_value=self.config.fill_value,
            )
            records: Iterable[Any] = table.rows
            logger.info("decoded %s rows=%d columns=%d", table.source, len(table.rows), len(table.columns))
        else:
            records = payload.get("rows") or []
        rows = self.assigner.assign(records)
        self._adopt(rows)
        logger.info("loaded rows=%d", len(rows))
        return [
            Response(ResponseType.DATA_LOADED, self._view_payload()),
            self.sync.persist_needed("load"),
        ]

    def _load_existing(self, payload: dict[str, Any]) -> list[Response]:
        rows = self.sync.restore(payload.get("rows") or [], self.assigner)
        self._adopt(rows)
        logger.info("restored rows=%d", len(rows))
        return [Response(ResponseType.DATA_LOADED, self._view_payload())]

    def _run_command(self, payload: dict[str, Any]) -> list[Response]:
        text = str(payload.get("command", ""))
        if self.interpreter.uses_master(text):
            source, detached = self.store.master, False
        else:
            source, detached = self.store.view, self.store.view_detached
        outcome = self.interpreter.execute(text, source, detached=detached)

        if isinstance(outcome, StatsResult):
            return [Response(ResponseType.COMMAND_RESULT, outcome.to_dict())]
        if isinstance(outcome, ExportResult):
            return [
                Response(
                    ResponseType.EXPORT_READY,
                    {"content": outcome.content, "format": outcome.format, "mimeType": outcome.mime_type},
                )
            ]
        if isinstance(outcome, TrimResult):
            self.store.set_view(outcome.rows, detached)
            if outcome.action is None:
                return [Response(ResponseType.DATA_UPDATED, self._view_payload())]
            self.history.record(outcome.action)
            return self._after_mutation("trim")
        if isinstance(outcome, UnrecognizedCommand):
            return [Response(ResponseType.DATA_UPDATED, self._view_payload())]
        if isinstance(outcome, ViewResult):
            self.store.set_view(outcome.rows, outcome.detached, outcome.columns)
            return [Response(ResponseType.DATA_UPDATED, self._view_payload())]
        raise TypeError(f"unexpected command outcome: {type(outcome).__name__}")

    def _cell_edit(self, payload: dict[str, Any]) -> list[Response]:
        index = self._index(payload)
        if "column" not in payload:
            raise ValueError("missing 'column' in payload")
        action = self.mutations.edit_cell(index, str(payload["column"]), payload.get("value"))
        if action is None:
            return [Response(ResponseType.DATA_UPDATED, self._view_payload())]
        self.history.record(action)
        return self._after_mutation("edit")

    def _delete_row(self, payload: dict[str, Any]) -> list[Response]:
        action = self.mutations.delete_row(self._index(payload))
        if action is None:
            return [Response(ResponseType.DATA_UPDATED, self._view_payload())]
        self.history.record(action)
        return self._after_mutation("delete")

    def _delete_rows(self, payload: dict[str, Any]) -> list[Response]:
        indices = [int(i) for i in payload.get("indices") or []]
        action = self.mutations.delete_rows(indices)
        if action is None:
            return [Response(ResponseType.DATA_UPDATED, self._view_payload())]
        self.history.record(action)
        return self._after_mutation("delete")

    def _undo(self, payload: dict[str, Any]) -> list[Response]:
        if not self.history.undo(self.store):
            return [Response(ResponseType.DATA_UPDATED, self._view_payload()), self._history_state()]
        return self._after_mutation("undo")

    def _redo(self, payload: dict[str, Any]) -> list[Response]:
        if not self.history.redo(self.store):
            return [Response(ResponseType.DATA_UPDATED, self._view_payload()), self._history_state()]
        return self._after_mutation("redo")

    def _reset(self, payload: dict[str, Any]) -> list[Response]:
        self.store.reset_view()
        return [Response(ResponseType.DATA_UPDATED, self._view_payload())]

    def _export_snapshot(self, payload: dict[str, Any]) -> list[Response]:
        return [Response(ResponseType.SNAPSHOT, self.sync.snapshot(self.store))]

    def _selection_stats(self, payload: dict[str, Any]) -> list[Response]:
        rows = [r for r in (self.store.view_row(int(i)) for i in payload.get("indices") or []) if r is not None]
        stats = selection_stats(rows, self.config.missing_markers)
        return [Response(ResponseType.SELECTION_STATS, stats.to_dict())]
