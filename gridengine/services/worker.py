from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable

from ..models.config_models import EngineConfig
from ..models.messages import Request, Response
from .engine import GridEngine

"""Off-thread engine host.

One daemon thread owns the engine. Requests posted from any thread are queued
and handled strictly in arrival order; each request's responses are delivered
in order, either to ``on_message`` (called on the worker thread) or to the
``outbox`` queue. There is no cancellation: a request in progress runs to
completion before the next one starts.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "GridWorker",
]

_STOP = object()


class GridWorker:
    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        engine: GridEngine | None = None,
        on_message: Callable[[Response], None] | None = None,
    ) -> None:
        self.engine = engine or GridEngine(config)
        self.on_message = on_message
        self.inbox: queue.Queue[object] = queue.Queue()
        self.outbox: queue.Queue[Response] = queue.Queue()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> GridWorker:
        if self.running:
            return self
        self._thread = threading.Thread(target=self._run, name="gridengine-worker", daemon=True)
        self._thread.start()
        return self

    def post(self, request: Request) -> None:
        if not isinstance(request, Request):
            raise TypeError(f"expected Request, got {type(request).__name__}")
        self.inbox.put(request)

    def stop(self, timeout: float | None = None) -> None:
        """Finish every request already posted, then end the thread."""
        if self._thread is None:
            return
        self.inbox.put(_STOP)
        self._thread.join(timeout)
        self._thread = None

    def _deliver(self, response: Response) -> None:
        if self.on_message is not None:
            try:
                self.on_message(response)
            except Exception:
                logger.exception("on_message callback failed for %s", response.type.value)
        else:
            self.outbox.put(response)

    def _run(self) -> None:
        while True:
            item = self.inbox.get()
            try:
                if item is _STOP:
                    return
                if not isinstance(item, Request):
                    logger.error("skipping non-request inbox item: %r", item)
                    continue
                for response in self.engine.handle(item):
                    self._deliver(response)
            except Exception:
                # the thread must outlive any single request
                logger.exception("worker failed on %r", item)
            finally:
                self.inbox.task_done()

    def __enter__(self) -> GridWorker:
        return self.start()

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.stop()
