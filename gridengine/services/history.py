from __future__ import annotations

import logging

from ..models.action import Action
from .store import DatasetStore

"""Linear, bounded undo/redo history.

State: a list of actions and a cursor ``index`` pointing at the last applied
action (-1 when nothing is applied).

- record: drop everything after the cursor, append, advance; when over
  capacity the oldest entry is evicted and the cursor stays on the newest
- undo: revert ``actions[index]`` and step back (no-op at -1)
- redo: step forward and re-apply ``actions[index]`` (no-op at the end)
"""

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_HISTORY_LIMIT",
    "HistoryManager",
]

DEFAULT_HISTORY_LIMIT = 50


class HistoryManager:
    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError("history limit must be >= 1")
        self.limit = limit
        self._actions: list[Action] = []
        self.index = -1

    def __len__(self) -> int:
        return len(self._actions)

    @property
    def actions(self) -> list[Action]:
        return list(self._actions)

    @property
    def can_undo(self) -> bool:
        return self.index >= 0

    @property
    def can_redo(self) -> bool:
        return self.index < len(self._actions) - 1

    def state(self) -> dict[str, bool]:
        return {"canUndo": self.can_undo, "canRedo": self.can_redo}

    def clear(self) -> None:
        self._actions.clear()
        self.index = -1

    def record(self, action: Action) -> None:
        del self._actions[self.index + 1:]
        self._actions.append(action)
        self.index += 1
        if len(self._actions) > self.limit:
            evicted = self._actions.pop(0)
            self.index -= 1
            logger.debug("history full (limit=%d); evicted %s", self.limit, evicted.kind)

    def undo(self, store: DatasetStore) -> bool:
        """Revert the action under the cursor. Returns False when there is none."""
        if not self.can_undo:
            return False
        action = self._actions[self.index]
        action.revert(store)
        self.index -= 1
        logger.debug("undo %s -> index=%d", action.kind, self.index)
        return True

    def redo(self, store: DatasetStore) -> bool:
        if not self.can_redo:
            return False
        self.index += 1
        action = self._actions[self.index]
        action.apply(store)
        logger.debug("redo %s -> index=%d", action.kind, self.index)
        return True
