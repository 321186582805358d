from __future__ import annotations

import itertools
import uuid
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from ..models.row import ROW_ID_KEY, Row

"""Row identity assignment.

Identifiers are ``r<session>-<n>``: a random per-assigner prefix plus a
monotonically increasing counter. They never depend on row position, and a
single assigner never hands out the same identifier twice, across any number
of ingestions.
"""

__all__ = [
    "IdentityAssigner",
]


class IdentityAssigner:
    def __init__(self, prefix: str | None = None) -> None:
        self.prefix = prefix or uuid.uuid4().hex[:8]
        self._counter = itertools.count(1)

    def next_id(self) -> str:
        return f"r{self.prefix}-{next(self._counter)}"

    def assign(self, records: Iterable[Mapping[str, Any] | Row]) -> list[Row]:
        """Wrap decoded records into Rows.

        Records that already carry an identifier (``__id`` key, or existing Row
        objects from a restored snapshot) keep it; all others get a fresh one.
        """
        return list(self._iter_rows(records))

    def _iter_rows(self, records: Iterable[Mapping[str, Any] | Row]) -> Iterator[Row]:
        for record in records:
            if isinstance(record, Row):
                yield record
            elif record.get(ROW_ID_KEY) not in (None, ""):
                yield Row.from_record(record)
            else:
                values = {str(k): v for k, v in record.items() if k != ROW_ID_KEY}
                yield Row(row_id=self.next_id(), values=values)
