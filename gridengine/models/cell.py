from __future__ import annotations

import math
import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

"""Cell value classification.

A raw field value is classified exactly once per comparison into a tagged
variant (NUMBER / TEXT / MISSING) by ``coerce_cell``. Filter, sort and stats
code only ever look at the variant, never at the raw Python type.

Missing-marker rules:
- ``None`` and float NaN (what pandas hands back for empty cells)
- empty / whitespace-only strings
- any configured marker text (default ``"NA"``), compared after stripping
"""

__all__ = [
    "CellKind",
    "Cell",
    "DEFAULT_MISSING_MARKERS",
    "coerce_cell",
    "is_missing",
    "format_number",
]

DEFAULT_MISSING_MARKERS: frozenset[str] = frozenset({"NA"})

# Decimal literal only: rejects "nan", "inf", "1_000" and hex which float() would accept
_NUMERIC_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")


class CellKind(Enum):
    NUMBER = "number"
    TEXT = "text"
    MISSING = "missing"


@dataclass(frozen=True)
class Cell:
    """Classified cell value.

    ``number`` is set only for NUMBER cells. ``text`` is the display form used
    for lexical comparison and substring tests (empty for MISSING).
    """
    kind: CellKind
    text: str = ""
    number: float | None = None

    @property
    def missing(self) -> bool:
        return self.kind is CellKind.MISSING

    @property
    def numeric(self) -> bool:
        return self.kind is CellKind.NUMBER


_MISSING = Cell(CellKind.MISSING)


def format_number(value: float) -> str:
    """Render a number the way it reads in a grid (``3.0`` -> ``"3"``)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def coerce_cell(value: Any, missing_markers: Iterable[str] = DEFAULT_MISSING_MARKERS) -> Cell:
    if value is None:
        return _MISSING
    if isinstance(value, bool):
        # bool is an int subclass; treat it as text so True never equals 1
        return Cell(CellKind.TEXT, text=str(value).lower())
    if isinstance(value, (int, float)):
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            return _MISSING
        return Cell(CellKind.NUMBER, text=format_number(value), number=float(value))
    text = value if isinstance(value, str) else str(value)
    stripped = text.strip()
    if not stripped or stripped in missing_markers:
        return _MISSING
    if _NUMERIC_RE.match(stripped):
        return Cell(CellKind.NUMBER, text=text, number=float(stripped))
    return Cell(CellKind.TEXT, text=text)


def is_missing(value: Any, missing_markers: Iterable[str] = DEFAULT_MISSING_MARKERS) -> bool:
    return coerce_cell(value, missing_markers).missing
