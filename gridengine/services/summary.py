from __future__ import annotations

from ..models.session_result import SessionResult
from .engine import GridEngine

"""SUMMARY line rendering for CLI sessions.

Format:
    SUMMARY rows={master} view={view} requests={n} errors={n} undo={0|1}
    redo={0|1} elapsed_sec={elapsed}
"""

__all__ = [
    "collect_result",
    "render_summary_line",
]


def collect_result(engine: GridEngine, elapsed_seconds: float) -> SessionResult:
    return SessionResult(
        master_rows=len(engine.master),
        view_rows=len(engine.view),
        requests=engine.requests_handled,
        errors=engine.errors,
        can_undo=engine.history.can_undo,
        can_redo=engine.history.can_redo,
        elapsed_seconds=elapsed_seconds,
    )


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for tiny durations
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: SessionResult) -> str:
    """Render the SUMMARY line.

    Examples:
        >>> r = SessionResult(3, 1, 4, 0, True, False, 2.0)
        >>> render_summary_line(r)
        'SUMMARY rows=3 view=1 requests=4 errors=0 undo=1 redo=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY rows={result.master_rows} "
        f"view={result.view_rows} "
        f"requests={result.requests} "
        f"errors={result.errors} "
        f"undo={int(result.can_undo)} "
        f"redo={int(result.can_redo)} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
