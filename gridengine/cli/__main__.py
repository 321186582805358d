from __future__ import annotations

import argparse
import json
import os
import sys
import time
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, default_config, load_config
from ..db.connection import session_cursor
from ..db.session_store import ensure_table, load_snapshot, save_snapshot
from ..logging.init import enable_debug, log_summary, setup_logging
from ..models.config_models import EngineConfig
from ..models.messages import Request, RequestType, Response, ResponseType
from ..services.engine import GridEngine
from ..services.interpreter import CommandParseError
from ..services.materializer import infer_column_type
from ..services.progress import ProgressTracker
from ..services.summary import collect_result, render_summary_line
from ..services.worker import GridWorker
from .script import parse_script, parse_script_line

"""CLI entrypoint.

Flow:
- Load .env and config (config/engine.yml when present, defaults otherwise)
- Load the input file (or restore the stored session)
- Run -c commands and --script requests through the off-thread worker
- Optionally export the final view and save the session
- Print one SUMMARY line
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_REQUEST_ERRORS = 2

# Set to disable every session-store connection (tests, offline use)
DISABLE_DB_ENV = "DISABLE_DB_CONNECT"


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; the file's values win over the process env."""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except Exception as e:  # pragma: no cover
        print(f"WARNING: failed to load .env via python-dotenv: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="gridengine", description="In-memory tabular data engine")
    p.add_argument("path", nargs="?", help="Input file (.xlsx, .xls, .csv, .json)")
    p.add_argument("--config", type=Path, default=None, help=f"Config file (default {DEFAULT_CONFIG_PATH})")
    p.add_argument("-c", "--command", action="append", default=[], help="Request line to run (repeatable)")
    p.add_argument("--script", type=Path, help="File with one request per line")
    p.add_argument("--export", choices=["json", "csv", "sql", "md"], help="Export the final view")
    p.add_argument("--output", type=Path, help="Write the export here instead of stdout")
    p.add_argument("--inspect-data", action="store_true", help="Print columns, types & first rows then exit")
    p.add_argument("--save-session", action="store_true", help="Store the final master snapshot")
    p.add_argument("--restore-session", action="store_true", help="Start from the stored snapshot")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _resolve_config(path: Path | None) -> EngineConfig:
    if path is not None:
        return load_config(path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return default_config()


def _db_enabled() -> bool:
    return os.getenv(DISABLE_DB_ENV) != "1"


def _dispatch(worker: GridWorker, request: Request) -> list[Response]:
    """Post one request and wait for all of its responses."""
    worker.post(request)
    worker.inbox.join()
    responses: list[Response] = []
    while not worker.outbox.empty():
        responses.append(worker.outbox.get_nowait())
    return responses


def _restore_request(cfg: EngineConfig, logger) -> Request | None:
    if not _db_enabled():
        logger.info("session restore skipped: DB disabled")
        return None
    try:
        with session_cursor(cfg.database) as cur:
            ensure_table(cur)
            stored = load_snapshot(cur, timedelta(minutes=cfg.session.ttl_minutes))
    except Exception as e:
        logger.info(f"session store unavailable -> starting without restore: {e}")
        return None
    if stored is None:
        logger.info("no stored session")
        return None
    logger.info(f"restoring session file={stored.file_name} rows={len(stored.records)}")
    return Request(RequestType.LOAD_EXISTING, {"rows": stored.records})


def _save_session(cfg: EngineConfig, records: list[dict], file_name: str | None, logger) -> None:
    if not _db_enabled():
        logger.info("session save skipped: DB disabled")
        return
    try:
        with session_cursor(cfg.database) as cur:
            ensure_table(cur)
            save_snapshot(cur, records, file_name=file_name)
        logger.info(f"session saved rows={len(records)}")
    except Exception as e:
        logger.info(f"session store unavailable -> session not saved: {e}")


def _inspect(engine: GridEngine) -> int:
    rows = engine.master
    columns: list[str] = []
    for row in rows:
        columns.extend(c for c in row.values if c not in columns)
    print(f"ROWS: {len(rows)}")
    for column in columns:
        print(f"  COLUMN: {column} type={infer_column_type(rows, column, missing_markers=engine.config.missing_markers)}")
    for row in rows[:3]:
        print("    sample_row=", json.dumps(row.values, ensure_ascii=False, default=str))
    return EXIT_SUCCESS


def _report(response: Response, logger, output: Path | None = None) -> None:
    if response.type is ResponseType.COMMAND_RESULT or response.type is ResponseType.SELECTION_STATS:
        logger.info(f"result {json.dumps(response.payload, ensure_ascii=False)}")
    elif response.type is ResponseType.EXPORT_READY:
        content = response.payload["content"]
        if output is not None:
            output.write_text(content, encoding="utf-8")
            logger.info(f"export format={response.payload['format']} written to {output}")
        else:
            sys.stdout.write(content)
    elif response.type is ResponseType.DATA_UPDATED or response.type is ResponseType.DATA_LOADED:
        logger.debug(f"view rows={len(response.payload)}")
    elif response.type is ResponseType.HISTORY_STATE:
        logger.debug(f"history {response.payload}")
    elif response.type is ResponseType.SNAPSHOT:
        logger.info(f"snapshot rows={len(response.payload)}")


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None -> real argv; [] from tests must not pick up pytest's own arguments
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = _resolve_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.debug:
        enable_debug(logger)

    try:
        requests: list[Request] = []
        for line in args.command:
            request = parse_script_line(line)
            if request is not None:
                requests.append(request)
        if args.script is not None:
            requests.extend(parse_script(args.script.read_text(encoding="utf-8").splitlines()))
    except (CommandParseError, OSError) as e:
        logger.error(f"script: {e}")
        return EXIT_FATAL

    start = time.perf_counter()
    engine = GridEngine(cfg)
    with GridWorker(engine=engine) as worker:
        load: Request | None = _restore_request(cfg, logger) if args.restore_session else None
        if load is None:
            if not args.path:
                logger.error("no input file given")
                return EXIT_FATAL
            load = Request(RequestType.LOAD_FILE, {"path": args.path})
        loaded = _dispatch(worker, load)
        if any(r.is_error for r in loaded):
            logger.error(f"load failed: {loaded[0].payload}")
            engine.error_log.flush()
            return EXIT_FATAL

        if args.inspect_data:
            return _inspect(engine)

        with ProgressTracker(len(requests), description="Running requests") as progress:
            for request in requests:
                progress.start(request.payload.get("command", request.type.value))
                responses = _dispatch(worker, request)
                for response in responses:
                    _report(response, logger)
                progress.finish(success=not any(r.is_error for r in responses))

        if args.export:
            for response in _dispatch(worker, Request(RequestType.RUN_COMMAND, {"command": f"EXPORT {args.export}"})):
                _report(response, logger, output=args.output)

        if args.save_session:
            snapshot = _dispatch(worker, Request(RequestType.EXPORT_SNAPSHOT))
            file_name = Path(args.path).name if args.path else None
            _save_session(cfg, snapshot[0].payload, file_name, logger)

    engine.error_log.flush()
    result = collect_result(engine, time.perf_counter() - start)
    # log_summary adds the "SUMMARY " label itself
    log_summary(render_summary_line(result)[len("SUMMARY "):])

    return EXIT_REQUEST_ERRORS if result.errors else EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
