"""Command line driver: build snapshots from source logs and query them."""

from __future__ import annotations

import argparse
import json
import sys
import time
from collections.abc import Callable
from pathlib import Path
from typing import TextIO

from pageview_index.config import CliOverrides, IndexSettings, load_effective_config
from pageview_index.errors import (
    InvalidIntervalError,
    RecordParseError,
    SnapshotFormatError,
    SnapshotSchemaUnsupportedError,
)
from pageview_index.index import PageviewIndex
from pageview_index.logging import AuditEvent, JsonlAuditLogger, sanitize_arguments, utc_timestamp

CommandHandler = Callable[[IndexSettings, argparse.Namespace, TextIO], dict[str, object]]


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for the pageview-index command."""
    parser = argparse.ArgumentParser(prog="pageview-index")
    parser.add_argument("--root", required=False, default=".")
    parser.add_argument("--snapshot", required=False, default=None)
    parser.add_argument("--no-audit", action="store_true", default=False)
    commands = parser.add_subparsers(dest="command", required=True)

    build = commands.add_parser("build", help="Build a snapshot from a tab-delimited log.")
    build.add_argument("source")
    build.add_argument("--skip-invalid", action="store_true", default=None)

    range_parser = commands.add_parser("range", help="Records of a page within an hour range.")
    _add_query_arguments(range_parser)

    top_k = commands.add_parser("top-k", help="Earliest k records of a page within a range.")
    _add_query_arguments(top_k)
    top_k.add_argument("-k", type=int, required=False, default=None)

    commands.add_parser("dump", help="Print every record in index order.")
    commands.add_parser("config", help="Print the effective configuration.")

    audit = commands.add_parser("audit", help="Print recent audit events as JSON lines.")
    audit.add_argument("--since", required=False, default=None)
    audit.add_argument("--limit", type=int, required=False, default=50)
    audit.add_argument("--filter-command", required=False, default=None)
    return parser


def _add_query_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("page")
    parser.add_argument("start", help="First hour, formatted YYYYMMDD-HH.")
    parser.add_argument("end", help="Last hour (inclusive), formatted YYYYMMDD-HH.")


def _load_index(settings: IndexSettings) -> PageviewIndex:
    index = PageviewIndex()
    index.load_file(settings.snapshot_path)
    return index


def _run_build(
    settings: IndexSettings, args: argparse.Namespace, out: TextIO
) -> dict[str, object]:
    index = PageviewIndex()
    report = index.build_index_from_path(
        (settings.root / args.source).resolve(), skip_invalid=settings.skip_invalid
    )
    index.save_as(settings.snapshot_path)
    summary: dict[str, object] = {
        "records": report.records_ingested,
        "skipped": [
            {"line_number": item.line_number, "message": item.message} for item in report.skipped
        ],
        "snapshot": str(settings.snapshot_path),
    }
    out.write(f"{json.dumps(summary, sort_keys=True)}\n")
    return {"records": report.records_ingested, "skipped": len(report.skipped)}


def _run_range(
    settings: IndexSettings, args: argparse.Namespace, out: TextIO
) -> dict[str, object]:
    matches = _load_index(settings).range(args.page, args.start, args.end)
    for record in matches:
        out.write(f"{record}\n")
    return {"matches": len(matches)}


def _run_top_k(
    settings: IndexSettings, args: argparse.Namespace, out: TextIO
) -> dict[str, object]:
    k = args.k if args.k is not None else settings.default_top_k
    matches = _load_index(settings).top_k_range(args.page, args.start, args.end, k)
    for record in matches:
        out.write(f"{record}\n")
    return {"matches": len(matches), "k": k}


def _run_dump(
    settings: IndexSettings, args: argparse.Namespace, out: TextIO
) -> dict[str, object]:
    index = _load_index(settings)
    index.print_all(stream=out)
    return {"records": len(index)}


def _run_config(
    settings: IndexSettings, args: argparse.Namespace, out: TextIO
) -> dict[str, object]:
    out.write(f"{json.dumps(settings.to_public_dict(), sort_keys=True)}\n")
    return {}


def _run_audit(
    settings: IndexSettings, args: argparse.Namespace, out: TextIO
) -> dict[str, object]:
    if args.limit < 1:
        raise ValueError(f"--limit must be a positive integer, got {args.limit}.")
    events = JsonlAuditLogger(path=settings.audit_log_path).read(
        since=args.since, limit=args.limit, command=args.filter_command
    )
    for event in events:
        out.write(f"{json.dumps(event, sort_keys=True)}\n")
    return {"events": len(events)}


COMMANDS: dict[str, CommandHandler] = {
    "build": _run_build,
    "range": _run_range,
    "top-k": _run_top_k,
    "dump": _run_dump,
    "config": _run_config,
    "audit": _run_audit,
}


def error_payload(code: str, message: str) -> dict[str, object]:
    """Build explicit error envelope."""
    return {"error": {"code": code, "message": message}}


def classify_error(error: Exception) -> dict[str, object]:
    """Map a domain or I/O failure to its error envelope."""
    if isinstance(error, RecordParseError):
        return error_payload("PARSE_ERROR", str(error))
    if isinstance(error, InvalidIntervalError):
        return error_payload("INVALID_INTERVAL", str(error))
    if isinstance(error, SnapshotFormatError):
        return error_payload("SNAPSHOT_INVALID", str(error))
    if isinstance(error, SnapshotSchemaUnsupportedError):
        return error_payload(
            "SNAPSHOT_SCHEMA_UNSUPPORTED",
            f"Snapshot format version {error.found} is unsupported; expected "
            f"{error.expected}. Rebuild the snapshot from source.",
        )
    if isinstance(error, OSError):
        return error_payload("IO_ERROR", str(error))
    return error_payload("INVALID_ARGUMENT", str(error))


def main(
    argv: list[str] | None = None,
    out_stream: TextIO | None = None,
    err_stream: TextIO | None = None,
) -> int:
    """Entrypoint for the pageview-index command."""
    out = out_stream if out_stream is not None else sys.stdout
    err = err_stream if err_stream is not None else sys.stderr
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    overrides = CliOverrides(
        snapshot_path=Path(args.snapshot) if args.snapshot is not None else None,
        skip_invalid=getattr(args, "skip_invalid", None),
        audit_enabled=False if args.no_audit else None,
    )
    try:
        settings = load_effective_config(root=Path(args.root), overrides=overrides)
    except (OSError, ValueError) as error:
        err.write(f"{json.dumps(error_payload('INVALID_CONFIG', str(error)), sort_keys=True)}\n")
        return 2

    arguments = {
        key: value for key, value in sorted(vars(args).items()) if key not in {"command"}
    }
    handler = COMMANDS[args.command]
    response: dict[str, object] | None = None
    metadata: dict[str, object] = {}
    try:
        metadata = handler(settings, args, out)
    except (
        RecordParseError,
        InvalidIntervalError,
        SnapshotFormatError,
        SnapshotSchemaUnsupportedError,
        OSError,
        ValueError,
    ) as error:
        response = classify_error(error)
        err.write(f"{json.dumps(response, sort_keys=True)}\n")
    if settings.audit_enabled:
        _log_command(settings, args.command, arguments, response, metadata)
    return 0 if response is None else 1


def _log_command(
    settings: IndexSettings,
    command: str,
    arguments: dict[str, object],
    response: dict[str, object] | None,
    metadata: dict[str, object],
) -> None:
    error_code: str | None = None
    if response is not None:
        error_value = response.get("error")
        if isinstance(error_value, dict):
            code_value = error_value.get("code")
            if isinstance(code_value, str):
                error_code = code_value
    event = AuditEvent(
        timestamp=utc_timestamp(),
        request_id=f"cli-{time.time_ns()}",
        command=command,
        ok=response is None,
        error_code=error_code,
        metadata={**sanitize_arguments(arguments), **metadata},
    )
    JsonlAuditLogger(path=settings.audit_log_path).append(event)


if __name__ == "__main__":
    raise SystemExit(main())
