"""Structured JSONL audit log of index operations."""

from __future__ import annotations

import json
from collections import deque
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

KEPT_TEXT_ARGUMENTS = frozenset({"source", "snapshot", "root", "start", "end", "since"})


@dataclass(slots=True, frozen=True)
class AuditEvent:
    """Sanitized record of a single CLI command."""

    timestamp: str
    request_id: str
    command: str
    ok: bool
    error_code: str | None
    metadata: dict[str, object]


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    now = datetime.now(tz=UTC)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sanitize_arguments(arguments: dict[str, object]) -> dict[str, object]:
    """Reduce command arguments to loggable values.

    Paths, time bounds and integers are kept. Page names are replaced by
    presence and length so the log does not collect browsing targets.
    """
    sanitized: dict[str, object] = {}
    for key in sorted(arguments.keys()):
        value = arguments[key]
        if key in KEPT_TEXT_ARGUMENTS and isinstance(value, str):
            sanitized[key] = value
            continue
        if key == "page" and isinstance(value, str):
            sanitized["page_present"] = True
            sanitized["page_length"] = len(value)
            continue
        if isinstance(value, (int, float, bool)) or value is None:
            sanitized[key] = value
            continue
        if isinstance(value, str):
            sanitized[f"{key}_present"] = True
            sanitized[f"{key}_length"] = len(value)
            continue
        if isinstance(value, list):
            sanitized[f"{key}_type"] = "list"
            sanitized[f"{key}_length"] = len(value)
            continue
        sanitized[f"{key}_type"] = type(value).__name__
    return sanitized


class JsonlAuditLogger:
    """Append-only JSONL audit logger and bounded reader."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        """Return on-disk JSONL path."""
        return self._path

    def append(self, event: AuditEvent) -> None:
        """Append one event as a JSON object line."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(asdict(event), sort_keys=True))
            handle.write("\n")

    def read(
        self, since: str | None = None, limit: int = 50, command: str | None = None
    ) -> list[dict[str, object]]:
        """Return the newest events, oldest first.

        ``since`` is an inclusive ISO timestamp lower bound; ``command`` keeps
        only events of one CLI command. Unparseable lines are ignored.
        """
        if limit < 1 or not self._path.exists():
            return []
        recent: deque[dict[str, object]] = deque(maxlen=limit)
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                event = _parse_event_line(line)
                if event is None:
                    continue
                if since is not None and str(event.get("timestamp", "")) < since:
                    continue
                if command is not None and event.get("command") != command:
                    continue
                recent.append(event)
        return list(recent)


def _parse_event_line(line: str) -> dict[str, object] | None:
    stripped = line.strip()
    if not stripped:
        return None
    try:
        payload = json.loads(stripped)
    except json.JSONDecodeError:
        return None
    return payload if isinstance(payload, dict) else None
