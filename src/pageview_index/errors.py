"""Error types raised by record parsing, queries and snapshot decoding."""

from __future__ import annotations

from dataclasses import dataclass


class RecordParseError(ValueError):
    """Raised when a source line or hour string violates its text format."""

    def __init__(
        self,
        text: str,
        expected: str,
        reason: str,
        line_number: int | None = None,
    ) -> None:
        location = f"line {line_number}: " if line_number is not None else ""
        super().__init__(f"{location}{reason} (got {text!r}, expected {expected!r})")
        self.text = text
        self.expected = expected
        self.reason = reason
        self.line_number = line_number


class InvalidIntervalError(ValueError):
    """Raised when a query interval has its start after its end."""

    def __init__(self, start: str, end: str) -> None:
        super().__init__(f"Malformed time interval <{start},{end}>: start is after end.")
        self.start = start
        self.end = end


class SnapshotFormatError(ValueError):
    """Raised when snapshot bytes are truncated, corrupt or structurally invalid."""

    def __init__(self, reason: str, offset: int) -> None:
        super().__init__(f"{reason} (at byte offset {offset})")
        self.reason = reason
        self.offset = offset


@dataclass(slots=True, frozen=True)
class SnapshotSchemaUnsupportedError(Exception):
    """Raised when a snapshot was written with an unsupported format version."""

    found: int
    expected: int
