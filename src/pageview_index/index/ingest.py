"""Source line reading and parsing for index builds."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path

from pageview_index.errors import RecordParseError
from pageview_index.index.models import SkippedLine
from pageview_index.records import LINE_FORMAT, PageviewRecord, parse_line

SourceLine = str | bytes
BLANK_LINE_MESSAGE = "Blank line carries no record"


def read_source_lines(path: Path) -> Iterator[bytes]:
    """Yield the raw lines of a source file without terminators.

    Decoding is left to :func:`parse_lines` so that a bad byte sequence is
    reported against its line number.
    """
    with path.open("rb") as handle:
        for raw_line in handle:
            yield raw_line.rstrip(b"\r\n")


def _decode_line(line: SourceLine) -> str:
    if isinstance(line, str):
        return line
    try:
        return line.decode("utf-8")
    except UnicodeDecodeError as error:
        raise RecordParseError(
            text=line.decode("utf-8", errors="replace"),
            expected=f"UTF-8 text {LINE_FORMAT}",
            reason=f"Line is not valid UTF-8 at byte {error.start}",
        ) from error


def _display_text(line: SourceLine) -> str:
    if isinstance(line, bytes):
        return line.decode("utf-8", errors="replace")
    return line


def parse_lines(
    lines: Iterable[SourceLine], skip_invalid: bool = False
) -> tuple[list[PageviewRecord], list[SkippedLine]]:
    """Parse source lines, given as text or UTF-8 bytes, in order.

    Fails on the first malformed line unless ``skip_invalid`` is set, in
    which case rejected lines are collected instead. Blank lines carry no
    record: the fail-fast policy passes over them, the skip policy lists them
    with the other rejected lines. Line numbers are 1-based and count every
    line.
    """
    records: list[PageviewRecord] = []
    skipped: list[SkippedLine] = []
    for line_number, line in enumerate(lines, start=1):
        try:
            text = _decode_line(line)
            if not text.strip("\r\n"):
                if skip_invalid:
                    skipped.append(
                        SkippedLine(line_number=line_number, text=text, message=BLANK_LINE_MESSAGE)
                    )
                continue
            records.append(parse_line(text))
        except RecordParseError as error:
            if skip_invalid:
                skipped.append(
                    SkippedLine(
                        line_number=line_number, text=_display_text(line), message=str(error)
                    )
                )
                continue
            raise RecordParseError(
                text=error.text,
                expected=error.expected,
                reason=error.reason,
                line_number=line_number,
            ) from error
    return records, skipped
