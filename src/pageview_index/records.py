"""Page-view record model, text parsing and the (page, time) total order."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Final

from pageview_index.errors import RecordParseError

HOUR_FORMAT: Final[str] = "%Y%m%d-%H"
HOUR_PATTERN: Final[re.Pattern[str]] = re.compile(r"[0-9]{8}-[0-9]{2}")
COUNTER_PATTERN: Final[re.Pattern[str]] = re.compile(r"[0-9]+")
LINE_FORMAT: Final[str] = "<YYYYMMDD-HH>\\t<page>\\t<counter>"
FIELD_SEPARATOR: Final[str] = "\t"
MAX_COUNTER: Final[int] = 2**64 - 1


@dataclass(slots=True, frozen=True)
class PageviewRecord:
    """One hourly view counter observation for a page."""

    time: datetime
    page: str
    counter: int

    def __str__(self) -> str:
        return format_record(self)


def parse_hour(text: str) -> datetime:
    """Parse a ``YYYYMMDD-HH`` string into an hour-precision datetime."""
    if not HOUR_PATTERN.fullmatch(text):
        raise RecordParseError(
            text=text,
            expected=HOUR_FORMAT,
            reason="Time does not match the hour format",
        )
    try:
        return datetime.strptime(text, HOUR_FORMAT)
    except ValueError as error:
        raise RecordParseError(
            text=text,
            expected=HOUR_FORMAT,
            reason=f"Time is not a valid calendar hour: {error}",
        ) from error


def format_hour(time: datetime) -> str:
    """Format a datetime with the fixed hour format."""
    # strftime does not zero-pad years below 1000 on every platform.
    return f"{time.year:04d}{time.month:02d}{time.day:02d}-{time.hour:02d}"


def parse_line(line: str) -> PageviewRecord:
    """Parse one tab-delimited source line.

    Example: ``20160626-23\\t10_Cloverfield_Lane\\t475``. A single trailing
    line terminator is ignored; anything else must match exactly.
    """
    stripped = line.removesuffix("\n").removesuffix("\r")
    fields = stripped.split(FIELD_SEPARATOR)
    if len(fields) != 3:
        raise RecordParseError(
            text=stripped,
            expected=LINE_FORMAT,
            reason=f"Expected exactly 2 tab separators, found {len(fields) - 1}",
        )
    time_text, page, counter_text = fields
    time = parse_hour(time_text)
    if not page:
        raise RecordParseError(
            text=stripped,
            expected=LINE_FORMAT,
            reason="Page name is empty",
        )
    if not COUNTER_PATTERN.fullmatch(counter_text):
        raise RecordParseError(
            text=counter_text,
            expected="non-negative decimal integer",
            reason="Counter is not a non-negative integer",
        )
    counter = int(counter_text)
    if counter > MAX_COUNTER:
        raise RecordParseError(
            text=counter_text,
            expected=f"integer <= {MAX_COUNTER}",
            reason="Counter does not fit in 64 bits",
        )
    return PageviewRecord(time=time, page=page, counter=counter)


def format_record(record: PageviewRecord) -> str:
    """Render a record for display; not meant to be parsed back."""
    return f"time:{format_hour(record.time)},page:{record.page},counter:{record.counter}."


def record_sort_key(record: PageviewRecord) -> tuple[str, datetime]:
    """Total order used by the index: page first, then time."""
    return (record.page, record.time)


def page_prefix_key(record: PageviewRecord) -> tuple[str]:
    """Page-only prefix of :func:`record_sort_key`, used to bracket one page."""
    return record_sort_key(record)[:1]


def compare_records(left: PageviewRecord, right: PageviewRecord) -> int:
    """Three-way comparison under the (page, time) order."""
    left_key = record_sort_key(left)
    right_key = record_sort_key(right)
    if left_key < right_key:
        return -1
    if left_key > right_key:
        return 1
    return 0
