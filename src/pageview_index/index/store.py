"""Sorted in-memory page-view index with range and top-k queries."""

from __future__ import annotations

import sys
from bisect import bisect_left, bisect_right
from collections.abc import Iterable, Iterator
from datetime import datetime
from pathlib import Path
from typing import TextIO

from pageview_index.errors import InvalidIntervalError
from pageview_index.index.ingest import parse_lines, read_source_lines
from pageview_index.index.models import IngestReport
from pageview_index.index.snapshot import (
    decode_records,
    encode_records,
    read_snapshot,
    write_snapshot,
)
from pageview_index.records import (
    PageviewRecord,
    format_hour,
    format_record,
    page_prefix_key,
    parse_hour,
    record_sort_key,
)

TimeBound = datetime | str


class PageviewIndex:
    """Records kept sorted by (page, time).

    The list is only ever replaced wholesale by :meth:`build_index` or
    :meth:`load`; queries never mutate it. Concurrent readers are safe as long
    as rebuilds and reloads are serialized against them by the caller.
    """

    def __init__(self) -> None:
        self._records: list[PageviewRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[PageviewRecord]:
        return iter(tuple(self._records))

    @property
    def records(self) -> tuple[PageviewRecord, ...]:
        """Snapshot of all records in index order."""
        return tuple(self._records)

    def build_index(
        self, lines: Iterable[str | bytes], skip_invalid: bool = False
    ) -> IngestReport:
        """Replace the content with records parsed from ``lines``, sorted."""
        records, skipped = parse_lines(lines, skip_invalid=skip_invalid)
        records.sort(key=record_sort_key)
        self._records = records
        return IngestReport(records_ingested=len(records), skipped=tuple(skipped))

    def build_index_from_path(self, path: Path, skip_invalid: bool = False) -> IngestReport:
        """Build from a tab-delimited source file."""
        return self.build_index(read_source_lines(path), skip_invalid=skip_invalid)

    def load(self, data: bytes) -> None:
        """Replace the content with records decoded from snapshot bytes."""
        self._records = decode_records(data)

    def save(self) -> bytes:
        """Serialize the index to snapshot bytes."""
        return encode_records(self._records)

    def load_file(self, path: Path) -> None:
        """Load a snapshot file written by :meth:`save_as`."""
        self.load(read_snapshot(path))

    def save_as(self, path: Path) -> None:
        """Write the snapshot to ``path``, replacing any previous file."""
        write_snapshot(path, self.save())

    def range_of(self, page: str) -> tuple[int, int]:
        """Return the half-open ``[lo, hi)`` positions holding ``page``.

        An empty bracket (``lo == hi``) means the page is not indexed.
        """
        key = (page,)
        lo = bisect_left(self._records, key, key=page_prefix_key)
        hi = bisect_right(self._records, key, lo=lo, key=page_prefix_key)
        return lo, hi

    def range(self, page: str, start: TimeBound, end: TimeBound) -> list[PageviewRecord]:
        """Records of ``page`` with ``start <= time <= end``, in time order.

        Bounds may be datetimes or ``YYYYMMDD-HH`` strings.

        Raises:
            RecordParseError: If a textual bound is malformed.
            InvalidIntervalError: If ``start`` is after ``end``.
        """
        start_time = _coerce_bound(start)
        end_time = _coerce_bound(end)
        if start_time > end_time:
            raise InvalidIntervalError(start=format_hour(start_time), end=format_hour(end_time))
        lo, hi = self.range_of(page)
        output: list[PageviewRecord] = []
        for record in self._records[lo:hi]:
            if start_time <= record.time <= end_time:
                output.append(record)
        return output

    def top_k_range(
        self, page: str, start: TimeBound, end: TimeBound, k: int
    ) -> list[PageviewRecord]:
        """First ``k`` records of :meth:`range` under the (page, time) order.

        This is the chronologically earliest ``k`` matches, not the ``k``
        busiest hours.
        """
        if k < 0:
            raise ValueError(f"k must be a non-negative integer, got {k}.")
        matches = self.range(page, start, end)
        matches.sort(key=record_sort_key)
        return matches[:k]

    def is_sorted(self) -> bool:
        """Check the (page, time) ordering of adjacent records."""
        keys = [record_sort_key(record) for record in self._records]
        return all(left <= right for left, right in zip(keys, keys[1:]))

    def pages(self) -> list[str]:
        """Distinct page names in index order."""
        output: list[str] = []
        for record in self._records:
            if not output or output[-1] != record.page:
                output.append(record.page)
        return output

    def format_at(self, position: int) -> str:
        """Debug text of the record at ``position``."""
        return format_record(self._records[position])

    def print(self, position: int, stream: TextIO | None = None) -> None:
        """Write one record's debug text as a line."""
        out = stream if stream is not None else sys.stdout
        out.write(f"{self.format_at(position)}\n")

    def print_all(self, stream: TextIO | None = None) -> None:
        """Write every record's debug text, one per line, in index order."""
        out = stream if stream is not None else sys.stdout
        for record in self._records:
            out.write(f"{format_record(record)}\n")


def _coerce_bound(value: TimeBound) -> datetime:
    if isinstance(value, str):
        return parse_hour(value)
    return value
