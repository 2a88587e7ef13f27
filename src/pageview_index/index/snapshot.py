"""Binary snapshot codec for the record sequence.

Snapshot layout (little-endian)
-------------------------------

[Header: 15 bytes]
    Offset  Type     Description
    0       char[6]  Magic bytes: "PVSNAP"
    6       uint8    Format version (currently 1)
    7       uint64   Number of records

[Record entry: 20 bytes + page length]
    Offset  Type     Description
    0       int64    Hours since 1970-01-01T00 (naive, no timezone)
    8       uint32   Page length in bytes (N)
    12      char[N]  UTF-8 page name
    12+N    uint64   Counter

Records are stored in index order. Decoding checks that order, so a snapshot
can never yield an unsorted index. Trailing bytes after the last record are
rejected.
"""

from __future__ import annotations

import struct
from collections.abc import Sequence
from datetime import datetime, timedelta
from pathlib import Path
from typing import Final

from pageview_index.errors import SnapshotFormatError, SnapshotSchemaUnsupportedError
from pageview_index.records import MAX_COUNTER, PageviewRecord, record_sort_key

SNAPSHOT_MAGIC: Final[bytes] = b"PVSNAP"
SNAPSHOT_FORMAT_VERSION: Final[int] = 1

HEADER_STRUCT: Final[struct.Struct] = struct.Struct("<6sBQ")
TIME_AND_LENGTH_STRUCT: Final[struct.Struct] = struct.Struct("<qI")
COUNTER_STRUCT: Final[struct.Struct] = struct.Struct("<Q")

EPOCH: Final[datetime] = datetime(1970, 1, 1)
ONE_HOUR: Final[timedelta] = timedelta(hours=1)


def encode_records(records: Sequence[PageviewRecord]) -> bytes:
    """Serialize records, in their current order, into snapshot bytes."""
    header = HEADER_STRUCT.pack(SNAPSHOT_MAGIC, SNAPSHOT_FORMAT_VERSION, len(records))
    chunks: list[bytes] = [header]
    for record in records:
        if record.counter < 0 or record.counter > MAX_COUNTER:
            raise ValueError(f"Counter for page {record.page!r} does not fit in 64 bits.")
        page_bytes = record.page.encode("utf-8")
        chunks.append(TIME_AND_LENGTH_STRUCT.pack(_hours_since_epoch(record.time), len(page_bytes)))
        chunks.append(page_bytes)
        chunks.append(COUNTER_STRUCT.pack(record.counter))
    return b"".join(chunks)


def decode_records(data: bytes) -> list[PageviewRecord]:
    """Decode snapshot bytes into a sorted record list.

    Raises:
        SnapshotFormatError: If the bytes are truncated, carry a bad magic,
            trailing garbage, invalid page text or out-of-order records.
        SnapshotSchemaUnsupportedError: If the format version is unknown.
    """
    view = memoryview(data)
    if len(view) < HEADER_STRUCT.size:
        raise SnapshotFormatError(reason="Snapshot header is truncated", offset=len(view))
    magic, version, count = HEADER_STRUCT.unpack_from(view, 0)
    if magic != SNAPSHOT_MAGIC:
        raise SnapshotFormatError(reason="Snapshot magic bytes do not match", offset=0)
    if version != SNAPSHOT_FORMAT_VERSION:
        raise SnapshotSchemaUnsupportedError(found=version, expected=SNAPSHOT_FORMAT_VERSION)

    offset = HEADER_STRUCT.size
    records: list[PageviewRecord] = []
    previous: PageviewRecord | None = None
    for _ in range(count):
        entry_offset = offset
        _require(view, offset, TIME_AND_LENGTH_STRUCT.size, "record header")
        hours, page_length = TIME_AND_LENGTH_STRUCT.unpack_from(view, offset)
        offset += TIME_AND_LENGTH_STRUCT.size

        _require(view, offset, page_length, "page name")
        try:
            page = bytes(view[offset : offset + page_length]).decode("utf-8")
        except UnicodeDecodeError as error:
            raise SnapshotFormatError(
                reason="Page name is not valid UTF-8", offset=offset
            ) from error
        if not page or "\t" in page:
            raise SnapshotFormatError(reason="Page name is empty or contains a tab", offset=offset)
        offset += page_length

        _require(view, offset, COUNTER_STRUCT.size, "counter")
        (counter,) = COUNTER_STRUCT.unpack_from(view, offset)
        offset += COUNTER_STRUCT.size

        try:
            time = EPOCH + hours * ONE_HOUR
        except OverflowError as error:
            raise SnapshotFormatError(
                reason="Record time is out of range", offset=entry_offset
            ) from error
        record = PageviewRecord(time=time, page=page, counter=counter)
        if previous is not None and record_sort_key(record) < record_sort_key(previous):
            raise SnapshotFormatError(reason="Records are out of order", offset=entry_offset)
        records.append(record)
        previous = record

    if offset != len(view):
        raise SnapshotFormatError(
            reason=f"Unexpected {len(view) - offset} trailing bytes", offset=offset
        )
    return records


def write_snapshot(path: Path, data: bytes) -> None:
    """Atomically replace ``path`` with ``data``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        with tmp.open("wb") as handle:
            handle.write(data)
        tmp.replace(path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


def read_snapshot(path: Path) -> bytes:
    """Read raw snapshot bytes from ``path``."""
    with path.open("rb") as handle:
        return handle.read()


def _hours_since_epoch(time: datetime) -> int:
    delta = time.replace(minute=0, second=0, microsecond=0, tzinfo=None) - EPOCH
    return delta // ONE_HOUR


def _require(view: memoryview, offset: int, size: int, what: str) -> None:
    if offset + size > len(view):
        raise SnapshotFormatError(reason=f"Snapshot is truncated inside {what}", offset=offset)
