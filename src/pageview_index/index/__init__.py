"""Sorted page-view index, ingestion and snapshot codec."""

from .ingest import parse_lines, read_source_lines
from .models import IngestReport, SkippedLine
from .snapshot import (
    SNAPSHOT_FORMAT_VERSION,
    decode_records,
    encode_records,
    read_snapshot,
    write_snapshot,
)
from .store import PageviewIndex

__all__ = [
    "IngestReport",
    "PageviewIndex",
    "SNAPSHOT_FORMAT_VERSION",
    "SkippedLine",
    "decode_records",
    "encode_records",
    "parse_lines",
    "read_snapshot",
    "read_source_lines",
    "write_snapshot",
]
