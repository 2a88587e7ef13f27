"""In-memory page-view counter index with hour-range queries and binary snapshots."""

from pageview_index.errors import (
    InvalidIntervalError,
    RecordParseError,
    SnapshotFormatError,
    SnapshotSchemaUnsupportedError,
)
from pageview_index.index import IngestReport, PageviewIndex, SkippedLine
from pageview_index.records import (
    PageviewRecord,
    compare_records,
    format_hour,
    format_record,
    parse_hour,
    parse_line,
)

__all__ = [
    "IngestReport",
    "InvalidIntervalError",
    "PageviewIndex",
    "PageviewRecord",
    "RecordParseError",
    "SkippedLine",
    "SnapshotFormatError",
    "SnapshotSchemaUnsupportedError",
    "compare_records",
    "format_hour",
    "format_record",
    "parse_hour",
    "parse_line",
]
