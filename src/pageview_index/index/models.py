"""Typed models for ingestion results."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class SkippedLine:
    """A source line rejected while building with ``skip_invalid``."""

    line_number: int
    text: str
    message: str


@dataclass(slots=True, frozen=True)
class IngestReport:
    """Outcome of one index build."""

    records_ingested: int
    skipped: tuple[SkippedLine, ...]
