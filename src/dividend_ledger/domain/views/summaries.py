"""Summaries returned by batch operations."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class SweepSummary:
    """Outcome of a distribution sweep. One item's failure never aborts the batch."""

    processed: int = 0
    created: int = 0
    skipped: int = 0
    errors: int = 0
    promoted: int = 0
    error_details: list[str] = field(default_factory=list)


@dataclass
class SyncOutcome:
    symbol: str
    success: bool
    error: Optional[str] = None
    error_code: Optional[str] = None


@dataclass
class SyncSummary:
    """Outcome of a multi-instrument indicator sync."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    outcomes: list[SyncOutcome] = field(default_factory=list)


@dataclass
class ImportSummary:
    """Summary of CSV import operation."""

    imported_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    errors: list[str] = field(default_factory=list)
