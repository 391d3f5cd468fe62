"""Indicator snapshot repository protocol."""

from datetime import datetime
from typing import Protocol, Optional

from dividend_ledger.domain.models import IndicatorAnalysis, IndicatorSnapshot, InstrumentIndicators


class IndicatorRepository(Protocol):
    """Interface for cached indicator snapshots (one per instrument)."""

    def get(self, symbol: str) -> Optional[IndicatorSnapshot]:
        """Retrieve the snapshot for a symbol."""
        ...

    def save_success(
        self,
        indicators: InstrumentIndicators,
        analysis: IndicatorAnalysis,
        synced_at: datetime,
    ) -> IndicatorSnapshot:
        """Overwrite the snapshot with fresh indicators and SUCCESS status."""
        ...

    def record_failure(self, symbol: str, error: str, synced_at: datetime) -> IndicatorSnapshot:
        """Mark the last sync as ERROR and increment the error count."""
        ...

    def list_all(self) -> list[IndicatorSnapshot]:
        """List all snapshots."""
        ...
