"""Instrument repository protocol."""

from typing import Protocol, Optional

from dividend_ledger.domain.models import Instrument, InstrumentClass


class InstrumentRepository(Protocol):
    """Interface for the instrument catalog."""

    def get(self, symbol: str) -> Optional[Instrument]:
        """Retrieve an instrument by symbol."""
        ...

    def upsert(self, instrument: Instrument) -> Instrument:
        """Create the instrument or refresh its descriptive fields."""
        ...

    def list_all(
        self,
        active_only: bool = False,
        instrument_class: Optional[InstrumentClass] = None,
    ) -> list[Instrument]:
        """List instruments ordered by symbol."""
        ...
