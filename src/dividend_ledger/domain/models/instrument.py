"""Instrument domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from dividend_ledger.domain.models.enums import InstrumentClass


@dataclass
class Instrument:
    """
    A tradable security, identified by its symbol.

    The symbol never changes; name, class, segment and active flag are
    refreshed from reference data.
    """

    symbol: str
    name: str
    instrument_class: InstrumentClass = InstrumentClass.EQUITY
    segment: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        self.symbol = self.symbol.strip().upper()
        if isinstance(self.instrument_class, str):
            self.instrument_class = InstrumentClass(self.instrument_class)

    @property
    def is_tax_exempt(self) -> bool:
        """Distributions of real-estate funds carry no withholding."""
        return self.instrument_class == InstrumentClass.REAL_ESTATE_FUND
