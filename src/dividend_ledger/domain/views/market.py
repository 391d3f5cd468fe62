"""View models for market data."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from dividend_ledger.domain.models.enums import InstrumentClass


@dataclass
class Quote:
    """Market quote data for a symbol."""

    symbol: str
    price: Decimal
    as_of: datetime
    change_percent: Optional[Decimal] = None
    prev_close: Optional[Decimal] = None


@dataclass
class ReferenceData:
    """Descriptive data used to register an instrument."""

    symbol: str
    name: str
    instrument_class: InstrumentClass = InstrumentClass.OTHER
    currency: Optional[str] = None
    segment: Optional[str] = None
