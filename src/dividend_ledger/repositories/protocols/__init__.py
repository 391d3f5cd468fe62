"""Repository protocol definitions (interfaces)."""

from dividend_ledger.repositories.protocols.instrument_repo import InstrumentRepository
from dividend_ledger.repositories.protocols.event_repo import EventRepository
from dividend_ledger.repositories.protocols.distribution_repo import DistributionRepository
from dividend_ledger.repositories.protocols.indicator_repo import IndicatorRepository
from dividend_ledger.repositories.protocols.holding_repo import HoldingRepository

__all__ = [
    "InstrumentRepository",
    "EventRepository",
    "DistributionRepository",
    "IndicatorRepository",
    "HoldingRepository",
]
