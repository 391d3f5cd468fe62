"""Ownership event domain model."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from dividend_ledger.domain.models.enums import EventDirection


@dataclass
class OwnershipEvent:
    """
    Append-only buy/sell record (source of truth for positions).

    Events are never updated or deleted. A cancellation is a new event in the
    opposite direction whose cancels_sequence points at the cancelled event;
    replay drops the pair. Replay order is (effective_date, sequence), where
    sequence is the storage insertion order.
    """

    owner_id: str
    symbol: str
    direction: EventDirection
    quantity: Decimal
    unit_price: Decimal
    effective_date: date
    fees: Decimal = field(default_factory=lambda: Decimal("0"))
    venue: Optional[str] = None
    note: Optional[str] = None
    cancels_sequence: Optional[int] = None
    sequence: Optional[int] = None
    created_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.direction, str):
            self.direction = EventDirection(self.direction)
        self.symbol = self.symbol.strip().upper()

    @property
    def is_acquisition(self) -> bool:
        return self.direction == EventDirection.ACQUIRE

    @property
    def is_compensating(self) -> bool:
        """True for a cancellation event."""
        return self.cancels_sequence is not None

    @property
    def gross_amount(self) -> Decimal:
        """quantity * unit_price, before fees."""
        return self.quantity * self.unit_price

    @property
    def sort_key(self) -> tuple:
        # Unsaved events sort after persisted ones on the same day
        seq = self.sequence if self.sequence is not None else float("inf")
        return (self.effective_date, seq)
