"""Derived position state (never persisted as source of truth)."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional


@dataclass
class Position:
    """Quantity and weighted-average cost basis for an owner+instrument pair."""

    owner_id: str
    symbol: str
    quantity: Decimal = field(default_factory=lambda: Decimal("0"))
    cost_basis: Decimal = field(default_factory=lambda: Decimal("0"))
    as_of: Optional[date] = None
    # Set when a record of this instrument was skipped during replay
    consistency_fault: bool = False

    @property
    def average_cost(self) -> Decimal:
        if self.quantity <= 0:
            return Decimal("0")
        return self.cost_basis / self.quantity

    @property
    def is_open(self) -> bool:
        return self.quantity > 0
