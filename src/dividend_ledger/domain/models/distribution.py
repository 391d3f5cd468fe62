"""Distribution announcement and credited distribution models."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from dividend_ledger.domain.models.enums import CreditOrigin, CreditStatus, DistributionKind


@dataclass
class DistributionAnnouncement:
    """A per-unit cash distribution announced for an instrument."""

    symbol: str
    amount_per_unit: Decimal
    entitlement_date: date
    payment_date: date
    kind: DistributionKind = DistributionKind.RECURRING_INCOME
    source: CreditOrigin = CreditOrigin.AUTO_SCRAPER
    withholding_rate: Optional[Decimal] = None  # None = use the class default

    def __post_init__(self) -> None:
        if isinstance(self.kind, str):
            self.kind = DistributionKind(self.kind)
        if isinstance(self.source, str):
            self.source = CreditOrigin(self.source)
        self.symbol = self.symbol.strip().upper()


@dataclass
class CreditedDistribution:
    """
    Ledger entry for a distribution owed to an owner.

    Unique per (owner_id, symbol, payment_date, origin). Only status may change
    after creation (PENDING -> RECEIVED).
    """

    owner_id: str
    symbol: str
    amount_per_unit: Decimal
    quantity: Decimal
    gross_amount: Decimal
    withholding: Decimal
    net_amount: Decimal
    entitlement_date: date
    payment_date: date
    status: CreditStatus = CreditStatus.PENDING
    origin: CreditOrigin = CreditOrigin.MANUAL
    kind: DistributionKind = DistributionKind.RECURRING_INCOME
    note: Optional[str] = None
    entry_id: Optional[int] = None
    created_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.status, str):
            self.status = CreditStatus(self.status)
        if isinstance(self.origin, str):
            self.origin = CreditOrigin(self.origin)
        if isinstance(self.kind, str):
            self.kind = DistributionKind(self.kind)
        self.symbol = self.symbol.strip().upper()
