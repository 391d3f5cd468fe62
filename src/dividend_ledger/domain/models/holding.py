"""Manually-valued holding model (fixed-income-like products)."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from dividend_ledger.domain.models.enums import HoldingCategory, HoldingStatus, ReturnType


@dataclass
class ManualHolding:
    """
    A holding valued by amount rather than units.

    rate semantics depend on return_type:
    - PREFIXED: annual rate in percent
    - CDI: percent of CDI (e.g. 110)
    - IPCA: real spread over inflation in percent
    - SELIC: unused, bonus_rate is added to Selic
    """

    owner_id: str
    name: str
    invested_amount: Decimal
    start_date: date
    category: HoldingCategory = HoldingCategory.OTHER
    return_type: Optional[ReturnType] = None
    rate: Decimal = field(default_factory=lambda: Decimal("0"))
    bonus_rate: Decimal = field(default_factory=lambda: Decimal("0"))
    current_value: Optional[Decimal] = None
    maturity_date: Optional[date] = None
    status: HoldingStatus = HoldingStatus.ACTIVE
    holding_id: Optional[int] = None
    last_valued_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if isinstance(self.category, str):
            self.category = HoldingCategory(self.category)
        if isinstance(self.status, str):
            self.status = HoldingStatus(self.status)
        if isinstance(self.return_type, str):
            self.return_type = ReturnType(self.return_type)

    @property
    def is_active(self) -> bool:
        return self.status == HoldingStatus.ACTIVE

    @property
    def effective_value(self) -> Decimal:
        """Current value when known, else the invested amount."""
        return self.current_value if self.current_value is not None else self.invested_amount
