"""View models for distribution income."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from dividend_ledger.domain.models.distribution import CreditedDistribution
from dividend_ledger.domain.models.enums import IncomeTrend

ZERO = Decimal("0")


@dataclass
class IncomeTrendView:
    """Income in the current period compared with the previous one."""

    months: int
    current: Decimal = ZERO
    previous: Decimal = ZERO
    change_percent: Optional[Decimal] = None
    trend: IncomeTrend = IncomeTrend.STABLE


@dataclass
class DistributionIncomeView:
    """Aggregated distribution income for an owner."""

    owner_id: str
    this_month: Decimal = ZERO
    this_year: Decimal = ZERO
    all_time: Decimal = ZERO
    trailing_window: Decimal = ZERO
    window_months: int = 12
    trend_3m: Optional[IncomeTrendView] = None
    trend_6m: Optional[IncomeTrendView] = None
    by_instrument: dict[str, Decimal] = field(default_factory=dict)
    by_month: dict[str, Decimal] = field(default_factory=dict)
    recent: list[CreditedDistribution] = field(default_factory=list)
