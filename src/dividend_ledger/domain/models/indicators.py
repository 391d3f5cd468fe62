"""Normalized secondary-source indicators and their cached snapshot."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from dividend_ledger.domain.models.enums import RiskLevel, SyncStatus, Trend, ValuationClass


@dataclass
class DistributionRecord:
    """One historical distribution as reported by the indicator source."""

    amount: Decimal
    payment_date: Optional[date] = None
    entitlement_date: Optional[date] = None
    yield_percent: Optional[Decimal] = None

    @property
    def reference_date(self) -> Optional[date]:
        return self.payment_date or self.entitlement_date


@dataclass
class InstrumentIndicators:
    """
    Normalized indicators for one instrument.

    All numbers are already converted from the source locale. Missing values
    are None, never zero. distribution_history is most recent first.
    """

    symbol: str
    price: Optional[Decimal] = None
    valuation_ratio: Optional[Decimal] = None  # price / book value per unit
    net_worth: Optional[Decimal] = None
    equity_value_per_unit: Optional[Decimal] = None
    daily_liquidity: Optional[Decimal] = None
    holder_count: Optional[int] = None
    segment: Optional[str] = None
    last_yield: Optional[Decimal] = None
    distribution_history: list[DistributionRecord] = field(default_factory=list)
    last_distribution_amount: Optional[Decimal] = None
    last_distribution_date: Optional[date] = None
    trailing_12m_total: Decimal = field(default_factory=lambda: Decimal("0"))
    trailing_12m_count: int = 0
    annual_yield: Optional[Decimal] = None
    fetched_at: Optional[datetime] = None


@dataclass
class IndicatorAnalysis:
    """Classifications derived from indicators by the analyzer."""

    trend: Trend = Trend.UNKNOWN
    consistency: Decimal = field(default_factory=lambda: Decimal("0"))
    valuation_class: ValuationClass = ValuationClass.UNKNOWN
    risk_level: RiskLevel = RiskLevel.UNKNOWN
    insights: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if isinstance(self.trend, str):
            self.trend = Trend(self.trend)
        if isinstance(self.valuation_class, str):
            self.valuation_class = ValuationClass(self.valuation_class)
        if isinstance(self.risk_level, str):
            self.risk_level = RiskLevel(self.risk_level)


@dataclass
class IndicatorSnapshot:
    """
    Cached indicators for one instrument (one row per instrument).

    Overwritten on each successful sync; a failed sync only updates the
    sync bookkeeping and keeps the last good indicators.
    """

    symbol: str
    indicators: Optional[InstrumentIndicators] = None
    analysis: Optional[IndicatorAnalysis] = None
    last_sync_at: Optional[datetime] = None
    last_sync_status: Optional[SyncStatus] = None
    last_sync_error: Optional[str] = None
    error_count: int = 0
    is_stale: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.last_sync_status, str):
            self.last_sync_status = SyncStatus(self.last_sync_status)
