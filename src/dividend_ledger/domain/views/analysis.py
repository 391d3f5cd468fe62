"""View models for instrument comparison."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from dividend_ledger.domain.models.enums import RiskLevel, Trend, ValuationClass


@dataclass
class ComparisonRow:
    symbol: str
    annual_yield: Optional[Decimal] = None
    valuation_ratio: Optional[Decimal] = None
    valuation_class: ValuationClass = ValuationClass.UNKNOWN
    daily_liquidity: Optional[Decimal] = None
    consistency: Decimal = field(default_factory=lambda: Decimal("0"))
    trend: Trend = Trend.UNKNOWN
    risk_level: RiskLevel = RiskLevel.UNKNOWN


@dataclass
class InstrumentComparison:
    """Side-by-side comparison with the best symbol per criterion."""

    rows: list[ComparisonRow] = field(default_factory=list)
    best_yield: Optional[str] = None
    lowest_valuation_ratio: Optional[str] = None
    best_liquidity: Optional[str] = None
    best_consistency: Optional[str] = None
