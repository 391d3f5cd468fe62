"""View models for portfolio valuation and metrics outputs."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from dividend_ledger.domain.models.enums import (
    HealthStatus,
    InstrumentClass,
    PriceSource,
    RiskLevel,
)
from dividend_ledger.domain.models.holding import ManualHolding
from dividend_ledger.domain.models.indicators import IndicatorAnalysis

ZERO = Decimal("0")


@dataclass
class RentabilityBreakdown:
    """
    Inputs and formula behind a return figure.

    capital_gain == current_value - invested_capital and
    total_return == capital_gain + dividends_received, always.
    """

    invested_capital: Decimal
    current_value: Decimal
    dividends_received: Decimal
    capital_gain: Decimal
    total_return: Decimal
    total_return_percent: Decimal
    formula: str = "totalReturn = capitalGain + dividendsReceived"
    calculation: str = ""


@dataclass
class RiskAssessment:
    """Risk level with every contributing reason spelled out."""

    level: RiskLevel
    score: int
    reasons: list[str] = field(default_factory=list)


@dataclass
class PositionView:
    """A current position enriched with price, returns, concentration and risk."""

    symbol: str
    name: str
    instrument_class: InstrumentClass
    quantity: Decimal
    cost_basis: Decimal
    average_cost: Decimal
    current_price: Decimal
    price_source: PriceSource
    current_value: Decimal
    capital_gain: Decimal
    dividends_received: Decimal
    total_return: Decimal
    total_return_percent: Decimal
    breakdown: RentabilityBreakdown
    segment: Optional[str] = None
    is_stale: bool = False
    concentration_percent: Decimal = ZERO
    risk: Optional[RiskAssessment] = None
    analysis: Optional[IndicatorAnalysis] = None
    daily_liquidity: Optional[Decimal] = None
    valuation_ratio: Optional[Decimal] = None
    annual_yield: Optional[Decimal] = None
    last_distribution_amount: Optional[Decimal] = None
    projected_monthly_income: Decimal = ZERO


@dataclass
class ConcentrationItem:
    """Share of portfolio value held in one asset, class or segment."""

    key: str
    value: Decimal
    percentage: Decimal


@dataclass
class ConcentrationView:
    """Portfolio concentration breakdown."""

    by_asset: list[ConcentrationItem] = field(default_factory=list)
    by_class: list[ConcentrationItem] = field(default_factory=list)
    by_segment: list[ConcentrationItem] = field(default_factory=list)
    top1_percent: Decimal = ZERO
    top3_percent: Decimal = ZERO
    is_over_concentrated: bool = False
    asset_count: int = 0


@dataclass
class RankingEntry:
    symbol: str
    value: Decimal


@dataclass
class RankingsView:
    """Top-N sorts over the enriched position list."""

    top_dividend_payers: list[RankingEntry] = field(default_factory=list)
    largest_positions: list[RankingEntry] = field(default_factory=list)
    most_profitable: list[RankingEntry] = field(default_factory=list)
    least_profitable: list[RankingEntry] = field(default_factory=list)
    risk_counts: dict[str, int] = field(default_factory=dict)


@dataclass
class HealthAdjustment:
    """A named, signed change applied to the base health score."""

    factor: str
    impact: int


@dataclass
class HealthScore:
    """Portfolio health score with the adjustments that produced it."""

    score: int
    status: HealthStatus
    adjustments: list[HealthAdjustment] = field(default_factory=list)
    base_score: int = 100
    formula: str = "score = 100 + sum(adjustments)"


@dataclass
class HighRiskPosition:
    symbol: str
    reasons: list[str] = field(default_factory=list)


@dataclass
class KeyIndicators:
    """Headline facts extracted from the enriched portfolio."""

    most_profitable: Optional[RankingEntry] = None
    high_risk: list[HighRiskPosition] = field(default_factory=list)
    top_concentration: Optional[ConcentrationItem] = None
    top_segment: Optional[ConcentrationItem] = None


@dataclass
class PortfolioDocument:
    """Full valuation and metrics document for one owner."""

    owner_id: str
    as_of: datetime
    positions: list[PositionView] = field(default_factory=list)
    manual_holdings: list[ManualHolding] = field(default_factory=list)
    totals: Optional[RentabilityBreakdown] = None
    securities_value: Decimal = ZERO
    manual_holdings_value: Decimal = ZERO
    total_value: Decimal = ZERO
    concentration: ConcentrationView = field(default_factory=ConcentrationView)
    rankings: RankingsView = field(default_factory=RankingsView)
    health: Optional[HealthScore] = None
    key_indicators: KeyIndicators = field(default_factory=KeyIndicators)
    projected_monthly_income: Decimal = ZERO
    average_yield: Optional[Decimal] = None
    stale_symbols: list[str] = field(default_factory=list)


@dataclass
class EvolutionPoint:
    """Portfolio state at one month-end."""

    month: str  # YYYY-MM
    as_of: date
    cost_basis: Decimal = ZERO
    market_value: Decimal = ZERO
    contributions: Decimal = ZERO
    withdrawals: Decimal = ZERO
    distributions: Decimal = ZERO
    priced: bool = True


@dataclass
class PortfolioEvolution:
    owner_id: str
    months: int
    points: list[EvolutionPoint] = field(default_factory=list)
