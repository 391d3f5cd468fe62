"""Pydantic schemas for portfolio valuation endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from dividend_ledger.api.schemas.holding import HoldingResponse
from dividend_ledger.api.schemas.indicators import AnalysisResponse
from dividend_ledger.domain.models.enums import HealthStatus, InstrumentClass, PriceSource, RiskLevel


class BreakdownResponse(BaseModel):
    model_config = {"from_attributes": True}

    invested_capital: Decimal
    current_value: Decimal
    dividends_received: Decimal
    capital_gain: Decimal
    total_return: Decimal
    total_return_percent: Decimal
    formula: str
    calculation: str


class RiskResponse(BaseModel):
    model_config = {"from_attributes": True}

    level: RiskLevel
    score: int
    reasons: list[str]


class PositionViewResponse(BaseModel):
    model_config = {"from_attributes": True}

    symbol: str
    name: str
    instrument_class: InstrumentClass
    segment: Optional[str] = None
    quantity: Decimal
    cost_basis: Decimal
    average_cost: Decimal
    current_price: Decimal
    price_source: PriceSource
    is_stale: bool
    current_value: Decimal
    capital_gain: Decimal
    dividends_received: Decimal
    total_return: Decimal
    total_return_percent: Decimal
    concentration_percent: Decimal
    breakdown: BreakdownResponse
    risk: Optional[RiskResponse] = None
    analysis: Optional[AnalysisResponse] = None
    daily_liquidity: Optional[Decimal] = None
    valuation_ratio: Optional[Decimal] = None
    annual_yield: Optional[Decimal] = None
    last_distribution_amount: Optional[Decimal] = None
    projected_monthly_income: Decimal


class ConcentrationItemResponse(BaseModel):
    model_config = {"from_attributes": True}

    key: str
    value: Decimal
    percentage: Decimal


class ConcentrationResponse(BaseModel):
    model_config = {"from_attributes": True}

    by_asset: list[ConcentrationItemResponse]
    by_class: list[ConcentrationItemResponse]
    by_segment: list[ConcentrationItemResponse]
    top1_percent: Decimal
    top3_percent: Decimal
    is_over_concentrated: bool
    asset_count: int


class RankingEntryResponse(BaseModel):
    model_config = {"from_attributes": True}

    symbol: str
    value: Decimal


class RankingsResponse(BaseModel):
    model_config = {"from_attributes": True}

    top_dividend_payers: list[RankingEntryResponse]
    largest_positions: list[RankingEntryResponse]
    most_profitable: list[RankingEntryResponse]
    least_profitable: list[RankingEntryResponse]
    risk_counts: dict[str, int]


class HealthAdjustmentResponse(BaseModel):
    model_config = {"from_attributes": True}

    factor: str
    impact: int


class HealthResponse(BaseModel):
    model_config = {"from_attributes": True}

    score: int
    status: HealthStatus
    base_score: int
    formula: str
    adjustments: list[HealthAdjustmentResponse]


class HighRiskResponse(BaseModel):
    model_config = {"from_attributes": True}

    symbol: str
    reasons: list[str]


class KeyIndicatorsResponse(BaseModel):
    model_config = {"from_attributes": True}

    most_profitable: Optional[RankingEntryResponse] = None
    high_risk: list[HighRiskResponse]
    top_concentration: Optional[ConcentrationItemResponse] = None
    top_segment: Optional[ConcentrationItemResponse] = None


class PortfolioResponse(BaseModel):
    """Valuation and metrics document."""

    model_config = {"from_attributes": True}

    owner_id: str
    as_of: datetime
    positions: list[PositionViewResponse]
    manual_holdings: list[HoldingResponse]
    totals: Optional[BreakdownResponse] = None
    securities_value: Decimal
    manual_holdings_value: Decimal
    total_value: Decimal
    concentration: ConcentrationResponse
    rankings: RankingsResponse
    health: Optional[HealthResponse] = None
    key_indicators: KeyIndicatorsResponse
    projected_monthly_income: Decimal
    average_yield: Optional[Decimal] = None
    stale_symbols: list[str]


class EvolutionPointResponse(BaseModel):
    model_config = {"from_attributes": True}

    month: str
    as_of: date
    cost_basis: Decimal
    market_value: Decimal
    contributions: Decimal
    withdrawals: Decimal
    distributions: Decimal
    priced: bool


class EvolutionResponse(BaseModel):
    model_config = {"from_attributes": True}

    owner_id: str
    months: int
    points: list[EvolutionPointResponse]
