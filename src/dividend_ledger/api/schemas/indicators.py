"""Pydantic schemas for indicator endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from dividend_ledger.domain.models.enums import RiskLevel, SyncStatus, Trend, ValuationClass


class DistributionRecordResponse(BaseModel):
    model_config = {"from_attributes": True}

    amount: Decimal
    payment_date: Optional[date] = None
    entitlement_date: Optional[date] = None
    yield_percent: Optional[Decimal] = None


class IndicatorsResponse(BaseModel):
    model_config = {"from_attributes": True}

    price: Optional[Decimal] = None
    valuation_ratio: Optional[Decimal] = None
    net_worth: Optional[Decimal] = None
    equity_value_per_unit: Optional[Decimal] = None
    daily_liquidity: Optional[Decimal] = None
    holder_count: Optional[int] = None
    segment: Optional[str] = None
    last_yield: Optional[Decimal] = None
    last_distribution_amount: Optional[Decimal] = None
    last_distribution_date: Optional[date] = None
    trailing_12m_total: Decimal
    trailing_12m_count: int
    annual_yield: Optional[Decimal] = None
    distribution_history: list[DistributionRecordResponse]
    fetched_at: Optional[datetime] = None


class AnalysisResponse(BaseModel):
    model_config = {"from_attributes": True}

    trend: Trend
    consistency: Decimal
    valuation_class: ValuationClass
    risk_level: RiskLevel
    insights: list[str]


class IndicatorSnapshotResponse(BaseModel):
    """Cached indicators plus sync bookkeeping."""

    model_config = {"from_attributes": True}

    symbol: str
    indicators: Optional[IndicatorsResponse] = None
    analysis: Optional[AnalysisResponse] = None
    last_sync_at: Optional[datetime] = None
    last_sync_status: Optional[SyncStatus] = None
    last_sync_error: Optional[str] = None
    error_count: int
    is_stale: bool


class SyncOutcomeResponse(BaseModel):
    model_config = {"from_attributes": True}

    symbol: str
    success: bool
    error: Optional[str] = None
    error_code: Optional[str] = None


class SyncSummaryResponse(BaseModel):
    model_config = {"from_attributes": True}

    total: int
    succeeded: int
    failed: int
    outcomes: list[SyncOutcomeResponse]


class ComparisonRowResponse(BaseModel):
    model_config = {"from_attributes": True}

    symbol: str
    annual_yield: Optional[Decimal] = None
    valuation_ratio: Optional[Decimal] = None
    valuation_class: ValuationClass
    daily_liquidity: Optional[Decimal] = None
    consistency: Decimal
    trend: Trend
    risk_level: RiskLevel


class ComparisonResponse(BaseModel):
    model_config = {"from_attributes": True}

    rows: list[ComparisonRowResponse]
    best_yield: Optional[str] = None
    lowest_valuation_ratio: Optional[str] = None
    best_liquidity: Optional[str] = None
    best_consistency: Optional[str] = None
