"""Pydantic schemas for distribution endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from dividend_ledger.domain.models.enums import CreditOrigin, CreditStatus, DistributionKind, IncomeTrend


class ManualDistributionRequest(BaseModel):
    """Request schema for a user-entered distribution."""

    symbol: str = Field(..., min_length=1, max_length=20)
    amount_per_unit: Decimal = Field(..., gt=0)
    payment_date: date
    entitlement_date: Optional[date] = None
    quantity: Optional[Decimal] = Field(default=None, gt=0, description="Defaults to the position on the entitlement date")
    withholding: Optional[Decimal] = Field(default=None, ge=0)
    kind: DistributionKind = DistributionKind.DIVIDEND
    note: Optional[str] = Field(default=None, max_length=500)

    @field_validator("symbol")
    @classmethod
    def uppercase_symbol(cls, v: str) -> str:
        return v.strip().upper()


class DistributionResponse(BaseModel):
    """Response schema for a ledger entry."""

    model_config = {"from_attributes": True}

    entry_id: int
    owner_id: str
    symbol: str
    amount_per_unit: Decimal
    quantity: Decimal
    gross_amount: Decimal
    withholding: Decimal
    net_amount: Decimal
    entitlement_date: date
    payment_date: date
    status: CreditStatus
    origin: CreditOrigin
    kind: DistributionKind
    note: Optional[str] = None
    created_at: Optional[datetime] = None


class DistributionListResponse(BaseModel):
    distributions: list[DistributionResponse]
    count: int


class SweepSummaryResponse(BaseModel):
    model_config = {"from_attributes": True}

    processed: int
    created: int
    skipped: int
    errors: int
    promoted: int
    error_details: list[str]


class IncomeTrendResponse(BaseModel):
    model_config = {"from_attributes": True}

    months: int
    current: Decimal
    previous: Decimal
    change_percent: Optional[Decimal] = None
    trend: IncomeTrend


class DistributionIncomeResponse(BaseModel):
    """Aggregated distribution income."""

    model_config = {"from_attributes": True}

    owner_id: str
    this_month: Decimal
    this_year: Decimal
    all_time: Decimal
    trailing_window: Decimal
    window_months: int
    trend_3m: Optional[IncomeTrendResponse] = None
    trend_6m: Optional[IncomeTrendResponse] = None
    by_instrument: dict[str, Decimal]
    by_month: dict[str, Decimal]
    recent: list[DistributionResponse]
