"""Pydantic schemas for manually-valued holding endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from dividend_ledger.domain.models.enums import HoldingCategory, HoldingStatus, ReturnType


class HoldingCreateRequest(BaseModel):
    """Request schema for a manual holding."""

    name: str = Field(..., min_length=1, max_length=200)
    invested_amount: Decimal = Field(..., gt=0)
    start_date: date
    category: HoldingCategory = HoldingCategory.OTHER
    return_type: Optional[ReturnType] = Field(default=None, description="Leave empty to value the holding by hand")
    rate: Decimal = Field(default=Decimal("0"), ge=0)
    bonus_rate: Decimal = Field(default=Decimal("0"))
    current_value: Optional[Decimal] = Field(default=None, ge=0)
    maturity_date: Optional[date] = None


class HoldingResponse(BaseModel):
    model_config = {"from_attributes": True}

    holding_id: int
    owner_id: str
    name: str
    category: HoldingCategory
    return_type: Optional[ReturnType] = None
    rate: Decimal
    bonus_rate: Decimal
    invested_amount: Decimal
    current_value: Optional[Decimal] = None
    effective_value: Decimal
    start_date: date
    maturity_date: Optional[date] = None
    status: HoldingStatus
    last_valued_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None


class HoldingListResponse(BaseModel):
    holdings: list[HoldingResponse]
    count: int


class RevaluationResponse(BaseModel):
    revalued: int
