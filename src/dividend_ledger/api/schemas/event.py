"""Pydantic schemas for ownership event and position endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from dividend_ledger.domain.models.enums import EventDirection


class EventCreateRequest(BaseModel):
    """Request schema for recording an ownership event."""

    symbol: str = Field(..., min_length=1, max_length=20)
    direction: EventDirection
    quantity: Decimal = Field(..., gt=0, description="Units acquired or disposed")
    unit_price: Decimal = Field(..., ge=0)
    effective_date: Optional[date] = Field(default=None, description="Defaults to today (market time)")
    fees: Decimal = Field(default=Decimal("0"), ge=0)
    venue: Optional[str] = Field(default=None, max_length=50)
    note: Optional[str] = Field(default=None, max_length=500)

    @field_validator("symbol")
    @classmethod
    def uppercase_symbol(cls, v: str) -> str:
        return v.strip().upper()


class EventCancelRequest(BaseModel):
    note: Optional[str] = Field(default=None, max_length=500)


class EventResponse(BaseModel):
    """Response schema for a single event."""

    model_config = {"from_attributes": True}

    sequence: int
    owner_id: str
    symbol: str
    direction: EventDirection
    quantity: Decimal
    unit_price: Decimal
    fees: Decimal
    effective_date: date
    venue: Optional[str] = None
    note: Optional[str] = None
    cancels_sequence: Optional[int] = Field(default=None, description="Set on a cancellation event")
    created_at: Optional[datetime] = None


class EventListResponse(BaseModel):
    events: list[EventResponse]
    count: int


class PositionResponse(BaseModel):
    """Reconstructed position for one instrument."""

    model_config = {"from_attributes": True}

    owner_id: str
    symbol: str
    quantity: Decimal
    cost_basis: Decimal
    average_cost: Decimal
    as_of: Optional[date] = None
    consistency_fault: bool = False


class PositionListResponse(BaseModel):
    positions: list[PositionResponse]
    as_of: date
