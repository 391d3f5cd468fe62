"""Pydantic schemas for instrument endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from dividend_ledger.domain.models.enums import InstrumentClass


class InstrumentCreateRequest(BaseModel):
    """Request schema for registering an instrument."""

    symbol: str = Field(..., min_length=1, max_length=20, description="Exchange symbol")
    name: str = Field(..., min_length=1, max_length=200, description="Display name")
    instrument_class: InstrumentClass = Field(default=InstrumentClass.EQUITY)
    segment: Optional[str] = Field(default=None, max_length=100)
    is_active: bool = True

    @field_validator("symbol")
    @classmethod
    def uppercase_symbol(cls, v: str) -> str:
        return v.strip().upper()


class InstrumentResponse(BaseModel):
    """Response schema for a single instrument."""

    model_config = {"from_attributes": True}

    symbol: str
    name: str
    instrument_class: InstrumentClass
    segment: Optional[str] = None
    is_active: bool
    is_tax_exempt: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class InstrumentListResponse(BaseModel):
    instruments: list[InstrumentResponse]
    count: int
