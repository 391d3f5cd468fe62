"""Instrument catalog endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from dividend_ledger.api.deps import get_catalog_service
from dividend_ledger.api.schemas import (
    InstrumentCreateRequest,
    InstrumentListResponse,
    InstrumentResponse,
)
from dividend_ledger.domain.models import InstrumentClass
from dividend_ledger.services import CatalogService

router = APIRouter(prefix="/instruments", tags=["instruments"])


@router.post("", response_model=InstrumentResponse, status_code=201)
def register_instrument(
    data: InstrumentCreateRequest,
    catalog: CatalogService = Depends(get_catalog_service),
) -> InstrumentResponse:
    """Register or update an instrument."""
    instrument = catalog.register_instrument(
        symbol=data.symbol,
        name=data.name,
        instrument_class=data.instrument_class,
        segment=data.segment,
        is_active=data.is_active,
    )
    return InstrumentResponse.model_validate(instrument)


@router.get("", response_model=InstrumentListResponse)
def list_instruments(
    active_only: bool = Query(True),
    instrument_class: Optional[InstrumentClass] = Query(None),
    catalog: CatalogService = Depends(get_catalog_service),
) -> InstrumentListResponse:
    instruments = catalog.list_instruments(active_only=active_only, instrument_class=instrument_class)
    return InstrumentListResponse(
        instruments=[InstrumentResponse.model_validate(i) for i in instruments],
        count=len(instruments),
    )


@router.get("/{symbol}", response_model=InstrumentResponse)
def get_instrument(
    symbol: str,
    resolve: bool = Query(False, description="Register from reference data when unknown"),
    catalog: CatalogService = Depends(get_catalog_service),
) -> InstrumentResponse:
    instrument = catalog.ensure_instrument(symbol) if resolve else catalog.get_instrument(symbol)
    return InstrumentResponse.model_validate(instrument)
