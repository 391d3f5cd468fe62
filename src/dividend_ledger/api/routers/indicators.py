"""Indicator sync and market cache endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from dividend_ledger.api.deps import get_indicator_sync_service, get_market_data_service
from dividend_ledger.api.schemas import (
    ComparisonResponse,
    IndicatorSnapshotResponse,
    SyncSummaryResponse,
)
from dividend_ledger.core.exceptions import ValidationError
from dividend_ledger.services import IndicatorSyncService, MarketDataService

router = APIRouter(tags=["indicators"])


@router.get("/indicators/compare", response_model=ComparisonResponse)
def compare_instruments(
    symbols: list[str] = Query(..., description="Two or more symbols"),
    sync: IndicatorSyncService = Depends(get_indicator_sync_service),
) -> ComparisonResponse:
    if len(symbols) < 2:
        raise ValidationError("Provide at least two symbols to compare")
    return ComparisonResponse.model_validate(sync.compare(symbols))


@router.post("/indicators/sync", response_model=SyncSummaryResponse)
def sync_held_instruments(
    sync: IndicatorSyncService = Depends(get_indicator_sync_service),
) -> SyncSummaryResponse:
    """Sync every real-estate fund any owner currently holds."""
    return SyncSummaryResponse.model_validate(sync.sync_held_instruments())


@router.get("/indicators/{symbol}", response_model=IndicatorSnapshotResponse)
def get_indicators(
    symbol: str,
    refresh: bool = Query(False, description="Force a fresh scrape"),
    sync: IndicatorSyncService = Depends(get_indicator_sync_service),
) -> IndicatorSnapshotResponse:
    return IndicatorSnapshotResponse.model_validate(sync.get_indicators(symbol, force_refresh=refresh))


@router.post("/indicators/{symbol}/sync", response_model=IndicatorSnapshotResponse)
def sync_instrument(
    symbol: str,
    sync: IndicatorSyncService = Depends(get_indicator_sync_service),
) -> IndicatorSnapshotResponse:
    """Scrape now. 404 when the source does not know the symbol, 503 when it is unreachable."""
    return IndicatorSnapshotResponse.model_validate(sync.sync_instrument(symbol))


@router.post("/cache/invalidate")
def invalidate_cache(
    symbol: Optional[list[str]] = Query(None, description="Symbols to drop; all when omitted"),
    market_data: MarketDataService = Depends(get_market_data_service),
) -> dict[str, str]:
    """Explicit "refresh now": drop cached quotes and reference data."""
    market_data.invalidate(symbol)
    return {"status": "invalidated"}
