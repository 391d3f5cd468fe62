"""Ownership event and position endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from dividend_ledger.api.deps import get_ledger_service, get_owner_id
from dividend_ledger.api.schemas import (
    EventCancelRequest,
    EventCreateRequest,
    EventListResponse,
    EventResponse,
    PositionListResponse,
    PositionResponse,
)
from dividend_ledger.core.timezone import today_market
from dividend_ledger.services import EventCreate, LedgerService

router = APIRouter(tags=["events"])


@router.post("/events", response_model=EventResponse, status_code=201)
def record_event(
    data: EventCreateRequest,
    owner_id: str = Depends(get_owner_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> EventResponse:
    """Append an acquisition or disposal. Over-disposal is rejected with 409."""
    event = ledger.record_event(
        EventCreate(
            owner_id=owner_id,
            symbol=data.symbol,
            direction=data.direction,
            quantity=data.quantity,
            unit_price=data.unit_price,
            effective_date=data.effective_date,
            fees=data.fees,
            venue=data.venue,
            note=data.note,
        )
    )
    return EventResponse.model_validate(event)


@router.get("/events", response_model=EventListResponse)
def list_events(
    symbol: Optional[str] = Query(None),
    since: Optional[date] = Query(None),
    until: Optional[date] = Query(None),
    owner_id: str = Depends(get_owner_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> EventListResponse:
    events = ledger.list_events(owner_id, symbol=symbol, since=since, until=until)
    return EventListResponse(
        events=[EventResponse.model_validate(e) for e in events],
        count=len(events),
    )


@router.post("/events/{sequence}/cancel", response_model=EventResponse, status_code=201)
def cancel_event(
    sequence: int,
    data: Optional[EventCancelRequest] = None,
    owner_id: str = Depends(get_owner_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> EventResponse:
    """Append the compensating event for an earlier one."""
    event = ledger.cancel_event(owner_id, sequence, note=data.note if data else None)
    return EventResponse.model_validate(event)


@router.get("/positions", response_model=PositionListResponse)
def list_positions(
    as_of: Optional[date] = Query(None, description="Defaults to today"),
    owner_id: str = Depends(get_owner_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> PositionListResponse:
    as_of = as_of or today_market()
    positions = ledger.positions_as_of(owner_id, as_of)
    return PositionListResponse(
        positions=[PositionResponse.model_validate(p) for p in positions],
        as_of=as_of,
    )


@router.get("/positions/{symbol}", response_model=PositionResponse)
def reconstruct_position(
    symbol: str,
    as_of: Optional[date] = Query(None, description="Defaults to today"),
    owner_id: str = Depends(get_owner_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> PositionResponse:
    position = ledger.reconstruct_position(owner_id, symbol, as_of)
    return PositionResponse.model_validate(position)
