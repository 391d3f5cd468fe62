"""Manually-valued holding endpoints."""

from fastapi import APIRouter, Depends, Query

from dividend_ledger.api.deps import get_fixed_income_service, get_owner_id
from dividend_ledger.api.schemas import (
    HoldingCreateRequest,
    HoldingListResponse,
    HoldingResponse,
    RevaluationResponse,
)
from dividend_ledger.services import FixedIncomeService, HoldingCreate

router = APIRouter(prefix="/holdings", tags=["holdings"])


@router.post("", response_model=HoldingResponse, status_code=201)
def create_holding(
    data: HoldingCreateRequest,
    owner_id: str = Depends(get_owner_id),
    service: FixedIncomeService = Depends(get_fixed_income_service),
) -> HoldingResponse:
    holding = service.create_holding(HoldingCreate(owner_id=owner_id, **data.model_dump()))
    return HoldingResponse.model_validate(holding)


@router.get("", response_model=HoldingListResponse)
def list_holdings(
    include_closed: bool = Query(False),
    owner_id: str = Depends(get_owner_id),
    service: FixedIncomeService = Depends(get_fixed_income_service),
) -> HoldingListResponse:
    holdings = service.list_holdings(owner_id, include_closed=include_closed)
    return HoldingListResponse(
        holdings=[HoldingResponse.model_validate(h) for h in holdings],
        count=len(holdings),
    )


@router.post("/{holding_id}/close", response_model=HoldingResponse)
def close_holding(
    holding_id: int,
    owner_id: str = Depends(get_owner_id),
    service: FixedIncomeService = Depends(get_fixed_income_service),
) -> HoldingResponse:
    return HoldingResponse.model_validate(service.close_holding(owner_id, holding_id))


@router.post("/revalue", response_model=RevaluationResponse)
def revalue_holdings(
    service: FixedIncomeService = Depends(get_fixed_income_service),
) -> RevaluationResponse:
    return RevaluationResponse(revalued=service.revalue_all())
