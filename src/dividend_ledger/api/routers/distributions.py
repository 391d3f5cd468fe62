"""Distribution ledger endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from dividend_ledger.api.deps import get_crediting_service, get_owner_id, get_valuation_service
from dividend_ledger.api.schemas import (
    DistributionIncomeResponse,
    DistributionListResponse,
    DistributionResponse,
    ManualDistributionRequest,
    SweepSummaryResponse,
)
from dividend_ledger.services import CreditingService, ManualDistributionCreate, ValuationService

router = APIRouter(prefix="/distributions", tags=["distributions"])


@router.get("", response_model=DistributionListResponse)
def list_distributions(
    symbol: Optional[str] = Query(None),
    start: Optional[date] = Query(None, description="Earliest payment date"),
    end: Optional[date] = Query(None, description="Latest payment date"),
    reconciled: bool = Query(False, description="Hide automatic rows superseded by manual ones"),
    owner_id: str = Depends(get_owner_id),
    crediting: CreditingService = Depends(get_crediting_service),
) -> DistributionListResponse:
    entries = crediting.list_distributions(owner_id, symbol=symbol, start=start, end=end, reconciled=reconciled)
    return DistributionListResponse(
        distributions=[DistributionResponse.model_validate(e) for e in entries],
        count=len(entries),
    )


@router.post("", response_model=DistributionResponse, status_code=201)
def record_manual_distribution(
    data: ManualDistributionRequest,
    owner_id: str = Depends(get_owner_id),
    crediting: CreditingService = Depends(get_crediting_service),
) -> DistributionResponse:
    """Record a user-entered distribution (origin MANUAL)."""
    entry = crediting.record_manual_distribution(
        ManualDistributionCreate(
            owner_id=owner_id,
            symbol=data.symbol,
            amount_per_unit=data.amount_per_unit,
            payment_date=data.payment_date,
            entitlement_date=data.entitlement_date,
            quantity=data.quantity,
            withholding=data.withholding,
            kind=data.kind,
            note=data.note,
        )
    )
    return DistributionResponse.model_validate(entry)


@router.delete("/{entry_id}", status_code=204)
def delete_distribution(
    entry_id: int,
    owner_id: str = Depends(get_owner_id),
    crediting: CreditingService = Depends(get_crediting_service),
) -> Response:
    crediting.delete_distribution(owner_id, entry_id)
    return Response(status_code=204)


@router.post("/sweep", response_model=SweepSummaryResponse)
def run_distribution_sweep(
    crediting: CreditingService = Depends(get_crediting_service),
) -> SweepSummaryResponse:
    """Credit recent announcements to every entitled owner, then promote due entries."""
    return SweepSummaryResponse.model_validate(crediting.run_distribution_sweep())


@router.get("/income", response_model=DistributionIncomeResponse)
def get_distribution_income(
    owner_id: str = Depends(get_owner_id),
    valuation: ValuationService = Depends(get_valuation_service),
) -> DistributionIncomeResponse:
    return DistributionIncomeResponse.model_validate(valuation.get_distribution_income(owner_id))
