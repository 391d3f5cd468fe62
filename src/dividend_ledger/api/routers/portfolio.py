"""Portfolio valuation endpoints."""

from fastapi import APIRouter, Depends, Query

from dividend_ledger.api.deps import get_owner_id, get_valuation_service
from dividend_ledger.api.schemas import EvolutionResponse, PortfolioResponse
from dividend_ledger.services import ValuationService

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


@router.get("", response_model=PortfolioResponse)
def get_portfolio(
    owner_id: str = Depends(get_owner_id),
    valuation: ValuationService = Depends(get_valuation_service),
) -> PortfolioResponse:
    """
    Valuation and metrics document.

    Positions without a live quote are valued at the best fallback price and
    listed in stale_symbols.
    """
    return PortfolioResponse.model_validate(valuation.get_portfolio(owner_id))


@router.get("/evolution", response_model=EvolutionResponse)
def get_portfolio_evolution(
    months: int = Query(12, ge=1, le=120),
    owner_id: str = Depends(get_owner_id),
    valuation: ValuationService = Depends(get_valuation_service),
) -> EvolutionResponse:
    return EvolutionResponse.model_validate(valuation.get_portfolio_evolution(owner_id, months))
