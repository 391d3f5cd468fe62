"""Dependency injection for FastAPI."""

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from dividend_ledger.app_context import AppContext, get_shared_resources
from dividend_ledger.core.exceptions import ValidationError
from dividend_ledger.repositories.sqlalchemy.database import get_db
from dividend_ledger.services import (
    CatalogService,
    CreditingService,
    FixedIncomeService,
    IndicatorSyncService,
    LedgerService,
    MarketDataService,
    ValuationService,
)


def get_context(db: Session = Depends(get_db)) -> AppContext:
    """Provide a request-scoped AppContext bound to the request's session."""
    return AppContext(db, get_shared_resources())


def get_owner_id(x_owner_id: str = Header(..., description="Opaque owner identifier")) -> str:
    """The caller's owner identifier; authentication happens upstream."""
    owner_id = x_owner_id.strip()
    if not owner_id:
        raise ValidationError("X-Owner-Id header is empty")
    return owner_id


def get_catalog_service(ctx: AppContext = Depends(get_context)) -> CatalogService:
    return ctx.catalog


def get_ledger_service(ctx: AppContext = Depends(get_context)) -> LedgerService:
    return ctx.ledger


def get_crediting_service(ctx: AppContext = Depends(get_context)) -> CreditingService:
    return ctx.crediting


def get_valuation_service(ctx: AppContext = Depends(get_context)) -> ValuationService:
    return ctx.valuation


def get_indicator_sync_service(ctx: AppContext = Depends(get_context)) -> IndicatorSyncService:
    return ctx.indicator_sync


def get_fixed_income_service(ctx: AppContext = Depends(get_context)) -> FixedIncomeService:
    return ctx.fixed_income


def get_market_data_service() -> MarketDataService:
    return get_shared_resources().market_data
