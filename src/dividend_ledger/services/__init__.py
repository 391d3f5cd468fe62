"""Service layer - business logic orchestration."""

from dividend_ledger.services.position_engine import PositionEngine, fold_events
from dividend_ledger.services.market_data_service import MarketDataService
from dividend_ledger.services.catalog_service import CatalogService
from dividend_ledger.services.ledger_service import LedgerService, EventCreate
from dividend_ledger.services.indicator_sync_service import IndicatorSyncService
from dividend_ledger.services.crediting_service import (
    CreditingService,
    ManualDistributionCreate,
    reconcile_entries,
)
from dividend_ledger.services.valuation_service import ValuationService
from dividend_ledger.services.fixed_income_service import FixedIncomeService, HoldingCreate

__all__ = [
    "PositionEngine",
    "fold_events",
    "MarketDataService",
    "CatalogService",
    "LedgerService",
    "EventCreate",
    "IndicatorSyncService",
    "CreditingService",
    "ManualDistributionCreate",
    "reconcile_entries",
    "ValuationService",
    "FixedIncomeService",
    "HoldingCreate",
]
