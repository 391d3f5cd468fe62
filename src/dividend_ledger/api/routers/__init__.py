"""API routers package."""

from dividend_ledger.api.routers.instruments import router as instruments_router
from dividend_ledger.api.routers.events import router as events_router
from dividend_ledger.api.routers.distributions import router as distributions_router
from dividend_ledger.api.routers.portfolio import router as portfolio_router
from dividend_ledger.api.routers.indicators import router as indicators_router
from dividend_ledger.api.routers.holdings import router as holdings_router

__all__ = [
    "instruments_router",
    "events_router",
    "distributions_router",
    "portfolio_router",
    "indicators_router",
    "holdings_router",
]
