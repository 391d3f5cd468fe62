"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from dividend_ledger import __version__
from dividend_ledger.api.routers import (
    distributions_router,
    events_router,
    holdings_router,
    indicators_router,
    instruments_router,
    portfolio_router,
)
from dividend_ledger.config.logging_config import setup_logging
from dividend_ledger.config.settings import get_settings
from dividend_ledger.core.exceptions import (
    AppError,
    ConsistencyFaultError,
    NotFoundError,
    SourceUnavailableError,
)
from dividend_ledger.repositories.sqlalchemy.database import init_db
from dividend_ledger.scheduler import LedgerScheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    setup_logging()
    init_db()
    scheduler = None
    if get_settings().scheduler_enabled:
        scheduler = LedgerScheduler()
        scheduler.start()
    yield
    if scheduler is not None:
        scheduler.shutdown()


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Investment ledger and dividend attribution engine",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(instruments_router)
app.include_router(events_router)
app.include_router(distributions_router)
app.include_router(portfolio_router)
app.include_router(indicators_router)
app.include_router(holdings_router)


def status_for(exc: AppError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, SourceUnavailableError):
        return 503
    if isinstance(exc, ConsistencyFaultError):
        return 409
    return 400


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    status_code = status_for(exc)
    if status_code >= 500:
        logger.warning("%s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "message": exc.message},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": __version__,
        "docs": "/docs",
    }
