"""Application context for in-process service management.

Services that hold a database session are built per context (one per
request or scheduled job). Collaborators whose state must outlive a single
session, such as the quote cache, the rate-limited scraper and the rate
cache, live in SharedResources and are shared by every context.
"""

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from sqlalchemy.orm import Session

from dividend_ledger.config.settings import Settings, get_settings
from dividend_ledger.csv import CsvImporter
from dividend_ledger.domain.models import OwnershipEvent
from dividend_ledger.providers import (
    CentralBankRateProvider,
    FundsExplorerScraper,
    IndicatorSource,
    LoggingNotificationSink,
    NotificationSink,
    QuoteProvider,
    RateProvider,
    StubQuoteProvider,
    YahooQuoteProvider,
)
from dividend_ledger.repositories.sqlalchemy import (
    SqlAlchemyDistributionRepository,
    SqlAlchemyEventRepository,
    SqlAlchemyHoldingRepository,
    SqlAlchemyIndicatorRepository,
    SqlAlchemyInstrumentRepository,
    get_session,
)
from dividend_ledger.services import (
    CatalogService,
    CreditingService,
    FixedIncomeService,
    IndicatorSyncService,
    LedgerService,
    MarketDataService,
    PositionEngine,
    ValuationService,
)

logger = logging.getLogger(__name__)


class SharedResources:
    """Process-wide collaborators shared by every AppContext."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        quote_provider: Optional[QuoteProvider] = None,
        indicator_source: Optional[IndicatorSource] = None,
        rate_provider: Optional[RateProvider] = None,
        notification_sink: Optional[NotificationSink] = None,
    ):
        self.settings = settings or get_settings()
        s = self.settings
        provider = quote_provider
        if provider is None:
            if s.offline_quotes:
                provider = StubQuoteProvider()
            else:
                provider = YahooQuoteProvider(
                    symbol_suffix=s.quote_symbol_suffix,
                    fetch_timeout_seconds=s.fetch_timeout_seconds,
                    max_attempts=s.fetch_max_attempts,
                    backoff_seconds=s.fetch_backoff_seconds,
                )
        self.market_data = MarketDataService(
            provider=provider,
            quote_ttl_seconds=s.quote_cache_ttl_seconds,
            reference_ttl_seconds=s.reference_cache_ttl_seconds,
        )
        self.indicator_source = indicator_source or FundsExplorerScraper(
            base_url=s.indicator_base_url,
            timeout_seconds=s.fetch_timeout_seconds,
            max_attempts=s.fetch_max_attempts,
            backoff_seconds=s.fetch_backoff_seconds,
            min_interval_seconds=s.scraper_min_interval_seconds,
        )
        self.rate_provider = rate_provider or CentralBankRateProvider(
            selic_url=s.rates_selic_url,
            ipca_url=s.rates_ipca_url,
            fallback_selic=s.fallback_selic_rate,
            fallback_ipca=s.fallback_ipca_rate,
            ttl_seconds=s.reference_cache_ttl_seconds,
        )
        self.notification_sink = notification_sink or LoggingNotificationSink()
        self.purchase_listeners: list[Callable[[OwnershipEvent], None]] = []


class AppContext:
    """
    Session-scoped access to all services.

    Services are created lazily and share the context's session.
    """

    def __init__(self, session: Session, resources: Optional[SharedResources] = None):
        self._session = session
        self._resources = resources or get_shared_resources()

        # Service instances (lazy initialized)
        self._catalog: Optional[CatalogService] = None
        self._position_engine: Optional[PositionEngine] = None
        self._ledger: Optional[LedgerService] = None
        self._indicator_sync: Optional[IndicatorSyncService] = None
        self._crediting: Optional[CreditingService] = None
        self._valuation: Optional[ValuationService] = None
        self._fixed_income: Optional[FixedIncomeService] = None
        self._csv_importer: Optional[CsvImporter] = None

    @property
    def session(self) -> Session:
        return self._session

    @property
    def resources(self) -> SharedResources:
        return self._resources

    @property
    def settings(self) -> Settings:
        return self._resources.settings

    @property
    def market_data(self) -> MarketDataService:
        return self._resources.market_data

    # Repository accessors
    def instrument_repo(self) -> SqlAlchemyInstrumentRepository:
        return SqlAlchemyInstrumentRepository(self._session)

    def event_repo(self) -> SqlAlchemyEventRepository:
        return SqlAlchemyEventRepository(self._session)

    def distribution_repo(self) -> SqlAlchemyDistributionRepository:
        return SqlAlchemyDistributionRepository(self._session)

    def indicator_repo(self) -> SqlAlchemyIndicatorRepository:
        return SqlAlchemyIndicatorRepository(self._session)

    def holding_repo(self) -> SqlAlchemyHoldingRepository:
        return SqlAlchemyHoldingRepository(self._session)

    # Service accessors
    @property
    def catalog(self) -> CatalogService:
        if self._catalog is None:
            self._catalog = CatalogService(self.instrument_repo(), self.market_data)
        return self._catalog

    @property
    def position_engine(self) -> PositionEngine:
        if self._position_engine is None:
            self._position_engine = PositionEngine(self.event_repo())
        return self._position_engine

    @property
    def ledger(self) -> LedgerService:
        if self._ledger is None:
            self._ledger = LedgerService(
                catalog=self.catalog,
                event_repo=self.event_repo(),
                position_engine=self.position_engine,
            )
            for listener in self._resources.purchase_listeners:
                self._ledger.add_purchase_listener(listener)
        return self._ledger

    @property
    def indicator_sync(self) -> IndicatorSyncService:
        if self._indicator_sync is None:
            self._indicator_sync = IndicatorSyncService(
                indicator_source=self._resources.indicator_source,
                indicator_repo=self.indicator_repo(),
                catalog=self.catalog,
                event_repo=self.event_repo(),
                position_engine=self.position_engine,
                stale_after_days=self.settings.indicator_stale_after_days,
            )
        return self._indicator_sync

    @property
    def crediting(self) -> CreditingService:
        if self._crediting is None:
            self._crediting = CreditingService(
                catalog=self.catalog,
                event_repo=self.event_repo(),
                distribution_repo=self.distribution_repo(),
                indicator_repo=self.indicator_repo(),
                position_engine=self.position_engine,
                market_data=self.market_data,
                notification_sink=self._resources.notification_sink,
                lookback_days=self.settings.distribution_lookback_days,
                interest_on_equity_withholding_rate=self.settings.interest_on_equity_withholding_rate,
            )
        return self._crediting

    @property
    def valuation(self) -> ValuationService:
        if self._valuation is None:
            self._valuation = ValuationService(
                catalog=self.catalog,
                event_repo=self.event_repo(),
                distribution_repo=self.distribution_repo(),
                indicator_repo=self.indicator_repo(),
                holding_repo=self.holding_repo(),
                position_engine=self.position_engine,
                market_data=self.market_data,
                window_months=self.settings.dividend_window_months,
            )
        return self._valuation

    @property
    def fixed_income(self) -> FixedIncomeService:
        if self._fixed_income is None:
            self._fixed_income = FixedIncomeService(self.holding_repo(), self._resources.rate_provider)
        return self._fixed_income

    @property
    def csv_importer(self) -> CsvImporter:
        if self._csv_importer is None:
            self._csv_importer = CsvImporter(ledger_service=self.ledger)
        return self._csv_importer

    def close(self) -> None:
        """Clean up resources."""
        self._session.close()


@contextmanager
def open_context(resources: Optional[SharedResources] = None) -> Iterator[AppContext]:
    """Context with its own session, closed on exit. Used by background jobs."""
    context = AppContext(get_session(), resources)
    try:
        yield context
    finally:
        context.close()


# Global shared resources (one set per process)
_shared_resources: Optional[SharedResources] = None


def get_shared_resources() -> SharedResources:
    """Get or create the process-wide shared resources."""
    global _shared_resources
    if _shared_resources is None:
        _shared_resources = SharedResources()
    return _shared_resources


def set_shared_resources(resources: SharedResources) -> None:
    """Replace the process-wide shared resources."""
    global _shared_resources
    _shared_resources = resources


def reset_shared_resources() -> None:
    global _shared_resources
    _shared_resources = None
