"""
Pytest configuration and fixtures for dividend ledger tests.

This module provides:
- In-memory SQLite database fixtures
- Deterministic stub quote, indicator and rate providers
- Fixed market-time clock helpers
- Service and repository fixtures
- Factory helpers for instruments, events and indicators
"""

import os
import tempfile
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

import pytest
from dateutil.relativedelta import relativedelta
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker, Session

from dividend_ledger.main import app
from dividend_ledger.app_context import SharedResources, reset_shared_resources, set_shared_resources
from dividend_ledger.config.settings import Settings, reset_settings, set_settings
from dividend_ledger.repositories.sqlalchemy.database import Base, get_db, reset_database
# Import ORM models to register them with Base before creating tables
from dividend_ledger.repositories.sqlalchemy import orm_models  # noqa: F401
from dividend_ledger.repositories.sqlalchemy import (
    SqlAlchemyInstrumentRepository,
    SqlAlchemyEventRepository,
    SqlAlchemyDistributionRepository,
    SqlAlchemyIndicatorRepository,
    SqlAlchemyHoldingRepository,
)
from dividend_ledger.core.exceptions import NotFoundError, SourceUnavailableError
from dividend_ledger.core.timezone import MARKET_TZ
from dividend_ledger.domain.models import (
    DistributionAnnouncement,
    DistributionRecord,
    EventDirection,
    Instrument,
    InstrumentClass,
    InstrumentIndicators,
    OwnershipEvent,
)
from dividend_ledger.domain.views import Quote, ReferenceData
from dividend_ledger.providers import FixedRateProvider, Notification
from dividend_ledger.providers.normalize import summarize_distributions
from dividend_ledger.providers.symbols import classify_symbol
from dividend_ledger.services import (
    CatalogService,
    CreditingService,
    EventCreate,
    FixedIncomeService,
    IndicatorSyncService,
    LedgerService,
    MarketDataService,
    PositionEngine,
    ValuationService,
)
from dividend_ledger.csv import CsvImporter, CsvTemplateGenerator


OWNER = "investor-1"
OTHER_OWNER = "investor-2"
FIXED_TODAY = date(2024, 6, 15)


# =============================================================================
# TIME HELPERS
# =============================================================================


def market_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create a localized datetime in market (America/Sao_Paulo) time."""
    return MARKET_TZ.localize(datetime(year, month, day, hour, minute, second))


@pytest.fixture
def fixed_today() -> date:
    return FIXED_TODAY


@pytest.fixture
def fixed_now() -> datetime:
    """Fixed 'now' timestamp for deterministic tests."""
    return market_datetime(2024, 6, 15, 14, 30, 0)


class FakeClock:
    """Monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    reset_settings()

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def test_session(test_engine) -> Session:
    """Create test database session."""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# REPOSITORY FIXTURES
# =============================================================================


@pytest.fixture
def instrument_repo(test_session) -> SqlAlchemyInstrumentRepository:
    return SqlAlchemyInstrumentRepository(test_session)


@pytest.fixture
def event_repo(test_session) -> SqlAlchemyEventRepository:
    return SqlAlchemyEventRepository(test_session)


@pytest.fixture
def distribution_repo(test_session) -> SqlAlchemyDistributionRepository:
    return SqlAlchemyDistributionRepository(test_session)


@pytest.fixture
def indicator_repo(test_session) -> SqlAlchemyIndicatorRepository:
    return SqlAlchemyIndicatorRepository(test_session)


@pytest.fixture
def holding_repo(test_session) -> SqlAlchemyHoldingRepository:
    return SqlAlchemyHoldingRepository(test_session)


# =============================================================================
# PROVIDER FIXTURES
# =============================================================================


class DeterministicQuoteProvider:
    """
    Deterministic quote provider for testing.

    Provides fixed quotes and reference data with no randomness. Tests can
    add distributions and month-end closes per symbol.
    """

    FIXED_PRICES = {
        "MXRF11": Decimal("10.50"),
        "HGLG11": Decimal("160.00"),
        "KNRI11": Decimal("140.00"),
        "PETR4": Decimal("38.00"),
        "VALE3": Decimal("62.00"),
        "ITUB4": Decimal("33.00"),
        "BOVA11": Decimal("125.00"),
    }

    NAMES = {
        "MXRF11": "Maxi Renda FII",
        "HGLG11": "CSHG Logistica FII",
        "KNRI11": "Kinea Renda Imobiliaria FII",
        "PETR4": "Petrobras PN",
        "VALE3": "Vale ON",
        "ITUB4": "Itau Unibanco PN",
        "BOVA11": "iShares Ibovespa",
    }

    def __init__(self, as_of: Optional[datetime] = None):
        self._as_of = as_of or market_datetime(2024, 6, 15, 16, 0, 0)
        self.prices = dict(self.FIXED_PRICES)
        self.distributions: dict[str, list[DistributionAnnouncement]] = {}
        self.closes: dict[str, dict[str, Decimal]] = {}
        self.quote_calls: list[list[str]] = []

    def get_quote(self, symbol: str) -> Optional[Quote]:
        return self.get_quotes([symbol]).get(symbol.upper())

    def get_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        """Return deterministic quotes for requested symbols."""
        self.quote_calls.append(list(symbols))
        result = {}
        for symbol in symbols:
            upper_symbol = symbol.upper()
            if upper_symbol in self.prices:
                result[upper_symbol] = Quote(
                    symbol=upper_symbol,
                    price=self.prices[upper_symbol],
                    as_of=self._as_of,
                    change_percent=Decimal("0.5"),
                )
        return result

    def get_reference(self, symbol: str) -> Optional[ReferenceData]:
        upper_symbol = symbol.upper()
        if upper_symbol not in self.NAMES:
            return None
        instrument_class = InstrumentClass.ETF if upper_symbol == "BOVA11" else classify_symbol(upper_symbol)
        return ReferenceData(
            symbol=upper_symbol,
            name=self.NAMES[upper_symbol],
            instrument_class=instrument_class,
            currency="BRL",
        )

    def get_distribution_history(self, symbol: str, since: date) -> list[DistributionAnnouncement]:
        return [a for a in self.distributions.get(symbol.upper(), []) if a.payment_date >= since]

    def get_monthly_closes(self, symbol: str, start: date, end: date) -> dict[str, Decimal]:
        return dict(self.closes.get(symbol.upper(), {}))


class FailingQuoteProvider:
    """Quote provider that always raises an exception."""

    def get_quote(self, symbol: str) -> Optional[Quote]:
        raise ConnectionError("Network unavailable")

    def get_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        raise ConnectionError("Network unavailable")

    def get_reference(self, symbol: str) -> Optional[ReferenceData]:
        raise ConnectionError("Network unavailable")

    def get_distribution_history(self, symbol: str, since: date) -> list[DistributionAnnouncement]:
        raise ConnectionError("Network unavailable")

    def get_monthly_closes(self, symbol: str, start: date, end: date) -> dict[str, Decimal]:
        raise ConnectionError("Network unavailable")


class FakeIndicatorSource:
    """
    Indicator source returning canned indicators.

    Symbols mapped to an exception raise it; unknown symbols raise NotFoundError.
    """

    def __init__(self):
        self.results: dict[str, object] = {}
        self.calls: list[str] = []

    def get_indicators(self, symbol: str) -> InstrumentIndicators:
        self.calls.append(symbol)
        result = self.results.get(symbol.upper())
        if result is None:
            raise NotFoundError("Fund", symbol)
        if isinstance(result, Exception):
            raise result
        return result


class RecordingNotificationSink:
    """Notification sink that keeps everything it is sent."""

    def __init__(self):
        self.sent: list[Notification] = []

    def send(self, notification: Notification) -> None:
        self.sent.append(notification)


@pytest.fixture
def deterministic_provider(fixed_now) -> DeterministicQuoteProvider:
    return DeterministicQuoteProvider(as_of=fixed_now)


@pytest.fixture
def failing_provider() -> FailingQuoteProvider:
    return FailingQuoteProvider()


@pytest.fixture
def indicator_source() -> FakeIndicatorSource:
    return FakeIndicatorSource()


@pytest.fixture
def notification_sink() -> RecordingNotificationSink:
    return RecordingNotificationSink()


@pytest.fixture
def rate_provider() -> FixedRateProvider:
    return FixedRateProvider(cdi=Decimal("10.50"), ipca=Decimal("4.00"), selic=Decimal("10.50"))


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def market_data_service(deterministic_provider) -> MarketDataService:
    return MarketDataService(provider=deterministic_provider, quote_ttl_seconds=60)


@pytest.fixture
def catalog_service(instrument_repo, market_data_service) -> CatalogService:
    return CatalogService(instrument_repo, market_data_service)


@pytest.fixture
def position_engine(event_repo, fixed_today) -> PositionEngine:
    return PositionEngine(event_repo, today_fn=lambda: fixed_today)


@pytest.fixture
def ledger_service(catalog_service, event_repo, position_engine, fixed_today) -> LedgerService:
    return LedgerService(
        catalog=catalog_service,
        event_repo=event_repo,
        position_engine=position_engine,
        today_fn=lambda: fixed_today,
    )


@pytest.fixture
def crediting_service(
    catalog_service,
    event_repo,
    distribution_repo,
    indicator_repo,
    position_engine,
    market_data_service,
    notification_sink,
    fixed_today,
) -> CreditingService:
    return CreditingService(
        catalog=catalog_service,
        event_repo=event_repo,
        distribution_repo=distribution_repo,
        indicator_repo=indicator_repo,
        position_engine=position_engine,
        market_data=market_data_service,
        notification_sink=notification_sink,
        today_fn=lambda: fixed_today,
    )


@pytest.fixture
def indicator_sync_service(
    indicator_source,
    indicator_repo,
    catalog_service,
    event_repo,
    position_engine,
    fixed_now,
) -> IndicatorSyncService:
    return IndicatorSyncService(
        indicator_source=indicator_source,
        indicator_repo=indicator_repo,
        catalog=catalog_service,
        event_repo=event_repo,
        position_engine=position_engine,
        now_fn=lambda: fixed_now,
        sleep=lambda seconds: None,
    )


@pytest.fixture
def valuation_service(
    catalog_service,
    event_repo,
    distribution_repo,
    indicator_repo,
    holding_repo,
    position_engine,
    market_data_service,
    fixed_today,
    fixed_now,
) -> ValuationService:
    return ValuationService(
        catalog=catalog_service,
        event_repo=event_repo,
        distribution_repo=distribution_repo,
        indicator_repo=indicator_repo,
        holding_repo=holding_repo,
        position_engine=position_engine,
        market_data=market_data_service,
        today_fn=lambda: fixed_today,
        now_fn=lambda: fixed_now,
    )


@pytest.fixture
def fixed_income_service(holding_repo, rate_provider, fixed_today, fixed_now) -> FixedIncomeService:
    return FixedIncomeService(
        holding_repo,
        rate_provider,
        today_fn=lambda: fixed_today,
        now_fn=lambda: fixed_now,
    )


@pytest.fixture
def csv_importer(ledger_service) -> CsvImporter:
    return CsvImporter(ledger_service=ledger_service)


@pytest.fixture
def csv_template_generator() -> CsvTemplateGenerator:
    return CsvTemplateGenerator()


# =============================================================================
# FACTORY FIXTURES
# =============================================================================


@pytest.fixture
def instrument_factory(catalog_service) -> Callable[..., Instrument]:
    """Factory for registering catalog instruments."""

    def _create_instrument(
        symbol: str = "MXRF11",
        name: Optional[str] = None,
        instrument_class: Optional[InstrumentClass] = None,
        segment: Optional[str] = None,
    ) -> Instrument:
        return catalog_service.register_instrument(
            symbol=symbol,
            name=name or f"{symbol} instrument",
            instrument_class=instrument_class,
            segment=segment,
        )

    return _create_instrument


@pytest.fixture
def event_factory(ledger_service) -> Callable[..., OwnershipEvent]:
    """Factory for recording events through the ledger (validated)."""

    def _create_event(
        symbol: str,
        direction: EventDirection,
        quantity: str,
        unit_price: str,
        effective_date: date,
        owner_id: str = OWNER,
        fees: str = "0",
    ) -> OwnershipEvent:
        return ledger_service.record_event(
            EventCreate(
                owner_id=owner_id,
                symbol=symbol,
                direction=direction,
                quantity=Decimal(quantity),
                unit_price=Decimal(unit_price),
                effective_date=effective_date,
                fees=Decimal(fees),
            )
        )

    return _create_event


def make_event(
    symbol: str,
    direction: EventDirection,
    quantity: str,
    unit_price: str,
    effective_date: date,
    sequence: Optional[int] = None,
    owner_id: str = OWNER,
    fees: str = "0",
    cancels_sequence: Optional[int] = None,
) -> OwnershipEvent:
    """Build an unsaved OwnershipEvent for pure fold tests."""
    return OwnershipEvent(
        owner_id=owner_id,
        symbol=symbol,
        direction=direction,
        quantity=Decimal(quantity),
        unit_price=Decimal(unit_price),
        effective_date=effective_date,
        fees=Decimal(fees),
        cancels_sequence=cancels_sequence,
        sequence=sequence,
    )


def make_indicators(
    symbol: str = "MXRF11",
    price: str = "10.50",
    valuation_ratio: Optional[str] = "1.00",
    daily_liquidity: Optional[str] = "5000000",
    holder_count: Optional[int] = 500000,
    segment: Optional[str] = "Papel",
    amounts: Optional[list[str]] = None,
    last_payment: date = date(2024, 6, 14),
    fetched_at: Optional[datetime] = None,
) -> InstrumentIndicators:
    """
    Indicators with a monthly distribution history (most recent first).

    The n-th amount is paid n months before last_payment, entitled 10 days
    before its payment.
    """
    amounts = amounts if amounts is not None else ["0.10"] * 12
    history = []
    for i, amount in enumerate(amounts):
        payment = last_payment - relativedelta(months=i)
        history.append(
            DistributionRecord(
                amount=Decimal(amount),
                payment_date=payment,
                entitlement_date=payment - timedelta(days=10),
            )
        )
    indicators = InstrumentIndicators(
        symbol=symbol,
        price=Decimal(price),
        valuation_ratio=Decimal(valuation_ratio) if valuation_ratio is not None else None,
        daily_liquidity=Decimal(daily_liquidity) if daily_liquidity is not None else None,
        holder_count=holder_count,
        segment=segment,
        distribution_history=history,
        fetched_at=fetched_at or market_datetime(2024, 6, 15, 9, 0, 0),
    )
    return summarize_distributions(indicators, FIXED_TODAY)


# =============================================================================
# API TEST CLIENT FIXTURE
# =============================================================================


@pytest.fixture
def client(test_engine, deterministic_provider, indicator_source, rate_provider, notification_sink) -> TestClient:
    """Provide FastAPI test client with test database and stub collaborators."""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

    def override_get_db():
        session = TestSessionLocal()
        try:
            yield session
        finally:
            session.close()

    settings = Settings(database_url="sqlite:///:memory:", scheduler_enabled=False)
    set_settings(settings)
    reset_database()
    set_shared_resources(
        SharedResources(
            settings=settings,
            quote_provider=deterministic_provider,
            indicator_source=indicator_source,
            rate_provider=rate_provider,
            notification_sink=notification_sink,
        )
    )
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    reset_shared_resources()
    reset_database()
    reset_settings()


# =============================================================================
# TEMP FILE FIXTURES
# =============================================================================


@pytest.fixture
def temp_csv_file():
    """Provide a temporary CSV file path that is cleaned up after test."""
    with tempfile.NamedTemporaryFile(
        mode="w",
        suffix=".csv",
        delete=False,
        encoding="utf-8",
    ) as f:
        tmp_path = f.name

    yield tmp_path

    if os.path.exists(tmp_path):
        os.unlink(tmp_path)


@pytest.fixture
def sample_csv_content() -> str:
    """Sample valid CSV content for import testing."""
    return """owner_id,date,direction,symbol,quantity,price,fees,venue,note
investor-1,2024-03-15,DISPOSE,MXRF11,40,10.80,0,B3,Listed before its purchase
investor-1,2024-01-02,ACQUIRE,MXRF11,100,10.00,0,B3,Initial position
investor-1,2024-02-01,BUY,PETR4,10,36.00,4.95,B3,
"""


@pytest.fixture
def invalid_csv_content() -> str:
    """Sample CSV content with errors for testing error handling."""
    return """owner_id,date,direction,symbol,quantity,price,fees,venue,note
investor-1,2024-01-02,ACQUIRE,MXRF11,100,10.00,0,B3,Valid
investor-1,2024-01-03,HOLD,MXRF11,10,10.00,0,B3,Invalid direction
investor-1,2024-01-04,ACQUIRE,MXRF11,not_a_number,10.00,0,B3,Invalid quantity
investor-1,2024-01-05,DISPOSE,MXRF11,500,10.00,0,B3,Over-disposal
investor-1,2024-01-06,ACQUIRE,ZZZZ3,1,10.00,0,B3,Unknown symbol
"""


# =============================================================================
# HELPER FUNCTIONS (exported for use in tests)
# =============================================================================


def assert_decimal_equal(
    actual: Decimal,
    expected: Decimal,
    tolerance: Decimal = Decimal("0.01"),
) -> None:
    """Assert two Decimals are equal within tolerance."""
    diff = abs(actual - expected)
    assert diff <= tolerance, f"Expected {expected}, got {actual} (diff={diff})"


def transient_error(detail: str = "timeout") -> SourceUnavailableError:
    return SourceUnavailableError("fundsexplorer", detail)
