"""External collaborators: quote, indicator, rate and notification providers."""

from dividend_ledger.providers.quote_provider import QuoteProvider
from dividend_ledger.providers.stub_provider import StubQuoteProvider
from dividend_ledger.providers.yahoo_provider import YahooQuoteProvider
from dividend_ledger.providers.indicator_source import IndicatorSource
from dividend_ledger.providers.fundsexplorer_scraper import FundsExplorerScraper
from dividend_ledger.providers.rate_provider import (
    RateProvider,
    MarketRates,
    CentralBankRateProvider,
    FixedRateProvider,
)
from dividend_ledger.providers.notification_sink import (
    Notification,
    NotificationSink,
    LoggingNotificationSink,
)

__all__ = [
    "QuoteProvider",
    "StubQuoteProvider",
    "YahooQuoteProvider",
    "IndicatorSource",
    "FundsExplorerScraper",
    "RateProvider",
    "MarketRates",
    "CentralBankRateProvider",
    "FixedRateProvider",
    "Notification",
    "NotificationSink",
    "LoggingNotificationSink",
]
