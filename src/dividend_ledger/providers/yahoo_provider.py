"""
Yahoo Finance quote provider via yfinance.

Every call runs in a worker thread with a bounded timeout and is retried
with increasing backoff. Exhausted retries or a per-symbol failure degrade
to "no data".
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional, TypeVar

from dividend_ledger.core.exceptions import SourceUnavailableError
from dividend_ledger.core.retry import call_with_retry
from dividend_ledger.core.timezone import now_market, to_market
from dividend_ledger.domain.models import CreditOrigin, DistributionAnnouncement, DistributionKind
from dividend_ledger.domain.views import Quote, ReferenceData
from dividend_ledger.providers.symbols import classify_symbol, normalize_symbol, to_provider_symbol

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_FETCH_TIMEOUT_SECONDS = 15


# Lazy import so tests can patch before import
def _get_yf():
    import yfinance as yf
    return yf


def _to_decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def _as_date(value) -> date:
    # pandas Timestamps expose to_pydatetime; plain datetimes pass through
    if hasattr(value, "to_pydatetime"):
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        return to_market(value).date() if value.tzinfo else value.date()
    return value


class YahooQuoteProvider:
    """Fetches quotes, reference data, distributions and closes from Yahoo Finance."""

    def __init__(
        self,
        symbol_suffix: str = ".SA",
        fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        max_attempts: int = 3,
        backoff_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._suffix = symbol_suffix
        self._fetch_timeout = fetch_timeout_seconds
        self._max_attempts = max_attempts
        self._backoff = backoff_seconds
        self._sleep = sleep

    def _attempt(self, fn: Callable[[], T], description: str) -> T:
        # Not a with-block: its exit would join a hung worker. The abandoned
        # thread finishes in the background and its result is discarded.
        ex = ThreadPoolExecutor(max_workers=1, thread_name_prefix="yahoo-fetch")
        try:
            fut = ex.submit(fn)
            return fut.result(timeout=self._fetch_timeout)
        except FuturesTimeoutError:
            raise SourceUnavailableError("yahoo", f"{description} timed out after {self._fetch_timeout}s")
        except Exception as e:
            raise SourceUnavailableError("yahoo", f"{description}: {e}")
        finally:
            ex.shutdown(wait=False, cancel_futures=True)

    def _run_with_timeout(self, fn: Callable[[], T], description: str) -> Optional[T]:
        try:
            return call_with_retry(
                lambda: self._attempt(fn, description),
                attempts=self._max_attempts,
                backoff_seconds=self._backoff,
                sleep=self._sleep,
                description=f"Yahoo {description}",
            )
        except SourceUnavailableError as e:
            logger.warning("Yahoo %s unavailable: %s", description, e.message)
        return None

    def get_quote(self, symbol: str) -> Optional[Quote]:
        """Fetch the current quote for one symbol."""
        return self.get_quotes([symbol]).get(normalize_symbol(symbol))

    def get_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        """Fetch quotes for multiple symbols. Unresolved symbols are omitted."""
        local = [normalize_symbol(s) for s in symbols if (s or "").strip()]
        if not local:
            return {}
        fetched = self._run_with_timeout(lambda: self._fetch_quotes_impl(local), "quotes")
        return fetched or {}

    def _fetch_quotes_impl(self, symbols: list[str]) -> dict[str, Quote]:
        yf = _get_yf()
        mapping = {to_provider_symbol(s, self._suffix): s for s in symbols}
        tickers = yf.Tickers(" ".join(mapping))
        as_of = now_market()
        result: dict[str, Quote] = {}
        for provider_symbol, local_symbol in mapping.items():
            info = self._safe_info(tickers, provider_symbol)
            if info is None:
                continue
            price = _to_decimal(info.get("currentPrice") or info.get("regularMarketPrice"))
            if price is None or price <= 0:
                continue
            prev_close = _to_decimal(info.get("previousClose") or info.get("regularMarketPreviousClose"))
            change = _to_decimal(info.get("regularMarketChangePercent"))
            if change is None and prev_close:
                change = (price - prev_close) / prev_close * Decimal("100")
            result[local_symbol] = Quote(
                symbol=local_symbol,
                price=price,
                as_of=as_of,
                change_percent=change,
                prev_close=prev_close,
            )
        return result

    @staticmethod
    def _safe_info(tickers_obj, provider_symbol: str) -> Optional[dict]:
        try:
            ticker = tickers_obj.tickers.get(provider_symbol)
            if ticker is None:
                return None
            info = ticker.info
        except Exception as e:
            logger.debug("No info for %s: %s", provider_symbol, e)
            return None
        return info if isinstance(info, dict) else None

    def get_reference(self, symbol: str) -> Optional[ReferenceData]:
        """Fetch descriptive data used to register an instrument."""
        local = normalize_symbol(symbol)

        def fetch() -> Optional[ReferenceData]:
            yf = _get_yf()
            info = yf.Ticker(to_provider_symbol(local, self._suffix)).info
            if not isinstance(info, dict):
                return None
            # yfinance returns a near-empty dict for unknown tickers
            if info.get("regularMarketPrice") is None and info.get("currentPrice") is None:
                return None
            name = (info.get("longName") or info.get("shortName") or "").strip() or local
            return ReferenceData(
                symbol=local,
                name=name,
                instrument_class=classify_symbol(local, info.get("quoteType")),
                currency=info.get("currency"),
                segment=info.get("sector") or info.get("industry"),
            )

        return self._run_with_timeout(fetch, f"reference {local}")

    def get_distribution_history(self, symbol: str, since: date) -> list[DistributionAnnouncement]:
        """
        Fetch distributions with ex-date on or after since.

        The provider reports only the ex-date: ownership at the close of the
        previous day is entitled, and the ex-date stands in for payment.
        """
        local = normalize_symbol(symbol)

        def fetch() -> list[DistributionAnnouncement]:
            yf = _get_yf()
            series = yf.Ticker(to_provider_symbol(local, self._suffix)).dividends
            announcements = []
            for ts, amount in series.items():
                ex_date = _as_date(ts)
                value = _to_decimal(amount)
                if ex_date < since or value is None or value <= 0:
                    continue
                announcements.append(
                    DistributionAnnouncement(
                        symbol=local,
                        amount_per_unit=value,
                        entitlement_date=ex_date - timedelta(days=1),
                        payment_date=ex_date,
                        kind=DistributionKind.DIVIDEND,
                        source=CreditOrigin.PROVIDER,
                    )
                )
            return announcements

        return self._run_with_timeout(fetch, f"distributions {local}") or []

    def get_monthly_closes(self, symbol: str, start: date, end: date) -> dict[str, Decimal]:
        """Return the last close of each month in [start, end], keyed YYYY-MM."""
        local = normalize_symbol(symbol)

        def fetch() -> dict[str, Decimal]:
            yf = _get_yf()
            df = yf.Ticker(to_provider_symbol(local, self._suffix)).history(
                start=start,
                end=end + timedelta(days=1),
                interval="1d",
                auto_adjust=False,
            )
            closes: dict[str, Decimal] = {}
            if df is None or df.empty or "Close" not in df:
                return closes
            # Index is ascending, so the last write per month wins
            for ts, close in df["Close"].items():
                value = _to_decimal(close)
                if value is None:
                    continue
                closes[_as_date(ts).strftime("%Y-%m")] = value
            return closes

        return self._run_with_timeout(fetch, f"history {local}") or {}
