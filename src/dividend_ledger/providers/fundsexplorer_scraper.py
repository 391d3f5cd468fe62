"""
Indicator scraper for real-estate funds (fundsexplorer.com.br).

Requests are spaced by a minimum interval and retried with increasing
backoff on transient failures. A 404 or a page without a price means the
symbol is unknown and is never retried.
"""

import logging
import time
from datetime import date
from decimal import Decimal
from typing import Callable, Optional

import requests
from bs4 import BeautifulSoup

from dividend_ledger.core.exceptions import ConsistencyFaultError, NotFoundError, SourceUnavailableError
from dividend_ledger.core.retry import RateLimiter, call_with_retry
from dividend_ledger.core.timezone import now_market, today_market
from dividend_ledger.domain.models import InstrumentIndicators
from dividend_ledger.providers.normalize import (
    build_record,
    parse_locale_date,
    parse_locale_number,
    summarize_distributions,
)
from dividend_ledger.providers.symbols import normalize_symbol

logger = logging.getLogger(__name__)

SOURCE_NAME = "fundsexplorer"

_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "pt-BR,pt;q=0.9,en-US;q=0.8,en;q=0.7",
}

# Indicator box title -> InstrumentIndicators attribute
_INDICATOR_BOXES = {
    "P/VP": "valuation_ratio",
    "Patrimônio Líquido": "net_worth",
    "Valor Patrimonial": "equity_value_per_unit",
    "Liquidez Média Diária": "daily_liquidity",
    "DY Últ. Dividendo": "last_yield",
}


def _box_value(box) -> str:
    b = box.find("b")
    if b is not None and b.get_text(strip=True):
        return b.get_text(strip=True)
    span = box.find("span")
    return span.get_text(strip=True) if span is not None else ""


def _box_title(box) -> str:
    p = box.find("p")
    return p.get_text(strip=True) if p is not None else ""


def _safe_number(symbol: str, field_name: str, raw: str) -> Optional[Decimal]:
    try:
        return parse_locale_number(raw)
    except ConsistencyFaultError as e:
        logger.warning("%s: skipping %s, %s", symbol, field_name, e.message)
        return None


class FundsExplorerScraper:
    """Scrapes and normalizes real-estate fund indicators."""

    def __init__(
        self,
        base_url: str = "https://www.fundsexplorer.com.br/funds",
        timeout_seconds: float = 15.0,
        max_attempts: int = 3,
        backoff_seconds: float = 2.0,
        min_interval_seconds: float = 1.0,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        today_fn: Callable[[], date] = today_market,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._max_attempts = max_attempts
        self._backoff = backoff_seconds
        self._session = session or requests.Session()
        self._sleep = sleep
        self._today = today_fn
        self._rate_limiter = RateLimiter(min_interval_seconds, sleep=sleep)

    def get_indicators(self, symbol: str) -> InstrumentIndicators:
        """Fetch and normalize indicators for one fund."""
        local = normalize_symbol(symbol)
        if not local:
            raise NotFoundError("Instrument", symbol)
        html = call_with_retry(
            lambda: self._fetch_page(local),
            attempts=self._max_attempts,
            backoff_seconds=self._backoff,
            sleep=self._sleep,
            description=f"{SOURCE_NAME} {local}",
        )
        indicators = self.parse_page(local, html)
        logger.info(
            "Scraped %s: price=%s yield=%s%% ratio=%s",
            local, indicators.price, indicators.annual_yield, indicators.valuation_ratio,
        )
        return indicators

    def _fetch_page(self, symbol: str) -> str:
        self._rate_limiter.wait()
        url = f"{self._base_url}/{symbol}"
        try:
            response = self._session.get(url, headers=_HEADERS, timeout=self._timeout)
        except requests.RequestException as e:
            raise SourceUnavailableError(SOURCE_NAME, str(e)) from e
        if response.status_code == 404:
            raise NotFoundError("Instrument", symbol)
        if response.status_code != 200:
            raise SourceUnavailableError(SOURCE_NAME, f"HTTP {response.status_code} for {symbol}")
        return response.text

    def parse_page(self, symbol: str, html: str) -> InstrumentIndicators:
        """Extract indicators from a fund page."""
        soup = BeautifulSoup(html, "html.parser")

        price = None
        price_node = soup.select_one(".headerTicker__content__price p")
        if price_node is not None:
            price = _safe_number(symbol, "price", price_node.get_text(strip=True))
        if price is None:
            header = soup.select_one(".headerTicker__content__price")
            if header is not None:
                price = _safe_number(symbol, "price", header.get_text(" ", strip=True))
        if price is None:
            # Unknown funds render a page without a price header
            raise NotFoundError("Instrument", symbol)

        indicators = InstrumentIndicators(symbol=symbol, price=price, fetched_at=now_market())

        for box in soup.select(".indicators__box"):
            attr = _INDICATOR_BOXES.get(_box_title(box))
            if attr:
                setattr(indicators, attr, _safe_number(symbol, attr, _box_value(box)))

        for box in soup.select(".basicInformation__grid__box"):
            title = _box_title(box)
            if title == "Segmento":
                indicators.segment = _box_value(box) or None
            elif title == "Número de cotistas":
                holders = _safe_number(symbol, "holder_count", _box_value(box))
                indicators.holder_count = int(holders) if holders is not None else None

        indicators.distribution_history = self._parse_history(symbol, soup)
        return summarize_distributions(indicators, self._today())

    @staticmethod
    def _parse_history(symbol: str, soup: BeautifulSoup) -> list:
        """Rows are: kind, entitlement date, payment date, yield, amount per unit."""
        records = []
        for row in soup.select(".yieldChart__table__body .yieldChart__table__bloco"):
            cells = [c.get_text(strip=True) for c in row.select(".table__linha")]
            if len(cells) < 5:
                continue
            try:
                record = build_record(
                    amount=parse_locale_number(cells[4]),
                    entitlement=parse_locale_date(cells[1]),
                    payment=parse_locale_date(cells[2]),
                    yield_percent=parse_locale_number(cells[3]),
                )
            except ConsistencyFaultError as e:
                logger.warning("%s: skipping distribution row %s: %s", symbol, cells, e.message)
                continue
            if record is not None:
                records.append(record)
        return records
