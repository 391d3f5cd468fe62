"""Market reference rates (Selic, CDI, IPCA) from the central bank's public series API."""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional, Protocol

import requests
from cachetools import TTLCache

from dividend_ledger.core.timezone import now_market

logger = logging.getLogger(__name__)

_CACHE_KEY = "market_rates"


@dataclass
class MarketRates:
    """Annual rates in percent."""

    cdi: Decimal
    ipca: Decimal
    selic: Decimal
    as_of: Optional[datetime] = None
    is_fallback: bool = False


class RateProvider(Protocol):
    def get_rates(self) -> MarketRates:
        """Return current annual rates; never raises."""
        ...


class CentralBankRateProvider:
    """
    Fetches the Selic target and trailing 12m IPCA.

    CDI tracks Selic closely enough to use the same figure. Successful
    lookups are cached for ttl_seconds; on failure fallback constants are
    returned and nothing is cached, so the next call tries again.
    """

    def __init__(
        self,
        selic_url: str,
        ipca_url: str,
        fallback_selic: float = 11.25,
        fallback_ipca: float = 4.5,
        timeout_seconds: float = 5.0,
        ttl_seconds: float = 86400,
        session: Optional[requests.Session] = None,
        timer: Callable[[], float] = time.monotonic,
    ):
        self._selic_url = selic_url
        self._ipca_url = ipca_url
        self._fallback_selic = Decimal(str(fallback_selic))
        self._fallback_ipca = Decimal(str(fallback_ipca))
        self._timeout = timeout_seconds
        self._session = session or requests.Session()
        self._cache: TTLCache = TTLCache(maxsize=1, ttl=ttl_seconds, timer=timer)

    def get_rates(self) -> MarketRates:
        cached = self._cache.get(_CACHE_KEY)
        if cached is not None:
            return cached
        try:
            selic = self._fetch_latest(self._selic_url)
            ipca = self._fetch_latest(self._ipca_url)
        except (requests.RequestException, ValueError, KeyError, IndexError, InvalidOperation) as e:
            logger.error("Failed to fetch central bank rates, using fallback: %s", e)
            return MarketRates(
                cdi=self._fallback_selic,
                ipca=self._fallback_ipca,
                selic=self._fallback_selic,
                as_of=now_market(),
                is_fallback=True,
            )
        rates = MarketRates(cdi=selic, ipca=ipca, selic=selic, as_of=now_market())
        logger.info("Market rates updated: CDI %s%%, IPCA %s%%", rates.cdi, rates.ipca)
        self._cache[_CACHE_KEY] = rates
        return rates

    def _fetch_latest(self, url: str) -> Decimal:
        response = self._session.get(url, timeout=self._timeout)
        response.raise_for_status()
        payload = response.json()
        # [{"data": "dd/mm/yyyy", "valor": "11.25"}]
        return Decimal(str(payload[-1]["valor"]).replace(",", "."))

    def invalidate(self) -> None:
        self._cache.clear()


class FixedRateProvider:
    """Returns constant rates (offline use and tests)."""

    def __init__(self, cdi: Decimal, ipca: Decimal, selic: Optional[Decimal] = None):
        self._rates = MarketRates(cdi=cdi, ipca=ipca, selic=selic if selic is not None else cdi)

    def get_rates(self) -> MarketRates:
        return self._rates
