"""Market data service: time-bounded caching in front of the quote provider."""

import logging
import threading
import time
from datetime import date
from decimal import Decimal
from typing import Callable, Optional

from cachetools import TTLCache

from dividend_ledger.domain.models import DistributionAnnouncement
from dividend_ledger.domain.views import Quote, ReferenceData
from dividend_ledger.providers.quote_provider import QuoteProvider
from dividend_ledger.providers.symbols import normalize_symbol

logger = logging.getLogger(__name__)


class MarketDataService:
    """
    Wraps a QuoteProvider with two TTL caches and graceful degradation.

    Live quotes use a short TTL; reference data, distribution histories and
    month-end closes use a long one. The last successful quote per symbol is
    kept outside the TTL cache so readers can fall back to it (marked stale)
    when the provider is down. Concurrent reads and writes race harmlessly.
    """

    def __init__(
        self,
        provider: QuoteProvider,
        quote_ttl_seconds: float = 900,
        reference_ttl_seconds: float = 86400,
        maxsize: int = 4096,
        timer: Callable[[], float] = time.monotonic,
    ):
        self._provider = provider
        self._quotes: TTLCache = TTLCache(maxsize=maxsize, ttl=quote_ttl_seconds, timer=timer)
        self._reference: TTLCache = TTLCache(maxsize=maxsize, ttl=reference_ttl_seconds, timer=timer)
        self._last_known: dict[str, Quote] = {}
        self._lock = threading.Lock()

    def get_quote(self, symbol: str) -> Optional[Quote]:
        """Fresh (cached or fetched) quote, or None."""
        key = normalize_symbol(symbol)
        return self.get_quotes([key]).get(key)

    def get_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        """
        Fetch quotes for symbols with caching.

        Returns dict mapping symbol -> Quote. Symbols the provider could not
        resolve are omitted; use get_last_known for a stale fallback.
        """
        keys = [normalize_symbol(s) for s in symbols if (s or "").strip()]
        if not keys:
            return {}

        result: dict[str, Quote] = {}
        missing: list[str] = []
        with self._lock:
            for key in keys:
                quote = self._quotes.get(key)
                if quote is not None:
                    result[key] = quote
                else:
                    missing.append(key)

        if missing:
            try:
                fetched = self._provider.get_quotes(missing)
            except Exception as e:
                logger.warning("Quote provider failed for %s: %s", missing, e)
                fetched = {}
            with self._lock:
                for key, quote in fetched.items():
                    self._quotes[key] = quote
                    self._last_known[key] = quote
            result.update({k: v for k, v in fetched.items() if k in missing})

        return {k: result[k] for k in keys if k in result}

    def get_last_known(self, symbol: str) -> Optional[Quote]:
        """Last successfully fetched quote regardless of age."""
        return self._last_known.get(normalize_symbol(symbol))

    def get_reference(self, symbol: str) -> Optional[ReferenceData]:
        """Reference data (long TTL). Misses are not cached."""
        key = ("ref", normalize_symbol(symbol))
        cached = self._cached(key)
        if cached is not None:
            return cached
        try:
            ref = self._provider.get_reference(key[1])
        except Exception as e:
            logger.warning("Reference lookup failed for %s: %s", key[1], e)
            return None
        if ref is not None:
            with self._lock:
                self._reference[key] = ref
        return ref

    def get_distribution_history(self, symbol: str, since: date) -> list[DistributionAnnouncement]:
        """Provider-reported distributions since a date (long TTL)."""
        key = ("dist", normalize_symbol(symbol), since)
        cached = self._cached(key)
        if cached is not None:
            return cached
        try:
            history = self._provider.get_distribution_history(key[1], since)
        except Exception as e:
            logger.warning("Distribution history failed for %s: %s", key[1], e)
            return []
        with self._lock:
            self._reference[key] = history
        return history

    def get_monthly_closes(self, symbol: str, start: date, end: date) -> dict[str, Decimal]:
        """Month-end closes keyed YYYY-MM (long TTL). Empty results are not cached."""
        key = ("closes", normalize_symbol(symbol), start, end)
        cached = self._cached(key)
        if cached is not None:
            return cached
        try:
            closes = self._provider.get_monthly_closes(key[1], start, end)
        except Exception as e:
            logger.warning("Monthly closes failed for %s: %s", key[1], e)
            return {}
        if closes:
            with self._lock:
                self._reference[key] = closes
        return closes

    def _cached(self, key):
        with self._lock:
            return self._reference.get(key)

    def invalidate(self, symbols: Optional[list[str]] = None) -> None:
        """
        Drop cached entries so the next read goes to the provider.

        With no symbols, clears both caches. Last-known quotes are kept.
        """
        with self._lock:
            if not symbols:
                self._quotes.clear()
                self._reference.clear()
                logger.info("Market data cache cleared")
                return
            keys = {normalize_symbol(s) for s in symbols}
            for key in keys:
                self._quotes.pop(key, None)
            for ref_key in list(self._reference.keys()):
                if ref_key[1] in keys:
                    self._reference.pop(ref_key, None)
            logger.info("Market data cache invalidated for %s", sorted(keys))
