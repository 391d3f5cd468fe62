"""Stub quote provider for offline/testing use."""

import random
from datetime import date
from decimal import Decimal
from typing import Optional

from dividend_ledger.core.timezone import now_market
from dividend_ledger.domain.models import DistributionAnnouncement
from dividend_ledger.domain.views import Quote, ReferenceData
from dividend_ledger.providers.symbols import classify_symbol, normalize_symbol


# Deterministic fake prices for common symbols: (price, prev_close)
_STUB_PRICES: dict[str, tuple[Decimal, Decimal]] = {
    "PETR4": (Decimal("37.50"), Decimal("37.10")),
    "VALE3": (Decimal("61.20"), Decimal("61.85")),
    "ITUB4": (Decimal("34.10"), Decimal("33.90")),
    "MXRF11": (Decimal("9.54"), Decimal("9.51")),
    "HGLG11": (Decimal("158.30"), Decimal("157.90")),
    "KNRI11": (Decimal("139.80"), Decimal("140.20")),
    "BOVA11": (Decimal("126.40"), Decimal("125.70")),
    "AAPL34": (Decimal("52.15"), Decimal("51.80")),
}


class StubQuoteProvider:
    """
    Stub provider with deterministic fake data for offline operation.

    Uses predefined prices for common symbols; generates seeded random prices
    for unknown symbols. Reports no distributions and no history.
    """

    def __init__(self, seed: int = 42):
        """Initialize with optional random seed for reproducibility."""
        self._rng = random.Random(seed)

    def get_quote(self, symbol: str) -> Optional[Quote]:
        return self.get_quotes([symbol]).get(normalize_symbol(symbol))

    def get_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        """Return stub quotes for requested symbols."""
        as_of = now_market()
        result: dict[str, Quote] = {}

        for symbol in symbols:
            key = normalize_symbol(symbol)
            if key in _STUB_PRICES:
                price, prev_close = _STUB_PRICES[key]
            else:
                price = Decimal(str(10 + self._rng.random() * 90)).quantize(Decimal("0.01"))
                change = Decimal(str((self._rng.random() - 0.5) * 0.04))
                prev_close = (price / (1 + change)).quantize(Decimal("0.01"))
            result[key] = Quote(
                symbol=key,
                price=price,
                as_of=as_of,
                change_percent=((price - prev_close) / prev_close * 100).quantize(Decimal("0.01")),
                prev_close=prev_close,
            )
        return result

    def get_reference(self, symbol: str) -> Optional[ReferenceData]:
        key = normalize_symbol(symbol)
        if not key:
            return None
        return ReferenceData(symbol=key, name=key, instrument_class=classify_symbol(key))

    def get_distribution_history(self, symbol: str, since: date) -> list[DistributionAnnouncement]:
        return []

    def get_monthly_closes(self, symbol: str, start: date, end: date) -> dict[str, Decimal]:
        return {}
