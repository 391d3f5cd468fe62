"""Quote provider protocol."""

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol

from dividend_ledger.domain.models import DistributionAnnouncement
from dividend_ledger.domain.views import Quote, ReferenceData


class QuoteProvider(Protocol):
    """
    Protocol for external quote providers.

    Implementations must tolerate partial failures: symbols that cannot be
    resolved are omitted from batch results, or None for single lookups.
    """

    def get_quote(self, symbol: str) -> Optional[Quote]:
        """Fetch the current quote for one symbol."""
        ...

    def get_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        """
        Fetch quotes for multiple symbols.

        Returns dict mapping symbol -> Quote. Missing symbols are omitted.
        """
        ...

    def get_reference(self, symbol: str) -> Optional[ReferenceData]:
        """Fetch descriptive data used to register an instrument."""
        ...

    def get_distribution_history(self, symbol: str, since: date) -> list[DistributionAnnouncement]:
        """Fetch distributions with ex-date on or after since."""
        ...

    def get_monthly_closes(self, symbol: str, start: date, end: date) -> dict[str, Decimal]:
        """Return the last close of each month in [start, end], keyed YYYY-MM."""
        ...
