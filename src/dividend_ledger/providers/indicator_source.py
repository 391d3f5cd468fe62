"""Secondary indicator source protocol."""

from typing import Protocol

from dividend_ledger.domain.models import InstrumentIndicators


class IndicatorSource(Protocol):
    """
    Protocol for secondary sources of structured instrument indicators.

    get_indicators raises NotFoundError when the symbol does not exist at the
    source (terminal) and SourceUnavailableError when the source could not be
    reached after retries (transient).
    """

    def get_indicators(self, symbol: str) -> InstrumentIndicators:
        """Fetch and normalize indicators for one symbol."""
        ...
