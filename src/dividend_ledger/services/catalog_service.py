"""Instrument catalog service."""

import logging
from typing import Optional

from dividend_ledger.core.exceptions import NotFoundError, ValidationError
from dividend_ledger.domain.models import Instrument, InstrumentClass
from dividend_ledger.providers.symbols import classify_symbol, normalize_symbol
from dividend_ledger.repositories.protocols import InstrumentRepository
from dividend_ledger.services.market_data_service import MarketDataService

logger = logging.getLogger(__name__)


class CatalogService:
    """Registers instruments and resolves symbols against the catalog."""

    def __init__(self, instrument_repo: InstrumentRepository, market_data: MarketDataService):
        self._instrument_repo = instrument_repo
        self._market_data = market_data

    def register_instrument(
        self,
        symbol: str,
        name: Optional[str] = None,
        instrument_class: Optional[InstrumentClass] = None,
        segment: Optional[str] = None,
        is_active: bool = True,
    ) -> Instrument:
        """Create or refresh an instrument. Class is inferred from the symbol when omitted."""
        key = normalize_symbol(symbol)
        if not key:
            raise ValidationError("Symbol is required")
        instrument = Instrument(
            symbol=key,
            name=(name or "").strip() or key,
            instrument_class=instrument_class or classify_symbol(key),
            segment=segment,
            is_active=is_active,
        )
        return self._instrument_repo.upsert(instrument)

    def get_instrument(self, symbol: str) -> Instrument:
        instrument = self._instrument_repo.get(normalize_symbol(symbol))
        if instrument is None:
            raise NotFoundError("Instrument", symbol)
        return instrument

    def find_instrument(self, symbol: str) -> Optional[Instrument]:
        return self._instrument_repo.get(normalize_symbol(symbol))

    def list_instruments(
        self,
        active_only: bool = False,
        instrument_class: Optional[InstrumentClass] = None,
    ) -> list[Instrument]:
        return self._instrument_repo.list_all(active_only=active_only, instrument_class=instrument_class)

    def ensure_instrument(self, symbol: str) -> Instrument:
        """
        Return the catalog instrument, registering it from provider reference
        data if it is not known yet.

        Raises NotFoundError when neither the catalog nor the provider knows it.
        """
        key = normalize_symbol(symbol)
        if not key:
            raise ValidationError("Symbol is required")
        existing = self._instrument_repo.get(key)
        if existing is not None:
            return existing

        ref = self._market_data.get_reference(key)
        if ref is None:
            raise NotFoundError("Instrument", key)
        logger.info("Registering %s (%s) from reference data", key, ref.instrument_class.value)
        return self._instrument_repo.upsert(
            Instrument(
                symbol=key,
                name=ref.name,
                instrument_class=ref.instrument_class,
                segment=ref.segment,
            )
        )
