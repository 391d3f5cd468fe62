"""Indicator sync: scrape, analyze and cache secondary-source indicators."""

import logging
import time
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from dividend_ledger.core.exceptions import AppError, NotFoundError
from dividend_ledger.core.timezone import now_market, to_market
from dividend_ledger.domain.models import IndicatorSnapshot, InstrumentClass
from dividend_ledger.domain.views import InstrumentComparison, SyncOutcome, SyncSummary
from dividend_ledger.providers.indicator_source import IndicatorSource
from dividend_ledger.providers.symbols import normalize_symbol
from dividend_ledger.repositories.protocols import EventRepository, IndicatorRepository
from dividend_ledger.services.analyzer import analyze_indicators, compare_instruments
from dividend_ledger.services.catalog_service import CatalogService
from dividend_ledger.services.position_engine import PositionEngine

logger = logging.getLogger(__name__)


class IndicatorSyncService:
    """
    Keeps one indicator snapshot per instrument.

    A successful sync overwrites the snapshot; a failed sync records ERROR
    status and bumps the error count but keeps the last good indicators.
    """

    def __init__(
        self,
        indicator_source: IndicatorSource,
        indicator_repo: IndicatorRepository,
        catalog: CatalogService,
        event_repo: EventRepository,
        position_engine: PositionEngine,
        stale_after_days: int = 3,
        now_fn: Callable[[], datetime] = now_market,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._source = indicator_source
        self._indicator_repo = indicator_repo
        self._catalog = catalog
        self._event_repo = event_repo
        self._engine = position_engine
        self._stale_after = timedelta(days=stale_after_days)
        self._now = now_fn
        self._sleep = sleep

    def sync_instrument(self, symbol: str) -> IndicatorSnapshot:
        """
        Fetch, analyze and store indicators for one instrument.

        Raises NotFoundError (unknown at the source) or SourceUnavailableError
        (retries exhausted) after recording the failure on the snapshot.
        """
        key = normalize_symbol(symbol)
        started = self._now()
        try:
            indicators = self._source.get_indicators(key)
        except AppError as e:
            self._indicator_repo.record_failure(key, f"{e.code}: {e.message}", started)
            logger.warning("Indicator sync failed for %s: %s", key, e.message)
            raise

        analysis = analyze_indicators(indicators)
        snapshot = self._indicator_repo.save_success(indicators, analysis, started)

        instrument = self._catalog.find_instrument(key)
        if instrument is not None and indicators.segment and instrument.segment != indicators.segment:
            instrument.segment = indicators.segment
            self._catalog.register_instrument(
                instrument.symbol,
                name=instrument.name,
                instrument_class=instrument.instrument_class,
                segment=indicators.segment,
                is_active=instrument.is_active,
            )
        logger.info(
            "Synced %s: trend=%s consistency=%s risk=%s",
            key, analysis.trend.value, analysis.consistency, analysis.risk_level.value,
        )
        return snapshot

    def held_fund_symbols(self, as_of: Optional[date] = None) -> list[str]:
        """Real-estate fund symbols with an open position for any owner."""
        held: set[str] = set()
        for owner_id in self._event_repo.list_owners():
            held.update(self._engine.positions_as_of(owner_id, as_of))
        funds = []
        for symbol in sorted(held):
            instrument = self._catalog.find_instrument(symbol)
            if instrument is not None and instrument.instrument_class == InstrumentClass.REAL_ESTATE_FUND:
                funds.append(symbol)
        return funds

    def sync_held_instruments(self) -> SyncSummary:
        """Sync every real-estate fund somebody holds. Never aborts on one failure."""
        symbols = self.held_fund_symbols()
        logger.info("Syncing indicators for %d held funds", len(symbols))
        return self._sync_many(symbols)

    def sync_catalog(self, limit: Optional[int] = None, delay_seconds: float = 2.0) -> SyncSummary:
        """Bootstrap snapshots for catalog funds, pausing between requests."""
        instruments = self._catalog.list_instruments(
            active_only=True, instrument_class=InstrumentClass.REAL_ESTATE_FUND
        )
        symbols = [i.symbol for i in instruments]
        if limit is not None:
            symbols = symbols[:limit]
        logger.info("Bootstrapping indicators for %d catalog funds", len(symbols))
        return self._sync_many(symbols, delay_seconds=delay_seconds)

    def refresh_stale(self) -> SyncSummary:
        """Re-sync held funds whose snapshot is missing or older than the stale window."""
        stale = []
        for symbol in self.held_fund_symbols():
            snapshot = self._indicator_repo.get(symbol)
            if snapshot is None or self._is_stale(snapshot):
                stale.append(symbol)
        return self._sync_many(stale)

    def get_indicators(self, symbol: str, force_refresh: bool = False) -> IndicatorSnapshot:
        """
        Cached snapshot for a symbol, syncing first when missing or forced.

        Snapshots older than the stale window are returned with is_stale set.
        """
        key = normalize_symbol(symbol)
        snapshot = self._indicator_repo.get(key)
        if force_refresh or snapshot is None or snapshot.indicators is None:
            snapshot = self.sync_instrument(key)
        snapshot.is_stale = self._is_stale(snapshot)
        return snapshot

    def compare(self, symbols: list[str]) -> InstrumentComparison:
        """Compare cached indicators of several instruments."""
        items = []
        for symbol in symbols:
            snapshot = self._indicator_repo.get(normalize_symbol(symbol))
            if snapshot is None or snapshot.indicators is None:
                raise NotFoundError("Indicators", symbol)
            items.append((snapshot.indicators, snapshot.analysis))
        return compare_instruments(items)

    def _is_stale(self, snapshot: IndicatorSnapshot) -> bool:
        fetched = snapshot.indicators.fetched_at if snapshot.indicators else None
        if fetched is None:
            return True
        return self._now() - to_market(fetched) > self._stale_after

    def _sync_many(self, symbols: list[str], delay_seconds: float = 0.0) -> SyncSummary:
        summary = SyncSummary(total=len(symbols))
        for i, symbol in enumerate(symbols):
            if i and delay_seconds:
                self._sleep(delay_seconds)
            try:
                self.sync_instrument(symbol)
            except AppError as e:
                summary.failed += 1
                summary.outcomes.append(SyncOutcome(symbol, False, e.message, e.code))
                continue
            except Exception as e:
                logger.exception("Unexpected failure syncing %s", symbol)
                summary.failed += 1
                summary.outcomes.append(SyncOutcome(symbol, False, str(e), "UNEXPECTED"))
                continue
            summary.succeeded += 1
            summary.outcomes.append(SyncOutcome(symbol, True))
        logger.info(
            "Indicator sync finished: %d ok, %d failed of %d",
            summary.succeeded, summary.failed, summary.total,
        )
        return summary
