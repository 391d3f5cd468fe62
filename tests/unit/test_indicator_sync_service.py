"""
Unit tests for IndicatorSyncService.

Tests cover:
- Successful sync stores a snapshot and refreshes the catalog segment
- Failed sync keeps the last good indicators and counts the error
- Batch syncs isolate failures
- Staleness and comparison of cached snapshots
"""

from datetime import date
from decimal import Decimal

import pytest

from dividend_ledger.core.exceptions import NotFoundError, SourceUnavailableError
from dividend_ledger.domain.models import EventDirection, InstrumentClass, SyncStatus, Trend
from dividend_ledger.services import IndicatorSyncService

from tests.conftest import OTHER_OWNER, make_indicators, market_datetime, transient_error


ACQ = EventDirection.ACQUIRE
DIS = EventDirection.DISPOSE


# =============================================================================
# SINGLE INSTRUMENT TESTS
# =============================================================================


class TestSyncInstrument:
    def test_success_saves_snapshot_with_analysis(self, indicator_sync_service, indicator_source, indicator_repo):
        indicator_source.results["MXRF11"] = make_indicators(amounts=["0.11"] * 6 + ["0.10"] * 6)

        snapshot = indicator_sync_service.sync_instrument("mxrf11")

        assert snapshot.symbol == "MXRF11"
        assert snapshot.last_sync_status == SyncStatus.SUCCESS
        assert snapshot.indicators.price == Decimal("10.50")
        assert snapshot.analysis.trend == Trend.RISING
        assert indicator_repo.get("MXRF11").indicators is not None

    def test_success_updates_catalog_segment(self, indicator_sync_service, indicator_source, instrument_factory,
                                             catalog_service):
        instrument_factory("MXRF11", name="Maxi Renda FII")
        indicator_source.results["MXRF11"] = make_indicators(segment="Papel")

        indicator_sync_service.sync_instrument("MXRF11")

        instrument = catalog_service.get_instrument("MXRF11")
        assert instrument.segment == "Papel"
        assert instrument.name == "Maxi Renda FII"

    def test_failure_keeps_last_good_indicators(self, indicator_sync_service, indicator_source):
        """
        GIVEN a successful sync followed by a source outage
        WHEN the instrument is synced again
        THEN the error propagates, status is ERROR, error_count is 1 and the
             previous indicators are still cached
        """
        indicator_source.results["MXRF11"] = make_indicators()
        indicator_sync_service.sync_instrument("MXRF11")

        indicator_source.results["MXRF11"] = transient_error("timeout")
        with pytest.raises(SourceUnavailableError):
            indicator_sync_service.sync_instrument("MXRF11")

        snapshot = indicator_sync_service.get_indicators("MXRF11")
        assert snapshot.last_sync_status == SyncStatus.ERROR
        assert snapshot.error_count == 1
        assert "timeout" in snapshot.last_sync_error
        assert snapshot.indicators.price == Decimal("10.50")

    def test_unknown_symbol_records_failure(self, indicator_sync_service, indicator_repo):
        with pytest.raises(NotFoundError):
            indicator_sync_service.sync_instrument("ZZZZ11")

        snapshot = indicator_repo.get("ZZZZ11")
        assert snapshot.last_sync_status == SyncStatus.ERROR
        assert snapshot.indicators is None
        assert snapshot.last_sync_error.startswith("NOT_FOUND")


# =============================================================================
# BATCH SYNC TESTS
# =============================================================================


class TestBatchSync:
    def test_held_fund_symbols_covers_all_owners_and_skips_non_funds(self, indicator_sync_service, event_factory):
        event_factory("MXRF11", ACQ, "100", "10.00", date(2024, 1, 2))
        event_factory("HGLG11", ACQ, "5", "160.00", date(2024, 1, 2), owner_id=OTHER_OWNER)
        event_factory("PETR4", ACQ, "10", "36.00", date(2024, 1, 2))
        event_factory("KNRI11", ACQ, "3", "140.00", date(2024, 1, 2))
        event_factory("KNRI11", DIS, "3", "141.00", date(2024, 2, 1))

        assert indicator_sync_service.held_fund_symbols() == ["HGLG11", "MXRF11"]

    def test_sync_held_instruments_isolates_failures(self, indicator_sync_service, indicator_source, event_factory):
        """
        GIVEN two held funds where one fails at the source
        WHEN held instruments are synced
        THEN the other still succeeds and the summary reports both outcomes
        """
        event_factory("MXRF11", ACQ, "100", "10.00", date(2024, 1, 2))
        event_factory("HGLG11", ACQ, "5", "160.00", date(2024, 1, 2))
        indicator_source.results["MXRF11"] = make_indicators()
        indicator_source.results["HGLG11"] = transient_error("HTTP 503")

        summary = indicator_sync_service.sync_held_instruments()

        assert summary.total == 2
        assert summary.succeeded == 1
        assert summary.failed == 1
        failed = [o for o in summary.outcomes if not o.success]
        assert failed[0].symbol == "HGLG11"
        assert failed[0].error_code == "SOURCE_UNAVAILABLE"

    def test_unexpected_errors_are_counted(self, indicator_sync_service, indicator_source, event_factory):
        event_factory("MXRF11", ACQ, "100", "10.00", date(2024, 1, 2))
        indicator_source.results["MXRF11"] = RuntimeError("parser exploded")

        summary = indicator_sync_service.sync_held_instruments()

        assert summary.failed == 1
        assert summary.outcomes[0].error_code == "UNEXPECTED"

    def test_sync_catalog_limits_and_pauses_between_requests(
        self, indicator_source, indicator_repo, catalog_service, event_repo, position_engine, instrument_factory,
        fixed_now,
    ):
        sleeps = []
        service = IndicatorSyncService(
            indicator_source=indicator_source,
            indicator_repo=indicator_repo,
            catalog=catalog_service,
            event_repo=event_repo,
            position_engine=position_engine,
            now_fn=lambda: fixed_now,
            sleep=sleeps.append,
        )
        for symbol in ("HGLG11", "KNRI11", "MXRF11"):
            instrument_factory(symbol)
            indicator_source.results[symbol] = make_indicators(symbol)
        instrument_factory("PETR4")

        summary = service.sync_catalog(limit=2, delay_seconds=1.5)

        assert indicator_source.calls == ["HGLG11", "KNRI11"]
        assert summary.succeeded == 2
        assert sleeps == [1.5]

    def test_refresh_stale_only_syncs_old_or_missing(self, indicator_sync_service, indicator_source, event_factory):
        event_factory("MXRF11", ACQ, "100", "10.00", date(2024, 1, 2))
        event_factory("HGLG11", ACQ, "5", "160.00", date(2024, 1, 2))
        event_factory("KNRI11", ACQ, "3", "140.00", date(2024, 1, 2))
        indicator_source.results["MXRF11"] = make_indicators("MXRF11")
        indicator_source.results["HGLG11"] = make_indicators("HGLG11", fetched_at=market_datetime(2024, 6, 1))
        indicator_source.results["KNRI11"] = make_indicators("KNRI11")
        indicator_sync_service.sync_instrument("MXRF11")
        indicator_sync_service.sync_instrument("HGLG11")
        indicator_source.calls.clear()

        summary = indicator_sync_service.refresh_stale()

        assert sorted(indicator_source.calls) == ["HGLG11", "KNRI11"]
        assert summary.total == 2


# =============================================================================
# CACHED READ TESTS
# =============================================================================


class TestGetIndicators:
    def test_missing_snapshot_triggers_sync(self, indicator_sync_service, indicator_source):
        indicator_source.results["MXRF11"] = make_indicators()

        snapshot = indicator_sync_service.get_indicators("MXRF11")

        assert indicator_source.calls == ["MXRF11"]
        assert snapshot.is_stale is False

    def test_cached_snapshot_is_not_refetched(self, indicator_sync_service, indicator_source):
        indicator_source.results["MXRF11"] = make_indicators()
        indicator_sync_service.get_indicators("MXRF11")

        indicator_sync_service.get_indicators("MXRF11")

        assert indicator_source.calls == ["MXRF11"]

    def test_force_refresh_refetches(self, indicator_sync_service, indicator_source):
        indicator_source.results["MXRF11"] = make_indicators()
        indicator_sync_service.get_indicators("MXRF11")

        indicator_sync_service.get_indicators("MXRF11", force_refresh=True)

        assert indicator_source.calls == ["MXRF11", "MXRF11"]

    def test_old_snapshot_is_flagged_stale(self, indicator_sync_service, indicator_source):
        indicator_source.results["MXRF11"] = make_indicators(fetched_at=market_datetime(2024, 6, 10))

        snapshot = indicator_sync_service.get_indicators("MXRF11")

        assert snapshot.is_stale is True


class TestCompare:
    def test_compare_cached_snapshots(self, indicator_sync_service, indicator_source):
        indicator_source.results["MXRF11"] = make_indicators("MXRF11", price="10.00")
        indicator_source.results["HGLG11"] = make_indicators("HGLG11", price="160.00", valuation_ratio="0.90",
                                                             amounts=["1.10"] * 12)
        indicator_sync_service.sync_instrument("MXRF11")
        indicator_sync_service.sync_instrument("HGLG11")

        comparison = indicator_sync_service.compare(["MXRF11", "HGLG11"])

        assert comparison.best_yield == "MXRF11"
        assert comparison.lowest_valuation_ratio == "HGLG11"

    def test_compare_requires_cached_snapshots(self, indicator_sync_service, indicator_source):
        indicator_source.results["MXRF11"] = make_indicators()
        indicator_sync_service.sync_instrument("MXRF11")

        with pytest.raises(NotFoundError):
            indicator_sync_service.compare(["MXRF11", "HGLG11"])
