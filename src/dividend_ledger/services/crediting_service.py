"""Distribution entitlement and crediting engine."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time as dt_time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Iterable, Optional

from dividend_ledger.core.exceptions import AppError, NotFoundError, ValidationError
from dividend_ledger.core.timezone import MARKET_TZ, today_market
from dividend_ledger.domain.models import (
    CreditedDistribution,
    CreditOrigin,
    CreditStatus,
    DistributionAnnouncement,
    DistributionKind,
    Instrument,
    InstrumentClass,
)
from dividend_ledger.domain.views import SweepSummary
from dividend_ledger.providers.notification_sink import Notification, NotificationSink
from dividend_ledger.repositories.protocols import (
    DistributionRepository,
    EventRepository,
    IndicatorRepository,
)
from dividend_ledger.services.catalog_service import CatalogService
from dividend_ledger.services.market_data_service import MarketDataService
from dividend_ledger.services.position_engine import PositionEngine

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def reconcile_entries(entries: Iterable[CreditedDistribution]) -> list[CreditedDistribution]:
    """
    Entries to count in user-facing aggregates.

    Ledger rows from different origins for the same (owner, symbol,
    payment_date) stay distinct in storage. When a MANUAL row exists for that
    triple it stands for the payment and the automatic rows are left out.
    """
    entries = list(entries)
    manual_keys = {
        (e.owner_id, e.symbol, e.payment_date) for e in entries if e.origin == CreditOrigin.MANUAL
    }
    return [
        e for e in entries
        if e.origin == CreditOrigin.MANUAL or (e.owner_id, e.symbol, e.payment_date) not in manual_keys
    ]


@dataclass
class ManualDistributionCreate:
    """Input data for a user-entered distribution."""

    owner_id: str
    symbol: str
    amount_per_unit: Decimal
    payment_date: date
    entitlement_date: Optional[date] = None
    quantity: Optional[Decimal] = None  # default: position on entitlement date
    withholding: Optional[Decimal] = None
    kind: DistributionKind = DistributionKind.DIVIDEND
    note: Optional[str] = None


class CreditingService:
    """
    Credits announced distributions against historical ownership.

    Entitlement is the position on the announcement's entitlement date, not
    the current holding. The ledger's unique key (owner, symbol, payment date,
    origin) makes every credit at-most-once, so sweeps are safe to re-run.
    """

    def __init__(
        self,
        catalog: CatalogService,
        event_repo: EventRepository,
        distribution_repo: DistributionRepository,
        indicator_repo: IndicatorRepository,
        position_engine: PositionEngine,
        market_data: MarketDataService,
        notification_sink: NotificationSink,
        lookback_days: int = 30,
        interest_on_equity_withholding_rate: Decimal = Decimal("0.15"),
        today_fn: Callable[[], date] = today_market,
    ):
        self._catalog = catalog
        self._event_repo = event_repo
        self._distribution_repo = distribution_repo
        self._indicator_repo = indicator_repo
        self._engine = position_engine
        self._market_data = market_data
        self._sink = notification_sink
        self._lookback = timedelta(days=lookback_days)
        self._ioe_rate = Decimal(str(interest_on_equity_withholding_rate))
        self._today = today_fn

    # ------------------------------------------------------------------
    # Announcement sources
    # ------------------------------------------------------------------

    def collect_announcements(self, today: Optional[date] = None) -> list[DistributionAnnouncement]:
        """
        Announcements paid within the lookback window (or scheduled later).

        Real-estate funds come from scraped indicator histories; other held
        instruments come from the quote provider.
        """
        today = today or self._today()
        since = today - self._lookback
        announcements: list[DistributionAnnouncement] = []

        for snapshot in self._indicator_repo.list_all():
            if snapshot.indicators is None:
                continue
            for record in snapshot.indicators.distribution_history:
                payment = record.payment_date or record.entitlement_date
                if payment is None or payment < since:
                    continue
                announcements.append(
                    DistributionAnnouncement(
                        symbol=snapshot.symbol,
                        amount_per_unit=record.amount,
                        entitlement_date=record.entitlement_date or payment,
                        payment_date=payment,
                        kind=DistributionKind.RECURRING_INCOME,
                        source=CreditOrigin.AUTO_SCRAPER,
                    )
                )

        for symbol in self._event_repo.list_symbols():
            instrument = self._catalog.find_instrument(symbol)
            if instrument is None or instrument.instrument_class == InstrumentClass.REAL_ESTATE_FUND:
                continue
            announcements.extend(self._market_data.get_distribution_history(symbol, since))

        logger.info("Collected %d distribution announcements since %s", len(announcements), since)
        return announcements

    # ------------------------------------------------------------------
    # Sweep
    # ------------------------------------------------------------------

    def run_distribution_sweep(
        self,
        announcements: Optional[list[DistributionAnnouncement]] = None,
    ) -> SweepSummary:
        """
        Credit every announcement to every entitled owner, then promote due entries.

        A failure on one announcement or one owner is logged and counted;
        the batch always runs to completion.
        """
        today = self._today()
        if announcements is None:
            announcements = self.collect_announcements(today)
        logger.info("Distribution sweep started: %d announcements", len(announcements))

        summary = SweepSummary()
        for announcement in announcements:
            summary.processed += 1
            try:
                instrument = self._catalog.get_instrument(announcement.symbol)
            except NotFoundError as e:
                self._record_error(summary, f"{announcement.symbol}: {e.message}")
                continue
            for owner_id in self._event_repo.list_owners(instrument.symbol):
                try:
                    self._credit_owner(owner_id, instrument, announcement, today, summary)
                except AppError as e:
                    logger.error(
                        "Crediting %s to %s failed: %s %s",
                        instrument.symbol, owner_id, e.message, getattr(e, "context", ""),
                    )
                    self._record_error(summary, f"{instrument.symbol}/{owner_id}: {e.message}")
                except Exception as e:
                    logger.exception("Unexpected failure crediting %s to %s", instrument.symbol, owner_id)
                    self._record_error(summary, f"{instrument.symbol}/{owner_id}: {e}")

        summary.promoted = self.promote_due(today)
        logger.info(
            "Distribution sweep finished: processed=%d created=%d skipped=%d errors=%d promoted=%d",
            summary.processed, summary.created, summary.skipped, summary.errors, summary.promoted,
        )
        return summary

    def _credit_owner(
        self,
        owner_id: str,
        instrument: Instrument,
        announcement: DistributionAnnouncement,
        today: date,
        summary: SweepSummary,
    ) -> None:
        position = self._engine.position_as_of(owner_id, instrument.symbol, announcement.entitlement_date)
        if position.quantity <= 0:
            return

        entry = self.build_entry(owner_id, instrument, announcement, position.quantity, today)
        if not self._distribution_repo.insert_if_absent(entry):
            summary.skipped += 1
            return

        summary.created += 1
        logger.info(
            "Credited %s to %s: %s x %s = %s net (%s, paid %s)",
            instrument.symbol, owner_id, entry.quantity, entry.amount_per_unit,
            entry.net_amount, entry.status.value, entry.payment_date,
        )
        self._notify(entry)

    def build_entry(
        self,
        owner_id: str,
        instrument: Instrument,
        announcement: DistributionAnnouncement,
        quantity: Decimal,
        today: date,
    ) -> CreditedDistribution:
        """Compute gross, withholding and net for an entitled quantity."""
        gross = _money(quantity * announcement.amount_per_unit)
        withholding = _money(gross * self._withholding_rate(instrument, announcement))
        return CreditedDistribution(
            owner_id=owner_id,
            symbol=instrument.symbol,
            amount_per_unit=announcement.amount_per_unit,
            quantity=quantity,
            gross_amount=gross,
            withholding=withholding,
            net_amount=gross - withholding,
            entitlement_date=announcement.entitlement_date,
            payment_date=announcement.payment_date,
            status=CreditStatus.PENDING if announcement.payment_date > today else CreditStatus.RECEIVED,
            origin=announcement.source,
            kind=announcement.kind,
            note=f"Credited automatically on {today.isoformat()}",
        )

    def _withholding_rate(self, instrument: Instrument, announcement: DistributionAnnouncement) -> Decimal:
        if instrument.is_tax_exempt:
            return Decimal("0")
        if announcement.withholding_rate is not None:
            return announcement.withholding_rate
        if announcement.kind == DistributionKind.INTEREST_ON_EQUITY:
            return self._ioe_rate
        return Decimal("0")

    def promote_due(self, today: Optional[date] = None) -> int:
        """Flip PENDING entries whose payment date has arrived to RECEIVED."""
        count = self._distribution_repo.promote_due(today or self._today())
        if count:
            logger.info("Promoted %d distributions from PENDING to RECEIVED", count)
        return count

    # ------------------------------------------------------------------
    # Manual entry path
    # ------------------------------------------------------------------

    def record_manual_distribution(self, data: ManualDistributionCreate) -> CreditedDistribution:
        """
        Record a user-entered distribution (origin MANUAL).

        Re-submitting the same (owner, symbol, payment date) returns the
        existing manual entry unchanged.
        """
        if data.amount_per_unit is None or data.amount_per_unit <= 0:
            raise ValidationError("amount_per_unit must be > 0")
        if data.withholding is not None and data.withholding < 0:
            raise ValidationError("withholding cannot be negative")

        instrument = self._catalog.ensure_instrument(data.symbol)
        entitlement = data.entitlement_date or data.payment_date
        if entitlement > data.payment_date:
            raise ValidationError("entitlement_date cannot be after payment_date")

        quantity = data.quantity
        if quantity is None:
            quantity = self._engine.position_as_of(data.owner_id, instrument.symbol, entitlement).quantity
        if quantity <= 0:
            raise ValidationError(f"No {instrument.symbol} held on {entitlement.isoformat()}")

        today = self._today()
        gross = _money(quantity * data.amount_per_unit)
        withholding = _money(data.withholding) if data.withholding is not None else Decimal("0.00")
        if withholding > gross:
            raise ValidationError("withholding cannot exceed the gross amount")

        entry = CreditedDistribution(
            owner_id=data.owner_id,
            symbol=instrument.symbol,
            amount_per_unit=data.amount_per_unit,
            quantity=quantity,
            gross_amount=gross,
            withholding=withholding,
            net_amount=gross - withholding,
            entitlement_date=entitlement,
            payment_date=data.payment_date,
            status=CreditStatus.PENDING if data.payment_date > today else CreditStatus.RECEIVED,
            origin=CreditOrigin.MANUAL,
            kind=data.kind,
            note=data.note,
        )
        if self._distribution_repo.insert_if_absent(entry):
            logger.info("Manual distribution recorded: %s %s for %s", instrument.symbol, gross, data.owner_id)
        return self._distribution_repo.find(data.owner_id, instrument.symbol, data.payment_date, CreditOrigin.MANUAL)

    def delete_distribution(self, owner_id: str, entry_id: int) -> None:
        """Remove a ledger entry at the owner's explicit request."""
        entry = self._distribution_repo.get(entry_id)
        if entry is None or entry.owner_id != owner_id:
            raise NotFoundError("Distribution", str(entry_id))
        self._distribution_repo.delete(entry_id)
        logger.info("Deleted distribution %s (%s) for %s", entry_id, entry.origin.value, owner_id)

    def list_distributions(
        self,
        owner_id: str,
        symbol: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        reconciled: bool = False,
    ) -> list[CreditedDistribution]:
        """Ledger entries, optionally with manual entries superseding automatic ones."""
        entries = self._distribution_repo.list_for_owner(owner_id, symbol=symbol, start=start, end=end)
        return reconcile_entries(entries) if reconciled else entries

    # ------------------------------------------------------------------

    def _notify(self, entry: CreditedDistribution) -> None:
        scheduled_for: Optional[datetime] = None
        if entry.status == CreditStatus.PENDING:
            scheduled_for = MARKET_TZ.localize(datetime.combine(entry.payment_date, dt_time(9, 0)))
        notification = Notification(
            owner_id=entry.owner_id,
            title=f"Distribution from {entry.symbol}",
            message=(
                f"{entry.net_amount} for {entry.quantity} units "
                f"({entry.amount_per_unit} per unit), paid {entry.payment_date.isoformat()}"
            ),
            scheduled_for=scheduled_for,
        )
        try:
            self._sink.send(notification)
        except Exception:
            logger.exception("Notification sink failed for %s", entry.owner_id)

    @staticmethod
    def _record_error(summary: SweepSummary, detail: str) -> None:
        summary.errors += 1
        summary.error_details.append(detail)
