"""Ledger service for the append-only ownership event log."""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, Optional

from dividend_ledger.core.exceptions import NotFoundError, ValidationError
from dividend_ledger.core.timezone import today_market
from dividend_ledger.domain.models import EventDirection, OwnershipEvent
from dividend_ledger.domain.views import Position
from dividend_ledger.repositories.protocols import EventRepository
from dividend_ledger.services.catalog_service import CatalogService
from dividend_ledger.services.position_engine import PositionEngine

logger = logging.getLogger(__name__)

PurchaseListener = Callable[[OwnershipEvent], None]


@dataclass
class EventCreate:
    """Input data for recording an ownership event."""

    owner_id: str
    symbol: str
    direction: EventDirection
    quantity: Decimal
    unit_price: Decimal
    effective_date: Optional[date] = None
    fees: Decimal = field(default_factory=lambda: Decimal("0"))
    venue: Optional[str] = None
    note: Optional[str] = None


class LedgerService:
    """
    Service for appending to and reading the ownership event log.

    Events are never edited or deleted; a cancellation appends the
    compensating event. Every append is checked against a replay of the
    owner's stream so the log can never describe a negative holding.
    """

    def __init__(
        self,
        catalog: CatalogService,
        event_repo: EventRepository,
        position_engine: PositionEngine,
        today_fn: Callable[[], date] = today_market,
    ):
        self._catalog = catalog
        self._event_repo = event_repo
        self._engine = position_engine
        self._today = today_fn
        self._purchase_listeners: list[PurchaseListener] = []

    def add_purchase_listener(self, listener: PurchaseListener) -> None:
        """Register a callback invoked after each recorded acquisition."""
        self._purchase_listeners.append(listener)

    def record_event(self, data: EventCreate) -> OwnershipEvent:
        """
        Validate and append an event.

        Raises ValidationError for bad input, NotFoundError for an unknown
        symbol, and ConsistencyFaultError when a disposal would exceed the
        quantity held at any point of the stream.
        """
        self._validate(data)
        instrument = self._catalog.ensure_instrument(data.symbol)

        candidate = OwnershipEvent(
            owner_id=data.owner_id,
            symbol=instrument.symbol,
            direction=data.direction,
            quantity=data.quantity,
            unit_price=data.unit_price,
            fees=data.fees,
            effective_date=data.effective_date or self._today(),
            venue=data.venue,
            note=data.note,
        )
        self._engine.check_with_candidate(candidate)

        event = self._event_repo.append(candidate, verify=self._verify_appended)
        logger.info(
            "Recorded %s %s %s @ %s for %s (seq %s)",
            event.direction.value, event.quantity, event.symbol,
            event.unit_price, event.owner_id, event.sequence,
        )
        if event.is_acquisition:
            self._notify_purchase(event)
        return event

    def cancel_event(self, owner_id: str, sequence: int, note: Optional[str] = None) -> OwnershipEvent:
        """
        Append the opposite of an existing event (same quantity, price and date).

        The new event references the cancelled one through cancels_sequence and
        replay leaves both out. An event can be cancelled once; a cancellation
        cannot itself be cancelled.
        """
        original = self._event_repo.get(sequence)
        if original is None or original.owner_id != owner_id:
            raise NotFoundError("Event", str(sequence))
        if original.is_compensating:
            raise ValidationError(f"Event {sequence} is a cancellation and cannot be cancelled")
        if self._event_repo.get_cancellation(sequence) is not None:
            raise ValidationError(f"Event {sequence} is already cancelled")

        candidate = OwnershipEvent(
            owner_id=owner_id,
            symbol=original.symbol,
            direction=original.direction.opposite,
            quantity=original.quantity,
            unit_price=original.unit_price,
            fees=Decimal("0"),
            effective_date=original.effective_date,
            venue=original.venue,
            note=note or f"Cancels event {original.sequence}",
            cancels_sequence=original.sequence,
        )
        self._engine.check_with_candidate(candidate)
        event = self._event_repo.append(candidate, verify=self._verify_appended)
        logger.info("Cancelled event %s for %s with event %s", sequence, owner_id, event.sequence)
        return event

    def list_events(
        self,
        owner_id: str,
        symbol: Optional[str] = None,
        since: Optional[date] = None,
        until: Optional[date] = None,
    ) -> list[OwnershipEvent]:
        return self._event_repo.list_for_owner(owner_id, symbol=symbol, since=since, until=until)

    def reconstruct_position(self, owner_id: str, symbol: str, as_of: Optional[date] = None) -> Position:
        """Position of one instrument as of a date (default today)."""
        return self._engine.position_as_of(owner_id, symbol, as_of or self._today())

    def positions_as_of(self, owner_id: str, as_of: Optional[date] = None) -> list[Position]:
        """Open positions of an owner as of a date, ordered by symbol."""
        positions = self._engine.positions_as_of(owner_id, as_of or self._today())
        return [positions[s] for s in sorted(positions)]

    def _validate(self, data: EventCreate) -> None:
        if not (data.owner_id or "").strip():
            raise ValidationError("owner_id is required")
        if not (data.symbol or "").strip():
            raise ValidationError("symbol is required")
        if data.quantity is None or data.quantity <= 0:
            raise ValidationError("quantity must be > 0")
        if data.unit_price is None or data.unit_price < 0:
            raise ValidationError("unit_price must be >= 0")
        if data.fees is None or data.fees < 0:
            raise ValidationError("fees cannot be negative")

    def _verify_appended(self, event: OwnershipEvent) -> None:
        # Runs after the flush, inside the append transaction
        self._engine.verify_stream(event.owner_id, event.symbol)

    def _notify_purchase(self, event: OwnershipEvent) -> None:
        for listener in self._purchase_listeners:
            try:
                listener(event)
            except Exception:
                # The event is already committed; a listener cannot undo it
                logger.exception("Purchase listener failed for %s", event.symbol)
