"""Position reconstruction by replaying the ownership event log."""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Optional

from dividend_ledger.core.exceptions import ConsistencyFaultError
from dividend_ledger.core.timezone import today_market
from dividend_ledger.domain.models import OwnershipEvent
from dividend_ledger.domain.views import Position
from dividend_ledger.repositories.protocols import EventRepository

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def fold_events(
    owner_id: str,
    events: Iterable[OwnershipEvent],
    as_of: Optional[date] = None,
    faults: Optional[list[ConsistencyFaultError]] = None,
) -> dict[str, Position]:
    """
    Replay events into per-symbol positions (weighted-average cost).

    Events are applied in (effective_date, sequence) order, skipping any with
    effective_date after as_of. A cancelled event and the event that cancels
    it are both left out, so the replay equals the log without the pair.
    Acquisitions add quantity * unit_price + fees to cost basis; disposals
    shrink cost basis in proportion to the quantity disposed. Cost basis
    resets to zero when quantity reaches zero.

    A disposal that exceeds the running quantity raises ConsistencyFaultError,
    unless a faults list is given: then the error is appended to it, the
    disposal is skipped and the position is marked consistency_fault.
    Positions that were opened and closed are returned with zero quantity.
    """
    events = list(events)
    cancelled = {e.cancels_sequence for e in events if e.is_compensating}
    quantities: dict[str, Decimal] = defaultdict(lambda: ZERO)
    costs: dict[str, Decimal] = defaultdict(lambda: ZERO)
    faulted: set[str] = set()

    for event in sorted(events, key=lambda e: e.sort_key):
        if as_of is not None and event.effective_date > as_of:
            continue
        if event.is_compensating or event.sequence in cancelled:
            continue
        symbol = event.symbol
        held = quantities[symbol]

        if event.is_acquisition:
            quantities[symbol] = held + event.quantity
            costs[symbol] += event.gross_amount + event.fees
            continue

        if event.quantity > held:
            error = ConsistencyFaultError(
                f"Disposal of {event.quantity} {symbol} on {event.effective_date} "
                f"exceeds held quantity {held}",
                {
                    "owner_id": owner_id,
                    "symbol": symbol,
                    "sequence": event.sequence,
                    "effective_date": event.effective_date.isoformat(),
                    "requested": str(event.quantity),
                    "available": str(held),
                },
            )
            if faults is None:
                raise error
            logger.error("Skipping event in replay: %s %s", error.message, error.context)
            faults.append(error)
            faulted.add(symbol)
            continue
        remaining = held - event.quantity
        if remaining == ZERO:
            costs[symbol] = ZERO
        else:
            costs[symbol] = costs[symbol] * (remaining / held)
        quantities[symbol] = remaining

    return {
        symbol: Position(
            owner_id=owner_id,
            symbol=symbol,
            quantity=quantities[symbol],
            cost_basis=costs[symbol],
            as_of=as_of,
            consistency_fault=symbol in faulted,
        )
        for symbol in sorted(quantities)
    }


class PositionEngine:
    """
    Answers "what did this owner hold on date D" from the event log.

    Results are a pure function of the committed events; nothing is cached.
    """

    def __init__(
        self,
        event_repo: EventRepository,
        today_fn: Callable[[], date] = today_market,
    ):
        self._event_repo = event_repo
        self._today = today_fn

    def position_as_of(self, owner_id: str, symbol: str, as_of: date) -> Position:
        """Position of one instrument, including events effective on as_of."""
        symbol = symbol.strip().upper()
        events = self._event_repo.list_for_owner(owner_id, symbol=symbol, until=as_of)
        positions = fold_events(owner_id, events, as_of=as_of)
        return positions.get(symbol) or Position(owner_id=owner_id, symbol=symbol, as_of=as_of)

    def positions_as_of(
        self,
        owner_id: str,
        as_of: Optional[date] = None,
        include_closed: bool = False,
    ) -> dict[str, Position]:
        """
        All positions of an owner in a single pass over the event stream.

        A record that would over-dispose is logged and skipped; its position
        comes back with consistency_fault set and the other instruments are
        unaffected.
        """
        as_of = as_of or self._today()
        events = self._event_repo.list_for_owner(owner_id, until=as_of)
        positions = fold_events(owner_id, events, as_of=as_of, faults=[])
        if include_closed:
            return positions
        return {s: p for s, p in positions.items() if p.is_open}

    def current_positions(self, owner_id: str) -> dict[str, Position]:
        """Open positions as of today."""
        return self.positions_as_of(owner_id, self._today())

    def check_with_candidate(self, candidate: OwnershipEvent) -> Position:
        """
        Replay the owner's full stream for the candidate's symbol with the
        candidate appended. Raises ConsistencyFaultError if any point of the
        resulting stream would over-dispose.
        """
        events = self._event_repo.list_for_owner(candidate.owner_id, symbol=candidate.symbol)
        return self._fold_symbol(candidate.owner_id, candidate.symbol, [*events, candidate])

    def verify_stream(self, owner_id: str, symbol: str) -> Position:
        """Replay the stored stream of one instrument, raising on any over-disposal."""
        events = self._event_repo.list_for_owner(owner_id, symbol=symbol)
        return self._fold_symbol(owner_id, symbol, events)

    @staticmethod
    def _fold_symbol(owner_id: str, symbol: str, events: list[OwnershipEvent]) -> Position:
        positions = fold_events(owner_id, events)
        return positions.get(symbol) or Position(owner_id=owner_id, symbol=symbol)
