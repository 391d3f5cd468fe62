"""Ownership event repository protocol."""

from datetime import date
from typing import Callable, Optional, Protocol

from dividend_ledger.domain.models import OwnershipEvent


class EventRepository(Protocol):
    """
    Interface for the append-only ownership event log.

    There is deliberately no update or delete.
    """

    def append(
        self,
        event: OwnershipEvent,
        verify: Optional[Callable[[OwnershipEvent], None]] = None,
    ) -> OwnershipEvent:
        """
        Persist a new event and return it with its insertion sequence.

        verify is called with the stored event before the append becomes
        visible to others; if it raises, nothing is stored.
        """
        ...

    def get(self, sequence: int) -> Optional[OwnershipEvent]:
        """Retrieve an event by insertion sequence."""
        ...

    def get_cancellation(self, sequence: int) -> Optional[OwnershipEvent]:
        """The event that cancels the given sequence, if any."""
        ...

    def list_for_owner(
        self,
        owner_id: str,
        symbol: Optional[str] = None,
        until: Optional[date] = None,
        since: Optional[date] = None,
    ) -> list[OwnershipEvent]:
        """List an owner's events ordered by (effective_date, sequence)."""
        ...

    def list_owners(self, symbol: Optional[str] = None) -> list[str]:
        """Distinct owners with at least one event (optionally for one symbol)."""
        ...

    def list_symbols(self, owner_id: Optional[str] = None) -> list[str]:
        """Distinct symbols that appear in the log."""
        ...
