"""Credited distribution repository protocol."""

from datetime import date
from typing import Protocol, Optional

from dividend_ledger.domain.models import CreditedDistribution, CreditOrigin, CreditStatus


class DistributionRepository(Protocol):
    """Interface for the credited distribution ledger."""

    def insert_if_absent(self, entry: CreditedDistribution) -> bool:
        """
        Insert the entry unless its (owner, symbol, payment_date, origin) key exists.

        Returns True when a row was created, False when it already existed.
        """
        ...

    def get(self, entry_id: int) -> Optional[CreditedDistribution]:
        """Retrieve an entry by ID."""
        ...

    def find(
        self,
        owner_id: str,
        symbol: str,
        payment_date: date,
        origin: CreditOrigin,
    ) -> Optional[CreditedDistribution]:
        """Look up an entry by its unique key."""
        ...

    def list_for_owner(
        self,
        owner_id: str,
        symbol: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        status: Optional[CreditStatus] = None,
    ) -> list[CreditedDistribution]:
        """List an owner's entries ordered by payment date, most recent first."""
        ...

    def promote_due(self, today: date) -> int:
        """Flip PENDING entries with payment_date <= today to RECEIVED."""
        ...

    def delete(self, entry_id: int) -> bool:
        """Delete an entry (explicit user action only)."""
        ...
