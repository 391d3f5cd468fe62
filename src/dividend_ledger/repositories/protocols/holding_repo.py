"""Manual holding repository protocol."""

from typing import Protocol, Optional

from dividend_ledger.domain.models import ManualHolding


class HoldingRepository(Protocol):
    """Interface for manually-valued holdings."""

    def create(self, holding: ManualHolding) -> ManualHolding:
        """Persist a new holding."""
        ...

    def get(self, holding_id: int) -> Optional[ManualHolding]:
        """Retrieve a holding by ID."""
        ...

    def update(self, holding: ManualHolding) -> ManualHolding:
        """Update status and valuation fields of a holding."""
        ...

    def list_for_owner(self, owner_id: str, include_closed: bool = False) -> list[ManualHolding]:
        """List an owner's holdings."""
        ...

    def list_active(self) -> list[ManualHolding]:
        """List active holdings for every owner."""
        ...
