"""SQLAlchemy implementation of EventRepository."""

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dividend_ledger.core.exceptions import ValidationError
from dividend_ledger.domain.models import OwnershipEvent
from dividend_ledger.repositories.sqlalchemy.orm_models import OwnershipEventORM

logger = logging.getLogger(__name__)


class SqlAlchemyEventRepository:
    """
    SQLAlchemy-backed append-only ownership event log.

    An append is flushed, verified and committed in one transaction. On
    SQLite the flush takes the database write lock, so concurrent appends
    for the same stream are serialized and each verification sees every
    event committed before it.
    """

    def __init__(self, db: Session):
        self._db = db

    def append(
        self,
        event: OwnershipEvent,
        verify: Optional[Callable[[OwnershipEvent], None]] = None,
    ) -> OwnershipEvent:
        """
        Persist a new event and return it with its insertion sequence.

        verify runs after the flush and before the commit, with the stored
        event; anything it raises rolls the append back.
        """
        orm = OwnershipEventORM(
            owner_id=event.owner_id,
            symbol=event.symbol,
            direction=event.direction,
            quantity=event.quantity,
            unit_price=event.unit_price,
            fees=event.fees,
            effective_date=event.effective_date,
            venue=event.venue,
            note=event.note,
            cancels_sequence=event.cancels_sequence,
        )
        self._db.add(orm)
        try:
            self._db.flush()
            if verify is not None:
                verify(self._to_domain(orm))
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            if event.cancels_sequence is None:
                raise
            logger.warning("Event %s already has a cancellation", event.cancels_sequence)
            raise ValidationError(f"Event {event.cancels_sequence} is already cancelled")
        except Exception:
            self._db.rollback()
            raise
        self._db.refresh(orm)
        return self._to_domain(orm)

    def get(self, sequence: int) -> Optional[OwnershipEvent]:
        """Retrieve an event by insertion sequence."""
        orm = self._db.get(OwnershipEventORM, sequence)
        return self._to_domain(orm) if orm else None

    def get_cancellation(self, sequence: int) -> Optional[OwnershipEvent]:
        """The event that cancels the given sequence, if any."""
        orm = (
            self._db.query(OwnershipEventORM)
            .filter(OwnershipEventORM.cancels_sequence == sequence)
            .first()
        )
        return self._to_domain(orm) if orm else None

    def list_for_owner(
        self,
        owner_id: str,
        symbol: Optional[str] = None,
        until: Optional[date] = None,
        since: Optional[date] = None,
    ) -> list[OwnershipEvent]:
        """List an owner's events ordered by (effective_date, sequence)."""
        query = self._db.query(OwnershipEventORM).filter(OwnershipEventORM.owner_id == owner_id)
        if symbol:
            query = query.filter(OwnershipEventORM.symbol == symbol.strip().upper())
        if until is not None:
            query = query.filter(OwnershipEventORM.effective_date <= until)
        if since is not None:
            query = query.filter(OwnershipEventORM.effective_date >= since)
        query = query.order_by(OwnershipEventORM.effective_date, OwnershipEventORM.sequence)
        return [self._to_domain(e) for e in query.all()]

    def list_owners(self, symbol: Optional[str] = None) -> list[str]:
        """Distinct owners with at least one event (optionally for one symbol)."""
        query = self._db.query(OwnershipEventORM.owner_id).distinct()
        if symbol:
            query = query.filter(OwnershipEventORM.symbol == symbol.strip().upper())
        return sorted(row[0] for row in query.all())

    def list_symbols(self, owner_id: Optional[str] = None) -> list[str]:
        """Distinct symbols that appear in the log."""
        query = self._db.query(OwnershipEventORM.symbol).distinct()
        if owner_id:
            query = query.filter(OwnershipEventORM.owner_id == owner_id)
        return sorted(row[0] for row in query.all())

    @staticmethod
    def _to_domain(orm: OwnershipEventORM) -> OwnershipEvent:
        """Convert ORM model to domain model."""
        return OwnershipEvent(
            owner_id=orm.owner_id,
            symbol=orm.symbol,
            direction=orm.direction,
            quantity=Decimal(str(orm.quantity)),
            unit_price=Decimal(str(orm.unit_price)),
            fees=Decimal(str(orm.fees)) if orm.fees is not None else Decimal("0"),
            effective_date=orm.effective_date,
            venue=orm.venue,
            note=orm.note,
            cancels_sequence=orm.cancels_sequence,
            sequence=orm.sequence,
            created_at=orm.created_at,
        )
