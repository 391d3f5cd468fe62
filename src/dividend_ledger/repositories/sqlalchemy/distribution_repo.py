"""SQLAlchemy implementation of DistributionRepository."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dividend_ledger.domain.models import CreditedDistribution, CreditOrigin, CreditStatus
from dividend_ledger.repositories.sqlalchemy.orm_models import CreditedDistributionORM

logger = logging.getLogger(__name__)


class SqlAlchemyDistributionRepository:
    """
    SQLAlchemy-backed distribution ledger.

    The unique constraint on (owner_id, symbol, payment_date, origin) is the
    only concurrency control: a losing concurrent insert hits IntegrityError
    and is reported as "already present".
    """

    def __init__(self, db: Session):
        self._db = db

    def insert_if_absent(self, entry: CreditedDistribution) -> bool:
        """Insert the entry unless its unique key exists. Returns True if created."""
        orm = CreditedDistributionORM(
            owner_id=entry.owner_id,
            symbol=entry.symbol,
            amount_per_unit=entry.amount_per_unit,
            quantity=entry.quantity,
            gross_amount=entry.gross_amount,
            withholding=entry.withholding,
            net_amount=entry.net_amount,
            entitlement_date=entry.entitlement_date,
            payment_date=entry.payment_date,
            status=entry.status,
            origin=entry.origin,
            kind=entry.kind,
            note=entry.note,
        )
        self._db.add(orm)
        try:
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            logger.debug(
                "Credit already present for %s/%s paid %s (%s)",
                entry.owner_id, entry.symbol, entry.payment_date, entry.origin.value,
            )
            return False
        return True

    def get(self, entry_id: int) -> Optional[CreditedDistribution]:
        """Retrieve an entry by ID."""
        orm = self._db.get(CreditedDistributionORM, entry_id)
        return self._to_domain(orm) if orm else None

    def find(
        self,
        owner_id: str,
        symbol: str,
        payment_date: date,
        origin: CreditOrigin,
    ) -> Optional[CreditedDistribution]:
        """Look up an entry by its unique key."""
        orm = (
            self._db.query(CreditedDistributionORM)
            .filter(
                CreditedDistributionORM.owner_id == owner_id,
                CreditedDistributionORM.symbol == symbol.strip().upper(),
                CreditedDistributionORM.payment_date == payment_date,
                CreditedDistributionORM.origin == origin,
            )
            .first()
        )
        return self._to_domain(orm) if orm else None

    def list_for_owner(
        self,
        owner_id: str,
        symbol: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        status: Optional[CreditStatus] = None,
    ) -> list[CreditedDistribution]:
        """List an owner's entries ordered by payment date, most recent first."""
        query = self._db.query(CreditedDistributionORM).filter(
            CreditedDistributionORM.owner_id == owner_id
        )
        if symbol:
            query = query.filter(CreditedDistributionORM.symbol == symbol.strip().upper())
        if start is not None:
            query = query.filter(CreditedDistributionORM.payment_date >= start)
        if end is not None:
            query = query.filter(CreditedDistributionORM.payment_date <= end)
        if status is not None:
            query = query.filter(CreditedDistributionORM.status == status)
        query = query.order_by(
            CreditedDistributionORM.payment_date.desc(),
            CreditedDistributionORM.entry_id.desc(),
        )
        return [self._to_domain(e) for e in query.all()]

    def promote_due(self, today: date) -> int:
        """Flip PENDING entries with payment_date <= today to RECEIVED."""
        count = (
            self._db.query(CreditedDistributionORM)
            .filter(
                CreditedDistributionORM.status == CreditStatus.PENDING,
                CreditedDistributionORM.payment_date <= today,
            )
            .update({CreditedDistributionORM.status: CreditStatus.RECEIVED}, synchronize_session=False)
        )
        self._db.commit()
        return count

    def delete(self, entry_id: int) -> bool:
        """Delete an entry (explicit user action only)."""
        orm = self._db.get(CreditedDistributionORM, entry_id)
        if orm is None:
            return False
        self._db.delete(orm)
        self._db.commit()
        return True

    @staticmethod
    def _to_domain(orm: CreditedDistributionORM) -> CreditedDistribution:
        """Convert ORM model to domain model."""
        return CreditedDistribution(
            owner_id=orm.owner_id,
            symbol=orm.symbol,
            amount_per_unit=Decimal(str(orm.amount_per_unit)),
            quantity=Decimal(str(orm.quantity)),
            gross_amount=Decimal(str(orm.gross_amount)),
            withholding=Decimal(str(orm.withholding)),
            net_amount=Decimal(str(orm.net_amount)),
            entitlement_date=orm.entitlement_date,
            payment_date=orm.payment_date,
            status=orm.status,
            origin=orm.origin,
            kind=orm.kind,
            note=orm.note,
            entry_id=orm.entry_id,
            created_at=orm.created_at,
        )
