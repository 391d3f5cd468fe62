"""SQLAlchemy implementation of HoldingRepository."""

from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from dividend_ledger.core.exceptions import NotFoundError
from dividend_ledger.domain.models import HoldingStatus, ManualHolding
from dividend_ledger.repositories.sqlalchemy.orm_models import ManualHoldingORM


class SqlAlchemyHoldingRepository:
    """SQLAlchemy-backed manual holding repository."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, holding: ManualHolding) -> ManualHolding:
        """Persist a new holding."""
        orm = ManualHoldingORM(
            owner_id=holding.owner_id,
            name=holding.name,
            category=holding.category,
            return_type=holding.return_type,
            rate=holding.rate,
            bonus_rate=holding.bonus_rate,
            invested_amount=holding.invested_amount,
            current_value=holding.current_value,
            start_date=holding.start_date,
            maturity_date=holding.maturity_date,
            status=holding.status,
            last_valued_at=holding.last_valued_at,
        )
        self._db.add(orm)
        self._db.commit()
        self._db.refresh(orm)
        return self._to_domain(orm)

    def get(self, holding_id: int) -> Optional[ManualHolding]:
        """Retrieve a holding by ID."""
        orm = self._db.get(ManualHoldingORM, holding_id)
        return self._to_domain(orm) if orm else None

    def update(self, holding: ManualHolding) -> ManualHolding:
        """Update status and valuation fields of a holding."""
        orm = self._db.get(ManualHoldingORM, holding.holding_id)
        if orm is None:
            raise NotFoundError("Holding", str(holding.holding_id))
        orm.name = holding.name
        orm.current_value = holding.current_value
        orm.status = holding.status
        orm.last_valued_at = holding.last_valued_at
        orm.closed_at = holding.closed_at
        self._db.commit()
        self._db.refresh(orm)
        return self._to_domain(orm)

    def list_for_owner(self, owner_id: str, include_closed: bool = False) -> list[ManualHolding]:
        """List an owner's holdings."""
        query = self._db.query(ManualHoldingORM).filter(ManualHoldingORM.owner_id == owner_id)
        if not include_closed:
            query = query.filter(ManualHoldingORM.status == HoldingStatus.ACTIVE)
        return [self._to_domain(h) for h in query.order_by(ManualHoldingORM.holding_id).all()]

    def list_active(self) -> list[ManualHolding]:
        """List active holdings for every owner."""
        query = self._db.query(ManualHoldingORM).filter(ManualHoldingORM.status == HoldingStatus.ACTIVE)
        return [self._to_domain(h) for h in query.order_by(ManualHoldingORM.holding_id).all()]

    @staticmethod
    def _to_domain(orm: ManualHoldingORM) -> ManualHolding:
        """Convert ORM model to domain model."""
        return ManualHolding(
            holding_id=orm.holding_id,
            owner_id=orm.owner_id,
            name=orm.name,
            category=orm.category,
            return_type=orm.return_type,
            rate=Decimal(str(orm.rate)) if orm.rate is not None else Decimal("0"),
            bonus_rate=Decimal(str(orm.bonus_rate)) if orm.bonus_rate is not None else Decimal("0"),
            invested_amount=Decimal(str(orm.invested_amount)),
            current_value=Decimal(str(orm.current_value)) if orm.current_value is not None else None,
            start_date=orm.start_date,
            maturity_date=orm.maturity_date,
            status=orm.status,
            last_valued_at=orm.last_valued_at,
            closed_at=orm.closed_at,
        )
