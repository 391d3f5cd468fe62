"""SQLAlchemy implementation of InstrumentRepository."""

from typing import Optional

from sqlalchemy.orm import Session

from dividend_ledger.domain.models import Instrument, InstrumentClass
from dividend_ledger.repositories.sqlalchemy.orm_models import InstrumentORM


class SqlAlchemyInstrumentRepository:
    """SQLAlchemy-backed instrument catalog."""

    def __init__(self, db: Session):
        self._db = db

    def get(self, symbol: str) -> Optional[Instrument]:
        """Retrieve an instrument by symbol."""
        orm = self._db.get(InstrumentORM, symbol.strip().upper())
        return self._to_domain(orm) if orm else None

    def upsert(self, instrument: Instrument) -> Instrument:
        """Create the instrument or refresh its descriptive fields."""
        orm = self._db.get(InstrumentORM, instrument.symbol)
        if orm is None:
            orm = InstrumentORM(symbol=instrument.symbol)
            self._db.add(orm)
        orm.name = instrument.name
        orm.instrument_class = instrument.instrument_class
        orm.is_active = instrument.is_active
        if instrument.segment is not None:
            orm.segment = instrument.segment
        self._db.commit()
        self._db.refresh(orm)
        return self._to_domain(orm)

    def list_all(
        self,
        active_only: bool = False,
        instrument_class: Optional[InstrumentClass] = None,
    ) -> list[Instrument]:
        """List instruments ordered by symbol."""
        query = self._db.query(InstrumentORM)
        if active_only:
            query = query.filter(InstrumentORM.is_active == True)  # noqa: E712
        if instrument_class is not None:
            query = query.filter(InstrumentORM.instrument_class == instrument_class)
        return [self._to_domain(i) for i in query.order_by(InstrumentORM.symbol).all()]

    @staticmethod
    def _to_domain(orm: InstrumentORM) -> Instrument:
        """Convert ORM model to domain model."""
        return Instrument(
            symbol=orm.symbol,
            name=orm.name,
            instrument_class=orm.instrument_class,
            segment=orm.segment,
            is_active=orm.is_active,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )
