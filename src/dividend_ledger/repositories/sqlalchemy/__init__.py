"""SQLAlchemy repository implementations."""

from dividend_ledger.repositories.sqlalchemy.database import (
    get_engine,
    get_session_factory,
    get_db,
    get_session,
    init_db,
    reset_database,
    Base,
)
from dividend_ledger.repositories.sqlalchemy.instrument_repo import SqlAlchemyInstrumentRepository
from dividend_ledger.repositories.sqlalchemy.event_repo import SqlAlchemyEventRepository
from dividend_ledger.repositories.sqlalchemy.distribution_repo import SqlAlchemyDistributionRepository
from dividend_ledger.repositories.sqlalchemy.indicator_repo import SqlAlchemyIndicatorRepository
from dividend_ledger.repositories.sqlalchemy.holding_repo import SqlAlchemyHoldingRepository

__all__ = [
    "get_engine",
    "get_session_factory",
    "get_db",
    "get_session",
    "init_db",
    "reset_database",
    "Base",
    "SqlAlchemyInstrumentRepository",
    "SqlAlchemyEventRepository",
    "SqlAlchemyDistributionRepository",
    "SqlAlchemyIndicatorRepository",
    "SqlAlchemyHoldingRepository",
]
