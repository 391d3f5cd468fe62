"""SQLAlchemy ORM model definitions."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Column,
    String,
    Date,
    DateTime,
    Boolean,
    Integer,
    Text,
    ForeignKey,
    Numeric,
    UniqueConstraint,
    Index,
    Enum as SqlEnum,
)

from dividend_ledger.repositories.sqlalchemy.database import Base
from dividend_ledger.domain.models.enums import (
    InstrumentClass,
    EventDirection,
    DistributionKind,
    CreditStatus,
    CreditOrigin,
    SyncStatus,
    HoldingStatus,
    HoldingCategory,
    ReturnType,
)


def utcnow() -> datetime:
    """Naive UTC timestamp for audit columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class InstrumentORM(Base):
    """SQLAlchemy model for Instrument."""

    __tablename__ = "instruments"

    symbol = Column(String(20), primary_key=True)
    name = Column(String(255), nullable=False)
    instrument_class = Column(SqlEnum(InstrumentClass), nullable=False, default=InstrumentClass.EQUITY)
    segment = Column(String(120), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=utcnow)


class OwnershipEventORM(Base):
    """SQLAlchemy model for OwnershipEvent (append-only)."""

    __tablename__ = "ownership_events"
    __table_args__ = (
        Index("ix_events_owner_symbol_date", "owner_id", "symbol", "effective_date"),
        UniqueConstraint("cancels_sequence", name="uq_events_cancels_sequence"),
    )

    # Insertion order; the replay tie-break for events on the same date
    sequence = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String(64), nullable=False, index=True)
    symbol = Column(String(20), ForeignKey("instruments.symbol"), nullable=False)
    direction = Column(SqlEnum(EventDirection), nullable=False)
    quantity = Column(Numeric(precision=18, scale=8), nullable=False)
    unit_price = Column(Numeric(precision=18, scale=6), nullable=False)
    fees = Column(Numeric(precision=18, scale=2), nullable=False, default=Decimal("0"))
    effective_date = Column(Date, nullable=False)
    venue = Column(String(120), nullable=True)
    note = Column(Text, nullable=True)
    # Set on a cancellation; at most one cancellation per event
    cancels_sequence = Column(Integer, ForeignKey("ownership_events.sequence"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class CreditedDistributionORM(Base):
    """SQLAlchemy model for CreditedDistribution (distribution ledger)."""

    __tablename__ = "credited_distributions"
    __table_args__ = (
        UniqueConstraint(
            "owner_id", "symbol", "payment_date", "origin",
            name="uq_credit_owner_symbol_payment_origin",
        ),
    )

    entry_id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String(64), nullable=False, index=True)
    symbol = Column(String(20), ForeignKey("instruments.symbol"), nullable=False)
    amount_per_unit = Column(Numeric(precision=18, scale=8), nullable=False)
    quantity = Column(Numeric(precision=18, scale=8), nullable=False)
    gross_amount = Column(Numeric(precision=18, scale=2), nullable=False)
    withholding = Column(Numeric(precision=18, scale=2), nullable=False, default=Decimal("0"))
    net_amount = Column(Numeric(precision=18, scale=2), nullable=False)
    entitlement_date = Column(Date, nullable=False)
    payment_date = Column(Date, nullable=False)
    status = Column(SqlEnum(CreditStatus), nullable=False, default=CreditStatus.PENDING)
    origin = Column(SqlEnum(CreditOrigin), nullable=False)
    kind = Column(SqlEnum(DistributionKind), nullable=False, default=DistributionKind.RECURRING_INCOME)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class IndicatorSnapshotORM(Base):
    """SQLAlchemy model for IndicatorSnapshot (one row per instrument)."""

    __tablename__ = "indicator_snapshots"

    symbol = Column(String(20), primary_key=True)
    price = Column(Numeric(precision=18, scale=6), nullable=True)
    valuation_ratio = Column(Numeric(precision=10, scale=4), nullable=True)
    net_worth = Column(Numeric(precision=22, scale=2), nullable=True)
    equity_value_per_unit = Column(Numeric(precision=18, scale=6), nullable=True)
    daily_liquidity = Column(Numeric(precision=22, scale=2), nullable=True)
    holder_count = Column(Integer, nullable=True)
    segment = Column(String(120), nullable=True)
    last_yield = Column(Numeric(precision=10, scale=4), nullable=True)
    last_distribution_amount = Column(Numeric(precision=18, scale=8), nullable=True)
    last_distribution_date = Column(Date, nullable=True)
    trailing_12m_total = Column(Numeric(precision=18, scale=8), nullable=True)
    trailing_12m_count = Column(Integer, nullable=True)
    annual_yield = Column(Numeric(precision=10, scale=4), nullable=True)
    history_json = Column(Text, nullable=True)
    fetched_at = Column(DateTime, nullable=True)

    # Analyzer output
    trend = Column(String(20), nullable=True)
    consistency = Column(Numeric(precision=6, scale=2), nullable=True)
    valuation_class = Column(String(20), nullable=True)
    risk_level = Column(String(20), nullable=True)
    insights_json = Column(Text, nullable=True)

    # Sync bookkeeping
    last_sync_at = Column(DateTime, nullable=True)
    last_sync_status = Column(SqlEnum(SyncStatus), nullable=True)
    last_sync_error = Column(Text, nullable=True)
    error_count = Column(Integer, nullable=False, default=0)


class ManualHoldingORM(Base):
    """SQLAlchemy model for ManualHolding."""

    __tablename__ = "manual_holdings"

    holding_id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    category = Column(SqlEnum(HoldingCategory), nullable=False, default=HoldingCategory.OTHER)
    return_type = Column(SqlEnum(ReturnType), nullable=True)
    rate = Column(Numeric(precision=10, scale=4), nullable=False, default=Decimal("0"))
    bonus_rate = Column(Numeric(precision=10, scale=4), nullable=False, default=Decimal("0"))
    invested_amount = Column(Numeric(precision=18, scale=2), nullable=False)
    current_value = Column(Numeric(precision=18, scale=2), nullable=True)
    start_date = Column(Date, nullable=False)
    maturity_date = Column(Date, nullable=True)
    status = Column(SqlEnum(HoldingStatus), nullable=False, default=HoldingStatus.ACTIVE)
    last_valued_at = Column(DateTime, nullable=True)
    closed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
