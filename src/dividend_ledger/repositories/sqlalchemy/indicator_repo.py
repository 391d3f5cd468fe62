"""SQLAlchemy implementation of IndicatorRepository."""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from dividend_ledger.core.timezone import to_market
from dividend_ledger.domain.models import (
    DistributionRecord,
    IndicatorAnalysis,
    IndicatorSnapshot,
    InstrumentIndicators,
    SyncStatus,
)
from dividend_ledger.repositories.sqlalchemy.orm_models import IndicatorSnapshotORM


def _dec(value) -> Optional[Decimal]:
    return Decimal(str(value)) if value is not None else None


def _naive(dt: Optional[datetime]) -> Optional[datetime]:
    # Stored as naive market time
    if dt is None or dt.tzinfo is None:
        return dt
    return to_market(dt).replace(tzinfo=None)


def _history_to_json(history: list[DistributionRecord]) -> str:
    return json.dumps(
        [
            {
                "amount": str(r.amount),
                "payment_date": r.payment_date.isoformat() if r.payment_date else None,
                "entitlement_date": r.entitlement_date.isoformat() if r.entitlement_date else None,
                "yield_percent": str(r.yield_percent) if r.yield_percent is not None else None,
            }
            for r in history
        ]
    )


def _history_from_json(raw: Optional[str]) -> list[DistributionRecord]:
    if not raw:
        return []
    return [
        DistributionRecord(
            amount=Decimal(item["amount"]),
            payment_date=date.fromisoformat(item["payment_date"]) if item.get("payment_date") else None,
            entitlement_date=(
                date.fromisoformat(item["entitlement_date"]) if item.get("entitlement_date") else None
            ),
            yield_percent=_dec(item.get("yield_percent")),
        )
        for item in json.loads(raw)
    ]


class SqlAlchemyIndicatorRepository:
    """SQLAlchemy-backed indicator snapshot cache."""

    def __init__(self, db: Session):
        self._db = db

    def get(self, symbol: str) -> Optional[IndicatorSnapshot]:
        """Retrieve the snapshot for a symbol."""
        orm = self._db.get(IndicatorSnapshotORM, symbol.strip().upper())
        return self._to_domain(orm) if orm else None

    def save_success(
        self,
        indicators: InstrumentIndicators,
        analysis: IndicatorAnalysis,
        synced_at: datetime,
    ) -> IndicatorSnapshot:
        """Overwrite the snapshot with fresh indicators and SUCCESS status."""
        orm = self._get_or_new(indicators.symbol)
        orm.price = indicators.price
        orm.valuation_ratio = indicators.valuation_ratio
        orm.net_worth = indicators.net_worth
        orm.equity_value_per_unit = indicators.equity_value_per_unit
        orm.daily_liquidity = indicators.daily_liquidity
        orm.holder_count = indicators.holder_count
        orm.segment = indicators.segment
        orm.last_yield = indicators.last_yield
        orm.last_distribution_amount = indicators.last_distribution_amount
        orm.last_distribution_date = indicators.last_distribution_date
        orm.trailing_12m_total = indicators.trailing_12m_total
        orm.trailing_12m_count = indicators.trailing_12m_count
        orm.annual_yield = indicators.annual_yield
        orm.history_json = _history_to_json(indicators.distribution_history)
        orm.fetched_at = _naive(indicators.fetched_at or synced_at)

        orm.trend = analysis.trend.value
        orm.consistency = analysis.consistency
        orm.valuation_class = analysis.valuation_class.value
        orm.risk_level = analysis.risk_level.value
        orm.insights_json = json.dumps(analysis.insights)

        orm.last_sync_at = _naive(synced_at)
        orm.last_sync_status = SyncStatus.SUCCESS
        orm.last_sync_error = None
        self._db.commit()
        self._db.refresh(orm)
        return self._to_domain(orm)

    def record_failure(self, symbol: str, error: str, synced_at: datetime) -> IndicatorSnapshot:
        """Mark the last sync as ERROR and increment the error count."""
        orm = self._get_or_new(symbol)
        orm.last_sync_at = _naive(synced_at)
        orm.last_sync_status = SyncStatus.ERROR
        orm.last_sync_error = error
        orm.error_count = (orm.error_count or 0) + 1
        self._db.commit()
        self._db.refresh(orm)
        return self._to_domain(orm)

    def list_all(self) -> list[IndicatorSnapshot]:
        """List all snapshots."""
        rows = self._db.query(IndicatorSnapshotORM).order_by(IndicatorSnapshotORM.symbol).all()
        return [self._to_domain(r) for r in rows]

    def _get_or_new(self, symbol: str) -> IndicatorSnapshotORM:
        symbol = symbol.strip().upper()
        orm = self._db.get(IndicatorSnapshotORM, symbol)
        if orm is None:
            orm = IndicatorSnapshotORM(symbol=symbol, error_count=0)
            self._db.add(orm)
        return orm

    @staticmethod
    def _to_domain(orm: IndicatorSnapshotORM) -> IndicatorSnapshot:
        """Convert ORM model to domain model."""
        indicators = None
        analysis = None
        if orm.fetched_at is not None:
            indicators = InstrumentIndicators(
                symbol=orm.symbol,
                price=_dec(orm.price),
                valuation_ratio=_dec(orm.valuation_ratio),
                net_worth=_dec(orm.net_worth),
                equity_value_per_unit=_dec(orm.equity_value_per_unit),
                daily_liquidity=_dec(orm.daily_liquidity),
                holder_count=orm.holder_count,
                segment=orm.segment,
                last_yield=_dec(orm.last_yield),
                distribution_history=_history_from_json(orm.history_json),
                last_distribution_amount=_dec(orm.last_distribution_amount),
                last_distribution_date=orm.last_distribution_date,
                trailing_12m_total=_dec(orm.trailing_12m_total) or Decimal("0"),
                trailing_12m_count=orm.trailing_12m_count or 0,
                annual_yield=_dec(orm.annual_yield),
                fetched_at=orm.fetched_at,
            )
            analysis = IndicatorAnalysis(
                trend=orm.trend or "UNKNOWN",
                consistency=_dec(orm.consistency) or Decimal("0"),
                valuation_class=orm.valuation_class or "UNKNOWN",
                risk_level=orm.risk_level or "UNKNOWN",
                insights=json.loads(orm.insights_json) if orm.insights_json else [],
            )
        return IndicatorSnapshot(
            symbol=orm.symbol,
            indicators=indicators,
            analysis=analysis,
            last_sync_at=orm.last_sync_at,
            last_sync_status=orm.last_sync_status,
            last_sync_error=orm.last_sync_error,
            error_count=orm.error_count or 0,
        )
