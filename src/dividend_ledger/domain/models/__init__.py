"""Domain models package."""

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
    Trend,
    ValuationClass,
    RiskLevel,
    IncomeTrend,
    HealthStatus,
    PriceSource,
)
from dividend_ledger.domain.models.instrument import Instrument
from dividend_ledger.domain.models.event import OwnershipEvent
from dividend_ledger.domain.models.distribution import DistributionAnnouncement, CreditedDistribution
from dividend_ledger.domain.models.indicators import (
    DistributionRecord,
    InstrumentIndicators,
    IndicatorAnalysis,
    IndicatorSnapshot,
)
from dividend_ledger.domain.models.holding import ManualHolding

__all__ = [
    "InstrumentClass",
    "EventDirection",
    "DistributionKind",
    "CreditStatus",
    "CreditOrigin",
    "SyncStatus",
    "HoldingStatus",
    "HoldingCategory",
    "ReturnType",
    "Trend",
    "ValuationClass",
    "RiskLevel",
    "IncomeTrend",
    "HealthStatus",
    "PriceSource",
    "Instrument",
    "OwnershipEvent",
    "DistributionAnnouncement",
    "CreditedDistribution",
    "DistributionRecord",
    "InstrumentIndicators",
    "IndicatorAnalysis",
    "IndicatorSnapshot",
    "ManualHolding",
]
