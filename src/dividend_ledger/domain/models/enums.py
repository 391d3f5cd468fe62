"""Enumerations for domain models."""

from enum import Enum


class InstrumentClass(str, Enum):
    """Classes of exchange-traded instruments."""

    EQUITY = "EQUITY"
    REAL_ESTATE_FUND = "REAL_ESTATE_FUND"  # tax-exempt distributions
    ETF = "ETF"
    DEPOSITARY_RECEIPT = "DEPOSITARY_RECEIPT"
    OTHER = "OTHER"


class EventDirection(str, Enum):
    """Direction of an ownership event."""

    ACQUIRE = "ACQUIRE"
    DISPOSE = "DISPOSE"

    @property
    def opposite(self) -> "EventDirection":
        return EventDirection.DISPOSE if self == EventDirection.ACQUIRE else EventDirection.ACQUIRE


class DistributionKind(str, Enum):
    """Kinds of cash distributions."""

    RECURRING_INCOME = "RECURRING_INCOME"
    DIVIDEND = "DIVIDEND"
    INTEREST_ON_EQUITY = "INTEREST_ON_EQUITY"
    AMORTIZATION = "AMORTIZATION"
    OTHER = "OTHER"


class CreditStatus(str, Enum):
    """Lifecycle of a credited distribution."""

    PENDING = "PENDING"
    RECEIVED = "RECEIVED"


class CreditOrigin(str, Enum):
    """Which path produced a credited distribution."""

    MANUAL = "MANUAL"
    AUTO_SCRAPER = "AUTO_SCRAPER"
    PROVIDER = "PROVIDER"


class SyncStatus(str, Enum):
    """Outcome of the last indicator sync."""

    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class HoldingStatus(str, Enum):
    """Lifecycle of a manually-valued holding."""

    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class HoldingCategory(str, Enum):
    """Categories of manually-valued products."""

    BANK_DEPOSIT = "BANK_DEPOSIT"
    TREASURY = "TREASURY"
    CREDIT_NOTE = "CREDIT_NOTE"
    DEBENTURE = "DEBENTURE"
    OTHER = "OTHER"


class ReturnType(str, Enum):
    """How a manual holding's rate is indexed."""

    PREFIXED = "PREFIXED"  # fixed annual rate
    CDI = "CDI"  # percentage of CDI plus optional bonus
    IPCA = "IPCA"  # inflation plus spread
    SELIC = "SELIC"  # Selic plus bonus


class Trend(str, Enum):
    RISING = "RISING"
    STABLE = "STABLE"
    FALLING = "FALLING"
    UNKNOWN = "UNKNOWN"


class ValuationClass(str, Enum):
    DISCOUNT = "DISCOUNT"
    FAIR = "FAIR"
    PREMIUM = "PREMIUM"
    UNKNOWN = "UNKNOWN"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    UNKNOWN = "UNKNOWN"


class IncomeTrend(str, Enum):
    GROWING = "GROWING"
    STABLE = "STABLE"
    DECLINING = "DECLINING"


class HealthStatus(str, Enum):
    POOR = "POOR"
    FAIR = "FAIR"
    GOOD = "GOOD"
    EXCELLENT = "EXCELLENT"


class PriceSource(str, Enum):
    """Where a position's current price came from."""

    LIVE = "LIVE"
    LAST_KNOWN = "LAST_KNOWN"
    INDICATOR = "INDICATOR"
    COST = "COST"
