"""View models for service outputs."""

from dividend_ledger.domain.views.position import Position
from dividend_ledger.domain.views.market import Quote, ReferenceData
from dividend_ledger.domain.views.portfolio import (
    RentabilityBreakdown,
    RiskAssessment,
    PositionView,
    ConcentrationItem,
    ConcentrationView,
    RankingEntry,
    RankingsView,
    HealthAdjustment,
    HealthScore,
    HighRiskPosition,
    KeyIndicators,
    PortfolioDocument,
    EvolutionPoint,
    PortfolioEvolution,
)
from dividend_ledger.domain.views.income import IncomeTrendView, DistributionIncomeView
from dividend_ledger.domain.views.summaries import SweepSummary, SyncOutcome, SyncSummary, ImportSummary
from dividend_ledger.domain.views.analysis import ComparisonRow, InstrumentComparison

__all__ = [
    "Position",
    "Quote",
    "ReferenceData",
    "RentabilityBreakdown",
    "RiskAssessment",
    "PositionView",
    "ConcentrationItem",
    "ConcentrationView",
    "RankingEntry",
    "RankingsView",
    "HealthAdjustment",
    "HealthScore",
    "HighRiskPosition",
    "KeyIndicators",
    "PortfolioDocument",
    "EvolutionPoint",
    "PortfolioEvolution",
    "IncomeTrendView",
    "DistributionIncomeView",
    "SweepSummary",
    "SyncOutcome",
    "SyncSummary",
    "ImportSummary",
    "ComparisonRow",
    "InstrumentComparison",
]
