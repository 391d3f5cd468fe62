"""Pydantic schemas for API request/response."""

from dividend_ledger.api.schemas.instrument import (
    InstrumentCreateRequest,
    InstrumentResponse,
    InstrumentListResponse,
)
from dividend_ledger.api.schemas.event import (
    EventCreateRequest,
    EventCancelRequest,
    EventResponse,
    EventListResponse,
    PositionResponse,
    PositionListResponse,
)
from dividend_ledger.api.schemas.distribution import (
    ManualDistributionRequest,
    DistributionResponse,
    DistributionListResponse,
    SweepSummaryResponse,
    DistributionIncomeResponse,
)
from dividend_ledger.api.schemas.indicators import (
    IndicatorSnapshotResponse,
    SyncSummaryResponse,
    ComparisonResponse,
)
from dividend_ledger.api.schemas.holding import (
    HoldingCreateRequest,
    HoldingResponse,
    HoldingListResponse,
    RevaluationResponse,
)
from dividend_ledger.api.schemas.portfolio import PortfolioResponse, EvolutionResponse

__all__ = [
    "InstrumentCreateRequest",
    "InstrumentResponse",
    "InstrumentListResponse",
    "EventCreateRequest",
    "EventCancelRequest",
    "EventResponse",
    "EventListResponse",
    "PositionResponse",
    "PositionListResponse",
    "ManualDistributionRequest",
    "DistributionResponse",
    "DistributionListResponse",
    "SweepSummaryResponse",
    "DistributionIncomeResponse",
    "IndicatorSnapshotResponse",
    "SyncSummaryResponse",
    "ComparisonResponse",
    "HoldingCreateRequest",
    "HoldingResponse",
    "HoldingListResponse",
    "RevaluationResponse",
    "PortfolioResponse",
    "EvolutionResponse",
]
