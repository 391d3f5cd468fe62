"""
Portfolio-level metrics over an enriched position list.

Every function here is pure: concentration, rankings, health score and key
indicators are computed from PositionView values only.
"""

from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Sequence

from dividend_ledger.domain.models import HealthStatus, InstrumentClass, RiskLevel, Trend
from dividend_ledger.domain.views import (
    ConcentrationItem,
    ConcentrationView,
    HealthAdjustment,
    HealthScore,
    HighRiskPosition,
    KeyIndicators,
    PositionView,
    RankingEntry,
    RankingsView,
    RentabilityBreakdown,
)

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")
TOP_N = 5
UNCLASSIFIED_SEGMENT = "Unclassified"
OVER_CONCENTRATED = Decimal("25")


def money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percent(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= 0:
        return ZERO
    return (part / whole * HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)


def rentability_breakdown(
    invested_capital: Decimal,
    current_value: Decimal,
    dividends_received: Decimal,
) -> RentabilityBreakdown:
    """
    Return figures with their derivation.

    Inputs are rounded to cents first so the identities
    capital_gain == current_value - invested_capital and
    total_return == capital_gain + dividends_received hold exactly.
    """
    invested = money(invested_capital)
    current = money(current_value)
    dividends = money(dividends_received)
    capital_gain = current - invested
    total_return = capital_gain + dividends
    return RentabilityBreakdown(
        invested_capital=invested,
        current_value=current,
        dividends_received=dividends,
        capital_gain=capital_gain,
        total_return=total_return,
        total_return_percent=percent(total_return, invested) if invested > 0 else ZERO,
        calculation=f"({current} - {invested}) + {dividends} = {total_return}",
    )


def _group(items: dict[str, Decimal], total: Decimal) -> list[ConcentrationItem]:
    grouped = [ConcentrationItem(key=k, value=money(v), percentage=percent(v, total)) for k, v in items.items()]
    return sorted(grouped, key=lambda i: (-i.value, i.key))


def compute_concentration(positions: Sequence[PositionView]) -> ConcentrationView:
    """Concentration by asset, by instrument class and by segment."""
    total = sum((p.current_value for p in positions), ZERO)

    by_asset: dict[str, Decimal] = {p.symbol: p.current_value for p in positions}
    by_class: dict[str, Decimal] = defaultdict(lambda: ZERO)
    by_segment: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for p in positions:
        by_class[p.instrument_class.value] += p.current_value
        segment = p.segment
        if segment is None and p.instrument_class == InstrumentClass.REAL_ESTATE_FUND:
            segment = UNCLASSIFIED_SEGMENT
        if segment:
            by_segment[segment] += p.current_value

    assets = _group(by_asset, total)
    top1 = assets[0].percentage if assets else ZERO
    top3 = sum((a.percentage for a in assets[:3]), ZERO)
    return ConcentrationView(
        by_asset=assets,
        by_class=_group(by_class, total),
        by_segment=_group(by_segment, total),
        top1_percent=top1,
        top3_percent=top3,
        is_over_concentrated=top1 > OVER_CONCENTRATED,
        asset_count=len(positions),
    )


def compute_rankings(positions: Sequence[PositionView]) -> RankingsView:
    """Top-N lists over the enriched positions."""
    payers = [p for p in positions if p.annual_yield is not None and p.annual_yield > 0]
    payers.sort(key=lambda p: p.annual_yield, reverse=True)

    by_value = sorted(positions, key=lambda p: p.current_value, reverse=True)
    by_return = sorted(positions, key=lambda p: p.total_return_percent, reverse=True)

    risk_counts = {level.value: 0 for level in (RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH)}
    for p in positions:
        if p.risk is not None and p.risk.level.value in risk_counts:
            risk_counts[p.risk.level.value] += 1

    return RankingsView(
        top_dividend_payers=[RankingEntry(p.symbol, p.annual_yield) for p in payers[:TOP_N]],
        largest_positions=[RankingEntry(p.symbol, p.current_value) for p in by_value[:TOP_N]],
        most_profitable=[RankingEntry(p.symbol, p.total_return_percent) for p in by_return[:TOP_N]],
        least_profitable=[
            RankingEntry(p.symbol, p.total_return_percent) for p in list(reversed(by_return))[:TOP_N]
        ],
        risk_counts=risk_counts,
    )


def _health_status(score: int) -> HealthStatus:
    if score < 50:
        return HealthStatus.POOR
    if score < 70:
        return HealthStatus.FAIR
    if score < 85:
        return HealthStatus.GOOD
    return HealthStatus.EXCELLENT


def compute_health(positions: Sequence[PositionView], concentration: ConcentrationView) -> HealthScore:
    """Start at 100, apply named signed adjustments, clamp to [0, 100]."""
    adjustments: list[HealthAdjustment] = []

    if concentration.top1_percent > 30:
        adjustments.append(HealthAdjustment("Top asset above 30% of portfolio", -20))
    elif concentration.top1_percent > 20:
        adjustments.append(HealthAdjustment("Top asset above 20% of portfolio", -10))

    if concentration.top3_percent > 60:
        adjustments.append(HealthAdjustment("Top 3 assets above 60% of portfolio", -15))

    high_risk = sum(1 for p in positions if p.risk is not None and p.risk.level == RiskLevel.HIGH)
    if high_risk > 2:
        adjustments.append(HealthAdjustment(f"{high_risk} high-risk assets", -15))
    elif high_risk > 0:
        adjustments.append(HealthAdjustment(f"{high_risk} high-risk asset(s)", -5 * high_risk))

    if len(positions) < 5:
        adjustments.append(HealthAdjustment("Fewer than 5 assets", -10))

    rising = sum(1 for p in positions if p.analysis is not None and p.analysis.trend == Trend.RISING)
    if rising:
        adjustments.append(HealthAdjustment(f"{rising} asset(s) with rising distributions", 5 * min(rising, 3)))

    score = max(0, min(100, 100 + sum(a.impact for a in adjustments)))
    return HealthScore(score=score, status=_health_status(score), adjustments=adjustments)


def key_indicators(positions: Sequence[PositionView], concentration: ConcentrationView) -> KeyIndicators:
    best: Optional[PositionView] = max(positions, key=lambda p: p.total_return_percent, default=None)
    return KeyIndicators(
        most_profitable=RankingEntry(best.symbol, best.total_return_percent) if best else None,
        high_risk=[
            HighRiskPosition(symbol=p.symbol, reasons=list(p.risk.reasons))
            for p in positions
            if p.risk is not None and p.risk.level == RiskLevel.HIGH
        ],
        top_concentration=concentration.by_asset[0] if concentration.by_asset else None,
        top_segment=concentration.by_segment[0] if concentration.by_segment else None,
    )
