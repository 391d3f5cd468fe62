"""
Derived-metrics analyzer.

Pure functions turning normalized indicators into trend, consistency,
valuation and risk classifications plus human-readable insights. No I/O.
"""

from decimal import Decimal
from typing import Optional, Sequence

from dividend_ledger.domain.models import (
    DistributionRecord,
    IndicatorAnalysis,
    InstrumentIndicators,
    RiskLevel,
    Trend,
    ValuationClass,
)
from dividend_ledger.domain.views import ComparisonRow, InstrumentComparison, RiskAssessment

TREND_WINDOW = 6
TREND_MIN_PREVIOUS = 3
TREND_THRESHOLD_PERCENT = Decimal("5")

DISCOUNT_BELOW = Decimal("0.95")
FAIR_UP_TO = Decimal("1.05")
HIGH_VALUATION_RATIO = Decimal("1.2")

LOW_LIQUIDITY = Decimal("500000")
MODERATE_LIQUIDITY = Decimal("1000000")
LOW_CONSISTENCY = Decimal("80")
MODERATE_CONSISTENCY = Decimal("90")
FEW_HOLDERS = 10000
HIGH_YIELD_PERCENT = Decimal("15")

HIGH_CONCENTRATION = Decimal("25")
MODERATE_CONCENTRATION = Decimal("15")
DEEP_LOSS_PERCENT = Decimal("-10")

RISK_SCORES = {RiskLevel.HIGH: 30, RiskLevel.MEDIUM: 60, RiskLevel.LOW: 90}
NO_RISK_REASON = "No risk factors identified"

_ONE_HUNDRED = Decimal("100")


def _mean(values: Sequence[Decimal]) -> Decimal:
    return sum(values, Decimal("0")) / len(values)


def analyze_trend(history: Sequence[DistributionRecord]) -> Trend:
    """
    Compare the mean of the 6 most recent distributions to the mean of the
    (up to) 6 before them. History must be most recent first.
    """
    if len(history) < TREND_WINDOW:
        return Trend.UNKNOWN
    recent = [r.amount for r in history[:TREND_WINDOW]]
    previous = [r.amount for r in history[TREND_WINDOW:TREND_WINDOW * 2]]
    if len(previous) < TREND_MIN_PREVIOUS:
        return Trend.UNKNOWN

    avg_previous = _mean(previous)
    if avg_previous == 0:
        return Trend.UNKNOWN
    change = (_mean(recent) - avg_previous) / avg_previous * _ONE_HUNDRED
    if change > TREND_THRESHOLD_PERCENT:
        return Trend.RISING
    if change < -TREND_THRESHOLD_PERCENT:
        return Trend.FALLING
    return Trend.STABLE


def payment_consistency(count_12m: int) -> Decimal:
    """Percent of the last 12 months with a payment; monthly payers score 100."""
    if not count_12m or count_12m < 0:
        return Decimal("0")
    return min(_ONE_HUNDRED, Decimal(count_12m) / Decimal(12) * _ONE_HUNDRED)


def classify_valuation(ratio: Optional[Decimal]) -> ValuationClass:
    """Classify a price-to-book ratio."""
    if ratio is None or ratio <= 0:
        return ValuationClass.UNKNOWN
    if ratio < DISCOUNT_BELOW:
        return ValuationClass.DISCOUNT
    if ratio <= FAIR_UP_TO:
        return ValuationClass.FAIR
    return ValuationClass.PREMIUM


def assess_risk_level(
    daily_liquidity: Optional[Decimal],
    consistency: Optional[Decimal],
    holder_count: Optional[int],
    trend: Trend,
) -> RiskLevel:
    """
    Average an additive score over the signals that are available.

    Liquidity and consistency score 0-2, holder count 0-1, and a falling
    trend counts as a signal scoring 2.
    """
    score = 0
    signals = 0

    if daily_liquidity is not None:
        signals += 1
        if daily_liquidity < LOW_LIQUIDITY:
            score += 2
        elif daily_liquidity < MODERATE_LIQUIDITY:
            score += 1

    if consistency is not None:
        signals += 1
        if consistency < LOW_CONSISTENCY:
            score += 2
        elif consistency < MODERATE_CONSISTENCY:
            score += 1

    if holder_count is not None:
        signals += 1
        if holder_count < FEW_HOLDERS:
            score += 1

    if trend == Trend.FALLING:
        signals += 1
        score += 2

    if signals == 0:
        return RiskLevel.UNKNOWN
    average = Decimal(score) / Decimal(signals)
    if average < Decimal("0.5"):
        return RiskLevel.LOW
    if average < Decimal("1.5"):
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def investor_insights(indicators: InstrumentIndicators, analysis: IndicatorAnalysis) -> list[str]:
    """Plain-language remarks for an investor looking at one instrument."""
    insights = []
    ratio = indicators.valuation_ratio

    if analysis.valuation_class == ValuationClass.DISCOUNT and ratio is not None:
        insights.append(f"Trading at a {(1 - ratio) * 100:.1f}% discount to book value")
    elif analysis.valuation_class == ValuationClass.PREMIUM and ratio is not None:
        insights.append(f"Trading at a {(ratio - 1) * 100:.1f}% premium to book value")

    if analysis.trend == Trend.RISING:
        insights.append("Distributions trending up over the last 6 payments")
    elif analysis.trend == Trend.FALLING:
        insights.append("Distributions trending down over the last 6 payments")

    if 0 < analysis.consistency < LOW_CONSISTENCY:
        insights.append(f"Paid distributions in only {analysis.consistency:.0f}% of the last 12 months")

    if indicators.daily_liquidity is not None and indicators.daily_liquidity < LOW_LIQUIDITY:
        insights.append("Low daily liquidity: may be hard to sell quickly")

    if indicators.annual_yield is not None and indicators.annual_yield > HIGH_YIELD_PERCENT:
        insights.append(
            f"Annual yield of {indicators.annual_yield}% is unusually high: check sustainability"
        )

    return insights


def analyze_indicators(indicators: InstrumentIndicators) -> IndicatorAnalysis:
    """Derive every classification for one instrument."""
    trend = analyze_trend(indicators.distribution_history)
    consistency = payment_consistency(indicators.trailing_12m_count)
    analysis = IndicatorAnalysis(
        trend=trend,
        consistency=consistency,
        valuation_class=classify_valuation(indicators.valuation_ratio),
        risk_level=assess_risk_level(
            indicators.daily_liquidity, consistency, indicators.holder_count, trend
        ),
    )
    analysis.insights = investor_insights(indicators, analysis)
    return analysis


def _best(rows: list[ComparisonRow], attr: str, highest: bool) -> Optional[str]:
    candidates = [r for r in rows if getattr(r, attr) is not None and getattr(r, attr) > 0]
    if len(candidates) < 2:
        return None
    pick = max if highest else min
    return pick(candidates, key=lambda r: getattr(r, attr)).symbol


def compare_instruments(
    items: Sequence[tuple[InstrumentIndicators, IndicatorAnalysis]],
) -> InstrumentComparison:
    """
    Side-by-side comparison. A criterion has a winner only when at least two
    instruments report a positive value for it.
    """
    rows = [
        ComparisonRow(
            symbol=ind.symbol,
            annual_yield=ind.annual_yield,
            valuation_ratio=ind.valuation_ratio,
            valuation_class=analysis.valuation_class,
            daily_liquidity=ind.daily_liquidity,
            consistency=analysis.consistency,
            trend=analysis.trend,
            risk_level=analysis.risk_level,
        )
        for ind, analysis in items
    ]
    return InstrumentComparison(
        rows=rows,
        best_yield=_best(rows, "annual_yield", highest=True),
        lowest_valuation_ratio=_best(rows, "valuation_ratio", highest=False),
        best_liquidity=_best(rows, "daily_liquidity", highest=True),
        best_consistency=_best(rows, "consistency", highest=True),
    )


def explainable_risk(
    concentration_percent: Decimal,
    total_return_percent: Decimal,
    daily_liquidity: Optional[Decimal] = None,
    consistency: Optional[Decimal] = None,
    trend: Optional[Trend] = None,
    valuation_ratio: Optional[Decimal] = None,
) -> RiskAssessment:
    """
    Position-level risk where every contributing factor becomes a reason.

    Any HIGH factor makes the position HIGH; otherwise any MEDIUM factor
    makes it MEDIUM. With no factors the level is LOW and the single reason
    says so.
    """
    reasons: list[str] = []
    level = RiskLevel.LOW

    def raise_to(new_level: RiskLevel) -> None:
        nonlocal level
        if new_level == RiskLevel.HIGH or level != RiskLevel.HIGH:
            level = new_level

    if concentration_percent > HIGH_CONCENTRATION:
        reasons.append(f"Concentration above {HIGH_CONCENTRATION}% ({concentration_percent:.1f}%)")
        raise_to(RiskLevel.HIGH)
    elif concentration_percent > MODERATE_CONCENTRATION:
        reasons.append(f"Moderate concentration ({concentration_percent:.1f}%)")
        raise_to(RiskLevel.MEDIUM)

    if daily_liquidity is not None:
        if daily_liquidity < LOW_LIQUIDITY:
            reasons.append(f"Low daily liquidity ({daily_liquidity / 1000:.0f}K per day)")
            raise_to(RiskLevel.HIGH)
        elif daily_liquidity < MODERATE_LIQUIDITY:
            reasons.append(f"Moderate daily liquidity ({daily_liquidity / 1000000:.1f}M per day)")
            raise_to(RiskLevel.MEDIUM)

    if consistency is not None:
        if consistency < LOW_CONSISTENCY:
            reasons.append(f"Inconsistent distributions ({consistency:.0f}% consistency)")
            raise_to(RiskLevel.HIGH)
        elif consistency < MODERATE_CONSISTENCY:
            reasons.append(f"Moderate distribution consistency ({consistency:.0f}%)")
            raise_to(RiskLevel.MEDIUM)

    if trend == Trend.FALLING:
        reasons.append("Distributions trending down")
        raise_to(RiskLevel.HIGH)

    if valuation_ratio is not None and valuation_ratio > HIGH_VALUATION_RATIO:
        reasons.append(f"High price-to-book ratio ({valuation_ratio:.2f})")
        raise_to(RiskLevel.MEDIUM)

    if total_return_percent < DEEP_LOSS_PERCENT:
        reasons.append(f"Negative total return ({total_return_percent:.1f}%)")
        raise_to(RiskLevel.HIGH)
    elif total_return_percent < 0:
        reasons.append(f"Slightly negative total return ({total_return_percent:.1f}%)")
        raise_to(RiskLevel.MEDIUM)

    if not reasons:
        reasons.append(NO_RISK_REASON)

    return RiskAssessment(level=level, score=RISK_SCORES[level], reasons=reasons)
