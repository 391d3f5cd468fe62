"""Portfolio valuation, evolution and distribution income."""

import logging
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from dateutil.relativedelta import relativedelta

from dividend_ledger.core.timezone import now_market, today_market
from dividend_ledger.domain.models import (
    CreditedDistribution,
    IncomeTrend,
    IndicatorSnapshot,
    InstrumentClass,
    PriceSource,
)
from dividend_ledger.domain.views import (
    DistributionIncomeView,
    EvolutionPoint,
    IncomeTrendView,
    PortfolioDocument,
    PortfolioEvolution,
    Position,
    PositionView,
)
from dividend_ledger.repositories.protocols import (
    DistributionRepository,
    EventRepository,
    HoldingRepository,
    IndicatorRepository,
)
from dividend_ledger.services.analyzer import explainable_risk
from dividend_ledger.services.catalog_service import CatalogService
from dividend_ledger.services.crediting_service import reconcile_entries
from dividend_ledger.services.market_data_service import MarketDataService
from dividend_ledger.services.portfolio_metrics import (
    ZERO,
    compute_concentration,
    compute_health,
    compute_rankings,
    key_indicators,
    money,
    percent,
    rentability_breakdown,
)
from dividend_ledger.services.position_engine import PositionEngine

logger = logging.getLogger(__name__)

INCOME_TREND_THRESHOLD = Decimal("5")
RECENT_ENTRIES = 10


def _month_key(d: date) -> str:
    return d.strftime("%Y-%m")


def _month_end(d: date) -> date:
    return d + relativedelta(day=31)


def income_trend(entries: list[CreditedDistribution], today: date, months: int) -> IncomeTrendView:
    """
    Income over the last `months` months against the `months` before that.

    Periods are whole calendar months, the current month included.
    """
    current_start = today.replace(day=1) - relativedelta(months=months - 1)
    previous_start = current_start - relativedelta(months=months)
    current = sum(
        (e.net_amount for e in entries if current_start <= e.payment_date <= today), ZERO
    )
    previous = sum(
        (e.net_amount for e in entries if previous_start <= e.payment_date < current_start), ZERO
    )

    change: Optional[Decimal] = None
    trend = IncomeTrend.STABLE
    if previous > 0:
        change = percent(current - previous, previous)
        if change > INCOME_TREND_THRESHOLD:
            trend = IncomeTrend.GROWING
        elif change < -INCOME_TREND_THRESHOLD:
            trend = IncomeTrend.DECLINING
    return IncomeTrendView(
        months=months,
        current=money(current),
        previous=money(previous),
        change_percent=change,
        trend=trend,
    )


class ValuationService:
    """
    Builds the valuation and metrics document for an owner.

    Reads never fail because a single quote is missing: the price falls back
    to the last known quote, then the scraped indicator price, then the
    average cost, and the position is flagged stale.
    """

    def __init__(
        self,
        catalog: CatalogService,
        event_repo: EventRepository,
        distribution_repo: DistributionRepository,
        indicator_repo: IndicatorRepository,
        holding_repo: HoldingRepository,
        position_engine: PositionEngine,
        market_data: MarketDataService,
        window_months: int = 12,
        today_fn: Callable[[], date] = today_market,
        now_fn: Callable[[], datetime] = now_market,
    ):
        self._catalog = catalog
        self._event_repo = event_repo
        self._distribution_repo = distribution_repo
        self._indicator_repo = indicator_repo
        self._holding_repo = holding_repo
        self._engine = position_engine
        self._market = market_data
        self._window_months = window_months
        self._today = today_fn
        self._now = now_fn

    # ------------------------------------------------------------------
    # Portfolio document
    # ------------------------------------------------------------------

    def get_portfolio(self, owner_id: str) -> PortfolioDocument:
        """Current positions with prices, returns, concentration, risk and health."""
        today = self._today()
        positions = self._engine.positions_as_of(owner_id, today)
        symbols = sorted(positions)
        quotes = self._market.get_quotes(symbols) if symbols else {}

        window_start = today - relativedelta(months=self._window_months)
        entries = reconcile_entries(
            self._distribution_repo.list_for_owner(owner_id, start=window_start, end=today)
        )
        dividends: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for entry in entries:
            dividends[entry.symbol] += entry.net_amount

        views: list[PositionView] = []
        stale: list[str] = []
        for symbol in symbols:
            snapshot = self._indicator_repo.get(symbol)
            view = self._position_view(positions[symbol], quotes, snapshot, dividends[symbol])
            if view.is_stale:
                stale.append(symbol)
            views.append(view)

        # Concentration needs every position before risk can be assessed
        concentration = compute_concentration(views)
        shares = {item.key: item.percentage for item in concentration.by_asset}
        for view in views:
            view.concentration_percent = shares.get(view.symbol, ZERO)
            view.risk = explainable_risk(
                concentration_percent=view.concentration_percent,
                total_return_percent=view.total_return_percent,
                daily_liquidity=view.daily_liquidity,
                consistency=view.analysis.consistency if view.analysis else None,
                trend=view.analysis.trend if view.analysis else None,
                valuation_ratio=view.valuation_ratio,
            )

        holdings = self._holding_repo.list_for_owner(owner_id)
        holdings_value = money(sum((h.effective_value for h in holdings), ZERO))
        securities_value = money(sum((v.current_value for v in views), ZERO))

        totals = rentability_breakdown(
            invested_capital=sum((v.cost_basis for v in views), ZERO),
            current_value=securities_value,
            dividends_received=sum((v.dividends_received for v in views), ZERO),
        )

        yields = [v.annual_yield or ZERO for v in views]
        average_yield = money(sum(yields, ZERO) / len(yields)) if yields else None

        document = PortfolioDocument(
            owner_id=owner_id,
            as_of=self._now(),
            positions=sorted(views, key=lambda v: v.current_value, reverse=True),
            manual_holdings=holdings,
            totals=totals,
            securities_value=securities_value,
            manual_holdings_value=holdings_value,
            total_value=securities_value + holdings_value,
            concentration=concentration,
            rankings=compute_rankings(views),
            health=compute_health(views, concentration),
            key_indicators=key_indicators(views, concentration),
            projected_monthly_income=money(sum((v.projected_monthly_income for v in views), ZERO)),
            average_yield=average_yield,
            stale_symbols=stale,
        )
        logger.debug(
            "Portfolio for %s: %d positions, value %s, %d stale",
            owner_id, len(views), document.total_value, len(stale),
        )
        return document

    def _position_view(
        self,
        position: Position,
        quotes: dict,
        snapshot: Optional[IndicatorSnapshot],
        dividends_received: Decimal,
    ) -> PositionView:
        symbol = position.symbol
        instrument = self._catalog.find_instrument(symbol)
        indicators = snapshot.indicators if snapshot else None
        price, source = self._resolve_price(position, quotes.get(symbol), indicators)

        breakdown = rentability_breakdown(
            invested_capital=position.cost_basis,
            current_value=position.quantity * price,
            dividends_received=dividends_received,
        )

        segment = instrument.segment if instrument else None
        if indicators is not None and indicators.segment:
            segment = indicators.segment

        projected = ZERO
        if indicators is not None and indicators.last_distribution_amount is not None:
            projected = money(indicators.last_distribution_amount * position.quantity)

        return PositionView(
            symbol=symbol,
            name=instrument.name if instrument else symbol,
            instrument_class=instrument.instrument_class if instrument else InstrumentClass.OTHER,
            quantity=position.quantity,
            cost_basis=breakdown.invested_capital,
            average_cost=money(position.average_cost),
            current_price=price,
            price_source=source,
            current_value=breakdown.current_value,
            capital_gain=breakdown.capital_gain,
            dividends_received=breakdown.dividends_received,
            total_return=breakdown.total_return,
            total_return_percent=breakdown.total_return_percent,
            breakdown=breakdown,
            segment=segment,
            is_stale=source != PriceSource.LIVE,
            analysis=snapshot.analysis if snapshot else None,
            daily_liquidity=indicators.daily_liquidity if indicators else None,
            valuation_ratio=indicators.valuation_ratio if indicators else None,
            annual_yield=indicators.annual_yield if indicators else None,
            last_distribution_amount=indicators.last_distribution_amount if indicators else None,
            projected_monthly_income=projected,
        )

    def _resolve_price(self, position: Position, quote, indicators) -> tuple[Decimal, PriceSource]:
        if quote is not None:
            return quote.price, PriceSource.LIVE
        last_known = self._market.get_last_known(position.symbol)
        if last_known is not None:
            logger.info("Using last known price for %s", position.symbol)
            return last_known.price, PriceSource.LAST_KNOWN
        if indicators is not None and indicators.price is not None:
            logger.info("Using indicator price for %s", position.symbol)
            return indicators.price, PriceSource.INDICATOR
        logger.warning("No price for %s, valuing at average cost", position.symbol)
        return position.average_cost, PriceSource.COST

    # ------------------------------------------------------------------
    # Evolution
    # ------------------------------------------------------------------

    def get_portfolio_evolution(self, owner_id: str, months: int = 12) -> PortfolioEvolution:
        """
        Month-end series for the last `months` months, current month last.

        Market value uses historical month-end closes; a symbol without a
        close is valued at cost and the point is flagged priced=False.
        """
        today = self._today()
        month_starts = [today.replace(day=1) - relativedelta(months=i) for i in range(months - 1, -1, -1)]
        if not month_starts:
            return PortfolioEvolution(owner_id=owner_id, months=months)
        range_start = month_starts[0]

        events = self._event_repo.list_for_owner(owner_id, since=range_start, until=today)
        entries = reconcile_entries(
            self._distribution_repo.list_for_owner(owner_id, start=range_start, end=today)
        )

        closes: dict[str, dict[str, Decimal]] = {}
        for symbol in self._event_repo.list_symbols(owner_id):
            closes[symbol] = self._market.get_monthly_closes(symbol, range_start, today)

        points: list[EvolutionPoint] = []
        for start in month_starts:
            key = _month_key(start)
            as_of = min(_month_end(start), today)
            point = EvolutionPoint(month=key, as_of=as_of)

            for position in self._engine.positions_as_of(owner_id, as_of).values():
                point.cost_basis += position.cost_basis
                close = closes.get(position.symbol, {}).get(key)
                if close is None:
                    point.market_value += position.cost_basis
                    point.priced = False
                else:
                    point.market_value += position.quantity * close

            for event in events:
                if start <= event.effective_date <= as_of:
                    if event.is_acquisition:
                        point.contributions += event.gross_amount + event.fees
                    else:
                        point.withdrawals += event.gross_amount - event.fees

            point.distributions = sum(
                (e.net_amount for e in entries if start <= e.payment_date <= as_of), ZERO
            )
            point.cost_basis = money(point.cost_basis)
            point.market_value = money(point.market_value)
            point.contributions = money(point.contributions)
            point.withdrawals = money(point.withdrawals)
            point.distributions = money(point.distributions)
            points.append(point)

        return PortfolioEvolution(owner_id=owner_id, months=months, points=points)

    # ------------------------------------------------------------------
    # Distribution income
    # ------------------------------------------------------------------

    def get_distribution_income(self, owner_id: str) -> DistributionIncomeView:
        """Received and scheduled distribution income, manual entries taking precedence."""
        today = self._today()
        entries = reconcile_entries(self._distribution_repo.list_for_owner(owner_id))
        paid = [e for e in entries if e.payment_date <= today]

        month_start = today.replace(day=1)
        year_start = today.replace(month=1, day=1)
        window_start = today - relativedelta(months=self._window_months)

        by_instrument: dict[str, Decimal] = defaultdict(lambda: ZERO)
        by_month: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for e in paid:
            by_instrument[e.symbol] += e.net_amount
            by_month[_month_key(e.payment_date)] += e.net_amount

        return DistributionIncomeView(
            owner_id=owner_id,
            this_month=money(sum((e.net_amount for e in paid if e.payment_date >= month_start), ZERO)),
            this_year=money(sum((e.net_amount for e in paid if e.payment_date >= year_start), ZERO)),
            all_time=money(sum((e.net_amount for e in paid), ZERO)),
            trailing_window=money(sum((e.net_amount for e in paid if e.payment_date >= window_start), ZERO)),
            window_months=self._window_months,
            trend_3m=income_trend(paid, today, 3),
            trend_6m=income_trend(paid, today, 6),
            by_instrument={k: money(v) for k, v in sorted(by_instrument.items(), key=lambda kv: -kv[1])},
            by_month={k: money(by_month[k]) for k in sorted(by_month)},
            recent=sorted(entries, key=lambda e: e.payment_date, reverse=True)[:RECENT_ENTRIES],
        )
