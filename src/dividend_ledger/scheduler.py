"""
Background jobs driven by APScheduler.

Jobs only orchestrate services; every job opens its own context (and
database session), and a failing job is logged without stopping the
scheduler.
"""

import logging
from typing import Callable, ContextManager, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.combining import OrTrigger
from apscheduler.triggers.cron import CronTrigger

from dividend_ledger.app_context import AppContext, SharedResources, get_shared_resources, open_context
from dividend_ledger.config.settings import Settings, get_settings
from dividend_ledger.core.exceptions import AppError
from dividend_ledger.core.timezone import MARKET_TZ
from dividend_ledger.domain.models import InstrumentClass, OwnershipEvent
from dividend_ledger.providers.symbols import classify_symbol

logger = logging.getLogger(__name__)

ContextFactory = Callable[[], ContextManager[AppContext]]

MARKET_REFRESH_JOB = "market_refresh"
DISTRIBUTION_SWEEP_JOB = "distribution_sweep"
HOLDINGS_REVALUATION_JOB = "holdings_revaluation"


def market_refresh_trigger(open_hour: int, close_hour: int) -> OrTrigger:
    """Every 30 minutes on weekdays from open_hour:00 up to and including close_hour:00."""
    if close_hour <= open_hour:
        raise ValueError(f"market_close_hour ({close_hour}) must be after market_open_hour ({open_hour})")
    return OrTrigger([
        CronTrigger(day_of_week="mon-fri", hour=f"{open_hour}-{close_hour - 1}", minute="0,30", timezone=MARKET_TZ),
        CronTrigger(day_of_week="mon-fri", hour=close_hour, minute=0, timezone=MARKET_TZ),
    ])


class LedgerScheduler:
    """
    Periodic triggers for the ledger.

    - market refresh every 30 minutes, Mon-Fri, inside the trading window
    - distribution sweep (credit + promote) at the configured hours
    - daily revaluation of rate-indexed holdings
    - one-off indicator sync after a purchase
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        resources: Optional[SharedResources] = None,
        context_factory: Optional[ContextFactory] = None,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        self._settings = settings or get_settings()
        self._resources = resources or get_shared_resources()
        self._context_factory = context_factory or (lambda: open_context(self._resources))
        self._scheduler = scheduler or BackgroundScheduler(timezone=MARKET_TZ)

    @property
    def apscheduler(self) -> BackgroundScheduler:
        return self._scheduler

    # -- Lifecycle ---------------------------------------------------------

    def register_jobs(self) -> None:
        s = self._settings
        self._scheduler.add_job(
            self.refresh_market_data,
            trigger=market_refresh_trigger(s.market_open_hour, s.market_close_hour),
            id=MARKET_REFRESH_JOB,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self._scheduler.add_job(
            self.run_distribution_sweep,
            trigger=CronTrigger(hour=s.sweep_hours, minute=0, timezone=MARKET_TZ),
            id=DISTRIBUTION_SWEEP_JOB,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self._scheduler.add_job(
            self.revalue_holdings,
            trigger=CronTrigger(hour=6, minute=0, timezone=MARKET_TZ),
            id=HOLDINGS_REVALUATION_JOB,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        if self.on_purchase not in self._resources.purchase_listeners:
            self._resources.purchase_listeners.append(self.on_purchase)
        logger.info(
            "Scheduled jobs: market refresh %s-%sh, sweep at %s",
            s.market_open_hour, s.market_close_hour, s.sweep_hours,
        )

    def start(self) -> None:
        self.register_jobs()
        self._scheduler.start()
        logger.info("Scheduler started (tz=%s)", MARKET_TZ.zone)

    def shutdown(self, wait: bool = False) -> None:
        if self.on_purchase in self._resources.purchase_listeners:
            self._resources.purchase_listeners.remove(self.on_purchase)
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
            logger.info("Scheduler shut down")

    # -- Jobs --------------------------------------------------------------

    def refresh_market_data(self) -> None:
        """Drop cached quotes, re-fetch held symbols and refresh stale indicators."""

        def job(ctx: AppContext) -> None:
            symbols = ctx.event_repo().list_symbols()
            ctx.market_data.invalidate(symbols)
            quotes = ctx.market_data.get_quotes(symbols)
            summary = ctx.indicator_sync.refresh_stale()
            logger.info(
                "Market refresh: %d/%d quotes, %d indicators refreshed, %d failed",
                len(quotes), len(symbols), summary.succeeded, summary.failed,
            )

        self._run_job("market refresh", job)

    def run_distribution_sweep(self) -> None:
        self._run_job("distribution sweep", lambda ctx: ctx.crediting.run_distribution_sweep())

    def revalue_holdings(self) -> None:
        self._run_job("holdings revaluation", lambda ctx: ctx.fixed_income.revalue_all())

    def sync_instrument(self, symbol: str) -> None:
        self._run_job(f"indicator sync {symbol}", lambda ctx: ctx.indicator_sync.sync_instrument(symbol))

    # -- On-demand ---------------------------------------------------------

    def sync_on_purchase(self, symbol: str) -> None:
        """Queue a one-off indicator sync for a symbol."""
        self._scheduler.add_job(
            self.sync_instrument,
            args=[symbol],
            id=f"sync_{symbol}",
            replace_existing=True,
        )
        logger.info("Queued indicator sync for %s", symbol)

    def on_purchase(self, event: OwnershipEvent) -> None:
        """Purchase listener: refresh the quote and, for funds, the indicators."""
        self._resources.market_data.invalidate([event.symbol])
        if classify_symbol(event.symbol) == InstrumentClass.REAL_ESTATE_FUND:
            self.sync_on_purchase(event.symbol)

    def _run_job(self, name: str, fn: Callable[[AppContext], object]) -> None:
        logger.info("Job started: %s", name)
        try:
            with self._context_factory() as ctx:
                fn(ctx)
        except AppError as e:
            logger.warning("Job %s failed: %s", name, e.message)
            return
        except Exception:
            logger.exception("Job %s failed", name)
            return
        logger.info("Job finished: %s", name)
