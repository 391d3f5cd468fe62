"""Manually-valued holdings and their rate-indexed revaluation."""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Optional

from dividend_ledger.core.exceptions import NotFoundError, ValidationError
from dividend_ledger.core.timezone import now_market, today_market
from dividend_ledger.domain.models import HoldingCategory, HoldingStatus, ManualHolding, ReturnType
from dividend_ledger.providers.rate_provider import MarketRates, RateProvider
from dividend_ledger.repositories.protocols import HoldingRepository

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = Decimal("365.25")
HUNDRED = Decimal("100")
ONE = Decimal("1")


def annual_rate(holding: ManualHolding, rates: MarketRates) -> Optional[Decimal]:
    """
    Effective annual rate as a fraction, or None when the holding is not
    rate-indexed (its current value is entered by hand).
    """
    rate = holding.rate / HUNDRED
    bonus = holding.bonus_rate / HUNDRED
    if holding.return_type == ReturnType.PREFIXED:
        return rate
    if holding.return_type == ReturnType.CDI:
        share = holding.rate if holding.rate > 0 else HUNDRED
        return rates.cdi / HUNDRED * share / HUNDRED + bonus
    if holding.return_type == ReturnType.IPCA:
        return (ONE + rates.ipca / HUNDRED) * (ONE + rate) - ONE
    if holding.return_type == ReturnType.SELIC:
        return rates.selic / HUNDRED + bonus
    return None


def accrued_value(invested: Decimal, rate: Decimal, start: date, as_of: date) -> Decimal:
    """invested * (1 + rate) ** (days / 365.25), compounded over calendar days."""
    days = (as_of - start).days
    if days <= 0:
        return invested
    years = Decimal(days) / DAYS_PER_YEAR
    value = invested * (ONE + rate) ** years
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


@dataclass
class HoldingCreate:
    """Input data for a new manual holding."""

    owner_id: str
    name: str
    invested_amount: Decimal
    start_date: date
    category: HoldingCategory = HoldingCategory.OTHER
    return_type: Optional[ReturnType] = None
    rate: Decimal = Decimal("0")
    bonus_rate: Decimal = Decimal("0")
    current_value: Optional[Decimal] = None
    maturity_date: Optional[date] = None


class FixedIncomeService:
    """Create, close and revalue fixed-income-like holdings."""

    def __init__(
        self,
        holding_repo: HoldingRepository,
        rate_provider: RateProvider,
        today_fn: Callable[[], date] = today_market,
        now_fn: Callable[[], datetime] = now_market,
    ):
        self._repo = holding_repo
        self._rates = rate_provider
        self._today = today_fn
        self._now = now_fn

    def create_holding(self, data: HoldingCreate) -> ManualHolding:
        if not data.name or not data.name.strip():
            raise ValidationError("name is required")
        if data.invested_amount is None or data.invested_amount <= 0:
            raise ValidationError("invested_amount must be > 0")
        if data.maturity_date is not None and data.maturity_date < data.start_date:
            raise ValidationError("maturity_date cannot be before start_date")

        holding = self._repo.create(
            ManualHolding(
                owner_id=data.owner_id,
                name=data.name.strip(),
                invested_amount=data.invested_amount,
                start_date=data.start_date,
                category=data.category,
                return_type=data.return_type,
                rate=data.rate,
                bonus_rate=data.bonus_rate,
                current_value=data.current_value,
                maturity_date=data.maturity_date,
            )
        )
        logger.info("Manual holding %s created for %s: %s", holding.holding_id, holding.owner_id, holding.name)
        if holding.return_type is not None:
            holding = self.revalue(holding)
        return holding

    def get_holding(self, owner_id: str, holding_id: int) -> ManualHolding:
        holding = self._repo.get(holding_id)
        if holding is None or holding.owner_id != owner_id:
            raise NotFoundError("Holding", str(holding_id))
        return holding

    def list_holdings(self, owner_id: str, include_closed: bool = False) -> list[ManualHolding]:
        return self._repo.list_for_owner(owner_id, include_closed=include_closed)

    def close_holding(self, owner_id: str, holding_id: int) -> ManualHolding:
        holding = self.get_holding(owner_id, holding_id)
        if not holding.is_active:
            raise ValidationError(f"Holding {holding_id} is already closed")
        holding.status = HoldingStatus.CLOSED
        holding.closed_at = self._now()
        logger.info("Manual holding %s closed for %s", holding_id, owner_id)
        return self._repo.update(holding)

    def revalue(self, holding: ManualHolding, rates: Optional[MarketRates] = None) -> ManualHolding:
        """Recompute current_value from market rates; manual-value holdings are left as is."""
        rates = rates or self._rates.get_rates()
        rate = annual_rate(holding, rates)
        if rate is None:
            return holding
        as_of = self._today()
        if holding.maturity_date is not None and holding.maturity_date < as_of:
            as_of = holding.maturity_date
        holding.current_value = accrued_value(holding.invested_amount, rate, holding.start_date, as_of)
        holding.last_valued_at = self._now()
        return self._repo.update(holding)

    def revalue_all(self) -> int:
        """Revalue every active rate-indexed holding. Returns how many were updated."""
        rates = self._rates.get_rates()
        if rates.is_fallback:
            logger.warning("Revaluing holdings with fallback rates")
        count = 0
        for holding in self._repo.list_active():
            if holding.return_type is None:
                continue
            try:
                self.revalue(holding, rates)
                count += 1
            except Exception:
                logger.exception("Revaluation failed for holding %s", holding.holding_id)
        logger.info("Revalued %d manual holdings", count)
        return count
