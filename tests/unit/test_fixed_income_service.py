"""
Unit tests for FixedIncomeService.

Tests cover:
- Effective annual rate per return type
- Compound accrual over calendar days
- Holding lifecycle (create, close) and revaluation
"""

from datetime import date
from decimal import Decimal

import pytest

from dividend_ledger.core.exceptions import NotFoundError, ValidationError
from dividend_ledger.domain.models import HoldingCategory, HoldingStatus, ManualHolding, ReturnType
from dividend_ledger.providers.rate_provider import MarketRates
from dividend_ledger.services import HoldingCreate
from dividend_ledger.services.fixed_income_service import accrued_value, annual_rate

from tests.conftest import OWNER, OTHER_OWNER, assert_decimal_equal


RATES = MarketRates(cdi=Decimal("10.50"), ipca=Decimal("4.00"), selic=Decimal("10.50"))


def _holding(return_type, rate="0", bonus="0"):
    return ManualHolding(
        owner_id=OWNER,
        name="Test",
        invested_amount=Decimal("1000"),
        start_date=date(2023, 6, 15),
        return_type=return_type,
        rate=Decimal(rate),
        bonus_rate=Decimal(bonus),
    )


def _create(**overrides):
    data = dict(
        owner_id=OWNER,
        name="CDB Banco X",
        invested_amount=Decimal("1000.00"),
        start_date=date(2023, 6, 15),
        category=HoldingCategory.BANK_DEPOSIT,
        return_type=ReturnType.PREFIXED,
        rate=Decimal("12"),
    )
    data.update(overrides)
    return HoldingCreate(**data)


# =============================================================================
# RATE TESTS
# =============================================================================


class TestAnnualRate:
    @pytest.mark.parametrize(
        "return_type, rate, bonus, expected",
        [
            (ReturnType.PREFIXED, "12", "0", Decimal("0.12")),
            (ReturnType.CDI, "110", "0", Decimal("0.1155")),
            (ReturnType.CDI, "0", "1", Decimal("0.115")),
            (ReturnType.IPCA, "6", "0", Decimal("0.1024")),
            (ReturnType.SELIC, "0", "0.5", Decimal("0.11")),
        ],
    )
    def test_effective_rate(self, return_type, rate, bonus, expected):
        assert annual_rate(_holding(return_type, rate, bonus), RATES) == expected

    def test_manual_value_holding_has_no_rate(self):
        assert annual_rate(_holding(None), RATES) is None


class TestAccruedValue:
    def test_compounds_over_calendar_days(self):
        # 366 days across a leap year at 12% a year
        value = accrued_value(Decimal("1000"), Decimal("0.12"), date(2023, 6, 15), date(2024, 6, 15))

        assert_decimal_equal(value, Decimal("1120.26"))

    def test_no_elapsed_days_returns_invested(self):
        assert accrued_value(Decimal("1000"), Decimal("0.12"), date(2024, 6, 15), date(2024, 6, 15)) == Decimal("1000")


# =============================================================================
# LIFECYCLE TESTS
# =============================================================================


class TestCreateHolding:
    def test_rate_indexed_holding_is_valued_on_creation(self, fixed_income_service, fixed_now):
        holding = fixed_income_service.create_holding(_create())

        assert holding.holding_id is not None
        assert holding.status == HoldingStatus.ACTIVE
        assert_decimal_equal(holding.current_value, Decimal("1120.26"))
        assert holding.last_valued_at is not None

    def test_manual_value_is_kept(self, fixed_income_service):
        holding = fixed_income_service.create_holding(
            _create(return_type=None, rate=Decimal("0"), current_value=Decimal("1075.00"))
        )

        assert holding.current_value == Decimal("1075.00")
        assert holding.effective_value == Decimal("1075.00")

    def test_accrual_stops_at_maturity(self, fixed_income_service):
        holding = fixed_income_service.create_holding(_create(maturity_date=date(2023, 12, 15)))

        # 183 days at 12% a year
        assert_decimal_equal(holding.current_value, Decimal("1058.42"))

    @pytest.mark.parametrize(
        "overrides",
        [
            {"name": "  "},
            {"invested_amount": Decimal("0")},
            {"maturity_date": date(2023, 1, 1)},
        ],
    )
    def test_invalid_input_raises_validation_error(self, fixed_income_service, overrides):
        with pytest.raises(ValidationError):
            fixed_income_service.create_holding(_create(**overrides))


class TestCloseHolding:
    def test_close_excludes_from_default_listing(self, fixed_income_service):
        holding = fixed_income_service.create_holding(_create())

        closed = fixed_income_service.close_holding(OWNER, holding.holding_id)

        assert closed.status == HoldingStatus.CLOSED
        assert closed.closed_at is not None
        assert fixed_income_service.list_holdings(OWNER) == []
        assert len(fixed_income_service.list_holdings(OWNER, include_closed=True)) == 1

    def test_closing_twice_is_rejected(self, fixed_income_service):
        holding = fixed_income_service.create_holding(_create())
        fixed_income_service.close_holding(OWNER, holding.holding_id)

        with pytest.raises(ValidationError):
            fixed_income_service.close_holding(OWNER, holding.holding_id)

    def test_other_owner_cannot_see_holding(self, fixed_income_service):
        holding = fixed_income_service.create_holding(_create())

        with pytest.raises(NotFoundError):
            fixed_income_service.get_holding(OTHER_OWNER, holding.holding_id)


class TestRevalueAll:
    def test_revalues_active_rate_indexed_holdings_only(self, fixed_income_service):
        fixed_income_service.create_holding(_create())
        fixed_income_service.create_holding(_create(name="CDB CDI", return_type=ReturnType.CDI, rate=Decimal("100")))
        fixed_income_service.create_holding(
            _create(name="Imovel", return_type=None, rate=Decimal("0"), current_value=Decimal("5000"))
        )
        closed = fixed_income_service.create_holding(_create(name="Old"))
        fixed_income_service.close_holding(OWNER, closed.holding_id)

        assert fixed_income_service.revalue_all() == 2
