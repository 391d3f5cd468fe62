"""
Unit tests for FundsExplorerScraper.

The HTTP session is mocked; parsing runs against a trimmed fund page.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from dividend_ledger.core.exceptions import NotFoundError, SourceUnavailableError
from dividend_ledger.providers.fundsexplorer_scraper import FundsExplorerScraper

from tests.conftest import FIXED_TODAY


FUND_PAGE = """
<html><body>
  <div class="headerTicker__content__price">
    <span>Cotação</span>
    <p>R$ 10,45</p>
  </div>
  <div class="indicators">
    <div class="indicators__box"><p>P/VP</p><p><b>0,98</b></p></div>
    <div class="indicators__box"><p>Liquidez Média Diária</p><p><b>15,7 M</b></p></div>
    <div class="indicators__box"><p>Patrimônio Líquido</p><p><b>R$ 2,3 B</b></p></div>
    <div class="indicators__box"><p>Valor Patrimonial</p><p><b>R$ 10,66</b></p></div>
    <div class="indicators__box"><p>DY Últ. Dividendo</p><p><b>abc</b></p></div>
    <div class="indicators__box"><p>Rentabilidade</p><p><b>1,2%</b></p></div>
  </div>
  <div class="basicInformation__grid">
    <div class="basicInformation__grid__box"><p>Segmento</p><p><b>Papel</b></p></div>
    <div class="basicInformation__grid__box"><p>Número de cotistas</p><p><b>1.234.567</b></p></div>
  </div>
  <div class="yieldChart__table__body">
    <div class="yieldChart__table__bloco">
      <div class="table__linha">Dividendos</div>
      <div class="table__linha">31/05/2024</div>
      <div class="table__linha">14/06/2024</div>
      <div class="table__linha">0,96%</div>
      <div class="table__linha">R$ 0,10</div>
    </div>
    <div class="yieldChart__table__bloco">
      <div class="table__linha">Dividendos</div>
      <div class="table__linha">30/04/2024</div>
      <div class="table__linha">15/05/2024</div>
      <div class="table__linha">1,05%</div>
      <div class="table__linha">R$ 0,11</div>
    </div>
    <div class="yieldChart__table__bloco">
      <div class="table__linha">Dividendos</div>
      <div class="table__linha">31/02/2024</div>
      <div class="table__linha">15/03/2024</div>
      <div class="table__linha">1,00%</div>
      <div class="table__linha">R$ 0,10</div>
    </div>
    <div class="yieldChart__table__bloco">
      <div class="table__linha">Dividendos</div>
      <div class="table__linha">28/02/2023</div>
    </div>
  </div>
</body></html>
"""

NO_PRICE_PAGE = "<html><body><h1>Fundo não encontrado</h1></body></html>"


def _response(status_code, text=""):
    return MagicMock(status_code=status_code, text=text)


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def scraper(session, sleeps):
    return FundsExplorerScraper(
        session=session,
        sleep=sleeps.append,
        today_fn=lambda: FIXED_TODAY,
        min_interval_seconds=0,
    )


# =============================================================================
# PARSING TESTS
# =============================================================================


class TestParsePage:
    def test_extracts_price_and_indicator_boxes(self, scraper):
        indicators = scraper.parse_page("MXRF11", FUND_PAGE)

        assert indicators.symbol == "MXRF11"
        assert indicators.price == Decimal("10.45")
        assert indicators.valuation_ratio == Decimal("0.98")
        assert indicators.daily_liquidity == Decimal("15700000")
        assert indicators.net_worth == Decimal("2300000000")
        assert indicators.equity_value_per_unit == Decimal("10.66")
        assert indicators.fetched_at is not None

    def test_unparseable_box_is_left_missing(self, scraper):
        indicators = scraper.parse_page("MXRF11", FUND_PAGE)

        assert indicators.last_yield is None

    def test_extracts_basic_information(self, scraper):
        indicators = scraper.parse_page("MXRF11", FUND_PAGE)

        assert indicators.segment == "Papel"
        assert indicators.holder_count == 1234567

    def test_history_skips_malformed_rows(self, scraper):
        """
        GIVEN four history rows, one with an impossible date and one truncated
        WHEN the page is parsed
        THEN only the two valid rows are kept, most recent first
        """
        indicators = scraper.parse_page("MXRF11", FUND_PAGE)

        history = indicators.distribution_history
        assert len(history) == 2
        assert history[0].payment_date == date(2024, 6, 14)
        assert history[0].entitlement_date == date(2024, 5, 31)
        assert history[0].amount == Decimal("0.10")
        assert history[0].yield_percent == Decimal("0.96")
        assert history[1].amount == Decimal("0.11")

    def test_derives_distribution_summary(self, scraper):
        indicators = scraper.parse_page("MXRF11", FUND_PAGE)

        assert indicators.last_distribution_amount == Decimal("0.10")
        assert indicators.last_distribution_date == date(2024, 6, 14)
        assert indicators.trailing_12m_count == 2
        assert indicators.trailing_12m_total == Decimal("0.21")

    def test_page_without_price_is_not_found(self, scraper):
        with pytest.raises(NotFoundError):
            scraper.parse_page("ZZZZ11", NO_PRICE_PAGE)

    def test_price_falls_back_to_header_text(self, scraper):
        html = '<div class="headerTicker__content__price">R$ 9,87</div>'

        assert scraper.parse_page("MXRF11", html).price == Decimal("9.87")


# =============================================================================
# FETCH TESTS
# =============================================================================


class TestGetIndicators:
    def test_fetches_normalized_symbol(self, scraper, session):
        session.get.return_value = _response(200, FUND_PAGE)

        indicators = scraper.get_indicators(" mxrf11 ")

        assert indicators.symbol == "MXRF11"
        url = session.get.call_args[0][0]
        assert url.endswith("/funds/MXRF11")
        assert "User-Agent" in session.get.call_args[1]["headers"]

    def test_404_is_not_found_without_retry(self, scraper, session, sleeps):
        session.get.return_value = _response(404)

        with pytest.raises(NotFoundError):
            scraper.get_indicators("ZZZZ11")

        assert session.get.call_count == 1
        assert sleeps == []

    def test_server_error_is_retried_with_increasing_backoff(self, scraper, session, sleeps):
        """
        GIVEN a source that keeps answering 500
        WHEN indicators are requested
        THEN three attempts are made, waiting 2s then 4s, and the failure surfaces
        """
        session.get.return_value = _response(500)

        with pytest.raises(SourceUnavailableError):
            scraper.get_indicators("MXRF11")

        assert session.get.call_count == 3
        assert sleeps == [2.0, 4.0]

    def test_recovers_after_transient_failure(self, scraper, session, sleeps):
        session.get.side_effect = [
            requests.ConnectionError("reset by peer"),
            _response(200, FUND_PAGE),
        ]

        indicators = scraper.get_indicators("MXRF11")

        assert indicators.price == Decimal("10.45")
        assert sleeps == [2.0]

    def test_blank_symbol_is_not_found(self, scraper, session):
        with pytest.raises(NotFoundError):
            scraper.get_indicators("  ")

        session.get.assert_not_called()
