"""Unit tests for the central bank rate provider."""

from decimal import Decimal
from unittest.mock import MagicMock

import requests

from dividend_ledger.providers.rate_provider import CentralBankRateProvider

from tests.conftest import FakeClock


SELIC_URL = "https://api.bcb.gov.br/selic"
IPCA_URL = "https://api.bcb.gov.br/ipca"


def _json_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


def _session():
    session = MagicMock()
    responses = {
        SELIC_URL: _json_response([{"data": "01/05/2024", "valor": "10.75"}, {"data": "01/06/2024", "valor": "10.50"}]),
        IPCA_URL: _json_response([{"data": "01/05/2024", "valor": "3,93"}]),
    }
    session.get.side_effect = lambda url, timeout: responses[url]
    return session


class TestCentralBankRateProvider:
    def test_uses_latest_values(self):
        provider = CentralBankRateProvider(SELIC_URL, IPCA_URL, session=_session())

        rates = provider.get_rates()

        assert rates.selic == Decimal("10.50")
        assert rates.cdi == Decimal("10.50")
        assert rates.ipca == Decimal("3.93")
        assert rates.is_fallback is False

    def test_successful_lookup_is_cached_until_ttl(self):
        session = _session()
        clock = FakeClock()
        provider = CentralBankRateProvider(SELIC_URL, IPCA_URL, ttl_seconds=60, session=session, timer=clock)

        provider.get_rates()
        provider.get_rates()
        assert session.get.call_count == 2

        clock.advance(61)
        provider.get_rates()
        assert session.get.call_count == 4

    def test_failure_returns_fallback_and_is_not_cached(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("unreachable")
        provider = CentralBankRateProvider(
            SELIC_URL, IPCA_URL, fallback_selic=11.25, fallback_ipca=4.5, session=session
        )

        rates = provider.get_rates()
        provider.get_rates()

        assert rates.is_fallback is True
        assert rates.selic == Decimal("11.25")
        assert rates.ipca == Decimal("4.5")
        assert session.get.call_count == 2

    def test_malformed_payload_falls_back(self):
        session = MagicMock()
        session.get.return_value = _json_response([])
        provider = CentralBankRateProvider(SELIC_URL, IPCA_URL, session=session)

        assert provider.get_rates().is_fallback is True
