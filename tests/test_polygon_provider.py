"""
Tests for the Polygon.io data provider.

HTTP calls are mocked with unittest.mock so no network access is needed.
"""

from datetime import date
from unittest.mock import patch

import pytest
import requests

from etf_tracker.config import ConfigurationError
from etf_tracker.data.providers.base import (
    DataProviderError,
    PlanAccessError,
    RateLimitError,
)
from etf_tracker.data.providers.cache import ResponseCache
from etf_tracker.data.providers.polygon_provider import (
    PolygonProvider,
    get_polygon_provider,
)
from etf_tracker.data.providers.rate_limit import SlidingWindowRateLimiter
from etf_tracker.models import DividendFrequency, TrackerConfig


@pytest.fixture
def provider() -> PolygonProvider:
    """Provider with a test key and a limiter that never sleeps."""
    limiter = SlidingWindowRateLimiter(sleep=lambda seconds: None)
    return PolygonProvider(api_key="test-key", rate_limiter=limiter, retry_delay=0)


class TestInitialization:
    """Tests for provider construction."""

    def test_explicit_key(self):
        provider = PolygonProvider(api_key="abc")
        assert provider.name == "Polygon"

    def test_missing_key(self):
        with patch(
            "etf_tracker.config.load_api_keys",
            return_value={},
        ):
            with pytest.raises(DataProviderError, match="Polygon API key is not configured") as exc_info:
                PolygonProvider()

        assert isinstance(exc_info.value.__cause__, ConfigurationError)

    def test_key_from_config_sources(self):
        with patch(
            "etf_tracker.config.load_api_keys",
            return_value={"polygon_api_key": "from-env"},
        ):
            provider = PolygonProvider()
        assert provider._api_key == "from-env"

    def test_factory_uses_config(self):
        config = TrackerConfig(requests_per_window=3, rate_window_seconds=10.0)
        provider = get_polygon_provider(api_key="abc", config=config)

        assert provider._rate_limiter.max_requests == 3
        assert provider._rate_limiter.window_seconds == 10.0
        assert provider._cache is not None

    def test_factory_without_cache(self):
        provider = get_polygon_provider(use_cache=False, api_key="abc")
        assert provider._cache is None


class TestGetFund:
    """Tests for building fund snapshots."""

    def test_combines_endpoints(self, provider, mock_polygon_response, sample_polygon_payloads):
        responses = [
            mock_polygon_response(json_data=sample_polygon_payloads["ticker"]),
            mock_polygon_response(json_data=sample_polygon_payloads["dividends"]),
            mock_polygon_response(json_data=sample_polygon_payloads["prev"]),
        ]

        with patch("requests.get", side_effect=responses) as mock_get:
            fund = provider.get_fund("schd")

        assert fund.symbol == "SCHD"
        assert fund.name == "Schwab US Dividend Equity ETF"
        assert fund.price == 78.43
        assert fund.dividend_per_share == 0.6099
        assert fund.last_ex_dividend_date == date(2024, 3, 20)
        assert fund.frequency == DividendFrequency.QUARTERLY
        assert fund.sector == "ETF"

        urls = [c.args[0] for c in mock_get.call_args_list]
        assert urls == [
            "https://api.polygon.io/v3/reference/tickers/SCHD",
            "https://api.polygon.io/v3/reference/dividends",
            "https://api.polygon.io/v2/aggs/ticker/SCHD/prev",
        ]

        dividend_params = mock_get.call_args_list[1].kwargs["params"]
        assert dividend_params["ticker"] == "SCHD"
        assert dividend_params["limit"] == 12
        assert dividend_params["sort"] == "ex_dividend_date"
        assert dividend_params["order"] == "desc"
        assert dividend_params["apiKey"] == "test-key"

    def test_no_dividends(self, provider, mock_polygon_response, sample_polygon_payloads):
        responses = [
            mock_polygon_response(json_data=sample_polygon_payloads["ticker"]),
            mock_polygon_response(json_data={"status": "OK", "results": []}),
            mock_polygon_response(json_data=sample_polygon_payloads["prev"]),
        ]

        with patch("requests.get", side_effect=responses):
            fund = provider.get_fund("SCHD")

        assert fund.dividend_per_share == 0.0
        assert fund.last_ex_dividend_date is None
        assert fund.frequency == DividendFrequency.UNKNOWN
        assert fund.has_dividend_data is False

    def test_unknown_ticker(self, provider, mock_polygon_response):
        with patch(
            "requests.get",
            return_value=mock_polygon_response(json_data={"status": "OK"}),
        ):
            with pytest.raises(DataProviderError, match="No ticker data found"):
                provider.get_fund("ZZZZ")

    def test_fetch_funds_collects_errors(self, provider, mock_polygon_response, sample_polygon_payloads):
        responses = [
            mock_polygon_response(json_data=sample_polygon_payloads["ticker"]),
            mock_polygon_response(json_data=sample_polygon_payloads["dividends"]),
            mock_polygon_response(json_data=sample_polygon_payloads["prev"]),
            mock_polygon_response(status_code=403, reason="Forbidden"),
        ]

        with patch("requests.get", side_effect=responses):
            result = provider.fetch_funds(["SCHD", "schd", "ZZZZ"])

        assert result.succeeded == ["SCHD"]
        assert [e.symbol for e in result.errors] == ["ZZZZ"]
        assert result.source == "Polygon"


class TestPreviousClose:
    """Tests for get_previous_close."""

    def test_price(self, provider, mock_polygon_response, sample_polygon_payloads):
        with patch(
            "requests.get",
            return_value=mock_polygon_response(json_data=sample_polygon_payloads["prev"]),
        ):
            assert provider.get_previous_close("SCHD") == 78.43

    def test_empty_results(self, provider, mock_polygon_response):
        with patch(
            "requests.get",
            return_value=mock_polygon_response(json_data={"status": "OK", "results": []}),
        ):
            with pytest.raises(DataProviderError, match="No price data"):
                provider.get_previous_close("SCHD")


class TestAnnualDividend:
    """Tests for get_annual_dividend."""

    def test_quarterly(self, provider, mock_polygon_response, sample_polygon_payloads):
        with patch(
            "requests.get",
            return_value=mock_polygon_response(json_data=sample_polygon_payloads["dividends"]),
        ):
            annual = provider.get_annual_dividend("SCHD")

        expected = (0.6099 + 0.7423 + 0.6541 + 0.6647) / 4 * 4
        assert annual == pytest.approx(expected)


class TestErrorHandling:
    """Tests for HTTP status mapping and retries."""

    def test_rate_limit_error(self, provider, mock_polygon_response):
        with patch(
            "requests.get",
            return_value=mock_polygon_response(status_code=429, reason="Too Many Requests"),
        ):
            with pytest.raises(RateLimitError):
                provider.get_previous_close("SCHD")

    def test_plan_access_error(self, provider, mock_polygon_response):
        with patch(
            "requests.get",
            return_value=mock_polygon_response(status_code=403, reason="Forbidden"),
        ):
            with pytest.raises(PlanAccessError):
                provider.get_ticker_details("SCHD")

    def test_server_error_not_retried(self, provider, mock_polygon_response):
        with patch(
            "requests.get",
            return_value=mock_polygon_response(status_code=500, reason="Server Error"),
        ) as mock_get:
            with pytest.raises(DataProviderError, match="500"):
                provider.get_previous_close("SCHD")

        assert mock_get.call_count == 1

    def test_api_error_status(self, provider, mock_polygon_response):
        with patch(
            "requests.get",
            return_value=mock_polygon_response(json_data={"status": "ERROR", "error": "bad ticker"}),
        ):
            with pytest.raises(DataProviderError, match="bad ticker"):
                provider.get_previous_close("SCHD")

    def test_invalid_json(self, provider, mock_polygon_response):
        response = mock_polygon_response()
        response.json.side_effect = ValueError("Expecting value")

        with patch("requests.get", return_value=response):
            with pytest.raises(DataProviderError, match="Invalid JSON"):
                provider.get_previous_close("SCHD")

    def test_timeout_retried(self, provider, mock_polygon_response, sample_polygon_payloads):
        responses = [
            requests.exceptions.Timeout(),
            mock_polygon_response(json_data=sample_polygon_payloads["prev"]),
        ]

        with patch("requests.get", side_effect=responses) as mock_get, \
                patch("etf_tracker.data.providers.polygon_provider.time.sleep"):
            assert provider.get_previous_close("SCHD") == 78.43

        assert mock_get.call_count == 2

    def test_retries_exhausted(self, provider):
        with patch(
            "requests.get",
            side_effect=requests.exceptions.ConnectionError("refused"),
        ) as mock_get, patch("etf_tracker.data.providers.polygon_provider.time.sleep"):
            with pytest.raises(DataProviderError, match="after 3 attempts"):
                provider.get_previous_close("SCHD")

        assert mock_get.call_count == 3


class TestCaching:
    """Tests for the response cache integration."""

    def test_cached_response_skips_request(self, mock_polygon_response, sample_polygon_payloads):
        provider = PolygonProvider(
            api_key="test-key",
            rate_limiter=SlidingWindowRateLimiter(sleep=lambda seconds: None),
            cache=ResponseCache(),
        )

        with patch(
            "requests.get",
            return_value=mock_polygon_response(json_data=sample_polygon_payloads["prev"]),
        ) as mock_get:
            provider.get_previous_close("SCHD")
            provider.get_previous_close("SCHD")
            assert mock_get.call_count == 1

            provider.clear_cache()
            provider.get_previous_close("SCHD")
            assert mock_get.call_count == 2

    def test_requests_go_through_rate_limiter(self, mock_polygon_response, sample_polygon_payloads):
        limiter = SlidingWindowRateLimiter(sleep=lambda seconds: None)
        provider = PolygonProvider(api_key="test-key", rate_limiter=limiter)

        with patch(
            "requests.get",
            return_value=mock_polygon_response(json_data=sample_polygon_payloads["prev"]),
        ):
            provider.get_previous_close("SCHD")
            provider.get_previous_close("JEPI")

        assert limiter.recent_requests == 2
