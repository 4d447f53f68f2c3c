"""
Tests for the FMP client against httpx.MockTransport.
"""

import datetime as dt

import httpx
import pytest

from stock_dashboard.exceptions import ExternalAPIError, MissingConfigError
from stock_dashboard.services import FMPClient


PROFILE = [{
    "symbol": "AAPL",
    "companyName": "Apple Inc.",
    "sector": "Technology",
    "industry": "Consumer Electronics",
    "exchange": "NASDAQ",
    "currency": "USD",
}]

HISTORY = [
    {"symbol": "AAPL", "date": "2024-01-16", "open": 182.2, "high": 184.3, "low": 180.9,
     "close": 183.6, "volume": 65603000, "change": 1.4, "changePercent": 0.77},
    {"symbol": "AAPL", "date": "2024-01-12", "open": 186.1, "high": 186.7, "low": 185.2,
     "close": 185.9, "volume": 40477782},
]

QUOTES = [
    {"symbol": "AAPL", "open": 182.0, "dayHigh": 185.0, "dayLow": 181.0, "price": 184.5,
     "volume": 1000, "change": 2.5, "changesPercentage": 1.37, "timestamp": 1705440000},
    {"symbol": "MSFT", "open": 390.0, "dayHigh": 392.0, "dayLow": 388.0, "price": 391.0,
     "volume": 2000, "change": -1.0, "changesPercentage": -0.26},
]


class TestCompanyProfile:

    @pytest.mark.asyncio
    async def test_maps_profile_fields(self, fmp_client, fake_fmp):
        fake_fmp.add("/profile", PROFILE)

        profile = await fmp_client.get_company_profile("AAPL")

        assert profile.company_name == "Apple Inc."
        assert profile.sector == "Technology"
        assert profile.exchange == "NASDAQ"
        request = fake_fmp.requests[0]
        assert request.url.params["apikey"] == "test-key"
        assert request.url.params["symbol"] == "AAPL"

    @pytest.mark.asyncio
    async def test_missing_classification_defaults_to_unknown(self, fmp_client, fake_fmp):
        fake_fmp.add("/profile", [{"symbol": "XYZ", "companyName": "XYZ Corp"}])

        profile = await fmp_client.get_company_profile("XYZ")

        assert profile.sector == "Unknown"
        assert profile.industry == "Unknown"

    @pytest.mark.asyncio
    async def test_empty_profile_raises(self, fmp_client, fake_fmp):
        fake_fmp.add("/profile", [])

        with pytest.raises(ExternalAPIError, match="No profile data found for AAPL"):
            await fmp_client.get_company_profile("AAPL")


class TestHistoricalEod:

    @pytest.mark.asyncio
    async def test_parses_bars_and_defaults_change(self, fmp_client, fake_fmp):
        fake_fmp.add("/historical-price-eod/full", HISTORY)

        bars = await fmp_client.get_historical_eod(
            "AAPL", dt.date(2024, 1, 1), dt.date(2024, 1, 31)
        )

        assert len(bars) == 2
        assert bars[0].date == dt.date(2024, 1, 16)
        assert bars[0].change_percent == 0.77
        assert bars[1].change == 0
        assert bars[1].change_percent == 0
        params = fake_fmp.requests[0].url.params
        assert params["from"] == "2024-01-01"
        assert params["to"] == "2024-01-31"

    @pytest.mark.asyncio
    async def test_empty_payload_returns_empty_list(self, fmp_client, fake_fmp):
        fake_fmp.add("/historical-price-eod/full", [])

        bars = await fmp_client.get_historical_eod(
            "AAPL", dt.date(2024, 1, 1), dt.date(2024, 1, 31)
        )

        assert bars == []


class TestQuotes:

    @pytest.mark.asyncio
    async def test_batch_quote_maps_day_range_and_price(self, fmp_client, fake_fmp):
        fake_fmp.add("/batch-quote", QUOTES)

        quotes = await fmp_client.get_batch_quote(["AAPL", "MSFT"])

        assert [q.symbol for q in quotes] == ["AAPL", "MSFT"]
        aapl = quotes[0]
        assert (aapl.high, aapl.low, aapl.close) == (185.0, 181.0, 184.5)
        assert aapl.change_percent == 1.37
        assert fake_fmp.requests[0].url.params["symbols"] == "AAPL,MSFT"

    @pytest.mark.asyncio
    async def test_batch_quote_empty(self, fmp_client, fake_fmp):
        fake_fmp.add("/batch-quote", [])
        assert await fmp_client.get_batch_quote(["AAPL"]) == []

    @pytest.mark.asyncio
    async def test_single_quote(self, fmp_client, fake_fmp):
        fake_fmp.add("/quote", QUOTES[:1])
        quote = await fmp_client.get_single_quote("AAPL")
        assert quote.close == 184.5

    @pytest.mark.asyncio
    async def test_single_quote_empty_raises(self, fmp_client, fake_fmp):
        fake_fmp.add("/quote", [])
        with pytest.raises(ExternalAPIError):
            await fmp_client.get_single_quote("AAPL")


class TestErrors:

    @pytest.mark.asyncio
    async def test_non_2xx_raises_with_status(self, fmp_client, fake_fmp):
        fake_fmp.add("/profile", {"Error Message": "Invalid API KEY"}, status_code=401)

        with pytest.raises(ExternalAPIError) as exc_info:
            await fmp_client.get_company_profile("AAPL")

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_error_message_payload_raises(self, fmp_client, fake_fmp):
        fake_fmp.add("/batch-quote", {"Error Message": "Limit Reach"})

        with pytest.raises(ExternalAPIError, match="Limit Reach"):
            await fmp_client.get_batch_quote(["AAPL"])

    @pytest.mark.asyncio
    async def test_malformed_json_raises(self, fmp_client, fake_fmp):
        fake_fmp.add("/batch-quote", "<html>gateway</html>")

        with pytest.raises(ExternalAPIError, match="Malformed payload"):
            await fmp_client.get_batch_quote(["AAPL"])

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def _refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = FMPClient(api_key="k", transport=httpx.MockTransport(_refuse))

        with pytest.raises(ExternalAPIError, match="connection refused"):
            await client.get_batch_quote(["AAPL"])

    def test_missing_key_is_a_configuration_error(self):
        with pytest.raises(MissingConfigError):
            FMPClient(api_key="").ensure_configured()
