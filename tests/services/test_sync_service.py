"""
Tests for the sync engine.

FMP is served by httpx.MockTransport; "today" and the market-close flag are
patched so results do not depend on the wall clock.
"""

import datetime as dt
import json
from unittest.mock import patch

import pytest

from stock_dashboard.exceptions import ExternalAPIError, MissingConfigError
from stock_dashboard.repositories import StockRepository, SyncLogRepository
from stock_dashboard.services import FMPClient, SyncService

TODAY = dt.date(2024, 1, 17)


def _bar(symbol, day, close):
    return {"symbol": symbol, "date": day, "open": close - 1, "high": close + 1,
            "low": close - 2, "close": close, "volume": 1000, "change": 0.5,
            "changePercent": 0.3}


def _quote(symbol, price):
    return {"symbol": symbol, "open": price - 1, "dayHigh": price + 1, "dayLow": price - 2,
            "price": price, "volume": 5000, "change": 1.0, "changesPercentage": 0.5}


def _profile(symbol, name, sector):
    return [{"symbol": symbol, "companyName": name, "sector": sector, "industry": "Software"}]


@pytest.fixture(autouse=True)
def _fixed_today():
    with patch("stock_dashboard.services.sync_service.today_in_market", return_value=TODAY):
        yield


@pytest.fixture
def service(db_session, fmp_client, settings):
    return SyncService(session=db_session, fmp_client=fmp_client, settings=settings)


@pytest.fixture
def history(fake_fmp):
    """Profiles and one month of bars for AAPL and MSFT."""
    fake_fmp.add("/profile", _profile("AAPL", "Apple Inc.", "Technology"), symbol="AAPL")
    fake_fmp.add("/profile", _profile("MSFT", "Microsoft", "Technology"), symbol="MSFT")
    fake_fmp.add(
        "/historical-price-eod/full",
        [_bar("AAPL", "2024-01-16", 183.0), _bar("AAPL", "2024-01-12", 185.0)],
        symbol="AAPL",
    )
    fake_fmp.add(
        "/historical-price-eod/full",
        [_bar("MSFT", "2024-01-16", 390.0)],
        symbol="MSFT",
    )
    return fake_fmp


def _logs(db_session):
    rows, _ = SyncLogRepository(db_session).list_logs(limit=50, offset=0)
    return rows


class TestNeedsInitialSync:

    def test_empty_table(self, service):
        assert service.needs_initial_sync() is True

    def test_populated_table(self, service, db_session, make_stock):
        StockRepository(db_session).upsert(make_stock())
        db_session.commit()
        assert service.needs_initial_sync() is False


class TestInitialSync:

    @pytest.mark.asyncio
    async def test_loads_history_for_every_symbol(self, service, history, db_session):
        result = await service.initial_sync()

        assert result.success is True
        assert result.total_records == 3
        assert result.errors is None
        assert result.message.startswith("Initial sync completed in ")

        repo = StockRepository(db_session)
        rows = repo.find_by_symbol("AAPL")
        assert len(rows) == 2
        assert all(r.is_final for r in rows)
        assert rows[0].company_name == "Apple Inc."

        [log] = _logs(db_session)
        assert (log.sync_type, log.status, log.records_synced) == ("initial", "success", 3)

    @pytest.mark.asyncio
    async def test_requests_one_month_window(self, service, history):
        await service.initial_sync()

        eod = [r for r in history.requests if r.url.path.endswith("/historical-price-eod/full")]
        assert eod[0].url.params["from"] == "2023-12-17"
        assert eod[0].url.params["to"] == "2024-01-17"

    @pytest.mark.asyncio
    async def test_failed_symbol_makes_run_partial(self, service, history, db_session):
        """One symbol's profile failing still stores the others and logs 'partial'."""
        history.add("/profile", {"error": "boom"}, status_code=500, symbol="MSFT")

        result = await service.initial_sync()

        assert result.success is True
        assert result.total_records == 2
        assert [e.symbol for e in result.errors] == ["MSFT"]
        assert StockRepository(db_session).find_by_symbol("MSFT") == []
        assert len(StockRepository(db_session).find_by_symbol("AAPL")) == 2

        [log] = _logs(db_session)
        assert log.status == "partial"
        assert log.records_synced == 2
        assert json.loads(log.error_message)[0]["symbol"] == "MSFT"

    @pytest.mark.asyncio
    async def test_concurrent_run_isolates_failed_symbol(
        self, db_session, fmp_client, settings, history
    ):
        """With two symbols in flight, a failure in one leaves the others committed."""
        concurrent = settings.model_copy(
            update={"sync_concurrency": 2, "stock_symbols_str": "AAPL,MSFT,IBM"}
        )
        service = SyncService(session=db_session, fmp_client=fmp_client, settings=concurrent)
        history.add("/profile", {"error": "boom"}, status_code=500, symbol="MSFT")
        history.add("/profile", _profile("IBM", "IBM", "Technology"), symbol="IBM")
        history.add(
            "/historical-price-eod/full",
            [_bar("IBM", "2024-01-16", 160.0)],
            symbol="IBM",
        )

        result = await service.initial_sync()

        assert result.total_records == 3
        assert [e.symbol for e in result.errors] == ["MSFT"]

        repo = StockRepository(db_session)
        assert repo.count() == 3
        assert len(repo.find_by_symbol("AAPL")) == 2
        assert len(repo.find_by_symbol("IBM")) == 1
        assert repo.find_by_symbol("MSFT") == []

        [log] = _logs(db_session)
        assert (log.status, log.records_synced) == ("partial", 3)

    @pytest.mark.asyncio
    async def test_missing_api_key_fails_whole_run(self, db_session, settings, fake_fmp):
        client = FMPClient(api_key="", transport=fake_fmp.transport)
        service = SyncService(session=db_session, fmp_client=client, settings=settings)

        with pytest.raises(MissingConfigError):
            await service.initial_sync()

        [log] = _logs(db_session)
        assert log.status == "failed"
        assert "FMP_API_KEY" in log.error_message
        assert fake_fmp.requests == []


class TestSyncStocks:

    @pytest.fixture
    def seeded(self, db_session, make_stock):
        """AAPL already known, so only MSFT needs a profile lookup."""
        StockRepository(db_session).upsert(make_stock(symbol="AAPL", date=dt.date(2024, 1, 16)))
        db_session.commit()

    @pytest.mark.asyncio
    async def test_after_close_rows_are_final(self, service, fake_fmp, seeded, db_session):
        fake_fmp.add("/batch-quote", [_quote("AAPL", 184.0), _quote("MSFT", 391.0)])
        fake_fmp.add("/profile", _profile("MSFT", "Microsoft", "Technology"), symbol="MSFT")

        with patch("stock_dashboard.services.sync_service.is_after_market_close", return_value=True):
            result = await service.sync_stocks()

        assert result.success is True
        assert result.message == "Synced 2 stocks (final)"
        assert result.is_final is True
        assert result.last_sync_time is not None

        repo = StockRepository(db_session)
        aapl = repo.find_by_symbol_and_date("AAPL", TODAY)
        assert aapl.close_price == pytest.approx(184.0)
        assert aapl.is_final is True
        assert aapl.company_name == "Apple Inc."

        profile_requests = [r for r in fake_fmp.requests if r.url.path.endswith("/profile")]
        assert [r.url.params["symbol"] for r in profile_requests] == ["MSFT"]

    @pytest.mark.asyncio
    async def test_during_session_rows_are_real_time(self, service, fake_fmp, seeded, db_session):
        fake_fmp.add("/batch-quote", [_quote("AAPL", 184.0)])

        with patch("stock_dashboard.services.sync_service.is_after_market_close", return_value=False):
            result = await service.sync_stocks()

        assert result.message == "Synced 1 stocks (real-time)"
        assert StockRepository(db_session).find_by_symbol_and_date("AAPL", TODAY).is_final is False

    @pytest.mark.asyncio
    async def test_repeated_sync_updates_in_place(self, service, fake_fmp, seeded, db_session):
        fake_fmp.add("/batch-quote", [_quote("AAPL", 184.0)])
        await service.sync_stocks()
        fake_fmp.add("/batch-quote", [_quote("AAPL", 186.0)])
        await service.sync_stocks()

        rows = [r for r in StockRepository(db_session).find_by_symbol("AAPL") if r.date == TODAY]
        assert len(rows) == 1
        assert rows[0].close_price == pytest.approx(186.0)

    @pytest.mark.asyncio
    async def test_symbol_failure_still_logged_as_success(self, service, fake_fmp, seeded, db_session):
        """Unlike initial_sync, a per-symbol failure here does not mark the run partial."""
        fake_fmp.add("/batch-quote", [_quote("AAPL", 184.0), _quote("MSFT", 391.0)])
        fake_fmp.add("/profile", [], symbol="MSFT")

        result = await service.sync_stocks()

        assert result.success is True
        assert result.total_records == 1
        assert result.errors is None
        [log] = _logs(db_session)
        assert (log.sync_type, log.status, log.records_synced) == ("manual", "success", 1)

    @pytest.mark.asyncio
    async def test_empty_quotes_is_not_logged(self, service, fake_fmp, db_session):
        fake_fmp.add("/batch-quote", [])

        result = await service.sync_stocks()

        assert result.success is False
        assert result.message == "No quote data available from API"
        assert _logs(db_session) == []

    @pytest.mark.asyncio
    async def test_provider_failure_logs_failed_and_raises(self, service, fake_fmp, db_session):
        fake_fmp.add("/batch-quote", {"error": "down"}, status_code=503)

        with pytest.raises(ExternalAPIError):
            await service.sync_stocks()

        [log] = _logs(db_session)
        assert (log.sync_type, log.status) == ("manual", "failed")


class TestRunSync:

    @pytest.mark.asyncio
    async def test_empty_database_runs_initial_sync(self, service, history, db_session):
        result = await service.run_sync()

        assert result.message.startswith("Initial sync completed")
        assert _logs(db_session)[0].sync_type == "initial"

    @pytest.mark.asyncio
    async def test_populated_database_runs_regular_sync(self, service, fake_fmp, db_session, make_stock):
        StockRepository(db_session).upsert(make_stock())
        db_session.commit()
        fake_fmp.add("/batch-quote", [_quote("AAPL", 184.0)])

        result = await service.run_sync()

        assert result.message.startswith("Synced 1 stocks")
        assert _logs(db_session)[0].sync_type == "manual"
