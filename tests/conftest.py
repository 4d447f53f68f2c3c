"""
Shared test fixtures for all tests.

Provides:
- database: file-backed SQLite Database with all tables created
- db_session: SQLAlchemy session, closed after each test
- settings: Settings pointing at the temp directory with a fake FMP key
- fake_fmp / fmp_client: FMP client backed by httpx.MockTransport
- client: FastAPI TestClient with the test database injected
"""

import datetime as dt

import httpx
import pytest

from stock_dashboard.config import Settings
from stock_dashboard.database import Database
from stock_dashboard.schemas import StockUpsert
from stock_dashboard.services import FMPClient


class FakeFMP:
    """Canned FMP responses keyed by endpoint path (and optionally symbol)."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, endpoint, payload=None, status_code=200, symbol=None):
        self.routes[(endpoint, symbol)] = (status_code, payload)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = request.url.path.split("/stable", 1)[-1]
        symbol = request.url.params.get("symbol")
        route = self.routes.get((endpoint, symbol)) or self.routes.get((endpoint, None))
        if route is None:
            return httpx.Response(404, json={"Error Message": f"unmocked {endpoint}"})
        status_code, payload = route
        if isinstance(payload, str):
            return httpx.Response(status_code, text=payload)
        return httpx.Response(status_code, json=payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def _stock(**overrides) -> StockUpsert:
    values = dict(
        symbol="AAPL",
        company_name="Apple Inc.",
        sector="Technology",
        industry="Consumer Electronics",
        open_price=190.0,
        high_price=195.0,
        low_price=188.5,
        close_price=193.2,
        volume=1_000_000,
        change=3.2,
        change_percent=1.68,
        date=dt.date(2024, 1, 15),
        is_final=True,
    )
    values.update(overrides)
    return StockUpsert(**values)


@pytest.fixture
def make_stock():
    """Factory for valid StockUpsert records; keyword overrides replace defaults."""
    return _stock


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'stocks.db'}",
        DATA_DIR=tmp_path / "data",
        LOGS_DIR=tmp_path / "logs",
        FMP_API_KEY="test-key",
        STOCK_SYMBOLS="AAPL,MSFT",
    )


@pytest.fixture
def database(settings):
    """A file-backed SQLite database; concurrent sessions need a real file."""
    db = Database(settings.database_url)
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture
def db_session(database):
    """Create a database session; closed after each test."""
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def fake_fmp():
    return FakeFMP()


@pytest.fixture
def fmp_client(settings, fake_fmp):
    return FMPClient.from_settings(settings, transport=fake_fmp.transport)


@pytest.fixture
def client(settings, database, fmp_client):
    """Create a FastAPI TestClient with test database injected.

    Uses a minimal app (no lifespan/scheduler) to avoid side effects.
    """
    from fastapi import FastAPI
    from fastapi.testclient import TestClient
    from slowapi.errors import RateLimitExceeded
    from stock_dashboard.api.dependencies import get_fmp_client
    from stock_dashboard.api.rate_limit import limiter
    from stock_dashboard.api.router import api_router
    from stock_dashboard.api.routes_health import router as health_router
    from web.app import rate_limit_exceeded_handler, register_exception_handlers

    app = FastAPI()
    app.state.settings = settings
    app.state.database = database
    app.state.limiter = limiter
    limiter.reset()
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")
    app.include_router(health_router)

    app.dependency_overrides[get_fmp_client] = lambda: fmp_client
    with TestClient(app) as tc:
        yield tc
    app.dependency_overrides.clear()
