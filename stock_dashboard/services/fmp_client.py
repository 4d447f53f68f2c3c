"""
Financial Modeling Prep (FMP) client
Company profiles, historical end-of-day bars, and batch/single quotes
"""
import datetime as dt
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import httpx

from stock_dashboard.config import Settings
from stock_dashboard.exceptions import ExternalAPIError, MissingConfigError
from stock_dashboard.utils.logging import get_logger
from stock_dashboard.utils.market_time import DATE_ISO

logger = get_logger(__name__)

PROVIDER = "FMP"


@dataclass
class CompanyProfile:
    symbol: str
    company_name: Optional[str]
    sector: str
    industry: str
    exchange: Optional[str] = None
    currency: Optional[str] = None


@dataclass
class HistoricalBar:
    symbol: str
    date: dt.date
    open: float
    high: float
    low: float
    close: float
    volume: int
    change: float = 0
    change_percent: float = 0


@dataclass
class Quote:
    symbol: str
    open: float
    high: float
    low: float
    close: float
    volume: int
    change: float = 0
    change_percent: float = 0
    timestamp: Optional[int] = None


class FMPClient:
    """
    Thin async wrapper over the FMP "stable" REST API.

    An empty payload means "no data" and is returned as an empty result;
    non-2xx responses, transport failures and payloads that are not JSON
    raise ExternalAPIError.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://financialmodelingprep.com/stable",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout)
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "FMPClient":
        return cls(
            api_key=settings.fmp_api_key,
            base_url=settings.fmp_base_url,
            timeout=settings.fmp_timeout,
            transport=transport,
        )

    def ensure_configured(self) -> None:
        if not self.api_key:
            raise MissingConfigError("FMP_API_KEY")

    async def _get(self, endpoint: str, params: Dict[str, Any]) -> Any:
        query = {**params, "apikey": self.api_key}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(endpoint, params=query)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("FMP %s returned HTTP %s", endpoint, status)
            raise ExternalAPIError(
                PROVIDER, f"{status} {e.response.reason_phrase}", status_code=status
            ) from e
        except httpx.HTTPError as e:
            logger.error("FMP %s request failed: %s", endpoint, e)
            raise ExternalAPIError(PROVIDER, str(e) or e.__class__.__name__) from e

        try:
            return response.json()
        except ValueError as e:
            raise ExternalAPIError(PROVIDER, f"Malformed payload from {endpoint}") from e

    @staticmethod
    def _as_rows(data: Any, endpoint: str) -> List[Dict[str, Any]]:
        """Normalise a payload to a list of objects; None/empty means no data."""
        if not data:
            return []
        if isinstance(data, dict):
            message = data.get("Error Message") or data.get("error")
            if message:
                raise ExternalAPIError(PROVIDER, str(message))
            return [data]
        if isinstance(data, list) and all(isinstance(row, dict) for row in data):
            return data
        raise ExternalAPIError(PROVIDER, f"Malformed payload from {endpoint}")

    async def get_company_profile(self, symbol: str) -> CompanyProfile:
        """Company name, sector and industry; missing classifications become 'Unknown'."""
        rows = self._as_rows(await self._get("/profile", {"symbol": symbol}), "/profile")
        if not rows:
            raise ExternalAPIError(PROVIDER, f"No profile data found for {symbol}")

        profile = rows[0]
        return CompanyProfile(
            symbol=profile.get("symbol") or symbol,
            company_name=profile.get("companyName"),
            sector=profile.get("sector") or "Unknown",
            industry=profile.get("industry") or "Unknown",
            exchange=profile.get("exchange"),
            currency=profile.get("currency"),
        )

    async def get_historical_eod(
        self,
        symbol: str,
        from_date: dt.date,
        to_date: dt.date,
    ) -> List[HistoricalBar]:
        """Daily bars between two dates inclusive; [] when the provider has none."""
        endpoint = "/historical-price-eod/full"
        data = await self._get(
            endpoint,
            {
                "symbol": symbol,
                "from": from_date.strftime(DATE_ISO),
                "to": to_date.strftime(DATE_ISO),
            },
        )
        rows = self._as_rows(data, endpoint)
        if not rows:
            logger.warning("No historical data found for %s", symbol)
            return []

        logger.info("Fetched %d records for %s", len(rows), symbol)
        try:
            return [
                HistoricalBar(
                    symbol=symbol,
                    date=dt.date.fromisoformat(str(row["date"])[:10]),
                    open=row["open"],
                    high=row["high"],
                    low=row["low"],
                    close=row["close"],
                    volume=int(row["volume"]),
                    change=row.get("change") or 0,
                    change_percent=row.get("changePercent") or 0,
                )
                for row in rows
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise ExternalAPIError(PROVIDER, f"Malformed historical row for {symbol}: {e}") from e

    @staticmethod
    def _to_quote(row: Dict[str, Any]) -> Quote:
        try:
            return Quote(
                symbol=row["symbol"],
                open=row.get("open"),
                high=row.get("dayHigh"),
                low=row.get("dayLow"),
                close=row.get("price"),
                volume=int(row.get("volume") or 0),
                change=row.get("change") or 0,
                change_percent=row.get("changesPercentage") or 0,
                timestamp=row.get("timestamp"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ExternalAPIError(PROVIDER, f"Malformed quote row: {e}") from e

    async def get_batch_quote(self, symbols: Sequence[str]) -> List[Quote]:
        """Real-time quotes for every symbol in one request."""
        endpoint = "/batch-quote"
        rows = self._as_rows(await self._get(endpoint, {"symbols": ",".join(symbols)}), endpoint)
        if not rows:
            logger.warning("No quote data returned")
            return []
        return [self._to_quote(row) for row in rows]

    async def get_single_quote(self, symbol: str) -> Quote:
        rows = self._as_rows(await self._get("/quote", {"symbol": symbol}), "/quote")
        if not rows:
            raise ExternalAPIError(PROVIDER, f"No quote data found for {symbol}")
        return self._to_quote(rows[0])
