from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYMBOLS = "AAPL,MSFT,GOOGL,JPM,JNJ,TSLA,XOM,PG,BA,DIS"


class SchedulerConfig(BaseModel):
    enabled: bool = False
    auto_sync_cron: str = "*/5 9-17 * * 1-5"  # every 5 minutes during the US session
    timezone: str = "America/New_York"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    database_url: str = Field(default="sqlite:///data/stocks.db", alias="DATABASE_URL")
    data_dir: Path = Field(default=Path("data"), alias="DATA_DIR")
    logs_dir: Path = Field(default=Path("logs"), alias="LOGS_DIR")

    # Financial Modeling Prep
    fmp_api_key: str = Field(default="", alias="FMP_API_KEY")
    fmp_base_url: str = Field(
        default="https://financialmodelingprep.com/stable", alias="FMP_BASE_URL"
    )
    fmp_timeout: float = Field(default=30.0, alias="FMP_TIMEOUT")

    stock_symbols_str: str = Field(default=DEFAULT_SYMBOLS, alias="STOCK_SYMBOLS")

    # Market hours, exchange local time
    market_timezone: str = Field(default="America/New_York", alias="MARKET_TIMEZONE")
    market_open_hour: int = Field(default=9, alias="MARKET_OPEN_HOUR")
    data_available_hour: int = Field(default=17, alias="DATA_AVAILABLE_HOUR")

    history_months: int = Field(default=1, alias="HISTORY_MONTHS")
    sync_concurrency: int = Field(default=1, ge=1, alias="SYNC_CONCURRENCY")
    sync_rate_limit: str = Field(default="30/minute", alias="SYNC_RATE_LIMIT")

    default_page_size: int = Field(default=50, alias="DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(default=100, alias="MAX_PAGE_SIZE")

    cors_allow_origins_str: str = Field(default="http://localhost:5173", alias="ALLOW_ORIGINS")

    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    scheduler_enabled_override: Optional[bool] = Field(default=None, alias="AUTO_SYNC_ENABLED")
    scheduler_cron_override: Optional[str] = Field(default=None, alias="AUTO_SYNC_CRON")
    scheduler_timezone_override: Optional[str] = Field(
        default=None, alias="SCHEDULER_TIMEZONE"
    )

    api_prefix: str = "/api"

    @model_validator(mode="after")
    def _apply_scheduler_overrides(self) -> "Settings":
        if self.scheduler_enabled_override is not None:
            self.scheduler.enabled = self.scheduler_enabled_override
        if self.scheduler_cron_override:
            self.scheduler.auto_sync_cron = self.scheduler_cron_override
        if self.scheduler_timezone_override:
            self.scheduler.timezone = self.scheduler_timezone_override
        return self

    @property
    def stock_symbols(self) -> List[str]:
        """Configured symbols as an uppercase list, duplicates removed."""
        symbols: List[str] = []
        for item in self.stock_symbols_str.split(","):
            symbol = item.strip().upper()
            if symbol and symbol not in symbols:
                symbols.append(symbol)
        return symbols

    @property
    def cors_allow_origins(self) -> List[str]:
        """Get CORS allowed origins as a list."""
        return [
            item.strip() for item in self.cors_allow_origins_str.split(",") if item.strip()
        ] if self.cors_allow_origins_str else ["http://localhost:5173"]


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.logs_dir.mkdir(parents=True, exist_ok=True)
    return settings
