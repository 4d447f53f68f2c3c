"""
Sync engine
Fetches market data from FMP and reconciles it into the stocks table.

Two paths:
- initial_sync: one month of settled history per symbol, used to bootstrap
  an empty database
- sync_stocks: one batch quote call for every symbol, keyed to today's date
"""

import asyncio
import json
import time
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stock_dashboard.config import Settings
from stock_dashboard.models import SyncStatus, SyncType
from stock_dashboard.repositories import StockRepository, SyncLogRepository
from stock_dashboard.schemas import StockUpsert, SymbolSyncError, SyncResult
from stock_dashboard.services.fmp_client import CompanyProfile, FMPClient, Quote
from stock_dashboard.utils.logging import get_logger
from stock_dashboard.utils.market_time import (
    is_after_market_close,
    subtract_months,
    today_in_market,
)

logger = get_logger(__name__)


def _elapsed(started: float) -> str:
    return f"{time.monotonic() - started:.2f}s"


class SyncService:
    """Orchestrates fetch → upsert → sync log for one sync invocation"""

    def __init__(self, session: Session, fmp_client: FMPClient, settings: Settings):
        self.session = session
        self.fmp = fmp_client
        self.settings = settings
        self.stock_repo = StockRepository(session)
        self.sync_log_repo = SyncLogRepository(session)

    # ==================== Mode selection ====================

    def needs_initial_sync(self) -> bool:
        """True when the stocks table is empty (or cannot be counted)."""
        try:
            return self.stock_repo.count() == 0
        except SQLAlchemyError as e:
            logger.error("Error checking initial sync: %s", e)
            self.session.rollback()
            return True

    async def run_sync(self) -> SyncResult:
        """Bootstrap an empty database, otherwise refresh today's quotes."""
        if self.needs_initial_sync():
            logger.info("Database is empty, running initial sync")
            return await self.initial_sync()
        return await self.sync_stocks()

    # ==================== Initial sync ====================

    async def initial_sync(self) -> SyncResult:
        started = time.monotonic()
        total_records = 0
        symbols = self.settings.stock_symbols
        logger.info("Starting initial sync for %d symbols", len(symbols))

        try:
            self.fmp.ensure_configured()
            today = today_in_market(self.settings.market_timezone)
            from_date = subtract_months(today, self.settings.history_months)

            # Symbols run one at a time unless SYNC_CONCURRENCY raises the bound
            semaphore = asyncio.Semaphore(max(1, self.settings.sync_concurrency))

            async def _guarded(symbol: str) -> Tuple[str, int, Optional[str]]:
                async with semaphore:
                    return await self._sync_symbol_history(symbol, from_date, today)

            results = await asyncio.gather(*(_guarded(symbol) for symbol in symbols))

            errors: List[SymbolSyncError] = []
            for symbol, count, error in results:
                if error is None:
                    total_records += count
                else:
                    errors.append(SymbolSyncError(symbol=symbol, error=error))

            self.sync_log_repo.create(
                sync_type=SyncType.INITIAL,
                records_synced=total_records,
                status=SyncStatus.PARTIAL if errors else SyncStatus.SUCCESS,
                error_message=(
                    json.dumps([e.model_dump() for e in errors]) if errors else None
                ),
            )
            self.session.commit()
        except Exception as e:
            logger.error("Initial sync failed: %s", e, exc_info=True)
            self._record_failure(SyncType.INITIAL, total_records, e)
            raise

        duration = _elapsed(started)
        logger.info(
            "Initial sync completed in %s: %d records, %d failed symbols",
            duration, total_records, len(errors),
        )
        return SyncResult(
            success=True,
            message=f"Initial sync completed in {duration}",
            total_records=total_records,
            duration=duration,
            errors=errors or None,
        )

    async def _sync_symbol_history(
        self,
        symbol: str,
        from_date,
        to_date,
    ) -> Tuple[str, int, Optional[str]]:
        """Sync one symbol's history; failures are returned, not raised."""
        logger.info("Syncing %s...", symbol)
        try:
            profile = await self.fmp.get_company_profile(symbol)
            bars = await self.fmp.get_historical_eod(symbol, from_date, to_date)
            for bar in bars:
                self.stock_repo.upsert(StockUpsert(
                    symbol=bar.symbol,
                    company_name=profile.company_name,
                    sector=profile.sector,
                    industry=profile.industry,
                    open_price=bar.open,
                    high_price=bar.high,
                    low_price=bar.low,
                    close_price=bar.close,
                    volume=bar.volume,
                    change=bar.change,
                    change_percent=bar.change_percent,
                    date=bar.date,
                    is_final=True,  # history is always settled
                ))
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error("Error syncing %s: %s", symbol, e)
            return symbol, 0, str(e)

        logger.info("%s: %d records synced", symbol, len(bars))
        return symbol, len(bars), None

    # ==================== Regular sync ====================

    async def sync_stocks(self) -> SyncResult:
        """
        Refresh today's row for every configured symbol from one batch quote.

        Per-symbol failures are logged and skipped, and the run is still
        logged as ``success``. initial_sync reports ``partial`` in the same
        situation.
        """
        started = time.monotonic()
        total_records = 0
        logger.info("Starting regular sync...")

        try:
            self.fmp.ensure_configured()
            today = today_in_market(self.settings.market_timezone)
            is_final = is_after_market_close(
                tz_name=self.settings.market_timezone,
                open_hour=self.settings.market_open_hour,
                data_available_hour=self.settings.data_available_hour,
            )

            quotes = await self.fmp.get_batch_quote(self.settings.stock_symbols)
            if not quotes:
                logger.warning("No quote data available")
                return SyncResult(success=False, message="No quote data available from API")

            # Lives for this run only
            profile_cache: Dict[str, CompanyProfile] = {}
            for quote in quotes:
                try:
                    profile = profile_cache.get(quote.symbol)
                    if profile is None:
                        profile = await self._resolve_profile(quote.symbol)
                        profile_cache[quote.symbol] = profile
                    self.stock_repo.upsert(self._quote_to_record(quote, profile, today, is_final))
                    self.session.commit()
                    total_records += 1
                except Exception as e:
                    self.session.rollback()
                    logger.error("Error syncing %s: %s", quote.symbol, e)

            self.sync_log_repo.create(
                sync_type=SyncType.MANUAL,
                records_synced=total_records,
                status=SyncStatus.SUCCESS,
            )
            self.session.commit()
        except Exception as e:
            logger.error("Sync failed: %s", e, exc_info=True)
            self._record_failure(SyncType.MANUAL, total_records, e)
            raise

        duration = _elapsed(started)
        final_label = "(final)" if is_final else "(real-time)"
        logger.info("Sync completed: %d records %s", total_records, final_label)
        return SyncResult(
            success=True,
            message=f"Synced {total_records} stocks {final_label}",
            total_records=total_records,
            is_final=is_final,
            duration=duration,
            last_sync_time=datetime.now(timezone.utc),
        )

    async def _resolve_profile(self, symbol: str) -> CompanyProfile:
        """Stored profile when the symbol is already known, else ask FMP."""
        existing = self.stock_repo.find_latest_by_symbol(symbol)
        if existing is not None:
            return CompanyProfile(
                symbol=symbol,
                company_name=existing.company_name,
                sector=existing.sector,
                industry=existing.industry,
            )
        return await self.fmp.get_company_profile(symbol)

    @staticmethod
    def _quote_to_record(quote: Quote, profile: CompanyProfile, today, is_final: bool) -> StockUpsert:
        return StockUpsert(
            symbol=quote.symbol,
            company_name=profile.company_name,
            sector=profile.sector,
            industry=profile.industry,
            open_price=quote.open,
            high_price=quote.high,
            low_price=quote.low,
            close_price=quote.close,
            volume=quote.volume,
            change=quote.change,
            change_percent=quote.change_percent,
            date=today,
            is_final=is_final,
        )

    # ==================== Failure bookkeeping ====================

    def _record_failure(self, sync_type: SyncType, records_synced: int, error: Exception) -> None:
        """Write a ``failed`` log entry for a run that is about to re-raise."""
        self.session.rollback()
        try:
            self.sync_log_repo.create(
                sync_type=sync_type,
                records_synced=records_synced,
                status=SyncStatus.FAILED,
                error_message=str(error),
            )
            self.session.commit()
        except SQLAlchemyError as log_error:
            self.session.rollback()
            logger.error("Could not record failed %s sync: %s", sync_type.value, log_error)
