from __future__ import annotations

import asyncio

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from stock_dashboard.config import Settings
from stock_dashboard.database import Database
from stock_dashboard.services.fmp_client import FMPClient
from stock_dashboard.services.sync_service import SyncService
from stock_dashboard.utils.logging import LOGGER

AUTO_SYNC_JOB_ID = "auto-sync"


class SchedulerManager:
    """Wrapper around APScheduler to run the recurring market data sync."""

    def __init__(self, settings: Settings, database: Database) -> None:
        self.settings = settings
        self.database = database
        self.scheduler = BackgroundScheduler(
            timezone=self.settings.scheduler.timezone
        )

    def start(self) -> None:
        LOGGER.info("Starting scheduler")
        if not self.scheduler.running:
            self._register_jobs()
            self.scheduler.start()

    def shutdown(self) -> None:
        if self.scheduler.running:
            LOGGER.info("Shutting down scheduler")
            self.scheduler.shutdown(wait=False)

    def _register_jobs(self) -> None:
        cron = CronTrigger.from_crontab(
            self.settings.scheduler.auto_sync_cron,
            timezone=self.settings.scheduler.timezone,
        )
        self.scheduler.add_job(
            self._auto_sync_job,
            trigger=cron,
            id=AUTO_SYNC_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    def _auto_sync_job(self) -> None:
        """Run one sync (sync wrapper for the async sync service)."""
        LOGGER.info("Scheduled sync kicked off")
        loop = asyncio.new_event_loop()
        try:
            with self.database.session_scope() as session:
                service = SyncService(
                    session=session,
                    fmp_client=FMPClient.from_settings(self.settings),
                    settings=self.settings,
                )
                result = loop.run_until_complete(service.run_sync())
            LOGGER.info("Scheduled sync: %s", result.message)
        except Exception as e:
            LOGGER.error("Scheduled sync failed: %s", e)
        finally:
            loop.close()
