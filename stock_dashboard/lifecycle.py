from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from stock_dashboard.config import Settings, get_settings
from stock_dashboard.database import Database
from stock_dashboard.tasks.scheduler import SchedulerManager
from stock_dashboard.utils.logging import LOGGER


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Own the Database and the scheduler for the lifetime of the app."""
    settings: Settings = getattr(app.state, "settings", None) or get_settings()
    LOGGER.info("Application startup - database %s", settings.database_url)

    database = Database(settings.database_url)
    database.create_all()
    app.state.database = database

    scheduler_manager = None
    if settings.scheduler.enabled:
        scheduler_manager = SchedulerManager(settings, database)
        scheduler_manager.start()
    app.state.scheduler = scheduler_manager

    try:
        yield
    finally:
        LOGGER.info("Application shutdown")
        if scheduler_manager:
            scheduler_manager.shutdown()
        database.dispose()
