from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from stock_dashboard.config import Settings, get_settings
from stock_dashboard.database import Database
from stock_dashboard.services import FMPClient, StockService, SyncService


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return getattr(request.app.state, "settings", None) or get_settings()


def get_database(request: Request) -> Database:
    """The Database owned by the application lifespan."""
    return request.app.state.database


def get_db(database: Database = Depends(get_database)) -> Generator[Session, None, None]:
    """
    Request-scoped SQLAlchemy Session, closed when the request ends.

    Usage:
        @router.get("/endpoint")
        def endpoint(db: Session = Depends(get_db)):
            ...
    """
    db = database.session()
    try:
        yield db
    finally:
        db.close()


def get_stock_service(
    db: Session = Depends(get_db),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
) -> StockService:
    return StockService(
        session=db,
        database=database,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )


def get_fmp_client(settings: Settings = Depends(get_app_settings)) -> FMPClient:
    return FMPClient.from_settings(settings)


def get_sync_service(
    db: Session = Depends(get_db),
    fmp_client: FMPClient = Depends(get_fmp_client),
    settings: Settings = Depends(get_app_settings),
) -> SyncService:
    return SyncService(session=db, fmp_client=fmp_client, settings=settings)
