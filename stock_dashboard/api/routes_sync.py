"""
Sync API routes
Trigger syncs against FMP and read back the sync history.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from stock_dashboard.api.dependencies import get_db, get_sync_service
from stock_dashboard.api.rate_limit import limiter, sync_client_key, sync_rate_limit
from stock_dashboard.exceptions import SyncError
from stock_dashboard.models import SyncStatus
from stock_dashboard.repositories import SyncLogRepository
from stock_dashboard.schemas import (
    LastSyncResponse,
    PaginationMeta,
    SyncLogListResponse,
    SyncLogRecord,
    SyncResult,
    SyncStats,
    SyncStatsResponse,
)
from stock_dashboard.services import SyncService
from stock_dashboard.validators import validate_pagination

router = APIRouter()

SYNC_LOG_PAGE_SIZE = 20


@router.post("", response_model=SyncResult, response_model_exclude_none=True)
@limiter.limit(sync_rate_limit, key_func=sync_client_key)
async def trigger_sync(
    request: Request,
    service: SyncService = Depends(get_sync_service),
):
    """Initial sync on an empty database, otherwise a quote refresh."""
    try:
        return await service.run_sync()
    except Exception as e:
        raise SyncError("Sync failed", str(e)) from e


@router.get("")
def sync_method_not_allowed():
    return JSONResponse(
        status_code=405,
        content={"error": "Method Not Allowed. Use POST to trigger sync."},
    )


@router.post("/initial", response_model=SyncResult, response_model_exclude_none=True)
@limiter.limit(sync_rate_limit, key_func=sync_client_key)
async def trigger_initial_sync(
    request: Request,
    service: SyncService = Depends(get_sync_service),
):
    """Force a full history load regardless of what is stored."""
    try:
        return await service.initial_sync()
    except Exception as e:
        raise SyncError("Initial sync failed", str(e)) from e


@router.get("/logs", response_model=SyncLogListResponse)
def list_sync_logs(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Session = Depends(get_db),
):
    window = validate_pagination(page, limit, default_limit=SYNC_LOG_PAGE_SIZE)
    rows, total = SyncLogRepository(db).list_logs(limit=window.limit, offset=window.offset)
    return SyncLogListResponse(
        data=[SyncLogRecord.model_validate(row) for row in rows],
        pagination=PaginationMeta.build(window.page, window.limit, total),
    )


@router.get("/last", response_model=LastSyncResponse)
def get_last_sync(db: Session = Depends(get_db)):
    """Time of the most recent successful sync, or null."""
    return LastSyncResponse(last_sync_time=SyncLogRepository(db).last_success_time())


@router.get("/stats", response_model=SyncStatsResponse)
def get_sync_stats(db: Session = Depends(get_db)):
    repo = SyncLogRepository(db)
    return SyncStatsResponse(
        data=SyncStats(
            total_syncs=repo.count(),
            successful_syncs=repo.count_by_status(SyncStatus.SUCCESS),
            failed_syncs=repo.count_by_status(SyncStatus.FAILED),
            total_records_synced=repo.total_records_synced(),
            last_sync_time=repo.last_sync_time(),
        )
    )
