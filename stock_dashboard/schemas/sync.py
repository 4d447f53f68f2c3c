"""
Sync API schemas
"""

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field

from stock_dashboard.schemas.stock import PaginationMeta


class SymbolSyncError(BaseModel):
    """A symbol that failed during a sync run"""
    symbol: str
    error: str


class SyncResult(BaseModel):
    """Summary returned by both sync paths"""
    success: bool = Field(..., description="Whether the run completed")
    message: str = Field(..., description="Human readable summary")
    total_records: Optional[int] = Field(None, serialization_alias="totalRecords")
    is_final: Optional[bool] = Field(None, serialization_alias="isFinal")
    duration: Optional[str] = Field(None, description="Elapsed time, e.g. '1.42s'")
    last_sync_time: Optional[dt.datetime] = Field(None, serialization_alias="lastSyncTime")
    errors: Optional[List[SymbolSyncError]] = Field(None, description="Per-symbol failures")


class SyncLogRecord(BaseModel):
    id: int
    sync_type: str
    records_synced: int
    status: str
    error_message: Optional[str] = None
    synced_at: dt.datetime

    model_config = {"from_attributes": True}


class SyncStats(BaseModel):
    total_syncs: int = Field(..., serialization_alias="totalSyncs")
    successful_syncs: int = Field(..., serialization_alias="successfulSyncs")
    failed_syncs: int = Field(..., serialization_alias="failedSyncs")
    total_records_synced: int = Field(..., serialization_alias="totalRecordsSynced")
    last_sync_time: Optional[dt.datetime] = Field(None, serialization_alias="lastSyncTime")


class SyncLogListResponse(BaseModel):
    success: bool = True
    data: List[SyncLogRecord]
    pagination: PaginationMeta


class LastSyncResponse(BaseModel):
    success: bool = True
    last_sync_time: Optional[dt.datetime] = Field(None, serialization_alias="lastSyncTime")


class SyncStatsResponse(BaseModel):
    success: bool = True
    data: SyncStats
