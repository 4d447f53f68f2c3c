"""
Request and response schemas for the HTTP API
"""

from stock_dashboard.schemas.stock import (
    DashboardStats,
    DashboardStatsResponse,
    MessageResponse,
    PaginationMeta,
    PriceTimelinePoint,
    PriceTimelineResponse,
    SectorDistributionItem,
    SectorDistributionResponse,
    StockCreate,
    StockListResponse,
    StockRecord,
    StockResponse,
    StockUpdate,
    StockUpsert,
)
from stock_dashboard.schemas.sync import (
    LastSyncResponse,
    SymbolSyncError,
    SyncLogListResponse,
    SyncLogRecord,
    SyncResult,
    SyncStats,
    SyncStatsResponse,
)

__all__ = [
    # Stocks
    "DashboardStats",
    "DashboardStatsResponse",
    "MessageResponse",
    "PaginationMeta",
    "PriceTimelinePoint",
    "PriceTimelineResponse",
    "SectorDistributionItem",
    "SectorDistributionResponse",
    "StockCreate",
    "StockListResponse",
    "StockRecord",
    "StockResponse",
    "StockUpdate",
    "StockUpsert",
    # Sync
    "LastSyncResponse",
    "SymbolSyncError",
    "SyncLogListResponse",
    "SyncLogRecord",
    "SyncResult",
    "SyncStats",
    "SyncStatsResponse",
]
