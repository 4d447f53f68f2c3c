"""
Models package - unified exports for all models

    from stock_dashboard.models import Stock, SyncLog, SyncStatus
"""

# Base and utilities
from stock_dashboard.models.base import Base, utcnow

# Enums
from stock_dashboard.models.enums import SyncStatus, SyncType

# Models
from stock_dashboard.models.stock import UPSERT_MUTABLE_COLUMNS, Stock
from stock_dashboard.models.sync_log import SyncLog

__all__ = [
    # Base
    "Base",
    "utcnow",
    # Enums
    "SyncType",
    "SyncStatus",
    # Models
    "Stock",
    "SyncLog",
    "UPSERT_MUTABLE_COLUMNS",
]
