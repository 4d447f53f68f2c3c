"""
Repositories: all SQL lives here
"""

from stock_dashboard.repositories.stock_repository import StockFilters, StockRepository
from stock_dashboard.repositories.sync_log_repository import SyncLogRepository

__all__ = ["StockFilters", "StockRepository", "SyncLogRepository"]
