"""
Business services: the sync engine, the stock service and the FMP client
"""

from stock_dashboard.services.fmp_client import FMPClient
from stock_dashboard.services.stock_service import StockService
from stock_dashboard.services.sync_service import SyncService

__all__ = ["FMPClient", "StockService", "SyncService"]
