from fastapi import APIRouter

from stock_dashboard.api import routes_stocks, routes_sync

api_router = APIRouter()

api_router.include_router(routes_stocks.router, prefix="/stocks", tags=["stocks"])
api_router.include_router(routes_sync.router, prefix="/sync", tags=["sync"])
