"""
Stock API routes - CRUD, listing and dashboard aggregates
"""

import datetime as dt
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from stock_dashboard.api.dependencies import get_stock_service
from stock_dashboard.repositories import StockFilters
from stock_dashboard.schemas import (
    DashboardStatsResponse,
    MessageResponse,
    PriceTimelineResponse,
    SectorDistributionResponse,
    StockListResponse,
    StockRecord,
    StockResponse,
)
from stock_dashboard.services import StockService

router = APIRouter()


# ============ Dashboard ============
# Registered before /{stock_id} so the literal paths win

@router.get("/dashboard/stats", response_model=DashboardStatsResponse)
async def get_dashboard_stats(service: StockService = Depends(get_stock_service)):
    """Distinct symbols, row count, latest date and distinct sectors."""
    return DashboardStatsResponse(data=await service.get_dashboard_stats())


@router.get("/dashboard/sector-distribution", response_model=SectorDistributionResponse)
def get_sector_distribution(
    date_from: Optional[dt.date] = Query(None, alias="dateFrom"),
    date_to: Optional[dt.date] = Query(None, alias="dateTo"),
    service: StockService = Depends(get_stock_service),
):
    """Sector breakdown for the pie chart."""
    return SectorDistributionResponse(
        data=service.get_sector_distribution(date_from=date_from, date_to=date_to)
    )


@router.get("/dashboard/price-timeline", response_model=PriceTimelineResponse)
def get_price_timeline(
    symbol: Optional[str] = None,
    date_from: Optional[dt.date] = Query(None, alias="dateFrom"),
    date_to: Optional[dt.date] = Query(None, alias="dateTo"),
    service: StockService = Depends(get_stock_service),
):
    """Per-date averages for the column chart."""
    return PriceTimelineResponse(
        data=service.get_price_timeline(symbol=symbol, date_from=date_from, date_to=date_to)
    )


# ============ CRUD ============

@router.get("", response_model=StockListResponse)
def list_stocks(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    symbol: Optional[str] = None,
    sector: Optional[str] = None,
    date_from: Optional[dt.date] = Query(None, alias="dateFrom"),
    date_to: Optional[dt.date] = Query(None, alias="dateTo"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    search: Optional[str] = None,
    service: StockService = Depends(get_stock_service),
):
    """Filtered, sorted, paginated stock rows.

    page/limit are taken as raw strings: malformed values fall back to the
    defaults instead of failing the request.
    """
    filters = StockFilters(
        symbol=symbol,
        sector=sector,
        date_from=date_from,
        date_to=date_to,
        search=search,
    )
    result = service.list_stocks(
        page=page,
        limit=limit,
        filters=filters,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return StockListResponse(**result)


@router.get("/{stock_id}", response_model=StockResponse)
def get_stock(stock_id: int, service: StockService = Depends(get_stock_service)):
    stock = service.get_stock(stock_id)
    return StockResponse(data=StockRecord.model_validate(stock))


@router.post("", status_code=201, response_model=StockResponse)
def create_stock(
    payload: Dict[str, Any] = Body(...),
    service: StockService = Depends(get_stock_service),
):
    """Create one row; 400 lists every failed rule, 409 on a duplicate (symbol, date)."""
    stock = service.create_stock(payload)
    return StockResponse(
        message="Stock created successfully",
        data=StockRecord.model_validate(stock),
    )


@router.put("/{stock_id}", response_model=StockResponse)
def update_stock(
    stock_id: int,
    payload: Dict[str, Any] = Body(...),
    service: StockService = Depends(get_stock_service),
):
    stock = service.update_stock(stock_id, payload)
    return StockResponse(
        message="Stock updated successfully",
        data=StockRecord.model_validate(stock),
    )


@router.delete("/{stock_id}", response_model=MessageResponse)
def delete_stock(stock_id: int, service: StockService = Depends(get_stock_service)):
    service.delete_stock(stock_id)
    return MessageResponse(message="Stock deleted successfully")
