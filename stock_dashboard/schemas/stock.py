"""
Stock API schemas
Request bodies and response envelopes for /api/stocks
"""

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============ Requests ============

class StockCreate(BaseModel):
    """POST /api/stocks body (rule checks run before this schema)"""
    model_config = ConfigDict(extra="forbid")

    symbol: str
    company_name: Optional[str] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    open_price: float
    high_price: float
    low_price: float
    close_price: float
    volume: int
    change: float = 0
    change_percent: float = 0
    date: dt.date
    is_final: bool = False


MARKET_FIELDS = (
    "open_price",
    "high_price",
    "low_price",
    "close_price",
    "volume",
    "change",
    "change_percent",
    "is_final",
)


class StockUpdate(BaseModel):
    """PUT /api/stocks/{id} body

    Identity and profile fields are accepted so a client can send back a whole
    record, but only the market fields are written.
    """
    model_config = ConfigDict(extra="forbid")

    symbol: Optional[str] = None
    company_name: Optional[str] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    date: Optional[dt.date] = None

    open_price: Optional[float] = None
    high_price: Optional[float] = None
    low_price: Optional[float] = None
    close_price: Optional[float] = None
    volume: Optional[int] = None
    change: Optional[float] = None
    change_percent: Optional[float] = None
    is_final: Optional[bool] = None

    @field_validator(*MARKET_FIELDS)
    @classmethod
    def _not_null(cls, value):
        # Omitted fields keep the stored value; the columns themselves are NOT NULL
        if value is None:
            raise ValueError("must not be null")
        return value

    def market_fields(self) -> dict:
        """Fields the update is allowed to write, as explicitly sent."""
        return self.model_dump(
            include=set(MARKET_FIELDS),
            exclude_unset=True,
        )


class StockUpsert(BaseModel):
    """Internal record handed to the reconciliation primitive"""

    symbol: str
    company_name: Optional[str] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    open_price: float
    high_price: float
    low_price: float
    close_price: float
    volume: int
    change: float = 0
    change_percent: float = 0
    date: dt.date
    is_final: bool = False


# ============ Responses ============

class StockRecord(BaseModel):
    """Stored stock row"""
    id: int
    symbol: str
    company_name: Optional[str] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    open_price: float
    high_price: float
    low_price: float
    close_price: float
    volume: int
    change: Optional[float] = None
    change_percent: Optional[float] = None
    date: dt.date
    is_final: bool
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = {"from_attributes": True}


class PaginationMeta(BaseModel):
    page: int = Field(..., description="Current page (1-based)")
    limit: int = Field(..., description="Page size")
    total_records: int = Field(..., serialization_alias="totalRecords")
    total_pages: int = Field(..., serialization_alias="totalPages")
    has_next: bool = Field(..., serialization_alias="hasNext")
    has_prev: bool = Field(..., serialization_alias="hasPrev")

    @classmethod
    def build(cls, page: int, limit: int, total_records: int) -> "PaginationMeta":
        total_pages = -(-total_records // limit) if limit else 0
        return cls(
            page=page,
            limit=limit,
            total_records=total_records,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class StockListResponse(BaseModel):
    success: bool = True
    data: List[StockRecord]
    pagination: PaginationMeta


class StockResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: StockRecord


class MessageResponse(BaseModel):
    success: bool = True
    message: str


# ============ Dashboard aggregates ============

class SectorDistributionItem(BaseModel):
    sector: Optional[str] = Field(None, description="Sector name")
    stock_count: int = Field(..., description="Distinct symbols in the sector")
    avg_price: Optional[float] = Field(None, description="Average close price")
    total_volume: Optional[int] = Field(None, description="Summed volume")


class PriceTimelinePoint(BaseModel):
    date: dt.date
    avg_close: Optional[float] = Field(None, description="Average close price")
    total_volume: Optional[int] = Field(None, description="Summed volume")
    stock_count: int = Field(..., description="Distinct symbols traded that day")


class DashboardStats(BaseModel):
    total_stocks: int = Field(..., serialization_alias="totalStocks")
    total_records: int = Field(..., serialization_alias="totalRecords")
    latest_date: Optional[dt.date] = Field(None, serialization_alias="latestDate")
    total_sectors: int = Field(..., serialization_alias="totalSectors")


class SectorDistributionResponse(BaseModel):
    success: bool = True
    data: List[SectorDistributionItem]


class PriceTimelineResponse(BaseModel):
    success: bool = True
    data: List[PriceTimelinePoint]


class DashboardStatsResponse(BaseModel):
    success: bool = True
    data: DashboardStats
