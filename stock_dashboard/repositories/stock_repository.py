"""
Stock Repository

Reconciliation (upsert) and the query layer over the ``stocks`` table.
Every user-supplied value reaches SQL as a bound parameter; the ORDER BY
column only ever comes from SORT_COLUMNS.
"""

import datetime as dt
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import Select, asc, desc, distinct, func, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stock_dashboard.exceptions import ConflictError, DatabaseError
from stock_dashboard.models import UPSERT_MUTABLE_COLUMNS, Stock, utcnow
from stock_dashboard.repositories.base_repository import BaseRepository
from stock_dashboard.schemas import StockUpsert
from stock_dashboard.validators import (
    DEFAULT_SORT_COLUMN,
    validate_sort_column,
    validate_sort_order,
)

SORT_COLUMNS = {
    "date": Stock.date,
    "symbol": Stock.symbol,
    "close_price": Stock.close_price,
    "volume": Stock.volume,
    "change_percent": Stock.change_percent,
    "updated_at": Stock.updated_at,
}

_INSERT_BY_DIALECT = {
    "sqlite": sqlite_insert,
    "postgresql": pg_insert,
}

DUPLICATE_STOCK_MESSAGE = "Stock record already exists for this symbol and date"


@dataclass
class StockFilters:
    """Optional filters for listing stocks"""
    symbol: Optional[str] = None
    sector: Optional[str] = None
    date_from: Optional[dt.date] = None
    date_to: Optional[dt.date] = None
    search: Optional[str] = None


class StockRepository(BaseRepository[Stock]):
    """Data access for daily stock rows"""

    def __init__(self, session: Session):
        super().__init__(session, Stock)

    # ==================== Reconciliation ====================

    def upsert(self, record: StockUpsert) -> Stock:
        """
        Insert a row, or overwrite the market fields of the existing
        (symbol, date) row in the same statement.

        created_at and the profile columns keep their stored values;
        updated_at is refreshed.
        """
        values = record.model_dump()
        dialect = self.session.get_bind().dialect.name
        insert_fn = _INSERT_BY_DIALECT.get(dialect)
        if insert_fn is None:
            raise DatabaseError("upsert", f"unsupported dialect: {dialect}")

        stmt = insert_fn(Stock).values(**values)
        update_set = {column: stmt.excluded[column] for column in UPSERT_MUTABLE_COLUMNS}
        update_set["updated_at"] = utcnow()
        stmt = stmt.on_conflict_do_update(
            index_elements=["symbol", "date"],
            set_=update_set,
        )
        self.session.execute(stmt)
        return self.find_by_symbol_and_date(record.symbol, record.date)

    def create(self, values: Dict[str, Any]) -> Stock:
        """
        Plain insert; a second row for the same (symbol, date) raises
        ConflictError instead of being merged.
        """
        stock = Stock(**values)
        try:
            return self.save(stock)
        except IntegrityError as e:
            self.session.rollback()
            raise ConflictError(
                DUPLICATE_STOCK_MESSAGE,
                details={"symbol": values.get("symbol"), "date": str(values.get("date"))},
            ) from e

    def update(self, stock: Stock, values: Dict[str, Any]) -> Stock:
        for key, value in values.items():
            setattr(stock, key, value)
        stock.updated_at = utcnow()
        self.session.flush()
        return stock

    # ==================== Lookups ====================

    def find_by_symbol_and_date(self, symbol: str, date: dt.date) -> Optional[Stock]:
        stmt = (
            select(Stock)
            .where(Stock.symbol == symbol, Stock.date == date)
            .execution_options(populate_existing=True)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def find_by_symbol(self, symbol: str) -> List[Stock]:
        """All rows for a symbol, newest date first."""
        stmt = select(Stock).where(Stock.symbol == symbol).order_by(desc(Stock.date))
        return list(self.session.execute(stmt).scalars().all())

    def find_latest_by_symbol(self, symbol: str) -> Optional[Stock]:
        stmt = (
            select(Stock)
            .where(Stock.symbol == symbol)
            .order_by(desc(Stock.date))
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def get_last_date_for_symbol(self, symbol: str) -> Optional[dt.date]:
        stmt = select(func.max(Stock.date)).where(Stock.symbol == symbol)
        return self.session.execute(stmt).scalar()

    # ==================== Listing ====================

    @staticmethod
    def _apply_filters(stmt: Select, filters: StockFilters) -> Select:
        if filters.symbol:
            stmt = stmt.where(Stock.symbol == filters.symbol)
        if filters.sector:
            stmt = stmt.where(Stock.sector == filters.sector)
        if filters.date_from:
            stmt = stmt.where(Stock.date >= filters.date_from)
        if filters.date_to:
            stmt = stmt.where(Stock.date <= filters.date_to)
        if filters.search:
            pattern = f"%{filters.search}%"
            stmt = stmt.where(
                or_(Stock.symbol.ilike(pattern), Stock.company_name.ilike(pattern))
            )
        return stmt

    def count_filtered(self, filters: StockFilters) -> int:
        stmt = self._apply_filters(select(func.count(Stock.id)), filters)
        return self.session.execute(stmt).scalar() or 0

    def list_stocks(
        self,
        filters: StockFilters,
        limit: int,
        offset: int,
        sort_by: str = DEFAULT_SORT_COLUMN,
        sort_order: str = "desc",
    ) -> Tuple[List[Stock], int]:
        """
        One page of filtered rows plus the total match count.

        Unknown sort columns fall back to updated_at and unknown directions
        to descending.
        """
        column = SORT_COLUMNS[validate_sort_column(sort_by)]
        direction = asc if validate_sort_order(sort_order) == "asc" else desc

        total = self.count_filtered(filters)
        stmt = (
            self._apply_filters(select(Stock), filters)
            .order_by(direction(column), direction(Stock.id))
            .limit(limit)
            .offset(offset)
        )
        rows = list(self.session.execute(stmt).scalars().all())
        return rows, total

    # ==================== Aggregates ====================

    def sector_distribution(
        self,
        date_from: Optional[dt.date] = None,
        date_to: Optional[dt.date] = None,
    ) -> List[Dict[str, Any]]:
        """Per-sector distinct symbols, average close and summed volume."""
        stock_count = func.count(distinct(Stock.symbol)).label("stock_count")
        stmt = select(
            Stock.sector,
            stock_count,
            func.avg(Stock.close_price).label("avg_price"),
            func.sum(Stock.volume).label("total_volume"),
        )
        stmt = self._apply_filters(stmt, StockFilters(date_from=date_from, date_to=date_to))
        stmt = stmt.group_by(Stock.sector).order_by(desc(stock_count), asc(Stock.sector))
        return [dict(row._mapping) for row in self.session.execute(stmt)]

    def price_timeline(
        self,
        symbol: Optional[str] = None,
        date_from: Optional[dt.date] = None,
        date_to: Optional[dt.date] = None,
    ) -> List[Dict[str, Any]]:
        """Per-date average close, summed volume and distinct symbols."""
        stmt = select(
            Stock.date,
            func.avg(Stock.close_price).label("avg_close"),
            func.sum(Stock.volume).label("total_volume"),
            func.count(distinct(Stock.symbol)).label("stock_count"),
        )
        stmt = self._apply_filters(
            stmt, StockFilters(symbol=symbol, date_from=date_from, date_to=date_to)
        )
        stmt = stmt.group_by(Stock.date).order_by(asc(Stock.date))
        return [dict(row._mapping) for row in self.session.execute(stmt)]

    def count_distinct_symbols(self) -> int:
        return self.session.execute(select(func.count(distinct(Stock.symbol)))).scalar() or 0

    def count_distinct_sectors(self) -> int:
        return self.session.execute(select(func.count(distinct(Stock.sector)))).scalar() or 0

    def latest_date(self) -> Optional[dt.date]:
        return self.session.execute(select(func.max(Stock.date))).scalar()
