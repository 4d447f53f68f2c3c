"""
Stock service
CRUD, list queries and dashboard aggregates over the stocks table
"""

import asyncio
import datetime as dt
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from stock_dashboard.database import Database
from stock_dashboard.exceptions import NotFoundError, ValidationError
from stock_dashboard.models import Stock
from stock_dashboard.repositories import StockFilters, StockRepository
from stock_dashboard.schemas import (
    DashboardStats,
    PaginationMeta,
    PriceTimelinePoint,
    SectorDistributionItem,
    StockCreate,
    StockRecord,
    StockUpdate,
)
from stock_dashboard.utils.logging import get_logger
from stock_dashboard.validators import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    check_price_range,
    validate_pagination,
    validate_sort_column,
    validate_sort_order,
    validate_stock_data,
)

logger = get_logger(__name__)

T = TypeVar("T")


def _schema_errors(exc: PydanticValidationError) -> List[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "body"
        messages.append(f"Invalid {location}: {error['msg']}")
    return messages


class StockService:
    """Stock business logic; one instance per request"""

    def __init__(
        self,
        session: Session,
        database: Optional[Database] = None,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self.session = session
        self.database = database
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self.stock_repo = StockRepository(session)

    # ==================== Queries ====================

    def list_stocks(
        self,
        page: Any = None,
        limit: Any = None,
        filters: Optional[StockFilters] = None,
        sort_by: Any = None,
        sort_order: Any = None,
    ) -> Dict[str, Any]:
        """One page of stocks plus the pagination envelope."""
        window = validate_pagination(
            page, limit,
            default_limit=self.default_page_size,
            max_limit=self.max_page_size,
        )
        rows, total = self.stock_repo.list_stocks(
            filters or StockFilters(),
            limit=window.limit,
            offset=window.offset,
            sort_by=validate_sort_column(sort_by),
            sort_order=validate_sort_order(sort_order),
        )
        return {
            "data": [StockRecord.model_validate(row) for row in rows],
            "pagination": PaginationMeta.build(window.page, window.limit, total),
        }

    def get_stock_by_id(self, stock_id: int) -> Optional[Stock]:
        """None when the id does not exist."""
        return self.stock_repo.find_by_id(stock_id)

    def get_stock(self, stock_id: int) -> Stock:
        stock = self.get_stock_by_id(stock_id)
        if stock is None:
            raise NotFoundError("Stock", stock_id)
        return stock

    # ==================== Mutations ====================

    def create_stock(self, payload: Mapping[str, Any]) -> Stock:
        """Validate every rule, then insert; duplicates raise ConflictError."""
        result = validate_stock_data(payload)
        if not result.valid:
            raise ValidationError(result.errors)
        try:
            data = StockCreate.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(_schema_errors(e)) from e

        stock = self.stock_repo.create(data.model_dump())
        self.session.commit()
        logger.info("Created stock %s %s (id=%s)", stock.symbol, stock.date, stock.id)
        return stock

    def update_stock(self, stock_id: int, payload: Mapping[str, Any]) -> Stock:
        """
        Overwrite the market fields of one row.

        Only the high/low cross-field rule is checked here, against the
        values the row would end up with.
        """
        stock = self.get_stock(stock_id)
        try:
            data = StockUpdate.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(_schema_errors(e)) from e

        changes = data.market_fields()
        range_error = check_price_range(
            changes.get("high_price", stock.high_price),
            changes.get("low_price", stock.low_price),
        )
        if range_error:
            raise ValidationError([range_error])

        stock = self.stock_repo.update(stock, changes)
        self.session.commit()
        logger.info("Updated stock id=%s fields=%s", stock_id, sorted(changes))
        return stock

    def delete_stock(self, stock_id: int) -> None:
        stock = self.get_stock(stock_id)
        self.stock_repo.delete(stock)
        self.session.commit()
        logger.info("Deleted stock id=%s", stock_id)

    # ==================== Dashboard ====================

    def get_sector_distribution(
        self,
        date_from: Optional[dt.date] = None,
        date_to: Optional[dt.date] = None,
    ) -> List[SectorDistributionItem]:
        rows = self.stock_repo.sector_distribution(date_from=date_from, date_to=date_to)
        return [SectorDistributionItem(**row) for row in rows]

    def get_price_timeline(
        self,
        symbol: Optional[str] = None,
        date_from: Optional[dt.date] = None,
        date_to: Optional[dt.date] = None,
    ) -> List[PriceTimelinePoint]:
        rows = self.stock_repo.price_timeline(symbol=symbol, date_from=date_from, date_to=date_to)
        return [PriceTimelinePoint(**row) for row in rows]

    async def get_dashboard_stats(self) -> DashboardStats:
        """
        Four independent aggregates, issued concurrently.

        Each query gets its own session from the Database; without one the
        queries run in turn on the request session.
        """
        queries: List[Callable[[StockRepository], Any]] = [
            StockRepository.count_distinct_symbols,
            StockRepository.count,
            StockRepository.latest_date,
            StockRepository.count_distinct_sectors,
        ]

        if self.database is None:
            results = [query(self.stock_repo) for query in queries]
        else:
            results = await asyncio.gather(
                *(asyncio.to_thread(self._run_isolated, query) for query in queries)
            )

        total_stocks, total_records, latest_date, total_sectors = results
        return DashboardStats(
            total_stocks=total_stocks,
            total_records=total_records,
            latest_date=latest_date,
            total_sectors=total_sectors,
        )

    def _run_isolated(self, query: Callable[[StockRepository], T]) -> T:
        with self.database.session_scope() as session:
            return query(StockRepository(session))
