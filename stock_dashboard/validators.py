"""
Input validation for stock payloads and list queries

Stock payload checks collect every violated rule instead of stopping at the
first one, so a form can show all problems at once.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, List, Mapping, Optional

SYMBOL_PATTERN = re.compile(r"^[A-Z]{1,5}$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

SORTABLE_COLUMNS = (
    "date",
    "symbol",
    "close_price",
    "volume",
    "change_percent",
    "updated_at",
)
DEFAULT_SORT_COLUMN = "updated_at"
DEFAULT_SORT_ORDER = "desc"

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100

PRICE_FIELDS = ("open_price", "high_price", "low_price", "close_price")
PRICE_RANGE_ERROR = "high_price must be greater than or equal to low_price"


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_valid_symbol(symbol: Any) -> bool:
    """1-5 uppercase letters."""
    return isinstance(symbol, str) and SYMBOL_PATTERN.match(symbol) is not None


def is_valid_date(value: Any) -> bool:
    """YYYY-MM-DD that names a real calendar day."""
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_valid_price(price: Any) -> bool:
    return _is_number(price) and math.isfinite(price) and price > 0


def is_valid_volume(volume: Any) -> bool:
    if isinstance(volume, bool):
        return False
    if isinstance(volume, int):
        return volume >= 0
    if isinstance(volume, float):
        return math.isfinite(volume) and volume.is_integer() and volume >= 0
    return False


def check_price_range(high_price: Any, low_price: Any) -> Optional[str]:
    """Cross-field rule; returns the error message or None."""
    if _is_number(high_price) and _is_number(low_price) and high_price < low_price:
        return PRICE_RANGE_ERROR
    return None


def validate_stock_data(data: Mapping[str, Any]) -> ValidationResult:
    """Validate a stock payload for creation, collecting all errors."""
    errors: List[str] = []

    if not is_valid_symbol(data.get("symbol")):
        errors.append("Invalid symbol: must be 1-5 uppercase letters")

    if not is_valid_date(data.get("date")):
        errors.append("Invalid date: must be YYYY-MM-DD format")

    for price_field in PRICE_FIELDS:
        if not is_valid_price(data.get(price_field)):
            errors.append(f"Invalid {price_field}: must be positive number")

    if not is_valid_volume(data.get("volume")):
        errors.append("Invalid volume: must be non-negative integer")

    range_error = check_price_range(data.get("high_price"), data.get("low_price"))
    if range_error:
        errors.append(range_error)

    return ValidationResult(valid=not errors, errors=errors)


def _parse_int(value: Any) -> Optional[int]:
    """Lenient integer parse: leading digits of a string, None otherwise."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def validate_pagination(
    page: Any,
    limit: Any,
    default_limit: int = DEFAULT_PAGE_SIZE,
    max_limit: int = MAX_PAGE_SIZE,
) -> Pagination:
    """
    Coerce raw page/limit input into a usable window.

    Missing, non-numeric or zero values fall back to the defaults; the page is
    then floored at 1 and the limit clamped into [1, max_limit].
    """
    parsed_page = _parse_int(page) or 1
    parsed_limit = _parse_int(limit) or default_limit
    return Pagination(
        page=max(1, parsed_page),
        limit=min(max_limit, max(1, parsed_limit)),
    )


def validate_sort_order(order: Any) -> str:
    normalized = str(order).lower() if order is not None else ""
    return normalized if normalized in ("asc", "desc") else DEFAULT_SORT_ORDER


def validate_sort_column(column: Any) -> str:
    return column if column in SORTABLE_COLUMNS else DEFAULT_SORT_COLUMN
