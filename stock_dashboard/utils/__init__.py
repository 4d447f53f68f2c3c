"""
Shared helpers such as logging configuration and market calendar math.
"""

from stock_dashboard.utils.logging import LOGGER, configure_logging, get_logger
from stock_dashboard.utils.market_time import (
    is_after_market_close,
    market_now,
    subtract_months,
    today_in_market,
)

__all__ = [
    "LOGGER",
    "configure_logging",
    "get_logger",
    "is_after_market_close",
    "market_now",
    "subtract_months",
    "today_in_market",
]
