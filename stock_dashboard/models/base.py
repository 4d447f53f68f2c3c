"""
Declarative base and shared column helpers
"""
from datetime import datetime, timezone

from stock_dashboard.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


__all__ = ["Base", "utcnow"]
