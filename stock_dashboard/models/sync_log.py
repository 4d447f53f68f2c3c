"""
Sync history model
"""
import datetime as dt

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from stock_dashboard.models.base import Base, utcnow


class SyncLog(Base):
    """One immutable row per sync invocation"""

    __tablename__ = "sync_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sync_type: Mapped[str] = mapped_column(String(16))  # SyncType value
    records_synced: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(16), index=True)  # SyncStatus value
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    synced_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
