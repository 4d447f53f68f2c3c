"""
Daily stock quote model
"""
import datetime as dt

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from stock_dashboard.models.base import Base, utcnow

# Columns an upsert overwrites when (symbol, date) already exists
UPSERT_MUTABLE_COLUMNS = (
    "open_price",
    "high_price",
    "low_price",
    "close_price",
    "volume",
    "change",
    "change_percent",
    "is_final",
)


class Stock(Base):
    """One row per symbol per trading date"""

    __tablename__ = "stocks"
    __table_args__ = (
        UniqueConstraint("symbol", "date", name="uq_stocks_symbol_date"),
        CheckConstraint("high_price >= low_price", name="ck_stocks_high_gte_low"),
        Index("ix_stocks_date", "date"),
        Index("ix_stocks_sector", "sector"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(String(5), index=True)
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sector: Mapped[str | None] = mapped_column(String(100), nullable=True)
    industry: Mapped[str | None] = mapped_column(String(100), nullable=True)

    open_price: Mapped[float] = mapped_column(Numeric(12, 4, asdecimal=False))
    high_price: Mapped[float] = mapped_column(Numeric(12, 4, asdecimal=False))
    low_price: Mapped[float] = mapped_column(Numeric(12, 4, asdecimal=False))
    close_price: Mapped[float] = mapped_column(Numeric(12, 4, asdecimal=False))
    volume: Mapped[int] = mapped_column(BigInteger, default=0)
    change: Mapped[float] = mapped_column(Numeric(12, 4, asdecimal=False), default=0)
    change_percent: Mapped[float] = mapped_column(Numeric(10, 4, asdecimal=False), default=0)

    date: Mapped[dt.date] = mapped_column(Date)
    # True once end-of-day figures are settled; intraday rows stay False
    is_final: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<Stock {self.symbol} {self.date} close={self.close_price}>"
