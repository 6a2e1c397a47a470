"""
Price History Storage Module
============================
SQL storage for daily price points keyed on (ticker, date).
"""

from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional

from loguru import logger
from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Numeric,
    String,
    create_engine,
)
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.orm import declarative_base, sessionmaker

from ..data.types import PricePoint

Base = declarative_base()


class PriceRecord(Base):
    """SQLAlchemy model for daily price rows."""

    __tablename__ = "stock_data"

    ticker = Column(String(20), primary_key=True)
    date = Column(Date, primary_key=True, index=True)
    open = Column(Numeric(18, 6), nullable=False, default=0)
    high = Column(Numeric(18, 6), nullable=False, default=0)
    low = Column(Numeric(18, 6), nullable=False, default=0)
    close = Column(Numeric(18, 6), nullable=False, default=0)
    volume = Column(Numeric(20, 0), nullable=False, default=0)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    def to_point(self) -> PricePoint:
        """Re-parse stored decimals into a PricePoint."""
        return PricePoint(
            date=self.date,
            open=float(self.open),
            high=float(self.high),
            low=float(self.low),
            close=float(self.close),
            volume=int(self.volume),
        )


class PriceStore:
    """
    Stores and retrieves daily price history.

    Writes go through an insert that ignores rows already present for the
    same (ticker, date), so repeated or concurrent refreshes never duplicate
    or overwrite stored points.
    """

    BATCH_SIZE = 100

    def __init__(self, database_url: str = "sqlite:///stock_data.db"):
        """
        Initialize price store.

        Args:
            database_url: SQLAlchemy database URL
        """
        self.database_url = database_url
        self.engine = create_engine(database_url, echo=False)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine)
        logger.info(f"Price store initialized: {database_url}")

    def get_range(self, ticker: str, from_date: date) -> List[PricePoint]:
        """
        Get stored points on or after from_date.

        Args:
            ticker: Uppercased ticker symbol
            from_date: Earliest date to include

        Returns:
            List of PricePoint in ascending date order
        """
        with self.SessionLocal() as session:
            records = (
                session.query(PriceRecord)
                .filter(
                    PriceRecord.ticker == ticker,
                    PriceRecord.date >= from_date,
                )
                .order_by(PriceRecord.date.asc())
                .all()
            )
            return [record.to_point() for record in records]

    def get_closes(self, ticker: str, limit: int = 365) -> List[float]:
        """
        Get the most recent closing prices.

        Args:
            ticker: Uppercased ticker symbol
            limit: Maximum number of closes to return

        Returns:
            Up to `limit` closes in ascending date order
        """
        with self.SessionLocal() as session:
            rows = (
                session.query(PriceRecord.close)
                .filter(PriceRecord.ticker == ticker)
                .order_by(PriceRecord.date.desc())
                .limit(limit)
                .all()
            )
        return [float(row.close) for row in reversed(rows)]

    def insert_statement(self, rows: List[Dict], dialect: Optional[str] = None):
        """
        Build an insert that skips rows whose (ticker, date) is already stored.

        Args:
            rows: Column dicts for one batch
            dialect: Dialect name (defaults to the engine's)

        Raises:
            ValueError: If the dialect has no conflict-ignoring insert
        """
        dialect = dialect or self.engine.dialect.name
        if dialect == "sqlite":
            return sqlite.insert(PriceRecord).values(rows).on_conflict_do_nothing(
                index_elements=["ticker", "date"],
            )
        if dialect == "postgresql":
            return postgresql.insert(PriceRecord).values(rows).on_conflict_do_nothing(
                index_elements=["ticker", "date"],
            )
        if dialect in ("mysql", "mariadb"):
            return mysql.insert(PriceRecord).values(rows).prefix_with("IGNORE")
        raise ValueError(f"Unsupported database dialect: {dialect}")

    def upsert(self, ticker: str, points: Iterable[PricePoint]) -> int:
        """
        Insert points, ignoring any (ticker, date) already stored.

        When the same date appears more than once in `points`, the first
        occurrence wins.

        Args:
            ticker: Uppercased ticker symbol
            points: Points to store

        Returns:
            Number of distinct rows submitted
        """
        rows = {}
        for point in points:
            rows.setdefault(point.date, {
                "ticker": ticker,
                "date": point.date,
                "open": point.open,
                "high": point.high,
                "low": point.low,
                "close": point.close,
                "volume": point.volume,
            })
        rows = list(rows.values())
        if not rows:
            return 0

        with self.SessionLocal() as session:
            # Batched to stay under SQLite's bound-parameter limit
            for i in range(0, len(rows), self.BATCH_SIZE):
                session.execute(self.insert_statement(rows[i:i + self.BATCH_SIZE]))
            session.commit()

        logger.debug(f"Upserted {len(rows)} price rows for {ticker}")
        return len(rows)
