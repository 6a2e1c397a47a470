"""
History Cache Module
====================
Serves daily price history from the store when it is fresh enough, otherwise
refreshes it from the market data provider.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from ..errors import InvalidInput
from ..storage.price_store import PriceStore
from .types import HistoryResult
from .yahoo_connector import YahooConnector


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_ticker(ticker: Optional[str]) -> str:
    """Strip and uppercase a ticker, rejecting empty input."""
    normalized = (ticker or "").strip().upper()
    if not normalized:
        raise InvalidInput("Ticker symbol is required")
    return normalized


class HistoryCache:
    """
    Read-through cache of daily price history.

    Stored points count as fresh when there are more than
    `fresh_ratio * days` of them inside the requested window; the ratio
    leaves room for weekends and holidays, which have no trading data.
    """

    def __init__(
        self,
        store: PriceStore,
        connector: YahooConnector,
        fresh_ratio: float = 0.8,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """
        Initialize history cache.

        Args:
            store: Price storage backend
            connector: Market data provider connector
            fresh_ratio: Share of requested days that must be stored to serve from cache
            clock: Returns the current UTC time
        """
        self.store = store
        self.connector = connector
        self.fresh_ratio = fresh_ratio
        self._clock = clock

    def get(self, ticker: str, days: int) -> HistoryResult:
        """
        Get the trailing `days` of history for a ticker.

        Args:
            ticker: Ticker symbol (case-insensitive)
            days: Calendar days of history to cover

        Returns:
            HistoryResult with source "cache" or "live"

        Raises:
            InvalidInput: If ticker is empty or days is not a positive integer
                reaching back past the earliest representable date
            ProviderUnavailable: If the provider cannot be reached
            NoData: If the provider has no data for the ticker
        """
        ticker = normalize_ticker(ticker)
        if isinstance(days, bool) or not isinstance(days, int) or days < 1:
            raise InvalidInput("Days must be a positive integer")

        now = self._clock()
        try:
            from_time = now - timedelta(days=days)
        except OverflowError as e:
            raise InvalidInput("Days out of range") from e

        try:
            stored = self.store.get_range(ticker, from_time.date())
        except SQLAlchemyError as e:
            logger.error(f"Database error reading {ticker}: {e}")
            stored = []

        if len(stored) > days * self.fresh_ratio:
            logger.info(f"Cache hit for {ticker}: {len(stored)} points over {days} days")
            return HistoryResult(ticker=ticker, historical_data=stored, source="cache")

        logger.info(
            f"Cache miss for {ticker}: {len(stored)} points over {days} days, fetching from provider"
        )
        points = self.connector.get_daily_history(ticker, from_time, now)

        if points:
            try:
                self.store.upsert(ticker, points)
            except SQLAlchemyError as e:
                logger.error(f"Failed to cache {len(points)} points for {ticker}: {e}")

        return HistoryResult(ticker=ticker, historical_data=points, source="live")
