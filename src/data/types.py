"""Shared containers for daily price history."""

from dataclasses import dataclass, field
from datetime import date
from typing import List


@dataclass(frozen=True)
class PricePoint:
    """One trading day of OHLCV data for a ticker."""
    date: date
    open: float
    high: float
    low: float
    close: float
    volume: int

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "date": self.date.isoformat(),
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }


@dataclass
class HistoryResult:
    """Price history returned by the history cache."""
    ticker: str
    historical_data: List[PricePoint] = field(default_factory=list)
    source: str = "live"  # "cache" or "live"

    @property
    def current_price(self) -> float:
        """Close of the most recent point, 0 when the series is empty."""
        if not self.historical_data:
            return 0.0
        return self.historical_data[-1].close

    @property
    def closes(self) -> List[float]:
        return [point.close for point in self.historical_data]

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "ticker": self.ticker,
            "current_price": self.current_price,
            "historical_data": [point.to_dict() for point in self.historical_data],
            "source": self.source,
        }
