"""
Price Statistics Module
=======================
Summary figures over a price history and, optionally, its forecast.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from ..data.types import PricePoint
from ..models.linear_trend import Forecast


@dataclass
class PriceStats:
    """Summary statistics for a price series."""

    current_price: float
    first_price: float
    price_change: float
    price_change_percent: float
    period_high: float
    period_low: float
    average_volume: int
    predicted_price: Optional[float] = None
    predicted_change: Optional[float] = None
    predicted_change_percent: Optional[float] = None

    @classmethod
    def from_series(
        cls,
        series: Sequence[PricePoint],
        predictions: Optional[Sequence[Forecast]] = None,
    ) -> "PriceStats":
        """
        Calculate statistics for a series.

        Args:
            series: Price points in ascending date order
            predictions: Optional forecast following the series

        Returns:
            PriceStats; percentages are 0 when the reference price is 0
        """
        if not series:
            raise ValueError("Cannot compute statistics for an empty series")

        current = series[-1].close
        first = series[0].close or current
        change = current - first

        stats = cls(
            current_price=current,
            first_price=first,
            price_change=change,
            price_change_percent=(change / first * 100) if first else 0.0,
            period_high=max(p.high for p in series),
            period_low=min(p.low for p in series),
            average_volume=round(sum(p.volume for p in series) / len(series)),
        )

        if predictions:
            final = predictions[-1].predicted_price
            stats.predicted_price = final
            stats.predicted_change = final - current
            stats.predicted_change_percent = (
                (final - current) / current * 100 if current else 0.0
            )

        return stats

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        result = {
            "current_price": round(self.current_price, 2),
            "first_price": round(self.first_price, 2),
            "price_change": round(self.price_change, 2),
            "price_change_percent": round(self.price_change_percent, 2),
            "period_high": round(self.period_high, 2),
            "period_low": round(self.period_low, 2),
            "average_volume": self.average_volume,
        }
        if self.predicted_price is not None:
            result["predicted_price"] = round(self.predicted_price, 2)
            result["predicted_change"] = round(self.predicted_change, 2)
            result["predicted_change_percent"] = round(self.predicted_change_percent, 2)
        return result


def format_volume(value: float) -> str:
    """Format a volume with a K/M/B suffix."""
    for threshold, suffix in ((1e9, "B"), (1e6, "M"), (1e3, "K")):
        if value >= threshold:
            return f"{value / threshold:.2f}{suffix}"
    return str(int(value))
