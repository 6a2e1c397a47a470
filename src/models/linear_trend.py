"""
Linear Trend Forecaster Module
==============================
Short-horizon price forecast from a least-squares trend over the most recent
closes, with a confidence band that widens with forecast distance.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional, Sequence

import numpy as np
from loguru import logger

from ..errors import InsufficientData, InvalidInput

MODEL_VERSION = "linear_regression_v1"
DISCLAIMER = (
    "These predictions are for educational purposes only and should not be "
    "used for actual trading decisions."
)


@dataclass(frozen=True)
class Forecast:
    """Single forecast step."""
    date: date
    predicted_price: float
    confidence_lower: float
    confidence_upper: float

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "date": self.date.isoformat(),
            "predicted_price": self.predicted_price,
            "confidence_lower": self.confidence_lower,
            "confidence_upper": self.confidence_upper,
        }


@dataclass
class ForecastResult:
    """Forecast returned to callers."""
    ticker: str
    prediction_days: int
    predictions: List[Forecast] = field(default_factory=list)
    model: str = MODEL_VERSION
    disclaimer: str = DISCLAIMER

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "ticker": self.ticker,
            "prediction_days": self.prediction_days,
            "predictions": [p.to_dict() for p in self.predictions],
            "model": self.model,
            "disclaimer": self.disclaimer,
        }


@dataclass(frozen=True)
class TrendFit:
    """Least-squares fit over the trailing window."""
    window_size: int
    slope: float
    intercept: float
    mean: float
    std_dev: float


class LinearTrendForecaster:
    """
    Forecaster continuing a linear trend fitted to the trailing window.

    The forecast works as follows:
    1. Take the last min(30, n // 3) closes
    2. Fit slope and intercept against their index with closed-form OLS
    3. Extend the line past the window, clamped to +/-15% of the last close
    4. Band half-width is 1.96 window standard deviations, growing up to 1.5x
       at the final step
    """

    MIN_HISTORY = 10
    MAX_WINDOW = 30
    MIN_HORIZON = 1
    MAX_HORIZON = 90
    MAX_CHANGE = 0.15
    Z_SCORE = 1.96  # ~95% normal interval
    BAND_GROWTH = 0.5

    def fit(self, prices: Sequence[float]) -> TrendFit:
        """
        Fit the trend over the trailing window.

        Args:
            prices: Closing prices in ascending date order

        Returns:
            TrendFit for the window

        Raises:
            InsufficientData: If fewer than MIN_HISTORY prices are given
        """
        n = len(prices)
        if n < self.MIN_HISTORY:
            raise InsufficientData("Insufficient historical data for prediction")

        w = min(self.MAX_WINDOW, n // 3)
        window = np.asarray(prices[-w:], dtype=float)
        x = np.arange(w, dtype=float)

        sum_x = float(x.sum())
        sum_y = float(window.sum())
        sum_xy = float((x * window).sum())
        sum_x2 = float((x * x).sum())

        slope = (w * sum_xy - sum_x * sum_y) / (w * sum_x2 - sum_x * sum_x)
        intercept = (sum_y - slope * sum_x) / w

        mean = sum_y / w
        variance = float(((window - mean) ** 2).sum()) / w

        return TrendFit(
            window_size=w,
            slope=slope,
            intercept=intercept,
            mean=mean,
            std_dev=float(np.sqrt(variance)),
        )

    def predict(
        self,
        prices: Sequence[float],
        horizon_days: int,
        today: Optional[date] = None,
    ) -> List[Forecast]:
        """
        Generate one forecast per calendar day after today.

        Args:
            prices: Closing prices in ascending date order
            horizon_days: Number of days to forecast (1-90)
            today: Evaluation date (defaults to the current date)

        Returns:
            List of Forecast, one per day

        Raises:
            InvalidInput: If horizon_days is not an integer in 1-90
            InsufficientData: If fewer than 10 prices are given
        """
        if (
            isinstance(horizon_days, bool)
            or not isinstance(horizon_days, int)
            or not self.MIN_HORIZON <= horizon_days <= self.MAX_HORIZON
        ):
            raise InvalidInput(
                f"Days must be between {self.MIN_HORIZON} and {self.MAX_HORIZON}"
            )

        trend = self.fit(prices)
        today = today or date.today()

        last_price = float(prices[-1])
        lower_limit = last_price * (1 - self.MAX_CHANGE)
        upper_limit = last_price * (1 + self.MAX_CHANGE)

        forecasts = []
        for i in range(1, horizon_days + 1):
            raw = trend.slope * (trend.window_size + i) + trend.intercept
            clamped = max(lower_limit, min(upper_limit, raw))

            multiplier = 1 + (i / horizon_days) * self.BAND_GROWTH
            band = trend.std_dev * multiplier * self.Z_SCORE

            forecasts.append(Forecast(
                date=today + timedelta(days=i),
                predicted_price=max(0.0, clamped),
                confidence_lower=max(0.0, clamped - band),
                confidence_upper=clamped + band,
            ))

        logger.debug(
            f"Forecast {horizon_days} days from {len(prices)} closes "
            f"(window={trend.window_size}, slope={trend.slope:.4f}, std={trend.std_dev:.4f})"
        )
        return forecasts
