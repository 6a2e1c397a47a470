"""Forecasting models module."""

from .linear_trend import Forecast, ForecastResult, LinearTrendForecaster

__all__ = ["Forecast", "ForecastResult", "LinearTrendForecaster"]
