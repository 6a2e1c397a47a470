"""Data module for fetching and caching market data."""

from .types import HistoryResult, PricePoint
from .yahoo_connector import YahooConnector

__all__ = ["HistoryResult", "PricePoint", "YahooConnector"]
