"""
Yahoo Finance Connector Module
==============================
Fetches daily OHLCV history from the Yahoo Finance chart API.
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from loguru import logger

from ..errors import NoData, ProviderUnavailable
from .types import PricePoint

FETCH_FAILED_MESSAGE = "Failed to fetch stock data. Please verify the ticker symbol."
NO_DATA_MESSAGE = "No data found for this ticker symbol"


def _number_at(values: Optional[List[Any]], index: int) -> float:
    """Return values[index] as float, substituting 0 for anything missing."""
    if not values or index >= len(values):
        return 0.0
    value = values[index]
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


class YahooConnector:
    """
    Yahoo Finance chart API connector for daily price history.

    The chart endpoint answers with parallel arrays (timestamps plus
    open/high/low/close/volume); this connector zips them into PricePoints.
    """

    DEFAULT_URL = "https://query1.finance.yahoo.com/v8/finance/chart"

    def __init__(
        self,
        base_url: str = DEFAULT_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize Yahoo Finance connector.

        Args:
            base_url: Chart API base URL, ticker is appended as a path segment
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used to stub the provider in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def get_daily_history(
        self,
        ticker: str,
        from_date: datetime,
        to_date: Optional[datetime] = None,
    ) -> List[PricePoint]:
        """
        Fetch daily OHLCV points for a ticker.

        Args:
            ticker: Uppercased ticker symbol
            from_date: Start of the range
            to_date: End of the range (defaults to now)

        Returns:
            List of PricePoint in provider order (ascending by date)

        Raises:
            ProviderUnavailable: On network errors or a non-success status
            NoData: If the response has no chart result
        """
        to_date = to_date or datetime.now(timezone.utc)
        params = {
            "period1": int(from_date.timestamp()),
            "period2": int(to_date.timestamp()),
            "interval": "1d",
        }

        logger.debug(f"Fetching {ticker} daily history from {from_date.date()} to {to_date.date()}")

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.get(
                    f"{self.base_url}/{quote(ticker, safe='')}",
                    params=params,
                    headers={"User-Agent": "Mozilla/5.0"},
                )
        except httpx.RequestError as e:
            logger.error(f"Network error fetching {ticker}: {e}")
            raise ProviderUnavailable(FETCH_FAILED_MESSAGE) from e

        if response.status_code != 200:
            logger.error(f"Failed to fetch {ticker}: {response.status_code} - {response.text[:200]}")
            raise ProviderUnavailable(FETCH_FAILED_MESSAGE)

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Malformed provider response for {ticker}: {e}")
            raise ProviderUnavailable(FETCH_FAILED_MESSAGE) from e

        points = self._parse_chart(data)
        logger.info(f"Fetched {len(points)} daily bars for {ticker}")
        return points

    def _parse_chart(self, data: Dict) -> List[PricePoint]:
        """Parse chart response into PricePoints."""
        chart = data.get("chart") if isinstance(data, dict) else None
        results = chart.get("result") if isinstance(chart, dict) else None
        if not isinstance(results, list) or not results or not isinstance(results[0], dict):
            raise NoData(NO_DATA_MESSAGE)

        result = results[0]
        timestamps = result.get("timestamp") or []
        if not timestamps:
            return []

        indicators = result.get("indicators")
        quotes = indicators.get("quote") if isinstance(indicators, dict) else None
        if not isinstance(quotes, list) or not quotes or not isinstance(quotes[0], dict):
            raise NoData(NO_DATA_MESSAGE)
        bars = quotes[0]

        points = []
        for i, ts in enumerate(timestamps):
            points.append(PricePoint(
                date=datetime.fromtimestamp(ts, tz=timezone.utc).date(),
                open=_number_at(bars.get("open"), i),
                high=_number_at(bars.get("high"), i),
                low=_number_at(bars.get("low"), i),
                close=_number_at(bars.get("close"), i),
                volume=int(_number_at(bars.get("volume"), i)),
            ))

        return points
