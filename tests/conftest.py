"""Shared fixtures for the test suite."""

from datetime import date, datetime, timedelta, timezone

import pytest

from src.data.types import PricePoint
from src.storage.prediction_store import PredictionStore
from src.storage.price_store import PriceStore

NOW = datetime(2024, 3, 1, 15, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


def make_points(count, end=TODAY, start_price=100.0, step=1.0):
    """Build `count` consecutive daily points ending on `end`."""
    points = []
    for i in range(count):
        close = start_price + step * i
        points.append(PricePoint(
            date=end - timedelta(days=count - 1 - i),
            open=close - 0.5,
            high=close + 1.0,
            low=close - 1.0,
            close=close,
            volume=1000 + i,
        ))
    return points


class FakeConnector:
    """Stands in for the market data provider."""

    def __init__(self, points=None, error=None):
        self.points = points or []
        self.error = error
        self.calls = []

    def get_daily_history(self, ticker, from_date, to_date=None):
        self.calls.append((ticker, from_date, to_date))
        if self.error is not None:
            raise self.error
        return list(self.points)


@pytest.fixture
def database_url(tmp_path):
    """SQLite database in a temporary directory."""
    return f"sqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def price_store(database_url):
    """Create price store on a temporary database."""
    store = PriceStore(database_url)
    yield store
    store.engine.dispose()


@pytest.fixture
def prediction_store(database_url):
    """Create prediction store on a temporary database."""
    store = PredictionStore(database_url)
    yield store
    store.engine.dispose()


@pytest.fixture
def fixed_clock():
    """Clock pinned to NOW."""
    return lambda: NOW


@pytest.fixture
def ascending_prices():
    """Thirty closes from 100 to 129."""
    return [float(p) for p in range(100, 130)]


@pytest.fixture
def sample_day():
    return date(2024, 1, 1)
