"""Tests for the history cache freshness policy."""

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from src.data.history_cache import HistoryCache, normalize_ticker
from src.errors import InvalidInput, NoData, ProviderUnavailable

from .conftest import NOW, TODAY, FakeConnector, make_points


class FailingWriteStore:
    """Wraps a store so every upsert fails."""

    def __init__(self, store):
        self.store = store

    def get_range(self, ticker, from_date):
        return self.store.get_range(ticker, from_date)

    def upsert(self, ticker, points):
        raise OperationalError("INSERT INTO stock_data", {}, Exception("database is locked"))


class FailingReadStore(FailingWriteStore):
    """Wraps a store so reads fail and writes succeed."""

    def get_range(self, ticker, from_date):
        raise OperationalError("SELECT FROM stock_data", {}, Exception("no such table"))

    def upsert(self, ticker, points):
        return self.store.upsert(ticker, points)


def build_cache(store, connector, fixed_clock):
    return HistoryCache(store=store, connector=connector, clock=fixed_clock)


class TestNormalizeTicker:
    """Test suite for ticker normalization."""

    def test_uppercases_and_strips(self):
        assert normalize_ticker("  msft ") == "MSFT"

    @pytest.mark.parametrize("ticker", [None, "", "   "])
    def test_rejects_empty(self, ticker):
        with pytest.raises(InvalidInput):
            normalize_ticker(ticker)


class TestFreshness:
    """Test suite for the cache-or-fetch decision."""

    @pytest.mark.parametrize("days,stored,expected_source", [
        (10, 9, "cache"),
        (10, 8, "live"),   # exactly 80% must refetch
        (10, 0, "live"),
        (5, 5, "cache"),
        (5, 4, "live"),
        (30, 25, "cache"),
        (30, 24, "live"),
    ])
    def test_threshold(self, price_store, fixed_clock, days, stored, expected_source):
        """Cache is used only when stored points exceed 80% of requested days."""
        price_store.upsert("AAPL", make_points(stored))
        connector = FakeConnector(points=make_points(days))
        cache = build_cache(price_store, connector, fixed_clock)

        result = cache.get("AAPL", days)

        assert result.source == expected_source
        assert bool(connector.calls) == (expected_source == "live")

    def test_points_before_window_not_counted(self, price_store, fixed_clock):
        """Old rows outside the trailing window do not make the cache fresh."""
        old_end = TODAY - timedelta(days=40)
        price_store.upsert("AAPL", make_points(20, end=old_end))
        connector = FakeConnector(points=make_points(10))
        cache = build_cache(price_store, connector, fixed_clock)

        assert cache.get("AAPL", 10).source == "live"

    def test_other_tickers_not_counted(self, price_store, fixed_clock):
        price_store.upsert("MSFT", make_points(10))
        connector = FakeConnector(points=make_points(10))
        cache = build_cache(price_store, connector, fixed_clock)

        assert cache.get("AAPL", 10).source == "live"

    def test_custom_ratio(self, price_store, fixed_clock):
        price_store.upsert("AAPL", make_points(6))
        cache = HistoryCache(
            store=price_store,
            connector=FakeConnector(error=AssertionError("provider should not be called")),
            fresh_ratio=0.5,
            clock=fixed_clock,
        )
        assert cache.get("AAPL", 10).source == "cache"


class TestCacheHit:
    """Test suite for serving stored points."""

    def test_returns_stored_points_ascending(self, price_store, fixed_clock):
        stored = make_points(10)
        price_store.upsert("AAPL", list(reversed(stored)))
        connector = FakeConnector(error=AssertionError("provider should not be called"))
        cache = build_cache(price_store, connector, fixed_clock)

        result = cache.get("aapl", 10)

        assert result.ticker == "AAPL"
        assert result.historical_data == stored
        assert result.current_price == stored[-1].close

    def test_no_write_on_hit(self, price_store, fixed_clock, monkeypatch):
        price_store.upsert("AAPL", make_points(10))
        writes = []
        monkeypatch.setattr(price_store, "upsert", lambda *args: writes.append(args))
        cache = build_cache(price_store, FakeConnector(), fixed_clock)

        cache.get("AAPL", 10)

        assert writes == []


class TestCacheMiss:
    """Test suite for the fetch path."""

    def test_fetches_window_and_stores(self, price_store, fixed_clock):
        fetched = make_points(7)
        connector = FakeConnector(points=fetched)
        cache = build_cache(price_store, connector, fixed_clock)

        result = cache.get(" aapl", 10)

        assert result.source == "live"
        assert result.ticker == "AAPL"
        assert result.historical_data == fetched
        assert result.current_price == fetched[-1].close

        ticker, from_time, to_time = connector.calls[0]
        assert ticker == "AAPL"
        assert from_time == NOW - timedelta(days=10)
        assert to_time == NOW

        assert price_store.get_range("AAPL", TODAY - timedelta(days=10)) == fetched

    def test_empty_fetch(self, price_store, fixed_clock):
        """Nothing fetched means a current price of 0."""
        cache = build_cache(price_store, FakeConnector(points=[]), fixed_clock)

        result = cache.get("AAPL", 10)

        assert result.historical_data == []
        assert result.current_price == 0

    def test_refetch_is_idempotent(self, price_store, fixed_clock):
        """Repeated misses over the same window never duplicate rows."""
        connector = FakeConnector(points=make_points(5))
        cache = build_cache(price_store, connector, fixed_clock)

        cache.get("AAPL", 10)
        cache.get("AAPL", 10)

        assert len(connector.calls) == 2
        assert len(price_store.get_range("AAPL", TODAY - timedelta(days=10))) == 5

    def test_write_failure_still_returns_series(self, price_store, fixed_clock):
        fetched = make_points(10)
        cache = build_cache(FailingWriteStore(price_store), FakeConnector(points=fetched), fixed_clock)

        result = cache.get("AAPL", 10)

        assert result.source == "live"
        assert result.historical_data == fetched

    def test_read_failure_falls_back_to_provider(self, price_store, fixed_clock):
        fetched = make_points(10)
        cache = build_cache(FailingReadStore(price_store), FakeConnector(points=fetched), fixed_clock)

        result = cache.get("AAPL", 10)

        assert result.source == "live"
        assert price_store.get_range("AAPL", TODAY - timedelta(days=10)) == fetched

    @pytest.mark.parametrize("error", [
        ProviderUnavailable("Failed to fetch stock data. Please verify the ticker symbol."),
        NoData("No data found for this ticker symbol"),
    ])
    def test_provider_errors_propagate(self, price_store, fixed_clock, error):
        cache = build_cache(price_store, FakeConnector(error=error), fixed_clock)

        with pytest.raises(type(error)):
            cache.get("AAPL", 10)


class TestInputValidation:
    """Test suite for argument checks."""

    @pytest.mark.parametrize("ticker", [None, "", "  "])
    def test_missing_ticker(self, price_store, fixed_clock, ticker):
        cache = build_cache(price_store, FakeConnector(), fixed_clock)
        with pytest.raises(InvalidInput):
            cache.get(ticker, 10)

    @pytest.mark.parametrize("days", [0, -1, True])
    def test_bad_days(self, price_store, fixed_clock, days):
        cache = build_cache(price_store, FakeConnector(), fixed_clock)
        with pytest.raises(InvalidInput):
            cache.get("AAPL", days)

    @pytest.mark.parametrize("days", [1.5, "10", 10 ** 7, 10 ** 10])
    def test_days_not_representable(self, price_store, fixed_clock, days):
        """Non-integers and windows reaching past the earliest date are rejected."""
        connector = FakeConnector()
        cache = build_cache(price_store, connector, fixed_clock)
        with pytest.raises(InvalidInput):
            cache.get("AAPL", days)
        assert connector.calls == []
