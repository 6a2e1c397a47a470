"""
Stock Predictor - Main Entry Point
==================================
Cached daily stock history and short-horizon trend forecasts.
"""

import argparse
import json
import sys

from loguru import logger

from src.config import settings

# Configure logging
logger.remove()
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level=settings.log_level,
)
logger.add(
    "logs/stock_predictor_{time}.log",
    rotation="10 MB",
    retention="7 days",
    level="DEBUG",
)


def serve():
    """Run the FastAPI server."""
    import uvicorn

    logger.info("Starting Stock Predictor API server...")
    uvicorn.run(
        "src.api.server:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level="info",
    )


def get_history_cache():
    """Build the history cache from settings."""
    from src.data.history_cache import HistoryCache
    from src.data.yahoo_connector import YahooConnector
    from src.storage.price_store import PriceStore

    return HistoryCache(
        store=PriceStore(settings.database_url),
        connector=YahooConnector(
            base_url=settings.provider_base_url,
            timeout=settings.provider_timeout,
        ),
        fresh_ratio=settings.cache_fresh_ratio,
    )


def history(ticker: str, days: int):
    """Fetch history through the cache and print it as JSON."""
    result = get_history_cache().get(ticker, days)
    logger.info(f"{result.ticker}: {len(result.historical_data)} points ({result.source})")
    print(json.dumps(result.to_dict(), indent=2))


def predict(ticker: str, days: int):
    """Forecast from stored history and print it as JSON."""
    from src.data.history_cache import normalize_ticker
    from src.models.linear_trend import ForecastResult, LinearTrendForecaster
    from src.storage.price_store import PriceStore

    ticker = normalize_ticker(ticker)
    store = PriceStore(settings.database_url)
    closes = store.get_closes(ticker, limit=settings.prediction_history_limit)

    forecasts = LinearTrendForecaster().predict(closes, days)
    result = ForecastResult(
        ticker=ticker,
        prediction_days=days,
        predictions=forecasts,
        model=settings.model_version,
    )
    print(json.dumps(result.to_dict(), indent=2))


def export(ticker: str, days: int, fmt: str, predict_days: int = 0, output: str = "."):
    """Export history, and optionally a forecast, to a file."""
    from src.features.price_stats import PriceStats, format_volume
    from src.models.linear_trend import LinearTrendForecaster
    from src.storage.exporter import export_data

    result = get_history_cache().get(ticker, days)
    forecasts = None
    if predict_days:
        forecasts = LinearTrendForecaster().predict(result.closes, predict_days)

    if result.historical_data:
        stats = PriceStats.from_series(result.historical_data, forecasts)
        summary = stats.to_dict()
        summary["average_volume"] = format_volume(stats.average_volume)
        logger.info(f"{result.ticker} summary: {summary}")

    path = export_data(result.ticker, result.historical_data, forecasts, fmt=fmt, output_dir=output)
    print(path)


def main():
    """Main entry point."""
    from src.errors import StockPredictorError

    parser = argparse.ArgumentParser(description="Stock Predictor")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # serve command
    subparsers.add_parser("serve", help="Run the API server")

    # history command
    history_parser = subparsers.add_parser("history", help="Fetch price history")
    history_parser.add_argument("ticker", help="Ticker symbol")
    history_parser.add_argument("--days", type=int, default=settings.default_history_days, help="Days of history")

    # predict command
    predict_parser = subparsers.add_parser("predict", help="Forecast from stored history")
    predict_parser.add_argument("ticker", help="Ticker symbol")
    predict_parser.add_argument("--days", type=int, default=settings.default_prediction_days, help="Days to forecast (1-90)")

    # export command
    export_parser = subparsers.add_parser("export", help="Export history to CSV or JSON")
    export_parser.add_argument("ticker", help="Ticker symbol")
    export_parser.add_argument("--days", type=int, default=settings.default_history_days, help="Days of history")
    export_parser.add_argument("--format", dest="fmt", choices=["csv", "json"], default="csv")
    export_parser.add_argument("--predict-days", type=int, default=0, help="Include a forecast of N days")
    export_parser.add_argument("--output", default=".", help="Output directory")

    args = parser.parse_args()

    try:
        if args.command == "serve":
            serve()
        elif args.command == "history":
            history(args.ticker, args.days)
        elif args.command == "predict":
            predict(args.ticker, args.days)
        elif args.command == "export":
            export(args.ticker, args.days, args.fmt, args.predict_days, args.output)
        else:
            parser.print_help()
    except StockPredictorError as e:
        logger.error(e.message)
        sys.exit(1)


if __name__ == "__main__":
    main()
