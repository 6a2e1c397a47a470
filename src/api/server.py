"""
FastAPI Server Module
=====================
REST API for cached stock history and trend forecasts.
"""

from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from ..config import settings
from ..data.history_cache import HistoryCache, normalize_ticker
from ..data.yahoo_connector import YahooConnector
from ..errors import (
    InsufficientData,
    InvalidInput,
    NoData,
    ProviderUnavailable,
    StockPredictorError,
)
from ..models.linear_trend import ForecastResult, LinearTrendForecaster
from ..storage.prediction_store import PredictionStore
from ..storage.price_store import PriceStore

VERSION = "1.0.0"

# Global instances
price_store: Optional[PriceStore] = None
prediction_store: Optional[PredictionStore] = None
history_cache: Optional[HistoryCache] = None
forecaster = LinearTrendForecaster()

ERROR_STATUS = {
    InvalidInput: status.HTTP_400_BAD_REQUEST,
    InsufficientData: status.HTTP_400_BAD_REQUEST,
    NoData: status.HTTP_404_NOT_FOUND,
    ProviderUnavailable: status.HTTP_502_BAD_GATEWAY,
}


class PricePointModel(BaseModel):
    """Single day of price history."""
    date: str
    open: float
    high: float
    low: float
    close: float
    volume: int


class HistoryResponse(BaseModel):
    """Response model for stock history."""
    ticker: str
    current_price: float
    historical_data: List[PricePointModel]
    source: str


class ForecastModel(BaseModel):
    """Single forecast step."""
    date: str
    predicted_price: float
    confidence_lower: float
    confidence_upper: float


class PredictionResponse(BaseModel):
    """Response model for forecasts."""
    ticker: str
    prediction_days: int
    predictions: List[ForecastModel]
    model: str
    disclaimer: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database_connected: bool
    timestamp: str
    version: str = VERSION


def get_price_store() -> PriceStore:
    """Get price store instance."""
    if price_store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Price store not initialized",
        )
    return price_store


def get_prediction_store() -> Optional[PredictionStore]:
    """Get prediction store instance, None when forecasts are not persisted."""
    return prediction_store


def get_history_cache() -> HistoryCache:
    """Get history cache instance."""
    if history_cache is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="History cache not initialized",
        )
    return history_cache


def get_forecaster() -> LinearTrendForecaster:
    """Get forecaster instance."""
    return forecaster


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global price_store, prediction_store, history_cache

    logger.info("Starting Stock Predictor API...")

    try:
        price_store = PriceStore(settings.database_url)
        prediction_store = PredictionStore(settings.database_url)
        history_cache = HistoryCache(
            store=price_store,
            connector=YahooConnector(
                base_url=settings.provider_base_url,
                timeout=settings.provider_timeout,
            ),
            fresh_ratio=settings.cache_fresh_ratio,
        )
        logger.info("History cache initialized")
    except SQLAlchemyError as e:
        logger.error(f"Error during startup: {e}")

    yield  # Application runs here

    logger.info("Shutting down Stock Predictor API...")
    if price_store:
        price_store.engine.dispose()
    if prediction_store:
        prediction_store.engine.dispose()


# Create FastAPI app
app = FastAPI(
    title="Stock Predictor API",
    description="Cached daily stock history and linear trend forecasts",
    version=VERSION,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Client-Info", "Apikey"],
)


@app.exception_handler(StockPredictorError)
async def handle_domain_error(request: Request, exc: StockPredictorError):
    """Map domain errors to JSON error responses."""
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.warning(f"{request.url.path} failed ({status_code}): {exc.message}")
    return JSONResponse(status_code=status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    """Report malformed query parameters as invalid input."""
    fields = [str(error["loc"][-1]) for error in exc.errors() if error.get("loc")]
    message = f"Invalid value for '{fields[0]}'" if fields else "Invalid request"
    logger.warning(f"{request.url.path} failed (400): {message}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    """Surface anything unexpected as a generic internal error."""
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        database_connected=price_store is not None,
        timestamp=datetime.now().isoformat(),
    )


@app.get("/stock-data", response_model=HistoryResponse)
def get_stock_data(
    ticker: Optional[str] = None,
    days: int = Query(default=settings.default_history_days),
    cache: HistoryCache = Depends(get_history_cache),
):
    """
    Get daily price history for a ticker.

    Served from the store when enough recent points are cached,
    otherwise fetched live and cached.
    """
    result = cache.get(ticker, days)
    return result.to_dict()


@app.get("/predict-stock", response_model=PredictionResponse)
def predict_stock(
    ticker: Optional[str] = None,
    days: int = Query(default=settings.default_prediction_days),
    store: PriceStore = Depends(get_price_store),
    predictions_store: Optional[PredictionStore] = Depends(get_prediction_store),
    model: LinearTrendForecaster = Depends(get_forecaster),
):
    """
    Forecast closing prices for the next `days` calendar days.

    Uses the most recent stored closes, so history must have been
    fetched through /stock-data first.
    """
    ticker = normalize_ticker(ticker)
    if not model.MIN_HORIZON <= days <= model.MAX_HORIZON:
        raise InvalidInput(f"Days must be between {model.MIN_HORIZON} and {model.MAX_HORIZON}")

    closes = store.get_closes(ticker, limit=settings.prediction_history_limit)
    if len(closes) < model.MIN_HISTORY:
        raise InsufficientData("Insufficient historical data. Please fetch stock data first.")

    today = date.today()
    forecasts = model.predict(closes, days, today=today)

    if predictions_store is not None:
        try:
            predictions_store.save_forecasts(
                ticker,
                forecasts,
                model_version=settings.model_version,
                prediction_date=today,
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to store forecasts for {ticker}: {e}")

    logger.info(f"Generated {days}-day forecast for {ticker} from {len(closes)} closes")

    return ForecastResult(
        ticker=ticker,
        prediction_days=days,
        predictions=forecasts,
        model=settings.model_version,
    ).to_dict()
