"""
Prediction Storage Module
=========================
SQL storage for generated forecasts.
"""

from datetime import date, datetime, timezone
from typing import List, Optional, Sequence

from loguru import logger
from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    Integer,
    String,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker

from ..models.linear_trend import MODEL_VERSION, Forecast

Base = declarative_base()


class PredictionRecord(Base):
    """SQLAlchemy model for forecast records."""

    __tablename__ = "predictions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ticker = Column(String(20), index=True)
    prediction_date = Column(Date, index=True)  # Day the forecast was made
    target_date = Column(Date)
    predicted_price = Column(Float)
    confidence_lower = Column(Float)
    confidence_upper = Column(Float)
    model_version = Column(String(50), default=MODEL_VERSION)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    def to_forecast(self) -> Forecast:
        return Forecast(
            date=self.target_date,
            predicted_price=self.predicted_price,
            confidence_lower=self.confidence_lower,
            confidence_upper=self.confidence_upper,
        )


class PredictionStore:
    """
    Stores and retrieves forecast history.

    Used for:
    - Forecast logging
    - Comparing forecasts made on different days
    """

    def __init__(self, database_url: str = "sqlite:///stock_data.db"):
        """
        Initialize prediction store.

        Args:
            database_url: SQLAlchemy database URL
        """
        self.database_url = database_url
        self.engine = create_engine(database_url, echo=False)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine)
        logger.info(f"Prediction store initialized: {database_url}")

    def save_forecasts(
        self,
        ticker: str,
        forecasts: Sequence[Forecast],
        model_version: str = MODEL_VERSION,
        prediction_date: Optional[date] = None,
    ) -> int:
        """
        Save a batch of forecasts.

        Args:
            ticker: Ticker symbol
            forecasts: Forecast steps to store
            model_version: Model identifier
            prediction_date: Day the forecast was made (defaults to today)

        Returns:
            Number of records saved
        """
        prediction_date = prediction_date or date.today()
        with self.SessionLocal() as session:
            session.add_all(
                PredictionRecord(
                    ticker=ticker,
                    prediction_date=prediction_date,
                    target_date=forecast.date,
                    predicted_price=forecast.predicted_price,
                    confidence_lower=forecast.confidence_lower,
                    confidence_upper=forecast.confidence_upper,
                    model_version=model_version,
                )
                for forecast in forecasts
            )
            session.commit()

        logger.debug(f"Saved {len(forecasts)} forecasts for {ticker}")
        return len(forecasts)

    def get_forecasts(
        self,
        ticker: str,
        prediction_date: Optional[date] = None,
    ) -> List[Forecast]:
        """
        Get stored forecasts for a ticker.

        Args:
            ticker: Ticker symbol
            prediction_date: Only return forecasts made on this day

        Returns:
            Forecasts ordered by prediction date, then target date
        """
        with self.SessionLocal() as session:
            query = session.query(PredictionRecord).filter(PredictionRecord.ticker == ticker)
            if prediction_date is not None:
                query = query.filter(PredictionRecord.prediction_date == prediction_date)
            records = query.order_by(
                PredictionRecord.prediction_date.asc(),
                PredictionRecord.target_date.asc(),
            ).all()
            return [record.to_forecast() for record in records]
