"""
Configuration module for Stock Predictor.
Uses pydantic-settings for environment variable management.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Market data provider
    provider_base_url: str = "https://query1.finance.yahoo.com/v8/finance/chart"
    provider_timeout: float = 30.0

    # Database
    database_url: str = "sqlite:///./stock_data.db"

    # History cache
    cache_fresh_ratio: float = 0.8  # Stored points must exceed this share of requested days
    default_history_days: int = 365

    # Forecasting
    default_prediction_days: int = 30
    prediction_history_limit: int = 365  # Most recent closes fed to the forecaster
    model_version: str = "linear_regression_v1"

    # Logging
    log_level: str = "INFO"

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["*"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience accessor
settings = get_settings()
