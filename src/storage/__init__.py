"""Storage module for price history, forecasts and exports."""

from .price_store import PriceStore, PriceRecord
from .prediction_store import PredictionStore, PredictionRecord
from .exporter import export_data, to_frame, to_json

__all__ = [
    "PriceStore",
    "PriceRecord",
    "PredictionStore",
    "PredictionRecord",
    "export_data",
    "to_frame",
    "to_json",
]
