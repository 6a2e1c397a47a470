"""
Error Types
===========
Domain errors shared by the history cache, the forecaster and the API layer.
"""


class StockPredictorError(Exception):
    """Base class for errors surfaced to callers."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(StockPredictorError):
    """Raised for a bad ticker, day count or forecast horizon."""
    pass


class ProviderUnavailable(StockPredictorError):
    """Raised when the market data provider is unreachable or rejects the request."""
    pass


class NoData(StockPredictorError):
    """Raised when the provider answered but had nothing for the ticker."""
    pass


class InsufficientData(StockPredictorError):
    """Raised when too few historical points exist to forecast."""
    pass
