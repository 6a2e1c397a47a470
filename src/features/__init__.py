"""Price statistics module."""

from .price_stats import PriceStats, format_volume

__all__ = ["PriceStats", "format_volume"]
