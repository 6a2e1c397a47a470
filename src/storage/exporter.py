"""
Data Export Module
==================
Writes price history and forecasts to CSV or JSON files.
"""

import json
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional, Sequence, Union

import pandas as pd
from loguru import logger

from ..data.types import PricePoint
from ..models.linear_trend import Forecast

CSV_COLUMNS = [
    "Date",
    "Type",
    "Price",
    "Open",
    "High",
    "Low",
    "Volume",
    "Confidence Lower",
    "Confidence Upper",
]

SUPPORTED_FORMATS = ["csv", "json"]


def export_filename(ticker: str, fmt: str, on: Optional[date] = None) -> str:
    """Build the export file name, e.g. AAPL_stock_data_2024-01-31.csv."""
    on = on or date.today()
    return f"{ticker}_stock_data_{on.isoformat()}.{fmt}"


def to_frame(
    series: Sequence[PricePoint],
    predictions: Optional[Sequence[Forecast]] = None,
) -> pd.DataFrame:
    """
    Combine history and forecast rows into one table.

    Historical rows leave the confidence columns blank, predicted rows leave
    the open/high/low/volume columns blank.
    """
    rows = [
        {
            "Date": p.date.isoformat(),
            "Type": "Historical",
            "Price": f"{p.close:.2f}",
            "Open": f"{p.open:.2f}",
            "High": f"{p.high:.2f}",
            "Low": f"{p.low:.2f}",
            "Volume": str(p.volume),
            "Confidence Lower": "",
            "Confidence Upper": "",
        }
        for p in series
    ]
    for f in predictions or []:
        rows.append({
            "Date": f.date.isoformat(),
            "Type": "Predicted",
            "Price": f"{f.predicted_price:.2f}",
            "Open": "",
            "High": "",
            "Low": "",
            "Volume": "",
            "Confidence Lower": f"{f.confidence_lower:.2f}",
            "Confidence Upper": f"{f.confidence_upper:.2f}",
        })
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def to_json(
    ticker: str,
    series: Sequence[PricePoint],
    predictions: Optional[Sequence[Forecast]] = None,
) -> str:
    """Serialize history and forecast as an indented JSON document."""
    payload = {
        "ticker": ticker,
        "exported_at": datetime.now(timezone.utc).isoformat(),
        "historical_data": [p.to_dict() for p in series],
        "predictions": [f.to_dict() for f in predictions or []],
    }
    return json.dumps(payload, indent=2)


def export_data(
    ticker: str,
    series: Sequence[PricePoint],
    predictions: Optional[Sequence[Forecast]] = None,
    fmt: str = "csv",
    output_dir: Union[str, Path] = ".",
) -> Path:
    """
    Write an export file.

    Args:
        ticker: Ticker symbol
        series: Price history
        predictions: Optional forecast
        fmt: "csv" or "json"
        output_dir: Directory to write into

    Returns:
        Path to the written file
    """
    fmt = fmt.lower()
    if fmt not in SUPPORTED_FORMATS:
        raise ValueError(f"Unsupported format: {fmt}. Use: {SUPPORTED_FORMATS}")

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / export_filename(ticker, fmt)

    if fmt == "csv":
        to_frame(series, predictions).to_csv(path, index=False)
    else:
        path.write_text(to_json(ticker, series, predictions), encoding="utf-8")

    logger.info(f"Exported {len(series)} points for {ticker} to {path}")
    return path
