"""
Storefront Analytics
====================

Sales analytics for an e-commerce store:
- Revenue forecasting (linear trend blended with a repeating pattern)
- Daily / weekly / monthly sales aggregation
- Dashboard KPIs (revenue, top products, growth, inventory, retention)

Version: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "Storefront Analytics Team"

from .common import DataLoader, Preprocessor, SalesSummarizer
from .sales_prediction import (
    ForecastEvaluator,
    ForecastPoint,
    HistoricalPoint,
    Period,
    TrendPatternForecaster,
    forecast,
)

__all__ = [
    "DataLoader",
    "Preprocessor",
    "SalesSummarizer",
    "ForecastEvaluator",
    "ForecastPoint",
    "HistoricalPoint",
    "Period",
    "TrendPatternForecaster",
    "forecast",
]
