"""
Sales Prediction Module
======================

Trend + pattern forecasting of per-period sales and its evaluation.
"""

from .periods import Period, advance, period_start
from .exceptions import (
    ForecastError,
    InsufficientHistoryError,
    InvalidHorizonError,
    NonFiniteHistoryError,
)
from .blend_forecaster import (
    ForecastPoint,
    HistoricalPoint,
    TrendPatternForecaster,
    fit_trend,
    forecast,
    round_half_up,
)
from .model_evaluation import ForecastEvaluator

__all__ = [
    "Period",
    "advance",
    "period_start",
    "ForecastError",
    "InsufficientHistoryError",
    "InvalidHorizonError",
    "NonFiniteHistoryError",
    "ForecastPoint",
    "HistoricalPoint",
    "TrendPatternForecaster",
    "fit_trend",
    "forecast",
    "round_half_up",
    "ForecastEvaluator",
]
