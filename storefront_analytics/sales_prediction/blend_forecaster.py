"""
Trend + Pattern Forecasting Module
==================================

Blends an ordinary least squares trend with a repeating window of the
most recent observations. The trend carries long-term growth or decline,
the window carries short cycles such as weekday/weekend swings, and the
forecast is the unweighted mean of the two.

Usage:
    from storefront_analytics.sales_prediction import forecast, HistoricalPoint

    points = forecast(history, horizon=7)

    # or, DataFrame in / DataFrame out
    forecaster = TrendPatternForecaster()
    forecaster.fit(df, 'date', 'revenue')
    result = forecaster.predict(horizon=7)
"""

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from loguru import logger

from .exceptions import InsufficientHistoryError, InvalidHorizonError, NonFiniteHistoryError
from .periods import Period, advance

MIN_POINTS = 2
DEFAULT_PATTERN_WINDOW = 14

DateLike = Union[date, datetime, pd.Timestamp, str]


def _as_date(value: DateLike) -> date:
    """Normalise strings, timestamps and datetimes to a calendar date."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    return pd.Timestamp(value).date()


@dataclass(frozen=True)
class HistoricalPoint:
    """One aggregated period of history, e.g. a day's revenue."""

    date: date
    value: float

    @classmethod
    def coerce(cls, item: Union['HistoricalPoint', Tuple, Dict[str, Any]]) -> 'HistoricalPoint':
        """Build a point from a point, a ``(date, value)`` pair or a mapping."""
        if isinstance(item, cls):
            return item
        if isinstance(item, dict):
            return cls(date=_as_date(item['date']), value=float(item['value']))
        day, value = item
        return cls(date=_as_date(day), value=float(value))

    def to_dict(self) -> Dict[str, Any]:
        return {'date': self.date.isoformat(), 'value': self.value}


@dataclass(frozen=True)
class ForecastPoint:
    """One forecast period. ``forecast_value`` is never negative."""

    date: date
    forecast_value: float

    def to_dict(self) -> Dict[str, Any]:
        return {'date': self.date.isoformat(), 'forecast_value': self.forecast_value}


def round_half_up(value: float, decimals: int = 0) -> float:
    """Round halves upward (2.5 -> 3.0) instead of to the nearest even digit."""
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def fit_trend(values: Sequence[float]) -> Tuple[float, float]:
    """
    Least-squares line through ``(i, values[i])``.

    Returns:
        Tuple of (slope, intercept)
    """
    y = np.asarray(values, dtype=float)
    n = len(y)
    x = np.arange(n, dtype=float)

    sum_x = x.sum()
    sum_y = y.sum()
    sum_xy = (x * y).sum()
    sum_x2 = (x * x).sum()

    denominator = n * sum_x2 - sum_x ** 2
    if denominator == 0:
        denominator = 1.0

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return float(slope), float(intercept)


def project_components(
    values: Sequence[float],
    horizon: int,
    pattern_window: int = DEFAULT_PATTERN_WINDOW
) -> List[Tuple[float, float]]:
    """
    Trend and pattern component for each future step.

    Args:
        values: Historical values, oldest first (at least two)
        horizon: Number of future periods
        pattern_window: Maximum length of the trailing pattern

    Returns:
        List of (trend, pattern) pairs, one per step
    """
    n = len(values)
    slope, intercept = fit_trend(values)
    pattern = list(values[-min(pattern_window, n):])

    components = []
    for i in range(horizon):
        trend = slope * (n + i) + intercept
        components.append((trend, float(pattern[i % len(pattern)])))
    return components


def forecast(
    history: Iterable[Union[HistoricalPoint, Tuple, Dict[str, Any]]],
    horizon: int,
    period: Union[Period, str] = Period.DAILY,
    pattern_window: int = DEFAULT_PATTERN_WINDOW,
    decimals: int = 0,
    strict: bool = False
) -> List[ForecastPoint]:
    """
    Forecast the periods that follow *history*.

    Each value is the mean of the linear trend and the pattern window
    value for that step, rounded half-up to *decimals* and clamped at
    zero. Dates start one period after the last historical date.

    Args:
        history: Points in ascending date order, one per period
        horizon: Number of periods to forecast
        period: Step between forecast dates
        pattern_window: Maximum number of trailing values to repeat
        decimals: Rounding precision of the forecast values
        strict: Raise instead of returning an empty list on bad input

    Returns:
        ``horizon`` forecast points, or an empty list when history has
        fewer than two points, holds a NaN or infinite value, or horizon
        is not positive

    Raises:
        InsufficientHistoryError: In strict mode, history too short
        NonFiniteHistoryError: In strict mode, a value is NaN or infinite
        InvalidHorizonError: In strict mode, horizon not positive

    Example:
        >>> history = [HistoricalPoint(date(2025, 1, 1), 10),
        ...            HistoricalPoint(date(2025, 1, 2), 20)]
        >>> [p.forecast_value for p in forecast(history, 3)]
        [20.0, 30.0, 30.0]
    """
    points = [HistoricalPoint.coerce(item) for item in history]

    if len(points) < MIN_POINTS:
        if strict:
            raise InsufficientHistoryError(len(points), MIN_POINTS)
        return []
    for p in points:
        if not math.isfinite(p.value):
            if strict:
                raise NonFiniteHistoryError(p.date)
            return []
    if horizon <= 0:
        if strict:
            raise InvalidHorizonError(horizon)
        return []
    if pattern_window < 1:
        raise ValueError(f"pattern_window must be at least 1, got {pattern_window}")

    period = Period.parse(period)
    values = [p.value for p in points]
    last_date = points[-1].date

    result = []
    for i, (trend, pattern) in enumerate(project_components(values, horizon, pattern_window)):
        value = max(0.0, round_half_up((trend + pattern) / 2, decimals))
        result.append(ForecastPoint(date=advance(last_date, i + 1, period), forecast_value=value))
    return result


class TrendPatternForecaster:
    """
    DataFrame wrapper around :func:`forecast`.

    Example:
        >>> forecaster = TrendPatternForecaster(period='weekly')
        >>> forecaster.fit(weekly_df, 'date', 'revenue')
        >>> forecaster.predict(horizon=4)[['ds', 'yhat']]
    """

    def __init__(
        self,
        period: Union[Period, str] = Period.DAILY,
        pattern_window: int = DEFAULT_PATTERN_WINDOW,
        decimals: int = 0
    ):
        """
        Initialize TrendPatternForecaster.

        Args:
            period: Period of the series being fitted
            pattern_window: Maximum length of the repeating window
            decimals: Rounding precision of forecast values
        """
        self.period = Period.parse(period)
        self.pattern_window = pattern_window
        self.decimals = decimals

        self.history: List[HistoricalPoint] = []
        self.slope: Optional[float] = None
        self.intercept: Optional[float] = None
        self.date_column = None
        self.value_column = None
        self.last_horizon: Optional[int] = None

        logger.info(f"TrendPatternForecaster initialized ({self.period.value})")

    def fit(
        self,
        df: pd.DataFrame,
        date_column: str,
        value_column: str
    ) -> 'TrendPatternForecaster':
        """
        Fit the trend line to a per-period series.

        Args:
            df: DataFrame with one row per period
            date_column: Name of date column
            value_column: Name of value column

        Returns:
            Self for method chaining

        Raises:
            ValueError: If columns are missing or fewer than two rows remain
        """
        missing = {date_column, value_column} - set(df.columns)
        if missing:
            raise ValueError(f"Missing columns: {missing}")

        self.date_column = date_column
        self.value_column = value_column

        data = df[[date_column, value_column]].dropna().copy()
        data[date_column] = pd.to_datetime(data[date_column])
        data = data.sort_values(date_column)

        if data[date_column].duplicated().any():
            logger.warning("Duplicate periods found; summing them before fitting")
            data = data.groupby(date_column, as_index=False)[value_column].sum()

        self.history = [
            HistoricalPoint(date=ts.date(), value=float(v))
            for ts, v in zip(data[date_column], data[value_column])
        ]

        if len(self.history) < MIN_POINTS:
            raise InsufficientHistoryError(len(self.history), MIN_POINTS)

        self.slope, self.intercept = fit_trend([p.value for p in self.history])
        logger.info(
            f"Fitted trend on {len(self.history)} periods: "
            f"slope={self.slope:.4f}, intercept={self.intercept:.2f}"
        )
        return self

    def _check_fitted(self) -> None:
        if self.slope is None:
            raise ValueError("Model not fitted. Call fit() first.")

    def predict(self, horizon: int = 7) -> pd.DataFrame:
        """
        Forecast future periods.

        Args:
            horizon: Number of periods to forecast

        Returns:
            DataFrame with columns: ds, yhat, trend, pattern
        """
        self._check_fitted()
        self.last_horizon = horizon

        points = forecast(
            self.history,
            horizon,
            period=self.period,
            pattern_window=self.pattern_window,
            decimals=self.decimals
        )
        if not points:
            logger.warning(f"No forecast produced for horizon={horizon}")
            return pd.DataFrame(columns=['ds', 'yhat', 'trend', 'pattern'])

        values = [p.value for p in self.history]
        components = project_components(values, horizon, self.pattern_window)

        result = pd.DataFrame({
            'ds': pd.to_datetime([p.date for p in points]),
            'yhat': [p.forecast_value for p in points],
            'trend': [c[0] for c in components],
            'pattern': [c[1] for c in components],
        })

        logger.info(f"Generated {horizon}-period forecast")
        return result

    def predict_in_sample(self) -> pd.DataFrame:
        """
        Fitted trend values over the history, for evaluation.

        Returns:
            DataFrame with columns: ds, actual, predicted
        """
        self._check_fitted()

        x = np.arange(len(self.history), dtype=float)
        return pd.DataFrame({
            'ds': pd.to_datetime([p.date for p in self.history]),
            'actual': [p.value for p in self.history],
            'predicted': self.slope * x + self.intercept,
        })

    def get_components(self) -> Dict[str, Any]:
        """Slope, intercept and the pattern window used for forecasting."""
        self._check_fitted()
        values = [p.value for p in self.history]
        return {
            'slope': self.slope,
            'intercept': self.intercept,
            'pattern': values[-min(self.pattern_window, len(values)):],
        }

    def get_model_info(self) -> Dict[str, Any]:
        """Get model information for reporting."""
        return {
            'type': 'TrendPattern',
            'period': self.period.value,
            'pattern_window': self.pattern_window,
            'decimals': self.decimals,
            'horizon': self.last_horizon,
            'slope': self.slope,
            'intercept': self.intercept,
            'n_observations': len(self.history),
            'last_date': self.history[-1].date.isoformat() if self.history else None,
        }
