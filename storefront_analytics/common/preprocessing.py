"""
Data Preprocessing Module
=========================

Cleans raw store extracts and turns orders into the ordered,
one-row-per-period revenue series the forecaster consumes.

Usage:
    from storefront_analytics.common import Preprocessor

    preprocessor = Preprocessor()
    orders = preprocessor.clean_data(orders)
    daily = preprocessor.aggregate_sales(orders, period='daily')
    history = preprocessor.to_history(daily)
"""

from datetime import date
from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from loguru import logger

from ..sales_prediction.blend_forecaster import ForecastPoint, HistoricalPoint
from ..sales_prediction.periods import Period

SALES_COLUMNS = ['date', 'revenue', 'orders']


class Preprocessor:
    """
    Preprocessor for store extracts.

    Provides methods for:
    - Data cleaning
    - Period aggregation of orders (daily, weekly, monthly)
    - Conversion to forecast history
    - Merging history and forecast for charting

    Example:
        >>> preprocessor = Preprocessor()
        >>> weekly = preprocessor.aggregate_sales(orders, period='weekly')
        >>> history = preprocessor.to_history(weekly)
    """

    def __init__(self, delivered_status: str = 'delivered'):
        """
        Initialize Preprocessor.

        Args:
            delivered_status: Order status counted as realised revenue
        """
        self.delivered_status = delivered_status
        logger.info("Preprocessor initialized")

    def clean_data(
        self,
        df: pd.DataFrame,
        remove_duplicates: bool = True,
        handle_missing: bool = True,
        remove_empty_cols: bool = True,
        standardize_columns: bool = True
    ) -> pd.DataFrame:
        """
        Perform basic data cleaning.

        Args:
            df: Input DataFrame
            remove_duplicates: Remove duplicate rows
            handle_missing: Fill small numeric gaps with the median
            remove_empty_cols: Remove columns with all missing values
            standardize_columns: Standardize column names

        Returns:
            Cleaned DataFrame
        """
        df = df.copy()
        original_shape = df.shape

        logger.info(f"Starting data cleaning. Shape: {original_shape}")

        if standardize_columns:
            df.columns = (
                df.columns
                .str.strip()
                .str.lower()
                .str.replace(' ', '_')
                .str.replace('[^a-z0-9_]', '', regex=True)
            )

        if remove_empty_cols:
            empty_cols = df.columns[df.isna().all()].tolist()
            if empty_cols:
                df = df.drop(columns=empty_cols)
                logger.info(f"Removed {len(empty_cols)} empty columns")

        if remove_duplicates:
            n_duplicates = df.duplicated().sum()
            if n_duplicates > 0:
                df = df.drop_duplicates()
                logger.info(f"Removed {n_duplicates} duplicate rows")

        if handle_missing and len(df) > 0:
            # For numeric columns with < 5% missing, fill with median
            numeric_cols = df.select_dtypes(include=[np.number]).columns
            for col in numeric_cols:
                missing_ratio = df[col].isna().sum() / len(df)
                if 0 < missing_ratio < 0.05:
                    df[col] = df[col].fillna(df[col].median())

        logger.info(f"Cleaning complete. Shape: {original_shape} -> {df.shape}")
        return df

    def aggregate_sales(
        self,
        orders: pd.DataFrame,
        period: Union[Period, str] = Period.DAILY,
        date_column: str = 'created_at',
        value_column: str = 'total_amount',
        delivered_only: bool = True,
        start: Optional[Union[date, str]] = None,
        end: Optional[Union[date, str]] = None,
        fill_missing: bool = False
    ) -> pd.DataFrame:
        """
        Sum order revenue per period.

        Timestamps are bucketed in UTC: by day, by week starting Sunday,
        or by calendar month (keyed by the first of the month).

        Args:
            orders: Order records
            period: Bucket size
            date_column: Order timestamp column
            value_column: Order amount column
            delivered_only: Count only orders with the delivered status
            start: First day to include (inclusive)
            end: Last day to include (inclusive)
            fill_missing: Insert zero rows for periods without orders

        Returns:
            DataFrame with columns date, revenue, orders sorted by date,
            one row per period

        Raises:
            ValueError: If required columns are missing

        Example:
            >>> daily = preprocessor.aggregate_sales(orders, 'daily',
            ...                                      start='2025-06-01', end='2025-06-30')
        """
        period = Period.parse(period)

        required = {date_column, value_column}
        if delivered_only:
            required.add('status')
        missing = required - set(orders.columns)
        if missing:
            raise ValueError(f"Missing columns: {sorted(missing)}")

        df = orders
        if delivered_only:
            df = df[df['status'] == self.delivered_status]

        if df.empty:
            logger.warning("No orders left to aggregate")
            return self._empty_sales()

        timestamps = pd.to_datetime(df[date_column], utc=True, errors='coerce', format='ISO8601')
        work = pd.DataFrame({
            'day': timestamps.dt.tz_convert(None).dt.normalize(),
            'amount': pd.to_numeric(df[value_column], errors='coerce').fillna(0.0),
        }).dropna(subset=['day'])

        dropped = len(df) - len(work)
        if dropped:
            logger.warning(f"Skipped {dropped} orders with unparseable timestamps")

        if start is not None:
            work = work[work['day'] >= pd.Timestamp(start)]
        if end is not None:
            work = work[work['day'] <= pd.Timestamp(end)]

        if work.empty:
            logger.warning("No orders left to aggregate")
            return self._empty_sales()

        if period is Period.WEEKLY:
            buckets = work['day'] - pd.to_timedelta((work['day'].dt.dayofweek + 1) % 7, unit='D')
        elif period is Period.MONTHLY:
            buckets = work['day'].dt.to_period('M').dt.to_timestamp()
        else:
            buckets = work['day']

        grouped = work.assign(bucket=buckets).groupby('bucket').agg(
            revenue=('amount', 'sum'),
            orders=('amount', 'size')
        ).sort_index()

        if fill_missing:
            full_range = pd.date_range(grouped.index.min(), grouped.index.max(), freq=period.freq)
            grouped = grouped.reindex(full_range, fill_value=0)

        result = grouped.rename_axis('date').reset_index()
        result['revenue'] = result['revenue'].astype(float)
        result['orders'] = result['orders'].astype(int)

        logger.info(
            f"Aggregated {len(work)} orders into {len(result)} {period.value} periods"
        )
        return result[SALES_COLUMNS]

    @staticmethod
    def _empty_sales() -> pd.DataFrame:
        return pd.DataFrame({
            'date': pd.Series(dtype='datetime64[ns]'),
            'revenue': pd.Series(dtype=float),
            'orders': pd.Series(dtype=int),
        })

    def to_history(
        self,
        df: pd.DataFrame,
        date_column: str = 'date',
        value_column: str = 'revenue'
    ) -> List[HistoricalPoint]:
        """
        Convert a per-period series to forecast history.

        Raises:
            ValueError: If columns are missing or a period appears twice
        """
        missing = {date_column, value_column} - set(df.columns)
        if missing:
            raise ValueError(f"Missing columns: {sorted(missing)}")

        data = df[[date_column, value_column]].copy()
        data[date_column] = pd.to_datetime(data[date_column])
        data = data.sort_values(date_column)

        if data[date_column].duplicated().any():
            raise ValueError("History contains duplicate periods; aggregate it first")

        return [
            HistoricalPoint(date=ts.date(), value=float(value))
            for ts, value in zip(data[date_column], data[value_column])
        ]

    def merge_forecast(
        self,
        history_df: pd.DataFrame,
        forecast_points: Union[Sequence[ForecastPoint], pd.DataFrame],
        date_column: str = 'date',
        value_column: str = 'revenue'
    ) -> pd.DataFrame:
        """
        Combine history and forecast into one chart table.

        Historical rows carry ``forecast=None`` and forecast rows carry a
        ``None`` value, so each series draws only over its own range.

        Args:
            history_df: Per-period history
            forecast_points: ForecastPoints, or a DataFrame with ds/yhat
            date_column: History date column
            value_column: History value column

        Returns:
            DataFrame with columns date, <value_column>, forecast
        """
        if isinstance(forecast_points, pd.DataFrame):
            forecast_rows = [
                (pd.Timestamp(ds), float(yhat))
                for ds, yhat in zip(forecast_points['ds'], forecast_points['yhat'])
            ]
        else:
            forecast_rows = [(pd.Timestamp(p.date), p.forecast_value) for p in forecast_points]

        rows = [
            {'date': pd.Timestamp(day), value_column: float(value), 'forecast': None}
            for day, value in zip(history_df[date_column], history_df[value_column])
        ]
        rows.extend(
            {'date': day, value_column: None, 'forecast': value}
            for day, value in forecast_rows
        )

        merged = pd.DataFrame(rows, columns=['date', value_column, 'forecast'])
        merged = merged.sort_values('date', kind='stable').reset_index(drop=True)
        for col in (value_column, 'forecast'):
            merged[col] = merged[col].astype(object).where(merged[col].notna(), None)
        return merged
