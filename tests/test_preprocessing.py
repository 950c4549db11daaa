"""Tests for order cleaning, period aggregation and chart merging."""

from __future__ import annotations

from datetime import date

import pandas as pd
import pytest

from storefront_analytics.common import Preprocessor
from storefront_analytics.sales_prediction import ForecastPoint, HistoricalPoint


@pytest.fixture()
def preprocessor() -> Preprocessor:
    return Preprocessor()


def _rows(df: pd.DataFrame):
    return [
        (ts.strftime('%Y-%m-%d'), revenue, n)
        for ts, revenue, n in zip(df['date'], df['revenue'], df['orders'])
    ]


class TestAggregateSales:
    def test_daily(self, preprocessor, orders) -> None:
        result = preprocessor.aggregate_sales(orders, 'daily')

        assert list(result.columns) == ['date', 'revenue', 'orders']
        assert _rows(result) == [
            ('2025-01-05', 150.0, 2),
            ('2025-01-07', 30.0, 1),
            ('2025-01-13', 20.0, 1),
            ('2025-02-02', 40.0, 1),
        ]

    def test_weekly_buckets_start_sunday(self, preprocessor, orders) -> None:
        result = preprocessor.aggregate_sales(orders, 'weekly')
        assert _rows(result) == [
            ('2025-01-05', 180.0, 3),
            ('2025-01-12', 20.0, 1),
            ('2025-02-02', 40.0, 1),
        ]

    def test_monthly_keyed_by_first_day(self, preprocessor, orders) -> None:
        result = preprocessor.aggregate_sales(orders, 'monthly')
        assert _rows(result) == [
            ('2025-01-01', 200.0, 4),
            ('2025-02-01', 40.0, 1),
        ]

    def test_includes_other_statuses_when_asked(self, preprocessor, orders) -> None:
        result = preprocessor.aggregate_sales(orders, 'daily', delivered_only=False)
        assert ('2025-01-06', 999.0, 1) in _rows(result)

    def test_custom_delivered_status(self, orders) -> None:
        result = Preprocessor(delivered_status='cancelled').aggregate_sales(orders)
        assert _rows(result) == [('2025-01-06', 999.0, 1)]

    def test_date_range_is_inclusive(self, preprocessor, orders) -> None:
        result = preprocessor.aggregate_sales(orders, 'daily', start='2025-01-07', end=date(2025, 1, 13))
        assert _rows(result) == [('2025-01-07', 30.0, 1), ('2025-01-13', 20.0, 1)]

    def test_fill_missing_periods(self, preprocessor, orders) -> None:
        result = preprocessor.aggregate_sales(orders, 'daily', fill_missing=True)

        assert len(result) == 29
        assert result['date'].is_monotonic_increasing
        gap = result[result['date'] == pd.Timestamp('2025-01-06')]
        assert gap['revenue'].iloc[0] == 0.0
        assert gap['orders'].iloc[0] == 0

    def test_fill_missing_weekly(self, preprocessor, orders) -> None:
        result = preprocessor.aggregate_sales(orders, 'weekly', fill_missing=True)
        assert result['date'].dt.strftime('%Y-%m-%d').tolist() == [
            '2025-01-05', '2025-01-12', '2025-01-19', '2025-01-26', '2025-02-02',
        ]

    def test_timestamps_bucketed_in_utc(self, preprocessor) -> None:
        orders = pd.DataFrame({
            'status': ['delivered'],
            'total_amount': [10.0],
            'created_at': ['2025-01-05T22:00:00-05:00'],
        })
        result = preprocessor.aggregate_sales(orders)
        assert _rows(result) == [('2025-01-06', 10.0, 1)]

    def test_non_numeric_amounts_count_as_zero(self, preprocessor, orders) -> None:
        orders = orders.astype({'total_amount': object})
        orders.loc[0, 'total_amount'] = 'n/a'
        result = preprocessor.aggregate_sales(orders)
        assert _rows(result)[0] == ('2025-01-05', 50.0, 2)

    def test_unique_ascending_periods(self, preprocessor, sample_dataset) -> None:
        result = preprocessor.aggregate_sales(sample_dataset['orders'], 'daily')
        assert result['date'].is_unique
        assert result['date'].is_monotonic_increasing

    def test_nothing_delivered(self, preprocessor, orders) -> None:
        result = preprocessor.aggregate_sales(orders[orders['status'] == 'cancelled'].head(0))
        assert result.empty
        assert list(result.columns) == ['date', 'revenue', 'orders']

    def test_range_excludes_everything(self, preprocessor, orders) -> None:
        assert preprocessor.aggregate_sales(orders, start='2026-01-01').empty

    def test_missing_columns(self, preprocessor, orders) -> None:
        with pytest.raises(ValueError, match="Missing columns"):
            preprocessor.aggregate_sales(orders.drop(columns=['total_amount']))

    def test_unknown_period(self, preprocessor, orders) -> None:
        with pytest.raises(ValueError, match="Unknown period"):
            preprocessor.aggregate_sales(orders, 'hourly')


class TestToHistory:
    def test_converts_and_sorts(self, preprocessor) -> None:
        df = pd.DataFrame({'date': ['2025-01-02', '2025-01-01'], 'revenue': [20, 10]})
        assert preprocessor.to_history(df) == [
            HistoricalPoint(date(2025, 1, 1), 10.0),
            HistoricalPoint(date(2025, 1, 2), 20.0),
        ]

    def test_duplicate_periods(self, preprocessor) -> None:
        df = pd.DataFrame({'date': ['2025-01-01', '2025-01-01'], 'revenue': [1, 2]})
        with pytest.raises(ValueError, match="duplicate"):
            preprocessor.to_history(df)

    def test_from_aggregation(self, preprocessor, orders) -> None:
        history = preprocessor.to_history(preprocessor.aggregate_sales(orders, 'weekly'))
        assert [p.date for p in history] == [date(2025, 1, 5), date(2025, 1, 12), date(2025, 2, 2)]


class TestMergeForecast:
    def test_each_series_only_on_its_own_rows(self, preprocessor, orders) -> None:
        sales = preprocessor.aggregate_sales(orders, 'monthly')
        points = [ForecastPoint(date(2025, 3, 1), 55.0), ForecastPoint(date(2025, 4, 1), 60.0)]

        chart = preprocessor.merge_forecast(sales, points)

        assert list(chart.columns) == ['date', 'revenue', 'forecast']
        assert chart['revenue'].tolist() == [200.0, 40.0, None, None]
        assert chart['forecast'].tolist() == [None, None, 55.0, 60.0]

    def test_accepts_forecast_frame(self, preprocessor) -> None:
        sales = pd.DataFrame({'date': pd.to_datetime(['2025-01-01']), 'revenue': [5.0]})
        frame = pd.DataFrame({'ds': pd.to_datetime(['2025-01-02']), 'yhat': [6.0]})

        chart = preprocessor.merge_forecast(sales, frame)
        assert chart['date'].tolist() == [pd.Timestamp('2025-01-01'), pd.Timestamp('2025-01-02')]
        assert chart['forecast'].tolist() == [None, 6.0]


class TestCleanData:
    def test_standardizes_and_dedupes(self, preprocessor) -> None:
        df = pd.DataFrame({
            'Total Amount': [1.0, 1.0, 2.0],
            'Status': ['delivered', 'delivered', 'shipped'],
            'Notes': [None, None, None],
        })
        cleaned = preprocessor.clean_data(df)

        assert list(cleaned.columns) == ['total_amount', 'status']
        assert len(cleaned) == 2
