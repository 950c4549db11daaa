"""Shared fixtures for the storefront analytics tests."""

from __future__ import annotations

from datetime import date, timedelta
from typing import List, Sequence

import pandas as pd
import pytest

from storefront_analytics.data.sample_data import generate_dataset
from storefront_analytics.sales_prediction import HistoricalPoint


def make_history(values: Sequence[float], start: date = date(2025, 1, 1), step_days: int = 1) -> List[HistoricalPoint]:
    """Consecutive points starting at *start*, *step_days* apart."""
    return [
        HistoricalPoint(date=start + timedelta(days=i * step_days), value=float(v))
        for i, v in enumerate(values)
    ]


@pytest.fixture()
def weekly_pattern_history() -> List[HistoricalPoint]:
    """Two weeks of daily revenue repeating the same weekday shape."""
    return make_history([100, 102, 98, 105, 110, 108, 112] * 2)


@pytest.fixture()
def orders() -> pd.DataFrame:
    """
    Small order table.

    2025-01-05 and 2025-02-02 are Sundays; one order is cancelled.
    """
    return pd.DataFrame({
        'id': ['o1', 'o2', 'o3', 'o4', 'o5', 'o6'],
        'customer_id': ['c1', 'c2', 'c1', 'c3', 'c2', 'c1'],
        'status': ['delivered', 'delivered', 'cancelled', 'delivered', 'delivered', 'delivered'],
        'total_amount': [100.0, 50.0, 999.0, 30.0, 20.0, 40.0],
        'created_at': [
            '2025-01-05T10:00:00+00:00',
            '2025-01-05T23:30:00+00:00',
            '2025-01-06T09:00:00+00:00',
            '2025-01-07T12:00:00+00:00',
            '2025-01-13T08:00:00+00:00',
            '2025-02-02T08:00:00+00:00',
        ],
    })


@pytest.fixture()
def order_items() -> pd.DataFrame:
    return pd.DataFrame({
        'order_id': ['o1', 'o1', 'o2', 'o4', 'o5', 'o6', 'o6'],
        'product_name': ['Mug', 'Lamp', 'Mug', 'Desk', 'Lamp', 'Chair', 'Mug'],
        'quantity': [2, 1, 1, 1, 3, 1, 4],
        'total_price': [20.0, 45.0, 10.0, 300.0, 135.0, 80.0, 40.0],
    })


@pytest.fixture()
def products() -> pd.DataFrame:
    return pd.DataFrame({
        'id': ['p1', 'p2', 'p3', 'p4'],
        'name': ['Mug', 'Lamp', 'Desk', 'Chair'],
        'stock_quantity': [3, 50, 10, 0],
        'low_stock_threshold': [5, 10, 10, 5],
        'is_active': [True, True, True, False],
    })


@pytest.fixture()
def customers() -> pd.DataFrame:
    return pd.DataFrame({
        'id': ['c1', 'c2', 'c3', 'c4'],
        'total_orders': [3, 2, 1, 0],
        'total_spent': [170.0, 70.0, 30.0, 0.0],
        'created_at': [
            '2024-11-20T00:00:00+00:00',
            '2025-01-03T00:00:00+00:00',
            '2025-01-28T00:00:00+00:00',
            '2025-02-01T00:00:00+00:00',
        ],
    })


@pytest.fixture(scope='session')
def sample_dataset():
    """A month of synthetic store data."""
    return generate_dataset(start_date='2025-01-01', end_date='2025-01-31', n_customers=30, seed=7)


@pytest.fixture()
def orders_csv(tmp_path, orders) -> str:
    path = tmp_path / 'orders.csv'
    orders.to_csv(path, index=False)
    return str(path)
