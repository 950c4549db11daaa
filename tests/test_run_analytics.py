"""End-to-end tests for the command-line runner."""

from __future__ import annotations

import json

import pandas as pd
import pytest

from storefront_analytics.run_analytics import main


@pytest.fixture()
def base_args(tmp_path):
    """Arguments shared by every run: no config file, output under tmp_path."""
    return ['--config', str(tmp_path / 'absent.yaml'), '--output', str(tmp_path / 'out')]


def test_forecast(base_args, orders_csv, tmp_path) -> None:
    results = main(['--task', 'forecast', '--data', orders_csv, '--horizon', '3'] + base_args)

    assert [f['date'] for f in results['forecast']] == ['2025-02-03', '2025-02-04', '2025-02-05']
    assert results['model_info']['n_observations'] == 29

    out = tmp_path / 'out'
    chart = pd.read_csv(next(out.glob('sales_forecast_*.csv')))
    assert len(chart) == 32
    saved = json.loads(next(out.glob('sales_forecast_*.json')).read_text())
    assert saved['forecast'] == results['forecast']


def test_forecast_weekly(base_args, orders_csv) -> None:
    results = main(['--task', 'forecast', '--data', orders_csv, '--period', 'weekly', '--horizon', '2'] + base_args)
    assert [f['date'] for f in results['forecast']] == ['2025-02-09', '2025-02-16']
    assert results['model_info']['period'] == 'weekly'


def test_evaluate(base_args, orders_csv) -> None:
    report = main(['--task', 'evaluate', '--data', orders_csv, '--holdout', '7'] + base_args)
    assert report['n_train'] == 22
    assert report['n_test'] == 7
    assert 'mae' in report['metrics']


def test_summary(base_args, orders_csv, order_items, tmp_path) -> None:
    items_path = tmp_path / 'order_items.csv'
    order_items.to_csv(items_path, index=False)

    results = main([
        '--task', 'summary', '--data', orders_csv,
        '--items', str(items_path), '--as-of', '2025-02-03',
    ] + base_args)

    assert results['order_metrics']['total_revenue'] == pytest.approx(240.0)
    assert results['revenue_growth'] == 0.0
    assert results['top_products'][0]['name'] == 'Desk'


def test_generate(tmp_path) -> None:
    out = tmp_path / 'data'
    paths = main(['--task', 'generate', '--output', str(out), '--config', str(tmp_path / 'absent.yaml')])

    assert set(paths) == {'customers', 'products', 'orders', 'order_items'}
    assert (out / 'orders.csv').exists()


def test_data_required(base_args) -> None:
    with pytest.raises(SystemExit) as exc:
        main(['--task', 'forecast'] + base_args)
    assert exc.value.code == 2


def test_missing_file_exits_nonzero(base_args, tmp_path) -> None:
    with pytest.raises(SystemExit) as exc:
        main(['--task', 'forecast', '--data', str(tmp_path / 'missing.csv')] + base_args)
    assert exc.value.code == 1


def test_summary_date_range(base_args, orders_csv) -> None:
    results = main([
        '--task', 'summary', '--data', orders_csv,
        '--start', '2025-02-01', '--end', '2025-02-28',
    ] + base_args)

    assert results['order_metrics']['total_orders'] == 1
    assert results['order_metrics']['total_revenue'] == pytest.approx(40.0)


def test_summary_dashboard_panels(base_args, orders_csv, customers, products, tmp_path) -> None:
    customers_path = tmp_path / 'customers.csv'
    customers.to_csv(customers_path, index=False)
    products_path = tmp_path / 'products.csv'
    products.assign(price=[10.0, 20.0, 100.0, 50.0]).to_csv(products_path, index=False)
    sessions_path = tmp_path / 'user_sessions.csv'
    pd.DataFrame({
        'user_id': ['u1', 'u2'],
        'session_duration': [30, 45],
        'created_at': ['2025-02-01T10:00:00Z', '2025-02-02T10:00:00Z'],
    }).to_csv(sessions_path, index=False)

    results = main([
        '--task', 'summary', '--data', orders_csv,
        '--customers', str(customers_path), '--products', str(products_path),
        '--sessions', str(sessions_path), '--as-of', '2025-02-03',
    ] + base_args)

    assert results['dashboard']['low_inventory_count'] == 2
    assert results['customer_metrics']['total_customers'] == 4
    assert len(results['customer_growth']) == 4
    assert [p['name'] for p in results['low_stock_items']] == ['Mug', 'Desk']
    assert results['inventory_value'] == pytest.approx(2030.0)
    assert results['usage'] == {'active_users': 2, 'avg_session_duration': 38, 'total_sessions': 2}


def test_summary_invalid_orders_exits_nonzero(base_args, orders, tmp_path) -> None:
    path = tmp_path / 'orders.csv'
    orders.drop(columns=['status']).to_csv(path, index=False)

    with pytest.raises(SystemExit) as exc:
        main(['--task', 'summary', '--data', str(path)] + base_args)
    assert exc.value.code == 1
