#!/usr/bin/env python3
"""
Storefront Analytics - Main Runner
==================================

Command-line interface for the sales analytics pipelines.

Usage:
    storefront-analytics --task forecast --data data/orders.csv
    storefront-analytics --task evaluate --data data/orders.csv --holdout 14
    storefront-analytics --task summary --data data/orders.csv --items data/order_items.csv
    storefront-analytics --task summary --data data/orders.csv --customers data/customers.csv --products data/products.csv
    storefront-analytics --task generate --output data

Examples:
    # Forecast the next 4 weeks of revenue
    storefront-analytics --task forecast --data data/orders.csv --period weekly --horizon 4

    # Forecast June from the first five months only
    storefront-analytics --task forecast --data data/orders.csv --end 2025-05-31 --horizon 30
"""

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

import numpy as np
from loguru import logger

from storefront_analytics.common import DataLoader, Preprocessor, SalesSummarizer, load_settings, setup_logging
from storefront_analytics.data.sample_data import generate_dataset, save_dataset
from storefront_analytics.sales_prediction import ForecastEvaluator, TrendPatternForecaster


def _to_serializable(obj: Any) -> Any:
    """Convert numpy types and NaN to JSON serializable values."""
    if isinstance(obj, dict):
        return {k: _to_serializable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_to_serializable(v) for v in obj]
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, (float, np.floating)):
        return None if np.isnan(obj) else float(obj)
    return obj


def _write_json(data: Dict[str, Any], output_dir: str, name: str) -> Path:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    path = Path(output_dir) / f"{name}_{timestamp}.json"
    with open(path, 'w') as f:
        json.dump(_to_serializable(data), f, indent=2)
    logger.info(f"Saved JSON: {path}")
    return path


def _load_validated(loader, path, schema):
    """Load a store extract and check it against its schema."""
    df = loader.load(path, parse_dates=False)
    is_valid, report = loader.validate_data(df, schema=schema)
    if not is_valid:
        raise ValueError(f"Invalid {schema} file: {report['errors']}")
    return df


def _load_sales(args, config):
    """Load orders and aggregate them into the requested period."""
    orders = _load_validated(DataLoader(config), args.data, 'orders')

    preprocessor = Preprocessor(config['data']['delivered_status'])
    orders = preprocessor.clean_data(orders)

    sales = preprocessor.aggregate_sales(
        orders, args.period,
        start=args.start, end=args.end,
        fill_missing=config['forecast']['fill_missing_periods']
    )
    return preprocessor, sales


def run_forecast(args, config):
    """Run sales forecasting pipeline."""
    logger.info("Starting Sales Forecasting Pipeline")

    preprocessor, sales = _load_sales(args, config)

    forecaster = TrendPatternForecaster(
        period=args.period,
        pattern_window=config['forecast']['pattern_window'],
        decimals=config['forecast']['decimals']
    )
    forecaster.fit(sales, 'date', 'revenue')
    forecast = forecaster.predict(horizon=args.horizon)

    chart = preprocessor.merge_forecast(sales, forecast)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    csv_path = Path(args.output) / f"sales_forecast_{timestamp}.csv"
    chart.to_csv(csv_path, index=False)
    logger.info(f"Saved forecast chart data: {csv_path}")

    results = {
        'forecast': [
            {'date': ds.strftime('%Y-%m-%d'), 'forecast_value': float(yhat)}
            for ds, yhat in zip(forecast['ds'], forecast['yhat'])
        ],
        'model_info': forecaster.get_model_info(),
    }
    _write_json(results, args.output, 'sales_forecast')

    for item in results['forecast']:
        logger.info(f"  {item['date']}: {item['forecast_value']:,.2f}")

    logger.info(f"Forecast complete. Results saved to {args.output}")
    return results


def run_evaluation(args, config):
    """Back-test the forecast on the most recent periods."""
    logger.info("Starting Forecast Evaluation Pipeline")

    preprocessor, sales = _load_sales(args, config)
    history = preprocessor.to_history(sales)

    evaluator = ForecastEvaluator()
    report = evaluator.backtest(
        history, holdout=args.holdout,
        period=args.period,
        pattern_window=config['forecast']['pattern_window'],
        decimals=config['forecast']['decimals']
    )

    metrics = report['metrics']
    logger.info(f"Back-test: MAE={metrics['mae']:.2f}, RMSE={metrics['rmse']:.2f}, MAPE={metrics['mape']:.2f}%")
    logger.info(f"Value added over naive forecast (MAE): {report['forecast_value_added']['fva_mae_pct']:.1f}%")

    _write_json(report, args.output, 'forecast_backtest')
    return report


def run_summary(args, config):
    """Compute the dashboard sales KPIs."""
    logger.info("Starting Sales Summary Pipeline")

    loader = DataLoader(config)
    orders = _load_validated(loader, args.data, 'orders')
    summarizer = SalesSummarizer(config['data']['delivered_status'])

    delivered = summarizer.delivered_orders(orders, start=args.start, end=args.end)
    results = {
        'order_metrics': summarizer.order_metrics(delivered),
        'revenue_growth': summarizer.revenue_growth(orders, as_of=args.as_of),
    }

    if args.items:
        items = _load_validated(loader, args.items, 'order_items')
        results['top_products'] = summarizer.top_products(items)

    if args.customers:
        customers = _load_validated(loader, args.customers, 'customers')
        results['customer_metrics'] = summarizer.customer_metrics(customers, as_of=args.as_of)
        results['customer_growth'] = summarizer.customer_growth(customers)

    if args.products:
        products = _load_validated(loader, args.products, 'products')
        results['low_stock_items'] = summarizer.low_stock_items(products)
        if 'price' in products.columns:
            results['inventory_value'] = summarizer.inventory_value(products)

    if args.customers and args.products:
        results['dashboard'] = summarizer.dashboard_metrics(orders, customers, products, as_of=args.as_of)

    if args.sessions:
        sessions = _load_validated(loader, args.sessions, 'user_sessions')
        results['usage'] = summarizer.session_metrics(sessions, as_of=args.as_of)

    metrics = results['order_metrics']
    logger.info(
        f"Revenue={metrics['total_revenue']:,.2f}, Orders={metrics['total_orders']}, "
        f"AOV={metrics['avg_order_value']:,.2f}, Growth={results['revenue_growth']}%"
    )

    _write_json(results, args.output, 'sales_summary')
    return results


def run_generate(args, config):
    """Write a synthetic store dataset."""
    logger.info("Generating sample dataset")
    return save_dataset(generate_dataset(), args.output)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Storefront Analytics',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        '--task',
        choices=['forecast', 'evaluate', 'summary', 'generate'],
        required=True,
        help='Analytics task to run'
    )

    parser.add_argument(
        '--data',
        type=str,
        help='Path to orders file (CSV or JSON)'
    )

    parser.add_argument(
        '--items',
        type=str,
        help='Path to order items file (summary task)'
    )

    parser.add_argument('--customers', type=str, help='Path to customers file (summary task)')
    parser.add_argument('--products', type=str, help='Path to products file (summary task)')
    parser.add_argument('--sessions', type=str, help='Path to user sessions file (summary task)')

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to configuration file'
    )

    parser.add_argument(
        '--output',
        type=str,
        default='outputs',
        help='Output directory for results'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (overrides the configuration file)'
    )

    # Forecast options
    parser.add_argument(
        '--period',
        type=str,
        choices=['daily', 'weekly', 'monthly'],
        default=None,
        help='Aggregation period'
    )

    parser.add_argument(
        '--horizon',
        type=int,
        default=None,
        help='Forecast horizon (number of periods)'
    )

    parser.add_argument(
        '--holdout',
        type=int,
        default=7,
        help='Periods held out by the evaluate task'
    )

    parser.add_argument('--start', type=str, default=None, help='First order day to include')
    parser.add_argument('--end', type=str, default=None, help='Last order day to include')
    parser.add_argument('--as-of', type=str, default=None, help='Reference time for growth')

    return parser


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_settings(args.config)
    setup_logging(args.log_level or config['logging']['level'], config['logging']['format'])

    args.period = args.period or config['forecast']['period']
    if args.horizon is None:
        args.horizon = config['forecast']['horizon']

    Path(args.output).mkdir(parents=True, exist_ok=True)

    if args.task != 'generate' and not args.data:
        parser.error(f"--data required for {args.task} task")

    tasks = {
        'forecast': run_forecast,
        'evaluate': run_evaluation,
        'summary': run_summary,
        'generate': run_generate,
    }

    try:
        return tasks[args.task](args, config)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"{args.task} failed: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
