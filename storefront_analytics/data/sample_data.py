#!/usr/bin/env python3
"""
Sample Data Generator
=====================

Generates a synthetic store (customers, products, orders, order items)
for demos and tests.

Usage:
    python -m storefront_analytics.data.sample_data --output data/

This will create:
    - customers.csv
    - products.csv
    - orders.csv
    - order_items.csv
"""

import argparse
from pathlib import Path
from typing import Dict

import numpy as np
import pandas as pd
from loguru import logger

CATEGORIES = ['Electronics', 'Clothing', 'Home', 'Sports', 'Books']
PAYMENT_METHODS = ['card', 'paypal', 'bank_transfer']
STATUSES = ['delivered', 'shipped', 'processing', 'cancelled']
STATUS_WEIGHTS = [0.8, 0.08, 0.07, 0.05]
TAX_RATE = 0.08
SHIPPING_FLAT = 5.99

# Weekday demand multipliers, Monday first; weekends busier
WEEKLY_PROFILE = [0.9, 0.85, 0.9, 0.95, 1.1, 1.35, 1.25]


def generate_products(n_products: int = 20, seed: int = 42) -> pd.DataFrame:
    """
    Generate the product catalogue.

    Args:
        n_products: Number of products
        seed: Random seed

    Returns:
        DataFrame with product records
    """
    rng = np.random.default_rng(seed)
    prices = np.round(rng.uniform(9.99, 299.99, n_products), 2)

    return pd.DataFrame({
        'id': [f'prod_{i:03d}' for i in range(1, n_products + 1)],
        'name': [f'Product {i:03d}' for i in range(1, n_products + 1)],
        'price': prices,
        'cost': np.round(prices * rng.uniform(0.4, 0.7, n_products), 2),
        'stock_quantity': rng.integers(0, 200, n_products),
        'low_stock_threshold': rng.integers(5, 25, n_products),
        'category': rng.choice(CATEGORIES, n_products),
        'sku': [f'SKU-{i:05d}' for i in range(1, n_products + 1)],
        'is_active': rng.random(n_products) > 0.1,
        'created_at': '2024-01-01T00:00:00+00:00',
    })


def generate_dataset(
    start_date: str = '2025-01-01',
    end_date: str = '2025-03-31',
    n_customers: int = 200,
    n_products: int = 20,
    base_orders_per_day: float = 20.0,
    growth_per_day: float = 0.05,
    seed: int = 42
) -> Dict[str, pd.DataFrame]:
    """
    Generate a consistent synthetic store.

    Daily order volume follows a weekly cycle on top of linear growth,
    so the forecaster has both a trend and a pattern to pick up.

    Args:
        start_date: First order day
        end_date: Last order day
        n_customers: Number of customers
        n_products: Number of products
        base_orders_per_day: Expected orders on the first day
        growth_per_day: Expected extra orders per day
        seed: Random seed

    Returns:
        Dictionary with customers, products, orders and order_items frames
    """
    rng = np.random.default_rng(seed)
    products = generate_products(n_products, seed=seed)
    dates = pd.date_range(start=start_date, end=end_date, freq='D', tz='UTC')

    order_records = []
    item_records = []
    order_seq = 1
    item_seq = 1

    for day_index, day in enumerate(dates):
        expected = (base_orders_per_day + growth_per_day * day_index) * WEEKLY_PROFILE[day.dayofweek]
        for _ in range(rng.poisson(expected)):
            created_at = day + pd.Timedelta(seconds=int(rng.integers(0, 86400)))
            order_id = f'ord_{order_seq:06d}'

            subtotal = 0.0
            for product_idx in rng.choice(n_products, size=int(rng.integers(1, 4)), replace=False):
                product = products.iloc[product_idx]
                quantity = int(rng.integers(1, 4))
                total_price = round(float(product['price']) * quantity, 2)
                subtotal += total_price
                item_records.append({
                    'id': f'item_{item_seq:07d}',
                    'order_id': order_id,
                    'product_id': product['id'],
                    'product_name': product['name'],
                    'quantity': quantity,
                    'unit_price': float(product['price']),
                    'total_price': total_price,
                    'created_at': created_at.isoformat(),
                })
                item_seq += 1

            subtotal = round(subtotal, 2)
            tax_amount = round(subtotal * TAX_RATE, 2)
            order_records.append({
                'id': order_id,
                'customer_id': f'cust_{int(rng.integers(1, n_customers + 1)):04d}',
                'order_number': f'ORD-{order_seq:06d}',
                'status': rng.choice(STATUSES, p=STATUS_WEIGHTS),
                'subtotal': subtotal,
                'tax_amount': tax_amount,
                'shipping_amount': SHIPPING_FLAT,
                'total_amount': round(subtotal + tax_amount + SHIPPING_FLAT, 2),
                'payment_method': rng.choice(PAYMENT_METHODS),
                'payment_status': 'paid',
                'created_at': created_at.isoformat(),
            })
            order_seq += 1

    orders = pd.DataFrame(order_records)
    order_items = pd.DataFrame(item_records)

    customer_ids = [f'cust_{i:04d}' for i in range(1, n_customers + 1)]
    per_customer = orders.groupby('customer_id').agg(
        total_orders=('id', 'size'),
        total_spent=('total_amount', 'sum')
    ).reindex(customer_ids, fill_value=0)

    signup_offsets = rng.integers(0, 365, n_customers)
    customers = pd.DataFrame({
        'id': customer_ids,
        'email': [f'customer{i}@example.com' for i in range(1, n_customers + 1)],
        'full_name': [f'Customer {i}' for i in range(1, n_customers + 1)],
        'country': rng.choice(['US', 'CA', 'GB', 'DE'], n_customers),
        'total_orders': per_customer['total_orders'].astype(int).values,
        'total_spent': per_customer['total_spent'].round(2).values,
        'created_at': [
            (pd.Timestamp(start_date, tz='UTC') - pd.Timedelta(days=int(d))).isoformat()
            for d in signup_offsets
        ],
    })

    logger.info(
        f"Generated {len(orders)} orders, {len(order_items)} items, "
        f"{len(customers)} customers, {len(products)} products"
    )
    return {
        'customers': customers,
        'products': products,
        'orders': orders,
        'order_items': order_items,
    }


def save_dataset(dataset: Dict[str, pd.DataFrame], output_dir: str) -> Dict[str, Path]:
    """Write each frame of a dataset to ``<output_dir>/<name>.csv``."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    paths = {}
    for name, df in dataset.items():
        path = out / f'{name}.csv'
        df.to_csv(path, index=False)
        paths[name] = path
        logger.info(f"Saved {len(df)} records to {path}")
    return paths


def main(argv=None):
    """Generate all sample datasets."""
    parser = argparse.ArgumentParser(description='Generate a synthetic store dataset')
    parser.add_argument('--output', default='data', help='Output directory')
    parser.add_argument('--start', default='2025-01-01', help='First order day')
    parser.add_argument('--end', default='2025-03-31', help='Last order day')
    parser.add_argument('--seed', type=int, default=42, help='Random seed')
    args = parser.parse_args(argv)

    dataset = generate_dataset(start_date=args.start, end_date=args.end, seed=args.seed)
    return save_dataset(dataset, args.output)


if __name__ == '__main__':
    main()
