"""
Sales Summary Module
====================

Dashboard KPIs computed from store extracts: revenue and order value,
best-selling products, revenue growth, inventory alerts, customer
retention and growth, and dashboard usage.

Usage:
    from storefront_analytics.common import SalesSummarizer

    summarizer = SalesSummarizer()
    metrics = summarizer.order_metrics(orders)
    top = summarizer.top_products(order_items, limit=5)
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Union

import pandas as pd
from loguru import logger

from ..sales_prediction.blend_forecaster import round_half_up

DateLike = Union[datetime, pd.Timestamp, str]
DayLike = Union[date, pd.Timestamp, str]

LOW_STOCK_COLUMNS = ['id', 'name', 'category', 'stock_quantity', 'low_stock_threshold']


def _utc(value: Optional[DateLike]) -> pd.Timestamp:
    """Timestamp in UTC; naive values are taken as UTC, None is now."""
    if value is None:
        return pd.Timestamp(datetime.now(timezone.utc))
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        return ts.tz_localize('UTC')
    return ts.tz_convert('UTC')


def _amounts(series: pd.Series) -> pd.Series:
    return pd.to_numeric(series, errors='coerce').fillna(0.0)


class SalesSummarizer:
    """
    KPI calculations behind the dashboard tiles.

    Every method accepts empty frames and returns zeros rather than
    dividing by zero.

    Example:
        >>> summarizer = SalesSummarizer()
        >>> summarizer.revenue_growth(orders, as_of='2025-07-01')
        12.5
    """

    def __init__(self, delivered_status: str = 'delivered'):
        """
        Initialize SalesSummarizer.

        Args:
            delivered_status: Order status counted as realised revenue
        """
        self.delivered_status = delivered_status
        logger.info("SalesSummarizer initialized")

    def delivered_orders(
        self,
        orders: pd.DataFrame,
        start: Optional[DayLike] = None,
        end: Optional[DayLike] = None
    ) -> pd.DataFrame:
        """
        Delivered orders placed within an inclusive range of UTC days.

        Args:
            orders: Order records with status and created_at
            start: First day to keep (no lower bound if None)
            end: Last day to keep (no upper bound if None)

        Returns:
            Filtered copy of *orders*; rows with unparseable timestamps
            are dropped only when a bound is given
        """
        delivered = orders[orders['status'] == self.delivered_status]
        if (start is None and end is None) or delivered.empty:
            return delivered

        created = pd.to_datetime(delivered['created_at'], utc=True, errors='coerce', format='ISO8601')
        days = created.dt.tz_convert(None).dt.normalize()
        mask = days.notna()
        if start is not None:
            mask &= days >= pd.Timestamp(start)
        if end is not None:
            mask &= days <= pd.Timestamp(end)
        return delivered[mask]

    def order_metrics(self, orders: pd.DataFrame) -> Dict[str, float]:
        """
        Total revenue, order count and average order value.

        Args:
            orders: Orders to summarise (already filtered by the caller)

        Returns:
            Dictionary with total_revenue, total_orders, avg_order_value
        """
        total_orders = len(orders)
        total_revenue = float(_amounts(orders['total_amount']).sum()) if total_orders else 0.0
        avg_order_value = total_revenue / total_orders if total_orders > 0 else 0.0

        return {
            'total_revenue': total_revenue,
            'total_orders': total_orders,
            'avg_order_value': avg_order_value,
        }

    def top_products(self, order_items: pd.DataFrame, limit: int = 5) -> List[Dict[str, Any]]:
        """
        Best-selling products by revenue.

        Args:
            order_items: Order line items
            limit: Number of products to return

        Returns:
            List of {name, sales, revenue} sorted by revenue, descending
        """
        if order_items.empty:
            return []

        items = pd.DataFrame({
            'name': order_items['product_name'],
            'sales': _amounts(order_items['quantity']),
            'revenue': _amounts(order_items['total_price']),
        })
        grouped = (
            items.groupby('name', as_index=False)[['sales', 'revenue']].sum()
            .sort_values('revenue', ascending=False, kind='stable')
            .head(limit)
        )

        return [
            {'name': row.name, 'sales': float(row.sales), 'revenue': float(row.revenue)}
            for row in grouped.itertuples(index=False)
        ]

    def revenue_growth(
        self,
        orders: pd.DataFrame,
        as_of: Optional[DateLike] = None,
        window_days: int = 30
    ) -> float:
        """
        Delivered revenue growth of the last window over the one before.

        Args:
            orders: Order records
            as_of: End of the current window (now if None)
            window_days: Window length in days

        Returns:
            Growth in percent rounded to one decimal; 0.0 when the
            previous window has no revenue
        """
        if orders.empty:
            return 0.0

        as_of = _utc(as_of)
        current_start = as_of - pd.Timedelta(days=window_days)
        previous_start = current_start - pd.Timedelta(days=window_days)

        delivered = orders[orders['status'] == self.delivered_status]
        created = pd.to_datetime(delivered['created_at'], utc=True, errors='coerce', format='ISO8601')
        amounts = _amounts(delivered['total_amount'])

        current = amounts[(created > current_start) & (created <= as_of)].sum()
        previous = amounts[(created > previous_start) & (created <= current_start)].sum()

        if previous <= 0:
            return 0.0
        return round((current - previous) / previous * 100, 1)

    def _low_stock_mask(self, products: pd.DataFrame) -> pd.Series:
        mask = _amounts(products['stock_quantity']) <= _amounts(products['low_stock_threshold'])
        if 'is_active' in products.columns:
            mask &= products['is_active'].astype(bool)
        return mask

    def low_stock_count(self, products: pd.DataFrame) -> int:
        """Active products whose stock is at or below their threshold."""
        if products.empty:
            return 0
        return int(self._low_stock_mask(products).sum())

    def low_stock_items(self, products: pd.DataFrame) -> List[Dict[str, Any]]:
        """
        The products behind :meth:`low_stock_count`, for the restock list.

        Returns:
            List of product records (id, name, category, stock_quantity,
            low_stock_threshold where present) in input order
        """
        if products.empty:
            return []

        columns = [c for c in LOW_STOCK_COLUMNS if c in products.columns]
        return products.loc[self._low_stock_mask(products), columns].to_dict('records')

    def inventory_value(self, products: pd.DataFrame) -> float:
        """Stock on hand valued at list price, over every product."""
        if products.empty:
            return 0.0
        return float((_amounts(products['stock_quantity']) * _amounts(products['price'])).sum())

    def customer_metrics(
        self,
        customers: pd.DataFrame,
        as_of: Optional[DateLike] = None
    ) -> Dict[str, Any]:
        """
        Customer base size, order value, retention and new sign-ups.

        Args:
            customers: Customer records with total_orders and total_spent
            as_of: Reference date for "new this month" (now if None)

        Returns:
            Dictionary with total_customers, avg_order_value,
            retention_rate and new_customers_this_month
        """
        total_customers = len(customers)
        if total_customers == 0:
            return {
                'total_customers': 0,
                'avg_order_value': 0.0,
                'retention_rate': 0.0,
                'new_customers_this_month': 0,
            }

        spent = _amounts(customers['total_spent']).sum()
        order_count = _amounts(customers['total_orders'])
        avg_order_value = spent / order_count.sum() if order_count.sum() > 0 else 0.0

        repeat_customers = int((order_count > 1).sum())
        retention_rate = repeat_customers / total_customers * 100

        as_of = _utc(as_of)
        created = pd.to_datetime(customers['created_at'], utc=True, errors='coerce', format='ISO8601')
        new_this_month = int(
            ((created.dt.year == as_of.year) & (created.dt.month == as_of.month)).sum()
        )

        return {
            'total_customers': total_customers,
            'avg_order_value': round(float(avg_order_value), 2),
            'retention_rate': round(retention_rate, 1),
            'new_customers_this_month': new_this_month,
        }

    def customer_growth(self, customers: pd.DataFrame, days: int = 30) -> List[Dict[str, Any]]:
        """
        New customers per sign-up day, for the customer growth chart.

        Only days with at least one sign-up appear; the most recent
        *days* of them are returned, oldest first.
        """
        if customers.empty:
            return []

        created = pd.to_datetime(customers['created_at'], utc=True, errors='coerce', format='ISO8601')
        per_day = created.dropna().dt.tz_convert(None).dt.normalize().value_counts().sort_index().tail(days)

        return [
            {'date': day.strftime('%Y-%m-%d'), 'customers': int(count)}
            for day, count in per_day.items()
        ]

    def session_metrics(
        self,
        sessions: pd.DataFrame,
        as_of: Optional[DateLike] = None,
        window_days: int = 7
    ) -> Dict[str, Any]:
        """
        Dashboard usage over the last *window_days*.

        Args:
            sessions: Usage records with user_id, session_duration, created_at
            as_of: End of the window (now if None)
            window_days: Window length in days

        Returns:
            Dictionary with active_users (distinct users),
            avg_session_duration (seconds, rounded) and total_sessions
        """
        if sessions.empty:
            return {'active_users': 0, 'avg_session_duration': 0, 'total_sessions': 0}

        as_of = _utc(as_of)
        created = pd.to_datetime(sessions['created_at'], utc=True, errors='coerce', format='ISO8601')
        recent = sessions[(created >= as_of - pd.Timedelta(days=window_days)) & (created <= as_of)]

        total_sessions = len(recent)
        avg_duration = _amounts(recent['session_duration']).mean() if total_sessions else 0.0

        return {
            'active_users': int(recent['user_id'].nunique()),
            'avg_session_duration': int(round_half_up(avg_duration)),
            'total_sessions': total_sessions,
        }

    def dashboard_metrics(
        self,
        orders: pd.DataFrame,
        customers: pd.DataFrame,
        products: pd.DataFrame,
        as_of: Optional[DateLike] = None
    ) -> Dict[str, Any]:
        """
        Headline tiles for the executive dashboard.

        Returns:
            Dictionary with total_revenue (delivered orders only),
            total_customers, low_inventory_count and revenue_growth
        """
        delivered = self.delivered_orders(orders) if not orders.empty else orders
        metrics = {
            'total_revenue': self.order_metrics(delivered)['total_revenue'],
            'total_customers': len(customers),
            'low_inventory_count': self.low_stock_count(products),
            'revenue_growth': self.revenue_growth(orders, as_of=as_of),
        }
        logger.info(
            f"Dashboard metrics: revenue={metrics['total_revenue']:.2f}, "
            f"growth={metrics['revenue_growth']}%"
        )
        return metrics
