"""
Period Strategies
=================

Calendar steps used to bucket sales and to date forecasts. A daily
series is forecast in days, a weekly series in weeks (anchored on
Sunday, the dashboard's week start) and a monthly series in calendar
months.

Usage:
    from storefront_analytics.sales_prediction import Period, advance

    advance(date(2025, 1, 31), 1, Period.MONTHLY)   # date(2025, 2, 28)
"""

from datetime import date
from enum import Enum
from typing import Union

import pandas as pd

_ALIASES = {
    'daily': 'DAILY', 'day': 'DAILY', 'd': 'DAILY',
    'weekly': 'WEEKLY', 'week': 'WEEKLY', 'w': 'WEEKLY',
    'monthly': 'MONTHLY', 'month': 'MONTHLY', 'm': 'MONTHLY', 'ms': 'MONTHLY',
}


class Period(str, Enum):
    """Aggregation period of a sales series."""

    DAILY = 'daily'
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'

    @property
    def offset(self) -> pd.DateOffset:
        """One period as a pandas offset."""
        if self is Period.WEEKLY:
            return pd.DateOffset(weeks=1)
        if self is Period.MONTHLY:
            return pd.DateOffset(months=1)
        return pd.DateOffset(days=1)

    @property
    def freq(self) -> str:
        """Resample frequency matching the bucket start dates."""
        return {'daily': 'D', 'weekly': 'W-SUN', 'monthly': 'MS'}[self.value]

    @classmethod
    def parse(cls, value: Union['Period', str]) -> 'Period':
        """Accept a member or a case-insensitive name such as 'daily' or 'W'."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key not in _ALIASES:
            raise ValueError(
                f"Unknown period: {value!r}. Use one of: daily, weekly, monthly"
            )
        return cls[_ALIASES[key]]


def period_start(day: Union[date, pd.Timestamp], period: Period) -> date:
    """First day of the bucket containing *day*."""
    ts = pd.Timestamp(day).normalize()
    if period is Period.WEEKLY:
        # Sunday-based weeks: Monday=0 ... Sunday=6
        ts = ts - pd.Timedelta(days=(ts.dayofweek + 1) % 7)
    elif period is Period.MONTHLY:
        ts = ts.replace(day=1)
    return ts.date()


def advance(start: Union[date, pd.Timestamp], steps: int, period: Period) -> date:
    """
    Date *steps* periods after *start*.

    Computed from the anchor each time, so month stepping clamps to the
    month end without drifting (Jan 31 -> Feb 28 -> Mar 31).
    """
    period = Period.parse(period)
    anchor = pd.Timestamp(start)
    return (anchor + period.offset * steps).date()
