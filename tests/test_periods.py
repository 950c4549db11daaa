"""Tests for period parsing, bucket starts and date stepping."""

from __future__ import annotations

from datetime import date

import pandas as pd
import pytest

from storefront_analytics.sales_prediction import Period, advance, period_start


class TestParse:
    @pytest.mark.parametrize("value, expected", [
        ('daily', Period.DAILY),
        ('Day', Period.DAILY),
        ('D', Period.DAILY),
        ('weekly', Period.WEEKLY),
        (' W ', Period.WEEKLY),
        ('MONTHLY', Period.MONTHLY),
        ('MS', Period.MONTHLY),
        (Period.WEEKLY, Period.WEEKLY),
    ])
    def test_aliases(self, value, expected) -> None:
        assert Period.parse(value) is expected

    def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown period"):
            Period.parse('hourly')

    def test_freq(self) -> None:
        assert [p.freq for p in Period] == ['D', 'W-SUN', 'MS']


class TestPeriodStart:
    def test_daily_is_same_day(self) -> None:
        assert period_start(date(2025, 1, 15), Period.DAILY) == date(2025, 1, 15)

    def test_week_starts_sunday(self) -> None:
        # 2025-01-15 is a Wednesday
        assert period_start(date(2025, 1, 15), Period.WEEKLY) == date(2025, 1, 12)

    def test_sunday_is_its_own_week(self) -> None:
        assert period_start(date(2025, 1, 12), Period.WEEKLY) == date(2025, 1, 12)

    def test_saturday_belongs_to_previous_sunday(self) -> None:
        assert period_start(date(2025, 1, 18), Period.WEEKLY) == date(2025, 1, 12)

    def test_month(self) -> None:
        assert period_start(pd.Timestamp('2025-03-31 18:00'), Period.MONTHLY) == date(2025, 3, 1)


class TestAdvance:
    def test_days(self) -> None:
        assert advance(date(2024, 12, 31), 1, Period.DAILY) == date(2025, 1, 1)

    def test_weeks(self) -> None:
        assert advance(date(2025, 1, 5), 2, 'weekly') == date(2025, 1, 19)

    def test_month_end_clamps(self) -> None:
        assert advance(date(2025, 1, 31), 1, Period.MONTHLY) == date(2025, 2, 28)

    def test_month_end_clamps_leap_year(self) -> None:
        assert advance(date(2024, 1, 31), 1, Period.MONTHLY) == date(2024, 2, 29)

    def test_months_do_not_drift(self) -> None:
        assert advance(date(2025, 1, 31), 2, Period.MONTHLY) == date(2025, 3, 31)

    def test_across_year(self) -> None:
        assert advance(date(2025, 11, 1), 3, Period.MONTHLY) == date(2026, 2, 1)
