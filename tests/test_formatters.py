"""
Tests for relative time, domain expiry and launch duration text
"""
from datetime import datetime, timedelta

import pytest

from nichestack.formatters import EXPIRY_WARNING_PREFIX, ExpiryText, domain_expiry_text, launch_duration, relative_time
from nichestack.i18n import get_translator


class TestRelativeTime:

    def test_none_is_never(self, lookup, now):
        assert relative_time(None, lookup, now) == 'never'

    def test_midnight_today_is_today(self, lookup, now):
        assert relative_time(datetime(now.year, now.month, now.day), lookup, now) == 'today'

    def test_midnight_yesterday_is_yesterday(self, lookup, now):
        yesterday = datetime(now.year, now.month, now.day) - timedelta(days=1)
        assert relative_time(yesterday, lookup, now) == 'yesterday'

    def test_uses_calendar_days(self, lookup, now):
        # Late last night is less than 24 hours ago but still yesterday
        late_last_night = datetime(now.year, now.month, now.day) - timedelta(minutes=5)
        assert relative_time(late_last_night, lookup, now) == 'yesterday'

    @pytest.mark.parametrize('days, expected', [
        (2, '2 days ago'),
        (6, '6 days ago'),
        (7, '1 weeks ago'),
        (29, '4 weeks ago'),
        (30, '1 months ago'),
        (364, '12 months ago'),
        (365, '1 years ago'),
        (800, '2 years ago'),
    ])
    def test_buckets(self, lookup, now, days, expected):
        assert relative_time(now - timedelta(days=days), lookup, now) == expected

    def test_other_locale(self, now):
        zh = get_translator('zh')
        assert relative_time(None, zh, now) != 'never'


class TestDomainExpiryText:

    def test_none_is_not_set(self, lookup, now):
        assert domain_expiry_text(None, lookup, now) == ExpiryText('not set', False, False)

    def test_expired(self, lookup, now):
        assert domain_expiry_text(now - timedelta(days=1), lookup, now) == ExpiryText('expired', True, True)

    def test_under_fifteen_days_is_danger(self, lookup, now):
        result = domain_expiry_text(now + timedelta(days=10), lookup, now)
        assert result == ExpiryText(EXPIRY_WARNING_PREFIX + '10 days left', True, True)

    def test_under_thirty_days_is_warning(self, lookup, now):
        result = domain_expiry_text(now + timedelta(days=20), lookup, now)
        assert result == ExpiryText(EXPIRY_WARNING_PREFIX + '20 days left', True, False)

    def test_under_ninety_days_plain(self, lookup, now):
        assert domain_expiry_text(now + timedelta(days=60), lookup, now) == ExpiryText('60 days left', False, False)

    def test_months_left(self, lookup, now):
        assert domain_expiry_text(now + timedelta(days=200), lookup, now).text == '6 months left'

    def test_over_a_year_composes_parts(self, lookup, now):
        # 400 days: 1 year, 1 month (30), 5 days
        assert domain_expiry_text(now + timedelta(days=400), lookup, now).text == '1y1m5d'

    def test_zero_parts_are_omitted(self, lookup, now):
        assert domain_expiry_text(now + timedelta(days=365), lookup, now).text == '1y'
        assert domain_expiry_text(now + timedelta(days=395), lookup, now).text == '1y1m'
        assert domain_expiry_text(now + timedelta(days=370), lookup, now).text == '1y5d'

    def test_partial_day_rounds_down(self, lookup, now):
        assert domain_expiry_text(now + timedelta(days=14, hours=23), lookup, now).danger


class TestLaunchDuration:

    def test_none_is_empty(self, lookup, now):
        assert launch_duration(None, lookup, now) == ''

    def test_future_launch(self, lookup, now):
        assert launch_duration(now + timedelta(days=3), lookup, now) == 'not launched'

    def test_years_months_days(self, lookup):
        now = datetime(2026, 10, 19, 12, 0)
        assert launch_duration(datetime(2025, 8, 16, 12, 0), lookup, now) == '1 years 2 months 3 days'

    def test_months_and_days(self, lookup):
        now = datetime(2026, 10, 19, 12, 0)
        assert launch_duration(datetime(2026, 8, 9, 12, 0), lookup, now) == '2 months 10 days'

    def test_total_days_under_a_month(self, lookup):
        now = datetime(2026, 10, 19, 12, 0)
        assert launch_duration(datetime(2026, 10, 1, 12, 0), lookup, now) == '18 total days'

    def test_day_borrow_uses_previous_month_length(self, lookup):
        # September has 30 days: 31 Aug -> 19 Oct is 1 month 18 days
        now = datetime(2026, 10, 19, 12, 0)
        assert launch_duration(datetime(2026, 8, 31, 12, 0), lookup, now) == '1 months 18 days'

    def test_month_borrow_into_years(self, lookup):
        now = datetime(2026, 3, 5, 12, 0)
        assert launch_duration(datetime(2024, 11, 5, 12, 0), lookup, now) == '1 years 4 months 0 days'
