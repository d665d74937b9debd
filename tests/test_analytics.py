"""
Tests for cost and backlink analytics
"""
from datetime import datetime, timedelta

import pytest

from nichestack import analytics, database


def _expense(session, amount, paid_at, category='other', project_id=None, expires_at=None, name='Item'):
    return database.add_expense(session, name=name, amount=amount, category=category,
                                project_id=project_id, paid_at=paid_at, expires_at=expires_at)


def _backlink(session, project_id, created_at, cost=0, status='planned'):
    return database.add_backlink(session, project_id=project_id, source_url='https://src.example',
                                 target_url='https://dst.example', cost=cost, status=status,
                                 created_at=created_at)


class TestDateRange:

    def test_week(self, now):
        assert analytics.get_date_range('week', now=now) == (now - timedelta(days=7), now)

    def test_month(self, now):
        assert analytics.get_date_range('month', now=now) == (datetime(2026, 10, 1), now)

    def test_year(self, now):
        assert analytics.get_date_range('year', now=now) == (datetime(2026, 1, 1), now)

    def test_last_year(self, now):
        assert analytics.get_date_range('last_year', now=now) == (
            datetime(2025, 1, 1), datetime(2025, 12, 31, 23, 59, 59)
        )

    def test_all(self, now):
        start, end = analytics.get_date_range('all', now=now)
        assert start == datetime(1970, 1, 1)
        assert end == now

    def test_custom(self, now):
        start, end = datetime(2026, 2, 1), datetime(2026, 2, 10)
        assert analytics.get_date_range('custom', start, end, now=now) == (start, end)

    def test_custom_without_bounds_falls_back_to_year(self, now):
        assert analytics.get_date_range('custom', now=now) == (datetime(2026, 1, 1), now)


class TestTrends:

    def test_week_buckets_are_weekdays_ending_today(self, session, now):
        _expense(session, 10, now - timedelta(hours=2))
        _expense(session, 4, now - timedelta(days=1))

        trend = analytics.get_expense_trend(session, 'week', now=now)
        assert [row['label'] for row in trend] == ['Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun', 'Mon']
        assert trend[-1]['amount'] == 10
        assert trend[-2]['amount'] == 4

    def test_month_buckets(self, session, now):
        _expense(session, 8, now - timedelta(days=2))
        _expense(session, 3, datetime(2026, 10, 2))

        trend = analytics.get_expense_trend(session, 'month', now=now)
        assert [row['label'] for row in trend] == ['W1', 'W2', 'W3', 'W4']
        assert trend[3]['amount'] == 8
        assert sum(row['amount'] for row in trend) == 11

    def test_year_buckets_by_month(self, session, now):
        _expense(session, 20, datetime(2026, 2, 14))
        _expense(session, 5, datetime(2025, 2, 14))

        trend = analytics.get_expense_trend(session, 'year', now=now)
        assert len(trend) == 12
        assert trend[1] == {'label': '2', 'amount': 20}

        last_year = analytics.get_expense_trend(session, 'last_year', now=now)
        assert last_year[1] == {'label': '2', 'amount': 5}

    def test_all_buckets_by_year(self, session, now):
        _expense(session, 1, datetime(2026, 1, 5))
        _expense(session, 2, datetime(2024, 6, 1))
        _expense(session, 3, datetime(2024, 7, 1))

        trend = analytics.get_expense_trend(session, 'all', now=now)
        assert trend == [{'label': '2024', 'amount': 5}, {'label': '2026', 'amount': 1}]

    def test_short_custom_range_by_day(self, session, now):
        _expense(session, 6, datetime(2026, 3, 2, 9, 0))
        trend = analytics.get_expense_trend(
            session, 'custom', datetime(2026, 3, 1), datetime(2026, 3, 3), now=now
        )
        assert trend == [
            {'label': '3/1', 'amount': 0},
            {'label': '3/2', 'amount': 6},
            {'label': '3/3', 'amount': 0},
        ]

    def test_long_custom_range_by_month(self, session, now):
        _expense(session, 6, datetime(2026, 3, 2))
        _expense(session, 4, datetime(2026, 5, 20))
        trend = analytics.get_expense_trend(
            session, 'custom', datetime(2026, 1, 1), datetime(2026, 6, 30), now=now
        )
        assert {row['label']: row['amount'] for row in trend} == {'2026-3': 6, '2026-5': 4}

    def test_backlink_trend_counts_and_costs(self, session, project, now):
        _backlink(session, project.id, datetime(2026, 4, 3), cost=15)
        _backlink(session, project.id, datetime(2026, 4, 20), cost=5)

        trend = analytics.get_backlink_trend(session, 'year', now=now)
        assert trend[3] == {'label': '4', 'count': 2, 'cost': 20}
        assert trend[0] == {'label': '1', 'count': 0, 'cost': 0}


class TestBreakdowns:

    def test_project_cost_comparison(self, session, now):
        names = ['A', 'B', 'C', 'D', 'E', 'F']
        for amount, name in enumerate(names, start=1):
            project = database.add_project(session, name=name)
            _expense(session, amount * 10, now, project_id=project.id)
        _expense(session, 45, now)

        result = analytics.get_project_cost_comparison(session)
        assert [row['name'] for row in result] == ['F', 'E', analytics.GLOBAL_COST_NAME, 'D', 'C']
        assert result[2]['amount'] == 45

    def test_project_cost_comparison_empty(self, session):
        assert analytics.get_project_cost_comparison(session) == []

    def test_category_breakdown(self, session, now):
        _expense(session, 10, now, category='domain')
        _expense(session, 5, now, category='domain')
        _expense(session, 7, now, category='tool')
        _expense(session, 100, datetime(2020, 1, 1), category='tool')

        result = analytics.get_category_breakdown(session, 'year', now=now)
        assert {row['category']: row['amount'] for row in result} == {'domain': 15, 'tool': 7}

    def test_summary(self, session, project, now):
        _expense(session, 12, now)
        _backlink(session, project.id, now - timedelta(days=1), cost=30, status='live')
        _backlink(session, project.id, now - timedelta(days=2), cost=0)

        summary = analytics.get_analytics_summary(session, 'month', now=now)
        assert summary == {
            'total_cost': 12,
            'expense_count': 1,
            'backlink_count': 2,
            'backlink_cost': 30,
            'live_backlinks': 1,
        }


class TestDashboardStats:

    def test_expense_stats(self, session, project, now):
        _expense(session, 10, datetime(2026, 10, 3), project_id=project.id)
        _expense(session, 20, datetime(2026, 2, 3))
        _expense(session, 40, datetime(2025, 2, 3))

        stats = analytics.get_expense_stats(session, now)
        assert stats == {
            'this_month': 10,
            'this_year': 30,
            'global_cost': 60,
            'project_cost': 10,
            'total': 3,
        }

    def test_monthly_trend_covers_twelve_months(self, session, now):
        _expense(session, 9, datetime(2025, 11, 15))
        _expense(session, 1, datetime(2025, 10, 31))

        trend = analytics.get_monthly_trend(session, now)
        assert [row['name'] for row in trend][0] == '2025-11'
        assert [row['name'] for row in trend][-1] == '2026-10'
        assert len(trend) == 12
        assert trend[0]['amount'] == 9

    def test_upcoming_expires(self, session, now):
        _expense(session, 1, now, name='Later', expires_at=now + timedelta(days=20))
        _expense(session, 1, now, name='Soon', expires_at=now + timedelta(days=3))
        _expense(session, 1, now, name='Past', expires_at=now - timedelta(days=1))
        _expense(session, 1, now, name='Far', expires_at=now + timedelta(days=45))

        assert [e.name for e in analytics.get_upcoming_expires(session, 30, now)] == ['Soon', 'Later']

    def test_tool_stats(self, session):
        database.seed_initial_tools(session)
        stats = analytics.get_tool_stats(session)
        assert stats['total'] == 8
        assert stats['free_count'] == 4
        assert stats['paid_count'] == 2
        assert stats['freemium_count'] == 2
        assert stats['category_count']['domain_tools'] == 3

    def test_resource_stats(self, session, project):
        used = database.add_resource(session, name='Dir', url='https://dir.example', type='directory')
        database.add_resource(session, name='Paid', url='https://paid.example', type='guest_post',
                              is_free=False, price=50, status='inactive')
        database.link_resource_to_project(session, used.id, project.id)
        database.link_resource_to_project(session, used.id, project.id)

        assert analytics.get_resource_stats(session) == {
            'total': 2, 'active_count': 1, 'free_count': 1, 'used_count': 1,
        }

    def test_dashboard_stats(self, session, now):
        first = database.add_project(session, name='One', adsense_status='active')
        database.add_project(session, name='Two')
        _backlink(session, first.id, datetime(2026, 10, 5), cost=12)
        _backlink(session, first.id, datetime(2026, 9, 5), cost=50)

        assert analytics.get_dashboard_stats(session, now) == {
            'total_projects': 2,
            'active_adsense': 1,
            'monthly_backlink_cost': 12,
        }
