"""
Cost and backlink analytics for the dashboard and Analytics page.

Period helpers bucket expenses and backlinks into chart series.
All functions accept an optional `now` so the buckets are reproducible.
"""

import calendar
import math
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

import pandas as pd

from .models import Backlink, Expense, LinkResource, Project, SiteTool

PERIODS = ['week', 'month', 'year', 'last_year', 'all', 'custom']

WEEKDAY_LABELS = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']

# Name used for expenses not tied to a project in the cost comparison
GLOBAL_COST_NAME = 'fixed_cost'


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now()


def get_date_range(period: str, custom_start: datetime = None, custom_end: datetime = None,
                   now: datetime = None) -> Tuple[datetime, datetime]:
    """
    Resolve a period name to a (start, end) window.

    Unknown periods, and 'custom' without both bounds, fall back to the current year.
    """
    now = _now(now)

    if period == 'custom' and custom_start and custom_end:
        return custom_start, custom_end

    if period == 'week':
        return now - timedelta(days=7), now
    if period == 'month':
        return datetime(now.year, now.month, 1), now
    if period == 'last_year':
        return datetime(now.year - 1, 1, 1), datetime(now.year - 1, 12, 31, 23, 59, 59)
    if period == 'all':
        return datetime(1970, 1, 1), now
    return datetime(now.year, 1, 1), now


def _day_bounds(day: datetime) -> Tuple[datetime, datetime]:
    start = datetime(day.year, day.month, day.day)
    return start, start + timedelta(hours=23, minutes=59, seconds=59)


def _weekday_label(day: datetime) -> str:
    # Python weeks start on Monday
    return WEEKDAY_LABELS[(day.weekday() + 1) % 7]


def _bucket_windows(period: str, start: datetime, end: datetime, now: datetime) -> Optional[List[Tuple[str, datetime, datetime]]]:
    """
    Fixed (label, start, end) buckets for a period.

    Returns None for periods whose buckets come from the data itself
    ('all', and 'custom' ranges longer than a month).
    """
    windows = []

    if period == 'week':
        for i in range(6, -1, -1):
            day = now - timedelta(days=i)
            day_start, day_end = _day_bounds(day)
            windows.append((_weekday_label(day), day_start, day_end))

    elif period == 'month':
        for i in range(3, -1, -1):
            week_end = now - timedelta(days=i * 7)
            week_start = week_end - timedelta(days=6)
            windows.append((f"W{4 - i}", week_start, week_end))

    elif period in ('year', 'last_year'):
        base_year = now.year - 1 if period == 'last_year' else now.year
        for month in range(1, 13):
            last_day = calendar.monthrange(base_year, month)[1]
            windows.append((
                str(month),
                datetime(base_year, month, 1),
                datetime(base_year, month, last_day, 23, 59, 59),
            ))

    elif period == 'custom':
        diff_days = math.ceil((end - start) / timedelta(days=1))
        if diff_days > 31:
            return None
        for i in range(diff_days + 1):
            day = start + timedelta(days=i)
            day_start, day_end = _day_bounds(day)
            windows.append((f"{day.month}/{day.day}", day_start, day_end))

    else:
        return None

    return windows


def _dynamic_label(period: str, when: datetime) -> str:
    if period == 'all':
        return str(when.year)
    return f"{when.year}-{when.month}"


def _expenses_between(session, start: datetime, end: datetime) -> List[Expense]:
    return session.query(Expense).filter(Expense.paid_at >= start, Expense.paid_at <= end).all()


def _backlinks_between(session, start: datetime, end: datetime) -> List[Backlink]:
    return session.query(Backlink).filter(Backlink.created_at >= start, Backlink.created_at <= end).all()


def get_expense_trend(session, period: str, custom_start: datetime = None, custom_end: datetime = None,
                      now: datetime = None) -> List[Dict]:
    """Expense totals per bucket: [{'label': ..., 'amount': ...}]."""
    now = _now(now)
    start, end = get_date_range(period, custom_start, custom_end, now)
    expenses = _expenses_between(session, start, end)

    windows = _bucket_windows(period, start, end, now)
    if windows is not None:
        return [
            {'label': label, 'amount': sum(e.amount for e in expenses if w_start <= e.paid_at <= w_end)}
            for label, w_start, w_end in windows
        ]

    totals = {}
    for expense in expenses:
        label = _dynamic_label(period, expense.paid_at)
        totals[label] = totals.get(label, 0) + expense.amount

    labels = sorted(totals, key=int) if period == 'all' else list(totals)
    return [{'label': label, 'amount': totals[label]} for label in labels]


def get_backlink_trend(session, period: str, custom_start: datetime = None, custom_end: datetime = None,
                       now: datetime = None) -> List[Dict]:
    """Backlink counts and costs per bucket: [{'label', 'count', 'cost'}]."""
    now = _now(now)
    start, end = get_date_range(period, custom_start, custom_end, now)
    backlinks = _backlinks_between(session, start, end)

    windows = _bucket_windows(period, start, end, now)
    if windows is not None:
        data = []
        for label, w_start, w_end in windows:
            in_window = [b for b in backlinks if w_start <= b.created_at <= w_end]
            data.append({
                'label': label,
                'count': len(in_window),
                'cost': sum(b.cost or 0 for b in in_window),
            })
        return data

    buckets = {}
    for backlink in backlinks:
        label = _dynamic_label(period, backlink.created_at)
        bucket = buckets.setdefault(label, {'count': 0, 'cost': 0})
        bucket['count'] += 1
        bucket['cost'] += backlink.cost or 0

    labels = sorted(buckets, key=int) if period == 'all' else list(buckets)
    return [{'label': label, **buckets[label]} for label in labels]


def _expense_frame(expenses: List[Expense]) -> pd.DataFrame:
    return pd.DataFrame(
        [{
            'project_id': e.project_id,
            'project_name': e.project.name if e.project else None,
            'category': e.category,
            'amount': e.amount,
        } for e in expenses],
        columns=['project_id', 'project_name', 'category', 'amount'],
    )


def get_project_cost_comparison(session, limit: int = 5) -> List[Dict]:
    """Top projects by total expense, with global expenses as one bucket."""
    df = _expense_frame(session.query(Expense).all())
    if df.empty:
        return []

    df['key'] = df['project_id'].apply(lambda pid: 'global' if pd.isna(pid) else str(int(pid)))
    df['name'] = df.apply(
        lambda row: GLOBAL_COST_NAME if row['key'] == 'global'
        else (row['project_name'] or f"Project {row['key']}"),
        axis=1,
    )

    totals = df.groupby(['key', 'name'], sort=False)['amount'].sum().reset_index()
    totals = totals.sort_values('amount', ascending=False, kind='stable').head(limit)

    return [{'name': row['name'], 'amount': float(row['amount'])} for _, row in totals.iterrows()]


def get_category_breakdown(session, period: str, custom_start: datetime = None, custom_end: datetime = None,
                           now: datetime = None) -> List[Dict]:
    """Expense totals per category within a period."""
    start, end = get_date_range(period, custom_start, custom_end, _now(now))
    df = _expense_frame(_expenses_between(session, start, end))
    if df.empty:
        return []

    totals = df.groupby('category', sort=False)['amount'].sum()
    return [{'category': category, 'amount': float(amount)} for category, amount in totals.items()]


def get_analytics_summary(session, period: str, custom_start: datetime = None, custom_end: datetime = None,
                          now: datetime = None) -> Dict:
    """Headline numbers for a period."""
    start, end = get_date_range(period, custom_start, custom_end, _now(now))
    expenses = _expenses_between(session, start, end)
    backlinks = _backlinks_between(session, start, end)

    return {
        'total_cost': sum(e.amount for e in expenses),
        'expense_count': len(expenses),
        'backlink_count': len(backlinks),
        'backlink_cost': sum(b.cost or 0 for b in backlinks),
        'live_backlinks': sum(1 for b in backlinks if b.status == 'live'),
    }


# ============================================================================
# DASHBOARD STATS
# ============================================================================

def get_expense_stats(session, now: datetime = None) -> Dict:
    """This month, this year, global vs project totals and expense count."""
    now = _now(now)
    month_start = datetime(now.year, now.month, 1)
    year_start = datetime(now.year, 1, 1)

    stats = {'this_month': 0, 'this_year': 0, 'global_cost': 0, 'project_cost': 0, 'total': 0}
    for expense in session.query(Expense).all():
        if expense.paid_at >= month_start:
            stats['this_month'] += expense.amount
        if expense.paid_at >= year_start:
            stats['this_year'] += expense.amount
        if expense.project_id is None:
            stats['global_cost'] += expense.amount
        else:
            stats['project_cost'] += expense.amount
        stats['total'] += 1

    return stats


def _shift_month(year: int, month: int, offset: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def get_monthly_trend(session, now: datetime = None) -> List[Dict]:
    """Expense totals for the last 12 months, oldest first, keyed 'YYYY-MM'."""
    now = _now(now)
    first_year, first_month = _shift_month(now.year, now.month, -11)

    totals = {}
    for i in range(12):
        year, month = _shift_month(first_year, first_month, i)
        totals[f"{year}-{month:02d}"] = 0

    expenses = session.query(Expense).filter(Expense.paid_at >= datetime(first_year, first_month, 1)).all()
    for expense in expenses:
        key = f"{expense.paid_at.year}-{expense.paid_at.month:02d}"
        if key in totals:
            totals[key] += expense.amount

    return [{'name': key, 'amount': amount} for key, amount in totals.items()]


def get_upcoming_expires(session, days: int = 30, now: datetime = None) -> List[Expense]:
    """Expenses whose expiry falls within the next `days` days, soonest first."""
    now = _now(now)
    return session.query(Expense).filter(
        Expense.expires_at >= now,
        Expense.expires_at <= now + timedelta(days=days)
    ).order_by(Expense.expires_at).all()


def get_tool_stats(session) -> Dict:
    """Tool counts by cost model and by category."""
    stats = {'total': 0, 'free_count': 0, 'paid_count': 0, 'freemium_count': 0, 'category_count': {}}
    for tool in session.query(SiteTool).all():
        stats['total'] += 1
        stats['category_count'][tool.category] = stats['category_count'].get(tool.category, 0) + 1
        if tool.cost == 'free':
            stats['free_count'] += 1
        elif tool.cost == 'paid':
            stats['paid_count'] += 1
        else:
            stats['freemium_count'] += 1
    return stats


def get_resource_stats(session) -> Dict:
    """Resource totals and how many resources have been used for a backlink."""
    resources = session.query(LinkResource).all()
    used = session.query(Backlink.resource_id).filter(Backlink.resource_id.isnot(None)).distinct().count()
    return {
        'total': len(resources),
        'active_count': sum(1 for r in resources if r.status == 'active'),
        'free_count': sum(1 for r in resources if r.is_free),
        'used_count': used,
    }


def get_dashboard_stats(session, now: datetime = None) -> Dict:
    """Top-line counters for the dashboard."""
    now = _now(now)
    projects = session.query(Project).all()
    month_start = datetime(now.year, now.month, 1)
    monthly_backlink_cost = sum(
        b.cost or 0 for b in session.query(Backlink).filter(Backlink.created_at >= month_start).all()
    )
    return {
        'total_projects': len(projects),
        'active_adsense': sum(1 for p in projects if p.adsense_status == 'active'),
        'monthly_backlink_cost': monthly_backlink_cost,
    }
