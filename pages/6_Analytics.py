"""
Analytics Page - Spend and backlink trends over a chosen period.
"""

import streamlit as st
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
from datetime import datetime, date, timedelta
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from nichestack.analytics import (
    PERIODS, GLOBAL_COST_NAME, get_analytics_summary, get_backlink_trend, get_category_breakdown,
    get_expense_trend, get_project_cost_comparison
)
from nichestack.database import get_session
from nichestack.sidebar import setup_page
from nichestack.styles import COLORS, apply_plotly_theme, page_header, section_header

config, t = setup_page("Analytics", "📊")

page_header("Analytics", "Spend and link building over time")

PERIOD_LABELS = {
    'week': 'Last 7 days',
    'month': 'This month',
    'year': 'This year',
    'last_year': 'Last year',
    'all': 'All time',
    'custom': 'Custom range',
}

col1, col2 = st.columns([1, 2])
period = col1.selectbox("Period", PERIODS, index=PERIODS.index('year'), format_func=PERIOD_LABELS.get)

custom_start = custom_end = None
if period == 'custom':
    picked = col2.date_input("Range", value=(date.today() - timedelta(days=30), date.today()))
    if isinstance(picked, tuple) and len(picked) == 2:
        custom_start = datetime.combine(picked[0], datetime.min.time())
        custom_end = datetime.combine(picked[1], datetime.max.time().replace(microsecond=0))

session = get_session()

try:
    summary = get_analytics_summary(session, period, custom_start, custom_end)
    col1, col2, col3, col4, col5 = st.columns(5)
    col1.metric("Total Spend", f"${summary['total_cost']:,.2f}")
    col2.metric("Expenses", summary['expense_count'])
    col3.metric("Backlinks", summary['backlink_count'])
    col4.metric("Backlink Spend", f"${summary['backlink_cost']:,.2f}")
    col5.metric("Live Backlinks", summary['live_backlinks'])

    col1, col2 = st.columns(2)

    with col1:
        section_header("Spend Trend")
        trend = pd.DataFrame(get_expense_trend(session, period, custom_start, custom_end))
        if trend.empty:
            st.caption("No expenses in this period.")
        else:
            fig = px.area(trend, x='label', y='amount', labels={'label': '', 'amount': 'Spend'})
            st.plotly_chart(apply_plotly_theme(fig, show_legend=False), use_container_width=True)

    with col2:
        section_header("Backlink Growth")
        links = pd.DataFrame(get_backlink_trend(session, period, custom_start, custom_end))
        if links.empty:
            st.caption("No backlinks in this period.")
        else:
            fig = go.Figure()
            fig.add_bar(x=links['label'], y=links['count'], name='Backlinks',
                        marker_color=COLORS['accent'])
            fig.add_scatter(x=links['label'], y=links['cost'], name='Cost', yaxis='y2',
                            line=dict(color=COLORS['warning']))
            apply_plotly_theme(fig)
            fig.update_layout(yaxis2=dict(overlaying='y', side='right', showgrid=False))
            st.plotly_chart(fig, use_container_width=True)

    col1, col2 = st.columns(2)

    with col1:
        section_header("Spend by Category")
        breakdown = pd.DataFrame(get_category_breakdown(session, period, custom_start, custom_end))
        if breakdown.empty:
            st.caption("No expenses in this period.")
        else:
            fig = px.pie(breakdown, names='category', values='amount', hole=0.5)
            st.plotly_chart(apply_plotly_theme(fig), use_container_width=True)

    with col2:
        section_header("Top Projects by Cost")
        costs = pd.DataFrame(get_project_cost_comparison(session))
        if costs.empty:
            st.caption("No expenses yet.")
        else:
            costs['name'] = costs['name'].replace(GLOBAL_COST_NAME, t('analytics.fixedCost'))
            fig = px.bar(costs, x='amount', y='name', orientation='h', labels={'name': '', 'amount': 'Spend'})
            fig.update_yaxes(autorange='reversed')
            st.plotly_chart(apply_plotly_theme(fig, show_legend=False), use_container_width=True)

finally:
    session.close()
