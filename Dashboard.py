"""
NicheStack Manager - Main Application
Portfolio dashboard: site health, costs and upcoming renewals.
"""

import streamlit as st
import pandas as pd
import plotly.express as px
import os
import sys

sys.path.insert(0, os.path.dirname(__file__))

from nichestack.analytics import (
    get_dashboard_stats, get_expense_stats, get_monthly_trend, get_resource_stats,
    get_tool_stats, get_upcoming_expires
)
from nichestack.database import get_session, get_all_projects
from nichestack.formatters import domain_expiry_text, launch_duration, relative_time
from nichestack.health import effective_last_update, explain_reasons, filter_projects, summarize_health
from nichestack.models import AdsenseStatus, ProjectStatus, enum_values
from nichestack.sidebar import setup_page
from nichestack.styles import apply_plotly_theme, health_label, page_header, section_header

config, t = setup_page("Dashboard", "🧭")

page_header("NicheStack Dashboard", "Health, costs and renewals across your niche sites")

session = get_session()

try:
    projects = get_all_projects(session)
    stats = get_dashboard_stats(session)
    expense_stats = get_expense_stats(session)
    resource_stats = get_resource_stats(session)
    tool_stats = get_tool_stats(session)

    # ---- Top-line metrics ----
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Projects", stats['total_projects'])
    col2.metric("AdSense Active", stats['active_adsense'])
    col3.metric("Backlink Spend (month)", f"${stats['monthly_backlink_cost']:,.2f}")
    col4.metric("Spend This Month", f"${expense_stats['this_month']:,.2f}")

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Spend This Year", f"${expense_stats['this_year']:,.2f}")
    col2.metric("Fixed Costs", f"${expense_stats['global_cost']:,.2f}")
    col3.metric("Link Resources", f"{resource_stats['used_count']} / {resource_stats['total']} used")
    col4.metric("Tools", tool_stats['total'])

    # ---- Health overview ----
    section_header("Site Health")
    counts = summarize_health(projects)
    col1, col2, col3 = st.columns(3)
    for col, status in zip((col1, col2, col3), ('good', 'warning', 'danger')):
        col.metric(health_label(status, t('health.' + status)), counts[status])

    # ---- Project table ----
    section_header("Projects")

    col1, col2, col3, col4, col5 = st.columns([3, 2, 2, 2, 2])
    query = col1.text_input("Search", placeholder="Name, URL or niche")
    health_filter = col2.selectbox(
        "Health", ['all', 'good', 'warning', 'danger'],
        format_func=lambda v: 'All' if v == 'all' else t('health.' + v)
    )
    adsense_filter = col3.selectbox(
        "AdSense", ['all'] + enum_values(AdsenseStatus),
        format_func=lambda v: 'All' if v == 'all' else t('adsense.' + v)
    )
    status_filter = col4.selectbox(
        "Status", ['all'] + enum_values(ProjectStatus),
        format_func=lambda v: 'All' if v == 'all' else t('projectStatus.' + v)
    )
    sort_order = col5.selectbox(
        "Last update", [None, 'desc', 'asc'],
        format_func=lambda v: {None: 'Default', 'desc': 'Newest first', 'asc': 'Oldest first'}[v]
    )

    rows = filter_projects(
        projects, health=health_filter, adsense=adsense_filter, status=status_filter,
        query=query, sort_by_update=sort_order
    )

    if rows:
        table = []
        for project, health in rows:
            expiry = domain_expiry_text(project.domain_expiry, t)
            table.append({
                'Project': project.name,
                'URL': project.site_url or '',
                'Health': health_label(health.value, t('health.' + health.value)),
                'Reasons': '; '.join(explain_reasons(project, t)),
                'Last Update': relative_time(effective_last_update(project), t),
                'Domain': expiry.text,
                'Live For': launch_duration(project.launched_at, t),
                'AdSense': t('adsense.' + project.adsense_status),
                'Status': t('projectStatus.' + project.status),
            })
        st.dataframe(
            pd.DataFrame(table),
            use_container_width=True,
            hide_index=True,
            column_config={'URL': st.column_config.LinkColumn('URL')},
        )
    else:
        st.info("No projects match the current filters.")

    # ---- Costs ----
    col1, col2 = st.columns([3, 2])

    with col1:
        section_header("Monthly Spend (12 months)")
        trend = pd.DataFrame(get_monthly_trend(session))
        fig = px.bar(trend, x='name', y='amount', labels={'name': '', 'amount': 'Spend'})
        st.plotly_chart(apply_plotly_theme(fig, show_legend=False, height=300), use_container_width=True)

    with col2:
        section_header("Renewals in the Next 30 Days")
        upcoming = get_upcoming_expires(session, 30)
        if upcoming:
            for expense in upcoming:
                owner = expense.project.name if expense.project else t('analytics.fixedCost')
                st.markdown(
                    f"**{expense.name}** · {owner}  \n"
                    f"{expense.expires_at.strftime('%Y-%m-%d')} · ${expense.amount:,.2f}"
                )
        else:
            st.caption("Nothing expires in the next 30 days.")

finally:
    session.close()
