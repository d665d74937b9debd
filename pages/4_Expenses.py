"""
Expenses Page - Project and fixed costs, renewals and monthly spend.
"""

import streamlit as st
import pandas as pd
import plotly.express as px
from datetime import datetime, date
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from nichestack.analytics import get_expense_stats, get_monthly_trend, get_upcoming_expires
from nichestack.database import (
    get_session, get_all_projects, get_expenses, add_expense, update_expense, delete_expense,
    get_payment_methods, add_payment_method
)
from nichestack.presets import get_presets_by_type
from nichestack.sidebar import setup_page
from nichestack.styles import apply_plotly_theme, page_header, section_header
from nichestack.validation import validate_expense

config, t = setup_page("Expenses", "💳")

page_header("Expenses", "Where the money goes")


def _to_datetime(value):
    if value is None:
        return None
    return datetime.combine(value, datetime.min.time())


session = get_session()

try:
    stats = get_expense_stats(session)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("This Month", f"${stats['this_month']:,.2f}")
    col2.metric("This Year", f"${stats['this_year']:,.2f}")
    col3.metric("Project Costs", f"${stats['project_cost']:,.2f}")
    col4.metric("Fixed Costs", f"${stats['global_cost']:,.2f}")

    projects = get_all_projects(session)
    project_names = {p.id: p.name for p in projects}
    categories = [p.value for p in get_presets_by_type(session, 'expense_category')] or ['other']
    methods = {m.id: m.label or m.value for m in get_payment_methods(session)}

    tab_list, tab_add, tab_trend = st.tabs(["📋 Expenses", "➕ Add Expense", "📈 Trend"])

    with tab_add:
        with st.form("add_expense", clear_on_submit=True):
            col1, col2 = st.columns(2)
            values = {
                'name': col1.text_input("Name *"),
                'amount': col2.number_input("Amount *", min_value=0.0, value=0.0, step=1.0),
                'category': col1.selectbox("Category", categories),
                'project_id': col2.selectbox(
                    "Project", [None] + list(project_names),
                    format_func=lambda pid: t('analytics.fixedCost') if pid is None else project_names[pid]
                ),
                'payment_method_id': col1.selectbox(
                    "Payment method", [None] + list(methods),
                    format_func=lambda mid: '-' if mid is None else methods[mid]
                ),
                'paid_at': _to_datetime(col2.date_input("Paid on", value=date.today())),
                'expires_at': _to_datetime(col1.date_input("Expires on", value=None)),
                'notes': st.text_area("Notes") or None,
            }
            if st.form_submit_button("Add"):
                errors = validate_expense(values, t)
                if errors:
                    for error in errors:
                        st.error(error)
                else:
                    add_expense(session, **values)
                    st.success("Expense added")
                    st.rerun()

        with st.expander("Payment methods"):
            new_method = st.text_input("New payment method")
            if st.button("Add payment method") and new_method.strip():
                add_payment_method(session, new_method.strip())
                st.rerun()

    with tab_list:
        col1, col2, col3, col4 = st.columns(4)
        category = col1.selectbox("Category", ['all'] + categories, key="filter_category")
        project_filter = col2.selectbox(
            "Project", [None, 'global'] + list(project_names),
            format_func=lambda v: 'All' if v is None else (
                t('analytics.fixedCost') if v == 'global' else project_names[v]),
            key="filter_project"
        )
        year = col3.selectbox("Year", [None] + list(range(date.today().year, date.today().year - 6, -1)),
                              format_func=lambda v: 'All' if v is None else str(v))
        month = col4.selectbox("Month", [None] + list(range(1, 13)),
                               format_func=lambda v: 'All' if v is None else str(v), disabled=year is None)

        expenses = get_expenses(session, category=category, project_id=project_filter, year=year, month=month)

        if expenses:
            st.dataframe(pd.DataFrame([{
                'ID': e.id,
                'Name': e.name,
                'Amount': e.amount,
                'Category': e.category,
                'Project': e.project.name if e.project else t('analytics.fixedCost'),
                'Paid': e.paid_at.strftime('%Y-%m-%d'),
                'Expires': e.expires_at.strftime('%Y-%m-%d') if e.expires_at else '',
                'Method': e.payment_method.label if e.payment_method else '',
            } for e in expenses]), use_container_width=True, hide_index=True)
            st.caption(f"{len(expenses)} expenses · ${sum(e.amount for e in expenses):,.2f}")

            labels = {e.id: f"#{e.id} {e.name}" for e in expenses}
            expense_id = st.selectbox("Expense", list(labels), format_func=lambda eid: labels[eid])
            col1, col2, col3 = st.columns(3)
            renewal = col1.date_input("Renewed until", value=None, key="renewal")
            if col2.button("Save renewal", use_container_width=True, disabled=renewal is None):
                update_expense(session, expense_id, expires_at=_to_datetime(renewal))
                st.rerun()
            if col3.button("Delete", use_container_width=True):
                delete_expense(session, expense_id)
                st.rerun()
        else:
            st.info("No expenses match the filters.")

        section_header("Renewals in the Next 30 Days")
        for expense in get_upcoming_expires(session, 30):
            st.markdown(f"**{expense.name}** · {expense.expires_at:%Y-%m-%d} · ${expense.amount:,.2f}")

    with tab_trend:
        trend = pd.DataFrame(get_monthly_trend(session))
        fig = px.bar(trend, x='name', y='amount', labels={'name': '', 'amount': 'Spend'})
        st.plotly_chart(apply_plotly_theme(fig, show_legend=False), use_container_width=True)

finally:
    session.close()
