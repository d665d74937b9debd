"""
Backlinks Page - Track inbound links across all projects.
"""

import streamlit as st
import pandas as pd
from datetime import datetime
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from nichestack.database import (
    get_session, get_all_projects, get_backlinks, add_backlink, update_backlink, delete_backlink,
    backlink_stats
)
from nichestack.models import BacklinkStatus, enum_values
from nichestack.sidebar import setup_page
from nichestack.styles import page_header, section_header
from nichestack.validation import validate_backlink

config, t = setup_page("Backlinks", "🔗")

page_header("Backlinks", "Inbound links, their cost and status")

session = get_session()

try:
    projects = get_all_projects(session)
    if not projects:
        st.info("Add a project first to start tracking backlinks.")
        st.stop()

    names = {p.id: p.name for p in projects}

    project_filter = st.selectbox(
        "Project", [None] + list(names),
        format_func=lambda pid: 'All projects' if pid is None else names[pid]
    )
    backlinks = get_backlinks(session, project_filter)

    stats = backlink_stats(backlinks)
    col1, col2, col3 = st.columns(3)
    col1.metric("Backlinks", stats['total'])
    col2.metric("Live", stats['live'])
    col3.metric("Total Cost", f"${stats['total_cost']:,.2f}")

    if backlinks:
        st.dataframe(pd.DataFrame([{
            'ID': b.id,
            'Project': b.project.name,
            'Source': b.source_url,
            'Target': b.target_url,
            'Anchor': b.anchor_text,
            'DA': b.da_score,
            'Cost': b.cost,
            'Status': t('backlinkStatus.' + b.status),
            'Resource': b.resource.name if b.resource else '',
            'Added': b.created_at.strftime('%Y-%m-%d'),
        } for b in backlinks]), use_container_width=True, hide_index=True)

    col1, col2 = st.columns(2)

    with col1:
        section_header("Add Backlink")
        with st.form("add_backlink", clear_on_submit=True):
            values = {
                'project_id': st.selectbox("Project *", list(names), format_func=lambda pid: names[pid]),
                'source_url': st.text_input("Source URL *"),
                'target_url': st.text_input("Target URL *"),
                'anchor_text': st.text_input("Anchor text") or None,
                'da_score': st.number_input("DA", min_value=0, max_value=100, value=None),
                'cost': st.number_input("Cost", min_value=0.0, value=0.0, step=1.0),
                'status': st.selectbox("Status", enum_values(BacklinkStatus),
                                       format_func=lambda v: t('backlinkStatus.' + v)),
            }
            if st.form_submit_button("Add"):
                errors = validate_backlink(values, t)
                if errors:
                    for error in errors:
                        st.error(error)
                else:
                    if values['status'] == 'live':
                        values['acquired_date'] = datetime.now()
                    add_backlink(session, **values)
                    st.success("Backlink added")
                    st.rerun()

    with col2:
        section_header("Update Status")
        if backlinks:
            labels = {b.id: f"#{b.id} {b.source_url}" for b in backlinks}
            backlink_id = st.selectbox("Backlink", list(labels), format_func=lambda bid: labels[bid])
            new_status = st.selectbox("New status", enum_values(BacklinkStatus),
                                      format_func=lambda v: t('backlinkStatus.' + v), key="new_status")
            col_a, col_b = st.columns(2)
            if col_a.button("Update", use_container_width=True):
                fields = {'status': new_status}
                if new_status == 'live':
                    fields['acquired_date'] = datetime.now()
                update_backlink(session, backlink_id, **fields)
                st.rerun()
            if col_b.button("Delete", use_container_width=True):
                delete_backlink(session, backlink_id)
                st.rerun()
        else:
            st.caption("No backlinks yet.")

finally:
    session.close()
