"""
Tools Page - Bookmarks for SEO and research tools.
"""

import streamlit as st
import pandas as pd
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from nichestack.analytics import get_tool_stats
from nichestack.database import get_session, get_all_tools, add_tool, delete_tool, seed_initial_tools
from nichestack.models import ToolCost, enum_values
from nichestack.presets import get_presets_by_type
from nichestack.sidebar import setup_page
from nichestack.styles import page_header
from nichestack.validation import validate_tool

config, t = setup_page("Tools", "🧰")

page_header("Tools", "Research, keyword and domain tools")

session = get_session()

try:
    stats = get_tool_stats(session)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Tools", stats['total'])
    col2.metric("Free", stats['free_count'])
    col3.metric("Freemium", stats['freemium_count'])
    col4.metric("Paid", stats['paid_count'])

    categories = [p.value for p in get_presets_by_type(session, 'tool_category')] or ['other']
    tools = get_all_tools(session)

    if not tools:
        st.info("No tools saved yet.")
        if st.button("Add starter tools"):
            count = seed_initial_tools(session)
            st.success(f"Added {count} tools")
            st.rerun()
    else:
        category = st.selectbox("Category", ['all'] + categories)
        shown = [tool for tool in tools if category == 'all' or tool.category == category]
        st.dataframe(
            pd.DataFrame([{
                'ID': tool.id,
                'Name': tool.name,
                'URL': tool.url,
                'Category': tool.category,
                'Purpose': tool.purpose,
                'Cost': tool.cost,
            } for tool in shown]),
            use_container_width=True,
            hide_index=True,
            column_config={'URL': st.column_config.LinkColumn('URL')},
        )

        names = {tool.id: tool.name for tool in tools}
        col1, col2 = st.columns([3, 1])
        tool_id = col1.selectbox("Tool", list(names), format_func=lambda tid: names[tid])
        if col2.button("Delete tool", use_container_width=True):
            delete_tool(session, tool_id)
            st.rerun()

    with st.expander("➕ Add tool"):
        with st.form("add_tool", clear_on_submit=True):
            values = {
                'name': st.text_input("Name *"),
                'url': st.text_input("URL *"),
                'category': st.selectbox("Category", categories),
                'cost': st.selectbox("Cost", enum_values(ToolCost)),
                'purpose': st.text_area("Purpose") or None,
            }
            if st.form_submit_button("Add"):
                errors = validate_tool(values, t)
                if errors:
                    for error in errors:
                        st.error(error)
                else:
                    add_tool(session, **values)
                    st.rerun()

finally:
    session.close()
