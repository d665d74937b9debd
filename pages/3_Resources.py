"""
Resources Page - Reusable link-building sources and where they were used.
"""

import streamlit as st
import pandas as pd
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from nichestack.analytics import get_resource_stats
from nichestack.database import (
    get_session, get_all_resources, add_resource, update_resource, delete_resource,
    get_resource_detail, link_resource_to_project, unlink_resource_from_project
)
from nichestack.models import ResourceStatus, enum_values
from nichestack.presets import get_presets_by_type
from nichestack.sidebar import setup_page
from nichestack.styles import page_header, section_header
from nichestack.validation import validate_resource

config, t = setup_page("Resources", "📚")

page_header("Link Resources", "Directories, forums and guest-post sites to reuse")


def resource_form(key, types, resource=None):
    with st.form(key, clear_on_submit=resource is None):
        col1, col2 = st.columns(2)
        current_type = resource.type if resource else types[0]
        values = {
            'name': col1.text_input("Name *", value=resource.name if resource else ''),
            'url': col2.text_input("URL *", value=resource.url if resource else ''),
            'type': col1.selectbox("Type", types, index=types.index(current_type) if current_type in types else 0),
            'status': col2.selectbox(
                "Status", enum_values(ResourceStatus),
                index=enum_values(ResourceStatus).index(resource.status) if resource else 0
            ),
            'da_score': col1.number_input("DA", min_value=0, max_value=100,
                                          value=resource.da_score if resource else None),
            'dr_score': col2.number_input("DR", min_value=0, max_value=100,
                                          value=resource.dr_score if resource else None),
            'is_free': col1.checkbox("Free", value=resource.is_free if resource else True),
            'price': col2.number_input("Price", min_value=0.0,
                                       value=float(resource.price or 0) if resource else 0.0),
            'notes': st.text_area("Notes", value=(resource.notes or '') if resource else '') or None,
        }
        submitted = st.form_submit_button("Save")
    return submitted, values


session = get_session()

try:
    stats = get_resource_stats(session)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Resources", stats['total'])
    col2.metric("Active", stats['active_count'])
    col3.metric("Free", stats['free_count'])
    col4.metric("Used", stats['used_count'])

    types = [p.value for p in get_presets_by_type(session, 'resource_type')] or ['other']
    resources = get_all_resources(session)

    tab_list, tab_add = st.tabs(["📋 Resources", "➕ Add Resource"])

    with tab_add:
        submitted, values = resource_form("add_resource", types)
        if submitted:
            errors = validate_resource(values, t)
            if errors:
                for error in errors:
                    st.error(error)
            else:
                add_resource(session, **values)
                st.success("Resource added")
                st.rerun()

    with tab_list:
        if not resources:
            st.info("No resources yet.")
            st.stop()

        st.dataframe(pd.DataFrame([{
            'Name': r.name,
            'URL': r.url,
            'Type': r.type,
            'DA': r.da_score,
            'DR': r.dr_score,
            'Price': 'Free' if r.is_free else r.price,
            'Status': r.status,
        } for r in resources]), use_container_width=True, hide_index=True)

        names = {r.id: r.name for r in resources}
        resource_id = st.selectbox("Resource", list(names), format_func=lambda rid: names[rid])
        detail = get_resource_detail(session, resource_id)
        resource = detail['resource']

        section_header(f"Used by ({len(detail['linked_backlinks'])})")
        for backlink in detail['linked_backlinks']:
            col1, col2 = st.columns([5, 1])
            col1.markdown(
                f"**{backlink.project.name}** · {backlink.target_url or '-'} · "
                f"{t('backlinkStatus.' + backlink.status)}"
            )
            if col2.button("Unlink", key=f"unlink_{backlink.id}"):
                unlink_resource_from_project(session, backlink.id)
                st.rerun()

        if detail['unlinked_projects']:
            section_header("Place on a Project")
            unlinked = {p.id: p.name for p in detail['unlinked_projects']}
            with st.form("link_resource"):
                project_id = st.selectbox("Project", list(unlinked), format_func=lambda pid: unlinked[pid])
                target_url = st.text_input("Live URL (leave empty if still planned)")
                if not resource.is_free and resource.price:
                    st.caption(f"A ${resource.price:,.2f} marketing expense will be recorded.")
                if st.form_submit_button("Link"):
                    link_resource_to_project(session, resource.id, project_id, target_url.strip())
                    st.success("Linked")
                    st.rerun()

        with st.expander("✏️ Edit resource"):
            submitted, values = resource_form(f"edit_resource_{resource.id}", types, resource)
            if submitted:
                errors = validate_resource(values, t)
                if errors:
                    for error in errors:
                        st.error(error)
                else:
                    update_resource(session, resource.id, **values)
                    st.rerun()
            if st.button("Delete resource"):
                delete_resource(session, resource.id)
                st.rerun()

finally:
    session.close()
