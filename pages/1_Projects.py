"""
Projects Page - Add, edit and maintain niche sites.
"""

import streamlit as st
import pandas as pd
from datetime import datetime, date
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from nichestack.database import (
    get_session, get_all_projects, get_project_by_id, add_project, update_project, delete_project,
    manual_update_project, get_all_github_accounts, get_backlinks_with_stats, get_project_expenses,
    get_project_domain_expense
)
from nichestack.formatters import domain_expiry_text, launch_duration, relative_time
from nichestack.github_sync import list_account_repos, sync_project
from nichestack.health import classify, effective_last_update, explain_reasons
from nichestack.models import AdsenseStatus, ProjectStatus, enum_values
from nichestack.presets import create_preset, get_form_options
from nichestack.sidebar import setup_page
from nichestack.styles import health_badge, page_header, section_header
from nichestack.validation import validate_project

config, t = setup_page("Projects", "🌐")

page_header("Projects", "Your niche sites and their maintenance state")


def _to_datetime(value):
    if value is None:
        return None
    return datetime.combine(value, datetime.min.time())


def _to_date(value):
    return value.date() if value else None


def _option_input(container, label, options, current, key):
    """Select from known values or type a new one."""
    choices = [''] + options
    if current and current not in choices:
        choices.append(current)
    selected = container.selectbox(label, choices, index=choices.index(current or ''), key=f"{key}_select")
    typed = container.text_input(f"New {label.lower()}", key=f"{key}_new")
    return typed.strip() or selected or None


def project_form(session, project=None):
    """Render the project form. Returns (submitted, values)."""
    accounts = get_all_github_accounts(session)
    account_ids = [None] + [a.id for a in accounts]
    account_names = {a.id: a.username for a in accounts}
    prefix = f"project_{project.id if project else 'new'}"

    with st.form(prefix):
        col1, col2 = st.columns(2)
        values = {
            'name': col1.text_input("Name *", value=project.name if project else ''),
            'site_url': col2.text_input("Site URL", value=(project.site_url or '') if project else '') or None,
            'niche_category': col1.text_input("Niche", value=(project.niche_category or '') if project else '') or None,
            'status': col2.selectbox(
                "Status", enum_values(ProjectStatus),
                index=enum_values(ProjectStatus).index(project.status) if project else 0,
                format_func=lambda v: t('projectStatus.' + v)
            ),
            'adsense_status': col1.selectbox(
                "AdSense", enum_values(AdsenseStatus),
                index=enum_values(AdsenseStatus).index(project.adsense_status) if project else 0,
                format_func=lambda v: t('adsense.' + v)
            ),
            'monetization_type': col2.text_input(
                "Monetization", value=(project.monetization_type or '') if project else ''
            ) or None,
        }

        st.markdown("**GitHub**")
        col1, col2, col3 = st.columns(3)
        current_account = project.github_account_id if project else None
        values['github_account_id'] = col1.selectbox(
            "Account", account_ids,
            index=account_ids.index(current_account) if current_account in account_ids else 0,
            format_func=lambda v: 'None' if v is None else account_names[v]
        )
        values['repo_owner'] = col2.text_input("Repo owner", value=(project.repo_owner or '') if project else '') or None
        values['repo_name'] = col3.text_input("Repo name", value=(project.repo_name or '') if project else '') or None

        st.markdown("**Domain & Hosting**")
        col1, col2 = st.columns(2)
        values['domain_expiry'] = _to_datetime(col1.date_input(
            "Domain expiry", value=_to_date(project.domain_expiry) if project else None
        ))
        values['domain_purchase_date'] = _to_datetime(col2.date_input(
            "Domain purchased", value=_to_date(project.domain_purchase_date) if project else None
        ))
        values['domain_registrar'] = _option_input(
            col1, "Registrar", get_form_options(session, 'domain_registrar'),
            project.domain_registrar if project else None, f"{prefix}_registrar"
        )
        values['hosting_platform'] = _option_input(
            col2, "Hosting platform", get_form_options(session, 'hosting_platform'),
            project.hosting_platform if project else None, f"{prefix}_platform"
        )
        values['hosting_account'] = _option_input(
            col1, "Hosting account", get_form_options(session, 'hosting_account'),
            project.hosting_account if project else None, f"{prefix}_account"
        )
        if project is None:
            values['domain_cost'] = col2.number_input("Domain cost", min_value=0.0, value=0.0, step=1.0)

        st.markdown("**Activity**")
        col1, col2 = st.columns(2)
        values['launched_at'] = _to_datetime(col1.date_input(
            "Launched", value=_to_date(project.launched_at) if project else None
        ))
        values['last_content_update'] = _to_datetime(col2.date_input(
            "Last content update", value=_to_date(project.last_content_update) if project else None
        ))
        values['notes'] = st.text_area("Notes", value=(project.notes or '') if project else '') or None

        submitted = st.form_submit_button("Save")

    return submitted, values


def _remember_presets(session, values):
    for field in ('domain_registrar', 'hosting_platform', 'hosting_account'):
        if values.get(field):
            create_preset(session, field, values[field])


session = get_session()

try:
    tab_list, tab_add = st.tabs(["📋 All Projects", "➕ Add Project"])

    with tab_add:
        submitted, values = project_form(session)
        if submitted:
            errors = validate_project(values, t)
            if errors:
                for error in errors:
                    st.error(error)
            else:
                domain_cost = values.pop('domain_cost', None)
                project = add_project(session, domain_cost=domain_cost, **values)
                _remember_presets(session, values)
                st.success(f"Added {project.name}")
                st.rerun()

    with tab_list:
        projects = get_all_projects(session)
        if not projects:
            st.info("No projects yet. Add your first site in the next tab.")
            st.stop()

        names = {p.id: p.name for p in projects}
        project_id = st.selectbox("Project", list(names), format_func=lambda pid: names[pid])
        project = get_project_by_id(session, project_id)
        health = classify(project)

        st.markdown(
            f"### {project.name} {health_badge(health.value, t('health.' + health.value))}",
            unsafe_allow_html=True
        )
        for reason in explain_reasons(project, t):
            st.caption(f"• {reason}")

        expiry = domain_expiry_text(project.domain_expiry, t)
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Last Update", relative_time(effective_last_update(project), t))
        col2.metric("Domain", expiry.text)
        col3.metric("Live For", launch_duration(project.launched_at, t) or '-')
        col4.metric("GitHub Push", relative_time(project.last_github_push, t))

        domain_expense = get_project_domain_expense(session, project.id)
        if domain_expense:
            col2.caption(f"Last paid ${domain_expense.amount:,.2f} on {domain_expense.paid_at:%Y-%m-%d}")

        col1, col2, col3 = st.columns(3)
        if col1.button("✅ Mark as updated today", use_container_width=True):
            manual_update_project(session, project.id)
            st.rerun()
        if col2.button("🔄 Sync GitHub", use_container_width=True, disabled=not project.has_repo):
            synced = sync_project(session, project.id, config)
            if synced and synced.last_github_push:
                st.success(f"Last push: {synced.last_github_push:%Y-%m-%d %H:%M}")
            else:
                st.warning("Could not read the repository from GitHub.")
        if col3.button("🗑️ Delete project", use_container_width=True):
            st.session_state['confirm_delete'] = project.id

        if st.session_state.get('confirm_delete') == project.id:
            st.warning(f"Delete {project.name} and its backlinks? Its expenses become fixed costs.")
            if st.button("Confirm delete"):
                delete_project(session, project.id)
                st.session_state.pop('confirm_delete', None)
                st.rerun()

        if project.github_account_id:
            with st.expander("Repositories on the linked GitHub account"):
                repos = list_account_repos(session, project.github_account_id)
                if repos:
                    st.dataframe(
                        pd.DataFrame([{
                            'Repository': r.get('full_name'),
                            'Private': r.get('private'),
                            'Updated': r.get('updated_at'),
                        } for r in repos]),
                        use_container_width=True, hide_index=True
                    )
                else:
                    st.caption("No repositories returned.")

        section_header("Backlinks")
        backlink_data = get_backlinks_with_stats(session, project.id)
        col1, col2, col3 = st.columns(3)
        col1.metric("Total", backlink_data['stats']['total'])
        col2.metric("Live", backlink_data['stats']['live'])
        col3.metric("Cost", f"${backlink_data['stats']['total_cost']:,.2f}")
        if backlink_data['backlinks']:
            st.dataframe(pd.DataFrame([{
                'Source': b.source_url,
                'Target': b.target_url,
                'Anchor': b.anchor_text,
                'DA': b.da_score,
                'Cost': b.cost,
                'Status': t('backlinkStatus.' + b.status),
            } for b in backlink_data['backlinks']]), use_container_width=True, hide_index=True)

        section_header("Expenses")
        expense_data = get_project_expenses(session, project.id)
        st.metric("Total Spend", f"${expense_data['total']:,.2f}")
        if expense_data['expenses']:
            st.dataframe(pd.DataFrame([{
                'Name': e.name,
                'Category': e.category,
                'Amount': e.amount,
                'Paid': e.paid_at.strftime('%Y-%m-%d'),
                'Expires': e.expires_at.strftime('%Y-%m-%d') if e.expires_at else '',
            } for e in expense_data['expenses']]), use_container_width=True, hide_index=True)

        with st.expander("✏️ Edit project"):
            submitted, values = project_form(session, project)
            if submitted:
                errors = validate_project(values, t)
                if errors:
                    for error in errors:
                        st.error(error)
                else:
                    update_project(session, project.id, **values)
                    _remember_presets(session, values)
                    st.success("Project updated")
                    st.rerun()

finally:
    session.close()
