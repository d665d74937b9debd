"""
Settings Page - Backups, categories, GitHub accounts and sync.
"""

import streamlit as st
import pandas as pd
from datetime import datetime
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from nichestack.backup import clear_all_data, export_to_json, import_from_json
from nichestack.database import (
    get_session, get_all_github_accounts, add_github_account, update_github_account, delete_github_account
)
from nichestack.github_sync import sync_all_projects
from nichestack.presets import (
    create_preset, delete_preset, get_presets_by_type, initialize_default_categories, is_category_in_use
)
from nichestack.sidebar import setup_page
from nichestack.styles import page_header, section_header

config, t = setup_page("Settings", "⚙️")

page_header("Settings", "Backups, categories and integrations")

tab_data, tab_categories, tab_github = st.tabs(["💾 Data", "🏷️ Categories", "🐙 GitHub"])

PRESET_TYPES = {
    'expense_category': 'Expense categories',
    'tool_category': 'Tool categories',
    'resource_type': 'Resource types',
    'domain_registrar': 'Domain registrars',
    'hosting_platform': 'Hosting platforms',
    'hosting_account': 'Hosting accounts',
    'payment_method': 'Payment methods',
}

session = get_session()

try:
    with tab_data:
        section_header("Export")
        st.download_button(
            "📤 Download backup (JSON)",
            export_to_json(session),
            file_name=f"nichestack-backup-{datetime.now():%Y-%m-%d}.json",
            mime="application/json"
        )

        section_header("Import")
        st.warning("Importing replaces all existing data.")
        uploaded = st.file_uploader("Backup file", type=['json'])
        if uploaded is not None and st.button("📥 Restore backup"):
            result = import_from_json(session, uploaded.getvalue().decode('utf-8'))
            if result['success']:
                st.success(result['message'])
            else:
                st.error(result['message'])

        section_header("Danger Zone")
        confirm = st.text_input("Type DELETE to clear every record")
        if st.button("🗑️ Clear all data", disabled=confirm != 'DELETE'):
            result = clear_all_data(session)
            if result['success']:
                st.success(result['message'])
            else:
                st.error(result['message'])

    with tab_categories:
        if st.button("Restore default categories"):
            added = initialize_default_categories(session)
            st.success(f"Added {added} missing defaults")

        preset_type = st.selectbox("List", list(PRESET_TYPES), format_func=PRESET_TYPES.get)
        for preset in get_presets_by_type(session, preset_type):
            col1, col2 = st.columns([5, 1])
            col1.markdown(f"**{preset.label or preset.value}** `{preset.value}`")
            if col2.button("Remove", key=f"preset_{preset.id}"):
                if is_category_in_use(session, preset_type, preset.value):
                    st.error(f"{preset.value} is still in use")
                else:
                    delete_preset(session, preset.id)
                    st.rerun()

        with st.form("add_preset", clear_on_submit=True):
            col1, col2 = st.columns(2)
            value = col1.text_input("Value")
            label = col2.text_input("Label")
            if st.form_submit_button("Add") and value.strip():
                create_preset(session, preset_type, value.strip(), label.strip() or None)
                st.rerun()

    with tab_github:
        section_header("Accounts")
        accounts = get_all_github_accounts(session)
        if accounts:
            st.dataframe(pd.DataFrame([{
                'ID': a.id,
                'Username': a.username,
                'Token': a.token_masked,
                'Token Expires': a.token_expires_at.strftime('%Y-%m-%d') if a.token_expires_at else '',
                'Projects': len(a.projects),
            } for a in accounts]), use_container_width=True, hide_index=True)

            names = {a.id: a.username for a in accounts}
            col1, col2, col3 = st.columns([2, 2, 1])
            account_id = col1.selectbox("Account", list(names), format_func=lambda aid: names[aid])
            new_token = col2.text_input("Replace token", type="password")
            if col3.button("Save", use_container_width=True) and new_token:
                update_github_account(session, account_id, token=new_token)
                st.rerun()
            if st.button("Delete account"):
                delete_github_account(session, account_id)
                st.rerun()

        with st.form("add_account", clear_on_submit=True):
            col1, col2, col3 = st.columns(3)
            username = col1.text_input("Username")
            token = col2.text_input("Personal access token", type="password")
            expires = col3.date_input("Token expires", value=None)
            if st.form_submit_button("Add account"):
                if username.strip() and token:
                    add_github_account(
                        session, username.strip(), token,
                        token_expires_at=datetime.combine(expires, datetime.min.time()) if expires else None
                    )
                    st.rerun()
                else:
                    st.error("Username and token are required")

        section_header("Sync")
        st.caption("Schedule `nichestack-sync` with cron to refresh pushes automatically.")
        if st.button("🔄 Sync all repositories now"):
            with st.spinner("Talking to GitHub..."):
                result = sync_all_projects(session, config)
            st.success(f"Synced {result['synced']}, failed {result['failed']}")
            if result['results']:
                st.dataframe(pd.DataFrame(result['results']), use_container_width=True, hide_index=True)

finally:
    session.close()
