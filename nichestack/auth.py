"""
Authentication module for NicheStack Manager.
Single admin login using streamlit-authenticator.

The admin password comes from config (ADMIN_PASSWORD). When no password
is configured the dashboard is open.
"""

from typing import Dict, Optional, Tuple

import bcrypt
import streamlit as st
import streamlit_authenticator as stauth

from .config import AppConfig

ADMIN_USERNAME = 'admin'


def get_password_hash(password: str) -> str:
    """Hash a password for storage."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def auth_required(config: AppConfig) -> bool:
    return bool(config.admin_password)


@st.cache_resource(show_spinner=False)
def _hashed_admin_password(password: str) -> str:
    return get_password_hash(password)


def build_credentials(config: AppConfig, password_hash: Optional[str] = None) -> Dict:
    """Credentials mapping for the single admin user."""
    return {
        'usernames': {
            ADMIN_USERNAME: {
                'email': 'admin@localhost',
                'name': 'Administrator',
                'password': password_hash or get_password_hash(config.admin_password),
            }
        }
    }


def check_authentication(config: AppConfig) -> Tuple[bool, Optional[str], Optional[stauth.Authenticate]]:
    """
    Check if user is authenticated.
    Returns (authenticated, username, authenticator) and renders the login form when needed.
    """
    if not auth_required(config):
        return True, None, None

    authenticator = stauth.Authenticate(
        build_credentials(config, _hashed_admin_password(config.admin_password)),
        config.cookie_name,
        config.cookie_key,
        config.cookie_expiry_days,
    )

    authenticator.login(location='main')
    authentication_status = st.session_state.get('authentication_status')

    if authentication_status is False:
        st.error('Password is incorrect')
        return False, None, authenticator

    if authentication_status is None:
        st.markdown("""
        <div style="text-align: center; margin-top: 50px;">
            <h1>NicheStack Manager</h1>
            <p style="color: #888;">Please enter your password to continue</p>
        </div>
        """, unsafe_allow_html=True)
        return False, None, authenticator

    return True, st.session_state.get('username'), authenticator


def show_logout(authenticator):
    """Show logout button in sidebar."""
    if authenticator is None:
        return
    authenticator.logout('Logout', 'sidebar')


def require_login(config: AppConfig):
    """Stop the page unless the visitor is logged in."""
    authenticated, _, authenticator = check_authentication(config)
    if not authenticated:
        st.stop()
    show_logout(authenticator)
