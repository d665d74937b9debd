"""
Shared page setup and sidebar - language switch and portfolio health.
Displayed on all pages.
"""

import streamlit as st

from .auth import require_login
from .config import AppConfig, configure_logging, load_config
from .database import configure_database, get_session, get_all_projects, init_db
from .health import summarize_health
from .i18n import SUPPORTED_LOCALES, get_translator
from .styles import HEALTH_ICONS, apply_theme

LOCALE_NAMES = {'en': 'English', 'zh': '中文'}


@st.cache_resource(show_spinner=False)
def get_app_config() -> AppConfig:
    """Load config and prepare logging and the database once per server process."""
    config = load_config()
    configure_logging(config)
    configure_database(config)
    init_db(config)
    return config


def setup_page(title: str, icon: str):
    """
    Common page preamble: page config, theme, login, sidebar.

    Returns:
        (config, lookup) for the rest of the page
    """
    st.set_page_config(page_title=f"{title} | NicheStack", page_icon=icon, layout="wide")
    apply_theme()

    config = get_app_config()
    require_login(config)
    lookup = render_sidebar(config)
    return config, lookup


def current_locale(config: AppConfig) -> str:
    return st.session_state.get('locale', config.locale)


def render_sidebar(config: AppConfig):
    """Render the shared sidebar and return the label lookup for the chosen locale."""
    with st.sidebar:
        locale = current_locale(config)
        if locale not in SUPPORTED_LOCALES:
            locale = SUPPORTED_LOCALES[0]

        st.session_state['locale'] = st.selectbox(
            "Language",
            SUPPORTED_LOCALES,
            index=SUPPORTED_LOCALES.index(locale),
            format_func=lambda code: LOCALE_NAMES.get(code, code),
        )
        lookup = get_translator(st.session_state['locale'])

        st.markdown("---")
        st.markdown(
            "<p style='color: #6B7280; font-size: 0.75rem; text-transform: uppercase; "
            "letter-spacing: 0.05em;'>Portfolio Health</p>",
            unsafe_allow_html=True
        )

        session = get_session()
        try:
            counts = summarize_health(get_all_projects(session))
        finally:
            session.close()

        for status, count in counts.items():
            st.markdown(f"{HEALTH_ICONS[status]} {lookup('health.' + status)}: **{count}**")

    return lookup
