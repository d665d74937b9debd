"""
Shared styles and theme configuration for NicheStack Manager.
Import this module in all pages to keep the look consistent.
"""

import streamlit as st

COLORS = {
    'bg_primary': '#F7F8FA',
    'bg_secondary': '#EEF1F4',
    'bg_card': '#FFFFFF',
    'border': '#E2E6EA',
    'text_primary': '#111827',
    'text_secondary': '#374151',
    'text_muted': '#6B7280',
    'accent': '#0F766E',
    'accent_light': '#14B8A6',
    'success': '#16A34A',
    'success_bg': 'rgba(22, 163, 74, 0.10)',
    'warning': '#D97706',
    'warning_bg': 'rgba(217, 119, 6, 0.12)',
    'danger': '#DC2626',
    'danger_bg': 'rgba(220, 38, 38, 0.10)',
    'chart_colors': ['#0F766E', '#0EA5E9', '#F59E0B', '#8B5CF6', '#EC4899', '#16A34A', '#F97316']
}

# Health status value -> (text color, background)
HEALTH_COLORS = {
    'good': (COLORS['success'], COLORS['success_bg']),
    'warning': (COLORS['warning'], COLORS['warning_bg']),
    'danger': (COLORS['danger'], COLORS['danger_bg']),
}

HEALTH_ICONS = {'good': '🟢', 'warning': '🟡', 'danger': '🔴'}


def apply_plotly_theme(fig, show_legend=True, height=360):
    """Apply the light theme to a Plotly figure."""
    fig.update_layout(
        paper_bgcolor='rgba(0,0,0,0)',
        plot_bgcolor='rgba(0,0,0,0)',
        font=dict(color=COLORS['text_secondary'], family='Inter, sans-serif'),
        colorway=COLORS['chart_colors'],
        showlegend=show_legend,
        legend=dict(bgcolor='rgba(0,0,0,0)'),
        xaxis=dict(gridcolor=COLORS['border'], tickfont=dict(color=COLORS['text_muted'])),
        yaxis=dict(gridcolor=COLORS['border'], tickfont=dict(color=COLORS['text_muted'])),
        margin=dict(l=10, r=10, t=30, b=10),
        height=height
    )
    return fig


def apply_theme():
    """Apply the theme CSS to the Streamlit app."""
    st.markdown(f"""
<style>
    .stApp {{
        background: {COLORS['bg_primary']};
        font-family: 'Inter', -apple-system, BlinkMacSystemFont, sans-serif;
    }}

    .main .block-container {{
        padding: 2.5rem 2rem;
        max-width: 1360px;
    }}

    section[data-testid="stSidebar"] {{
        background: {COLORS['bg_secondary']};
        border-right: 1px solid {COLORS['border']};
    }}

    h1, h2, h3 {{
        color: {COLORS['text_primary']} !important;
        letter-spacing: -0.02em;
    }}

    [data-testid="stMetric"] {{
        background: {COLORS['bg_card']};
        border: 1px solid {COLORS['border']};
        border-radius: 12px;
        padding: 1rem 1.25rem;
    }}

    [data-testid="stMetricLabel"] {{
        color: {COLORS['text_muted']} !important;
        text-transform: uppercase;
        font-size: 0.75rem !important;
    }}

    [data-testid="stForm"] {{
        background: {COLORS['bg_card']} !important;
        border: 1px solid {COLORS['border']} !important;
        border-radius: 12px !important;
    }}

    .stButton > button {{
        border-radius: 8px !important;
        border: 1px solid {COLORS['border']} !important;
    }}

    .stButton > button:hover {{
        border-color: {COLORS['accent']} !important;
        color: {COLORS['accent']} !important;
    }}

    .health-badge {{
        display: inline-block;
        padding: 0.15rem 0.6rem;
        border-radius: 999px;
        font-size: 0.8rem;
        font-weight: 600;
    }}
</style>
""", unsafe_allow_html=True)


def page_header(title: str, subtitle: str = None):
    """Render a styled page header."""
    html = f'<h1 style="font-size: 2rem; font-weight: 700; margin-bottom: 0.4rem;">{title}</h1>'
    if subtitle:
        html += f'<p style="color: {COLORS["text_muted"]}; margin-bottom: 2rem;">{subtitle}</p>'
    st.markdown(html, unsafe_allow_html=True)


def section_header(title: str):
    """Render a styled section header."""
    st.markdown(
        f"<h3 style='font-size: 1.1rem; font-weight: 600;'>{title}</h3>",
        unsafe_allow_html=True
    )


def health_badge(status: str, label: str) -> str:
    """HTML badge for a health status value."""
    color, background = HEALTH_COLORS.get(status, (COLORS['text_muted'], COLORS['bg_secondary']))
    return f'<span class="health-badge" style="color: {color}; background: {background};">{label}</span>'


def health_label(status: str, label: str) -> str:
    """Plain-text health label for tables."""
    return f"{HEALTH_ICONS.get(status, '')} {label}".strip()
