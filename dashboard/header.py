from datetime import date

import streamlit as st

from dashboard.auth import sign_out
from dashboard.constants import APP_TITLE
from dashboard.markup import build_greeting
from dashboard.theme import toggle_theme


def render_global_header(ctx, theme_meta=None, now_hour=12):
    theme_meta = theme_meta or {}
    cols = st.columns([6, 0.6, 1.2])
    with cols[0]:
        st.markdown(f"<div class='small-label'>{APP_TITLE} • {date.today().strftime('%A, %d %B %Y')}</div>", unsafe_allow_html=True)
        st.markdown(build_greeting(ctx.user_name, now_hour), unsafe_allow_html=True)
    with cols[1]:
        st.button(
            theme_meta.get("theme_toggle_icon", "🌙"),
            key="header.theme_toggle",
            help=theme_meta.get("theme_toggle_help"),
            on_click=toggle_theme,
        )
    with cols[2]:
        if st.button("Sign out", key="header.sign_out", use_container_width=True):
            sign_out()
            st.rerun()
