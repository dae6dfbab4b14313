from datetime import datetime

import streamlit as st

from dashboard.auth import enforce_login, get_secret, get_token, load_local_env
from dashboard.constants import APP_TITLE
from dashboard.context import DashboardContext
from dashboard.data import api_client
from dashboard.header import render_global_header
from dashboard.logging_config import configure_logging
from dashboard.router import render_router
from dashboard.state.preferences import Preferences
from dashboard.theme import inject_theme_css

st.set_page_config(page_title=APP_TITLE, layout="wide")

load_local_env()
configure_logging()
api_client.configure(get_secret, get_token)

theme_meta = inject_theme_css()
current_user = enforce_login()

if "ui.preferences" not in st.session_state:
    st.session_state["ui.preferences"] = Preferences.load(st.query_params)

context = DashboardContext(
    user=current_user,
    preferences=st.session_state["ui.preferences"],
)

render_global_header(context, theme_meta=theme_meta, now_hour=datetime.now().hour)
render_router(context)
st.stop()
