from __future__ import annotations

import logging
import os

import streamlit as st

from dashboard.constants import SESSION_TOKEN_KEY, SESSION_USER_KEY
from dashboard.data import repositories
from dashboard.data.api_client import ApiError
from dashboard.state import session_slices

logger = logging.getLogger(__name__)

ENV_PATH = os.path.join(os.path.dirname(__file__), "..", ".env")

ENV_FALLBACK_KEYS = {
    ("app", "API_BASE_URL"): "API_BASE_URL",
}


def load_local_env():
    if not os.path.exists(ENV_PATH):
        return
    with open(ENV_PATH, "r", encoding="utf-8") as env_file:
        for raw_line in env_file:
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


def get_secret(path, default=None):
    env_key = ENV_FALLBACK_KEYS.get(tuple(path))
    if env_key:
        env_value = os.getenv(env_key)
        if env_value:
            return env_value
    try:
        current = st.secrets
        for key in path:
            if key not in current:
                return default
            current = current[key]
    except (FileNotFoundError, KeyError):
        return default
    return current


def get_token():
    return st.session_state.get(SESSION_TOKEN_KEY)


def get_current_user():
    return st.session_state.get(SESSION_USER_KEY) or {}


def sign_out():
    st.session_state.pop(SESSION_TOKEN_KEY, None)
    st.session_state.pop(SESSION_USER_KEY, None)
    session_slices.clear_all()


def _sign_in(email, password):
    session = repositories.login(email, password)
    st.session_state[SESSION_TOKEN_KEY] = session["token"]
    st.session_state[SESSION_USER_KEY] = session["user"]


def _render_login_form():
    with st.form("auth.login_form"):
        email = st.text_input("Email", key="auth.login_email")
        password = st.text_input("Password", type="password", key="auth.login_password")
        submitted = st.form_submit_button("Sign in", use_container_width=True)
    if not submitted:
        return
    if not email.strip() or not password:
        st.error("Please enter your email and password")
        return
    try:
        _sign_in(email.strip(), password)
    except ApiError as exc:
        st.error(exc.message)
        return
    st.rerun()


def _render_register_form():
    with st.form("auth.register_form"):
        name = st.text_input("Your name (optional)", key="auth.register_name")
        email = st.text_input("Email address", key="auth.register_email")
        password = st.text_input("Password", type="password", key="auth.register_password")
        confirm = st.text_input("Confirm password", type="password", key="auth.register_confirm")
        submitted = st.form_submit_button("Create account", use_container_width=True)
    if not submitted:
        return
    if password != confirm:
        st.error("Passwords do not match")
        return
    try:
        repositories.register(email.strip(), password, name.strip() or None)
        _sign_in(email.strip(), password)
    except ApiError as exc:
        st.error(exc.message)
        return
    logger.info("New account created from the dashboard")
    st.rerun()


def enforce_login():
    """Stop the script run until the visitor holds a valid session."""
    if get_token():
        try:
            st.session_state[SESSION_USER_KEY] = repositories.current_user()
            return get_current_user()
        except ApiError as exc:
            if exc.status_code != 401:
                st.error(f"Server unavailable: {exc.message}")
                st.stop()
            sign_out()
            st.info("Your session expired. Please sign in again.")

    st.markdown("<div class='section-title'>Welcome back</div>", unsafe_allow_html=True)
    st.caption("Track your habits, to-dos and notes.")
    mode = st.segmented_control("Account", ["Sign in", "Create account"], key="auth.mode", default="Sign in")
    if mode == "Create account":
        _render_register_form()
    else:
        _render_login_form()
    st.stop()
