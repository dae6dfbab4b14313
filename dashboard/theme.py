import streamlit as st

THEME_PRESETS = {
    "dark": {
        "bg_main": "#121017",
        "bg_card": "#1e1a27",
        "border": "#5b4f70",
        "text_main": "#f3edf9",
        "text_soft": "#c8bbd8",
        "today_border": "#d9c979",
        "today_bg": "rgba(217, 201, 121, 0.12)",
        "muted_cell": "rgba(255, 255, 255, 0.25)",
    },
    "light": {
        "bg_main": "#f7f3ed",
        "bg_card": "#fff9f1",
        "border": "#c4b59f",
        "text_main": "#1b1b1b",
        "text_soft": "#5d5d5d",
        "today_border": "#9b845f",
        "today_bg": "rgba(203, 184, 154, 0.32)",
        "muted_cell": "rgba(0, 0, 0, 0.25)",
    },
}


def ensure_theme_state():
    if st.session_state.get("ui_theme") not in THEME_PRESETS:
        st.session_state["ui_theme"] = "dark"
    return st.session_state["ui_theme"]


def get_active_theme():
    name = ensure_theme_state()
    return name, THEME_PRESETS[name]


def toggle_theme():
    name = ensure_theme_state()
    st.session_state["ui_theme"] = "light" if name == "dark" else "dark"


def inject_theme_css() -> dict:
    active_name, active_theme = get_active_theme()
    theme_vars_css = f"""
:root {{
    --bg-main: {active_theme['bg_main']};
    --bg-card: {active_theme['bg_card']};
    --border: {active_theme['border']};
    --text-main: {active_theme['text_main']};
    --text-soft: {active_theme['text_soft']};
    --today-border: {active_theme['today_border']};
    --today-bg: {active_theme['today_bg']};
    --muted-cell: {active_theme['muted_cell']};
}}
"""
    st.markdown(
        "<style>"
        + theme_vars_css
        + """
.stApp { background: var(--bg-main); color: var(--text-main); }
.section-title { font-size: 1.6rem; font-weight: 600; margin: 0.4rem 0 0.8rem 0; }
.small-label { font-size: 0.8rem; text-transform: uppercase; letter-spacing: 0.06em; color: var(--text-soft); }
.day-head { text-align: center; font-size: 0.75rem; color: var(--text-soft); line-height: 1.2; }
.day-head.today { border: 1px solid var(--today-border); background: var(--today-bg); border-radius: 6px; }
.day-head b { font-size: 0.95rem; color: var(--text-main); }
.task-name { display: flex; align-items: center; gap: 0.4rem; font-weight: 500; }
.task-swatch { width: 0.7rem; height: 0.7rem; border-radius: 50%; display: inline-block; }
.after-done { text-align: center; color: var(--muted-cell); }
.note-card { border: 1px solid var(--border); background: var(--bg-card); border-radius: 10px; padding: 0.8rem; }
.note-card .preview { color: var(--text-soft); font-size: 0.85rem; }
.save-status { font-size: 0.75rem; color: var(--text-soft); }
</style>
""",
        unsafe_allow_html=True,
    )
    return {
        "theme_name": active_name,
        "theme_toggle_icon": "☀️" if active_name == "dark" else "🌙",
        "theme_toggle_help": "Switch to light mode" if active_name == "dark" else "Switch to dark mode",
    }
