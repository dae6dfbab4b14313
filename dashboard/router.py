import streamlit as st

from dashboard.constants import TAB_HABITS, TAB_NOTES, TAB_OPTIONS, TAB_TODOS
from dashboard.tabs.habits_tab import render_habits_tab
from dashboard.tabs.notes_tab import flush_note_editor, render_notes_tab
from dashboard.tabs.todos_tab import flush_daily_note, render_todos_tab


def _flush_on_leave(previous, active):
    if previous == active:
        return
    if previous == TAB_TODOS:
        flush_daily_note()
    if previous == TAB_NOTES:
        flush_note_editor()


def render_router(ctx):
    prefs = ctx.preferences
    previous = st.session_state.get("ui.last_tab", prefs.active_tab)
    active = st.segmented_control(
        "Workspace",
        TAB_OPTIONS,
        key="ui.active_tab",
        default=prefs.active_tab,
    ) or prefs.active_tab

    _flush_on_leave(previous, active)
    st.session_state["ui.last_tab"] = active
    prefs.active_tab = active
    prefs.save(st.query_params)

    if active == TAB_HABITS:
        return _render_habits(ctx)

    if active == TAB_TODOS:
        return _render_todos(ctx)

    return _render_notes(ctx)


@st.fragment
def _render_habits(ctx):
    render_habits_tab(ctx)


@st.fragment
def _render_todos(ctx):
    render_todos_tab(ctx)


@st.fragment
def _render_notes(ctx):
    render_notes_tab(ctx)
