import logging
from datetime import date, datetime, time, timedelta

import streamlit as st

from dashboard.auth import get_token
from dashboard.autosave import DAILY_NOTE_DELAY_SECONDS, DebouncedSaver, SaveState
from dashboard.data import repositories
from dashboard.data.api_client import ApiError
from dashboard.reminders import POLL_SECONDS, due_reminders
from dashboard.state import session_slices
from dashboard.todo_codec import TodoItem, parse_content, pending_count, serialize_items

logger = logging.getLogger(__name__)

SLICE = "todos"


def _save_payload(payload):
    day, content, token = payload
    return repositories.save_daily_note(day, content, token=token)


def _saver():
    return session_slices.get_or_create(
        SLICE,
        "saver",
        lambda: DebouncedSaver(_save_payload, delay=DAILY_NOTE_DELAY_SECONDS),
    )


def flush_daily_note():
    saver = session_slices.get_value(SLICE, "saver")
    if saver is not None and saver.has_pending:
        if not saver.flush():
            st.toast(f"Could not save your to-dos: {saver.last_error}")


def _items():
    return session_slices.get_value(SLICE, "items", [])


def _bump_revision():
    session_slices.set_value(SLICE, "rev", session_slices.get_value(SLICE, "rev", 0) + 1)


def _commit(items):
    day = session_slices.get_value(SLICE, "loaded_day")
    session_slices.set_value(SLICE, "items", items)
    if day == date.today():
        session_slices.set_value(SLICE, "today_items", items)
    _bump_revision()
    _saver().schedule((day, serialize_items(items), get_token()))


def _load_day(day):
    if session_slices.get_value(SLICE, "loaded_day") == day:
        return _items()
    flush_daily_note()
    try:
        note = repositories.get_daily_note(day)
    except ApiError as exc:
        st.error(f"Could not load to-dos: {exc.message}")
        return _items()
    items = parse_content((note or {}).get("content"))
    session_slices.set_value(SLICE, "items", items)
    session_slices.set_value(SLICE, "loaded_day", day)
    if day == date.today():
        session_slices.set_value(SLICE, "today_items", items)
    _bump_revision()
    return items


def _update_item(index, **changes):
    items = list(_items())
    if index >= len(items):
        return
    current = items[index]
    items[index] = TodoItem(
        text=changes.get("text", current.text),
        completed=changes.get("completed", current.completed),
        reminder=changes.get("reminder", current.reminder),
    )
    _commit(items)


def _on_toggle(index, widget_key):
    _update_item(index, completed=bool(st.session_state.get(widget_key)))


def _on_text(index, widget_key):
    _update_item(index, text=str(st.session_state.get(widget_key) or "").rstrip())


def _on_reminder(index, widget_key):
    value = st.session_state.get(widget_key)
    _update_item(index, reminder=value.strftime("%H:%M") if isinstance(value, time) else None)


def _remove_item(index):
    items = list(_items())
    if index < len(items):
        items.pop(index)
        _commit(items)


def _add_item():
    text = str(st.session_state.get("todos.new_text") or "").strip()
    if not text:
        return
    st.session_state["todos.new_text"] = ""
    _commit(_items() + [TodoItem(text=text)])


def _clear_day():
    day = session_slices.get_value(SLICE, "loaded_day")
    _saver().cancel()
    try:
        repositories.delete_daily_note(day)
    except ApiError as exc:
        if exc.status_code != 404:
            st.toast(f"Could not clear the day: {exc.message}")
            return
    session_slices.set_value(SLICE, "items", [])
    if day == date.today():
        session_slices.set_value(SLICE, "today_items", [])
    _bump_revision()


def _shift_day(days):
    current = st.session_state.get("todos.selected_date", date.today())
    st.session_state["todos.selected_date"] = current + timedelta(days=days)


def _go_today():
    st.session_state["todos.selected_date"] = date.today()


def _render_item(index, item, rev):
    prefix = f"todos.{rev}.{index}"
    cols = st.columns([0.4, 6, 1.6, 0.5])
    with cols[0]:
        st.checkbox(
            "Done",
            value=item.completed,
            key=f"{prefix}.done",
            label_visibility="collapsed",
            on_change=_on_toggle,
            args=(index, f"{prefix}.done"),
        )
    with cols[1]:
        st.text_area(
            "Item",
            value=item.text,
            key=f"{prefix}.text",
            label_visibility="collapsed",
            height=110 if "\n" in item.text else 68,
            on_change=_on_text,
            args=(index, f"{prefix}.text"),
        )
    with cols[2]:
        reminder = datetime.strptime(item.reminder, "%H:%M").time() if item.reminder else None
        st.time_input(
            "Remind me",
            value=reminder,
            key=f"{prefix}.remind",
            label_visibility="collapsed",
            step=timedelta(minutes=5),
            on_change=_on_reminder,
            args=(index, f"{prefix}.remind"),
        )
    with cols[3]:
        st.button("✕", key=f"{prefix}.remove", on_click=_remove_item, args=(index,))


def _render_save_status():
    saver = session_slices.get_value(SLICE, "saver")
    if saver is None:
        return
    if saver.state == SaveState.ERROR:
        st.error(f"Not saved: {saver.last_error}")
        if st.button("Retry save", key="todos.retry"):
            flush_daily_note()
    elif saver.state in (SaveState.DIRTY, SaveState.SAVING):
        st.markdown("<div class='save-status'>Saving…</div>", unsafe_allow_html=True)
    elif saver.last_saved_at:
        st.markdown(
            f"<div class='save-status'>Saved at {saver.last_saved_at.strftime('%H:%M:%S')}</div>",
            unsafe_allow_html=True,
        )


@st.fragment(run_every=POLL_SECONDS)
def _reminder_poller():
    fired = session_slices.get_or_create(SLICE, "fired", set)
    for item in due_reminders(session_slices.get_value(SLICE, "today_items", []), datetime.now(), fired):
        first_line = item.text.split("\n", 1)[0]
        logger.info("Reminder due at %s", item.reminder)
        st.toast(f"⏰ {first_line}")


def render_todos_tab(ctx):
    st.markdown("<div class='section-title'>Daily To-dos</div>", unsafe_allow_html=True)

    if "todos.selected_date" not in st.session_state:
        st.session_state["todos.selected_date"] = date.today()

    nav = st.columns([0.8, 2.4, 0.8, 0.8, 3])
    with nav[0]:
        st.button("← Day", key="todos.prev", on_click=_shift_day, args=(-1,))
    with nav[1]:
        selected_day = st.date_input(
            "Date",
            key="todos.selected_date",
            label_visibility="collapsed",
        )
    with nav[2]:
        st.button("Day →", key="todos.next", on_click=_shift_day, args=(1,))
    with nav[3]:
        st.button("Today", key="todos.today", on_click=_go_today, disabled=selected_day == date.today())

    if session_slices.get_value(SLICE, "today_items") is None and selected_day != date.today():
        try:
            today_note = repositories.get_daily_note(date.today())
        except ApiError as exc:
            logger.warning("Could not load today's reminders: %s", exc.message)
        else:
            session_slices.set_value(SLICE, "today_items", parse_content((today_note or {}).get("content")))

    items = _load_day(selected_day)
    rev = session_slices.get_value(SLICE, "rev", 0)
    st.caption(f"{pending_count(items)} open • {len(items)} total")
    for index, item in enumerate(items):
        _render_item(index, item, rev)

    st.text_input(
        "New to-do",
        key="todos.new_text",
        placeholder="Add a to-do and press Enter",
        on_change=_add_item,
    )
    if items:
        st.button("Clear day", key="todos.clear", on_click=_clear_day)
    _render_save_status()
    _reminder_poller()
