import logging
from datetime import date, timedelta

import streamlit as st

from backend.date_utils import (
    generate_date_columns,
    is_after_completed_date,
    is_task_completed_on_date,
    week_boundaries,
)
from dashboard.constants import DAY_RANGE_OPTIONS, PRESET_COLORS, RANGE_LABELS, WEEK_STEP_DAYS
from dashboard.data import repositories
from dashboard.data.api_client import ApiError
from dashboard.markup import build_task_label
from dashboard.state import session_slices
from dashboard.state.habit_state import (
    apply_completion,
    move_task,
    remove_task,
    replace_task,
    week_check_ins,
)

logger = logging.getLogger(__name__)

SLICE = "habits"


def _tasks():
    return session_slices.get_value(SLICE, "tasks", [])


def _set_tasks(tasks):
    session_slices.set_value(SLICE, "tasks", tasks)


def _report(message):
    session_slices.set_value(SLICE, "error", message)


def _load_tasks(columns):
    start, end = columns[0].date, columns[-1].date
    range_key = f"{start.isoformat()}:{end.isoformat()}"
    if session_slices.get_value(SLICE, "loaded_range") == range_key:
        return _tasks()
    try:
        tasks = repositories.list_tasks(start, end)
    except ApiError as exc:
        _report(f"Could not load habits: {exc.message}")
        return _tasks()
    _set_tasks(tasks)
    session_slices.set_value(SLICE, "loaded_range", range_key)
    return tasks


def _toggle_completion(task_id, day, completed):
    previous = _tasks()
    _set_tasks(apply_completion(previous, task_id, day, completed))
    try:
        repositories.set_completion(task_id, day, completed)
    except ApiError as exc:
        logger.warning("Completion toggle failed for %s on %s: %s", task_id, day, exc.message)
        _set_tasks(previous)
        _report(f"Could not save: {exc.message}")


def _move(task_id, offset):
    previous = _tasks()
    reordered = move_task(previous, task_id, offset)
    if reordered is None:
        return
    _set_tasks(reordered)
    try:
        repositories.reorder_tasks([task["id"] for task in reordered])
    except ApiError as exc:
        _set_tasks(previous)
        _report(f"Could not reorder: {exc.message}")


def _delete(task_id):
    try:
        repositories.delete_task(task_id)
    except ApiError as exc:
        _report(f"Could not delete: {exc.message}")
        return
    _set_tasks(remove_task(_tasks(), task_id))


def _shift_center(days):
    center = session_slices.get_value(SLICE, "center", date.today())
    session_slices.set_value(SLICE, "center", center + timedelta(days=days))


def _reset_center():
    session_slices.set_value(SLICE, "center", date.today())


def _render_week_summary(tasks):
    start, end = week_boundaries(date.today())
    try:
        completions = repositories.list_completions(start, end)
    except ApiError as exc:
        logger.warning("Could not load weekly summary: %s", exc.message)
        return
    done, possible = week_check_ins(tasks, completions)
    st.caption(f"This week: {done} of {possible} check-ins")


def _render_add_form():
    with st.expander("Add a habit", expanded=not _tasks()):
        with st.form("habits.add_form", clear_on_submit=True):
            name = st.text_input("Name", max_chars=100)
            description = st.text_area("Description", max_chars=500, height=68)
            cols = st.columns(2)
            with cols[0]:
                color = st.selectbox("Color", PRESET_COLORS, index=0)
            with cols[1]:
                emoji = st.text_input("Emoji", max_chars=8)
            submitted = st.form_submit_button("Add habit")
        if not submitted:
            return
        if not name.strip():
            st.error("Task name is required")
            return
        try:
            created = repositories.create_task(name.strip(), description.strip(), color, emoji.strip())
        except ApiError as exc:
            st.error(exc.message)
            return
        created.setdefault("completions", [])
        _set_tasks(_tasks() + [created])
        st.rerun(scope="fragment")


def _render_edit_popover(task):
    task_id = task["id"]
    with st.popover("✎", use_container_width=True):
        with st.form(f"habits.edit.{task_id}"):
            name = st.text_input("Name", value=task.get("name") or "", max_chars=100)
            description = st.text_area("Description", value=task.get("description") or "", max_chars=500)
            color = st.color_picker("Color", value=task.get("color") or PRESET_COLORS[0])
            emoji = st.text_input("Emoji", value=task.get("emoji") or "", max_chars=8)
            finished = st.checkbox("Finished (stop tracking after last completion)", value=bool(task.get("isCompleted")))
            saved = st.form_submit_button("Save")
        if saved:
            patch = {
                "name": name.strip(),
                "description": description.strip(),
                "color": color,
                "emoji": emoji.strip(),
                "isCompleted": finished,
            }
            try:
                record = repositories.update_task(task_id, patch)
            except ApiError as exc:
                st.error(exc.message)
            else:
                record["completions"] = task.get("completions") or []
                _set_tasks(replace_task(_tasks(), record))
                st.rerun(scope="fragment")
        st.button("Delete habit", key=f"habits.delete.{task_id}", type="primary", on_click=_delete, args=(task_id,))


def _render_grid(tasks, columns):
    widths = [3.2] + [1] * len(columns) + [0.6, 0.6, 0.7]
    head = st.columns(widths)
    with head[0]:
        st.markdown("<div class='small-label'>Habit</div>", unsafe_allow_html=True)
    for slot, column in zip(head[1:], columns):
        with slot:
            today_class = " today" if column.is_today else ""
            st.markdown(
                f"<div class='day-head{today_class}'>{column.day_name}<br><b>{column.day_number}</b><br>{column.month_name}</div>",
                unsafe_allow_html=True,
            )

    for index, task in enumerate(tasks):
        row = st.columns(widths)
        completions = task.get("completions") or []
        with row[0]:
            st.markdown(
                build_task_label(task),
                unsafe_allow_html=True,
                help=task.get("description") or None,
            )
        for slot, column in zip(row[1 : len(columns) + 1], columns):
            with slot:
                if is_after_completed_date(
                    task.get("isCompleted"),
                    completions,
                    column.date,
                    task.get("completedAt"),
                    last_completed=task.get("lastCompletionDate"),
                ):
                    st.markdown("<div class='after-done'>–</div>", unsafe_allow_html=True)
                    continue
                done = is_task_completed_on_date(completions, column.date)
                st.button(
                    "✓" if done else "·",
                    key=f"habits.cell.{task['id']}.{column.date_string}",
                    type="primary" if done else "secondary",
                    on_click=_toggle_completion,
                    args=(task["id"], column.date, not done),
                )
        with row[-3]:
            st.button("↑", key=f"habits.up.{task['id']}", disabled=index == 0, on_click=_move, args=(task["id"], -1))
        with row[-2]:
            st.button(
                "↓",
                key=f"habits.down.{task['id']}",
                disabled=index == len(tasks) - 1,
                on_click=_move,
                args=(task["id"], 1),
            )
        with row[-1]:
            _render_edit_popover(task)


def render_habits_tab(ctx):
    prefs = ctx.preferences
    st.markdown("<div class='section-title'>Habit Tracker</div>", unsafe_allow_html=True)

    controls = st.columns([1.6, 0.8, 0.8, 0.8, 3])
    with controls[0]:
        days_to_show = st.selectbox(
            "Range",
            DAY_RANGE_OPTIONS,
            index=DAY_RANGE_OPTIONS.index(prefs.days_to_show),
            format_func=lambda value: RANGE_LABELS[value],
            key="habits.range",
        )
    if days_to_show != prefs.days_to_show:
        prefs.days_to_show = days_to_show
        prefs.save(st.query_params)
    with controls[1]:
        st.button("← Prev", key="habits.prev", on_click=_shift_center, args=(-WEEK_STEP_DAYS,))
    with controls[2]:
        st.button("Today", key="habits.today", on_click=_reset_center)
    with controls[3]:
        st.button("Next →", key="habits.next", on_click=_shift_center, args=(WEEK_STEP_DAYS,))

    center = session_slices.get_value(SLICE, "center", date.today())
    columns = generate_date_columns(center, days_to_show)
    tasks = _load_tasks(columns)

    error = session_slices.pop_value(SLICE, "error")
    if error:
        st.error(error)

    if tasks:
        _render_week_summary(tasks)
        _render_grid(tasks, columns)
    else:
        st.info("No habits yet. Add your first one below.")
    _render_add_form()
