import base64
import logging

import streamlit as st

from backend.schemas import ImageBlock, TextBlock, TodoBlock
from dashboard.auth import get_token
from dashboard.autosave import NOTE_DELAY_SECONDS, DebouncedSaver, SaveState
from dashboard.data import repositories
from dashboard.data.api_client import ApiError
from dashboard.markup import build_note_card
from dashboard.notes_blocks import (
    add_block,
    can_append_text,
    delete_block,
    dump_blocks,
    parse_blocks,
    todo_progress,
    toggle_todo,
    update_block_content,
)
from dashboard.state import session_slices

logger = logging.getLogger(__name__)

SLICE = "notes"
CARDS_PER_ROW = 3
MAX_IMAGE_BYTES = 2 * 1024 * 1024


def _save_payload(payload):
    note_id, title, content, token = payload
    return repositories.save_note(note_id, title=title, content=content, token=token)


def _saver():
    return session_slices.get_or_create(
        SLICE,
        "saver",
        lambda: DebouncedSaver(_save_payload, delay=NOTE_DELAY_SECONDS),
    )


def flush_note_editor():
    saver = session_slices.get_value(SLICE, "saver")
    if saver is not None and saver.has_pending:
        if not saver.flush():
            st.toast(f"Could not save your note: {saver.last_error}")


def _editor():
    return session_slices.get_value(SLICE, "editor")


def _commit(blocks=None, title=None):
    editor = dict(_editor())
    if blocks is not None:
        editor["blocks"] = blocks
    if title is not None:
        editor["title"] = title
    editor["rev"] = editor.get("rev", 0) + 1
    session_slices.set_value(SLICE, "editor", editor)
    _saver().schedule((editor["id"], editor["title"], dump_blocks(editor["blocks"]), get_token()))


def _open_note(note):
    flush_note_editor()
    session_slices.set_value(
        SLICE,
        "editor",
        {"id": note["id"], "title": note["title"], "blocks": parse_blocks(note.get("content")), "rev": 0},
    )


def _close_editor():
    flush_note_editor()
    session_slices.pop_value(SLICE, "editor")
    session_slices.pop_value(SLICE, "notes")


def _create_note():
    title = str(st.session_state.get("notes.new_title") or "").strip()
    if not title:
        session_slices.set_value(SLICE, "error", "Title is required")
        return
    try:
        note = repositories.create_note(title)
    except ApiError as exc:
        session_slices.set_value(SLICE, "error", exc.message)
        return
    st.session_state["notes.new_title"] = ""
    session_slices.pop_value(SLICE, "notes")
    _open_note(note)


def _delete_note(note_id):
    saver = session_slices.get_value(SLICE, "saver")
    if saver is not None:
        saver.cancel()
    try:
        repositories.delete_note(note_id)
    except ApiError as exc:
        session_slices.set_value(SLICE, "error", exc.message)
        return
    session_slices.pop_value(SLICE, "editor")
    session_slices.pop_value(SLICE, "notes")


def _on_title(widget_key):
    title = str(st.session_state.get(widget_key) or "").strip()
    if not title:
        session_slices.set_value(SLICE, "error", "Title is required")
        return
    _commit(title=title)


def _on_block_text(block_id, widget_key):
    _commit(blocks=update_block_content(_editor()["blocks"], block_id, str(st.session_state.get(widget_key) or "")))


def _on_toggle(block_id):
    _commit(blocks=toggle_todo(_editor()["blocks"], block_id))


def _on_delete_block(block_id):
    _commit(blocks=delete_block(_editor()["blocks"], block_id))


def _on_add_block(kind):
    _commit(blocks=add_block(_editor()["blocks"], kind))


def _on_image_upload(widget_key):
    upload = st.session_state.get(widget_key)
    if upload is None:
        return
    payload = upload.getvalue()
    if len(payload) > MAX_IMAGE_BYTES:
        session_slices.set_value(SLICE, "error", "Image is too large")
        return
    encoded = base64.b64encode(payload).decode("ascii")
    _commit(blocks=add_block(_editor()["blocks"], "image", f"data:{upload.type or 'image/png'};base64,{encoded}"))


def _render_block(block, rev):
    prefix = f"notes.{rev}.{block.id}"
    if isinstance(block, TextBlock):
        st.text_area(
            "Text",
            value=block.content,
            key=f"{prefix}.text",
            label_visibility="collapsed",
            placeholder="Write something…",
            on_change=_on_block_text,
            args=(block.id, f"{prefix}.text"),
        )
        return
    cols = st.columns([0.4, 7, 0.5])
    with cols[0]:
        if isinstance(block, TodoBlock):
            st.checkbox(
                "Done",
                value=block.completed,
                key=f"{prefix}.done",
                label_visibility="collapsed",
                on_change=_on_toggle,
                args=(block.id,),
            )
    with cols[1]:
        if isinstance(block, TodoBlock):
            st.text_input(
                "To-do",
                value=block.content,
                key=f"{prefix}.text",
                label_visibility="collapsed",
                on_change=_on_block_text,
                args=(block.id, f"{prefix}.text"),
            )
        elif isinstance(block, ImageBlock):
            st.image(block.content, use_container_width=True)
    with cols[2]:
        st.button("✕", key=f"{prefix}.delete", on_click=_on_delete_block, args=(block.id,))


def _render_save_status(saver):
    if saver is None:
        return
    if saver.state == SaveState.ERROR:
        st.error(f"Not saved: {saver.last_error}")
    elif saver.state in (SaveState.DIRTY, SaveState.SAVING):
        st.markdown("<div class='save-status'>Saving…</div>", unsafe_allow_html=True)
    elif saver.last_saved_at:
        st.markdown(
            f"<div class='save-status'>Saved at {saver.last_saved_at.strftime('%H:%M:%S')}</div>",
            unsafe_allow_html=True,
        )


def _render_editor(editor):
    rev = editor.get("rev", 0)
    top = st.columns([1, 5, 1.2])
    with top[0]:
        st.button("← Notes", key="notes.back", on_click=_close_editor)
    with top[1]:
        st.text_input(
            "Title",
            value=editor["title"],
            key=f"notes.{rev}.title",
            label_visibility="collapsed",
            max_chars=200,
            on_change=_on_title,
            args=(f"notes.{rev}.title",),
        )
    with top[2]:
        st.button("Delete note", key="notes.delete", type="primary", on_click=_delete_note, args=(editor["id"],))

    done, total = todo_progress(editor["blocks"])
    if total:
        st.progress(done / total, text=f"{done}/{total} done")

    for block in editor["blocks"]:
        _render_block(block, rev)

    text_allowed = can_append_text(editor["blocks"])
    add = st.columns([1, 1, 3])
    with add[0]:
        st.button(
            "+ Text",
            key="notes.add_text",
            help=None if text_allowed else "Keep typing in the text block above",
            disabled=not text_allowed,
            on_click=_on_add_block,
            args=("text",),
        )
    with add[1]:
        st.button("+ To-do", key="notes.add_todo", on_click=_on_add_block, args=("todo",))
    with add[2]:
        st.file_uploader(
            "Add image",
            type=["png", "jpg", "jpeg", "gif", "webp"],
            key=f"notes.{rev}.image",
            on_change=_on_image_upload,
            args=(f"notes.{rev}.image",),
        )
    _render_save_status(session_slices.get_value(SLICE, "saver"))


def _load_notes():
    notes = session_slices.get_value(SLICE, "notes")
    if notes is not None:
        return notes
    try:
        notes = repositories.list_notes()
    except ApiError as exc:
        st.error(f"Could not load notes: {exc.message}")
        return []
    session_slices.set_value(SLICE, "notes", notes)
    return notes


def _render_cards(notes):
    for start in range(0, len(notes), CARDS_PER_ROW):
        cols = st.columns(CARDS_PER_ROW)
        for col, note in zip(cols, notes[start : start + CARDS_PER_ROW]):
            with col:
                st.markdown(build_note_card(note, parse_blocks(note.get("content"))), unsafe_allow_html=True)
                st.button("Open", key=f"notes.open.{note['id']}", on_click=_open_note, args=(note,))


def render_notes_tab(ctx):
    st.markdown("<div class='section-title'>Notes</div>", unsafe_allow_html=True)

    error = session_slices.pop_value(SLICE, "error")
    if error:
        st.error(error)

    editor = _editor()
    if editor:
        _render_editor(editor)
        return

    cols = st.columns([4, 1])
    with cols[0]:
        st.text_input("New note", key="notes.new_title", placeholder="Title of a new note", max_chars=200)
    with cols[1]:
        st.button("Create", key="notes.create", on_click=_create_note, use_container_width=True)

    notes = _load_notes()
    if not notes:
        st.info("No notes yet.")
        return
    _render_cards(notes)
