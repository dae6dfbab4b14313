"""HTML fragments rendered with ``unsafe_allow_html``; user text is always escaped."""
import html

from dashboard.notes_blocks import note_preview, todo_progress


def greeting_for_hour(now_hour):
    if now_hour < 12:
        return "Good morning"
    if now_hour < 18:
        return "Good afternoon"
    return "Good evening"


def build_greeting(user_name, now_hour):
    return f"<div class='section-title'>{greeting_for_hour(now_hour)}, {html.escape(str(user_name or ''))}</div>"


def build_task_label(task):
    color = html.escape(str(task.get("color") or ""), quote=True)
    emoji = html.escape(str(task.get("emoji") or ""))
    name = html.escape(str(task.get("name") or ""))
    return (
        f"<div class='task-name'><span class='task-swatch' style='background:{color}'></span>"
        f"{emoji} {name}</div>"
    )


def build_note_card(note, blocks):
    done, total = todo_progress(blocks)
    progress = f" • {done}/{total} done" if total else ""
    title = html.escape(str(note.get("title") or ""))
    preview = html.escape(note_preview(blocks)) or "Empty note"
    updated = html.escape(str(note.get("updatedAt") or "")[:10])
    return (
        f"<div class='note-card'><b>{title}</b>"
        f"<div class='preview'>{preview}</div>"
        f"<div class='small-label'>{updated}{progress}</div></div>"
    )
