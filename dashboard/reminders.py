from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, List, Set

from dashboard.todo_codec import TodoItem

POLL_SECONDS = 15


def reminder_key(day: date, item: TodoItem) -> str:
    first_line = str(item.text or "").split("\n", 1)[0]
    return f"{day.isoformat()}|{item.reminder}|{first_line}"


def due_reminders(items: Iterable[TodoItem], now: datetime, fired: Set[str]) -> List[TodoItem]:
    """Unchecked items whose reminder is this minute and has not fired yet.

    Only today's list is evaluated, and only while the page is open.
    """
    current = now.strftime("%H:%M")
    due = []
    for item in items:
        if item.completed or not item.reminder or item.reminder != current:
            continue
        key = reminder_key(now.date(), item)
        if key in fired:
            continue
        fired.add(key)
        due.append(item)
    return due
