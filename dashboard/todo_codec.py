"""Plain-text encoding of the daily to-do list.

A daily note stores its items one after another::

    [x] Call the bank @remind:09:30
    [ ] Groceries
      milk
      eggs

The checkbox line carries the first line of the item and an optional
``@remind:HH:mm`` suffix; every further line of the item is indented by two
spaces. Any other non-blank, unindented line becomes a new unchecked item so
notes written before the checkbox format still load.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

UNCHECKED = "[ ]"
CHECKED = "[x]"
INDENT = "  "
REMINDER_TAG = "@remind:"

REMINDER_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
REMINDER_SUFFIX_RE = re.compile(r" @remind:(([01]\d|2[0-3]):[0-5]\d)$")


@dataclass
class TodoItem:
    text: str
    completed: bool = False
    reminder: Optional[str] = None


def is_valid_reminder(value: Optional[str]) -> bool:
    return bool(value) and bool(REMINDER_RE.match(value))


def _serialize_item(item: TodoItem) -> List[str]:
    lines = str(item.text or "").split("\n")
    first = f"{CHECKED if item.completed else UNCHECKED} {lines[0]}"
    if item.reminder:
        if not is_valid_reminder(item.reminder):
            raise ValueError(f"Invalid reminder time: {item.reminder}")
        first += f" {REMINDER_TAG}{item.reminder}"
    return [first] + [f"{INDENT}{line}" for line in lines[1:]]


def serialize_items(items: Iterable[TodoItem]) -> str:
    lines: List[str] = []
    for item in items:
        lines.extend(_serialize_item(item))
    return "\n".join(lines)


def _checkbox(line: str) -> Optional[bool]:
    marker = line[:3]
    if marker == UNCHECKED:
        return False
    if marker.lower() == CHECKED:
        return True
    return None


def _first_line(raw: str) -> tuple[str, Optional[str]]:
    match = REMINDER_SUFFIX_RE.search(raw)
    if not match:
        return raw, None
    return raw[: match.start()], match.group(1)


def parse_content(content: Optional[str]) -> List[TodoItem]:
    items: List[TodoItem] = []
    current: Optional[TodoItem] = None

    def flush():
        nonlocal current
        if current is not None:
            items.append(current)
            current = None

    for line in str(content or "").split("\n"):
        completed = _checkbox(line)
        if completed is not None and (len(line) == 3 or line[3] == " "):
            flush()
            text, reminder = _first_line(line[4:])
            current = TodoItem(text=text, completed=completed, reminder=reminder)
        elif line.startswith(INDENT) and current is not None:
            current.text += "\n" + line[len(INDENT) :]
        elif line.strip():
            flush()
            current = TodoItem(text=line.strip())
    flush()
    return items


def pending_count(items: Iterable[TodoItem]) -> int:
    return sum(1 for item in items if not item.completed)
