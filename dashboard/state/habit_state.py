"""Local (optimistic) edits to the habit grid's task list."""
from __future__ import annotations

import copy
from datetime import date
from typing import List, Optional

from backend.date_utils import decode_calendar_date, format_date_for_storage


def apply_completion(tasks: List[dict], task_id: str, day: date, completed: bool) -> List[dict]:
    updated = []
    for task in tasks:
        if task.get("id") != task_id:
            updated.append(task)
            continue
        task = copy.deepcopy(task)
        kept = [
            item for item in task.get("completions") or []
            if decode_calendar_date(item["date"]) != day
        ]
        if completed:
            kept.append(
                {
                    "id": f"temp-{task_id}-{day.isoformat()}",
                    "taskId": task_id,
                    "date": format_date_for_storage(day),
                    "completed": True,
                }
            )
        task["completions"] = kept
        if completed:
            last = task.get("lastCompletionDate")
            if not last or decode_calendar_date(last) < day:
                task["lastCompletionDate"] = format_date_for_storage(day)
        updated.append(task)
    return updated


def move_task(tasks: List[dict], task_id: str, offset: int) -> Optional[List[dict]]:
    """Move one task up (negative) or down (positive); None when it cannot move."""
    ids = [task.get("id") for task in tasks]
    if task_id not in ids:
        return None
    index = ids.index(task_id)
    target = index + offset
    if target < 0 or target >= len(tasks) or target == index:
        return None
    reordered = list(tasks)
    item = reordered.pop(index)
    reordered.insert(target, item)
    for position, task in enumerate(reordered):
        if task.get("sortOrder") != position:
            reordered[position] = {**task, "sortOrder": position}
    return reordered


def replace_task(tasks: List[dict], record: dict) -> List[dict]:
    return [record if task.get("id") == record.get("id") else task for task in tasks]


def remove_task(tasks: List[dict], task_id: str) -> List[dict]:
    return [task for task in tasks if task.get("id") != task_id]


def week_check_ins(tasks: List[dict], completions: List[dict]) -> tuple[int, int]:
    """Checked days this week for the listed tasks, and the 7-per-task maximum."""
    task_ids = {task.get("id") for task in tasks}
    done = sum(1 for item in completions if item.get("taskId") in task_ids and item.get("completed", True))
    return done, len(task_ids) * 7
