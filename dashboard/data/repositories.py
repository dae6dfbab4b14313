from __future__ import annotations

from datetime import date

from backend.date_utils import format_date_for_storage
from dashboard.data import api_client


# --- auth ---


def register(email, password, name=None):
    return api_client.request(
        "POST",
        "/api/auth/register",
        json={"email": email, "password": password, "name": name or None},
        auth=False,
    )


def login(email, password):
    return api_client.request(
        "POST",
        "/api/auth/login",
        json={"email": email, "password": password},
        auth=False,
    )


def current_user():
    return api_client.request("GET", "/api/auth/me")


# --- habit tasks ---


def list_tasks(start_day: date | None = None, end_day: date | None = None):
    params = None
    if start_day and end_day:
        params = {"startDate": start_day.isoformat(), "endDate": end_day.isoformat()}
    return api_client.request("GET", "/api/tasks", params=params) or []


def create_task(name, description=None, color=None, emoji=None):
    payload = {"name": name}
    if description:
        payload["description"] = description
    if color:
        payload["color"] = color
    if emoji:
        payload["emoji"] = emoji
    return api_client.request("POST", "/api/tasks", json=payload)


def update_task(task_id, patch):
    return api_client.request("PATCH", f"/api/tasks/{task_id}", json=patch)


def delete_task(task_id):
    return api_client.request("DELETE", f"/api/tasks/{task_id}")


def reorder_tasks(task_ids):
    return api_client.request("PUT", "/api/tasks/reorder", json={"taskIds": list(task_ids)})


def set_completion(task_id, day: date, completed: bool):
    return api_client.request(
        "POST",
        "/api/completions",
        json={"taskId": task_id, "date": format_date_for_storage(day), "completed": bool(completed)},
    )


def list_completions(start_day: date, end_day: date, task_id=None):
    params = {"startDate": start_day.isoformat(), "endDate": end_day.isoformat()}
    if task_id:
        params["taskId"] = task_id
    return api_client.request("GET", "/api/completions", params=params) or []


# --- daily notes ---


def get_daily_note(day: date):
    items = api_client.request("GET", "/api/notes", params={"date": day.isoformat()}) or []
    return items[0] if items else None


def save_daily_note(day: date, content: str, token=None):
    return api_client.request(
        "POST",
        "/api/notes",
        json={"date": format_date_for_storage(day), "content": content or ""},
        token=token,
    )


def delete_daily_note(day: date):
    return api_client.request("DELETE", "/api/notes", params={"date": day.isoformat()})


# --- free-form notes ---


def list_notes():
    return api_client.request("GET", "/api/user-notes") or []


def create_note(title, content="[]"):
    return api_client.request("POST", "/api/user-notes", json={"title": title, "content": content})


def save_note(note_id, title=None, content=None, token=None):
    payload = {}
    if title is not None:
        payload["title"] = title
    if content is not None:
        payload["content"] = content
    return api_client.request("PUT", f"/api/user-notes/{note_id}", json=payload, token=token)


def delete_note(note_id):
    return api_client.request("DELETE", f"/api/user-notes/{note_id}")
