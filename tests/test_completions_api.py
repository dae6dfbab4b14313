import asyncio
from datetime import date
from functools import partial

from sqlalchemy import text as sql_text

from backend.date_utils import is_after_completed_date
from backend.db import get_engine


def _count_completions():
    async def _count():
        async with get_engine().connect() as conn:
            return (await conn.execute(sql_text("SELECT COUNT(*) FROM task_completions"))).scalar_one()

    return asyncio.run(_count())


def _task(client, headers, name="Read"):
    return client.post("/api/tasks", json={"name": name}, headers=headers).json()["data"]


def _toggle(client, headers, task_id, day, completed):
    return client.post(
        "/api/completions",
        json={"taskId": task_id, "date": day, "completed": completed},
        headers=headers,
    )


def test_toggle_on_then_off_leaves_no_row(client, auth_headers):
    task = _task(client, auth_headers)
    response = _toggle(client, auth_headers, task["id"], "2024-03-05", True)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["taskId"] == task["id"]
    assert data["date"] == "2024-03-05T12:00:00.000Z"
    assert data["completed"] is True
    assert data["completion"]["date"] == "2024-03-05T12:00:00.000Z"
    assert _count_completions() == 1

    data = _toggle(client, auth_headers, task["id"], "2024-03-05", False).json()["data"]
    assert data["completed"] is False
    assert data["completion"] is None
    assert _count_completions() == 0


def test_toggle_is_idempotent_per_day(client, auth_headers):
    task = _task(client, auth_headers)
    _toggle(client, auth_headers, task["id"], "2024-03-05T12:00:00.000Z", True)
    _toggle(client, auth_headers, task["id"], "2024-03-05", True)
    assert _count_completions() == 1
    _toggle(client, auth_headers, task["id"], "2024-03-06", False)
    assert _count_completions() == 1


def test_tasks_carry_completions_in_range(client, auth_headers):
    task = _task(client, auth_headers)
    for day in ("2024-03-01", "2024-03-05", "2024-03-09"):
        _toggle(client, auth_headers, task["id"], day, True)
    tasks = client.get(
        "/api/tasks",
        params={"startDate": "2024-03-04", "endDate": "2024-03-09"},
        headers=auth_headers,
    ).json()["data"]
    assert [item["date"][:10] for item in tasks[0]["completions"]] == ["2024-03-05", "2024-03-09"]
    everything = client.get("/api/tasks", headers=auth_headers).json()["data"]
    assert len(everything[0]["completions"]) == 3


def test_list_completions(client, auth_headers):
    read = _task(client, auth_headers, "Read")
    run = _task(client, auth_headers, "Run")
    _toggle(client, auth_headers, read["id"], "2024-03-05", True)
    _toggle(client, auth_headers, run["id"], "2024-03-06", True)

    response = client.get("/api/completions", params={"startDate": "2024-03-01"}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "startDate and endDate are required"

    items = client.get(
        "/api/completions",
        params={"startDate": "2024-03-01", "endDate": "2024-03-31"},
        headers=auth_headers,
    ).json()["data"]
    assert [(item["task"]["name"], item["date"][:10]) for item in items] == [
        ("Read", "2024-03-05"),
        ("Run", "2024-03-06"),
    ]
    only_run = client.get(
        "/api/completions",
        params={"startDate": "2024-03-01", "endDate": "2024-03-31", "taskId": run["id"]},
        headers=auth_headers,
    ).json()["data"]
    assert [item["taskId"] for item in only_run] == [run["id"]]


def test_toggle_validation_and_ownership(client, auth_headers, make_user):
    task = _task(client, auth_headers)
    response = client.post("/api/completions", json={"taskId": task["id"], "completed": True}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Date is required"

    response = _toggle(client, auth_headers, task["id"], "someday", True)
    assert response.status_code == 400

    other = make_user("bo@example.com", name="Bo")
    response = _toggle(client, other, task["id"], "2024-03-05", True)
    assert response.status_code == 404
    assert _count_completions() == 0


def test_deleting_a_task_removes_its_completions(client, auth_headers):
    task = _task(client, auth_headers)
    _toggle(client, auth_headers, task["id"], "2024-03-05", True)
    _toggle(client, auth_headers, task["id"], "2024-03-06", True)
    assert _count_completions() == 2
    client.delete(f"/api/tasks/{task['id']}", headers=auth_headers)
    assert _count_completions() == 0


def test_finished_task_frozen_days_use_full_history(client, auth_headers):
    task = _task(client, auth_headers)
    for day in ("2024-03-01", "2024-03-20"):
        _toggle(client, auth_headers, task["id"], day, True)
    client.patch(f"/api/tasks/{task['id']}", json={"isCompleted": True}, headers=auth_headers)

    listed = client.get(
        "/api/tasks",
        params={"startDate": "2024-02-25", "endDate": "2024-03-10"},
        headers=auth_headers,
    ).json()["data"][0]
    assert [item["date"][:10] for item in listed["completions"]] == ["2024-03-01"]
    assert listed["lastCompletionDate"] == "2024-03-20T12:00:00.000Z"
    frozen = partial(
        is_after_completed_date,
        listed["isCompleted"],
        listed["completions"],
        completed_at=listed["completedAt"],
        last_completed=listed["lastCompletionDate"],
    )
    assert not frozen(date(2024, 3, 5))
    assert not frozen(date(2024, 3, 20))
    assert frozen(date(2024, 3, 21))


def test_last_completion_date_ignores_unchecked_days(client, auth_headers):
    task = _task(client, auth_headers)
    assert task["lastCompletionDate"] is None
    _toggle(client, auth_headers, task["id"], "2024-03-01", True)
    _toggle(client, auth_headers, task["id"], "2024-03-09", True)
    _toggle(client, auth_headers, task["id"], "2024-03-09", False)
    fetched = client.get(f"/api/tasks/{task['id']}", headers=auth_headers).json()["data"]
    assert fetched["lastCompletionDate"] == "2024-03-01T12:00:00.000Z"
