from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import text as sql_text, bindparam
from sqlalchemy.exc import IntegrityError

from backend.db import get_sessionmaker
from backend.db_init import (
    USERS_TABLE,
    TASKS_TABLE,
    COMPLETIONS_TABLE,
    DAILY_NOTES_TABLE,
    USER_NOTES_TABLE,
)
from backend.settings import get_settings

logger = logging.getLogger(__name__)

USER_COLUMNS = "id, email, password_hash, name, created_at, updated_at"
TASK_COLUMNS = (
    "id, user_id, name, description, color, emoji, is_active, is_completed, "
    "completed_at, sort_order, created_at, updated_at"
)
COMPLETION_COLUMNS = "id, task_id, date, completed, created_at"
DAILY_NOTE_COLUMNS = "id, user_id, date, content, created_at, updated_at"
USER_NOTE_COLUMNS = "id, user_id, title, content, sort_order, created_at, updated_at"

TASK_PATCH_FIELDS = {"name", "description", "color", "emoji", "is_active", "is_completed"}


def _new_id() -> str:
    return uuid4().hex


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _normalize_flags(row: dict, *keys: str) -> dict:
    payload = dict(row)
    for key in keys:
        if key in payload:
            payload[key] = bool(payload[key])
    return payload


def public_user(user: dict) -> dict:
    return {key: user.get(key) for key in ("id", "email", "name", "created_at")}


# --- users ---


async def get_user(user_id: str) -> dict | None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"SELECT {USER_COLUMNS} FROM {USERS_TABLE} WHERE id = :id"),
            {"id": user_id},
        )).mappings().fetchone()
    return dict(row) if row else None


async def get_user_by_email(email: str) -> dict | None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"SELECT {USER_COLUMNS} FROM {USERS_TABLE} WHERE email = :email"),
            {"email": str(email or "").strip().lower()},
        )).mappings().fetchone()
    return dict(row) if row else None


async def create_user(email: str, password_hash: str, name: str | None = None) -> dict:
    email = str(email or "").strip().lower()
    if await get_user_by_email(email):
        raise ValueError("An account with this email already exists")
    now = _utcnow_iso()
    record = {
        "id": _new_id(),
        "email": email,
        "password_hash": password_hash,
        "name": name,
        "created_at": now,
        "updated_at": now,
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        try:
            await session.execute(
                sql_text(
                    f"""
                    INSERT INTO {USERS_TABLE} (id, email, password_hash, name, created_at, updated_at)
                    VALUES (:id, :email, :password_hash, :name, :created_at, :updated_at)
                    """
                ),
                record,
            )
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            raise ValueError("An account with this email already exists") from exc
    logger.info("Registered user %s", record["id"])
    return record


# --- tasks ---


async def _completions_for_tasks(session, task_ids: list[str], start_iso: str | None, end_iso: str | None) -> dict:
    grouped = {task_id: [] for task_id in task_ids}
    if not task_ids:
        return grouped
    query = (
        f"SELECT {COMPLETION_COLUMNS} FROM {COMPLETIONS_TABLE} WHERE task_id IN :task_ids"
    )
    params: dict = {"task_ids": task_ids}
    if start_iso and end_iso:
        query += " AND date >= :start_date AND date <= :end_date"
        params.update({"start_date": start_iso, "end_date": end_iso})
    query += " ORDER BY date"
    rows = (await session.execute(
        sql_text(query).bindparams(bindparam("task_ids", expanding=True)),
        params,
    )).mappings().all()
    for row in rows:
        grouped.setdefault(row["task_id"], []).append(_normalize_flags(row, "completed"))
    return grouped


async def _last_completion_dates(session, task_ids: list[str]) -> dict:
    if not task_ids:
        return {}
    rows = (await session.execute(
        sql_text(
            f"""
            SELECT task_id, MAX(date) AS last_date
            FROM {COMPLETIONS_TABLE}
            WHERE task_id IN :task_ids AND completed = 1
            GROUP BY task_id
            """
        ).bindparams(bindparam("task_ids", expanding=True)),
        {"task_ids": task_ids},
    )).mappings().all()
    return {row["task_id"]: row["last_date"] for row in rows}


def _task_payload(row, completions: list[dict], last_completion_date: str | None = None) -> dict:
    payload = _normalize_flags(row, "is_active", "is_completed")
    payload["completions"] = completions
    payload["last_completion_date"] = last_completion_date
    return payload


async def list_tasks(user_id: str, start_iso: str | None = None, end_iso: str | None = None) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {TASK_COLUMNS}
                FROM {TASKS_TABLE}
                WHERE user_id = :user_id
                  AND is_active = 1
                ORDER BY sort_order, created_at
                """
            ),
            {"user_id": user_id},
        )).mappings().all()
        task_ids = [row["id"] for row in rows]
        completions = await _completions_for_tasks(session, task_ids, start_iso, end_iso)
        last_dates = await _last_completion_dates(session, task_ids)
    return [_task_payload(row, completions.get(row["id"], []), last_dates.get(row["id"])) for row in rows]


async def get_task(user_id: str, task_id: str, with_completions: bool = True) -> dict | None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"SELECT {TASK_COLUMNS} FROM {TASKS_TABLE} WHERE id = :id AND user_id = :user_id"),
            {"id": task_id, "user_id": user_id},
        )).mappings().fetchone()
        if not row:
            return None
        completions = {}
        if with_completions:
            completions = await _completions_for_tasks(session, [task_id], None, None)
        last_dates = await _last_completion_dates(session, [task_id])
    return _task_payload(row, completions.get(task_id, []), last_dates.get(task_id))


async def create_task(user_id: str, payload: dict) -> dict:
    settings = get_settings()
    now = _utcnow_iso()
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        next_order = (await session.execute(
            sql_text(f"SELECT COALESCE(MAX(sort_order), -1) + 1 FROM {TASKS_TABLE} WHERE user_id = :user_id"),
            {"user_id": user_id},
        )).scalar_one()
        record = {
            "id": _new_id(),
            "user_id": user_id,
            "name": payload["name"],
            "description": payload.get("description") or None,
            "color": payload.get("color") or settings.default_task_color,
            "emoji": payload.get("emoji") or None,
            "is_active": 1,
            "is_completed": 0,
            "completed_at": None,
            "sort_order": int(next_order or 0),
            "created_at": now,
            "updated_at": now,
        }
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {TASKS_TABLE}
                (id, user_id, name, description, color, emoji, is_active, is_completed,
                 completed_at, sort_order, created_at, updated_at)
                VALUES
                (:id, :user_id, :name, :description, :color, :emoji, :is_active, :is_completed,
                 :completed_at, :sort_order, :created_at, :updated_at)
                """
            ),
            record,
        )
        await session.commit()
    return _task_payload(record, [])


async def update_task(user_id: str, task_id: str, patch: dict) -> dict | None:
    existing = await get_task(user_id, task_id, with_completions=False)
    if not existing:
        return None
    updates = []
    params = {"id": task_id, "user_id": user_id}
    for key, value in patch.items():
        if key not in TASK_PATCH_FIELDS:
            continue
        updates.append(f"{key} = :{key}")
        if key in {"is_active", "is_completed"}:
            params[key] = int(bool(value))
        else:
            params[key] = value
    if "is_completed" in params:
        updates.append("completed_at = :completed_at")
        if params["is_completed"]:
            params["completed_at"] = existing.get("completed_at") if existing.get("is_completed") else _utcnow_iso()
        else:
            params["completed_at"] = None
    if not updates:
        return await get_task(user_id, task_id)
    updates.append("updated_at = :updated_at")
    params["updated_at"] = _utcnow_iso()
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"UPDATE {TASKS_TABLE} SET {', '.join(updates)} WHERE id = :id AND user_id = :user_id"
            ),
            params,
        )
        await session.commit()
    return await get_task(user_id, task_id)


async def delete_task(user_id: str, task_id: str) -> bool:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        owned = (await session.execute(
            sql_text(f"SELECT id FROM {TASKS_TABLE} WHERE id = :id AND user_id = :user_id"),
            {"id": task_id, "user_id": user_id},
        )).fetchone()
        if not owned:
            return False
        # SQLite only enforces ON DELETE CASCADE with the foreign_keys pragma on.
        await session.execute(
            sql_text(f"DELETE FROM {COMPLETIONS_TABLE} WHERE task_id = :task_id"),
            {"task_id": task_id},
        )
        await session.execute(
            sql_text(f"DELETE FROM {TASKS_TABLE} WHERE id = :id AND user_id = :user_id"),
            {"id": task_id, "user_id": user_id},
        )
        await session.commit()
    return True


async def reorder_tasks(user_id: str, task_ids: list[str]) -> None:
    """Assign sort_order 0..N-1 following ``task_ids`` in a single transaction.

    Raises LookupError when an id is unknown or belongs to someone else, and
    ValueError when the list is not exactly the caller's active task set.
    """
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        owned = (await session.execute(
            sql_text(
                f"SELECT id, is_active FROM {TASKS_TABLE} WHERE user_id = :user_id AND id IN :task_ids"
            ).bindparams(bindparam("task_ids", expanding=True)),
            {"user_id": user_id, "task_ids": task_ids},
        )).mappings().all()
        if len(owned) != len(task_ids):
            raise LookupError("One or more tasks not found")
        active_ids = set((await session.execute(
            sql_text(f"SELECT id FROM {TASKS_TABLE} WHERE user_id = :user_id AND is_active = 1"),
            {"user_id": user_id},
        )).scalars().all())
        if active_ids != set(task_ids):
            raise ValueError("Task list must contain every active task exactly once")
        now = _utcnow_iso()
        for index, task_id in enumerate(task_ids):
            await session.execute(
                sql_text(
                    f"UPDATE {TASKS_TABLE} SET sort_order = :sort_order, updated_at = :updated_at "
                    "WHERE id = :id AND user_id = :user_id"
                ),
                {"sort_order": index, "updated_at": now, "id": task_id, "user_id": user_id},
            )
        await session.commit()


# --- completions ---


async def list_completions(user_id: str, start_iso: str, end_iso: str, task_id: str | None = None) -> list[dict]:
    query = f"""
        SELECT c.id, c.task_id, c.date, c.completed, c.created_at, t.name AS task_name
        FROM {COMPLETIONS_TABLE} c
        JOIN {TASKS_TABLE} t ON t.id = c.task_id
        WHERE t.user_id = :user_id
          AND c.date >= :start_date
          AND c.date <= :end_date
    """
    params = {"user_id": user_id, "start_date": start_iso, "end_date": end_iso}
    if task_id:
        query += " AND c.task_id = :task_id"
        params["task_id"] = task_id
    query += " ORDER BY c.date, t.sort_order"
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(sql_text(query), params)).mappings().all()
    items = []
    for row in rows:
        payload = _normalize_flags(row, "completed")
        payload["task"] = {"id": payload["task_id"], "name": payload.pop("task_name")}
        items.append(payload)
    return items


async def set_completion(user_id: str, task_id: str, day_iso: str, completed: bool) -> dict | None:
    """Mark or clear one day; an unchecked day is represented by the row's absence."""
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        owned = (await session.execute(
            sql_text(f"SELECT id FROM {TASKS_TABLE} WHERE id = :id AND user_id = :user_id"),
            {"id": task_id, "user_id": user_id},
        )).fetchone()
        if not owned:
            raise LookupError("Task not found")
        if not completed:
            await session.execute(
                sql_text(f"DELETE FROM {COMPLETIONS_TABLE} WHERE task_id = :task_id AND date = :date"),
                {"task_id": task_id, "date": day_iso},
            )
            await session.commit()
            return None
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {COMPLETIONS_TABLE} (id, task_id, date, completed, created_at)
                VALUES (:id, :task_id, :date, 1, :created_at)
                ON CONFLICT(task_id, date) DO UPDATE SET completed = 1
                """
            ),
            {"id": _new_id(), "task_id": task_id, "date": day_iso, "created_at": _utcnow_iso()},
        )
        await session.commit()
        row = (await session.execute(
            sql_text(
                f"SELECT {COMPLETION_COLUMNS} FROM {COMPLETIONS_TABLE} WHERE task_id = :task_id AND date = :date"
            ),
            {"task_id": task_id, "date": day_iso},
        )).mappings().fetchone()
    return _normalize_flags(row, "completed") if row else None


# --- daily notes ---


async def list_daily_notes(
    user_id: str,
    day_iso: str | None = None,
    start_iso: str | None = None,
    end_iso: str | None = None,
) -> list[dict]:
    query = f"SELECT {DAILY_NOTE_COLUMNS} FROM {DAILY_NOTES_TABLE} WHERE user_id = :user_id"
    params = {"user_id": user_id}
    if day_iso:
        query += " AND date = :date"
        params["date"] = day_iso
    elif start_iso and end_iso:
        query += " AND date >= :start_date AND date <= :end_date"
        params.update({"start_date": start_iso, "end_date": end_iso})
    query += " ORDER BY date DESC"
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(sql_text(query), params)).mappings().all()
    return [dict(row) for row in rows]


async def upsert_daily_note(user_id: str, day_iso: str, content: str) -> dict:
    now = _utcnow_iso()
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {DAILY_NOTES_TABLE} (id, user_id, date, content, created_at, updated_at)
                VALUES (:id, :user_id, :date, :content, :created_at, :updated_at)
                ON CONFLICT(user_id, date) DO UPDATE SET
                    content = EXCLUDED.content,
                    updated_at = EXCLUDED.updated_at
                """
            ),
            {
                "id": _new_id(),
                "user_id": user_id,
                "date": day_iso,
                "content": content or "",
                "created_at": now,
                "updated_at": now,
            },
        )
        await session.commit()
    notes = await list_daily_notes(user_id, day_iso=day_iso)
    return notes[0]


async def delete_daily_note(user_id: str, day_iso: str) -> bool:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {DAILY_NOTES_TABLE} WHERE user_id = :user_id AND date = :date"),
            {"user_id": user_id, "date": day_iso},
        )
        deleted = result.rowcount
        await session.commit()
    return bool(deleted)


# --- free-form notes ---


async def list_user_notes(user_id: str) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {USER_NOTE_COLUMNS}
                FROM {USER_NOTES_TABLE}
                WHERE user_id = :user_id
                ORDER BY sort_order ASC, created_at DESC
                """
            ),
            {"user_id": user_id},
        )).mappings().all()
    return [dict(row) for row in rows]


async def get_user_note(user_id: str, note_id: str) -> dict | None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"SELECT {USER_NOTE_COLUMNS} FROM {USER_NOTES_TABLE} WHERE id = :id AND user_id = :user_id"),
            {"id": note_id, "user_id": user_id},
        )).mappings().fetchone()
    return dict(row) if row else None


async def create_user_note(user_id: str, title: str, content: str | None = None) -> dict:
    now = _utcnow_iso()
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        next_order = (await session.execute(
            sql_text(f"SELECT COALESCE(MAX(sort_order), -1) + 1 FROM {USER_NOTES_TABLE} WHERE user_id = :user_id"),
            {"user_id": user_id},
        )).scalar_one()
        record = {
            "id": _new_id(),
            "user_id": user_id,
            "title": title,
            "content": content or "[]",
            "sort_order": int(next_order or 0),
            "created_at": now,
            "updated_at": now,
        }
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {USER_NOTES_TABLE} (id, user_id, title, content, sort_order, created_at, updated_at)
                VALUES (:id, :user_id, :title, :content, :sort_order, :created_at, :updated_at)
                """
            ),
            record,
        )
        await session.commit()
    return record


async def update_user_note(user_id: str, note_id: str, patch: dict) -> dict | None:
    if not await get_user_note(user_id, note_id):
        return None
    updates = []
    params = {"id": note_id, "user_id": user_id}
    for key in ("title", "content"):
        if patch.get(key) is None:
            continue
        updates.append(f"{key} = :{key}")
        params[key] = patch[key]
    if updates:
        updates.append("updated_at = :updated_at")
        params["updated_at"] = _utcnow_iso()
        session_factory = get_sessionmaker()
        async with session_factory() as session:
            await session.execute(
                sql_text(
                    f"UPDATE {USER_NOTES_TABLE} SET {', '.join(updates)} WHERE id = :id AND user_id = :user_id"
                ),
                params,
            )
            await session.commit()
    return await get_user_note(user_id, note_id)


async def delete_user_note(user_id: str, note_id: str) -> bool:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {USER_NOTES_TABLE} WHERE id = :id AND user_id = :user_id"),
            {"id": note_id, "user_id": user_id},
        )
        deleted = result.rowcount
        await session.commit()
    return bool(deleted)
