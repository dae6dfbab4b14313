from __future__ import annotations

import logging

from sqlalchemy import text as sql_text

from backend.db import get_engine

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
TASKS_TABLE = "habit_tasks"
COMPLETIONS_TABLE = "task_completions"
DAILY_NOTES_TABLE = "daily_notes"
USER_NOTES_TABLE = "user_notes"


async def init_db():
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {USERS_TABLE} (
                    id TEXT PRIMARY KEY,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    name TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
        )
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {TASKS_TABLE} (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL REFERENCES {USERS_TABLE}(id) ON DELETE CASCADE,
                    name TEXT NOT NULL,
                    description TEXT,
                    color TEXT NOT NULL,
                    emoji TEXT,
                    is_active INTEGER NOT NULL DEFAULT 1,
                    is_completed INTEGER NOT NULL DEFAULT 0,
                    completed_at TEXT,
                    sort_order INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
        )
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {COMPLETIONS_TABLE} (
                    id TEXT PRIMARY KEY,
                    task_id TEXT NOT NULL REFERENCES {TASKS_TABLE}(id) ON DELETE CASCADE,
                    date TEXT NOT NULL,
                    completed INTEGER NOT NULL DEFAULT 1,
                    created_at TEXT NOT NULL,
                    UNIQUE (task_id, date)
                )
                """
            )
        )
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {DAILY_NOTES_TABLE} (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL REFERENCES {USERS_TABLE}(id) ON DELETE CASCADE,
                    date TEXT NOT NULL,
                    content TEXT NOT NULL DEFAULT '',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    UNIQUE (user_id, date)
                )
                """
            )
        )
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {USER_NOTES_TABLE} (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL REFERENCES {USERS_TABLE}(id) ON DELETE CASCADE,
                    title TEXT NOT NULL,
                    content TEXT NOT NULL DEFAULT '[]',
                    sort_order INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
        )

    async def ensure_index(index_sql: str) -> None:
        try:
            async with engine.begin() as conn:
                await conn.execute(sql_text(index_sql))
        except Exception as exc:
            logger.warning("Index creation skipped: %s", exc)

    await ensure_index(
        f"CREATE INDEX IF NOT EXISTS idx_{TASKS_TABLE}_user_order "
        f"ON {TASKS_TABLE} (user_id, is_active, sort_order, created_at)"
    )
    await ensure_index(
        f"CREATE INDEX IF NOT EXISTS idx_{COMPLETIONS_TABLE}_task_date "
        f"ON {COMPLETIONS_TABLE} (task_id, date)"
    )
    await ensure_index(
        f"CREATE INDEX IF NOT EXISTS idx_{DAILY_NOTES_TABLE}_user_date "
        f"ON {DAILY_NOTES_TABLE} (user_id, date)"
    )
    await ensure_index(
        f"CREATE INDEX IF NOT EXISTS idx_{USER_NOTES_TABLE}_user_order "
        f"ON {USER_NOTES_TABLE} (user_id, sort_order)"
    )
