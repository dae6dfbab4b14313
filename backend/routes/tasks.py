from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from backend import repositories
from backend.auth import require_user
from backend.date_utils import format_date_for_storage
from backend.schemas import ReorderPayload, TaskCreate, TaskPatch, TaskResponse, envelope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks")

TASK_NOT_FOUND = "Task not found"


def storage_range(start: str | None, end: str | None) -> tuple[str | None, str | None]:
    if not start or not end:
        return None, None
    try:
        return format_date_for_storage(start), format_date_for_storage(end)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid date range") from exc


def _task_out(record: dict) -> dict:
    return TaskResponse.model_validate(record).to_api()


@router.get("")
async def list_tasks(
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    user: dict = Depends(require_user),
):
    start_iso, end_iso = storage_range(start_date, end_date)
    items = await repositories.list_tasks(user["id"], start_iso, end_iso)
    return envelope([_task_out(item) for item in items])


@router.post("", status_code=201)
async def create_task(payload: TaskCreate, user: dict = Depends(require_user)):
    record = await repositories.create_task(user["id"], payload.model_dump())
    logger.info("Created task %s", record["id"])
    return envelope(_task_out(record))


@router.put("/reorder")
async def reorder_tasks(payload: ReorderPayload, user: dict = Depends(require_user)):
    try:
        await repositories.reorder_tasks(user["id"], payload.task_ids)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return envelope({"message": "Tasks reordered successfully"})


@router.get("/{task_id}")
async def get_task(task_id: str, user: dict = Depends(require_user)):
    record = await repositories.get_task(user["id"], task_id)
    if not record:
        raise HTTPException(status_code=404, detail=TASK_NOT_FOUND)
    return envelope(_task_out(record))


@router.patch("/{task_id}")
async def patch_task(task_id: str, payload: TaskPatch, user: dict = Depends(require_user)):
    record = await repositories.update_task(user["id"], task_id, payload.model_dump(exclude_unset=True))
    if not record:
        raise HTTPException(status_code=404, detail=TASK_NOT_FOUND)
    return envelope(_task_out(record))


@router.delete("/{task_id}")
async def delete_task(task_id: str, user: dict = Depends(require_user)):
    if not await repositories.delete_task(user["id"], task_id):
        raise HTTPException(status_code=404, detail=TASK_NOT_FOUND)
    logger.info("Deleted task %s", task_id)
    return envelope({"message": "Task deleted successfully"})
