from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from backend import repositories
from backend.auth import require_user
from backend.routes.tasks import storage_range
from backend.schemas import CompletionResponse, CompletionToggle, envelope

router = APIRouter(prefix="/api/completions")


@router.get("")
async def list_completions(
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    task_id: str | None = Query(None, alias="taskId"),
    user: dict = Depends(require_user),
):
    if not start_date or not end_date:
        raise HTTPException(status_code=400, detail="startDate and endDate are required")
    start_iso, end_iso = storage_range(start_date, end_date)
    items = await repositories.list_completions(user["id"], start_iso, end_iso, task_id=task_id)
    return envelope([CompletionResponse.model_validate(item).to_api() for item in items])


@router.post("")
async def toggle_completion(payload: CompletionToggle, user: dict = Depends(require_user)):
    try:
        completion = await repositories.set_completion(user["id"], payload.task_id, payload.date, payload.completed)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail="Task not found") from exc
    return envelope(
        {
            "taskId": payload.task_id,
            "date": payload.date,
            "completed": payload.completed,
            "completion": CompletionResponse.model_validate(completion).to_api() if completion else None,
        }
    )
