from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from backend import repositories
from backend.auth import require_user
from backend.date_utils import format_date_for_storage
from backend.routes.tasks import storage_range
from backend.schemas import DailyNoteResponse, DailyNoteUpsert, envelope

router = APIRouter(prefix="/api/notes")


def _storage_day(value: str | None) -> str:
    if not value:
        raise HTTPException(status_code=400, detail="Date is required")
    try:
        return format_date_for_storage(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid date format") from exc


@router.get("")
async def list_daily_notes(
    day: str | None = Query(None, alias="date"),
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    user: dict = Depends(require_user),
):
    if day:
        items = await repositories.list_daily_notes(user["id"], day_iso=_storage_day(day))
    elif start_date and end_date:
        start_iso, end_iso = storage_range(start_date, end_date)
        items = await repositories.list_daily_notes(user["id"], start_iso=start_iso, end_iso=end_iso)
    else:
        raise HTTPException(status_code=400, detail="Date is required")
    return envelope([DailyNoteResponse.model_validate(item).to_api() for item in items])


@router.post("")
async def save_daily_note(payload: DailyNoteUpsert, user: dict = Depends(require_user)):
    note = await repositories.upsert_daily_note(user["id"], payload.date, payload.content)
    return envelope(DailyNoteResponse.model_validate(note).to_api())


@router.delete("")
async def delete_daily_note(day: str | None = Query(None, alias="date"), user: dict = Depends(require_user)):
    if not await repositories.delete_daily_note(user["id"], _storage_day(day)):
        raise HTTPException(status_code=404, detail="Note not found")
    return envelope()
