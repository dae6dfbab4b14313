from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from backend import repositories
from backend.auth import require_user
from backend.schemas import UserNoteCreate, UserNotePatch, UserNoteResponse, envelope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user-notes")

NOTE_NOT_FOUND = "Note not found"


def _note_out(record: dict) -> dict:
    return UserNoteResponse.model_validate(record).to_api()


@router.get("")
async def list_user_notes(user: dict = Depends(require_user)):
    items = await repositories.list_user_notes(user["id"])
    return envelope([_note_out(item) for item in items])


@router.post("")
async def create_user_note(payload: UserNoteCreate, user: dict = Depends(require_user)):
    note = await repositories.create_user_note(user["id"], payload.title, payload.content)
    return envelope(_note_out(note))


@router.get("/{note_id}")
async def get_user_note(note_id: str, user: dict = Depends(require_user)):
    note = await repositories.get_user_note(user["id"], note_id)
    if not note:
        raise HTTPException(status_code=404, detail=NOTE_NOT_FOUND)
    return envelope(_note_out(note))


@router.put("/{note_id}")
async def update_user_note(note_id: str, payload: UserNotePatch, user: dict = Depends(require_user)):
    note = await repositories.update_user_note(user["id"], note_id, payload.model_dump(exclude_unset=True))
    if not note:
        raise HTTPException(status_code=404, detail=NOTE_NOT_FOUND)
    return envelope(_note_out(note))


@router.delete("/{note_id}")
async def delete_user_note(note_id: str, user: dict = Depends(require_user)):
    if not await repositories.delete_user_note(user["id"], note_id):
        raise HTTPException(status_code=404, detail=NOTE_NOT_FOUND)
    logger.info("Deleted note %s", note_id)
    return envelope()
