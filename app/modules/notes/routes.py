from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.notes.schemas import NoteSave, NoteResponse, NoteHistoryEntry
from app.modules.notes.service import NoteService
from app.core.dependencies import check_group_member, get_room_registry
from app.core.security import SessionUser
from app.realtime.registry import RoomRegistry
from supabase import AsyncClient
from typing import List

router = APIRouter(prefix="/notes", tags=["notes"])


def get_note_service(
    supabase: AsyncClient = Depends(get_supabase),
    rooms: RoomRegistry = Depends(get_room_registry)
) -> NoteService:
    return NoteService(supabase, rooms)


@router.get("/{group_id}", response_model=NoteResponse)
async def get_note(
    group_id: str,
    user: SessionUser = Depends(check_group_member),
    service: NoteService = Depends(get_note_service)
):
    return await service.get_note(group_id)


@router.put("/{group_id}", response_model=NoteResponse)
async def save_note(
    group_id: str,
    note_data: NoteSave,
    user: SessionUser = Depends(check_group_member),
    service: NoteService = Depends(get_note_service)
):
    """Overwrite the shared note; the previous version is archived"""
    return await service.save_note(group_id, note_data.content, user)


@router.get("/{group_id}/history", response_model=List[NoteHistoryEntry])
async def get_note_history(
    group_id: str,
    user: SessionUser = Depends(check_group_member),
    service: NoteService = Depends(get_note_service)
):
    return await service.get_history(group_id)
