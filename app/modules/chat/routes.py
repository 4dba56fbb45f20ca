from fastapi import APIRouter, Depends, Query, Response
from app.database.supabase_client import get_supabase
from app.modules.chat.schemas import MessageCreate, ChatMessageResponse
from app.modules.chat.service import MessageService
from app.core.dependencies import check_group_member, get_room_registry
from app.core.security import SessionUser
from app.realtime.registry import RoomRegistry
from app.config import settings
from supabase import AsyncClient
from datetime import datetime
from typing import List, Optional

router = APIRouter(prefix="/chat", tags=["chat"])


def get_message_service(
    supabase: AsyncClient = Depends(get_supabase),
    rooms: RoomRegistry = Depends(get_room_registry)
) -> MessageService:
    return MessageService(supabase, rooms)


@router.get("/{group_id}/messages", response_model=List[ChatMessageResponse])
async def list_messages(
    group_id: str,
    limit: int = Query(settings.messages_default_limit, ge=1, le=settings.messages_max_limit),
    before: Optional[datetime] = Query(None),
    user: SessionUser = Depends(check_group_member),
    service: MessageService = Depends(get_message_service)
):
    """Page through a group's history, oldest first within the page"""
    return await service.list_messages(group_id, limit, before)


@router.post("/{group_id}/messages", response_model=ChatMessageResponse, status_code=201)
async def post_message(
    group_id: str,
    message_data: MessageCreate,
    user: SessionUser = Depends(check_group_member),
    service: MessageService = Depends(get_message_service)
):
    """Post a message and broadcast it to the group's room"""
    return await service.post_message(group_id, user, message_data.text)


@router.delete("/{group_id}/messages/{message_id}", status_code=204)
async def delete_message(
    group_id: str,
    message_id: str,
    user: SessionUser = Depends(check_group_member),
    service: MessageService = Depends(get_message_service)
):
    """Delete one of your own messages"""
    await service.delete_message(group_id, message_id, user)
    return Response(status_code=204)
