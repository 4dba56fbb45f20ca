import logging
from datetime import datetime
from supabase import AsyncClient
from app.modules.chat.schemas import ChatMessageResponse
from app.database.supabase_client import run_query, first_row
from app.realtime.registry import RoomRegistry
from app.realtime import events
from app.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.core.security import SessionUser
from app.core.utils import new_id, to_utc_iso, utc_now_iso
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

MESSAGES_TABLE = "messages"


class MessageService:
    def __init__(self, supabase: AsyncClient, rooms: Optional[RoomRegistry] = None):
        self.supabase = supabase
        self.rooms = rooms

    async def list_messages(
        self,
        group_id: str,
        limit: int,
        before: Optional[datetime] = None
    ) -> List[ChatMessageResponse]:
        """Latest `limit` messages older than `before`, returned oldest first"""
        query = self.supabase.table(MESSAGES_TABLE).select("*").eq("group_id", group_id)
        if before is not None:
            query = query.lt("created_at", to_utc_iso(before))
        query = query.order("created_at", desc=True).limit(limit)
        result = await run_query(query, "fetch messages")
        rows = list(result.data or [])
        rows.reverse()
        return [self.to_response(row) for row in rows]

    async def post_message(self, group_id: str, user: SessionUser, text: str) -> ChatMessageResponse:
        """Persist a message (text already validated) and push it to the group's room"""
        now = utc_now_iso()
        row = {
            "id": new_id(),
            "group_id": group_id,
            "sender_id": user.user_id,
            "sender_email": user.email,
            "sender_name": user.display_name,
            "text": text,
            "created_at": now,
            "updated_at": now,
        }
        result = await run_query(self.supabase.table(MESSAGES_TABLE).insert(row), "create message")
        message = self.to_response(first_row(result) or row)

        if self.rooms is not None:
            await self.rooms.emit(group_id, events.NEW_MESSAGE, message.model_dump(mode="json", by_alias=True))
        return message

    async def delete_message(self, group_id: str, message_id: str, user: SessionUser) -> None:
        """Hard-delete a message; only its sender may do so"""
        result = await run_query(
            self.supabase.table(MESSAGES_TABLE).select("*").eq("id", message_id).limit(1),
            "fetch message",
        )
        message = first_row(result)
        if message is None:
            raise NotFoundError("Message not found.")
        if message["group_id"] != group_id:
            raise ValidationError("Message does not belong to this group.")
        if message["sender_id"] != user.user_id:
            raise ForbiddenError("You can only delete your own messages.")

        await run_query(self.supabase.table(MESSAGES_TABLE).delete().eq("id", message_id), "delete message")
        logger.info(f"User {user.user_id} deleted message {message_id} in group {group_id}")

        if self.rooms is not None:
            await self.rooms.emit(group_id, events.MESSAGE_DELETED, {"messageId": message_id, "groupId": group_id})

    @staticmethod
    def to_response(row: Dict[str, Any]) -> ChatMessageResponse:
        return ChatMessageResponse(
            message_id=row["id"],
            group_id=row["group_id"],
            sender_id=row["sender_id"],
            sender_email=row["sender_email"],
            sender_name=row["sender_name"],
            text=row["text"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
