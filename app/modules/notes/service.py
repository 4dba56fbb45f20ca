import logging
from supabase import AsyncClient
from app.modules.notes.schemas import NoteResponse, NoteHistoryEntry
from app.database.supabase_client import run_query, first_row
from app.realtime.registry import RoomRegistry
from app.realtime import events
from app.core.security import SessionUser
from app.core.utils import new_id, utc_now_iso
from app.config import settings
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

NOTES_TABLE = "notes"
NOTE_HISTORY_TABLE = "note_history"


class NoteService:
    def __init__(self, supabase: AsyncClient, rooms: Optional[RoomRegistry] = None):
        self.supabase = supabase
        self.rooms = rooms

    async def _get_note_row(self, group_id: str) -> Optional[Dict[str, Any]]:
        result = await run_query(
            self.supabase.table(NOTES_TABLE).select("*").eq("group_id", group_id).limit(1),
            "fetch note",
        )
        return first_row(result)

    async def get_note(self, group_id: str) -> NoteResponse:
        """Current document; a group that never saved one gets an empty default"""
        note = await self._get_note_row(group_id)
        if note is None:
            return NoteResponse(group_id=group_id, content="", last_edited_by=None, last_edited_at=None)
        return self.to_response(note)

    async def save_note(self, group_id: str, content: str, user: SessionUser) -> NoteResponse:
        """Archive the state being replaced, then overwrite. Concurrent saves: last write wins."""
        previous = await self._get_note_row(group_id)
        if previous is not None:
            await run_query(
                self.supabase.table(NOTE_HISTORY_TABLE).insert({
                    "id": new_id(),
                    "group_id": group_id,
                    "content": previous.get("content") or "",
                    "saved_by": previous.get("last_edited_by"),
                    "saved_at": previous.get("last_edited_at"),
                    "archived_at": utc_now_iso(),
                }),
                "archive note",
            )

        now = utc_now_iso()
        editor = {"user_id": user.user_id, "display_name": user.display_name}
        row = {
            "group_id": group_id,
            "content": content,
            "last_edited_by": editor,
            "last_edited_at": now,
            "updated_at": now,
        }
        result = await run_query(
            self.supabase.table(NOTES_TABLE).upsert(row, on_conflict="group_id"),
            "save note",
        )
        note = self.to_response(first_row(result) or row)
        logger.info(f"User {user.user_id} saved the note of group {group_id}")

        if self.rooms is not None:
            # Editor and timestamp only; clients refetch the content
            await self.rooms.emit(group_id, events.NOTE_UPDATED, {
                "groupId": group_id,
                "lastEditedBy": {"userId": user.user_id, "displayName": user.display_name},
                "lastEditedAt": now,
            })
        return note

    async def get_history(self, group_id: str) -> List[NoteHistoryEntry]:
        """Most recent archive entries, newest first"""
        result = await run_query(
            self.supabase.table(NOTE_HISTORY_TABLE)
            .select("*")
            .eq("group_id", group_id)
            .order("archived_at", desc=True)
            .limit(settings.note_history_limit),
            "fetch note history",
        )
        return [NoteHistoryEntry(**row) for row in result.data or []]

    @staticmethod
    def to_response(row: Dict[str, Any]) -> NoteResponse:
        return NoteResponse(
            group_id=row["group_id"],
            content=row.get("content") or "",
            last_edited_by=row.get("last_edited_by"),
            last_edited_at=row.get("last_edited_at"),
        )
