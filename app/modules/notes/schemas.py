from pydantic import field_validator
from typing import Optional
from datetime import datetime

from app.config import settings
from app.core.schemas import CamelModel, UserSnapshot


class NoteSave(CamelModel):
    content: str

    @field_validator("content")
    @classmethod
    def validate_size(cls, value: str) -> str:
        # Bound the stored payload, not the character count
        if len(value.encode("utf-8")) > settings.note_max_content_length:
            raise ValueError(f"Note content must be at most {settings.note_max_content_length} bytes")
        return value


class NoteResponse(CamelModel):
    group_id: str
    content: str = ""
    last_edited_by: Optional[UserSnapshot] = None
    last_edited_at: Optional[datetime] = None


class NoteHistoryEntry(CamelModel):
    id: str
    content: str
    saved_by: Optional[UserSnapshot] = None
    saved_at: Optional[datetime] = None
    archived_at: datetime
