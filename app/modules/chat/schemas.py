from pydantic import field_validator
from datetime import datetime

from app.core.schemas import CamelModel
from app.modules.chat.models import MESSAGE_MAX_LENGTH


class MessageCreate(CamelModel):
    text: str

    @field_validator("text")
    @classmethod
    def validate_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message text cannot be empty")
        if len(value) > MESSAGE_MAX_LENGTH:
            raise ValueError(f"Message must be {MESSAGE_MAX_LENGTH} characters or less")
        return value


class ChatMessageResponse(CamelModel):
    message_id: str
    group_id: str
    sender_id: str
    sender_email: str
    sender_name: str
    text: str
    created_at: datetime
    updated_at: datetime
