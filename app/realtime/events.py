"""
Real-time event names and client payloads.

Frames are JSON text in both directions: {"event": <name>, "data": {...}}.
"""

from pydantic import field_validator

from app.core.schemas import CamelModel
from app.modules.chat.schemas import MessageCreate

# Client -> server
JOIN_GROUP = "join_group"
LEAVE_GROUP = "leave_group"
SEND_MESSAGE = "send_message"
TYPING = "typing"
STOP_TYPING = "stop_typing"

# Server -> client
AUTHENTICATED = "authenticated"
AUTH_ERROR = "auth_error"
NEW_MESSAGE = "new_message"
MESSAGE_DELETED = "message_deleted"
NOTE_UPDATED = "note_updated"
USER_JOINED = "user_joined"
USER_LEFT = "user_left"
ONLINE_USERS = "online_users"
ERROR = "error"

# Close code sent after a failed handshake
AUTH_FAILED_CLOSE_CODE = 4401


class GroupEvent(CamelModel):
    group_id: str

    @field_validator("group_id")
    @classmethod
    def require_group_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("groupId is required.")
        return value


class SendMessageEvent(MessageCreate, GroupEvent):
    pass
