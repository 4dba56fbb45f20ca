from pydantic import field_validator
from typing import Optional, List
from datetime import datetime

from app.core.schemas import CamelModel


class GroupCreate(CamelModel):
    name: str
    description: Optional[str] = ""

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Group name is required")
        if len(value) > 80:
            raise ValueError("Group name must be 80 characters or less")
        return value

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> str:
        value = (value or "").strip()
        if len(value) > 500:
            raise ValueError("Description must be 500 characters or less")
        return value


class GroupJoin(CamelModel):
    invite_code: str

    @field_validator("invite_code")
    @classmethod
    def validate_invite_code(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Invite code is required")
        return value


class GroupMemberResponse(CamelModel):
    user_id: str
    email: str
    display_name: str
    role: str
    joined_at: datetime


class GroupResponse(CamelModel):
    group_id: str
    name: str
    description: str = ""
    invite_code: str
    created_by: str
    members: List[GroupMemberResponse]
    created_at: datetime
    updated_at: Optional[datetime] = None
