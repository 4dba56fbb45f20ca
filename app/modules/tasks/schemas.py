from pydantic import field_validator
from typing import Optional
from datetime import datetime

from app.core.schemas import CamelModel, UserSnapshot
from app.modules.tasks.models import TITLE_MAX_LENGTH, DESCRIPTION_MAX_LENGTH


class TaskFields(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    assignee: Optional[UserSnapshot] = None
    due_date: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: Optional[str]) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError("Task title is required")
        if len(value) > TITLE_MAX_LENGTH:
            raise ValueError(f"Title must be {TITLE_MAX_LENGTH} characters or less")
        return value

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> str:
        value = (value or "").strip()
        if len(value) > DESCRIPTION_MAX_LENGTH:
            raise ValueError(f"Description must be {DESCRIPTION_MAX_LENGTH} characters or less")
        return value

    @field_validator("due_date")
    @classmethod
    def validate_due_date(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        try:
            datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError("dueDate must be a valid ISO 8601 date")
        return value


class TaskCreate(TaskFields):
    title: str
    description: Optional[str] = ""


class TaskUpdate(TaskFields):
    """Partial update: fields absent from the body stay untouched, explicit null clears assignee/dueDate"""


class TaskComplete(CamelModel):
    completed: bool


class TaskResponse(CamelModel):
    task_id: str
    group_id: str
    title: str
    description: str = ""
    assignee: Optional[UserSnapshot] = None
    due_date: Optional[str] = None
    completed: bool = False
    completed_at: Optional[datetime] = None
    completed_by: Optional[UserSnapshot] = None
    created_by: UserSnapshot
    created_at: datetime
    updated_at: datetime
