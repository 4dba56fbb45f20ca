from typing import List, Optional
from datetime import datetime

from app.core.schemas import CamelModel


class UserResponse(CamelModel):
    user_id: str
    email: str
    display_name: str
    provider: str
    photo_url: Optional[str] = None


class UserProfileResponse(CamelModel):
    user_id: str
    email: str
    display_name: str
    photo_url: Optional[str] = None
    provider: str
    groups: List[str] = []
    created_at: datetime
