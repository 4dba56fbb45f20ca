"""
Core dependencies for route protection and membership checking
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase
from app.core.exceptions import AuthError
from app.core.security import SessionUser, decode_session_token
from app.modules.groups.service import GroupService
from app.realtime.registry import RoomRegistry
from supabase import AsyncClient
from typing import Optional
import logging

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is answered with our 401 instead of FastAPI's default
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> SessionUser:
    """Decode the bearer session token and expose the caller's identity"""
    if credentials is None or not credentials.credentials:
        raise AuthError("Access denied. No token provided.")
    return decode_session_token(credentials.credentials)


async def check_group_member(
    group_id: str,
    user: SessionUser = Depends(get_current_user),
    supabase: AsyncClient = Depends(get_supabase),
) -> SessionUser:
    """Require the caller to be a member of the group in the path (404 if absent, 403 if not a member)"""
    await GroupService(supabase).get_group_for_member(group_id, user.user_id)
    return user


def get_room_registry(request: Request) -> RoomRegistry:
    """Room registry owned by the application lifecycle (created at startup)"""
    return request.app.state.rooms
