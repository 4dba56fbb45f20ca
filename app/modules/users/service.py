from supabase import AsyncClient
from app.database.supabase_client import run_query, first_row
from app.modules.users.schemas import UserResponse, UserProfileResponse
from app.core.utils import utc_now_iso
from typing import Any, Dict, List, Optional

USERS_TABLE = "users"


class UserService:
    def __init__(self, supabase: AsyncClient):
        self.supabase = supabase

    async def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = await run_query(
            self.supabase.table(USERS_TABLE).select("*").eq("id", user_id).limit(1),
            "fetch user",
        )
        return first_row(result)

    async def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        result = await run_query(
            self.supabase.table(USERS_TABLE).select("*").eq("email", email.lower()).limit(1),
            "fetch user by email",
        )
        return first_row(result)

    async def get_user_by_external_id(self, external_id: str) -> Optional[Dict[str, Any]]:
        result = await run_query(
            self.supabase.table(USERS_TABLE).select("*").eq("external_id", external_id).limit(1),
            "fetch user by external id",
        )
        return first_row(result)

    async def create_user(
        self,
        user_id: str,
        email: str,
        display_name: str,
        provider: str,
        password_hash: Optional[str] = None,
        external_id: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        now = utc_now_iso()
        row = {
            "id": user_id,
            "email": email.lower(),
            "display_name": display_name,
            "password_hash": password_hash,
            "external_id": external_id,
            "photo_url": photo_url,
            "provider": provider,
            "group_ids": [],
            "created_at": now,
            "updated_at": now,
        }
        result = await run_query(self.supabase.table(USERS_TABLE).insert(row), "create user")
        return first_row(result) or row

    async def update_user(self, user_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        update_data = {**fields, "updated_at": utc_now_iso()}
        result = await run_query(
            self.supabase.table(USERS_TABLE).update(update_data).eq("id", user_id),
            "update user",
        )
        return first_row(result)

    async def add_group(self, user_id: str, group_id: str) -> None:
        """Record membership on the user. Read-then-write: not atomic against concurrent updates."""
        user = await self.get_user_by_id(user_id)
        if user is None:
            return
        group_ids: List[str] = list(user.get("group_ids") or [])
        if group_id not in group_ids:
            group_ids.append(group_id)
            await self.update_user(user_id, {"group_ids": group_ids})

    async def remove_group(self, user_id: str, group_id: str) -> None:
        user = await self.get_user_by_id(user_id)
        if user is None:
            return
        group_ids = [g for g in (user.get("group_ids") or []) if g != group_id]
        await self.update_user(user_id, {"group_ids": group_ids})

    @staticmethod
    def to_response(user: Dict[str, Any]) -> UserResponse:
        return UserResponse(
            user_id=user["id"],
            email=user["email"],
            display_name=user["display_name"],
            provider=user["provider"],
            photo_url=user.get("photo_url"),
        )

    @staticmethod
    def to_profile(user: Dict[str, Any]) -> UserProfileResponse:
        return UserProfileResponse(
            user_id=user["id"],
            email=user["email"],
            display_name=user["display_name"],
            photo_url=user.get("photo_url"),
            provider=user["provider"],
            groups=user.get("group_ids") or [],
            created_at=user["created_at"],
        )
