import hmac
import logging
import uuid
from supabase import AsyncClient
from app.modules.groups.models import ROLE_ADMIN, ROLE_MEMBER, INVITE_CODE_LENGTH, GROUP_FETCH_CHUNK_SIZE
from app.modules.groups.schemas import GroupCreate, GroupResponse, GroupMemberResponse
from app.modules.users.service import UserService
from app.database.supabase_client import run_query, first_row
from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ServerError, ValidationError
from app.core.security import SessionUser
from app.core.utils import chunked, new_id, utc_now_iso
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

GROUPS_TABLE = "groups"


def generate_invite_code() -> str:
    return uuid.uuid4().hex[:INVITE_CODE_LENGTH].upper()


def invite_codes_match(expected: str, supplied: str) -> bool:
    return hmac.compare_digest(expected.upper().encode("utf-8"), supplied.strip().upper().encode("utf-8"))


def find_member(group: Dict[str, Any], user_id: str) -> Optional[Dict[str, Any]]:
    for member in group.get("members") or []:
        if member.get("user_id") == user_id:
            return member
    return None


class GroupService:
    def __init__(self, supabase: AsyncClient):
        self.supabase = supabase
        self.users = UserService(supabase)

    async def get_group(self, group_id: str) -> Optional[Dict[str, Any]]:
        result = await run_query(
            self.supabase.table(GROUPS_TABLE).select("*").eq("id", group_id).limit(1),
            "fetch group",
        )
        return first_row(result)

    async def get_group_for_member(self, group_id: str, user_id: str) -> Dict[str, Any]:
        """Membership gate shared by every group-scoped operation."""
        group = await self.get_group(group_id)
        if group is None:
            raise NotFoundError("Group not found.")
        if find_member(group, user_id) is None:
            raise ForbiddenError("You are not a member of this group.")
        return group

    async def create_group(self, group_data: GroupCreate, user: SessionUser) -> GroupResponse:
        """Create a group with the creator as its only admin"""
        now = utc_now_iso()
        row = {
            "id": new_id(),
            "name": group_data.name,
            "description": group_data.description or "",
            "invite_code": generate_invite_code(),
            "created_by": user.user_id,
            "members": [{
                "user_id": user.user_id,
                "email": user.email,
                "display_name": user.display_name,
                "role": ROLE_ADMIN,
                "joined_at": now,
            }],
            "created_at": now,
            "updated_at": now,
        }
        result = await run_query(self.supabase.table(GROUPS_TABLE).insert(row), "create group")
        group = first_row(result)
        if group is None:
            raise ServerError()

        await self.users.add_group(user.user_id, group["id"])
        logger.info(f"User {user.user_id} created group {group['id']}")
        return self.to_response(group)

    async def list_groups(self, user_id: str) -> List[GroupResponse]:
        """Groups recorded on the user's profile, fetched in id chunks"""
        user = await self.users.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found.")
        group_ids: List[str] = user.get("group_ids") or []
        groups: List[GroupResponse] = []
        for chunk in chunked(group_ids, GROUP_FETCH_CHUNK_SIZE):
            result = await run_query(
                self.supabase.table(GROUPS_TABLE).select("*").in_("id", chunk),
                "list groups",
            )
            groups.extend(self.to_response(group) for group in result.data or [])
        return groups

    async def join_group(self, group_id: str, invite_code: str, user: SessionUser) -> GroupResponse:
        """Self-enroll with the invite code. Duplicate check and write are not atomic."""
        group = await self.get_group(group_id)
        if group is None:
            raise NotFoundError("Group not found.")
        if not invite_codes_match(group["invite_code"], invite_code):
            raise ValidationError.for_field("inviteCode", "Invalid invite code.")
        if find_member(group, user.user_id) is not None:
            raise ConflictError("You are already a member of this group.")

        members = list(group.get("members") or [])
        members.append({
            "user_id": user.user_id,
            "email": user.email,
            "display_name": user.display_name,
            "role": ROLE_MEMBER,
            "joined_at": utc_now_iso(),
        })
        updated = await self._save_members(group_id, members)
        await self.users.add_group(user.user_id, group_id)
        logger.info(f"User {user.user_id} joined group {group_id}")
        return self.to_response(updated or {**group, "members": members})

    async def leave_group(self, group_id: str, user: SessionUser) -> bool:
        """Remove the caller. Returns True when the group was deleted because it became empty."""
        group = await self.get_group(group_id)
        if group is None:
            raise NotFoundError("Group not found.")
        leaving = find_member(group, user.user_id)
        if leaving is None:
            raise ForbiddenError("You are not a member of this group.")

        remaining = [dict(m) for m in group.get("members") or [] if m.get("user_id") != user.user_id]
        deleted = False
        if not remaining:
            await run_query(self.supabase.table(GROUPS_TABLE).delete().eq("id", group_id), "delete group")
            deleted = True
            logger.info(f"Group {group_id} deleted after its last member left")
        else:
            if not any(m.get("role") == ROLE_ADMIN for m in remaining):
                remaining[0]["role"] = ROLE_ADMIN
                logger.info(f"Promoted {remaining[0].get('user_id')} to admin of group {group_id}")
            await self._save_members(group_id, remaining)

        await self.users.remove_group(user.user_id, group_id)
        return deleted

    async def _save_members(self, group_id: str, members: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        result = await run_query(
            self.supabase.table(GROUPS_TABLE)
            .update({"members": members, "updated_at": utc_now_iso()})
            .eq("id", group_id),
            "update group members",
        )
        return first_row(result)

    @staticmethod
    def to_members(group: Dict[str, Any]) -> List[GroupMemberResponse]:
        return [GroupMemberResponse(**member) for member in group.get("members") or []]

    @classmethod
    def to_response(cls, group: Dict[str, Any]) -> GroupResponse:
        return GroupResponse(
            group_id=group["id"],
            name=group["name"],
            description=group.get("description") or "",
            invite_code=group["invite_code"],
            created_by=group["created_by"],
            members=cls.to_members(group),
            created_at=group["created_at"],
            updated_at=group.get("updated_at"),
        )
