from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.groups.schemas import GroupCreate, GroupJoin, GroupResponse, GroupMemberResponse
from app.modules.groups.service import GroupService
from app.core.dependencies import get_current_user
from app.core.schemas import StatusResponse
from app.core.security import SessionUser
from supabase import AsyncClient
from typing import List

router = APIRouter(prefix="/groups", tags=["groups"])


def get_group_service(supabase: AsyncClient = Depends(get_supabase)) -> GroupService:
    return GroupService(supabase)


@router.post("", response_model=GroupResponse, status_code=201)
async def create_group(
    group_data: GroupCreate,
    user: SessionUser = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Create a new group; the creator becomes its admin"""
    return await service.create_group(group_data, user)


@router.get("", response_model=List[GroupResponse])
async def list_groups(
    user: SessionUser = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """List the groups the caller belongs to"""
    return await service.list_groups(user.user_id)


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: str,
    user: SessionUser = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Get group by ID (only if the caller is a member)"""
    group = await service.get_group_for_member(group_id, user.user_id)
    return GroupService.to_response(group)


@router.post("/{group_id}/join", response_model=GroupResponse)
async def join_group(
    group_id: str,
    join_data: GroupJoin,
    user: SessionUser = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Join a group with its invite code (case-insensitive)"""
    return await service.join_group(group_id, join_data.invite_code, user)


@router.post("/{group_id}/leave", response_model=StatusResponse)
async def leave_group(
    group_id: str,
    user: SessionUser = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Leave a group; the group is deleted when its last member leaves"""
    deleted = await service.leave_group(group_id, user)
    if deleted:
        return StatusResponse(message="Successfully left the group. The group was deleted.")
    return StatusResponse(message="Successfully left the group.")


@router.get("/{group_id}/members", response_model=List[GroupMemberResponse])
async def list_members(
    group_id: str,
    user: SessionUser = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """List all members of a group (only if the caller is a member)"""
    group = await service.get_group_for_member(group_id, user.user_id)
    return GroupService.to_members(group)
