from fastapi import APIRouter, Depends, Response
from app.database.supabase_client import get_supabase
from app.modules.tasks.schemas import TaskCreate, TaskUpdate, TaskComplete, TaskResponse
from app.modules.tasks.service import TaskService
from app.core.dependencies import check_group_member
from app.core.security import SessionUser
from supabase import AsyncClient
from typing import List

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_task_service(supabase: AsyncClient = Depends(get_supabase)) -> TaskService:
    return TaskService(supabase)


@router.get("/{group_id}", response_model=List[TaskResponse])
async def list_tasks(
    group_id: str,
    user: SessionUser = Depends(check_group_member),
    service: TaskService = Depends(get_task_service)
):
    """List a group's tasks, oldest first"""
    return await service.list_tasks(group_id)


@router.post("/{group_id}", response_model=TaskResponse, status_code=201)
async def create_task(
    group_id: str,
    task_data: TaskCreate,
    user: SessionUser = Depends(check_group_member),
    service: TaskService = Depends(get_task_service)
):
    return await service.create_task(group_id, task_data, user)


@router.put("/{group_id}/{task_id}", response_model=TaskResponse)
async def update_task(
    group_id: str,
    task_id: str,
    task_data: TaskUpdate,
    user: SessionUser = Depends(check_group_member),
    service: TaskService = Depends(get_task_service)
):
    """Update only the fields present in the body"""
    return await service.update_task(group_id, task_id, task_data)


@router.delete("/{group_id}/{task_id}", status_code=204)
async def delete_task(
    group_id: str,
    task_id: str,
    user: SessionUser = Depends(check_group_member),
    service: TaskService = Depends(get_task_service)
):
    await service.delete_task(group_id, task_id, user)
    return Response(status_code=204)


@router.patch("/{group_id}/{task_id}/complete", response_model=TaskResponse)
async def complete_task(
    group_id: str,
    task_id: str,
    body: TaskComplete,
    user: SessionUser = Depends(check_group_member),
    service: TaskService = Depends(get_task_service)
):
    """Mark a task complete or incomplete; completion metadata follows the flag"""
    return await service.set_completed(group_id, task_id, body.completed, user)
