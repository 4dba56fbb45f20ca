import logging
from supabase import AsyncClient
from app.modules.tasks.schemas import TaskCreate, TaskUpdate, TaskResponse
from app.database.supabase_client import run_query, first_row
from app.core.exceptions import NotFoundError, ValidationError
from app.core.security import SessionUser
from app.core.utils import new_id, utc_now_iso
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

TASKS_TABLE = "tasks"


class TaskService:
    """Group task board. Callers check membership; any member may change any task."""

    def __init__(self, supabase: AsyncClient):
        self.supabase = supabase

    async def list_tasks(self, group_id: str) -> List[TaskResponse]:
        result = await run_query(
            self.supabase.table(TASKS_TABLE)
            .select("*")
            .eq("group_id", group_id)
            .order("created_at", desc=False),
            "fetch tasks",
        )
        return [self.to_response(row) for row in result.data or []]

    async def create_task(self, group_id: str, task_data: TaskCreate, user: SessionUser) -> TaskResponse:
        now = utc_now_iso()
        row = {
            "id": new_id(),
            "group_id": group_id,
            "title": task_data.title,
            "description": task_data.description or "",
            "assignee": task_data.assignee.model_dump() if task_data.assignee else None,
            "due_date": task_data.due_date,
            "completed": False,
            "completed_at": None,
            "completed_by": None,
            "created_by": {"user_id": user.user_id, "display_name": user.display_name},
            "created_at": now,
            "updated_at": now,
        }
        result = await run_query(self.supabase.table(TASKS_TABLE).insert(row), "create task")
        logger.info(f"User {user.user_id} created task {row['id']} in group {group_id}")
        return self.to_response(first_row(result) or row)

    async def _get_task_in_group(self, group_id: str, task_id: str) -> Dict[str, Any]:
        """Fetch a task and make sure it belongs to the group in the path"""
        result = await run_query(
            self.supabase.table(TASKS_TABLE).select("*").eq("id", task_id).limit(1),
            "fetch task",
        )
        task = first_row(result)
        if task is None:
            raise NotFoundError("Task not found.")
        if task["group_id"] != group_id:
            raise ValidationError("Task does not belong to this group.")
        return task

    async def _apply(self, task: Dict[str, Any], updates: Dict[str, Any], action: str) -> TaskResponse:
        updates["updated_at"] = utc_now_iso()
        result = await run_query(
            self.supabase.table(TASKS_TABLE).update(updates).eq("id", task["id"]),
            action,
        )
        return self.to_response(first_row(result) or {**task, **updates})

    async def update_task(self, group_id: str, task_id: str, task_data: TaskUpdate) -> TaskResponse:
        task = await self._get_task_in_group(group_id, task_id)
        # Only what the client actually sent; explicit nulls are kept so they clear the field
        updates = task_data.model_dump(exclude_unset=True)
        return await self._apply(task, updates, "update task")

    async def delete_task(self, group_id: str, task_id: str, user: SessionUser) -> None:
        await self._get_task_in_group(group_id, task_id)
        await run_query(self.supabase.table(TASKS_TABLE).delete().eq("id", task_id), "delete task")
        logger.info(f"User {user.user_id} deleted task {task_id} in group {group_id}")

    async def set_completed(self, group_id: str, task_id: str, completed: bool, user: SessionUser) -> TaskResponse:
        """completed, completed_at and completed_by always change together"""
        task = await self._get_task_in_group(group_id, task_id)
        updates = {
            "completed": completed,
            "completed_at": utc_now_iso() if completed else None,
            "completed_by": {"user_id": user.user_id, "display_name": user.display_name} if completed else None,
        }
        return await self._apply(task, updates, "complete task")

    @staticmethod
    def to_response(row: Dict[str, Any]) -> TaskResponse:
        return TaskResponse(
            task_id=row["id"],
            group_id=row["group_id"],
            title=row["title"],
            description=row.get("description") or "",
            assignee=row.get("assignee"),
            due_date=row.get("due_date"),
            completed=bool(row.get("completed")),
            completed_at=row.get("completed_at"),
            completed_by=row.get("completed_by"),
            created_by=row["created_by"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
