"""Tasks API Router - lists the tasks the caller is cleared for.

Task visibility is a strict clearance comparison: a task is listed when its
confidentiality level ranks at or below the caller's security clearance.
File-style ownership/assignment rules do not apply here.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from auth.dependencies import get_current_principal
from config import get_settings
from database import get_db
from domain.access.confidentiality import resolve_level
from domain.access.models import Principal
from domain.access.policy import filter_visible_tasks
from models.task import Task
from .schemas import TaskListResponse, TaskResponse


router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=TaskListResponse, summary="List visible tasks")
def list_tasks(
    department_id: Optional[UUID] = Query(None, description="Filter by department"),
    scope: str = Query("all", pattern="^(all|assigned|started)$", description="all, assigned to me, or started by me"),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> TaskListResponse:
    """List tasks visible to the caller, newest first.

    Tasks without a level are treated as internal; callers without a
    clearance are treated as DEFAULT_CLEARANCE (internal unless configured).
    """
    query = select(Task).order_by(Task.created_at.desc())
    if department_id is not None:
        query = query.where(Task.department_id == department_id)
    if scope == "assigned":
        query = query.where(Task.assigned_to == principal.id)
    elif scope == "started":
        query = query.where(Task.created_by == principal.id)
    tasks = db.execute(query).scalars().all()

    default_clearance = resolve_level(get_settings().DEFAULT_CLEARANCE)
    visible = filter_visible_tasks(principal, tasks, default_clearance)

    return TaskListResponse(
        items=[TaskResponse.model_validate(task) for task in visible],
        total=len(visible),
    )
