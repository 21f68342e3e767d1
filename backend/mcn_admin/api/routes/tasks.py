"""
MCN Admin Dashboard - Production Tasks
======================================
Task list with filters, a pipeline board grouped by stage, creation and
partial updates. Admins see every task; everyone else sees tasks on the
channels visible to them plus tasks assigned to them.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mcn_admin.api.routes.auth import get_current_staff
from mcn_admin.core.database import get_db
from mcn_admin.core.logging import get_logger
from mcn_admin.domain.metrics.filters import parse_int
from mcn_admin.domain.metrics.visibility import CallerIdentity, ChannelVisibility, resolve_visibility
from mcn_admin.models import Project, Staff
from mcn_admin.repositories.catalog_repository import catalog_repository
from mcn_admin.repositories.channel_repository import channel_repository
from mcn_admin.repositories.staff_repository import staff_repository
from mcn_admin.repositories.task_repository import task_repository
from mcn_admin.schemas.tasks import TaskBoard, TaskCreate, TaskResponse, TaskUpdate
from mcn_admin.services.audit_service import audit_service

logger = get_logger("api.tasks")
router = APIRouter(prefix="/tasks", tags=["Tasks"])

_REQUIRED_FIELDS = ("title", "status", "pipeline_stage", "checklist")


async def _caller_scope(db: AsyncSession, staff: Staff) -> tuple[CallerIdentity, ChannelVisibility]:
    caller = CallerIdentity.from_staff(staff)
    return caller, await resolve_visibility(db, caller)


async def _check_references(
    db: AsyncSession,
    values: dict[str, Any],
    visibility: ChannelVisibility,
) -> None:
    channel_id = values.get("channel_id")
    if channel_id is not None:
        if not visibility.unrestricted and channel_id not in visibility.channel_ids:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot use this channel")
        if not await channel_repository.get(db, channel_id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown channel")

    project_id = values.get("project_id")
    if project_id is not None and not await catalog_repository.get(db, Project, project_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown project")

    assignee_id = values.get("assignee_id")
    if assignee_id is not None:
        assignee = await staff_repository.get(db, assignee_id)
        if not assignee or assignee.is_deleted:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown assignee")


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    task_status: Optional[str] = Query(None, alias="status"),
    channel_id: Optional[str] = Query(None, alias="channelId"),
    project_id: Optional[str] = Query(None, alias="projectId"),
    assignee_id: Optional[str] = Query(None, alias="assigneeId"),
    current_staff: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
):
    caller, visibility = await _caller_scope(db, current_staff)
    tasks = await task_repository.list_tasks(
        db,
        visibility=visibility,
        staff_id=caller.id,
        status=(task_status or "").strip() or None,
        channel_id=parse_int(channel_id),
        project_id=parse_int(project_id),
        assignee_id=parse_int(assignee_id),
    )
    return [TaskResponse.model_validate(task) for task in tasks]


@router.get("/board", response_model=TaskBoard)
async def get_board(
    channel_id: Optional[str] = Query(None, alias="channelId"),
    project_id: Optional[str] = Query(None, alias="projectId"),
    current_staff: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
):
    caller, visibility = await _caller_scope(db, current_staff)
    columns = await task_repository.board(
        db,
        visibility=visibility,
        staff_id=caller.id,
        channel_id=parse_int(channel_id),
        project_id=parse_int(project_id),
    )
    return TaskBoard(
        columns={stage: [TaskResponse.model_validate(task) for task in tasks] for stage, tasks in columns.items()}
    )


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: TaskCreate,
    current_staff: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
):
    _, visibility = await _caller_scope(db, current_staff)
    values = payload.model_dump()
    values["title"] = values["title"].strip()
    await _check_references(db, values, visibility)

    try:
        task = await task_repository.create(db, values)
        await audit_service.log_action(
            db,
            action="task_created",
            entity_type="task",
            entity_id=task.id,
            actor=current_staff,
            details={"channel_id": task.channel_id, "project_id": task.project_id},
        )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid task reference")

    logger.info("task_created", task_id=task.id, staff_id=current_staff.id)
    return TaskResponse.model_validate(task)


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    payload: TaskUpdate,
    current_staff: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
):
    caller, visibility = await _caller_scope(db, current_staff)
    task = await task_repository.get_visible(db, task_id, visibility=visibility, staff_id=caller.id)
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")

    values = payload.model_dump(exclude_unset=True)
    for key in _REQUIRED_FIELDS:
        if key in values and values[key] is None:
            values.pop(key)
    await _check_references(db, values, visibility)

    try:
        task = await task_repository.update(db, task, values)
        await audit_service.log_action(
            db,
            action="task_updated",
            entity_type="task",
            entity_id=task_id,
            actor=current_staff,
            details={key: str(value) if value is not None else None for key, value in values.items()},
        )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid task reference")

    return TaskResponse.model_validate(task)
