from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from mcn_admin.domain.metrics.visibility import ChannelVisibility
from mcn_admin.models import Task

EDITABLE_FIELDS = (
    "title",
    "channel_id",
    "project_id",
    "youtube_video_id",
    "status",
    "pipeline_stage",
    "assignee_id",
    "due_date",
    "checklist",
)


def scope_condition(visibility: ChannelVisibility, staff_id: int):
    """Non-admins see tasks on their visible channels plus tasks assigned to them."""
    if visibility.unrestricted:
        return None
    if visibility.channel_ids:
        return or_(Task.channel_id.in_(sorted(visibility.channel_ids)), Task.assignee_id == staff_id)
    return Task.assignee_id == staff_id


class TaskRepository:
    def _scoped(self, visibility: ChannelVisibility, staff_id: int) -> Select:
        stmt = select(Task)
        condition = scope_condition(visibility, staff_id)
        if condition is not None:
            stmt = stmt.where(condition)
        return stmt

    async def list_tasks(
        self,
        db: AsyncSession,
        *,
        visibility: ChannelVisibility,
        staff_id: int,
        status: Optional[str] = None,
        channel_id: Optional[int] = None,
        project_id: Optional[int] = None,
        assignee_id: Optional[int] = None,
    ) -> list[Task]:
        stmt = self._scoped(visibility, staff_id)
        if status:
            stmt = stmt.where(Task.status == status)
        if channel_id is not None:
            stmt = stmt.where(Task.channel_id == channel_id)
        if project_id is not None:
            stmt = stmt.where(Task.project_id == project_id)
        if assignee_id is not None:
            stmt = stmt.where(Task.assignee_id == assignee_id)
        # due date first with undated tasks last, newest first within a date
        stmt = stmt.order_by(
            Task.due_date.is_(None),
            Task.due_date.asc(),
            Task.created_at.desc(),
            Task.id.desc(),
        )
        rows = await db.execute(stmt)
        return list(rows.scalars().all())

    async def board(
        self,
        db: AsyncSession,
        *,
        visibility: ChannelVisibility,
        staff_id: int,
        channel_id: Optional[int] = None,
        project_id: Optional[int] = None,
    ) -> dict[str, list[Task]]:
        stmt = self._scoped(visibility, staff_id)
        if channel_id is not None:
            stmt = stmt.where(Task.channel_id == channel_id)
        if project_id is not None:
            stmt = stmt.where(Task.project_id == project_id)
        rows = await db.execute(stmt.order_by(Task.created_at.desc(), Task.id.desc()))

        columns: dict[str, list[Task]] = {}
        for task in rows.scalars().all():
            columns.setdefault(task.pipeline_stage or "Other", []).append(task)
        return columns

    async def get_visible(
        self,
        db: AsyncSession,
        task_id: int,
        *,
        visibility: ChannelVisibility,
        staff_id: int,
    ) -> Task | None:
        row = await db.execute(self._scoped(visibility, staff_id).where(Task.id == task_id))
        return row.scalar_one_or_none()

    async def create(self, db: AsyncSession, values: dict[str, Any]) -> Task:
        task = Task(**{key: values[key] for key in EDITABLE_FIELDS if key in values})
        db.add(task)
        await db.flush()
        await db.refresh(task)
        return task

    async def update(self, db: AsyncSession, task: Task, values: dict[str, Any]) -> Task:
        for key in EDITABLE_FIELDS:
            if key in values:
                setattr(task, key, values[key])
        await db.flush()
        await db.refresh(task)
        return task


task_repository = TaskRepository()
