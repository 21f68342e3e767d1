"""Production task schemas."""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from mcn_admin.models.task import DEFAULT_PIPELINE_STAGE, DEFAULT_TASK_STATUS


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    channel_id: Optional[int] = None
    project_id: Optional[int] = None
    youtube_video_id: Optional[str] = Field(default=None, max_length=32)
    status: str = Field(default=DEFAULT_TASK_STATUS, min_length=1, max_length=32)
    pipeline_stage: str = Field(default=DEFAULT_PIPELINE_STAGE, min_length=1, max_length=64)
    assignee_id: Optional[int] = None
    due_date: Optional[date] = None
    checklist: list[Any] = Field(default_factory=list)


class TaskUpdate(BaseModel):
    """Only fields present in the body change; null is ignored for required columns."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    channel_id: Optional[int] = None
    project_id: Optional[int] = None
    youtube_video_id: Optional[str] = Field(default=None, max_length=32)
    status: Optional[str] = Field(default=None, min_length=1, max_length=32)
    pipeline_stage: Optional[str] = Field(default=None, min_length=1, max_length=64)
    assignee_id: Optional[int] = None
    due_date: Optional[date] = None
    checklist: Optional[list[Any]] = None


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    channel_id: Optional[int] = None
    project_id: Optional[int] = None
    youtube_video_id: Optional[str] = None
    status: str
    pipeline_stage: str
    assignee_id: Optional[int] = None
    due_date: Optional[date] = None
    checklist: list[Any] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TaskBoard(BaseModel):
    columns: dict[str, list[TaskResponse]] = Field(default_factory=dict)
