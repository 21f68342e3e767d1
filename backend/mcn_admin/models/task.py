"""
MCN Admin Dashboard - Production Tasks
======================================
Video production tasks tracked per channel/project, shown as a list and as a
pipeline board grouped by stage.
"""

from sqlalchemy import JSON, Column, Date, DateTime, ForeignKey, Integer, String, func

from mcn_admin.core.database import Base

DEFAULT_TASK_STATUS = "idea"
DEFAULT_PIPELINE_STAGE = "Idea"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    channel_id = Column(Integer, ForeignKey("channels.id", ondelete="SET NULL"), nullable=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    youtube_video_id = Column(String(32), nullable=True)
    status = Column(String(32), nullable=False, default=DEFAULT_TASK_STATUS, index=True)
    pipeline_stage = Column(String(64), nullable=False, default=DEFAULT_PIPELINE_STAGE)
    assignee_id = Column(Integer, ForeignKey("staff_users.id", ondelete="SET NULL"), nullable=True, index=True)
    due_date = Column(Date, nullable=True)
    checklist = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Task {self.id} {self.pipeline_stage}/{self.status}>"
