"""
MCN Admin Dashboard - Action Audit Log
======================================
Records admin mutations (who changed which entity, and how).
"""

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, func

from mcn_admin.core.database import Base


class ActionAuditLog(Base):
    __tablename__ = "action_audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String(80), nullable=False, index=True)
    entity_type = Column(String(80), nullable=False, index=True)
    entity_id = Column(String(120), nullable=True)
    details_json = Column(JSON, nullable=True, default=dict)
    actor_user_id = Column(Integer, nullable=True, index=True)
    actor_email = Column(String(255), nullable=True)
    request_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    __table_args__ = (
        Index("ix_action_audit_entity_created", "entity_type", "entity_id", "created_at"),
    )
