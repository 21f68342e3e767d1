from __future__ import annotations

from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mcn_admin.core.logging import get_logger
from mcn_admin.core.request_context import get_request_id
from mcn_admin.models import ActionAuditLog, Staff

logger = get_logger("services.audit")


class AuditService:
    async def log_action(
        self,
        db: AsyncSession,
        *,
        action: str,
        entity_type: str,
        entity_id: str | int | None = None,
        actor: Staff | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Best-effort: a failed audit write is logged and never aborts the caller's change."""
        try:
            async with db.begin_nested():
                db.add(
                    ActionAuditLog(
                        action=action,
                        entity_type=entity_type,
                        entity_id=str(entity_id) if entity_id is not None else None,
                        details_json=details or {},
                        actor_user_id=actor.id if actor else None,
                        actor_email=actor.email if actor else None,
                        request_id=get_request_id() or None,
                    )
                )
                await db.flush()
        except SQLAlchemyError as exc:
            logger.warning(
                "audit_log_failed",
                action=action,
                entity_type=entity_type,
                error=str(exc.__class__.__name__),
            )


audit_service = AuditService()
