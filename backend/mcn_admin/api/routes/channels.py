"""
MCN Admin Dashboard - Channel Administration
============================================
Channel listing (visibility-scoped), metadata edits, staff assignment and
soft deletion. Metrics history of a deleted channel is kept.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mcn_admin.api.deps.rbac import get_caller, require_admin
from mcn_admin.api.routes.dashboard import invalidate_dashboard_cache
from mcn_admin.core.database import get_db
from mcn_admin.core.logging import get_logger
from mcn_admin.domain.metrics.visibility import CallerIdentity, resolve_visibility
from mcn_admin.models.staff import Staff
from mcn_admin.repositories.channel_repository import channel_repository
from mcn_admin.repositories.staff_repository import staff_repository
from mcn_admin.schemas import SuccessMessage
from mcn_admin.schemas.channels import (
    ChannelAssignRequest,
    ChannelListItem,
    ChannelResponse,
    ChannelUpdateRequest,
)
from mcn_admin.services.audit_service import audit_service

logger = get_logger("api.channels")
router = APIRouter(prefix="/channels", tags=["Channels"])


@router.get("", response_model=list[ChannelListItem])
async def list_channels(
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    visibility = await resolve_visibility(db, caller)
    rows = await channel_repository.list_visible(db, visibility)
    return [ChannelListItem(**row) for row in rows]


@router.put("/{channel_id}", response_model=ChannelResponse)
async def update_channel(
    channel_id: int,
    payload: ChannelUpdateRequest,
    current_staff: Staff = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    channel = await channel_repository.get(db, channel_id)
    if not channel:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Channel not found")

    values = payload.model_dump(exclude_unset=True)
    manager_set = "manager_id" in values
    manager_id = values.pop("manager_id", None)
    if manager_set and manager_id is not None:
        manager = await staff_repository.get(db, manager_id)
        if not manager or manager.is_deleted:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown manager")

    try:
        channel = await channel_repository.update(db, channel, values)
        if manager_set:
            await channel_repository.set_manager(db, channel_id, manager_id)
        await audit_service.log_action(
            db,
            action="channel_updated",
            entity_type="channel",
            entity_id=channel_id,
            actor=current_staff,
            details={
                **{k: (v.value if hasattr(v, "value") else v) for k, v in values.items()},
                **({"manager_id": manager_id} if manager_set else {}),
            },
        )
        await db.commit()
        await invalidate_dashboard_cache()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid team, network or manager reference")

    logger.info("channel_updated", channel_id=channel_id, manager_changed=manager_set)
    return ChannelResponse.model_validate(channel)


@router.post("/assign", response_model=SuccessMessage)
async def assign_channel(
    payload: ChannelAssignRequest,
    current_staff: Staff = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    if not await channel_repository.get(db, payload.channel_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Channel not found")
    staff = await staff_repository.get(db, payload.staff_id)
    if not staff or staff.is_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Staff not found")

    changed = await channel_repository.assign(
        db,
        staff_id=payload.staff_id,
        channel_id=payload.channel_id,
        role=payload.role.value,
    )
    if changed:
        await audit_service.log_action(
            db,
            action="channel_assigned",
            entity_type="channel",
            entity_id=payload.channel_id,
            actor=current_staff,
            details={"staff_id": payload.staff_id, "role": payload.role.value},
        )
    await db.commit()
    await invalidate_dashboard_cache()
    return SuccessMessage()


@router.delete("/assign", response_model=SuccessMessage)
async def unassign_channel(
    payload: ChannelAssignRequest,
    current_staff: Staff = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    removed = await channel_repository.unassign(
        db,
        staff_id=payload.staff_id,
        channel_id=payload.channel_id,
        role=payload.role.value,
    )
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    await audit_service.log_action(
        db,
        action="channel_unassigned",
        entity_type="channel",
        entity_id=payload.channel_id,
        actor=current_staff,
        details={"staff_id": payload.staff_id, "role": payload.role.value},
    )
    await db.commit()
    await invalidate_dashboard_cache()
    return SuccessMessage()


@router.delete("/{channel_id}", response_model=SuccessMessage)
async def delete_channel(
    channel_id: int,
    current_staff: Staff = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    if not await channel_repository.soft_delete(db, channel_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Channel not found")
    await audit_service.log_action(
        db,
        action="channel_deleted",
        entity_type="channel",
        entity_id=channel_id,
        actor=current_staff,
    )
    await db.commit()
    await invalidate_dashboard_cache()
    logger.info("channel_soft_deleted", channel_id=channel_id)
    return SuccessMessage()
