"""
MCN Admin Dashboard - Staff Administration
==========================================
Admin-only listing, role changes and soft deletion of staff accounts.
A deleted account keeps its row (role='deleted') but loses every channel
association.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from mcn_admin.api.deps.rbac import require_admin
from mcn_admin.api.routes.dashboard import invalidate_dashboard_cache
from mcn_admin.core.database import get_db
from mcn_admin.core.logging import get_logger
from mcn_admin.models.staff import Staff, StaffRole
from mcn_admin.repositories.staff_repository import staff_repository
from mcn_admin.schemas import SuccessMessage
from mcn_admin.schemas.channels import StaffListItem, StaffRoleUpdate
from mcn_admin.services.audit_service import audit_service

logger = get_logger("api.staff")
router = APIRouter(prefix="/staff", tags=["Staff"])


@router.get("", response_model=list[StaffListItem])
async def list_staff(
    _: Staff = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    members = await staff_repository.list_active(db)
    return [StaffListItem.model_validate(member) for member in members]


@router.put("/{staff_id}/role", response_model=StaffListItem)
async def update_staff_role(
    staff_id: int,
    payload: StaffRoleUpdate,
    current_staff: Staff = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    if payload.role == StaffRole.deleted:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Use DELETE to remove staff")

    member = await staff_repository.get(db, staff_id)
    if not member or member.is_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Staff not found")

    previous = StaffRole(member.role)
    member.role = payload.role
    await audit_service.log_action(
        db,
        action="staff_role_changed",
        entity_type="staff",
        entity_id=staff_id,
        actor=current_staff,
        details={"from": previous.value, "to": payload.role.value},
    )
    await db.commit()
    await invalidate_dashboard_cache()
    logger.info("staff_role_changed", staff_id=staff_id, role=payload.role.value)
    return StaffListItem.model_validate(member)


@router.delete("/{staff_id}", response_model=SuccessMessage)
async def delete_staff(
    staff_id: int,
    current_staff: Staff = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    if staff_id == current_staff.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete your own account")

    try:
        updated = await staff_repository.soft_delete(db, staff_id)
        if not updated:
            await db.rollback()
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Staff not found")
        await audit_service.log_action(
            db,
            action="staff_deleted",
            entity_type="staff",
            entity_id=staff_id,
            actor=current_staff,
        )
        await db.commit()
        await invalidate_dashboard_cache()
    except HTTPException:
        raise
    except Exception:
        await db.rollback()
        raise

    logger.info("staff_soft_deleted", staff_id=staff_id)
    return SuccessMessage()
