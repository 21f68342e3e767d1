from __future__ import annotations

from fastapi import Depends, HTTPException, status

from mcn_admin.api.routes.auth import get_current_staff
from mcn_admin.domain.metrics.visibility import CallerIdentity
from mcn_admin.models.staff import TOP_ROLE, Staff, StaffRole


def enforce_min_role(
    staff: Staff,
    minimum: StaffRole,
    *,
    message: str = "Forbidden",
) -> None:
    if not StaffRole(staff.role).at_least(minimum):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)


def require_role_at_least(minimum: StaffRole):
    async def _dependency(current_staff: Staff = Depends(get_current_staff)) -> Staff:
        enforce_min_role(current_staff, minimum)
        return current_staff

    return _dependency


require_admin = require_role_at_least(TOP_ROLE)


async def get_caller(current_staff: Staff = Depends(get_current_staff)) -> CallerIdentity:
    return CallerIdentity.from_staff(current_staff)
