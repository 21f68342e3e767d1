"""
MCN Admin Dashboard - Authentication Routes
===========================================
Registration (first account becomes admin), login, and current staff profile.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mcn_admin.core.database import get_db
from mcn_admin.core.logging import get_logger
from mcn_admin.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from mcn_admin.models.staff import TOP_ROLE, Staff, StaffRole
from mcn_admin.repositories.staff_repository import staff_repository
from mcn_admin.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    StaffProfile,
    TokenResponse,
)
from mcn_admin.services.audit_service import audit_service

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = get_logger("auth")
security = HTTPBearer(auto_error=False)


def _issue_token(staff: Staff) -> str:
    return create_access_token(
        data={
            "sub": str(staff.id),
            "email": staff.email,
            "role": StaffRole(staff.role).value,
            "name": staff.name,
        }
    )


# -- Dependency: current staff --
async def get_current_staff(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Staff:
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid token",
        )

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    try:
        staff_id = int(payload.get("sub", ""))
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
        )

    staff = await staff_repository.get(db, staff_id)
    if not staff or not staff.is_active or staff.is_deleted:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account not found or disabled",
        )
    return staff


# -- Register --
@router.post("/register", response_model=RegisterResponse)
async def register(payload: RegisterRequest, db: AsyncSession = Depends(get_db)):
    if await staff_repository.get_by_email(db, payload.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    first_user = await staff_repository.count(db) == 0
    role = TOP_ROLE if first_user else (payload.role or StaffRole.viewer)
    if role == StaffRole.deleted:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid role")

    try:
        staff = await staff_repository.create(
            db,
            email=payload.email,
            name=payload.name,
            hashed_password=hash_password(payload.password),
            role=role,
        )
        await audit_service.log_action(
            db,
            action="staff_registered",
            entity_type="staff",
            entity_id=staff.id,
            actor=staff,
            details={"role": role.value, "first_user": first_user},
        )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    logger.info("staff_registered", staff_id=staff.id, role=role.value, first_user=first_user)
    return RegisterResponse(token=_issue_token(staff), user=StaffProfile.model_validate(staff), first_user=first_user)


# -- Login --
@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    staff = await staff_repository.get_by_email(db, payload.email)
    if not staff or not verify_password(payload.password, staff.hashed_password):
        logger.warning("login_failed", email=payload.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    if not staff.is_active or staff.is_deleted:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account disabled",
        )

    logger.info("login_success", staff_id=staff.id, role=StaffRole(staff.role).value)
    return TokenResponse(token=_issue_token(staff), user=StaffProfile.model_validate(staff))


# -- Current staff --
@router.get("/me", response_model=StaffProfile)
async def get_me(current_staff: Staff = Depends(get_current_staff)):
    return StaffProfile.model_validate(current_staff)
