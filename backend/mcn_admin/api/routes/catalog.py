"""
MCN Admin Dashboard - Teams, Networks and Projects
==================================================
Any signed-in staff member can list the grouping dimensions; only admins
create, edit or delete them. Deletes are hard deletes: channels referencing a
removed team or network fall back to NULL, project links cascade.
Team membership is kept here too; members are listed by any signed-in staff.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mcn_admin.api.deps.rbac import require_admin
from mcn_admin.api.routes.auth import get_current_staff
from mcn_admin.api.routes.dashboard import invalidate_dashboard_cache
from mcn_admin.core.database import get_db
from mcn_admin.core.logging import get_logger
from mcn_admin.models import Channel, Network, Project, Staff, Team
from mcn_admin.repositories.catalog_repository import catalog_repository
from mcn_admin.repositories.staff_repository import staff_repository
from mcn_admin.schemas import SuccessMessage
from mcn_admin.schemas.catalog import (
    DimensionCreate,
    DimensionResponse,
    DimensionUpdate,
    ProjectChannelsUpdate,
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
    TeamMemberAdd,
)
from mcn_admin.schemas.channels import StaffListItem
from mcn_admin.services.audit_service import audit_service

logger = get_logger("api.catalog")

teams_router = APIRouter(prefix="/teams", tags=["Teams"])
networks_router = APIRouter(prefix="/networks", tags=["Networks"])
projects_router = APIRouter(prefix="/projects", tags=["Projects"])


def _clean(values: dict[str, Any]) -> dict[str, Any]:
    if isinstance(values.get("name"), str):
        values["name"] = values["name"].strip()
    return values


async def _create(db: AsyncSession, model, values: dict[str, Any], actor: Staff, entity_type: str):
    try:
        item = await catalog_repository.create(db, model, _clean(values))
        await audit_service.log_action(
            db, action=f"{entity_type}_created", entity_type=entity_type, entity_id=item.id, actor=actor
        )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"{entity_type.capitalize()} name already exists")
    logger.info(f"{entity_type}_created", item_id=item.id)
    return item


async def _update(db: AsyncSession, model, item_id: int, values: dict[str, Any], actor: Staff, entity_type: str):
    item = await catalog_repository.get(db, model, item_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{entity_type.capitalize()} not found")
    try:
        item = await catalog_repository.update(db, item, _clean(values))
        await audit_service.log_action(
            db,
            action=f"{entity_type}_updated",
            entity_type=entity_type,
            entity_id=item_id,
            actor=actor,
            details={k: str(v) if v is not None else None for k, v in values.items()},
        )
        await db.commit()
        await invalidate_dashboard_cache()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"{entity_type.capitalize()} name already exists")
    return item


async def _delete(db: AsyncSession, model, item_id: int, actor: Staff, entity_type: str) -> SuccessMessage:
    if not await catalog_repository.delete(db, model, item_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{entity_type.capitalize()} not found")
    await audit_service.log_action(
        db, action=f"{entity_type}_deleted", entity_type=entity_type, entity_id=item_id, actor=actor
    )
    await db.commit()
    await invalidate_dashboard_cache()
    logger.info(f"{entity_type}_deleted", item_id=item_id)
    return SuccessMessage()


# ── Teams ──

@teams_router.get("", response_model=list[DimensionResponse])
async def list_teams(
    _: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
):
    items = await catalog_repository.list_all(db, Team)
    return [DimensionResponse.model_validate(item) for item in items]


@teams_router.post("", response_model=DimensionResponse, status_code=status.HTTP_201_CREATED)
async def create_team(
    payload: DimensionCreate,
    current_staff: Staff = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    item = await _create(db, Team, payload.model_dump(), current_staff, "team")
    return DimensionResponse.model_validate(item)


@teams_router.put("/{team_id}", response_model=DimensionResponse)
async def update_team(
    team_id: int,
    payload: DimensionUpdate,
    current_staff: Staff = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    item = await _update(db, Team, team_id, payload.model_dump(exclude_unset=True), current_staff, "team")
    return DimensionResponse.model_validate(item)


@teams_router.delete("/{team_id}", response_model=SuccessMessage)
async def delete_team(
    team_id: int,
    current_staff: Staff = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await _delete(db, Team, team_id, current_staff, "team")


@teams_router.get("/{team_id}/members", response_model=list[StaffListItem])
async def list_team_members(
    team_id: int,
    _: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
):
    if not await catalog_repository.get(db, Team, team_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team not found")
    members = await catalog_repository.list_team_members(db, team_id)
    return [StaffListItem.model_validate(member) for member in members]


@teams_router.post("/{team_id}/members", response_model=SuccessMessage)
async def add_team_member(
    team_id: int,
    payload: TeamMemberAdd,
    current_staff: Staff = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    if not await catalog_repository.get(db, Team, team_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team not found")
    member = await staff_repository.get(db, payload.staff_id)
    if not member or member.is_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Staff not found")

    if await catalog_repository.add_team_member(db, team_id, payload.staff_id):
        await audit_service.log_action(
            db,
            action="team_member_added",
            entity_type="team",
            entity_id=team_id,
            actor=current_staff,
            details={"staff_id": payload.staff_id},
        )
    await db.commit()
    return SuccessMessage()


@teams_router.delete("/{team_id}/members/{staff_id}", response_model=SuccessMessage)
async def remove_team_member(
    team_id: int,
    staff_id: int,
    current_staff: Staff = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    if not await catalog_repository.remove_team_member(db, team_id, staff_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team member not found")
    await audit_service.log_action(
        db,
        action="team_member_removed",
        entity_type="team",
        entity_id=team_id,
        actor=current_staff,
        details={"staff_id": staff_id},
    )
    await db.commit()
    return SuccessMessage()


# ── Networks ──

@networks_router.get("", response_model=list[DimensionResponse])
async def list_networks(
    _: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
):
    items = await catalog_repository.list_all(db, Network, order_by_name=True)
    return [DimensionResponse.model_validate(item) for item in items]


@networks_router.post("", response_model=DimensionResponse, status_code=status.HTTP_201_CREATED)
async def create_network(
    payload: DimensionCreate,
    current_staff: Staff = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    item = await _create(db, Network, payload.model_dump(), current_staff, "network")
    return DimensionResponse.model_validate(item)


@networks_router.put("/{network_id}", response_model=DimensionResponse)
async def update_network(
    network_id: int,
    payload: DimensionUpdate,
    current_staff: Staff = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    item = await _update(db, Network, network_id, payload.model_dump(exclude_unset=True), current_staff, "network")
    return DimensionResponse.model_validate(item)


@networks_router.delete("/{network_id}", response_model=SuccessMessage)
async def delete_network(
    network_id: int,
    current_staff: Staff = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await _delete(db, Network, network_id, current_staff, "network")


# ── Projects ──

@projects_router.get("", response_model=list[ProjectResponse])
async def list_projects(
    _: Staff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
):
    items = await catalog_repository.list_all(db, Project)
    return [ProjectResponse.model_validate(item) for item in items]


@projects_router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    current_staff: Staff = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    item = await _create(db, Project, payload.model_dump(), current_staff, "project")
    return ProjectResponse.model_validate(item)


@projects_router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: int,
    payload: ProjectUpdate,
    current_staff: Staff = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    item = await _update(db, Project, project_id, payload.model_dump(exclude_unset=True), current_staff, "project")
    return ProjectResponse.model_validate(item)


@projects_router.put("/{project_id}/channels", response_model=list[int])
async def set_project_channels(
    project_id: int,
    payload: ProjectChannelsUpdate,
    current_staff: Staff = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    if not await catalog_repository.get(db, Project, project_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    requested = set(payload.channel_ids)
    if requested:
        found = await db.execute(select(Channel.id).where(Channel.id.in_(sorted(requested))))
        missing = requested - set(found.scalars().all())
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"unknown_channel_ids": sorted(missing)},
            )

    channel_ids = await catalog_repository.set_project_channels(db, project_id, sorted(requested))
    await audit_service.log_action(
        db,
        action="project_channels_set",
        entity_type="project",
        entity_id=project_id,
        actor=current_staff,
        details={"channel_ids": channel_ids},
    )
    await db.commit()
    await invalidate_dashboard_cache()
    return channel_ids


@projects_router.delete("/{project_id}", response_model=SuccessMessage)
async def delete_project(
    project_id: int,
    current_staff: Staff = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await _delete(db, Project, project_id, current_staff, "project")
