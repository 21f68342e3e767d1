from __future__ import annotations

from typing import Any, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from mcn_admin.models import Network, Project, ProjectChannel, Staff, StaffRole, Team, TeamMember

DimensionModel = TypeVar("DimensionModel", Team, Network, Project)


class CatalogRepository:
    """CRUD for the grouping dimensions (teams, networks, projects)."""

    async def list_all(self, db: AsyncSession, model: type[DimensionModel], *, order_by_name: bool = False) -> list[DimensionModel]:
        order = model.name.asc() if order_by_name else model.id.desc()
        rows = await db.execute(select(model).order_by(order))
        return list(rows.scalars().all())

    async def get(self, db: AsyncSession, model: type[DimensionModel], item_id: int) -> DimensionModel | None:
        row = await db.execute(select(model).where(model.id == item_id))
        return row.scalar_one_or_none()

    async def create(self, db: AsyncSession, model: type[DimensionModel], values: dict[str, Any]) -> DimensionModel:
        item = model(**values)
        db.add(item)
        await db.flush()
        await db.refresh(item)
        return item

    async def update(self, db: AsyncSession, item: DimensionModel, values: dict[str, Any]) -> DimensionModel:
        for key, value in values.items():
            setattr(item, key, value)
        await db.flush()
        await db.refresh(item)
        return item

    async def delete(self, db: AsyncSession, model: type[DimensionModel], item_id: int) -> int:
        result = await db.execute(delete(model).where(model.id == item_id))
        return result.rowcount or 0

    async def set_project_channels(self, db: AsyncSession, project_id: int, channel_ids: list[int]) -> list[int]:
        await db.execute(delete(ProjectChannel).where(ProjectChannel.project_id == project_id))
        unique_ids = sorted(set(channel_ids))
        for channel_id in unique_ids:
            db.add(ProjectChannel(project_id=project_id, channel_id=channel_id))
        await db.flush()
        return unique_ids

    async def list_team_members(self, db: AsyncSession, team_id: int) -> list[Staff]:
        rows = await db.execute(
            select(Staff)
            .join(TeamMember, TeamMember.staff_id == Staff.id)
            .where(TeamMember.team_id == team_id, Staff.role != StaffRole.deleted)
            .order_by(Staff.name.asc(), Staff.id.asc())
        )
        return list(rows.scalars().all())

    async def add_team_member(self, db: AsyncSession, team_id: int, staff_id: int) -> bool:
        """Idempotent. Returns False when the staff member was already on the team."""
        existing = await db.execute(
            select(TeamMember.id).where(TeamMember.team_id == team_id, TeamMember.staff_id == staff_id)
        )
        if existing.scalar_one_or_none() is not None:
            return False
        db.add(TeamMember(team_id=team_id, staff_id=staff_id))
        await db.flush()
        return True

    async def remove_team_member(self, db: AsyncSession, team_id: int, staff_id: int) -> int:
        result = await db.execute(
            delete(TeamMember).where(TeamMember.team_id == team_id, TeamMember.staff_id == staff_id)
        )
        return result.rowcount or 0


catalog_repository = CatalogRepository()
