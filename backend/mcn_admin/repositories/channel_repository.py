from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mcn_admin.domain.metrics.visibility import ChannelVisibility
from mcn_admin.models import (
    Channel,
    ChannelStaffRole,
    ChannelStatus,
    Network,
    Staff,
    StaffChannel,
    Team,
)

MANAGER = ChannelStaffRole.manager.value


class ChannelRepository:
    async def list_visible(self, db: AsyncSession, visibility: ChannelVisibility) -> list[dict[str, Any]]:
        if visibility.is_empty:
            return []
        manager = (
            select(
                StaffChannel.channel_id.label("channel_id"),
                func.min(StaffChannel.staff_id).label("staff_id"),
            )
            .where(StaffChannel.role == MANAGER)
            .group_by(StaffChannel.channel_id)
            .subquery("manager")
        )
        rows = await db.execute(
            select(
                Channel.id,
                Channel.name,
                Channel.youtube_channel_id,
                Channel.network_id,
                Channel.team_id,
                Network.name.label("network_name"),
                Team.name.label("team_name"),
                manager.c.staff_id.label("manager_id"),
                Staff.name.label("manager_name"),
            )
            .select_from(Channel)
            .outerjoin(Network, Network.id == Channel.network_id)
            .outerjoin(Team, Team.id == Channel.team_id)
            .outerjoin(manager, manager.c.channel_id == Channel.id)
            .outerjoin(Staff, Staff.id == manager.c.staff_id)
            .where(*visibility.conditions())
            .order_by(Channel.created_at.desc(), Channel.id.desc())
        )
        return [dict(row._mapping) for row in rows.all()]

    async def get(self, db: AsyncSession, channel_id: int) -> Channel | None:
        row = await db.execute(select(Channel).where(Channel.id == channel_id))
        return row.scalar_one_or_none()

    async def update(self, db: AsyncSession, channel: Channel, values: dict[str, Any]) -> Channel:
        for key in ("name", "network_id", "team_id", "status"):
            if key in values:
                setattr(channel, key, values[key])
        await db.flush()
        await db.refresh(channel)
        return channel

    async def set_manager(self, db: AsyncSession, channel_id: int, staff_id: Optional[int]) -> None:
        """Replace the channel's manager; ``None`` leaves the channel unmanaged."""
        await db.execute(
            delete(StaffChannel).where(
                StaffChannel.channel_id == channel_id,
                StaffChannel.role == MANAGER,
            )
        )
        if staff_id is not None:
            db.add(StaffChannel(staff_id=staff_id, channel_id=channel_id, role=MANAGER))
        await db.flush()

    async def assign(self, db: AsyncSession, *, staff_id: int, channel_id: int, role: str) -> bool:
        """Idempotent association upsert. Returns False when it already existed."""
        if role == MANAGER:
            existing = await db.execute(
                select(StaffChannel.staff_id).where(
                    StaffChannel.channel_id == channel_id,
                    StaffChannel.role == MANAGER,
                )
            )
            if existing.scalars().all() == [staff_id]:
                return False
            await self.set_manager(db, channel_id, staff_id)
            return True

        existing = await db.execute(
            select(StaffChannel.id).where(
                StaffChannel.staff_id == staff_id,
                StaffChannel.channel_id == channel_id,
                StaffChannel.role == role,
            )
        )
        if existing.scalar_one_or_none() is not None:
            return False
        db.add(StaffChannel(staff_id=staff_id, channel_id=channel_id, role=role))
        await db.flush()
        return True

    async def unassign(self, db: AsyncSession, *, staff_id: int, channel_id: int, role: str) -> int:
        result = await db.execute(
            delete(StaffChannel).where(
                StaffChannel.staff_id == staff_id,
                StaffChannel.channel_id == channel_id,
                StaffChannel.role == role,
            )
        )
        return result.rowcount or 0

    async def soft_delete(self, db: AsyncSession, channel_id: int) -> int:
        result = await db.execute(
            update(Channel).where(Channel.id == channel_id).values(status=ChannelStatus.deleted)
        )
        return result.rowcount or 0


channel_repository = ChannelRepository()
