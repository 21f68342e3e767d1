from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select
from sqlalchemy.sql.elements import ColumnElement

from mcn_admin.models.channel import Channel, ChannelStatus, StaffChannel
from mcn_admin.models.staff import TOP_ROLE, StaffRole


@dataclass(frozen=True, slots=True)
class CallerIdentity:
    id: int
    role: StaffRole

    @classmethod
    def from_staff(cls, staff) -> "CallerIdentity":
        return cls(id=int(staff.id), role=StaffRole(staff.role))

    @property
    def is_admin(self) -> bool:
        return self.role == TOP_ROLE


@dataclass(frozen=True, slots=True)
class ChannelVisibility:
    """Channels a caller may see: either every active channel, or an explicit id set."""

    unrestricted: bool
    channel_ids: frozenset[int] = field(default_factory=frozenset)

    @classmethod
    def everything(cls) -> "ChannelVisibility":
        return cls(unrestricted=True)

    @classmethod
    def only(cls, channel_ids) -> "ChannelVisibility":
        return cls(unrestricted=False, channel_ids=frozenset(int(cid) for cid in channel_ids))

    @property
    def is_empty(self) -> bool:
        return not self.unrestricted and not self.channel_ids

    def conditions(self) -> list[ColumnElement[bool]]:
        """Predicates on ``channels`` shared by every read: active status plus the id restriction."""
        conditions: list[ColumnElement[bool]] = [Channel.status == ChannelStatus.active]
        if not self.unrestricted:
            conditions.append(Channel.id.in_(sorted(self.channel_ids)))
        return conditions


def visible_channel_ids_stmt(staff_id: int) -> Select:
    return (
        select(StaffChannel.channel_id)
        .join(Channel, Channel.id == StaffChannel.channel_id)
        .where(
            StaffChannel.staff_id == staff_id,
            Channel.status == ChannelStatus.active,
        )
        .distinct()
    )


async def resolve_visibility(
    db: AsyncSession,
    caller: CallerIdentity,
    *,
    stmt_runner=None,
) -> ChannelVisibility:
    """
    Admins see all active channels. Any other role sees the active channels it
    is associated with through ``staff_channels``, whatever the association role.
    """
    if caller.is_admin:
        return ChannelVisibility.everything()
    if caller.role == StaffRole.deleted:
        return ChannelVisibility.only(())

    stmt = visible_channel_ids_stmt(caller.id)
    result = await (stmt_runner(stmt) if stmt_runner else db.execute(stmt))
    return ChannelVisibility.only(result.scalars().all())


def describe(visibility: Optional[ChannelVisibility]) -> str:
    if visibility is None:
        return "unresolved"
    if visibility.unrestricted:
        return "all"
    return f"{len(visibility.channel_ids)} channels"
