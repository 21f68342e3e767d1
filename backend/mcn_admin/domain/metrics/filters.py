from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from sqlalchemy import and_, exists
from sqlalchemy.sql.elements import ColumnElement

from mcn_admin.models.channel import Channel, ChannelStaffRole, StaffChannel
from mcn_admin.models.metrics import ChannelMetricDaily


def parse_date(value: Any) -> Optional[date]:
    """ISO ``YYYY-MM-DD`` or None. Unparseable input counts as absent."""
    if isinstance(value, date):
        return value
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def parse_int(value: Any) -> Optional[int]:
    """Base-10 integer or None. Unparseable input counts as absent."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text, 10)
    except ValueError:
        return None


@dataclass(frozen=True, slots=True)
class DashboardFilters:
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    team_id: Optional[int] = None
    network_id: Optional[int] = None
    manager_id: Optional[int] = None

    @classmethod
    def parse(
        cls,
        *,
        date_from: Any = None,
        date_to: Any = None,
        team_id: Any = None,
        network_id: Any = None,
        manager_id: Any = None,
    ) -> "DashboardFilters":
        return cls(
            date_from=parse_date(date_from),
            date_to=parse_date(date_to),
            team_id=parse_int(team_id),
            network_id=parse_int(network_id),
            manager_id=parse_int(manager_id),
        )

    @classmethod
    def from_query(cls, params: dict[str, Any]) -> "DashboardFilters":
        """Build from the public query-string names (from, to, teamId, networkId, managerId)."""
        return cls.parse(
            date_from=params.get("from"),
            date_to=params.get("to"),
            team_id=params.get("teamId"),
            network_id=params.get("networkId"),
            manager_id=params.get("managerId"),
        )

    def channel_conditions(self) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = []
        if self.team_id is not None:
            conditions.append(Channel.team_id == self.team_id)
        if self.network_id is not None:
            conditions.append(Channel.network_id == self.network_id)
        if self.manager_id is not None:
            conditions.append(
                exists().where(
                    and_(
                        StaffChannel.channel_id == Channel.id,
                        StaffChannel.staff_id == self.manager_id,
                        StaffChannel.role == ChannelStaffRole.manager.value,
                    )
                )
            )
        return conditions

    def fact_conditions(self) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = []
        if self.date_from is not None:
            conditions.append(ChannelMetricDaily.date >= self.date_from)
        if self.date_to is not None:
            conditions.append(ChannelMetricDaily.date <= self.date_to)
        return conditions

    def cache_key(self) -> str:
        parts = [
            self.date_from.isoformat() if self.date_from else "",
            self.date_to.isoformat() if self.date_to else "",
            "" if self.team_id is None else str(self.team_id),
            "" if self.network_id is None else str(self.network_id),
            "" if self.manager_id is None else str(self.manager_id),
        ]
        return "|".join(parts)
