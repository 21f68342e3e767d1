"""
MCN Admin Dashboard - Metrics Aggregation Service
=================================================
Read-only rollups over ``channel_metrics_daily`` for the dashboard:
summary, per-channel, per-team, per-network, per-project and a per-channel
daily timeseries.

Every operation resolves the caller's channel visibility first and applies it
together with the request filters; an empty visible set returns the zero value
without touching the fact table.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mcn_admin.core.logging import get_logger
from mcn_admin.domain.metrics.errors import MetricsQueryError, MetricsQueryTimeout
from mcn_admin.domain.metrics.filters import DashboardFilters
from mcn_admin.domain.metrics.money import ZERO, compute_rpm, to_decimal
from mcn_admin.domain.metrics.visibility import (
    CallerIdentity,
    ChannelVisibility,
    describe,
    resolve_visibility,
)
from mcn_admin.models import (
    Channel,
    ChannelMetricDaily,
    ChannelStaffRole,
    Network,
    Project,
    ProjectChannel,
    Staff,
    StaffChannel,
    Team,
)

logger = get_logger("services.metrics")


# ── Result rows ──

@dataclass(frozen=True, slots=True)
class SummaryTotals:
    total_views: int = 0
    total_revenue: Decimal = ZERO
    total_watch_time: int = 0

    @property
    def avg_rpm(self) -> Decimal:
        return compute_rpm(self.total_revenue, self.total_views)


@dataclass(frozen=True, slots=True)
class ChannelRollup:
    id: int
    name: str
    youtube_channel_id: str
    network_id: Optional[int]
    team_id: Optional[int]
    network_name: Optional[str]
    team_name: Optional[str]
    manager_id: Optional[int]
    manager_name: Optional[str]
    views: int
    revenue: Decimal

    @property
    def rpm(self) -> Decimal:
        return compute_rpm(self.revenue, self.views)


@dataclass(frozen=True, slots=True)
class DimensionRollup:
    id: int
    name: str
    views: int
    revenue: Decimal


@dataclass(frozen=True, slots=True)
class TimeseriesPoint:
    date: date
    channel_id: int
    channel_name: str
    revenue: Decimal
    views: int


def _sum_views():
    return func.coalesce(func.sum(ChannelMetricDaily.views), 0)


def _sum_revenue():
    return func.coalesce(func.sum(ChannelMetricDaily.revenue), 0)


class MetricsAggregationService:
    def __init__(self, default_timeout: Optional[float] = None):
        self.default_timeout = default_timeout

    # ── plumbing ──

    async def _execute(self, db: AsyncSession, stmt, *, operation: str, timeout: Optional[float]):
        limit = self.default_timeout if timeout is None else timeout
        try:
            if limit and limit > 0:
                return await asyncio.wait_for(db.execute(stmt), timeout=limit)
            return await db.execute(stmt)
        except asyncio.TimeoutError as exc:
            logger.warning("metrics_query_timeout", operation=operation, timeout=limit)
            raise MetricsQueryTimeout(operation, limit) from exc
        except SQLAlchemyError as exc:
            logger.error("metrics_query_failed", operation=operation, error=exc.__class__.__name__)
            raise MetricsQueryError(operation) from exc

    async def _visibility(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        *,
        operation: str,
        timeout: Optional[float],
    ) -> ChannelVisibility:
        visibility = await resolve_visibility(
            db,
            caller,
            stmt_runner=lambda stmt: self._execute(db, stmt, operation=operation, timeout=timeout),
        )
        logger.debug(
            "metrics_visibility_resolved",
            operation=operation,
            caller_id=caller.id,
            role=caller.role.value,
            visible=describe(visibility),
        )
        return visibility

    @staticmethod
    def _channel_conditions(visibility: ChannelVisibility, filters: DashboardFilters) -> list:
        return [*visibility.conditions(), *filters.channel_conditions()]

    @staticmethod
    def _fact_join(filters: DashboardFilters):
        return and_(ChannelMetricDaily.channel_id == Channel.id, *filters.fact_conditions())

    # ── operations ──

    async def summary(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        filters: DashboardFilters,
        *,
        timeout: Optional[float] = None,
    ) -> SummaryTotals:
        visibility = await self._visibility(db, caller, operation="summary", timeout=timeout)
        if visibility.is_empty:
            return SummaryTotals()

        stmt = (
            select(
                _sum_views().label("total_views"),
                _sum_revenue().label("total_revenue"),
                func.coalesce(func.sum(ChannelMetricDaily.watch_time_minutes), 0).label("total_watch_time"),
            )
            .select_from(ChannelMetricDaily)
            .join(Channel, Channel.id == ChannelMetricDaily.channel_id)
            .where(*self._channel_conditions(visibility, filters), *filters.fact_conditions())
        )
        result = await self._execute(db, stmt, operation="summary", timeout=timeout)
        row = result.one()
        return SummaryTotals(
            total_views=int(row.total_views or 0),
            total_revenue=to_decimal(row.total_revenue),
            total_watch_time=int(row.total_watch_time or 0),
        )

    async def channels(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        filters: DashboardFilters,
        *,
        timeout: Optional[float] = None,
    ) -> list[ChannelRollup]:
        visibility = await self._visibility(db, caller, operation="channels", timeout=timeout)
        if visibility.is_empty:
            return []

        # one manager per channel; min() keeps the join one-to-one if data ever disagrees
        manager = (
            select(
                StaffChannel.channel_id.label("channel_id"),
                func.min(StaffChannel.staff_id).label("staff_id"),
            )
            .where(StaffChannel.role == ChannelStaffRole.manager.value)
            .group_by(StaffChannel.channel_id)
            .subquery("manager")
        )
        views = _sum_views().label("views")
        revenue = _sum_revenue().label("revenue")
        stmt = (
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
                views,
                revenue,
            )
            .select_from(Channel)
            .outerjoin(ChannelMetricDaily, self._fact_join(filters))
            .outerjoin(Network, Network.id == Channel.network_id)
            .outerjoin(Team, Team.id == Channel.team_id)
            .outerjoin(manager, manager.c.channel_id == Channel.id)
            .outerjoin(Staff, Staff.id == manager.c.staff_id)
            .where(*self._channel_conditions(visibility, filters))
            .group_by(
                Channel.id,
                Channel.name,
                Channel.youtube_channel_id,
                Channel.network_id,
                Channel.team_id,
                Network.name,
                Team.name,
                manager.c.staff_id,
                Staff.name,
            )
            .order_by(revenue.desc(), Channel.id.asc())
        )
        result = await self._execute(db, stmt, operation="channels", timeout=timeout)
        return [
            ChannelRollup(
                id=row.id,
                name=row.name,
                youtube_channel_id=row.youtube_channel_id,
                network_id=row.network_id,
                team_id=row.team_id,
                network_name=row.network_name,
                team_name=row.team_name,
                manager_id=row.manager_id,
                manager_name=row.manager_name,
                views=int(row.views or 0),
                revenue=to_decimal(row.revenue),
            )
            for row in result.all()
        ]

    async def _dimension_rollup(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        filters: DashboardFilters,
        *,
        operation: str,
        dimension,
        join_path: list,
        timeout: Optional[float],
    ) -> list[DimensionRollup]:
        visibility = await self._visibility(db, caller, operation=operation, timeout=timeout)
        if visibility.is_empty:
            return []

        views = _sum_views().label("views")
        revenue = _sum_revenue().label("revenue")
        stmt = select(dimension.id, dimension.name, views, revenue).select_from(Channel)
        # inner joins: a dimension row only appears when a visible channel belongs to it
        for target, onclause in join_path:
            stmt = stmt.join(target, onclause)
        stmt = (
            stmt.outerjoin(ChannelMetricDaily, self._fact_join(filters))
            .where(*self._channel_conditions(visibility, filters))
            .group_by(dimension.id, dimension.name)
            .order_by(revenue.desc(), dimension.id.asc())
        )
        result = await self._execute(db, stmt, operation=operation, timeout=timeout)
        return [
            DimensionRollup(
                id=row.id,
                name=row.name,
                views=int(row.views or 0),
                revenue=to_decimal(row.revenue),
            )
            for row in result.all()
        ]

    async def team_summary(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        filters: DashboardFilters,
        *,
        timeout: Optional[float] = None,
    ) -> list[DimensionRollup]:
        return await self._dimension_rollup(
            db,
            caller,
            filters,
            operation="team_summary",
            dimension=Team,
            join_path=[(Team, Team.id == Channel.team_id)],
            timeout=timeout,
        )

    async def network_summary(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        filters: DashboardFilters,
        *,
        timeout: Optional[float] = None,
    ) -> list[DimensionRollup]:
        return await self._dimension_rollup(
            db,
            caller,
            filters,
            operation="network_summary",
            dimension=Network,
            join_path=[(Network, Network.id == Channel.network_id)],
            timeout=timeout,
        )

    async def project_summary(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        filters: DashboardFilters,
        *,
        timeout: Optional[float] = None,
    ) -> list[DimensionRollup]:
        return await self._dimension_rollup(
            db,
            caller,
            filters,
            operation="project_summary",
            dimension=Project,
            join_path=[
                (ProjectChannel, ProjectChannel.channel_id == Channel.id),
                (Project, Project.id == ProjectChannel.project_id),
            ],
            timeout=timeout,
        )

    async def channel_timeseries(
        self,
        db: AsyncSession,
        caller: CallerIdentity,
        filters: DashboardFilters,
        *,
        timeout: Optional[float] = None,
    ) -> list[TimeseriesPoint]:
        visibility = await self._visibility(db, caller, operation="timeseries", timeout=timeout)
        if visibility.is_empty:
            return []

        stmt = (
            select(
                ChannelMetricDaily.date.label("date"),
                Channel.id.label("channel_id"),
                Channel.name.label("channel_name"),
                _sum_revenue().label("revenue"),
                _sum_views().label("views"),
            )
            .select_from(ChannelMetricDaily)
            .join(Channel, Channel.id == ChannelMetricDaily.channel_id)
            .where(*self._channel_conditions(visibility, filters), *filters.fact_conditions())
            .group_by(ChannelMetricDaily.date, Channel.id, Channel.name)
            .order_by(ChannelMetricDaily.date.asc(), Channel.id.asc())
        )
        result = await self._execute(db, stmt, operation="timeseries", timeout=timeout)
        return [
            TimeseriesPoint(
                date=row.date,
                channel_id=row.channel_id,
                channel_name=row.channel_name,
                revenue=to_decimal(row.revenue),
                views=int(row.views or 0),
            )
            for row in result.all()
        ]


metrics_service = MetricsAggregationService()
