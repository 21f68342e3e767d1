"""Maps aggregation results onto the dashboard wire schemas."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from mcn_admin.schemas.dashboard import (
    DashboardChannelRow,
    DashboardSummary,
    NetworkSummaryRow,
    ProjectSummaryRow,
    TeamSummaryRow,
    TimeseriesRow,
)
from mcn_admin.services.metrics_service import (
    ChannelRollup,
    DimensionRollup,
    SummaryTotals,
    TimeseriesPoint,
)


WIRE_PLACES = Decimal("0.0001")


def _number(value: Decimal) -> float:
    # summary and rows round identically; aggregation stays exact
    return float(value.quantize(WIRE_PLACES, rounding=ROUND_HALF_UP))


def present_summary(totals: SummaryTotals) -> DashboardSummary:
    return DashboardSummary(
        totalViews=totals.total_views,
        totalRevenue=_number(totals.total_revenue),
        totalWatchTime=totals.total_watch_time,
        avgRPM=_number(totals.avg_rpm),
    )


def present_channels(rows: list[ChannelRollup]) -> list[DashboardChannelRow]:
    return [
        DashboardChannelRow(
            id=row.id,
            name=row.name,
            youtube_channel_id=row.youtube_channel_id,
            network_id=row.network_id,
            team_id=row.team_id,
            network_name=row.network_name,
            team_name=row.team_name,
            manager_id=row.manager_id,
            manager_name=row.manager_name,
            views=row.views,
            revenue=_number(row.revenue),
            rpm=_number(row.rpm),
        )
        for row in rows
    ]


def present_teams(rows: list[DimensionRollup]) -> list[TeamSummaryRow]:
    return [
        TeamSummaryRow(id=row.id, team_name=row.name, views=row.views, revenue=_number(row.revenue))
        for row in rows
    ]


def present_networks(rows: list[DimensionRollup]) -> list[NetworkSummaryRow]:
    return [
        NetworkSummaryRow(id=row.id, network_name=row.name, views=row.views, revenue=_number(row.revenue))
        for row in rows
    ]


def present_projects(rows: list[DimensionRollup]) -> list[ProjectSummaryRow]:
    return [
        ProjectSummaryRow(id=row.id, project_name=row.name, views=row.views, revenue=_number(row.revenue))
        for row in rows
    ]


def present_timeseries(points: list[TimeseriesPoint]) -> list[TimeseriesRow]:
    return [
        TimeseriesRow(
            date=point.date,
            channel_id=point.channel_id,
            channel_name=point.channel_name,
            revenue=_number(point.revenue),
            views=point.views,
        )
        for point in points
    ]
