"""
MCN Admin Dashboard - Dashboard Schemas
=======================================
Wire shapes consumed by the React dashboards. Summary keys are camelCase,
row keys snake_case; both are part of the public contract.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel


class DashboardSummary(BaseModel):
    totalViews: int = 0
    totalRevenue: float = 0.0
    totalWatchTime: int = 0
    avgRPM: float = 0.0


class DashboardChannelRow(BaseModel):
    id: int
    name: str
    youtube_channel_id: str
    network_id: Optional[int] = None
    team_id: Optional[int] = None
    network_name: Optional[str] = None
    team_name: Optional[str] = None
    manager_id: Optional[int] = None
    manager_name: Optional[str] = None
    views: int = 0
    revenue: float = 0.0
    rpm: float = 0.0


class TeamSummaryRow(BaseModel):
    id: int
    team_name: str
    views: int = 0
    revenue: float = 0.0


class NetworkSummaryRow(BaseModel):
    id: int
    network_name: str
    views: int = 0
    revenue: float = 0.0


class ProjectSummaryRow(BaseModel):
    id: int
    project_name: str
    views: int = 0
    revenue: float = 0.0


class TimeseriesRow(BaseModel):
    date: date
    channel_id: int
    channel_name: str
    revenue: float = 0.0
    views: int = 0
