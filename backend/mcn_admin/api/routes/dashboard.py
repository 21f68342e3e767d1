"""
MCN Admin Dashboard - Metrics Dashboard API
===========================================
Summary and rollup endpoints backing the dashboard widgets. Every endpoint
accepts the same optional filters (from, to, teamId, networkId, managerId);
values that do not parse are ignored rather than rejected.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Awaitable, Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from mcn_admin.api.deps.rbac import get_caller
from mcn_admin.core.config import get_settings
from mcn_admin.core.database import get_db
from mcn_admin.core.logging import get_logger
from mcn_admin.domain.metrics.errors import MetricsQueryError, MetricsQueryTimeout
from mcn_admin.domain.metrics.filters import DashboardFilters
from mcn_admin.domain.metrics.visibility import CallerIdentity
from mcn_admin.schemas.dashboard import (
    DashboardChannelRow,
    DashboardSummary,
    NetworkSummaryRow,
    ProjectSummaryRow,
    TeamSummaryRow,
    TimeseriesRow,
)
from mcn_admin.services import dashboard_presenter as presenter
from mcn_admin.services.cache_service import cache_service
from mcn_admin.services.metrics_service import metrics_service

logger = get_logger("api.dashboard")
router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def dashboard_filters(
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    team_id: Optional[str] = Query(None, alias="teamId"),
    network_id: Optional[str] = Query(None, alias="networkId"),
    manager_id: Optional[str] = Query(None, alias="managerId"),
) -> DashboardFilters:
    # raw strings on purpose: a malformed value drops the filter instead of a 422
    return DashboardFilters.parse(
        date_from=date_from,
        date_to=date_to,
        team_id=team_id,
        network_id=network_id,
        manager_id=manager_id,
    )


DASHBOARD_CACHE_PREFIX = "dashboard:"


async def invalidate_dashboard_cache() -> None:
    """Called after admin mutations that change visibility, grouping or names."""
    if get_settings().dashboard_cache_ttl_seconds <= 0:
        return
    removed = await cache_service.delete_prefix(DASHBOARD_CACHE_PREFIX)
    logger.debug("dashboard_cache_invalidated", removed=removed)


def _cache_key(operation: str, caller: CallerIdentity, filters: DashboardFilters) -> str:
    return f"{DASHBOARD_CACHE_PREFIX}{operation}:{caller.id}:{caller.role.value}:{filters.cache_key()}"


async def _serve(
    operation: str,
    caller: CallerIdentity,
    filters: DashboardFilters,
    compute: Callable[[float], Awaitable[Any]],
) -> Any:
    settings = get_settings()
    ttl = settings.dashboard_cache_ttl_seconds
    key = _cache_key(operation, caller, filters)
    if ttl > 0:
        cached = await cache_service.get_json(key)
        if cached is not None:
            return cached

    try:
        shaped = await compute(settings.dashboard_query_timeout_seconds)
    except MetricsQueryTimeout:
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail="Dashboard query timed out")
    except MetricsQueryError:
        logger.error("dashboard_query_failed", operation=operation, caller_id=caller.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="DB error")

    if isinstance(shaped, list):
        payload = [item.model_dump(mode="json") for item in shaped]
    elif isinstance(shaped, BaseModel):
        payload = shaped.model_dump(mode="json")
    else:
        payload = shaped
    if ttl > 0:
        await cache_service.set_json(key, payload, ttl=timedelta(seconds=ttl))
    return payload


@router.get("/summary", response_model=DashboardSummary)
async def get_summary(
    filters: DashboardFilters = Depends(dashboard_filters),
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    async def compute(timeout: float):
        totals = await metrics_service.summary(db, caller, filters, timeout=timeout)
        return presenter.present_summary(totals)

    return await _serve("summary", caller, filters, compute)


@router.get("/channels", response_model=list[DashboardChannelRow])
async def get_channels(
    filters: DashboardFilters = Depends(dashboard_filters),
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    async def compute(timeout: float):
        rows = await metrics_service.channels(db, caller, filters, timeout=timeout)
        return presenter.present_channels(rows)

    return await _serve("channels", caller, filters, compute)


@router.get("/team-summary", response_model=list[TeamSummaryRow])
async def get_team_summary(
    filters: DashboardFilters = Depends(dashboard_filters),
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    async def compute(timeout: float):
        rows = await metrics_service.team_summary(db, caller, filters, timeout=timeout)
        return presenter.present_teams(rows)

    return await _serve("team_summary", caller, filters, compute)


@router.get("/network-summary", response_model=list[NetworkSummaryRow])
async def get_network_summary(
    filters: DashboardFilters = Depends(dashboard_filters),
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    async def compute(timeout: float):
        rows = await metrics_service.network_summary(db, caller, filters, timeout=timeout)
        return presenter.present_networks(rows)

    return await _serve("network_summary", caller, filters, compute)


@router.get("/project-summary", response_model=list[ProjectSummaryRow])
async def get_project_summary(
    filters: DashboardFilters = Depends(dashboard_filters),
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    async def compute(timeout: float):
        rows = await metrics_service.project_summary(db, caller, filters, timeout=timeout)
        return presenter.present_projects(rows)

    return await _serve("project_summary", caller, filters, compute)


@router.get("/timeseries", response_model=list[TimeseriesRow])
async def get_timeseries(
    filters: DashboardFilters = Depends(dashboard_filters),
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    async def compute(timeout: float):
        points = await metrics_service.channel_timeseries(db, caller, filters, timeout=timeout)
        return presenter.present_timeseries(points)

    return await _serve("timeseries", caller, filters, compute)
