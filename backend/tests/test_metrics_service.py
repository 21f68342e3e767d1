from __future__ import annotations

import asyncio
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from mcn_admin.domain.metrics.errors import MetricsQueryError, MetricsQueryTimeout
from mcn_admin.domain.metrics.filters import DashboardFilters
from mcn_admin.domain.metrics.money import compute_rpm
from mcn_admin.domain.metrics.visibility import CallerIdentity
from mcn_admin.models import (
    Channel,
    ChannelMetricDaily,
    ChannelStatus,
    Network,
    Project,
    ProjectChannel,
    Staff,
    StaffChannel,
    StaffRole,
    Team,
)
from mcn_admin.services import dashboard_presenter as presenter
from mcn_admin.services.metrics_service import MetricsAggregationService, SummaryTotals

ADMIN = CallerIdentity(id=1, role=StaffRole.admin)
JANUARY = DashboardFilters.parse(date_from="2025-01-01", date_to="2025-01-02")


def _metric(channel: Channel, day: int, views: int, revenue: str, watch: int = 0) -> ChannelMetricDaily:
    return ChannelMetricDaily(
        channel_id=channel.id,
        date=date(2025, 1, day),
        views=views,
        revenue=Decimal(revenue),
        watch_time_minutes=watch,
    )


async def _seed_single_channel(session):
    channel = Channel(youtube_channel_id="UC-one", name="Channel One")
    session.add(channel)
    await session.flush()
    session.add_all(
        [
            _metric(channel, 1, 1000, "5.00", watch=300),
            _metric(channel, 2, 500, "1.00", watch=200),
        ]
    )
    await session.commit()
    return channel


async def _seed_network(session):
    """Three active channels across two teams plus one deleted channel."""
    news = Team(name="News")
    gaming = Team(name="Gaming")
    idle = Team(name="Idle")
    north = Network(name="North")
    manager = Staff(name="Mona", email="mona@example.com", hashed_password="x", role=StaffRole.manager)
    viewer = Staff(name="Vic", email="vic@example.com", hashed_password="x", role=StaffRole.viewer)
    session.add_all([news, gaming, idle, north, manager, viewer])
    await session.flush()

    alpha = Channel(youtube_channel_id="UC-alpha", name="Alpha", team_id=news.id, network_id=north.id)
    beta = Channel(youtube_channel_id="UC-beta", name="Beta", team_id=gaming.id)
    gamma = Channel(youtube_channel_id="UC-gamma", name="Gamma")
    gone = Channel(
        youtube_channel_id="UC-gone",
        name="Gone",
        team_id=news.id,
        status=ChannelStatus.deleted,
    )
    session.add_all([alpha, beta, gamma, gone])
    await session.flush()

    launch = Project(name="Launch")
    session.add(launch)
    await session.flush()

    session.add_all(
        [
            _metric(alpha, 1, 2000, "10.50"),
            _metric(alpha, 2, 1000, "4.25"),
            _metric(beta, 1, 4000, "20.00"),
            _metric(gone, 1, 9999, "99.00"),
            StaffChannel(staff_id=manager.id, channel_id=alpha.id, role="manager"),
            StaffChannel(staff_id=manager.id, channel_id=beta.id, role="editor"),
            StaffChannel(staff_id=viewer.id, channel_id=beta.id, role="viewer"),
            ProjectChannel(project_id=launch.id, channel_id=alpha.id),
            ProjectChannel(project_id=launch.id, channel_id=beta.id),
        ]
    )
    await session.commit()
    return SimpleNamespace(
        news=news,
        gaming=gaming,
        idle=idle,
        north=north,
        manager=manager,
        viewer=viewer,
        alpha=alpha,
        beta=beta,
        gamma=gamma,
        gone=gone,
        launch=launch,
    )


@pytest.mark.asyncio
async def test_summary_totals_for_single_channel(session) -> None:
    await _seed_single_channel(session)
    service = MetricsAggregationService()

    totals = await service.summary(session, ADMIN, JANUARY)

    assert totals.total_views == 1500
    assert totals.total_revenue == Decimal("6")
    assert totals.total_watch_time == 500
    assert totals.avg_rpm == Decimal("4")
    assert presenter.present_summary(totals).model_dump() == {
        "totalViews": 1500,
        "totalRevenue": 6.0,
        "totalWatchTime": 500,
        "avgRPM": 4.0,
    }


@pytest.mark.asyncio
async def test_channel_rows_carry_null_dimensions(session) -> None:
    channel = await _seed_single_channel(session)
    service = MetricsAggregationService()

    rows = presenter.present_channels(await service.channels(session, ADMIN, JANUARY))

    assert [row.model_dump() for row in rows] == [
        {
            "id": channel.id,
            "name": "Channel One",
            "youtube_channel_id": "UC-one",
            "network_id": None,
            "team_id": None,
            "network_name": None,
            "team_name": None,
            "manager_id": None,
            "manager_name": None,
            "views": 1500,
            "revenue": 6.0,
            "rpm": 4.0,
        }
    ]


@pytest.mark.asyncio
async def test_unmatched_team_filter_returns_zero_values(session) -> None:
    await _seed_single_channel(session)
    service = MetricsAggregationService()
    filters = DashboardFilters.parse(date_from="2025-01-01", date_to="2025-01-02", team_id="99")

    assert await service.summary(session, ADMIN, filters) == SummaryTotals()
    assert await service.channels(session, ADMIN, filters) == []


@pytest.mark.asyncio
async def test_timeseries_ordered_by_date(session) -> None:
    channel = await _seed_single_channel(session)
    service = MetricsAggregationService()

    points = presenter.present_timeseries(await service.channel_timeseries(session, ADMIN, JANUARY))

    assert [(p.date, p.channel_id, p.views, p.revenue) for p in points] == [
        (date(2025, 1, 1), channel.id, 1000, 5.0),
        (date(2025, 1, 2), channel.id, 500, 1.0),
    ]


@pytest.mark.asyncio
async def test_timeseries_orders_channels_within_a_day(session) -> None:
    seeded = await _seed_network(session)
    service = MetricsAggregationService()

    points = await service.channel_timeseries(session, ADMIN, DashboardFilters())

    assert [(p.date.day, p.channel_id) for p in points] == [
        (1, seeded.alpha.id),
        (1, seeded.beta.id),
        (2, seeded.alpha.id),
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "query",
    [
        {},
        {"from": "2025-01-02"},
        {"to": "2025-01-01"},
        {"teamId": "1"},
        {"networkId": "1", "from": "2025-01-01"},
        {"managerId": "1"},
        {"teamId": "garbage"},
    ],
)
async def test_summary_revenue_matches_channel_rows(session, query) -> None:
    await _seed_network(session)
    service = MetricsAggregationService()
    filters = DashboardFilters.from_query(query)

    totals = await service.summary(session, ADMIN, filters)
    rows = await service.channels(session, ADMIN, filters)

    assert totals.total_revenue == sum((row.revenue for row in rows), Decimal("0"))
    assert totals.total_views == sum(row.views for row in rows)
    for row in rows:
        assert row.rpm == compute_rpm(row.revenue, row.views)


@pytest.mark.asyncio
async def test_channels_ordered_by_revenue_with_zero_rows(session) -> None:
    seeded = await _seed_network(session)
    service = MetricsAggregationService()

    rows = await service.channels(session, ADMIN, DashboardFilters())

    assert [row.id for row in rows] == [seeded.beta.id, seeded.alpha.id, seeded.gamma.id]
    alpha = rows[1]
    assert alpha.team_name == "News"
    assert alpha.network_name == "North"
    assert alpha.manager_id == seeded.manager.id
    assert alpha.manager_name == "Mona"
    assert rows[2].views == 0
    assert rows[2].revenue == Decimal("0")
    assert rows[2].rpm == Decimal("0")


@pytest.mark.asyncio
async def test_team_summary_skips_empty_teams_and_deleted_channels(session) -> None:
    seeded = await _seed_network(session)
    service = MetricsAggregationService()

    rows = await service.team_summary(session, ADMIN, DashboardFilters())

    assert [(row.name, row.views, row.revenue) for row in rows] == [
        ("Gaming", 4000, Decimal("20")),
        ("News", 3000, Decimal("14.75")),
    ]
    assert seeded.idle.id not in {row.id for row in rows}


@pytest.mark.asyncio
async def test_network_and_project_summaries(session) -> None:
    seeded = await _seed_network(session)
    service = MetricsAggregationService()

    networks = await service.network_summary(session, ADMIN, DashboardFilters())
    projects = presenter.present_projects(await service.project_summary(session, ADMIN, DashboardFilters()))

    assert [(row.id, row.views) for row in networks] == [(seeded.north.id, 3000)]
    assert [row.model_dump() for row in projects] == [
        {"id": seeded.launch.id, "project_name": "Launch", "views": 7000, "revenue": 34.75}
    ]


@pytest.mark.asyncio
async def test_manager_filter_ignores_other_association_roles(session) -> None:
    seeded = await _seed_network(session)
    service = MetricsAggregationService()
    filters = DashboardFilters.parse(manager_id=seeded.manager.id)

    rows = await service.channels(session, ADMIN, filters)

    assert [row.id for row in rows] == [seeded.alpha.id]


@pytest.mark.asyncio
async def test_non_admin_sees_only_associated_channels(session) -> None:
    seeded = await _seed_network(session)
    service = MetricsAggregationService()
    manager = CallerIdentity.from_staff(seeded.manager)

    rows = await service.channels(session, manager, DashboardFilters())
    teams = await service.team_summary(session, manager, DashboardFilters())
    totals = await service.summary(session, manager, DashboardFilters())

    assert {row.id for row in rows} == {seeded.alpha.id, seeded.beta.id}
    assert {row.name for row in teams} == {"News", "Gaming"}
    assert totals.total_views == 7000

    viewer = CallerIdentity.from_staff(seeded.viewer)
    assert [row.id for row in await service.channels(session, viewer, DashboardFilters())] == [seeded.beta.id]
    assert await service.network_summary(session, viewer, DashboardFilters()) == []


@pytest.mark.asyncio
async def test_caller_without_channels_gets_zero_values(session) -> None:
    await _seed_network(session)
    loner = Staff(name="Lou", email="lou@example.com", hashed_password="x", role=StaffRole.editor)
    session.add(loner)
    await session.commit()
    caller = CallerIdentity.from_staff(loner)
    service = MetricsAggregationService()
    filters = DashboardFilters()

    assert presenter.present_summary(await service.summary(session, caller, filters)).model_dump() == {
        "totalViews": 0,
        "totalRevenue": 0.0,
        "totalWatchTime": 0,
        "avgRPM": 0.0,
    }
    assert await service.channels(session, caller, filters) == []
    assert await service.team_summary(session, caller, filters) == []
    assert await service.network_summary(session, caller, filters) == []
    assert await service.project_summary(session, caller, filters) == []
    assert await service.channel_timeseries(session, caller, filters) == []


@pytest.mark.asyncio
async def test_repeated_calls_are_identical(session) -> None:
    await _seed_network(session)
    service = MetricsAggregationService()
    filters = DashboardFilters.parse(date_from="2025-01-01")

    first = [row.model_dump() for row in presenter.present_channels(await service.channels(session, ADMIN, filters))]
    second = [row.model_dump() for row in presenter.present_channels(await service.channels(session, ADMIN, filters))]

    assert first == second


class _EmptyScalars:
    def all(self):
        return []


class _CountingDb:
    """Answers the visibility lookup with no channels and fails on any further query."""

    def __init__(self):
        self.calls = 0

    async def execute(self, _stmt):
        self.calls += 1
        if self.calls > 1:
            raise AssertionError("Fact table must not be queried for an empty visible set")
        return SimpleNamespace(scalars=_EmptyScalars)


@pytest.mark.asyncio
async def test_empty_visibility_short_circuits_queries() -> None:
    service = MetricsAggregationService()
    caller = CallerIdentity(id=5, role=StaffRole.viewer)

    for operation in (
        service.summary,
        service.channels,
        service.team_summary,
        service.network_summary,
        service.project_summary,
        service.channel_timeseries,
    ):
        db = _CountingDb()
        result = await operation(db, caller, DashboardFilters())
        assert db.calls == 1
        assert result in ([], SummaryTotals())


@pytest.mark.asyncio
async def test_deleted_role_resolves_without_query() -> None:
    service = MetricsAggregationService()
    db = _CountingDb()
    db.calls = 1

    totals = await service.summary(db, CallerIdentity(id=9, role=StaffRole.deleted), DashboardFilters())

    assert totals == SummaryTotals()


class _SlowDb:
    async def execute(self, _stmt):
        await asyncio.sleep(1)


class _BrokenDb:
    async def execute(self, _stmt):
        raise OperationalError("SELECT 1", {}, Exception("connection reset"))


@pytest.mark.asyncio
async def test_slow_query_raises_timeout() -> None:
    service = MetricsAggregationService()

    with pytest.raises(MetricsQueryTimeout) as exc_info:
        await service.summary(_SlowDb(), ADMIN, DashboardFilters(), timeout=0.01)

    assert exc_info.value.operation == "summary"


@pytest.mark.asyncio
async def test_default_timeout_applies_when_call_omits_one() -> None:
    service = MetricsAggregationService(default_timeout=0.01)

    with pytest.raises(MetricsQueryTimeout):
        await service.channels(_SlowDb(), ADMIN, DashboardFilters())


@pytest.mark.asyncio
async def test_driver_failure_raises_query_error() -> None:
    service = MetricsAggregationService()

    with pytest.raises(MetricsQueryError) as exc_info:
        await service.team_summary(_BrokenDb(), ADMIN, DashboardFilters())

    assert exc_info.value.operation == "team_summary"
    assert not isinstance(exc_info.value, MetricsQueryTimeout)


def test_rpm_is_zero_without_views() -> None:
    assert compute_rpm(Decimal("12.5"), 0) == Decimal("0")
    assert compute_rpm(None, None) == Decimal("0")
    assert compute_rpm(Decimal("6.00"), 1500) == Decimal("4")
    assert compute_rpm(5.1, 1000) == Decimal("5.1")


@pytest.mark.asyncio
async def test_wire_values_round_to_four_places(session) -> None:
    channel = Channel(youtube_channel_id="UC-thirds", name="Thirds")
    session.add(channel)
    await session.flush()
    session.add(_metric(channel, 1, 3, "1.0000"))
    await session.commit()
    service = MetricsAggregationService()

    totals = await service.summary(session, ADMIN, DashboardFilters())
    rows = await service.channels(session, ADMIN, DashboardFilters())

    assert totals.avg_rpm > Decimal("333.3333")
    assert presenter.present_summary(totals).avgRPM == 333.3333
    assert presenter.present_channels(rows)[0].rpm == 333.3333


def test_wire_rounding_is_half_up() -> None:
    totals = SummaryTotals(total_views=1, total_revenue=Decimal("0.00005"))

    shaped = presenter.present_summary(totals)

    assert shaped.totalRevenue == 0.0001
    assert shaped.avgRPM == 0.05
