from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.exc import SQLAlchemyError

from mcn_admin.api.deps.rbac import enforce_min_role
from mcn_admin.api.routes import auth as auth_route
from mcn_admin.api.routes import dashboard as dashboard_route
from mcn_admin.api.routes import staff as staff_route
from mcn_admin.core.security import create_access_token
from mcn_admin.domain.metrics.errors import MetricsQueryError, MetricsQueryTimeout
from mcn_admin.domain.metrics.filters import DashboardFilters
from mcn_admin.domain.metrics.visibility import CallerIdentity
from mcn_admin.models.staff import StaffRole
from mcn_admin.schemas.auth import RegisterRequest
from mcn_admin.services.audit_service import AuditService
from mcn_admin.services.cache_service import CacheService
from mcn_admin.services.metrics_service import SummaryTotals

ADMIN = CallerIdentity(id=1, role=StaffRole.admin)


class _SessionStub:
    def __init__(self):
        self.committed = False
        self.rolled_back = False

    async def commit(self):
        self.committed = True

    async def rollback(self):
        self.rolled_back = True


def _staff(**overrides):
    values = dict(
        id=1,
        name="Ada",
        email="ada@example.com",
        role=StaffRole.admin,
        is_active=True,
        hashed_password="",
        created_at=datetime.now(timezone.utc),
    )
    values.update(overrides)
    staff = SimpleNamespace(**values)
    staff.is_deleted = staff.role == StaffRole.deleted
    return staff


async def _noop_audit(*_args, **_kwargs):
    return None


@pytest.mark.asyncio
async def test_first_registered_staff_becomes_admin(monkeypatch):
    db = _SessionStub()
    created = {}

    async def _no_existing(*_args, **_kwargs):
        return None

    async def _empty_count(*_args, **_kwargs):
        return 0

    async def _fake_create(_db, **kwargs):
        created.update(kwargs)
        return _staff(id=1, email=kwargs["email"], name=kwargs["name"], role=kwargs["role"])

    monkeypatch.setattr(auth_route.staff_repository, "get_by_email", _no_existing)
    monkeypatch.setattr(auth_route.staff_repository, "count", _empty_count)
    monkeypatch.setattr(auth_route.staff_repository, "create", _fake_create)
    monkeypatch.setattr(auth_route.audit_service, "log_action", _noop_audit)

    response = await auth_route.register(
        payload=RegisterRequest(email="ada@example.com", name="Ada", password="secret1", role=StaffRole.viewer),
        db=db,
    )

    assert db.committed is True
    assert response.first_user is True
    assert response.user.role == StaffRole.admin
    assert created["role"] == StaffRole.admin
    assert created["hashed_password"] != "secret1"


@pytest.mark.asyncio
async def test_register_rejects_duplicate_email(monkeypatch):
    async def _existing(*_args, **_kwargs):
        return _staff()

    monkeypatch.setattr(auth_route.staff_repository, "get_by_email", _existing)

    with pytest.raises(HTTPException) as exc_info:
        await auth_route.register(
            payload=RegisterRequest(email="ada@example.com", name="Ada", password="secret1"),
            db=_SessionStub(),
        )

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_current_staff_requires_token():
    with pytest.raises(HTTPException) as exc_info:
        await auth_route.get_current_staff(credentials=None, db=_SessionStub())

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_current_staff_rejects_forged_token():
    credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="not-a-jwt")

    with pytest.raises(HTTPException) as exc_info:
        await auth_route.get_current_staff(credentials=credentials, db=_SessionStub())

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_current_staff_rejects_deleted_account(monkeypatch):
    async def _deleted(*_args, **_kwargs):
        return _staff(id=4, role=StaffRole.deleted, is_active=False)

    monkeypatch.setattr(auth_route.staff_repository, "get", _deleted)
    token = create_access_token({"sub": "4"})

    with pytest.raises(HTTPException) as exc_info:
        await auth_route.get_current_staff(
            credentials=HTTPAuthorizationCredentials(scheme="Bearer", credentials=token),
            db=_SessionStub(),
        )

    assert exc_info.value.status_code == 401


def test_min_role_guard_blocks_lower_roles():
    enforce_min_role(_staff(role=StaffRole.admin), StaffRole.admin)

    with pytest.raises(HTTPException) as exc_info:
        enforce_min_role(_staff(role=StaffRole.manager), StaffRole.admin)

    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_admin_cannot_delete_self():
    with pytest.raises(HTTPException) as exc_info:
        await staff_route.delete_staff(staff_id=1, current_staff=_staff(id=1), db=_SessionStub())

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_delete_unknown_staff_rolls_back(monkeypatch):
    db = _SessionStub()

    async def _nothing_deleted(*_args, **_kwargs):
        return 0

    monkeypatch.setattr(staff_route.staff_repository, "soft_delete", _nothing_deleted)

    with pytest.raises(HTTPException) as exc_info:
        await staff_route.delete_staff(staff_id=7, current_staff=_staff(id=1), db=db)

    assert exc_info.value.status_code == 404
    assert db.rolled_back is True
    assert db.committed is False


@pytest.mark.asyncio
async def test_dashboard_summary_shapes_service_result(monkeypatch):
    async def _summary(*_args, **_kwargs):
        return SummaryTotals(total_views=2000, total_revenue=Decimal("3"), total_watch_time=10)

    monkeypatch.setattr(dashboard_route.metrics_service, "summary", _summary)

    payload = await dashboard_route.get_summary(filters=DashboardFilters(), caller=ADMIN, db=_SessionStub())

    assert payload == {"totalViews": 2000, "totalRevenue": 3.0, "totalWatchTime": 10, "avgRPM": 1.5}


@pytest.mark.asyncio
async def test_dashboard_maps_query_error_to_opaque_500(monkeypatch):
    async def _broken(*_args, **_kwargs):
        raise MetricsQueryError("channels")

    monkeypatch.setattr(dashboard_route.metrics_service, "channels", _broken)

    with pytest.raises(HTTPException) as exc_info:
        await dashboard_route.get_channels(filters=DashboardFilters(), caller=ADMIN, db=_SessionStub())

    assert exc_info.value.status_code == 500
    assert exc_info.value.detail == "DB error"


@pytest.mark.asyncio
async def test_dashboard_maps_timeout_to_504(monkeypatch):
    async def _slow(*_args, **_kwargs):
        raise MetricsQueryTimeout("timeseries", 0.5)

    monkeypatch.setattr(dashboard_route.metrics_service, "channel_timeseries", _slow)

    with pytest.raises(HTTPException) as exc_info:
        await dashboard_route.get_timeseries(filters=DashboardFilters(), caller=ADMIN, db=_SessionStub())

    assert exc_info.value.status_code == 504


def test_dashboard_filters_dependency_ignores_bad_values():
    filters = dashboard_route.dashboard_filters(
        date_from="2025-01-01",
        date_to="tomorrow",
        team_id="7",
        network_id="seven",
        manager_id=None,
    )

    assert filters == DashboardFilters.parse(date_from="2025-01-01", team_id=7)


class _FailingNestedDb:
    def begin_nested(self):
        raise SQLAlchemyError("savepoint unavailable")


@pytest.mark.asyncio
async def test_audit_failure_does_not_propagate():
    await AuditService().log_action(
        _FailingNestedDb(),
        action="channel_updated",
        entity_type="channel",
        entity_id=3,
        actor=_staff(),
    )


class _FakeRedis:
    def __init__(self, keys):
        self.keys = set(keys)

    async def scan_iter(self, match, count=None):
        prefix = match.rstrip("*")
        for key in sorted(self.keys):
            if key.startswith(prefix):
                yield key

    async def delete(self, key):
        if key in self.keys:
            self.keys.remove(key)
            return 1
        return 0


@pytest.mark.asyncio
async def test_cache_prefix_delete_keeps_other_keys():
    cache = CacheService()
    cache._client = _FakeRedis(["dashboard:summary:1:admin:-", "dashboard:channels:2:viewer:-", "session:9"])

    removed = await cache.delete_prefix("dashboard:")

    assert removed == 2
    assert cache._client.keys == {"session:9"}


@pytest.mark.asyncio
async def test_mutations_invalidate_cached_dashboards(monkeypatch):
    fake = _FakeRedis(["dashboard:summary:1:admin:-", "other:key"])
    monkeypatch.setattr(dashboard_route.cache_service, "_client", fake)
    monkeypatch.setattr(
        dashboard_route,
        "get_settings",
        lambda: SimpleNamespace(dashboard_cache_ttl_seconds=30),
    )

    await dashboard_route.invalidate_dashboard_cache()

    assert fake.keys == {"other:key"}


@pytest.mark.asyncio
async def test_invalidation_is_skipped_when_cache_disabled(monkeypatch):
    fake = _FakeRedis(["dashboard:summary:1:admin:-"])
    monkeypatch.setattr(dashboard_route.cache_service, "_client", fake)

    await dashboard_route.invalidate_dashboard_cache()

    assert fake.keys == {"dashboard:summary:1:admin:-"}
