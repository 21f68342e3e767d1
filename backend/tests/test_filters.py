from __future__ import annotations

from datetime import date

import pytest

from mcn_admin.domain.metrics.filters import DashboardFilters, parse_date, parse_int


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2025-01-05", date(2025, 1, 5)),
        (" 2025-01-05 ", date(2025, 1, 5)),
        ("2025-01-05T10:30:00Z", date(2025, 1, 5)),
        (date(2024, 12, 31), date(2024, 12, 31)),
        ("2025-13-01", None),
        ("yesterday", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_date_is_lenient(raw, expected) -> None:
    assert parse_date(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("12", 12),
        (" 7 ", 7),
        ("0", 0),
        (42, 42),
        ("1.5", None),
        ("abc", None),
        ("", None),
        (True, None),
        (None, None),
    ],
)
def test_parse_int_is_lenient(raw, expected) -> None:
    assert parse_int(raw) == expected


def test_invalid_values_mean_filter_absent() -> None:
    filters = DashboardFilters.from_query(
        {"from": "not-a-date", "to": "2025-02-01", "teamId": "x", "networkId": "3", "managerId": ""}
    )

    assert filters == DashboardFilters(date_to=date(2025, 2, 1), network_id=3)
    assert len(filters.fact_conditions()) == 1
    assert len(filters.channel_conditions()) == 1


def test_no_filters_produce_no_conditions() -> None:
    filters = DashboardFilters.from_query({})

    assert filters.channel_conditions() == []
    assert filters.fact_conditions() == []


def test_manager_filter_adds_channel_condition() -> None:
    filters = DashboardFilters.parse(team_id="4", manager_id="9")

    conditions = filters.channel_conditions()
    assert len(conditions) == 2
    assert "staff_channels" in str(conditions[1])


def test_cache_key_distinguishes_filters() -> None:
    first = DashboardFilters.parse(date_from="2025-01-01", team_id="1")
    second = DashboardFilters.parse(date_from="2025-01-01", network_id="1")

    assert first.cache_key() == "2025-01-01||1||"
    assert first.cache_key() != second.cache_key()
    assert DashboardFilters().cache_key() == "||||"
