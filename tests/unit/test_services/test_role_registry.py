"""Tests for the role registry."""

import pytest
from unittest.mock import AsyncMock, MagicMock
from src.models.pagerduty import PagerDutySchedule
from src.services.role_registry import (
    RoleRegistry,
    default_role_name,
    is_configurable_channel,
    is_valid_schedule_id,
    parse_team_roles,
    slug_to_title_case,
    support_channel_name,
)
from src.utils.errors import ConfigurationError
from tests.utils.factories import create_role_binding_data


@pytest.fixture
def mock_schedules():
    schedules = MagicMock()
    schedules.fetch_schedule = AsyncMock(
        return_value=PagerDutySchedule(id="PNEW001", name="Product Analytics rotation")
    )
    return schedules


@pytest.mark.unit
def test_default_role_name_from_channel():
    assert default_role_name("team-product-analytics") == "Support Hero for Product Analytics"
    assert default_role_name("feature-flags") == "Support Hero for Flags"
    assert default_role_name("support-pipeline") == "Support Hero for Pipeline"


@pytest.mark.unit
def test_slug_to_title_case():
    assert slug_to_title_case("product-analytics") == "Product Analytics"
    assert slug_to_title_case("web-vitals-and-more") == "Web Vitals And More"


@pytest.mark.unit
def test_support_channel_name():
    assert support_channel_name("team-pipeline") == "support-pipeline"
    assert support_channel_name("feature-flags") == "support-flags"
    assert support_channel_name("support-shared") == "support-shared"


@pytest.mark.unit
def test_channel_and_schedule_validation():
    assert is_configurable_channel("team-infra")
    assert is_configurable_channel("feature-flags")
    assert not is_configurable_channel("general")
    assert not is_configurable_channel("teams-are-fun")
    assert is_valid_schedule_id("PIR8F1")
    assert not is_valid_schedule_id("PIR-8F1")
    assert not is_valid_schedule_id("")


@pytest.mark.unit
def test_parse_team_roles():
    roles = parse_team_roles("team-infra:PINFRA1, team-web:PWEB002:Luigi ,")

    assert [(role.channel, role.schedule_id, role.name) for role in roles] == [
        ("team-infra", "PINFRA1", "Support Hero for Infra"),
        ("team-web", "PWEB002", "Luigi"),
    ]
    assert parse_team_roles(None) == []


@pytest.mark.unit
def test_parse_team_roles_rejects_malformed_entry():
    with pytest.raises(ConfigurationError):
        parse_team_roles("team-infra")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_resolve_role_prefers_persisted_binding(mock_store, mock_schedules, settings):
    mock_store.get_role_binding.return_value = create_role_binding_data(
        channel="team-infra", schedule_id="POVERRD", nickname="Infra Wizard"
    )
    registry = RoleRegistry(mock_store, mock_schedules, settings)

    role = await registry.resolve_role("team-infra")

    assert role.name == "Infra Wizard"
    assert role.schedule_id == "POVERRD"
    assert not role.is_generic_name


@pytest.mark.unit
@pytest.mark.asyncio
async def test_resolve_role_falls_back_to_static_roles(mock_store, mock_schedules, settings):
    registry = RoleRegistry(mock_store, mock_schedules, settings)

    primary = await registry.resolve_role("support")
    team = await registry.resolve_role("team-infra")
    missing = await registry.resolve_role("team-unknown")

    assert primary.primary and primary.name == "Support Hero"
    assert team.name == "Support Hero for Infra" and not team.primary
    assert missing is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_set_role_persists_binding(mock_store, mock_schedules, settings):
    mock_store.upsert_role_binding.return_value = create_role_binding_data(
        channel="team-product-analytics", schedule_id="PNEW001"
    )
    registry = RoleRegistry(mock_store, mock_schedules, settings)

    role = await registry.set_role("team-product-analytics", "PNEW001")

    assert role.name == "Support Hero for Product Analytics"
    mock_schedules.fetch_schedule.assert_called_once_with("PNEW001")
    mock_store.upsert_role_binding.assert_called_once_with("team-product-analytics", "PNEW001", None)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_set_role_with_nickname(mock_store, mock_schedules, settings):
    mock_store.upsert_role_binding.return_value = create_role_binding_data(
        channel="team-web", schedule_id="PNEW001", nickname="Luigi"
    )
    registry = RoleRegistry(mock_store, mock_schedules, settings)

    role = await registry.set_role("team-web", "PNEW001", "Luigi")

    assert role.name == "Luigi"
    mock_store.upsert_role_binding.assert_called_once_with("team-web", "PNEW001", "Luigi")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_set_role_unknown_schedule_changes_nothing(mock_store, mock_schedules, settings):
    mock_schedules.fetch_schedule.return_value = None
    registry = RoleRegistry(mock_store, mock_schedules, settings)

    assert await registry.set_role("team-web", "PNOPE01") is None
    mock_store.upsert_role_binding.assert_not_called()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_all_roles_overlays_persisted_bindings(mock_store, mock_schedules, settings):
    mock_store.list_role_bindings.return_value = [
        create_role_binding_data(channel="team-infra", schedule_id="POVERRD"),
        create_role_binding_data(channel="team-web", schedule_id="PWEB002"),
    ]
    registry = RoleRegistry(mock_store, mock_schedules, settings)

    roles = {role.channel: role for role in await registry.all_roles()}

    assert set(roles) == {"support", "team-infra", "team-web"}
    assert roles["team-infra"].schedule_id == "POVERRD"
    assert roles["support"].primary


@pytest.mark.unit
def test_static_roles_ignore_persisted_bindings(mock_store, mock_schedules, settings):
    registry = RoleRegistry(mock_store, mock_schedules, settings)

    roles = registry.static_roles()

    assert [role.channel for role in roles] == ["support", "team-infra"]
    mock_store.list_role_bindings.assert_not_called()
