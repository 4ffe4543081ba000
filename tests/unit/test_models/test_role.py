"""Tests for role and kudos models."""

import pytest
from pydantic import ValidationError
from src.models.kudos import KudosEntry
from src.models.message import SlackMessage
from src.models.role import Role
from tests.utils.factories import create_kudos_data


@pytest.mark.unit
def test_role_generic_name():
    assert Role(name="Support Hero", channel="support", schedule_id="P1").is_generic_name
    assert Role(name="Infra Sidekick", channel="team-infra", schedule_id="P1").is_generic_name
    assert not Role(name="Luigi", channel="team-web", schedule_id="P1").is_generic_name


@pytest.mark.unit
def test_role_defaults_to_non_primary():
    assert not Role(name="Support Hero for Web", channel="team-web", schedule_id="P1").primary


@pytest.mark.unit
def test_kudos_entry_requires_reason():
    with pytest.raises(ValidationError):
        KudosEntry.model_validate({**create_kudos_data(), "reason": ""})


@pytest.mark.unit
def test_slack_message_kwargs():
    assert SlackMessage(text="hi").as_kwargs() == {"text": "hi"}
    blocks = [{"type": "divider"}]
    assert SlackMessage(text="hi", blocks=blocks).as_kwargs() == {"text": "hi", "blocks": blocks}
