"""Test helper functions."""

import json
from typing import Any, Dict, Optional


def create_slash_command(
    text: str = "",
    channel_name: str = "team-infra",
    channel_id: str = "C123456",
    user_id: str = "U123456",
) -> Dict[str, Any]:
    """Create a slash command payload as Bolt passes it to handlers."""
    return {
        "text": text,
        "channel_name": channel_name,
        "channel_id": channel_id,
        "user_id": user_id,
        "trigger_id": "1337.42.abcd",
    }


def create_view_submission(
    private_metadata: Dict[str, Any],
    values: Dict[str, Dict[str, Optional[str]]],
    user_id: str = "U123456",
) -> tuple[Dict[str, Any], Dict[str, Any]]:
    """Create a (body, view) pair for a modal submission.

    ``values`` maps block_id -> {action_id: value}.
    """
    view = {
        "id": "V123",
        "hash": "h4sh",
        "private_metadata": json.dumps(private_metadata),
        "state": {
            "values": {
                block_id: {action_id: {"type": "plain_text_input", "value": value} for action_id, value in actions.items()}
                for block_id, actions in values.items()
            }
        },
    }
    body = {"type": "view_submission", "user": {"id": user_id}, "view": view}
    return body, view
