"""Kudos models."""

from enum import Enum
from datetime import datetime
from pydantic import BaseModel, Field


class KudosEntry(BaseModel):
    """Immutable recognition record."""
    id: str = Field(..., description="ULID, sorts by creation time")
    source_slack_user_id: str
    target_slack_user_id: str
    reason: str = Field(..., min_length=1)
    slack_channel_id: str
    created_at: datetime


class KudosRejection(str, Enum):
    """Reasons a kudos is not recorded."""
    SELF_KUDOS = "SELF_KUDOS"
    EMPTY_REASON = "EMPTY_REASON"
