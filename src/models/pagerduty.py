"""PagerDuty models. Partial representations, fields irrelevant to the bot are omitted."""

from typing import Optional
from pydantic import BaseModel, Field


class Assignment(BaseModel):
    """Person holding a schedule at a moment in time (a PagerDuty user)."""
    name: str = Field(..., description="Display name")
    email: Optional[str] = Field(None, description="Contact handle used for the Slack lookup")
    id: Optional[str] = None
    time_zone: Optional[str] = None
    html_url: Optional[str] = None


class ScheduleLayer(BaseModel):
    id: str
    name: Optional[str] = None
    rotation_virtual_start: str
    rotation_turn_length_seconds: int


class PagerDutySchedule(BaseModel):
    """Schedule metadata."""
    id: str
    name: str
    time_zone: str = "UTC"
    html_url: str = ""
    schedule_layers: list[ScheduleLayer] = Field(default_factory=list)
