"""Ranked-choice poll models."""

from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

MIN_OPTIONS = 2
MAX_OPTIONS = 15


class Poll(BaseModel):
    """Ranked-choice ballot.

    ``votes`` maps a voter's Slack user ID to a ranking where ``ranking[i]`` is
    the rank (1 = favourite) the voter gave to ``options[i]``.
    """
    id: str
    slack_channel_id: str
    created_by_id: str
    question: str
    options: list[str] = Field(..., min_length=MIN_OPTIONS, max_length=MAX_OPTIONS)
    votes: dict[str, list[int]] = Field(default_factory=dict)
    closed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.closed_at is None


class PollTally(BaseModel):
    """Borda count result."""
    scores: list[int]
    winners: list[str]
    voter_count: int
    max_possible: int = Field(..., description="(N - 1) * voter_count")

    @property
    def is_tie(self) -> bool:
        return len(self.winners) > 1


class PollCreation(BaseModel):
    """Outcome of a create request: the stored poll, or per-field errors."""
    poll: Optional[Poll] = None
    errors: dict[str, str] = Field(default_factory=dict)


class VoteOutcome(str, Enum):
    RECORDED = "RECORDED"
    INVALID_RANKING = "INVALID_RANKING"
    CLOSED = "CLOSED"
    NOT_FOUND = "NOT_FOUND"


class CloseOutcome(str, Enum):
    CLOSED = "CLOSED"
    ALREADY_CLOSED = "ALREADY_CLOSED"
    NOT_FOUND = "NOT_FOUND"


class PollClosure(BaseModel):
    outcome: CloseOutcome
    poll: Optional[Poll] = None
    tally: Optional[PollTally] = None
