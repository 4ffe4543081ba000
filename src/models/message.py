"""Composed Slack message models."""

from typing import Optional, Any
from pydantic import BaseModel, Field


class SlackMessage(BaseModel):
    """Text fallback plus optional Block Kit blocks, ready for chat.postMessage."""
    text: str = Field(..., description="mrkdwn text, also the notification fallback")
    blocks: Optional[list[dict[str, Any]]] = Field(None, description="Block Kit blocks")

    def as_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"text": self.text}
        if self.blocks:
            kwargs["blocks"] = self.blocks
        return kwargs


class BatchResult(BaseModel):
    """Outcome of a fan-out over several roles or schedules."""
    succeeded: list[str] = Field(default_factory=list, description="Channels announced successfully")
    failed: list[str] = Field(default_factory=list, description="Channels whose announcement raised")
