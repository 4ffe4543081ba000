"""Role model - a named support duty bound to a Slack channel and a PagerDuty schedule."""

from typing import Optional
from pydantic import BaseModel, Field


class Role(BaseModel):
    """Support role, e.g. "Support Hero for Infrastructure"."""
    name: str = Field(..., description="Display name, generic or a custom nickname")
    channel: str = Field(..., description="Slack channel name the role announces into")
    schedule_id: str = Field(..., description="PagerDuty schedule ID")
    primary: bool = Field(default=False, description="The company-wide Support Hero role")

    @property
    def is_generic_name(self) -> bool:
        """Generic names read as "the Support Hero"; nicknames such as "Luigi" take no article."""
        return "Hero" in self.name or "Sidekick" in self.name


class RoleBinding(BaseModel):
    """Persisted row of the support_roles table, keyed by channel."""
    channel: str = Field(..., description="Slack channel name (primary key)")
    schedule_id: str = Field(..., description="PagerDuty schedule ID")
    nickname: Optional[str] = Field(None, description="Custom role name, null for the derived default")
    updated_at: Optional[str] = None
