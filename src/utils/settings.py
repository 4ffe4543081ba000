"""Application settings, read once from the environment at process start."""

import os
from typing import Optional, Mapping
from pydantic import BaseModel, Field
from src.utils.errors import ConfigurationError


def _split_csv(value: Optional[str]) -> list[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


class Settings(BaseModel):
    """Explicit configuration passed into every component."""
    slack_bot_token: str = Field(..., description="Bot token (xoxb-)")
    slack_signing_secret: Optional[str] = Field(None, description="Signing secret for HTTP mode")
    slack_app_token: Optional[str] = Field(None, description="App-level token (xapp-) for Socket Mode")
    supabase_url: str
    supabase_key: str
    pagerduty_token: str
    pagerduty_api_url: str = "https://api.pagerduty.com"
    pagerduty_base_url: str = Field(
        "https://posthog.pagerduty.com",
        description="Web UI base used when linking role names to schedules"
    )
    support_hero_schedule_id: Optional[str] = Field(None, description="Schedule of the primary Support Hero")
    support_hero_channel: str = "general"
    support_hero_teams: Optional[str] = Field(
        None,
        description="Comma separated <channel>:<scheduleId>[:<nickname>] entries"
    )
    on_call_schedule_ids: list[str] = Field(default_factory=list)
    weekend_on_call_schedule_id: Optional[str] = None
    on_call_channel: str = "dev"
    on_call_runbook_url: str = "http://runbooks/oncall/"
    shout_out_channel: str = "general"
    announcement_timezone: str = "Europe/London"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables."""
        env = os.environ if environ is None else environ

        required = {
            "SLACK_BOT_TOKEN": env.get("SLACK_BOT_TOKEN"),
            "SUPABASE_URL": env.get("SUPABASE_URL"),
            "SUPABASE_SERVICE_ROLE_KEY": env.get("SUPABASE_SERVICE_ROLE_KEY"),
            "PAGERDUTY_TOKEN": env.get("PAGERDUTY_TOKEN"),
        }
        missing = [key for key, value in required.items() if not value]
        if missing:
            raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

        optional = {
            "slack_signing_secret": env.get("SLACK_SIGNING_SECRET"),
            "slack_app_token": env.get("SLACK_APP_TOKEN"),
            "pagerduty_api_url": env.get("PAGERDUTY_API_URL"),
            "pagerduty_base_url": env.get("PAGERDUTY_BASE_URL"),
            "support_hero_schedule_id": env.get("SUPPORT_HERO_SCHEDULE_ID"),
            "support_hero_channel": env.get("SUPPORT_HERO_CHANNEL"),
            "support_hero_teams": env.get("SUPPORT_HERO_TEAMS_WITH_SCHEDULE_IDS"),
            "weekend_on_call_schedule_id": env.get("WEEKEND_ON_CALL_SCHEDULE_ID"),
            "on_call_channel": env.get("ON_CALL_CHANNEL"),
            "on_call_runbook_url": env.get("ON_CALL_RUNBOOK_URL"),
            "shout_out_channel": env.get("SHOUT_OUT_CHANNEL"),
            "announcement_timezone": env.get("ANNOUNCEMENT_TIMEZONE"),
        }

        return cls(
            slack_bot_token=required["SLACK_BOT_TOKEN"],
            supabase_url=required["SUPABASE_URL"],
            supabase_key=required["SUPABASE_SERVICE_ROLE_KEY"],
            pagerduty_token=required["PAGERDUTY_TOKEN"],
            on_call_schedule_ids=_split_csv(env.get("ON_CALL_SCHEDULE_IDS")),
            **{key: value for key, value in optional.items() if value}
        )
