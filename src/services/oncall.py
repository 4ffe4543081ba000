"""Engineering on-call digest: one line per PagerDuty schedule, posted to the dev channel."""

import asyncio
from typing import Literal, Optional
from datetime import datetime, timedelta, timezone
from slack_sdk.web.async_client import AsyncWebClient
from src.models.message import SlackMessage
from src.models.pagerduty import PagerDutySchedule
from src.services.announcements import current_week_number, on_call_title
from src.services.pagerduty import PagerDutyScheduleClient
from src.services.slack_users import SlackMentionResolver
from src.utils.errors import ScheduleEmptyError
from src.utils.settings import Settings
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

Mode = Literal["current", "upcoming"]

MONDAY = 1
SATURDAY = 6
WEEKDAY_SHIFT_HOURS = 8
WEEKEND_SHIFT_HOURS = 48


def format_schedule_line(
    schedule_id: str,
    schedule: Optional[PagerDutySchedule],
    mention: str,
    is_weekend: bool,
) -> str:
    if schedule is None:
        return f"Schedule *{schedule_id}* - _no longer exists in PagerDuty_"

    display_name = schedule.name.replace("On-call: ", "")
    if not schedule.schedule_layers:
        return f"<{schedule.html_url}|{display_name}> – {mention}"

    start = datetime.fromisoformat(schedule.schedule_layers[0].rotation_virtual_start).astimezone(timezone.utc)
    end = start + timedelta(hours=WEEKEND_SHIFT_HOURS if is_weekend else WEEKDAY_SHIFT_HOURS)
    start_display = start.strftime("%H%M")
    end_display = end.strftime("%H%M")
    if is_weekend:
        time_ranges = f"_continuous_: Sat {start_display} till Mon {end_display}"
    else:
        time_ranges = f"{start_display} till {end_display}, Mon-Fri"
    return f"<{schedule.html_url}|{display_name}> ({time_ranges}) – {mention}"


def compose_on_call_digest(mode: Mode, lines: list[str], week_number: int, runbook_url: str) -> SlackMessage:
    when = "this" if mode == "current" else "next"
    header = f"*{on_call_title(week_number)} <{runbook_url}|on call> {when} week (all times UTC):*"
    return SlackMessage(text="\n".join([header, *lines]))


class OnCallDigest:
    """Posts who is on call across the engineering schedules."""

    def __init__(
        self,
        client: AsyncWebClient,
        schedules: PagerDutyScheduleClient,
        mentions: SlackMentionResolver,
        settings: Settings,
    ):
        self._client = client
        self._schedules = schedules
        self._mentions = mentions
        self._settings = settings
        self.schedule_weekdays: list[tuple[str, int]] = [
            (schedule_id, MONDAY) for schedule_id in settings.on_call_schedule_ids
        ]
        if settings.weekend_on_call_schedule_id:
            self.schedule_weekdays.append((settings.weekend_on_call_schedule_id, SATURDAY))

    @property
    def channel(self) -> str:
        return self._settings.on_call_channel

    @property
    def enabled(self) -> bool:
        return bool(self.schedule_weekdays)

    async def _line_for(self, mode: Mode, schedule_id: str, weekday: int) -> str:
        schedule = await self._schedules.fetch_schedule(schedule_id)
        if schedule is None:
            return format_schedule_line(schedule_id, None, "", False)
        try:
            person = await self._schedules.person_on_call_n_weeks_from_now(
                0 if mode == "current" else 1, schedule_id, weekday
            )
        except ScheduleEmptyError:
            person = None
        mention = await self._mentions.mention_for(person)
        is_weekend = schedule.id == self._settings.weekend_on_call_schedule_id
        return format_schedule_line(schedule_id, schedule, mention, is_weekend)

    async def shout(self, mode: Mode, now: Optional[datetime] = None) -> None:
        lines = await asyncio.gather(
            *(self._line_for(mode, schedule_id, weekday) for schedule_id, weekday in self.schedule_weekdays)
        )
        week_number = current_week_number(now, self._settings.announcement_timezone)
        message = compose_on_call_digest(mode, list(lines), week_number, self._settings.on_call_runbook_url)
        await self._client.chat_postMessage(channel=self.channel, **message.as_kwargs())
        logger.info("On-call digest posted", mode=mode, schedules=len(lines))
