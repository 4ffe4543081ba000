"""Support role announcements: weekly shout-outs, upcoming rotations and `/support-hero` replies."""

import asyncio
from typing import Awaitable, Callable, Optional
from datetime import datetime
from slack_sdk.web.async_client import AsyncWebClient
from src.models.message import BatchResult, SlackMessage
from src.models.role import Role
from src.services.announcements import (
    compose_current_announcement,
    compose_role_status,
    compose_tip_of_the_week,
    compose_upcoming_announcement,
    current_week_number,
)
from src.services.oncall import Mode, OnCallDigest
from src.services.pagerduty import PagerDutyScheduleClient
from src.services.role_registry import RoleRegistry
from src.services.slack_users import SlackMentionResolver
from src.services.topic_sync import ChannelTopicSynchronizer
from src.utils.errors import ScheduleEmptyError, SupabaseError
from src.utils.settings import Settings
from src.utils.logging import get_structured_logger, log_timing, mask_sensitive_data

logger = get_structured_logger(__name__)

REGISTRY_LABEL = "registry"


class SupportAnnouncer:
    """Resolves role -> schedule -> person -> mention and posts the result."""

    def __init__(
        self,
        client: AsyncWebClient,
        registry: RoleRegistry,
        schedules: PagerDutyScheduleClient,
        mentions: SlackMentionResolver,
        topics: ChannelTopicSynchronizer,
        settings: Settings,
        on_call: Optional[OnCallDigest] = None,
    ):
        self._client = client
        self._registry = registry
        self._schedules = schedules
        self._mentions = mentions
        self._topics = topics
        self._settings = settings
        self._on_call = on_call

    async def mention_n_weeks_from_now(self, role: Role, n: int, now: Optional[datetime] = None) -> str:
        """Mention of whoever holds the role ``n`` weeks from now; nobody on the schedule is not an error."""
        try:
            person = await self._schedules.person_on_call_n_weeks_from_now(n, role.schedule_id, now=now)
        except ScheduleEmptyError:
            logger.info("No one scheduled", channel=role.channel, schedule_id=role.schedule_id, weeks_ahead=n)
            person = None
        return await self._mentions.mention_for(person)

    async def announce_current(self, role: Role, now: Optional[datetime] = None) -> None:
        mention = await self.mention_n_weeks_from_now(role, 0, now)
        week_number = current_week_number(now, self._settings.announcement_timezone)
        message = compose_current_announcement(role, mention, week_number, self._settings.pagerduty_base_url)

        side_effects = [self._client.chat_postMessage(channel=role.channel, **message.as_kwargs())]
        if not role.primary:
            side_effects.append(self._topics.sync_topic(role, mention))
        results = await asyncio.gather(*side_effects, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result
        logger.info("Current role holder announced", channel=role.channel, role_name=role.name)

    async def announce_upcoming(self, role: Role, now: Optional[datetime] = None) -> None:
        next_mention, week_after_mention = await asyncio.gather(
            self.mention_n_weeks_from_now(role, 1, now),
            self.mention_n_weeks_from_now(role, 2, now),
        )
        message = compose_upcoming_announcement(
            role, next_mention, week_after_mention, self._settings.pagerduty_base_url
        )
        await self._client.chat_postMessage(channel=role.channel, **message.as_kwargs())
        logger.info("Upcoming role holders announced", channel=role.channel, role_name=role.name)

    async def describe_role(self, role: Role, now: Optional[datetime] = None) -> SlackMessage:
        mentions = await asyncio.gather(*(self.mention_n_weeks_from_now(role, n, now) for n in (0, 1, 2)))
        return compose_role_status(role, tuple(mentions), self._settings.pagerduty_base_url)

    async def _announce_all(
        self,
        mode: Mode,
        announce: Callable[[Role], Awaitable[None]],
    ) -> BatchResult:
        batch = BatchResult()
        try:
            roles = await self._registry.all_roles()
        except SupabaseError:
            logger.exception("Role bindings unavailable, announcing static roles only", mode=mode)
            batch.failed.append(REGISTRY_LABEL)
            roles = self._registry.static_roles()
        labels = [role.channel for role in roles]
        jobs = [announce(role) for role in roles]
        if self._on_call is not None and self._on_call.enabled:
            labels.append(f"on-call:{self._on_call.channel}")
            jobs.append(self._on_call.shout(mode))

        with log_timing(f"announce_{mode}_assignments", logger=logger, jobs=len(jobs)):
            results = await asyncio.gather(*jobs, return_exceptions=True)
        for label, result in zip(labels, results):
            if isinstance(result, BaseException):
                batch.failed.append(label)
                logger.error(
                    "Announcement failed",
                    mode=mode,
                    channel=label,
                    error=mask_sensitive_data(str(result)),
                    exc_info=result
                )
            else:
                batch.succeeded.append(label)

        logger.info(
            "Announcement batch completed",
            mode=mode,
            succeeded=len(batch.succeeded),
            failed=len(batch.failed)
        )
        return batch

    async def announce_current_assignments(self) -> BatchResult:
        return await self._announce_all("current", self.announce_current)

    async def announce_upcoming_assignments(self) -> BatchResult:
        return await self._announce_all("upcoming", self.announce_upcoming)

    async def shout_about_tip_of_the_week(self, now: Optional[datetime] = None) -> None:
        week_number = current_week_number(now, self._settings.announcement_timezone)
        message = compose_tip_of_the_week(week_number)
        await self._client.chat_postMessage(channel=self._settings.shout_out_channel, **message.as_kwargs())
