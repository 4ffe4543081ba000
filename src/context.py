"""Application context, built once at process start and handed to handlers and jobs."""

from dataclasses import dataclass
from typing import Optional
import httpx
from slack_sdk.web.async_client import AsyncWebClient
from src.services.kudos import KudosLedger
from src.services.oncall import OnCallDigest
from src.services.pagerduty import PagerDutyScheduleClient, create_pagerduty_http_client
from src.services.polls import PollEngine
from src.services.role_registry import RoleRegistry
from src.services.slack_users import SlackMentionResolver
from src.services.supabase_client import SupabaseStore, create_supabase_client
from src.services.support import SupportAnnouncer
from src.services.topic_sync import ChannelTopicSynchronizer
from src.utils.settings import Settings


@dataclass
class AppContext:
    settings: Settings
    slack: AsyncWebClient
    pagerduty_http: httpx.AsyncClient
    registry: RoleRegistry
    announcer: SupportAnnouncer
    polls: PollEngine
    kudos: KudosLedger

    async def aclose(self) -> None:
        await self.pagerduty_http.aclose()


def build_context(
    settings: Settings,
    slack: Optional[AsyncWebClient] = None,
    store: Optional[SupabaseStore] = None,
    pagerduty_http: Optional[httpx.AsyncClient] = None,
) -> AppContext:
    slack = slack or AsyncWebClient(token=settings.slack_bot_token)
    store = store or SupabaseStore(create_supabase_client(settings))
    pagerduty_http = pagerduty_http or create_pagerduty_http_client(settings)

    schedules = PagerDutyScheduleClient(pagerduty_http)
    mentions = SlackMentionResolver(slack)
    registry = RoleRegistry(store, schedules, settings)
    announcer = SupportAnnouncer(
        client=slack,
        registry=registry,
        schedules=schedules,
        mentions=mentions,
        topics=ChannelTopicSynchronizer(slack),
        settings=settings,
        on_call=OnCallDigest(slack, schedules, mentions, settings),
    )
    return AppContext(
        settings=settings,
        slack=slack,
        pagerduty_http=pagerduty_http,
        registry=registry,
        announcer=announcer,
        polls=PollEngine(store),
        kudos=KudosLedger(store),
    )
