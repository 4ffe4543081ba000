"""Role registry - which PagerDuty schedule a Slack channel announces, and under what name."""

import re
from typing import Optional
from src.models.role import Role, RoleBinding
from src.services.pagerduty import PagerDutyScheduleClient
from src.services.supabase_client import SupabaseStore
from src.utils.errors import ConfigurationError
from src.utils.settings import Settings
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

PRIMARY_ROLE_NAME = "Support Hero"
CONFIGURABLE_CHANNEL_PREFIXES = ("team-", "feature-")
_SLUG_PREFIX_PATTERN = re.compile(r"^(team|support|feature)-")
_COMPANION_PREFIX_PATTERN = re.compile(r"^(team|feature)(?=-)")
SCHEDULE_ID_PATTERN = re.compile(r"^[A-Za-z0-9]+$")


def slug_to_title_case(slug: str) -> str:
    """Transform a team slug, e.g. "product-analytics", to its name, e.g. "Product Analytics"."""
    return " ".join(word[0].upper() + word[1:] for word in slug.split("-") if word)


def default_role_name(channel: str) -> str:
    """e.g. team-product-analytics -> "Support Hero for Product Analytics"."""
    team_name = slug_to_title_case(_SLUG_PREFIX_PATTERN.sub("", channel))
    return f"{PRIMARY_ROLE_NAME} for {team_name}"


def support_channel_name(channel: str) -> str:
    """Companion support channel, e.g. team-pipeline -> support-pipeline."""
    return _COMPANION_PREFIX_PATTERN.sub("support", channel, count=1)


def is_configurable_channel(channel: str) -> bool:
    return channel.startswith(CONFIGURABLE_CHANNEL_PREFIXES)


def is_valid_schedule_id(schedule_id: str) -> bool:
    return bool(SCHEDULE_ID_PATTERN.match(schedule_id))


def role_from_binding(binding: RoleBinding) -> Role:
    return Role(
        name=binding.nickname or default_role_name(binding.channel),
        channel=binding.channel,
        schedule_id=binding.schedule_id,
    )


def parse_team_roles(value: Optional[str]) -> list[Role]:
    """Parse "<team-channel>:<schedule-id>[:<custom-role-name>]" entries, comma separated.

    Fake example for #team-infrastructure: "team-infrastructure:PIR8F1:Infra Hero".
    Team channels almost always start with `team-` so both `team-foo` and
    `support-foo` get updates. A queue shared between teams can use a
    `support-` channel directly, in which case only that channel is updated.
    """
    roles = []
    for entry in (value or "").split(","):
        entry = entry.strip()
        if not entry:
            continue
        parts = entry.split(":", 2)
        if len(parts) < 2 or not parts[0] or not parts[1]:
            raise ConfigurationError(f"Malformed team role entry: {entry!r}")
        channel, schedule_id = parts[0].strip(), parts[1].strip()
        nickname = parts[2].strip() if len(parts) == 3 and parts[2].strip() else None
        roles.append(role_from_binding(RoleBinding(channel=channel, schedule_id=schedule_id, nickname=nickname)))
    return roles


class RoleRegistry:
    """Channel -> role mapping: the primary role and env-defined teams, overlaid by persisted bindings."""

    def __init__(self, store: SupabaseStore, schedules: PagerDutyScheduleClient, settings: Settings):
        self._store = store
        self._schedules = schedules
        self._static_roles: dict[str, Role] = {}
        if settings.support_hero_schedule_id:
            self._static_roles[settings.support_hero_channel] = Role(
                name=PRIMARY_ROLE_NAME,
                channel=settings.support_hero_channel,
                schedule_id=settings.support_hero_schedule_id,
                primary=True,
            )
        for role in parse_team_roles(settings.support_hero_teams):
            self._static_roles.setdefault(role.channel, role)

    async def resolve_role(self, channel: str) -> Optional[Role]:
        """The role announced in ``channel``, or None when the channel isn't configured."""
        row = await self._store.get_role_binding(channel)
        if row:
            return role_from_binding(RoleBinding.model_validate(row))
        return self._static_roles.get(channel)

    async def set_role(self, channel: str, schedule_id: str, nickname: Optional[str] = None) -> Optional[Role]:
        """Bind ``channel`` to ``schedule_id``. Returns None if the schedule doesn't exist in PagerDuty."""
        schedule = await self._schedules.fetch_schedule(schedule_id)
        if schedule is None:
            logger.info("Rejected unknown schedule", channel=channel, schedule_id=schedule_id)
            return None

        row = await self._store.upsert_role_binding(channel, schedule_id, nickname or None)
        role = role_from_binding(RoleBinding.model_validate(row))
        logger.info(
            "Role binding saved",
            channel=channel,
            schedule_id=schedule_id,
            role_name=role.name
        )
        return role

    def static_roles(self) -> list[Role]:
        """Roles defined in the environment, without persisted bindings."""
        return list(self._static_roles.values())

    async def all_roles(self) -> list[Role]:
        """Every role to announce, one per channel; a persisted binding replaces a static one."""
        roles = dict(self._static_roles)
        for row in await self._store.list_role_bindings():
            binding = RoleBinding.model_validate(row)
            roles[binding.channel] = role_from_binding(binding)
        return list(roles.values())
