"""Kudos ledger - append-only peer recognition."""

import re
from typing import Optional, Union
from datetime import datetime, timedelta, timezone
from ulid import ULID
from src.models.kudos import KudosEntry, KudosRejection
from src.services.supabase_client import SupabaseStore
from src.utils.errors import InvalidWindowError
from src.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

DEFAULT_WINDOW_DAYS = 7
_MENTION_PATTERN = re.compile(r"^<@([A-Z0-9]+)(?:\|[^>]*)?>$", re.IGNORECASE)


def generate_kudos_id() -> str:
    """Time-sortable kudos ID (ULID format)."""
    return str(ULID())


def parse_target_mention(token: Optional[str]) -> Optional[str]:
    """Slack user ID from an escaped mention such as "<@U123|jane>"."""
    if not token:
        return None
    match = _MENTION_PATTERN.match(token)
    return match.group(1) if match else None


def parse_window(arg: Optional[str]) -> Optional[int]:
    """Days to look back: default 7, None for "all"; raises InvalidWindowError otherwise."""
    if arg is None or arg == "":
        return DEFAULT_WINDOW_DAYS
    if arg == "all":
        return None
    try:
        days = int(arg)
    except ValueError:
        raise InvalidWindowError(arg)
    if days < 0:
        raise InvalidWindowError(arg)
    return days


def display_reason(reason: str) -> str:
    return re.sub(r"^for ", "", reason)


def format_kudos_list(entries: list[KudosEntry], days: Optional[int]) -> str:
    period = f"the past {days} day{'' if days == 1 else 's'}" if days is not None else "all of history"
    header = f"💖 *{len(entries) or 'No'} kudos given in {period}{':' if entries else ''}*"
    lines = [
        f"- to <@{entry.target_slack_user_id}> from <@{entry.source_slack_user_id}> "
        f"for {display_reason(entry.reason)} ({entry.created_at:%b} {entry.created_at.day}, {entry.created_at.year})"
        for entry in entries
    ]
    return "\n".join([header, *lines])


class KudosLedger:

    def __init__(self, store: SupabaseStore):
        self._store = store

    async def give(
        self,
        source_user_id: str,
        target_user_id: str,
        reason: str,
        channel_id: str,
    ) -> Union[KudosEntry, KudosRejection]:
        if target_user_id == source_user_id:
            return KudosRejection.SELF_KUDOS
        reason = (reason or "").strip()
        if not reason:
            return KudosRejection.EMPTY_REASON

        row = await self._store.insert_kudos({
            "id": generate_kudos_id(),
            "slack_channel_id": channel_id,
            "source_slack_user_id": source_user_id,
            "target_slack_user_id": target_user_id,
            "reason": reason,
        })
        entry = KudosEntry.model_validate(row)
        logger.info(
            "Kudos given",
            kudos_id=entry.id,
            source_user=mask_user_id(source_user_id),
            target_user=mask_user_id(target_user_id)
        )
        return entry

    async def list(self, days: Optional[int], now: Optional[datetime] = None) -> list[KudosEntry]:
        """Newest first; ``days=None`` lists all of history."""
        since = None
        if days is not None:
            since = (now or datetime.now(timezone.utc)) - timedelta(days=days)
        rows = await self._store.list_kudos(since)
        return [KudosEntry.model_validate(row) for row in rows]
