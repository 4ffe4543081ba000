"""Keep the topic of a team's support channel naming the current role holder."""

from slack_sdk.web.async_client import AsyncWebClient
from src.models.role import Role
from src.services.announcements import topic_for
from src.services.role_registry import support_channel_name
from src.utils.errors import ChannelNotFoundError
from src.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)

CHANNEL_PAGE_SIZE = 1000


class ChannelTopicSynchronizer:
    """Sets "Current <role>: <mention>" on the support channel, skipping no-op writes."""

    def __init__(self, client: AsyncWebClient):
        self._client = client

    async def _find_channel(self, name: str) -> dict:
        # Only the first page is scanned; a miss is reported rather than paginated past
        with log_timing("slack_conversations_list", logger=logger, channel_name=name):
            response = await self._client.conversations_list(
                types="public_channel",
                exclude_archived=True,
                limit=CHANNEL_PAGE_SIZE,
            )
        for channel in response.get("channels") or []:
            if channel.get("name") == name and channel.get("id"):
                return channel
        raise ChannelNotFoundError(f"Channel #{name} wasn't found in the first page of results")

    async def sync_topic(self, role: Role, mention: str) -> bool:
        """Returns True if the topic was written, False if it was already up to date."""
        channel_name = support_channel_name(role.channel)
        channel = await self._find_channel(channel_name)

        if not channel.get("is_member"):
            await self._client.conversations_join(channel=channel["id"])
            logger.info("Joined support channel", channel_name=channel_name)

        desired_topic = topic_for(role, mention)
        current_topic = (channel.get("topic") or {}).get("value", "")
        if current_topic == desired_topic:
            logger.debug("Support channel topic already up to date", channel_name=channel_name)
            return False

        await self._client.conversations_setTopic(channel=channel["id"], topic=desired_topic)
        logger.info("Support channel topic updated", channel_name=channel_name, role_name=role.name)
        return True
