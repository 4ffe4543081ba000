"""Slack identity resolution - map a PagerDuty person to a Slack mention."""

from typing import Optional
from slack_sdk.web.async_client import AsyncWebClient
from slack_sdk.errors import SlackApiError
from src.models.pagerduty import Assignment
from src.utils.logging import get_structured_logger, mask_email

logger = get_structured_logger(__name__)

NO_ONE_SCHEDULED = "_no one scheduled_"


def format_mention(slack_user_id: str) -> str:
    return f"<@{slack_user_id}>"


class SlackMentionResolver:
    """Resolves assignments to mentions. Never raises: failures fall back to the plain name."""

    def __init__(self, client: AsyncWebClient):
        self._client = client

    async def mention_for(self, assignment: Optional[Assignment]) -> str:
        if assignment is None:
            return NO_ONE_SCHEDULED
        if not assignment.email:
            return assignment.name

        try:
            response = await self._client.users_lookupByEmail(email=assignment.email)
        except SlackApiError as e:
            error = e.response.get("error") if e.response is not None else str(e)
            if error == "users_not_found":
                logger.info(
                    "No Slack user for PagerDuty email, using plain name",
                    email=mask_email(assignment.email)
                )
            else:
                logger.error(
                    "Slack user lookup failed",
                    email=mask_email(assignment.email),
                    error=error,
                    exc_info=True
                )
            return assignment.name
        except Exception as e:
            logger.error(
                "Slack user lookup failed",
                email=mask_email(assignment.email),
                error=str(e),
                exc_info=True
            )
            return assignment.name

        user_id = (response.get("user") or {}).get("id")
        return format_mention(user_id) if user_id else assignment.name
