"""PagerDuty schedule lookups: who holds a schedule at a given moment, and schedule metadata."""

from typing import Optional
from datetime import datetime, timedelta, timezone
import httpx
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_fixed
from src.models.pagerduty import Assignment, PagerDutySchedule
from src.utils.errors import PagerDutyError, ScheduleEmptyError
from src.utils.settings import Settings
from src.utils.logging import get_structured_logger, log_timing, mask_email

logger = get_structured_logger(__name__)

RETRY_BACKOFF_SECONDS = 0.5
REQUEST_TIMEOUT_SECONDS = 10.0
# Rotations hand over at different hours; noon UTC is inside every team's working day
ALIGNMENT_HOUR_UTC = 12


def create_pagerduty_http_client(settings: Settings) -> httpx.AsyncClient:
    """HTTP client for the PagerDuty REST API v2."""
    return httpx.AsyncClient(
        base_url=settings.pagerduty_api_url,
        headers={
            "Authorization": f"Token token={settings.pagerduty_token}",
            "Accept": "application/vnd.pagerduty+json;version=2",
        },
        timeout=REQUEST_TIMEOUT_SECONDS,
    )


def instant_n_weeks_from_now(
    n: int,
    weekday: Optional[int] = None,
    now: Optional[datetime] = None,
) -> datetime:
    """Noon UTC, ``n`` weeks from now, optionally moved to an ISO weekday (1 = Monday) of that week."""
    current = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    target = current + timedelta(weeks=n)
    if weekday is not None:
        target += timedelta(days=weekday - target.isoweekday())
    return target.replace(hour=ALIGNMENT_HOUR_UTC, minute=0, second=0, microsecond=0)


def _log_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        "PagerDuty request failed, retrying",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()),
        backoff_seconds=retry_state.next_action.sleep if retry_state.next_action else None
    )


class PagerDutyScheduleClient:
    """Schedule lookup adapter with a single fixed-backoff retry."""

    def __init__(self, http: httpx.AsyncClient, retry_backoff_seconds: float = RETRY_BACKOFF_SECONDS):
        self._http = http
        self._retry_backoff_seconds = retry_backoff_seconds

    async def _get(self, path: str, params: Optional[dict] = None) -> httpx.Response:
        """GET with one retry on transport failure or a 5xx response."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(2),
            wait=wait_fixed(self._retry_backoff_seconds),
            retry=retry_if_exception_type(httpx.HTTPError),
            before_sleep=_log_retry,
            reraise=True
        )
        try:
            async for attempt in retrying:
                with attempt:
                    with log_timing("pagerduty_request", logger=logger, path=path):
                        response = await self._http.get(path, params=params)
                    if response.status_code >= 500:
                        response.raise_for_status()
        except httpx.HTTPError as e:
            raise PagerDutyError(f"PagerDuty request {path} failed: {e}") from e
        return response

    async def person_on_call_at(self, schedule_id: str, instant: datetime) -> Assignment:
        """Fetch who holds the schedule at ``instant``.

        One request per person: when several users are fetched at once there's
        no guarantee they come back in rotation order. The range is a day long
        so this works with layers covering only part of a day.
        """
        params = {
            "since": instant.isoformat(),
            "until": (instant + timedelta(days=1)).isoformat(),
        }
        response = await self._get(f"/schedules/{schedule_id}/users", params=params)
        if response.status_code != 200:
            raise PagerDutyError(
                f"Failed to fetch users of schedule {schedule_id}: HTTP {response.status_code}"
            )
        users = response.json().get("users") or []
        if not users:
            raise ScheduleEmptyError(schedule_id)

        person = Assignment.model_validate(users[0])
        logger.debug(
            "Resolved person on call",
            schedule_id=schedule_id,
            instant=instant.isoformat(),
            email=mask_email(person.email)
        )
        return person

    async def person_on_call_n_weeks_from_now(
        self,
        n: int,
        schedule_id: str,
        weekday: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Assignment:
        return await self.person_on_call_at(schedule_id, instant_n_weeks_from_now(n, weekday, now))

    async def fetch_schedule(self, schedule_id: str) -> Optional[PagerDutySchedule]:
        """Schedule metadata, or None if the schedule doesn't exist."""
        response = await self._get(f"/schedules/{schedule_id}")
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise PagerDutyError(
                f"Failed to fetch schedule {schedule_id}: HTTP {response.status_code}"
            )
        return PagerDutySchedule.model_validate(response.json()["schedule"])
