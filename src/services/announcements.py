"""Announcement composition - pure functions from resolved assignments to Slack messages.

Everything here is deterministic for a given week number, so re-running an
announcement within the same week produces the same content.
"""

from typing import NamedTuple, Optional
from datetime import datetime, timezone
from zoneinfo import ZoneInfo
from src.models.message import SlackMessage
from src.models.role import Role


class Quip(NamedTuple):
    """``headline`` takes a ``{role}`` field, ``punchline`` a ``{mention}`` field."""
    headline: str
    punchline: str


class Tip(NamedTuple):
    headline: str
    extra_detail: str


QUIPS: list[Quip] = [
    Quip("It's your time to shine as {role}!", "Over to you, {mention}."),
    Quip("Make way for {role}…", "Good luck fighting ~crime~ bad data, {mention}!"),
    Quip("All hail {role}!", "May your tickets be few and your answers swift, {mention}."),
    Quip("Capes on, here comes {role}!", "This week {mention} keeps the support queue in check."),
    Quip("Please welcome {role} of the week!", "{mention}, the queue is all yours."),
]

TIPS: list[Tip] = [
    Tip("The average hedgehog has 7,000 spines, each 2.5 cm (1 in) long.", "Now you know."),
    Tip(
        "A teammate did an awesome job, or went out of their way?\n"
        "As a token of appreciation, use the `/kudos @person for <reason>` command!",
        "Each kudos gets a mention in the all-hands.",
    ),
    Tip(
        "Can't agree on a name, a date, or a lunch spot?\n"
        "Use `/poll` to run a ranked-choice vote right in the channel.",
        "Results are tallied with a Borda count, so second choices count too.",
    ),
    Tip(
        "Wondering who's on support duty for your team?\n"
        "Run `/support-hero` in the team channel.",
        "The support channel's topic always names the current hero as well.",
    ),
]

ON_CALL_TITLES = ["Pouring water", "Fighting fires", "Saving the day", "Standing by"]


def current_week_number(now: Optional[datetime] = None, tz: str = "Europe/London") -> int:
    """ISO week number in the announcement timezone; drives quip, title and tip rotation."""
    moment = now or datetime.now(timezone.utc)
    return moment.astimezone(ZoneInfo(tz)).isocalendar()[1]


def pick_quip(week_number: int) -> Quip:
    return QUIPS[week_number % len(QUIPS)]


def tip_of_the_week(week_number: int) -> Tip:
    return TIPS[week_number % len(TIPS)]


def on_call_title(week_number: int) -> str:
    return ON_CALL_TITLES[week_number % len(ON_CALL_TITLES)]


def linkify_role_name(role: Role, pagerduty_base_url: str) -> str:
    """Role name linked to its PagerDuty schedule, in Slack mrkdwn."""
    return f"<{pagerduty_base_url.rstrip('/')}/schedules#{role.schedule_id}|{role.name}>"


def role_reference(role: Role, pagerduty_base_url: str) -> str:
    """ "the Support Hero" for generic names, plain "Luigi" for custom nicknames."""
    linked = linkify_role_name(role, pagerduty_base_url)
    return f"the {linked}" if role.is_generic_name else linked


def topic_for(role: Role, mention: str) -> str:
    """Canonical support channel topic, used both to compare and to write."""
    return f"Current {role.name}: {mention}"


def compose_current_announcement(
    role: Role,
    mention: str,
    week_number: int,
    pagerduty_base_url: str,
) -> SlackMessage:
    quip = pick_quip(week_number)
    headline = quip.headline.format(role=role_reference(role, pagerduty_base_url))
    punchline = quip.punchline.format(mention=mention)
    return SlackMessage(
        text=f"*{headline}*\n{punchline}",
        blocks=[
            {"type": "section", "text": {"type": "mrkdwn", "text": f"*{headline}*\n{punchline}"}},
        ],
    )


def compose_upcoming_announcement(
    role: Role,
    next_mention: str,
    week_after_mention: str,
    pagerduty_base_url: str,
) -> SlackMessage:
    linked = linkify_role_name(role, pagerduty_base_url)
    return SlackMessage(
        text=f"*Next week's {linked}*: {next_mention}. The week after that: {week_after_mention}.",
        blocks=[
            {"type": "section", "text": {"type": "mrkdwn", "text": f"*Next week's {linked}:*\n{next_mention}"}},
            {
                "type": "context",
                "elements": [{"type": "mrkdwn", "text": f"The week after that: {week_after_mention}"}],
            },
        ],
    )


def compose_role_status(
    role: Role,
    mentions: tuple[str, str, str],
    pagerduty_base_url: str,
) -> SlackMessage:
    """Reply to `/support-hero show`: this week's holder, the next two, and the schedule."""
    current, upcoming, week_after = mentions
    linked = linkify_role_name(role, pagerduty_base_url)
    return SlackMessage(
        text=f"*This week's {linked}*: {current}. Next up: *{upcoming}*, then *{week_after}*.",
        blocks=[
            {"type": "section", "text": {"type": "mrkdwn", "text": f"*This week's {linked}:*\n{current}"}},
            {
                "type": "context",
                "elements": [
                    {"type": "mrkdwn", "text": f"Next up: *{upcoming}*, then *{week_after}*."},
                    {"type": "mrkdwn", "text": f"PagerDuty schedule: `{role.schedule_id}`"},
                ],
            },
        ],
    )


def compose_tip_of_the_week(week_number: int) -> SlackMessage:
    tip = tip_of_the_week(week_number)
    return SlackMessage(
        text=f"*Tip of the week*:\n*{tip.headline}*\n_{tip.extra_detail}_",
        blocks=[
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*Tip of the week:*\n{tip.headline}\n_{tip.extra_detail}_"},
            },
        ],
    )
