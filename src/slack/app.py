"""Slack command, action and view handlers.

Handlers are plain coroutines taking the app context, so they can be driven
directly in tests; ``register_handlers`` wires them into a Bolt ``AsyncApp``.
"""

from typing import Any, Callable
from slack_bolt.async_app import AsyncApp
from slack_sdk.web.async_client import AsyncWebClient
from src.context import AppContext
from src.models.kudos import KudosRejection
from src.models.poll import CloseOutcome, VoteOutcome
from src.services.announcements import linkify_role_name
from src.services.kudos import format_kudos_list, parse_target_mention, parse_window
from src.services.polls import is_valid_ranking, parse_ranking, render_results, validate_poll
from src.services.role_registry import (
    CONFIGURABLE_CHANNEL_PREFIXES,
    is_configurable_channel,
    is_valid_schedule_id,
)
from src.slack.poll_views import (
    ADD_OPTION_ACTION,
    CLOSE_ACTION,
    CREATE_POLL_CALLBACK,
    QUESTION_BLOCK,
    RANKING_BLOCK,
    VOTE_ACTION,
    VOTE_POLL_CALLBACK,
    create_errors_to_blocks,
    create_poll_view,
    poll_message_blocks,
    read_create_submission,
    read_ranking_submission,
    view_with_added_option,
    vote_view,
)
from src.utils.errors import InvalidWindowError, SupportBotError
from src.utils.logging import correlation_context, get_structured_logger

logger = get_structured_logger(__name__)

EPHEMERAL = "ephemeral"
IN_CHANNEL = "in_channel"
GENERIC_FAILURE = "😵 Something went wrong on our end. Please try again in a moment."


# /support-hero

async def handle_support_hero(ctx: AppContext, command: dict, respond: Callable) -> None:
    args = (command.get("text") or "").split()
    channel = command.get("channel_name") or ""

    if not args or args[0] == "show":
        role = await ctx.registry.resolve_role(channel)
        if role is None:
            await respond(
                text=(
                    f"🤷 No support role is configured for #{channel}. "
                    "Set one up with `/support-hero <PagerDuty schedule ID> [nickname]` in a "
                    f"{' or '.join(f'`{prefix}`' for prefix in CONFIGURABLE_CHANNEL_PREFIXES)} channel."
                ),
                response_type=EPHEMERAL,
            )
            return
        message = await ctx.announcer.describe_role(role)
        await respond(response_type=EPHEMERAL, **message.as_kwargs())
        return

    if not is_configurable_channel(channel):
        await respond(
            text=(
                "⚠️ Support roles can only be configured in channels starting with "
                f"{' or '.join(f'`{prefix}`' for prefix in CONFIGURABLE_CHANNEL_PREFIXES)}."
            ),
            response_type=EPHEMERAL,
        )
        return

    schedule_id = args[0]
    nickname = " ".join(args[1:]) or None
    if not is_valid_schedule_id(schedule_id):
        await respond(text=f"⚠️ `{schedule_id}` doesn't look like a PagerDuty schedule ID.", response_type=EPHEMERAL)
        return

    role = await ctx.registry.set_role(channel, schedule_id, nickname)
    if role is None:
        await respond(text=f"⚠️ Schedule `{schedule_id}` wasn't found in PagerDuty.", response_type=EPHEMERAL)
        return

    await respond(
        text=(
            f"✅ The {linkify_role_name(role, ctx.settings.pagerduty_base_url)} for #{channel} "
            f"now follows PagerDuty schedule `{role.schedule_id}`."
        ),
        response_type=IN_CHANNEL,
    )


# /kudos

async def handle_kudos(ctx: AppContext, command: dict, respond: Callable) -> None:
    args = (command.get("text") or "").split()
    user_id = command["user_id"]

    if args and args[0] == "show":
        try:
            days = parse_window(args[1] if len(args) > 1 else None)
        except InvalidWindowError as e:
            await respond(text=f"⚠️ {e.raw} is neither \"all\" nor a valid number!", response_type=EPHEMERAL)
            return
        entries = await ctx.kudos.list(days)
        await respond(text=format_kudos_list(entries, days), response_type=EPHEMERAL)
        return

    target_mention = args[0] if args else None
    target_user_id = parse_target_mention(target_mention)
    if not target_user_id:
        await respond(
            text=f"⚠️ You have to mention the person you're giving kudos to at the start of the message, <@{user_id}>!",
            response_type=EPHEMERAL,
        )
        return

    result = await ctx.kudos.give(user_id, target_user_id, " ".join(args[1:]), command["channel_id"])
    if result == KudosRejection.SELF_KUDOS:
        await respond(
            text=f"🙅 You can't just applaud yourself shamelessly like that, <@{user_id}>!",
            response_type=EPHEMERAL,
        )
        return
    if result == KudosRejection.EMPTY_REASON:
        await respond(
            text=f"⚠️ You have to include a reason for giving kudos, <@{user_id}>!",
            response_type=EPHEMERAL,
        )
        return

    await respond(
        text=f"💖 *Kudos given to <@{result.target_slack_user_id}> by <@{user_id}>*:\n👉 {result.reason}",
        response_type=IN_CHANNEL,
    )


# Polls

async def handle_poll_command(command: dict, client: AsyncWebClient) -> None:
    await client.views_open(trigger_id=command["trigger_id"], view=create_poll_view(command["channel_id"]))


async def handle_add_poll_option(body: dict, client: AsyncWebClient) -> None:
    view = body.get("view")
    if not view:
        return
    await client.views_update(view_id=view["id"], hash=view.get("hash"), view=view_with_added_option(view))


async def handle_create_poll_submission(
    ctx: AppContext,
    ack: Callable,
    body: dict,
    view: dict,
    client: AsyncWebClient,
) -> None:
    """Validate, ack, then persist; Slack drops view acks slower than 3 seconds."""
    channel_id, question, options = read_create_submission(view)
    user_id = body["user"]["id"]
    _, _, errors = validate_poll(question, options)
    if errors:
        await ack(response_action="errors", errors=create_errors_to_blocks(errors))
        return

    await ack()
    try:
        creation = await ctx.polls.create_poll(channel_id, user_id, question, options)
    except SupportBotError:
        logger.exception("Poll creation failed", channel_id=channel_id)
        await client.chat_postEphemeral(
            channel=channel_id, user=user_id, text="Error creating poll. Please try again later."
        )
        return

    poll = creation.poll
    await client.chat_postMessage(channel=channel_id, text=poll.question, blocks=poll_message_blocks(poll))


async def handle_vote_button(ctx: AppContext, body: dict, action: dict, client: AsyncWebClient, respond: Callable) -> None:
    poll = await ctx.polls.get_poll(action["value"])
    if poll is None:
        await respond(text="Poll not found.", response_type=EPHEMERAL, replace_original=False)
        return
    if not poll.is_open:
        await respond(text="This poll is closed.", response_type=EPHEMERAL, replace_original=False)
        return
    await client.views_open(trigger_id=body["trigger_id"], view=vote_view(poll, body["user"]["id"]))


def _invalid_ranking_text(option_count: int) -> str:
    return f"Invalid ranking. Please submit a comma-separated permutation of numbers from 1 to {option_count}."


async def handle_vote_submission(
    ctx: AppContext,
    ack: Callable,
    body: dict,
    view: dict,
    client: AsyncWebClient,
) -> None:
    metadata, raw_ranking = read_ranking_submission(view)
    user_id = body["user"]["id"]
    ranking = parse_ranking(raw_ranking)
    if not is_valid_ranking(ranking, metadata["option_count"]):
        await ack(response_action="errors", errors={RANKING_BLOCK: _invalid_ranking_text(metadata["option_count"])})
        return

    await ack()
    try:
        outcome = await ctx.polls.vote(metadata["poll_id"], user_id, ranking)
    except SupportBotError:
        logger.exception("Vote submission failed", poll_id=metadata["poll_id"])
        text = GENERIC_FAILURE
    else:
        if outcome == VoteOutcome.INVALID_RANKING:
            text = _invalid_ranking_text(metadata["option_count"])
        elif outcome == VoteOutcome.CLOSED:
            text = "This poll is closed."
        elif outcome == VoteOutcome.NOT_FOUND:
            text = "This poll no longer exists."
        else:
            text = "Your vote has been recorded."
    await client.chat_postEphemeral(channel=metadata["channel_id"], user=user_id, text=text)


async def handle_close_button(ctx: AppContext, action: dict, client: AsyncWebClient, respond: Callable) -> None:
    closure = await ctx.polls.close(action["value"])
    if closure.outcome == CloseOutcome.NOT_FOUND:
        await respond(text="Poll not found.", response_type=EPHEMERAL, replace_original=False)
        return
    if closure.outcome == CloseOutcome.ALREADY_CLOSED:
        await respond(text="Poll is already closed.", response_type=EPHEMERAL, replace_original=False)
        return

    message = render_results(closure.poll, closure.tally)
    await client.chat_postMessage(channel=closure.poll.slack_channel_id, **message.as_kwargs())


async def _report_failure(name: str, respond: Callable, **context: Any) -> None:
    logger.exception("Slack handler failed", handler=name, **context)
    await respond(text=GENERIC_FAILURE, response_type=EPHEMERAL, replace_original=False)


class _TrackedAck:
    """Bolt ack that remembers whether it has been called."""

    def __init__(self, ack: Callable):
        self._ack = ack
        self.called = False

    async def __call__(self, *args: Any, **kwargs: Any) -> None:
        self.called = True
        await self._ack(*args, **kwargs)


def register_handlers(app: AsyncApp, ctx: AppContext) -> None:
    """Wire handlers into Bolt; each invocation gets its own correlation ID and failure report."""

    @app.command("/support-hero")
    async def support_hero_command(ack, command, respond):
        await ack()
        with correlation_context():
            try:
                await handle_support_hero(ctx, command, respond)
            except Exception:
                await _report_failure("support-hero", respond, channel=command.get("channel_name"))

    @app.command("/kudos")
    async def kudos_command(ack, command, respond):
        await ack()
        with correlation_context():
            try:
                await handle_kudos(ctx, command, respond)
            except Exception:
                await _report_failure("kudos", respond, channel_id=command.get("channel_id"))

    @app.command("/poll")
    async def poll_command(ack, command, client, respond):
        await ack()
        with correlation_context():
            try:
                await handle_poll_command(command, client)
            except Exception:
                await _report_failure("poll", respond, channel_id=command.get("channel_id"))

    @app.action(ADD_OPTION_ACTION)
    async def add_poll_option(ack, body, client):
        await ack()
        with correlation_context():
            try:
                await handle_add_poll_option(body, client)
            except Exception:
                logger.exception("Slack handler failed", handler=ADD_OPTION_ACTION)

    @app.view(CREATE_POLL_CALLBACK)
    async def create_poll_submission(ack, body, view, client):
        tracked_ack = _TrackedAck(ack)
        with correlation_context():
            try:
                await handle_create_poll_submission(ctx, tracked_ack, body, view, client)
            except Exception:
                logger.exception("Slack handler failed", handler=CREATE_POLL_CALLBACK)
                if not tracked_ack.called:
                    await ack(response_action="errors", errors={QUESTION_BLOCK: GENERIC_FAILURE})

    @app.action(VOTE_ACTION)
    async def vote_button(ack, body, action, client, respond):
        await ack()
        with correlation_context():
            try:
                await handle_vote_button(ctx, body, action, client, respond)
            except Exception:
                await _report_failure(VOTE_ACTION, respond, poll_id=action.get("value"))

    @app.view(VOTE_POLL_CALLBACK)
    async def vote_submission(ack, body, view, client):
        tracked_ack = _TrackedAck(ack)
        with correlation_context():
            try:
                await handle_vote_submission(ctx, tracked_ack, body, view, client)
            except Exception:
                logger.exception("Slack handler failed", handler=VOTE_POLL_CALLBACK)
                if not tracked_ack.called:
                    await ack(response_action="errors", errors={RANKING_BLOCK: GENERIC_FAILURE})

    @app.action(CLOSE_ACTION)
    async def close_button(ack, action, client, respond):
        await ack()
        with correlation_context():
            try:
                await handle_close_button(ctx, action, client, respond)
            except Exception:
                await _report_failure(CLOSE_ACTION, respond, poll_id=action.get("value"))
