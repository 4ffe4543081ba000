"""Long-running bot process: Socket Mode listener plus weekly announcement jobs."""

import asyncio
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.async_app import AsyncApp
from src.context import AppContext, build_context
from src.slack.app import register_handlers
from src.utils.errors import ConfigurationError
from src.utils.logging import correlation_context, generate_correlation_id, get_structured_logger, setup_logging
from src.utils.settings import Settings

logger = get_structured_logger(__name__)


async def announce_current_job(ctx: AppContext) -> None:
    with correlation_context(generate_correlation_id(prefix="cron_current")):
        try:
            await ctx.announcer.announce_current_assignments()
            await ctx.announcer.shout_about_tip_of_the_week()
        except Exception:
            logger.exception("Current assignments job failed")


async def announce_upcoming_job(ctx: AppContext) -> None:
    with correlation_context(generate_correlation_id(prefix="cron_upcoming")):
        try:
            await ctx.announcer.announce_upcoming_assignments()
        except Exception:
            logger.exception("Upcoming assignments job failed")


def schedule_jobs(ctx: AppContext) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone=ctx.settings.announcement_timezone)

    # Monday morning: who holds each role this week, plus the tip
    scheduler.add_job(
        announce_current_job,
        trigger="cron",
        day_of_week="mon",
        hour=7,
        minute=0,
        args=[ctx],
        id="announce_current",
        replace_existing=True,
    )

    scheduler.add_job(
        announce_upcoming_job,
        trigger="cron",
        day_of_week="wed",
        hour=7,
        minute=0,
        args=[ctx],
        id="announce_upcoming",
        replace_existing=True,
    )

    return scheduler


async def run() -> None:
    settings = Settings.from_env()
    if not settings.slack_app_token:
        raise ConfigurationError("SLACK_APP_TOKEN is required for Socket Mode")

    app = AsyncApp(
        token=settings.slack_bot_token,
        signing_secret=settings.slack_signing_secret,
        request_verification_enabled=False,
    )
    ctx = build_context(settings, slack=app.client)
    register_handlers(app, ctx)

    scheduler = schedule_jobs(ctx)
    scheduler.start()
    logger.info("Bot starting", timezone=settings.announcement_timezone, jobs=len(scheduler.get_jobs()))

    try:
        await AsyncSocketModeHandler(app, settings.slack_app_token).start_async()
    finally:
        scheduler.shutdown(wait=False)
        await ctx.aclose()


def main() -> None:
    setup_logging()
    asyncio.run(run())


if __name__ == "__main__":
    main()
