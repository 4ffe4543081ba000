"""Announcement endpoint (called via Vercel cron)."""

import json
import asyncio
from src.context import build_context
from src.models.message import BatchResult
from src.utils.logging import correlation_context, generate_correlation_id, get_structured_logger, setup_logging
from src.utils.settings import Settings

setup_logging()
logger = get_structured_logger(__name__)

MODES = ("current", "upcoming")


async def run_announcements(mode: str, settings: Settings) -> BatchResult:
    ctx = build_context(settings)
    try:
        if mode == "current":
            batch = await ctx.announcer.announce_current_assignments()
            await ctx.announcer.shout_about_tip_of_the_week()
            return batch
        return await ctx.announcer.announce_upcoming_assignments()
    finally:
        await ctx.aclose()


def _response(status_code: int, payload: dict) -> dict:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(payload)
    }


def handler(request):
    """
    Announce role holders.

    ``?mode=current`` posts this week's holders and the tip of the week;
    ``?mode=upcoming`` posts next week's and the week after's.
    """
    query_params = request.get("query", {}) or {}
    mode = query_params.get("mode", "current")
    if mode not in MODES:
        return _response(400, {"error": f"Unknown mode {mode!r}, expected one of {', '.join(MODES)}"})

    with correlation_context(generate_correlation_id(prefix=f"cron_{mode}")):
        try:
            batch = asyncio.run(run_announcements(mode, Settings.from_env()))
        except Exception as e:
            logger.exception("Announcement cron failed", mode=mode)
            return _response(500, {"error": str(e)})

    return _response(200, {
        "ok": not batch.failed,
        "mode": mode,
        "succeeded": batch.succeeded,
        "failed": batch.failed
    })
