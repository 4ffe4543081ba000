"""Error handling utilities."""


class SupportBotError(Exception):
    """Base exception for the support bot."""
    pass


class ConfigurationError(SupportBotError):
    """Required configuration is missing or malformed."""
    pass


class SupabaseError(SupportBotError):
    """Supabase operation error."""
    pass


class PagerDutyError(SupportBotError):
    """PagerDuty request failed after retrying."""
    pass


class ScheduleEmptyError(SupportBotError):
    """Nobody is on the schedule in the requested window."""

    def __init__(self, schedule_id: str):
        super().__init__(f"No one found on schedule {schedule_id}")
        self.schedule_id = schedule_id


class ChannelNotFoundError(SupportBotError):
    """Companion support channel not found in the first page of channels."""
    pass


class InvalidWindowError(SupportBotError):
    """Kudos listing window is neither "all" nor a number of days."""

    def __init__(self, raw: str):
        super().__init__(f"{raw} is neither \"all\" nor a valid number")
        self.raw = raw
