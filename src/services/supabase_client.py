"""Supabase client wrapper and the table operations the bot needs."""

from typing import Optional
from datetime import datetime, timezone
from supabase import create_client, Client
from supabase.client import ClientOptions
from src.utils.errors import SupabaseError
from src.utils.settings import Settings
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

ROLES_TABLE = "support_roles"
KUDOS_TABLE = "kudos"
POLLS_TABLE = "polls"


def create_supabase_client(settings: Settings) -> Client:
    """Create the Supabase client once at process start."""
    options = ClientOptions(
        auto_refresh_token=False,
        persist_session=False,
    )
    client = create_client(settings.supabase_url, settings.supabase_key, options)
    logger.info("Supabase client initialized", url=settings.supabase_url)
    return client


class SupabaseClient:
    """Async context manager around an already-created Supabase client."""

    def __init__(self, client: Client):
        self.client = client

    async def __aenter__(self) -> Client:
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                error=str(exc_val),
                error_type=exc_type.__name__
            )
        return False


class SupabaseStore:
    """Single-row CRUD over the support_roles, kudos and polls tables.

    Every mutation is one upsert or update scoped by a natural key, so
    concurrent invocations settle as last-write-wins.
    """

    def __init__(self, client: Client):
        self._client = client

    def _session(self) -> SupabaseClient:
        return SupabaseClient(self._client)

    # Role bindings
    async def upsert_role_binding(self, channel: str, schedule_id: str, nickname: Optional[str]) -> dict:
        """Replace the binding for a channel; a missing nickname clears any previous one."""
        async with self._session() as client:
            try:
                result = client.table(ROLES_TABLE).upsert(
                    {
                        "channel": channel,
                        "schedule_id": schedule_id,
                        "nickname": nickname,
                        "updated_at": datetime.now(timezone.utc).isoformat(),
                    },
                    on_conflict="channel",
                ).execute()
                if result.data and len(result.data) > 0:
                    return result.data[0]
                raise SupabaseError(f"Failed to upsert role binding: {channel}")
            except SupabaseError:
                raise
            except Exception as e:
                raise SupabaseError(f"Failed to upsert role binding: {e}")

    async def get_role_binding(self, channel: str) -> Optional[dict]:
        async with self._session() as client:
            try:
                result = client.table(ROLES_TABLE).select("*").eq("channel", channel).execute()
                return result.data[0] if result.data and len(result.data) > 0 else None
            except Exception as e:
                raise SupabaseError(f"Failed to get role binding: {e}")

    async def list_role_bindings(self) -> list[dict]:
        async with self._session() as client:
            try:
                result = client.table(ROLES_TABLE).select("*").order("channel").execute()
                return result.data if result.data else []
            except Exception as e:
                raise SupabaseError(f"Failed to list role bindings: {e}")

    # Kudos
    async def insert_kudos(self, row: dict) -> dict:
        async with self._session() as client:
            try:
                result = client.table(KUDOS_TABLE).insert(row).execute()
                if result.data and len(result.data) > 0:
                    return result.data[0]
                raise SupabaseError("Failed to insert kudos: no data returned")
            except SupabaseError:
                raise
            except Exception as e:
                raise SupabaseError(f"Failed to insert kudos: {e}")

    async def list_kudos(self, since: Optional[datetime] = None) -> list[dict]:
        """Kudos newest first, optionally bounded below (inclusive) by ``since``."""
        async with self._session() as client:
            try:
                query = client.table(KUDOS_TABLE).select("*")
                if since is not None:
                    query = query.gte("created_at", since.isoformat())
                result = query.order("created_at", desc=True).execute()
                return result.data if result.data else []
            except Exception as e:
                raise SupabaseError(f"Failed to list kudos: {e}")

    # Polls
    async def insert_poll(self, row: dict) -> dict:
        async with self._session() as client:
            try:
                result = client.table(POLLS_TABLE).insert(row).execute()
                if result.data and len(result.data) > 0:
                    return result.data[0]
                raise SupabaseError("Failed to create poll: no data returned")
            except SupabaseError:
                raise
            except Exception as e:
                raise SupabaseError(f"Failed to create poll: {e}")

    async def get_poll(self, poll_id: str) -> Optional[dict]:
        async with self._session() as client:
            try:
                result = client.table(POLLS_TABLE).select("*").eq("id", poll_id).execute()
                return result.data[0] if result.data and len(result.data) > 0 else None
            except Exception as e:
                raise SupabaseError(f"Failed to get poll: {e}")

    async def update_open_poll(self, poll_id: str, updates: dict) -> Optional[dict]:
        """Update a poll only while it is still open.

        Returns the updated row, or None when no open poll matched (closed in
        the meantime or gone).
        """
        async with self._session() as client:
            try:
                result = (
                    client.table(POLLS_TABLE)
                    .update(updates)
                    .eq("id", poll_id)
                    .is_("closed_at", "null")
                    .execute()
                )
                return result.data[0] if result.data and len(result.data) > 0 else None
            except Exception as e:
                raise SupabaseError(f"Failed to update poll {poll_id}: {e}")
