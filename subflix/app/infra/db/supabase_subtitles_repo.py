from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar
from uuid import uuid4

import httpx
from postgrest.exceptions import APIError
from starlette.concurrency import run_in_threadpool
from supabase import Client, create_client

from subflix.app.config import get_settings
from subflix.app.domain.errors import ConfigurationError, StoreUnavailableError, SubtitleNotFoundError
from subflix.app.domain.models import Subtitle, SubtitleStatus
from subflix.app.infra.db.base import AdminConfigSource, SubtitleStore
from subflix.app.infra.db.rows import row_to_subtitle, subtitle_to_row, table_for

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors surfaced by the supabase client for network and API failures
REMOTE_ERRORS = (APIError, httpx.HTTPError, ConnectionError, TimeoutError)

ADMIN_CONFIG_TABLE = "admin_config"
ADMIN_CONFIG_ROW_ID = "admins"


def _create_supabase_client() -> Client:
    settings = get_settings()
    errors = settings.supabase_errors()
    if errors:
        raise ConfigurationError(errors)
    return create_client(str(settings.SUPABASE_URL), settings.SUPABASE_SERVICE_ROLE_KEY)


async def _call_remote(operation: str, func: Callable[[], T]) -> T:
    """Run a blocking supabase call off the event loop, mapping failures."""
    try:
        return await run_in_threadpool(func)
    except REMOTE_ERRORS as error:
        logger.error("Remote store error during %s: %s", operation, error)
        raise StoreUnavailableError(operation, str(error)) from error


class SupabaseSubtitleStore(SubtitleStore):
    def __init__(self, client: Client | None = None):
        super().__init__()
        self._client = client or _create_supabase_client()
        logger.info("SupabaseSubtitleStore initialized")

    async def list(self, partition: SubtitleStatus) -> list[Subtitle]:
        table = table_for(partition)
        result = await _call_remote(
            "list",
            lambda: self._client.table(table).select("*").execute(),
        )
        return [row_to_subtitle(row) for row in (result.data or [])]

    async def list_by_owner(self, partition: SubtitleStatus, owner_id: str) -> list[Subtitle]:
        table = table_for(partition)
        result = await _call_remote(
            "list_by_owner",
            lambda: self._client.table(table).select("*").eq("owner_id", str(owner_id)).execute(),
        )
        return [row_to_subtitle(row) for row in (result.data or [])]

    async def create(self, partition: SubtitleStatus, subtitle: Subtitle) -> str:
        record = subtitle.in_partition(partition)
        record.id = str(uuid4())
        record.uploaded_at = self._next_uploaded_at()
        row = subtitle_to_row(record)
        table = table_for(partition)

        result = await _call_remote("create", lambda: self._client.table(table).insert(row).execute())
        if not result.data:
            raise StoreUnavailableError("create", "insert returned no rows")

        logger.info("Created subtitle: id=%s, partition=%s, owner=%s", record.id, table, record.owner_id)
        return record.id

    async def put(self, partition: SubtitleStatus, subtitle: Subtitle) -> str:
        row = subtitle_to_row(subtitle.in_partition(partition))
        table = table_for(partition)

        result = await _call_remote(
            "put",
            lambda: self._client.table(table).upsert(row, on_conflict="id").execute(),
        )
        if not result.data:
            raise StoreUnavailableError("put", "upsert returned no rows")

        logger.info("Stored subtitle: id=%s, partition=%s", subtitle.id, table)
        return subtitle.id

    async def get(self, partition: SubtitleStatus, subtitle_id: str) -> Subtitle:
        table = table_for(partition)
        result = await _call_remote(
            "get",
            lambda: self._client.table(table).select("*").eq("id", str(subtitle_id)).limit(1).execute(),
        )
        if not result.data:
            raise SubtitleNotFoundError(str(subtitle_id), table)
        return row_to_subtitle(result.data[0])

    async def remove(self, partition: SubtitleStatus, subtitle_id: str) -> None:
        table = table_for(partition)
        result = await _call_remote(
            "remove",
            lambda: self._client.table(table).delete().eq("id", str(subtitle_id)).execute(),
        )
        if not result.data:
            raise SubtitleNotFoundError(str(subtitle_id), table)
        logger.info("Removed subtitle: id=%s, partition=%s", subtitle_id, table)


class SupabaseAdminConfigSource(AdminConfigSource):
    """Reads the privileged ids from the `admin_config` record on every call."""

    def __init__(self, client: Client | None = None):
        self._client = client or _create_supabase_client()

    async def get_admin_ids(self) -> frozenset[str]:
        result = await _call_remote(
            "get_admin_ids",
            lambda: (
                self._client.table(ADMIN_CONFIG_TABLE)
                .select("ids")
                .eq("id", ADMIN_CONFIG_ROW_ID)
                .limit(1)
                .execute()
            ),
        )
        if not result.data:
            logger.warning("No %s record found in %s", ADMIN_CONFIG_ROW_ID, ADMIN_CONFIG_TABLE)
            return frozenset()
        return _normalize_ids(result.data[0].get("ids"))


def _normalize_ids(raw: Any) -> frozenset[str]:
    if not raw:
        return frozenset()
    if isinstance(raw, (str, int)):
        raw = [raw]
    return frozenset(str(value).strip() for value in raw if str(value).strip())
