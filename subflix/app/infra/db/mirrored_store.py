# subflix/app/infra/db/mirrored_store.py
"""
Remote store as source of truth, local cache for reads.
Every write goes to the remote store first; the touched partition of the
cache is then refreshed wholesale from the remote store. Listings come from
the cache, single-record lookups from the remote store.
"""
from __future__ import annotations

import logging

from subflix.app.domain.errors import StoreUnavailableError
from subflix.app.domain.models import Subtitle, SubtitleStatus
from subflix.app.infra.db.base import SubtitleStore
from subflix.app.infra.db.cache_sync import CacheSyncService
from subflix.app.infra.db.sqlite_cache_repo import SqliteSubtitleCache

logger = logging.getLogger(__name__)


class MirroredSubtitleStore(SubtitleStore):
    def __init__(self, remote: SubtitleStore, local: SqliteSubtitleCache):
        super().__init__()
        self.remote = remote
        self.local = local
        self._sync = CacheSyncService(remote, local)
        # Partitions whose cache copy may lag behind the remote store
        self._stale: set[SubtitleStatus] = set(SubtitleStatus)

    def is_stale(self, partition: SubtitleStatus) -> bool:
        return SubtitleStatus(partition) in self._stale

    async def refresh(self, partition: SubtitleStatus) -> int:
        """
        Replace the cached partition with the remote content.

        Raises:
            StoreUnavailableError: if either store fails; the partition stays stale
        """
        partition = SubtitleStatus(partition)
        self._stale.add(partition)
        count = await self._sync.refresh(partition)
        self._stale.discard(partition)
        return count

    async def refresh_all(self) -> dict[str, int]:
        return {partition.value: await self.refresh(partition) for partition in SubtitleStatus}

    async def _after_write(self, partition: SubtitleStatus) -> None:
        try:
            await self.refresh(partition)
        except StoreUnavailableError as error:
            logger.warning(
                "Cache refresh failed after remote write, serving %s from remote: %s",
                partition.value,
                error,
            )

    async def _read_source(self, partition: SubtitleStatus) -> SubtitleStore:
        """Local cache when fresh; otherwise retry the refresh, falling back to remote."""
        partition = SubtitleStatus(partition)
        if partition in self._stale:
            try:
                await self.refresh(partition)
            except StoreUnavailableError as error:
                logger.warning("Cache still stale for %s, reading remote: %s", partition.value, error)
                return self.remote
        return self.local

    async def list(self, partition: SubtitleStatus) -> list[Subtitle]:
        source = await self._read_source(partition)
        return await source.list(partition)

    async def list_by_owner(self, partition: SubtitleStatus, owner_id: str) -> list[Subtitle]:
        source = await self._read_source(partition)
        return await source.list_by_owner(partition, owner_id)

    async def get(self, partition: SubtitleStatus, subtitle_id: str) -> Subtitle:
        """
        Always answered by the remote store.

        Other instances write to the remote store without touching this cache,
        so existence checks before a write must not trust a cached copy.
        """
        return await self.remote.get(partition, subtitle_id)

    async def create(self, partition: SubtitleStatus, subtitle: Subtitle) -> str:
        subtitle_id = await self.remote.create(partition, subtitle)
        await self._after_write(SubtitleStatus(partition))
        return subtitle_id

    async def put(self, partition: SubtitleStatus, subtitle: Subtitle) -> str:
        subtitle_id = await self.remote.put(partition, subtitle)
        await self._after_write(SubtitleStatus(partition))
        return subtitle_id

    async def remove(self, partition: SubtitleStatus, subtitle_id: str) -> None:
        try:
            await self.remote.remove(partition, subtitle_id)
        finally:
            # A NotFound from the remote store still means the cache may hold a ghost
            await self._after_write(SubtitleStatus(partition))
