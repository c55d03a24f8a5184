# subflix/app/infra/db/cache_sync.py
"""
Cache reconciliation service.
Refreshes the local cache from the remote store one whole partition at a time.
"""
from __future__ import annotations

import logging

from subflix.app.domain.models import SubtitleStatus
from subflix.app.infra.db.base import SubtitleStore
from subflix.app.infra.db.sqlite_cache_repo import SqliteSubtitleCache

logger = logging.getLogger(__name__)


class CacheSyncService:
    """
    Keeps the local cache a copy of the remote store.

    Responsibilities:
    - Replace a cached partition with the remote content (never merge)
    - Refresh both partitions on demand
    """

    def __init__(self, remote: SubtitleStore, local: SqliteSubtitleCache):
        self._remote = remote
        self._local = local

    async def refresh(self, partition: SubtitleStatus) -> int:
        """
        Replace one cached partition with the remote content.

        Args:
            partition: The partition to refresh

        Returns:
            Number of records now cached in that partition

        Raises:
            StoreUnavailableError: if either store fails; the cache keeps its
                previous content
        """
        partition = SubtitleStatus(partition)
        subtitles = await self._remote.list(partition)
        count = await self._local.replace_partition(partition, subtitles)
        logger.info("Cache refreshed: partition=%s, count=%d", partition.value, count)
        return count

    async def refresh_all(self) -> dict[str, int]:
        """
        Refresh every partition.

        Returns:
            Mapping of partition name to cached record count
        """
        return {partition.value: await self.refresh(partition) for partition in SubtitleStatus}
