# subflix/app/infra/db/base.py
"""
Abstract base classes for subtitle persistence.
These interfaces allow swapping between the remote store and the local cache.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from subflix.app.domain.models import Subtitle, SubtitleStatus


class SubtitleStore(ABC):
    """
    Abstract interface for partitioned subtitle storage.

    Every record lives in one partition (`pending` or `approved`) and its
    `status` field always equals that partition.

    Implementations:
    - SupabaseSubtitleStore: remote durable tables
    - SqliteSubtitleCache: local cache / offline store
    - MirroredSubtitleStore: remote as source of truth, local as read cache
    """

    def __init__(self) -> None:
        self._last_uploaded_at: Optional[datetime] = None

    def _next_uploaded_at(self) -> datetime:
        """Current UTC time, never earlier than the previous insert of this store."""
        now = datetime.now(timezone.utc)
        if self._last_uploaded_at is not None and now < self._last_uploaded_at:
            now = self._last_uploaded_at
        self._last_uploaded_at = now
        return now

    @abstractmethod
    async def list(self, partition: SubtitleStatus) -> list[Subtitle]:
        """
        Return every record in the partition.

        Order is backend-dependent; callers must not rely on it.
        """
        pass

    async def list_by_owner(self, partition: SubtitleStatus, owner_id: str) -> list[Subtitle]:
        """`list` filtered by owner id equality."""
        owner = str(owner_id)
        return [subtitle for subtitle in await self.list(partition) if subtitle.owner_id == owner]

    @abstractmethod
    async def create(self, partition: SubtitleStatus, subtitle: Subtitle) -> str:
        """
        Insert a new record.

        Assigns a fresh id and `uploaded_at`, rewrites `status` to the partition.

        Returns:
            The generated id

        Raises:
            StoreUnavailableError: on I/O failure
        """
        pass

    @abstractmethod
    async def put(self, partition: SubtitleStatus, subtitle: Subtitle) -> str:
        """
        Write a record under its existing id and `uploaded_at`.

        Upsert semantics: writing the same id twice leaves a single record.

        Raises:
            StoreUnavailableError: on I/O failure
        """
        pass

    @abstractmethod
    async def get(self, partition: SubtitleStatus, subtitle_id: str) -> Subtitle:
        """
        Raises:
            SubtitleNotFoundError: if the id is not in the partition
            StoreUnavailableError: on I/O failure
        """
        pass

    @abstractmethod
    async def remove(self, partition: SubtitleStatus, subtitle_id: str) -> None:
        """
        Delete a record.

        Raises:
            SubtitleNotFoundError: if the id is not in the partition
            StoreUnavailableError: on I/O failure
        """
        pass


class AdminConfigSource(ABC):
    """
    Where the privileged-identity set comes from.

    Implementations must read the current value on every call so that
    revocations apply to the next check.
    """

    @abstractmethod
    async def get_admin_ids(self) -> frozenset[str]:
        pass
