from __future__ import annotations

from dataclasses import replace
from uuid import uuid4

import pytest

from subflix.app.domain.errors import StoreUnavailableError, SubtitleNotFoundError
from subflix.app.domain.models import Subtitle, SubtitleStatus
from subflix.app.infra.db.base import AdminConfigSource, SubtitleStore
from subflix.app.services.identity_gate import IdentityGate


class InMemorySubtitleStore(SubtitleStore):
    """Dict-backed store; `fail_on` names operations that raise StoreUnavailableError."""

    def __init__(self) -> None:
        super().__init__()
        self.partitions: dict[SubtitleStatus, dict[str, Subtitle]] = {
            SubtitleStatus.PENDING: {},
            SubtitleStatus.APPROVED: {},
        }
        self.fail_on: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    def _check(self, operation: str, partition: SubtitleStatus) -> dict[str, Subtitle]:
        partition = SubtitleStatus(partition)
        self.calls.append((operation, partition.value))
        if operation in self.fail_on or f"{operation}:{partition.value}" in self.fail_on:
            raise StoreUnavailableError(operation, "injected failure")
        return self.partitions[partition]

    async def list(self, partition: SubtitleStatus) -> list[Subtitle]:
        return [replace(s) for s in self._check("list", partition).values()]

    async def create(self, partition: SubtitleStatus, subtitle: Subtitle) -> str:
        records = self._check("create", partition)
        record = subtitle.in_partition(partition)
        record.id = str(uuid4())
        record.uploaded_at = self._next_uploaded_at()
        records[record.id] = record
        return record.id

    async def put(self, partition: SubtitleStatus, subtitle: Subtitle) -> str:
        records = self._check("put", partition)
        records[subtitle.id] = subtitle.in_partition(partition)
        return subtitle.id

    async def get(self, partition: SubtitleStatus, subtitle_id: str) -> Subtitle:
        records = self._check("get", partition)
        if subtitle_id not in records:
            raise SubtitleNotFoundError(subtitle_id, SubtitleStatus(partition).value)
        return replace(records[subtitle_id])

    async def remove(self, partition: SubtitleStatus, subtitle_id: str) -> None:
        records = self._check("remove", partition)
        if subtitle_id not in records:
            raise SubtitleNotFoundError(subtitle_id, SubtitleStatus(partition).value)
        del records[subtitle_id]

    def ids(self, partition: SubtitleStatus) -> set[str]:
        return set(self.partitions[partition])


class StaticAdminSource(AdminConfigSource):
    def __init__(self, ids: set[str] | None = None) -> None:
        self.ids = set(ids or ())
        self.reads = 0

    async def get_admin_ids(self) -> frozenset[str]:
        self.reads += 1
        return frozenset(self.ids)


@pytest.fixture
def store() -> InMemorySubtitleStore:
    return InMemorySubtitleStore()


@pytest.fixture
def admin_source() -> StaticAdminSource:
    return StaticAdminSource({"admin1"})


@pytest.fixture
def gate(admin_source: StaticAdminSource) -> IdentityGate:
    return IdentityGate(admin_source)
