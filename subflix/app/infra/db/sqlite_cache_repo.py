from __future__ import annotations

import logging
from typing import Iterable
from uuid import uuid4

import aiosqlite

from subflix.app.domain.errors import StoreUnavailableError, SubtitleNotFoundError
from subflix.app.domain.models import Subtitle, SubtitleStatus
from subflix.app.infra.db.base import SubtitleStore
from subflix.app.infra.db.rows import COLUMNS, PARTITION_TABLES, row_to_subtitle, subtitle_to_row, table_for

logger = logging.getLogger(__name__)

LOCAL_ERRORS = (aiosqlite.Error, OSError)

_SELECT_COLUMNS = ", ".join(COLUMNS)
_PLACEHOLDERS = ", ".join("?" for _ in COLUMNS)


def _row_values(subtitle: Subtitle) -> tuple[str | None, ...]:
    row = subtitle_to_row(subtitle)
    return tuple(row[column] for column in COLUMNS)


class SqliteSubtitleCache(SubtitleStore):
    """
    Local cache / offline store.

    One SQLite table per partition, keyed by the same id as the remote store.
    Reconciled against the remote store only through `replace_partition`.
    """

    def __init__(self, sqlite_path: str):
        super().__init__()
        self._path = sqlite_path

    async def init(self) -> None:
        """Create the partition tables."""
        try:
            async with aiosqlite.connect(self._path) as db:
                for table in PARTITION_TABLES.values():
                    await db.execute(
                        f"""
                        CREATE TABLE IF NOT EXISTS {table} (
                          id TEXT PRIMARY KEY,
                          title TEXT NOT NULL,
                          uploader_name TEXT NOT NULL,
                          owner_id TEXT NOT NULL,
                          content TEXT NOT NULL DEFAULT '',
                          file_url TEXT,
                          donation_link TEXT,
                          poster_url TEXT,
                          status TEXT NOT NULL,
                          uploaded_at TEXT
                        )
                        """
                    )
                    await db.execute(f"CREATE INDEX IF NOT EXISTS idx_{table}_owner ON {table}(owner_id)")
                await db.commit()
        except LOCAL_ERRORS as error:
            logger.error("Local cache error during init: %s", error)
            raise StoreUnavailableError("init", str(error)) from error
        logger.info("SqliteSubtitleCache initialized: path=%s", self._path)

    async def _fetch(self, operation: str, query: str, params: tuple = ()) -> list[Subtitle]:
        try:
            async with aiosqlite.connect(self._path) as db:
                db.row_factory = aiosqlite.Row
                async with db.execute(query, params) as cur:
                    rows = await cur.fetchall()
        except LOCAL_ERRORS as error:
            logger.error("Local cache error during %s: %s", operation, error)
            raise StoreUnavailableError(operation, str(error)) from error
        return [row_to_subtitle(dict(row)) for row in rows]

    async def list(self, partition: SubtitleStatus) -> list[Subtitle]:
        table = table_for(partition)
        return await self._fetch("list", f"SELECT {_SELECT_COLUMNS} FROM {table} ORDER BY rowid")

    async def list_by_owner(self, partition: SubtitleStatus, owner_id: str) -> list[Subtitle]:
        table = table_for(partition)
        return await self._fetch(
            "list_by_owner",
            f"SELECT {_SELECT_COLUMNS} FROM {table} WHERE owner_id = ? ORDER BY rowid",
            (str(owner_id),),
        )

    async def get(self, partition: SubtitleStatus, subtitle_id: str) -> Subtitle:
        table = table_for(partition)
        found = await self._fetch(
            "get",
            f"SELECT {_SELECT_COLUMNS} FROM {table} WHERE id = ?",
            (str(subtitle_id),),
        )
        if not found:
            raise SubtitleNotFoundError(str(subtitle_id), table)
        return found[0]

    async def create(self, partition: SubtitleStatus, subtitle: Subtitle) -> str:
        record = subtitle.in_partition(partition)
        record.id = str(uuid4())
        record.uploaded_at = self._next_uploaded_at()
        table = table_for(partition)

        await self._write(
            "create",
            f"INSERT INTO {table} ({_SELECT_COLUMNS}) VALUES ({_PLACEHOLDERS})",
            _row_values(record),
        )
        logger.info("Cached new subtitle: id=%s, partition=%s, owner=%s", record.id, table, record.owner_id)
        return record.id

    async def put(self, partition: SubtitleStatus, subtitle: Subtitle) -> str:
        table = table_for(partition)
        await self._write(
            "put",
            f"INSERT OR REPLACE INTO {table} ({_SELECT_COLUMNS}) VALUES ({_PLACEHOLDERS})",
            _row_values(subtitle.in_partition(partition)),
        )
        return subtitle.id

    async def remove(self, partition: SubtitleStatus, subtitle_id: str) -> None:
        table = table_for(partition)
        deleted = await self._write("remove", f"DELETE FROM {table} WHERE id = ?", (str(subtitle_id),))
        if deleted == 0:
            raise SubtitleNotFoundError(str(subtitle_id), table)
        logger.info("Removed cached subtitle: id=%s, partition=%s", subtitle_id, table)

    async def _write(self, operation: str, query: str, params: tuple) -> int:
        try:
            async with aiosqlite.connect(self._path) as db:
                cur = await db.execute(query, params)
                await db.commit()
                return int(cur.rowcount)
        except LOCAL_ERRORS as error:
            logger.error("Local cache error during %s: %s", operation, error)
            raise StoreUnavailableError(operation, str(error)) from error

    async def replace_partition(self, partition: SubtitleStatus, subtitles: Iterable[Subtitle]) -> int:
        """
        Swap the whole partition content in one transaction.

        Used to refresh the cache from the source of truth; never merges.

        Returns:
            Number of records now in the partition
        """
        table = table_for(partition)
        values = [_row_values(subtitle.in_partition(partition)) for subtitle in subtitles]
        try:
            async with aiosqlite.connect(self._path) as db:
                await db.execute(f"DELETE FROM {table}")
                await db.executemany(
                    f"INSERT OR REPLACE INTO {table} ({_SELECT_COLUMNS}) VALUES ({_PLACEHOLDERS})",
                    values,
                )
                await db.commit()
        except LOCAL_ERRORS as error:
            logger.error("Local cache error during replace_partition: %s", error)
            raise StoreUnavailableError("replace_partition", str(error)) from error

        logger.info("Replaced cached partition: partition=%s, count=%d", table, len(values))
        return len(values)

    async def clear(self) -> None:
        for partition in PARTITION_TABLES:
            await self.replace_partition(partition, [])
