from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from subflix.app.domain.models import Subtitle, SubtitleStatus

logger = logging.getLogger(__name__)

PARTITION_TABLES: dict[SubtitleStatus, str] = {
    SubtitleStatus.PENDING: "pending_subtitles",
    SubtitleStatus.APPROVED: "approved_subtitles",
}

COLUMNS = (
    "id",
    "title",
    "uploader_name",
    "owner_id",
    "content",
    "file_url",
    "donation_link",
    "poster_url",
    "status",
    "uploaded_at",
)


def table_for(partition: SubtitleStatus | str) -> str:
    return PARTITION_TABLES[SubtitleStatus(partition)]


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Normalize backend timestamps (ISO strings or datetimes) to tz-aware UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            normalized = value.replace("Z", "+00:00") if value.endswith("Z") else value
            parsed = datetime.fromisoformat(normalized)
        except ValueError:
            logger.warning("Unparseable timestamp %r, uploaded_at dropped", value)
            return None
    else:
        logger.warning("Unexpected timestamp type %s, uploaded_at dropped", type(value).__name__)
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _safe_str(value: object) -> str | None:
    return str(value) if value else None


def row_to_subtitle(row: Mapping[str, Any]) -> Subtitle:
    return Subtitle(
        id=str(row["id"]),
        title=str(row["title"]),
        uploader_name=str(row.get("uploader_name") or ""),
        owner_id=str(row["owner_id"]),
        status=SubtitleStatus(str(row["status"])),
        content=str(row.get("content") or ""),
        file_url=_safe_str(row.get("file_url")),
        donation_link=_safe_str(row.get("donation_link")),
        poster_url=_safe_str(row.get("poster_url")),
        uploaded_at=parse_datetime(row.get("uploaded_at")),
    )


def subtitle_to_row(subtitle: Subtitle) -> dict[str, str | None]:
    return {
        "id": subtitle.id,
        "title": subtitle.title,
        "uploader_name": subtitle.uploader_name,
        "owner_id": subtitle.owner_id,
        "content": subtitle.content,
        "file_url": subtitle.file_url,
        "donation_link": subtitle.donation_link,
        "poster_url": subtitle.poster_url,
        "status": SubtitleStatus(subtitle.status).value,
        "uploaded_at": subtitle.uploaded_at.isoformat() if subtitle.uploaded_at else None,
    }
