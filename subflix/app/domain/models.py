# subflix/app/domain/models.py
"""
Domain models for the subtitle moderation workflow.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional
from urllib.parse import quote


PLACEHOLDER_POSTER_URL = "https://via.placeholder.com/300x450?text={title}"
ANONYMOUS_UPLOADER = "Anonymous"


class SubtitleStatus(str, Enum):
    """Moderation status; doubles as the storage partition name."""
    PENDING = "pending"
    APPROVED = "approved"


@dataclass
class SubtitleDraft:
    """User-supplied fields of a submission, before the store assigns an id."""
    title: str
    owner_id: str
    uploader_name: str = ""
    content: str = ""
    file_url: Optional[str] = None
    donation_link: Optional[str] = None
    poster_url: Optional[str] = None

    @property
    def has_payload(self) -> bool:
        """Inline text or a blob reference must be present."""
        return bool(self.content) or bool(self.file_url)


@dataclass
class Subtitle:
    """
    A subtitle submission as persisted in either partition.
    `status` always mirrors the partition the record lives in.
    """
    id: str
    title: str
    uploader_name: str
    owner_id: str
    status: SubtitleStatus

    content: str = ""
    file_url: Optional[str] = None
    donation_link: Optional[str] = None
    poster_url: Optional[str] = None

    # Set once by the store on create
    uploaded_at: Optional[datetime] = None

    @property
    def is_approved(self) -> bool:
        return self.status == SubtitleStatus.APPROVED

    def in_partition(self, partition: SubtitleStatus) -> "Subtitle":
        """Copy of this record with status rewritten for the target partition."""
        return replace(self, status=SubtitleStatus(partition))

    @classmethod
    def from_draft(cls, draft: SubtitleDraft) -> "Subtitle":
        title = draft.title.strip()
        return cls(
            id="",
            title=title,
            uploader_name=draft.uploader_name.strip() or ANONYMOUS_UPLOADER,
            owner_id=str(draft.owner_id),
            status=SubtitleStatus.PENDING,
            content=draft.content,
            file_url=draft.file_url or None,
            donation_link=draft.donation_link or None,
            poster_url=draft.poster_url or placeholder_poster_url(title),
        )


def placeholder_poster_url(title: str) -> str:
    return PLACEHOLDER_POSTER_URL.format(title=quote(title, safe=""))
