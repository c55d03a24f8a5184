from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from subflix.app.domain.models import Subtitle
from subflix.app.infra.storage.base import BlobStore


class SubmitSubtitleRequest(BaseModel):
    title: str = Field(..., max_length=300)
    content: str = ""
    fileUrl: Optional[str] = None
    donationLink: Optional[str] = None
    posterUrl: Optional[str] = None
    uploader: Optional[str] = None


class SubmitSubtitleResponse(BaseModel):
    id: str
    status: Literal["pending"] = "pending"


class SubtitleResponse(BaseModel):
    id: str
    title: str
    uploader: str
    userId: str
    content: str = ""
    fileUrl: Optional[str] = None
    donationLink: Optional[str] = None
    posterUrl: Optional[str] = None
    status: Literal["pending", "approved"]
    uploadedAt: Optional[datetime] = None

    @classmethod
    def from_domain(cls, subtitle: Subtitle, blob_store: Optional[BlobStore] = None) -> "SubtitleResponse":
        """`blob_store` turns stored file references into download URLs."""
        file_url = blob_store.resolve_url(subtitle.file_url) if blob_store else subtitle.file_url
        return cls(
            id=subtitle.id,
            title=subtitle.title,
            uploader=subtitle.uploader_name,
            userId=subtitle.owner_id,
            content=subtitle.content,
            fileUrl=file_url,
            donationLink=subtitle.donation_link,
            posterUrl=subtitle.poster_url,
            status=subtitle.status.value,
            uploadedAt=subtitle.uploaded_at,
        )


class SubtitleListResponse(BaseModel):
    items: list[SubtitleResponse] = Field(default_factory=list)
    total: int = 0


class CacheRefreshResponse(BaseModel):
    refreshed: dict[str, int]
