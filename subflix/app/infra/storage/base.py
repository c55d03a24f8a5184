# subflix/app/infra/storage/base.py
"""
Abstract base class for subtitle file blob storage.
The reference returned by an upload is opaque to the moderation core and is
what gets persisted as `file_url`; it must stay valid for as long as the
record exists.
"""
from __future__ import annotations

import re
import time
from abc import ABC, abstractmethod
from typing import Optional


class BlobStore(ABC):
    """
    Abstract interface for uploaded subtitle files.

    Implementations:
    - R2BlobStore: Cloudflare R2 (S3-compatible)
    """

    @abstractmethod
    def upload_bytes(
        self,
        object_key: str,
        data: bytes,
        content_type: str = "application/x-subrip",
    ) -> str:
        """
        Store the file and return a durable reference to it.

        The reference is either a permanent public URL or the bare object key;
        never a URL that expires.

        Raises:
            BlobUploadError: if the upload fails
        """
        pass

    @abstractmethod
    def generate_signed_get_url(
        self,
        object_key: str,
        expires_seconds: int = 3600,
    ) -> str:
        """
        Generate a short-lived download URL for a stored object.

        Raises:
            BlobStoreError: if the URL cannot be generated
        """
        pass

    @abstractmethod
    def delete_object(self, object_key: str) -> bool:
        """
        Delete a stored file.

        Returns:
            True if deletion was successful
        """
        pass

    def resolve_url(self, reference: Optional[str]) -> Optional[str]:
        """Turn a stored reference into a URL a client can download from."""
        if not reference or "://" in reference:
            return reference
        return self.generate_signed_get_url(reference)

    def generate_object_key(self, title: str, now_ms: Optional[int] = None) -> str:
        """
        Format: subtitles/{epoch_ms}-{title with whitespace as underscores}.srt
        """
        timestamp = now_ms if now_ms is not None else int(time.time() * 1000)
        safe_title = re.sub(r"\s+", "_", title.strip())
        safe_title = re.sub(r"[^a-zA-Z0-9._-]", "", safe_title) or "subtitle"
        return f"subtitles/{timestamp}-{safe_title}.srt"
