# subflix/app/services/moderation_service.py
"""
Subtitle moderation workflow.
Moves submissions from pending to approved (promote) or deletes them (discard).
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from starlette.concurrency import run_in_threadpool

from subflix.app.domain.errors import (
    ConfigurationError,
    StoreUnavailableError,
    SubtitleNotFoundError,
    UnauthorizedError,
    ValidationError,
)
from subflix.app.domain.models import Subtitle, SubtitleDraft, SubtitleStatus
from subflix.app.infra.db.base import SubtitleStore
from subflix.app.infra.storage.base import BlobStore
from subflix.app.services.identity_gate import IdentityGate

logger = logging.getLogger(__name__)


class ModerationService:
    """
    Orchestrates the pending -> approved / discarded state machine.

    Responsibilities:
    - Validate and record new submissions as pending
    - Promote pending submissions to approved, never losing one on failure
    - Discard pending submissions
    - Gate promote/discard behind the identity gate
    """

    def __init__(
        self,
        store: SubtitleStore,
        gate: IdentityGate,
        blob_store: Optional[BlobStore] = None,
    ):
        self._store = store
        self._gate = gate
        self._blob_store = blob_store

    def _validate(self, draft: SubtitleDraft, require_payload: bool = True) -> None:
        errors = []
        if not draft.title or not draft.title.strip():
            errors.append("title is required")
        if not draft.owner_id or not str(draft.owner_id).strip():
            errors.append("owner_id is required")
        if require_payload and not draft.has_payload:
            errors.append("content or file_url is required")
        if errors:
            raise ValidationError(errors)

    async def submit(self, draft: SubtitleDraft) -> str:
        """
        Record a new submission in the pending partition.

        Args:
            draft: User-supplied fields

        Returns:
            The id assigned by the store

        Raises:
            ValidationError: if title, owner or payload is missing
            StoreUnavailableError: if the store write fails
        """
        self._validate(draft)
        subtitle = Subtitle.from_draft(draft)
        subtitle_id = await self._store.create(SubtitleStatus.PENDING, subtitle)

        logger.info(
            "Subtitle submitted: id=%s, owner=%s, title=%s",
            subtitle_id,
            subtitle.owner_id,
            subtitle.title,
        )
        return subtitle_id

    async def submit_file(self, draft: SubtitleDraft, data: bytes, filename: str = "") -> str:
        """
        Upload a subtitle file to blob storage, then submit it with the
        returned reference as its `file_url`.

        If the store write fails the uploaded blob is deleted again.

        Raises:
            ValidationError: if the file is empty or the draft is invalid
            BlobUploadError: if the upload fails (nothing is written)
            ConfigurationError: if no blob store is configured
            StoreUnavailableError: if the store write fails
        """
        if not data:
            raise ValidationError([f"file {filename or '<unnamed>'} is empty"])
        if self._blob_store is None:
            raise ConfigurationError(["No blob store configured for file uploads"])

        # Validate before uploading so a bad draft never leaves an orphan blob
        self._validate(draft, require_payload=False)

        object_key = self._blob_store.generate_object_key(draft.title)
        file_url = await run_in_threadpool(self._blob_store.upload_bytes, object_key, data)

        try:
            return await self.submit(replace(draft, file_url=file_url))
        except StoreUnavailableError:
            logger.warning("Store write failed, deleting uploaded blob: key=%s", object_key)
            await run_in_threadpool(self._blob_store.delete_object, object_key)
            raise

    async def _require_admin(self, actor: object, action: str) -> None:
        if not await self._gate.is_admin(actor):
            logger.warning("Unauthorized %s attempt: actor=%s", action, actor)
            raise UnauthorizedError(actor, action)

    async def approve(self, subtitle_id: str, actor: object) -> Subtitle:
        """
        Promote a pending submission.

        The approved copy is written (same id) before the pending copy is
        removed, so an interruption leaves either the untouched pending record
        or a duplicate in both partitions. Calling approve again converges
        from either state.

        If the pending copy disappears between the existence check and the
        removal (a concurrent approve or reject removed it first), the
        removal's SubtitleNotFoundError is treated as done and the approved
        copy stays published; no rollback is attempted.

        Args:
            subtitle_id: The pending submission
            actor: Identity of the caller

        Returns:
            The approved record

        Raises:
            UnauthorizedError: if the actor is not an admin
            SubtitleNotFoundError: if the id is in neither partition
            StoreUnavailableError: if a store call fails
        """
        await self._require_admin(actor, "approve")

        try:
            pending = await self._store.get(SubtitleStatus.PENDING, subtitle_id)
        except SubtitleNotFoundError:
            # Resume: an earlier approve may already have finished
            try:
                approved = await self._store.get(SubtitleStatus.APPROVED, subtitle_id)
            except SubtitleNotFoundError:
                raise SubtitleNotFoundError(subtitle_id, SubtitleStatus.PENDING.value) from None
            logger.info("Subtitle already approved: id=%s", subtitle_id)
            return approved

        approved = pending.in_partition(SubtitleStatus.APPROVED)
        await self._store.put(SubtitleStatus.APPROVED, approved)

        try:
            await self._store.remove(SubtitleStatus.PENDING, subtitle_id)
        except SubtitleNotFoundError:
            logger.info("Pending copy already gone during approve: id=%s", subtitle_id)

        logger.info("Subtitle approved: id=%s, actor=%s", subtitle_id, actor)
        return approved

    async def reject(self, subtitle_id: str, actor: object) -> None:
        """
        Discard a pending submission permanently.

        Raises:
            UnauthorizedError: if the actor is not an admin
            SubtitleNotFoundError: if the id is not pending
            StoreUnavailableError: if the store call fails
        """
        await self._require_admin(actor, "reject")
        await self._store.remove(SubtitleStatus.PENDING, subtitle_id)
        logger.info("Subtitle rejected: id=%s, actor=%s", subtitle_id, actor)

    async def list_for_review(self) -> list[Subtitle]:
        """All pending submissions. Read access is gated by the HTTP layer."""
        return await self._store.list(SubtitleStatus.PENDING)

    async def list_owner_subtitles(self, owner_id: str) -> list[Subtitle]:
        """An owner's submissions: pending ones first, then approved ones."""
        pending = await self._store.list_by_owner(SubtitleStatus.PENDING, owner_id)
        approved = await self._store.list_by_owner(SubtitleStatus.APPROVED, owner_id)
        return pending + approved
