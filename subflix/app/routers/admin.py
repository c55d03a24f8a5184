# subflix/app/routers/admin.py
"""
Moderation routes. Every route requires an admin identity.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from subflix.app.deps import CurrentUser, get_blob_store, get_moderation_service, get_store, require_admin
from subflix.app.domain.errors import ModerationError
from subflix.app.infra.db.base import SubtitleStore
from subflix.app.infra.db.mirrored_store import MirroredSubtitleStore
from subflix.app.infra.storage.base import BlobStore
from subflix.app.routers.http_errors import to_http_exception
from subflix.app.schemas.subtitles import CacheRefreshResponse, SubtitleListResponse, SubtitleResponse
from subflix.app.services.moderation_service import ModerationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/pending", response_model=SubtitleListResponse)
async def list_pending(
    admin: CurrentUser = Depends(require_admin),
    service: ModerationService = Depends(get_moderation_service),
    blob_store: Optional[BlobStore] = Depends(get_blob_store),
):
    try:
        subtitles = await service.list_for_review()
        items = [SubtitleResponse.from_domain(s, blob_store) for s in subtitles]
    except ModerationError as e:
        raise to_http_exception(e) from e

    return SubtitleListResponse(items=items, total=len(items))


@router.post("/pending/{subtitle_id}/approve", response_model=SubtitleResponse)
async def approve_subtitle(
    subtitle_id: str,
    admin: CurrentUser = Depends(require_admin),
    service: ModerationService = Depends(get_moderation_service),
    blob_store: Optional[BlobStore] = Depends(get_blob_store),
):
    try:
        approved = await service.approve(subtitle_id, admin.id)
        return SubtitleResponse.from_domain(approved, blob_store)
    except ModerationError as e:
        raise to_http_exception(e) from e


@router.delete("/pending/{subtitle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def reject_subtitle(
    subtitle_id: str,
    admin: CurrentUser = Depends(require_admin),
    service: ModerationService = Depends(get_moderation_service),
):
    try:
        await service.reject(subtitle_id, admin.id)
    except ModerationError as e:
        raise to_http_exception(e) from e


@router.post("/cache/refresh", response_model=CacheRefreshResponse)
async def refresh_cache(
    admin: CurrentUser = Depends(require_admin),
    store: SubtitleStore = Depends(get_store),
):
    """Reload the local cache from the remote store (mirrored backend only)."""
    if not isinstance(store, MirroredSubtitleStore):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cache refresh requires SUBTITLE_BACKEND=mirrored",
        )
    try:
        refreshed = await store.refresh_all()
    except ModerationError as e:
        raise to_http_exception(e) from e

    logger.info("Cache refreshed by %s: %s", admin.id, refreshed)
    return CacheRefreshResponse(refreshed=refreshed)
