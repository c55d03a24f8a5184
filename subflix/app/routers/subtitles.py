# subflix/app/routers/subtitles.py
"""
Public subtitle routes: search, submit (JSON or .srt upload), and the
caller's own submissions.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from subflix.app.deps import (
    CurrentUser,
    get_blob_store,
    get_current_user,
    get_moderation_service,
    get_search_index,
)
from subflix.app.domain.errors import ModerationError
from subflix.app.domain.models import SubtitleDraft
from subflix.app.infra.storage.base import BlobStore
from subflix.app.routers.http_errors import to_http_exception
from subflix.app.schemas.subtitles import (
    SubmitSubtitleRequest,
    SubmitSubtitleResponse,
    SubtitleListResponse,
    SubtitleResponse,
)
from subflix.app.services.moderation_service import ModerationService
from subflix.app.services.search_index import SearchIndex

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subtitles", tags=["subtitles"])


@router.get("", response_model=SubtitleListResponse)
async def search_subtitles(
    q: str = Query(default="", max_length=200),
    index: SearchIndex = Depends(get_search_index),
    blob_store: Optional[BlobStore] = Depends(get_blob_store),
):
    """Approved subtitles, filtered by title or uploader."""
    try:
        subtitles = await index.query(q)
        items = [SubtitleResponse.from_domain(s, blob_store) for s in subtitles]
    except ModerationError as e:
        raise to_http_exception(e) from e

    return SubtitleListResponse(items=items, total=len(items))


@router.post("", response_model=SubmitSubtitleResponse, status_code=status.HTTP_201_CREATED)
async def submit_subtitle(
    request: SubmitSubtitleRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: ModerationService = Depends(get_moderation_service),
):
    draft = SubtitleDraft(
        title=request.title,
        owner_id=current_user.id,
        uploader_name=request.uploader or current_user.name or "",
        content=request.content,
        file_url=request.fileUrl,
        donation_link=request.donationLink,
        poster_url=request.posterUrl,
    )
    try:
        subtitle_id = await service.submit(draft)
    except ModerationError as e:
        raise to_http_exception(e) from e

    return SubmitSubtitleResponse(id=subtitle_id)


@router.post("/upload", response_model=SubmitSubtitleResponse, status_code=status.HTTP_201_CREATED)
async def upload_subtitle(
    srtFile: UploadFile = File(...),
    title: str = Form(..., max_length=300),
    donationLink: Optional[str] = Form(default=None),
    posterUrl: Optional[str] = Form(default=None),
    uploader: Optional[str] = Form(default=None),
    current_user: CurrentUser = Depends(get_current_user),
    service: ModerationService = Depends(get_moderation_service),
):
    """
    Multipart submission: the .srt file goes to blob storage and the pending
    record keeps a reference to it.
    """
    data = await srtFile.read()
    draft = SubtitleDraft(
        title=title,
        owner_id=current_user.id,
        uploader_name=uploader or current_user.name or "",
        donation_link=donationLink,
        poster_url=posterUrl,
    )
    try:
        subtitle_id = await service.submit_file(draft, data, srtFile.filename or "")
    except ModerationError as e:
        raise to_http_exception(e) from e

    logger.info("Subtitle file uploaded: id=%s, filename=%s, size=%d", subtitle_id, srtFile.filename, len(data))
    return SubmitSubtitleResponse(id=subtitle_id)


@router.get("/mine", response_model=SubtitleListResponse)
async def list_my_subtitles(
    current_user: CurrentUser = Depends(get_current_user),
    service: ModerationService = Depends(get_moderation_service),
    blob_store: Optional[BlobStore] = Depends(get_blob_store),
):
    try:
        subtitles = await service.list_owner_subtitles(current_user.id)
        items = [SubtitleResponse.from_domain(s, blob_store) for s in subtitles]
    except ModerationError as e:
        raise to_http_exception(e) from e

    return SubtitleListResponse(items=items, total=len(items))
