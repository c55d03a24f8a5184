from __future__ import annotations

import logging

from fastapi import HTTPException, status

from subflix.app.domain.errors import (
    BlobStoreError,
    ConfigurationError,
    ModerationError,
    StoreUnavailableError,
    SubtitleNotFoundError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def to_http_exception(error: ModerationError) -> HTTPException:
    """Map a domain failure to the HTTP status the client sees."""
    if isinstance(error, ValidationError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=error.errors)
    if isinstance(error, UnauthorizedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    if isinstance(error, SubtitleNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subtitle not found")
    if isinstance(error, StoreUnavailableError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Subtitle store unavailable, try again later",
        )
    if isinstance(error, BlobStoreError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Subtitle file storage failed")
    if isinstance(error, ConfigurationError):
        logger.error("Server misconfigured: %s", error)
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server misconfigured")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))
