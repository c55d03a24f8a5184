# subflix/app/deps.py (singletons exposed as FastAPI dependencies)

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from supabase import Client, create_client

from subflix.app.config import Settings, get_settings
from subflix.app.domain.errors import ConfigurationError
from subflix.app.infra.db.base import AdminConfigSource, SubtitleStore
from subflix.app.infra.db.mirrored_store import MirroredSubtitleStore
from subflix.app.infra.db.settings_admin_source import SettingsAdminConfigSource
from subflix.app.infra.db.sqlite_cache_repo import SqliteSubtitleCache
from subflix.app.infra.db.supabase_subtitles_repo import SupabaseAdminConfigSource, SupabaseSubtitleStore
from subflix.app.infra.storage.base import BlobStore
from subflix.app.infra.storage.r2_provider import R2BlobStore
from subflix.app.services.identity_gate import IdentityGate
from subflix.app.services.moderation_service import ModerationService
from subflix.app.services.search_index import SearchIndex

logger = logging.getLogger(__name__)

_client: Client | None = None
_store: SubtitleStore | None = None
_blob_store: BlobStore | None = None
_blob_store_resolved = False


def get_supabase() -> Client:
    global _client
    if _client is None:
        settings = get_settings()
        errors = settings.supabase_errors()
        if errors:
            raise ConfigurationError(errors)
        _client = create_client(str(settings.SUPABASE_URL),
                                settings.SUPABASE_SERVICE_ROLE_KEY)
    return _client


def build_store(settings: Settings) -> SubtitleStore:
    """Pick the SubtitleStore backend named by SUBTITLE_BACKEND."""
    if settings.SUBTITLE_BACKEND == "local":
        return SqliteSubtitleCache(settings.LOCAL_CACHE_PATH)

    remote = SupabaseSubtitleStore(get_supabase())
    if settings.SUBTITLE_BACKEND == "mirrored":
        return MirroredSubtitleStore(remote, SqliteSubtitleCache(settings.LOCAL_CACHE_PATH))
    return remote


async def init_store(store: SubtitleStore) -> None:
    """Create local cache tables where the backend has any."""
    if isinstance(store, SqliteSubtitleCache):
        await store.init()
    elif isinstance(store, MirroredSubtitleStore):
        await store.local.init()


def get_store() -> SubtitleStore:
    global _store
    if _store is None:
        _store = build_store(get_settings())
        logger.info("Subtitle backend selected: %s", type(_store).__name__)
    return _store


def get_admin_source() -> AdminConfigSource:
    if get_settings().ADMIN_SOURCE == "settings":
        return SettingsAdminConfigSource()
    return SupabaseAdminConfigSource(get_supabase())


def get_identity_gate(source: AdminConfigSource = Depends(get_admin_source)) -> IdentityGate:
    return IdentityGate(source)


def get_blob_store() -> Optional[BlobStore]:
    """R2 blob store built once per process; None when R2 is not configured."""
    global _blob_store, _blob_store_resolved
    if not _blob_store_resolved:
        try:
            _blob_store = R2BlobStore()
        except ConfigurationError as e:
            logger.warning("Blob store disabled: %s", e)
            _blob_store = None
        _blob_store_resolved = True
    return _blob_store


def get_moderation_service(
    store: SubtitleStore = Depends(get_store),
    gate: IdentityGate = Depends(get_identity_gate),
    blob_store: Optional[BlobStore] = Depends(get_blob_store),
) -> ModerationService:
    return ModerationService(store, gate, blob_store)


def get_search_index(store: SubtitleStore = Depends(get_store)) -> SearchIndex:
    return SearchIndex(store)


auth_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    id: str
    email: str | None = None
    name: str | None = None


async def get_current_user(
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
    supa: Client = Depends(get_supabase),
) -> CurrentUser:
    """
    Receives Authorization: Bearer <access_token> issued by Supabase,
    validates it against GoTrue and returns the minimal user record.
    """
    if cred is None or cred.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")

    token = cred.credentials
    try:
        res = supa.auth.get_user(token)
        user = res.user
        if not user:
            raise HTTPException(status_code=401, detail="Invalid token")

        # metadata may carry a display name
        name = None
        meta = getattr(user, "user_metadata", None) or {}
        if isinstance(meta, dict):
            name = meta.get("name")

        return CurrentUser(id=str(user.id), email=user.email, name=name)
    except HTTPException:
        raise
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid/expired token")


async def require_admin(
    user: CurrentUser = Depends(get_current_user),
    gate: IdentityGate = Depends(get_identity_gate),
) -> CurrentUser:
    """Read access to the review queue is limited to admins."""
    if not await gate.is_admin(user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user
