from __future__ import annotations

from fastapi import APIRouter, Depends

from subflix.app.deps import CurrentUser, get_current_user, get_identity_gate
from subflix.app.domain.errors import ModerationError
from subflix.app.routers.http_errors import to_http_exception
from subflix.app.services.identity_gate import IdentityGate

router = APIRouter(prefix="/auth", tags=["auth"])


class MeResponse(CurrentUser):
    isAdmin: bool = False


@router.get("/me", response_model=MeResponse)
async def me(
    user: CurrentUser = Depends(get_current_user),
    gate: IdentityGate = Depends(get_identity_gate),
):
    """The caller, plus whether the client should offer the moderation screens."""
    try:
        is_admin = await gate.is_admin(user.id)
    except ModerationError as e:
        raise to_http_exception(e) from e
    return MeResponse(**user.model_dump(), isAdmin=is_admin)
