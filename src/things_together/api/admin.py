"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from things_together.api.models import ProfileRequest
from things_together.domain.errors import StoreError

if TYPE_CHECKING:
    from things_together.containers import AppContainer
    from things_together.domain.profiles import UserProfile

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.put("/profiles/{uid}", dependencies=[Depends(require_admin)])
async def upsert_profile(
    uid: str, payload: ProfileRequest, request: Request
) -> dict[str, object]:
    """Create or update the profile for an account."""
    if payload.uid != uid:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Profile uid does not match the path.",
        )
    container: AppContainer = request.app.state.container
    try:
        profile = container.profile_service.upsert_profile(
            uid, payload.email, payload.display_name, payload.partner_name
        )
    except StoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    return _serialize_profile(profile)


@router.get("/profiles/{uid}", dependencies=[Depends(require_admin)])
async def get_profile(uid: str, request: Request) -> dict[str, object]:
    """Return the stored profile for an account."""
    container: AppContainer = request.app.state.container
    try:
        profile = await container.profile_service.get_profile(uid)
    except StoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return _serialize_profile(profile)


def _serialize_profile(profile: UserProfile) -> dict[str, object]:
    return {
        "uid": profile.uid,
        "email": profile.email,
        "display_name": profile.display_name,
        "partner_name": profile.partner_name,
        "created_at": profile.created_at.isoformat(),
    }
