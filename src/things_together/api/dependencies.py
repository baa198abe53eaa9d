"""Request dependencies shared by the page and action routers."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from fastapi import HTTPException, Request, status

from things_together.domain.session import SessionSnapshot
from things_together.services.client_sessions import SESSION_COOKIE, ClientScope
from things_together.services.routing import SIGN_IN_PATH, resolve_redirect

if TYPE_CHECKING:
    from things_together.containers import AppContainer
    from things_together.services.controllers import ScreenControllers


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_client_scope(request: Request) -> ClientScope | None:
    """Return the scope named by the browser's session cookie, if it is live."""
    token = request.cookies.get(SESSION_COOKIE)
    return get_container(request).client_sessions.get(token)


async def settle(scope: ClientScope, timeout: float) -> SessionSnapshot:
    try:
        return await asyncio.wait_for(
            scope.session.wait_until_settled(), timeout=timeout
        )
    except TimeoutError:
        return scope.session.get_current()


async def settled_session(request: Request) -> SessionSnapshot:
    """Wait briefly for the caller's session to settle, then return it."""
    container = get_container(request)
    scope = get_client_scope(request)
    if scope is None:
        return SessionSnapshot(
            user=None,
            profile=None,
            loading=False,
            partner_display_name=container.settings.default_partner_name,
        )
    return await settle(scope, container.settings.session_settle_timeout_seconds)


async def require_screen_access(request: Request) -> SessionSnapshot:
    """Redirect before a screen runs when the session does not allow it."""
    snapshot = await settled_session(request)
    redirect = resolve_redirect(request.url.path, snapshot)
    if redirect is not None:
        raise HTTPException(
            status_code=status.HTTP_303_SEE_OTHER, headers={"Location": redirect}
        )
    return snapshot


def screen_controllers(request: Request) -> ScreenControllers:
    """Return the calling browser's screens, sending strangers to sign in."""
    scope = get_client_scope(request)
    if scope is None:
        raise HTTPException(
            status_code=status.HTTP_303_SEE_OTHER, headers={"Location": SIGN_IN_PATH}
        )
    return scope.controllers


async def require_user(request: Request) -> ClientScope:
    """Reject actions from signed-out clients."""
    scope = get_client_scope(request)
    if scope is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    snapshot = await settle(
        scope, get_container(request).settings.session_settle_timeout_seconds
    )
    if snapshot.loading or snapshot.user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return scope
