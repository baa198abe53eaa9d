"""JSON endpoints the screens post their actions to."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from things_together.api.dependencies import (
    get_container,
    require_user,
    settle,
    settled_session,
)
from things_together.api.models import (
    ActionResponse,
    AttachPhotoRequest,
    CreateThingRequest,
    MarkDoneRequest,
    SignInRequest,
)
from things_together.services.client_sessions import (
    SESSION_COOKIE,
    ClientScope,  # noqa: TC001
)
from things_together.services.controllers import ActionOutcome, ActionResult
from things_together.services.routing import SIGN_IN_PATH

router = APIRouter(prefix="/api", tags=["actions"])

_OUTCOME_STATUS = {
    ActionOutcome.INVALID: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ActionOutcome.BUSY: status.HTTP_409_CONFLICT,
    ActionOutcome.BLOCKED: status.HTTP_409_CONFLICT,
    ActionOutcome.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ActionOutcome.FAILED: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _action_response(
    result: ActionResult,
    ok_status: int = status.HTTP_200_OK,
    failed_status: int | None = None,
) -> JSONResponse:
    if result.ok:
        status_code = ok_status
    elif result.outcome is ActionOutcome.FAILED and failed_status is not None:
        status_code = failed_status
    else:
        status_code = _OUTCOME_STATUS[result.outcome]
    body = ActionResponse(
        outcome=result.outcome.value,
        message=result.message,
        redirect_to=result.redirect_to,
        thing_id=result.thing_id,
    )
    return JSONResponse(body.model_dump(), status_code=status_code)


@router.get("/session")
async def current_session(request: Request) -> dict[str, object]:
    """Return the settled session as seen by the screens."""
    snapshot = await settled_session(request)
    return {
        "state": snapshot.state.value,
        "user": (
            {"uid": snapshot.user.uid, "email": snapshot.user.email}
            if snapshot.user
            else None
        ),
        "display_name": snapshot.profile.display_name if snapshot.profile else None,
        "partner_name": snapshot.partner_display_name,
    }


@router.post("/signin")
async def sign_in(payload: SignInRequest, request: Request) -> JSONResponse:
    """Sign this browser in, opening its session scope on first use."""
    container = get_container(request)
    token = request.cookies.get(SESSION_COOKIE)
    scope = container.client_sessions.get(token)
    opened = scope is None
    if scope is None:
        token, scope = container.client_sessions.open()
    result = await scope.controllers.sign_in.sign_in(payload.email, payload.password)
    if not result.ok:
        if opened:
            container.client_sessions.close(token)
        return _action_response(result, failed_status=status.HTTP_401_UNAUTHORIZED)
    await settle(scope, container.settings.session_settle_timeout_seconds)
    response = _action_response(result)
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=container.settings.session_cookie_secure,
        samesite="lax",
    )
    return response


@router.post("/signout")
async def sign_out(request: Request) -> JSONResponse:
    container = get_container(request)
    token = request.cookies.get(SESSION_COOKIE)
    scope = container.client_sessions.get(token)
    if scope is None:
        result = ActionResult(ActionOutcome.OK, redirect_to=SIGN_IN_PATH)
    else:
        result = await scope.controllers.sign_in.sign_out()
        if not result.ok:
            return _action_response(result)
        container.client_sessions.close(token)
    response = _action_response(result)
    response.delete_cookie(key=SESSION_COOKIE)
    return response


@router.post("/things")
async def create_thing(
    payload: CreateThingRequest,
    scope: ClientScope = Depends(require_user),
) -> JSONResponse:
    result = await scope.controllers.create_thing.submit(payload.title, payload.notes)
    return _action_response(result, ok_status=status.HTTP_201_CREATED)


@router.post("/things/{thing_id}/done")
async def mark_done(
    thing_id: str,
    payload: MarkDoneRequest,
    scope: ClientScope = Depends(require_user),
) -> JSONResponse:
    controller = scope.controllers.thing_detail
    return _action_response(await controller.mark_done(thing_id, payload.photo_url))


@router.post("/things/{thing_id}/photo")
async def attach_photo(
    thing_id: str,
    payload: AttachPhotoRequest,
    scope: ClientScope = Depends(require_user),
) -> JSONResponse:
    controller = scope.controllers.memory_detail
    return _action_response(await controller.attach_photo(thing_id, payload.photo_url))
