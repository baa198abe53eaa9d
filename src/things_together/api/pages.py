"""HTML screens, each rendered from its controller's view state."""

from __future__ import annotations

from html import escape
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import HTMLResponse, RedirectResponse

from things_together.api import presentation as ui
from things_together.api.dependencies import require_screen_access, screen_controllers
from things_together.domain.session import SessionSnapshot  # noqa: TC001
from things_together.services.controllers import (
    ScreenControllers,  # noqa: TC001
    ViewState,
    ViewStatus,
)
from things_together.services.routing import (
    ADD_THING_PATH,
    DONE_PATH,
    HOME_PATH,
    SIGN_IN_PATH,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from things_together.domain.things import Thing

router = APIRouter(tags=["pages"], default_response_class=HTMLResponse)

_LOADING_REFRESH_SECONDS = 1


def _render(
    state: ViewState,
    *,
    title: str,
    loading_text: str,
    retry_href: str,
    render_ready: Callable[[object], str],
    not_found_href: str = HOME_PATH,
) -> Response:
    if state.status is ViewStatus.REDIRECT and state.redirect_to:
        return RedirectResponse(state.redirect_to, status.HTTP_303_SEE_OTHER)
    if state.status is ViewStatus.READY:
        return HTMLResponse(ui.page(title, render_ready(state.data)))
    if state.status is ViewStatus.ERROR:
        return HTMLResponse(
            ui.page(
                title,
                ui.error_block(
                    state.message or "Something went wrong.",
                    "Reload Page",
                    retry_href,
                ),
            )
        )
    if state.status is ViewStatus.NOT_FOUND:
        return not_found_page(not_found_href)
    return HTMLResponse(
        ui.page(
            title,
            ui.loading_message(loading_text),
            refresh_seconds=_LOADING_REFRESH_SECONDS,
        )
    )


def not_found_page(back_href: str = HOME_PATH) -> HTMLResponse:
    body = (
        "<main><h2>Not found</h2><p>That thing doesn't exist, or it moved.</p>"
        f"{ui.button('Go back', href=back_href)}</main>"
    )
    return HTMLResponse(
        ui.page("Not found", body), status_code=status.HTTP_404_NOT_FOUND
    )


@router.get(SIGN_IN_PATH)
async def sign_in_page(
    _snapshot: SessionSnapshot = Depends(require_screen_access),
) -> Response:
    fields = ui.text_input(
        "email", "Email", input_type="email", placeholder="your@email.com"
    ) + ui.text_input(
        "password", "Password", input_type="password", placeholder="password"
    )
    body = (
        '<main><div class="panel"><h2>Sign In</h2>'
        + ui.form("/api/signin", fields, ui.button("Sign In", submit=True))
        + "</div></main>"
    )
    return HTMLResponse(ui.page("Sign In", body))


@router.get(HOME_PATH)
async def planned_list_page(
    retry: bool = False,
    snapshot: SessionSnapshot = Depends(require_screen_access),
    controllers: ScreenControllers = Depends(screen_controllers),
) -> Response:
    controllers.close_details()
    controller = controllers.planned_list
    state = await (controller.retry() if retry else controller.ensure_loaded())

    def render_ready(things: list[Thing]) -> str:
        intro = (
            f'<div class="panel"><h2>Things with '
            f"{escape(snapshot.partner_display_name)}</h2></div><h3>Things</h3>"
        )
        if not things:
            listing = (
                "<p>No planned items yet! Time to dream up some adventures.</p>"
                + ui.button("Add Your First Thing", href=ADD_THING_PATH)
            )
        else:
            listing = "<ul>" + "".join(ui.thing_card(t) for t in things) + "</ul>"
        return ui.header(HOME_PATH) + f"<main>{intro}{listing}</main>"

    return _render(
        state,
        title="Things",
        loading_text="Loading your shared things...",
        retry_href=f"{HOME_PATH}?retry=true",
        render_ready=render_ready,
    )


@router.get(DONE_PATH)
async def done_list_page(
    retry: bool = False,
    _snapshot: SessionSnapshot = Depends(require_screen_access),
    controllers: ScreenControllers = Depends(screen_controllers),
) -> Response:
    controllers.close_details()
    controller = controllers.done_list
    state = await (controller.retry() if retry else controller.ensure_loaded())

    def render_ready(things: list[Thing]) -> str:
        if not things:
            listing = (
                "<p>No memories yet! Go mark some things as done.</p>"
                + ui.button("Back to Planned Things", href=HOME_PATH)
            )
        else:
            listing = "".join(ui.memory_card(t) for t in things)
        return ui.header(DONE_PATH) + f"<main><h2>Our Memories</h2>{listing}</main>"

    return _render(
        state,
        title="Our Memories",
        loading_text="Loading your memories...",
        retry_href=f"{DONE_PATH}?retry=true",
        render_ready=render_ready,
    )


@router.get("/things/{thing_id}")
async def thing_detail_page(
    thing_id: str,
    retry: bool = False,
    _snapshot: SessionSnapshot = Depends(require_screen_access),
    controllers: ScreenControllers = Depends(screen_controllers),
) -> Response:
    state = await controllers.thing_detail.open(thing_id, retry=retry)

    def render_ready(thing: Thing) -> str:
        actions = ui.form(
            f"/api/things/{thing.id}/done",
            "",
            ui.button("Close", href=HOME_PATH, variant="ghost")
            + ui.button("Done", submit=True),
        )
        return ui.modal(ui.thing_details(thing) + actions, close_href=HOME_PATH)

    return _render(
        state,
        title="Thing",
        loading_text="Loading details...",
        retry_href=f"/things/{thing_id}?retry=true",
        render_ready=render_ready,
    )


@router.get("/done/{thing_id}")
async def memory_detail_page(
    thing_id: str,
    retry: bool = False,
    _snapshot: SessionSnapshot = Depends(require_screen_access),
    controllers: ScreenControllers = Depends(screen_controllers),
) -> Response:
    state = await controllers.memory_detail.open(thing_id, retry=retry)

    def render_ready(thing: Thing) -> str:
        add_photo = ui.form(
            f"/api/things/{thing.id}/photo",
            ui.text_input("photo_url", "Photo URL", placeholder="https://"),
            ui.button("Add Photo!", submit=True),
        )
        return (
            '<main><div class="panel">'
            + ui.thing_details(thing)
            + add_photo
            + ui.button("Back to Memories", href=DONE_PATH, variant="ghost")
            + "</div></main>"
        )

    return _render(
        state,
        title="Memory",
        loading_text="Loading memory details...",
        retry_href=f"/done/{thing_id}?retry=true",
        render_ready=render_ready,
        not_found_href=DONE_PATH,
    )


@router.get(ADD_THING_PATH)
async def add_thing_page(
    snapshot: SessionSnapshot = Depends(require_screen_access),
    controllers: ScreenControllers = Depends(screen_controllers),
) -> HTMLResponse:
    controller = controllers.create_thing
    can_submit = controller.can_submit()
    fields = ui.text_input(
        "title", "What do you want to do?", placeholder="Plan a weekend getaway"
    ) + ui.text_area("notes", "Notes", placeholder="Anything to remember?")
    hint = (
        ""
        if can_submit
        else "<p>Your profile isn't set up yet, so adding things is disabled.</p>"
    )
    body = (
        f'<main><div class="panel"><h2>Add a thing to do with '
        f"{escape(snapshot.partner_display_name)}</h2>{hint}"
        + ui.form(
            "/api/things",
            fields,
            ui.button("Cancel", href=HOME_PATH, variant="ghost")
            + ui.button("Add Thing", submit=True, disabled=not can_submit),
        )
        + "</div></main>"
    )
    return HTMLResponse(ui.page("Add a thing", body))
