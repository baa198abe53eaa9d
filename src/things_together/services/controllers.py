"""Per-screen view state: loading, results, errors and redirects."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

from things_together.domain.errors import (
    SignInError,
    SignInErrorCode,
    StoreError,
    ThingNotFoundError,
    ThingValidationError,
)
from things_together.domain.session import SessionSnapshot
from things_together.domain.things import Thing, ThingStatus
from things_together.services.invalidation import InvalidationBus, InvalidationScope
from things_together.services.routing import DONE_PATH, HOME_PATH, SIGN_IN_PATH
from things_together.services.session import IdentityProvider, SessionContext
from things_together.services.things import ThingService

logger = logging.getLogger(__name__)

T = TypeVar("T")

GENERIC_SIGN_IN_MESSAGE = "Sign In Failed. Please check your credentials."
_SIGN_IN_MESSAGES = {
    SignInErrorCode.INVALID_EMAIL: "Invalid email address format.",
    SignInErrorCode.USER_NOT_FOUND: "Invalid email or password.",
    SignInErrorCode.WRONG_PASSWORD: "Invalid email or password.",
    SignInErrorCode.TOO_MANY_REQUESTS: (
        "Too many failed login attempts. Please try again later."
    ),
}


def sign_in_error_message(code: SignInErrorCode) -> str:
    """Return the user-facing message for a sign-in failure code."""
    return _SIGN_IN_MESSAGES.get(code, GENERIC_SIGN_IN_MESSAGE)


class ViewStatus(StrEnum):
    """Where a screen is in its fetch cycle."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"
    NOT_FOUND = "not_found"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class ViewState(Generic[T]):
    """Immutable state a screen renders from."""

    status: ViewStatus
    data: T | None = None
    message: str | None = None
    redirect_to: str | None = None


class ActionOutcome(StrEnum):
    """Result categories for user-triggered actions."""

    OK = "ok"
    INVALID = "invalid"
    BUSY = "busy"
    BLOCKED = "blocked"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a form submission or button action."""

    outcome: ActionOutcome
    message: str | None = None
    redirect_to: str | None = None
    thing_id: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is ActionOutcome.OK


class FetchController(Generic[T]):
    """Base state machine for a screen backed by one store read.

    Every fetch takes a generation number when it starts. A completion is
    only written to ``state`` when its generation is still the latest and the
    screen is open, so a slow earlier fetch can never overwrite a later one.
    """

    error_message = "Failed to load. Please try again."

    def __init__(self, session: SessionContext) -> None:
        self.session = session
        self.state: ViewState[T] = ViewState(ViewStatus.IDLE)
        self._generation = 0
        self._stale = True
        self._closed = False
        self._unsubscribers: list[Callable[[], None]] = []

    def attach(self) -> None:
        """Start reacting to session changes."""
        self._unsubscribers.append(self.session.subscribe(self._on_session_change))

    def detach(self) -> None:
        """Stop reacting to events and ignore any fetch still in flight."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._closed = True
        self._generation += 1

    def invalidate(self) -> None:
        """Mark cached results stale so the next load refetches."""
        self._stale = True

    @property
    def is_stale(self) -> bool:
        return self._stale

    async def ensure_loaded(self) -> ViewState[T]:
        """Reuse a settled result unless it was invalidated."""
        if self._stale or self.state.status in {
            ViewStatus.IDLE,
            ViewStatus.LOADING,
            ViewStatus.REDIRECT,
        }:
            return await self.refresh()
        return self.state

    async def retry(self) -> ViewState[T]:
        """Re-enter loading after a failed fetch."""
        if self.state.status is not ViewStatus.ERROR:
            return self.state
        return await self.refresh()

    async def refresh(self) -> ViewState[T]:
        self._generation += 1
        generation = self._generation
        if self._closed:
            return self.state
        snapshot = self.session.get_current()
        if snapshot.loading:
            self.state = ViewState(ViewStatus.LOADING)
            return self.state
        if snapshot.user is None:
            self._stale = True
            self.state = ViewState(ViewStatus.REDIRECT, redirect_to=SIGN_IN_PATH)
            return self.state
        if not self._can_fetch():
            self.state = ViewState(ViewStatus.IDLE)
            return self.state

        self._stale = False
        self.state = ViewState(ViewStatus.LOADING)
        try:
            data = await self._fetch()
        except StoreError:
            logger.exception("Error fetching %s", type(self).__name__)
            return self._commit(
                generation, ViewState(ViewStatus.ERROR, message=self.error_message)
            )
        return self._commit(generation, self._settle(data))

    def _commit(self, generation: int, state: ViewState[T]) -> ViewState[T]:
        if generation != self._generation or self._closed:
            logger.debug("Discarding stale result for %s", type(self).__name__)
            return self.state
        self.state = state
        return state

    async def _on_session_change(self, snapshot: SessionSnapshot) -> None:
        self._stale = True
        await self.refresh()

    def _can_fetch(self) -> bool:
        return True

    def _settle(self, data: T) -> ViewState[T]:
        return ViewState(ViewStatus.READY, data=data)

    async def _fetch(self) -> T:
        raise NotImplementedError


class ThingListController(FetchController[list[Thing]]):
    """List screen that refetches when its scope is invalidated."""

    scope: InvalidationScope

    def __init__(
        self, session: SessionContext, things: ThingService, bus: InvalidationBus
    ) -> None:
        super().__init__(session)
        self.things = things
        self.bus = bus

    def attach(self) -> None:
        super().attach()
        self._unsubscribers.append(self.bus.subscribe(self.scope, self.invalidate))


class PlannedListController(ThingListController):
    """The to-do screen."""

    scope = InvalidationScope.PLANNED
    error_message = "Failed to load things. Please try again."

    async def _fetch(self) -> list[Thing]:
        return await self.things.list_planned()


class DoneListController(ThingListController):
    """The memories gallery."""

    scope = InvalidationScope.DONE
    error_message = "Failed to load memories. Please try again."

    async def _fetch(self) -> list[Thing]:
        return await self.things.list_done()


class ThingDetailController(FetchController[Thing]):
    """Detail view for one thing in an expected status.

    A thing that is missing or in the other status renders as not found.
    """

    def __init__(
        self,
        session: SessionContext,
        things: ThingService,
        bus: InvalidationBus,
        expected_status: ThingStatus,
    ) -> None:
        super().__init__(session)
        self.things = things
        self.bus = bus
        self.expected_status = expected_status
        self.thing_id: str | None = None
        self._closed = True
        self.error_message = (
            "Failed to load memory details."
            if expected_status is ThingStatus.DONE
            else "Failed to load thing details."
        )

    def detach(self) -> None:
        super().detach()
        self.thing_id = None

    async def open(self, thing_id: str, retry: bool = False) -> ViewState[Thing]:
        """Show ``thing_id``, refetching when the route parameter changed.

        The returned state always belongs to ``thing_id``. When a later
        ``open`` for another id took the view over while this one was loading,
        the caller gets a loading state instead of the other thing.
        """
        if thing_id != self.thing_id or self._closed:
            self.thing_id = thing_id
            self._closed = False
            self._stale = True
            self.state = ViewState(ViewStatus.IDLE)
        if retry and self.state.status is ViewStatus.ERROR:
            state = await self.retry()
        else:
            state = await self.ensure_loaded()
        if self.thing_id != thing_id or (
            state.data is not None and state.data.id != thing_id
        ):
            return ViewState(ViewStatus.LOADING)
        return state

    def close(self, changed: bool = False) -> None:
        """Close the view; ``changed`` tells the lists their data moved."""
        self._closed = True
        self._generation += 1
        self.thing_id = None
        self.state = ViewState(ViewStatus.IDLE)
        if changed:
            self.bus.invalidate(InvalidationScope.PLANNED, InvalidationScope.DONE)

    async def mark_done(
        self, thing_id: str, photo_url: str | None = None
    ) -> ActionResult:
        """Complete ``thing_id`` and close its view with a change signal."""
        not_found = ActionResult(ActionOutcome.NOT_FOUND, message="Thing not found.")
        try:
            thing = await self.things.get_thing(thing_id)
            if thing is None or thing.is_done:
                return not_found
            await self.things.mark_done(thing_id, photo_url)
        except ThingNotFoundError:
            return not_found
        except StoreError:
            logger.exception(
                "Error marking thing as done", extra={"thing_id": thing_id}
            )
            return ActionResult(
                ActionOutcome.FAILED,
                message="Failed to mark thing as done. Please try again.",
            )
        if self.thing_id == thing_id:
            self.close(changed=True)
        else:
            self.bus.invalidate(InvalidationScope.PLANNED, InvalidationScope.DONE)
        return ActionResult(ActionOutcome.OK, redirect_to=DONE_PATH, thing_id=thing_id)

    async def attach_photo(self, thing_id: str, photo_url: str) -> ActionResult:
        """Backfill the photo of done thing ``thing_id``."""
        try:
            await self.things.attach_photo(thing_id, photo_url)
        except ThingValidationError as exc:
            return ActionResult(ActionOutcome.INVALID, message=str(exc))
        except ThingNotFoundError:
            return ActionResult(ActionOutcome.NOT_FOUND, message="Memory not found.")
        except StoreError:
            logger.exception("Error attaching photo", extra={"thing_id": thing_id})
            return ActionResult(
                ActionOutcome.FAILED, message="Failed to add photo. Please try again."
            )
        self.bus.invalidate(InvalidationScope.DONE)
        if self.thing_id == thing_id and not self._closed:
            self._stale = True
            await self.refresh()
        return ActionResult(ActionOutcome.OK, thing_id=thing_id)

    def _can_fetch(self) -> bool:
        return self.thing_id is not None

    def _settle(self, data: Thing | None) -> ViewState[Thing]:
        if data is None or data.status is not self.expected_status:
            return ViewState(ViewStatus.NOT_FOUND)
        return ViewState(ViewStatus.READY, data=data)

    async def _fetch(self) -> Thing | None:
        thing_id = self.thing_id
        if thing_id is None:
            return None
        return await self.things.get_thing(thing_id)


class CreateThingController:
    """Add-a-thing form with local validation and one submission at a time."""

    def __init__(
        self, session: SessionContext, things: ThingService, bus: InvalidationBus
    ) -> None:
        self.session = session
        self.things = things
        self.bus = bus
        self.submitting = False

    def can_submit(self) -> bool:
        snapshot = self.session.get_current()
        return (
            not self.submitting
            and not snapshot.loading
            and snapshot.user is not None
            and snapshot.profile is not None
        )

    async def submit(self, title: str, notes: str | None = None) -> ActionResult:
        if not title.strip():
            return ActionResult(
                ActionOutcome.INVALID, message="You need to type something!"
            )
        if self.submitting:
            return ActionResult(
                ActionOutcome.BUSY, message="Still adding your last thing."
            )
        snapshot = self.session.get_current()
        if snapshot.loading or snapshot.user is None or snapshot.profile is None:
            return ActionResult(
                ActionOutcome.BLOCKED,
                message=(
                    "You must be logged in and your profile loaded to add a thing."
                ),
            )

        self.submitting = True
        try:
            thing_id = await self.things.create_thing(
                title.strip(),
                snapshot.profile.display_name,
                (notes or "").strip() or None,
            )
        except ThingValidationError as exc:
            return ActionResult(ActionOutcome.INVALID, message=str(exc))
        except StoreError:
            logger.exception("Error adding thing")
            return ActionResult(
                ActionOutcome.FAILED, message="Failed to add thing. Please try again."
            )
        finally:
            self.submitting = False
        self.bus.invalidate(InvalidationScope.PLANNED)
        return ActionResult(ActionOutcome.OK, redirect_to=HOME_PATH, thing_id=thing_id)


class SignInController:
    """Sign-in form and sign-out action."""

    def __init__(
        self, session: SessionContext, identity_provider: IdentityProvider
    ) -> None:
        self.session = session
        self.identity_provider = identity_provider

    async def sign_in(self, email: str, password: str) -> ActionResult:
        if not email.strip() or not password.strip():
            return ActionResult(
                ActionOutcome.INVALID, message="Please enter both email and password."
            )
        try:
            await asyncio.to_thread(
                self.identity_provider.sign_in, email.strip(), password
            )
        except SignInError as exc:
            logger.warning("Error signing in", extra={"code": exc.code.value})
            return ActionResult(
                ActionOutcome.FAILED, message=sign_in_error_message(exc.code)
            )
        return ActionResult(ActionOutcome.OK, redirect_to=HOME_PATH)

    async def sign_out(self) -> ActionResult:
        try:
            await asyncio.to_thread(self.identity_provider.sign_out)
        except SignInError as exc:
            logger.exception("Error signing out")
            return ActionResult(
                ActionOutcome.FAILED, message=f"Sign Out Failed: {exc}"
            )
        return ActionResult(ActionOutcome.OK, redirect_to=SIGN_IN_PATH)


@dataclass
class ScreenControllers:
    """One controller per screen, sharing the session and invalidation bus."""

    planned_list: PlannedListController
    done_list: DoneListController
    thing_detail: ThingDetailController
    memory_detail: ThingDetailController
    create_thing: CreateThingController
    sign_in: SignInController

    def attach(self) -> None:
        self.planned_list.attach()
        self.done_list.attach()
        self.thing_detail.attach()
        self.memory_detail.attach()

    def detach(self) -> None:
        self.planned_list.detach()
        self.done_list.detach()
        self.thing_detail.detach()
        self.memory_detail.detach()

    def close_details(self) -> None:
        """Close both detail views without signalling a change."""
        self.thing_detail.close()
        self.memory_detail.close()


def build_screen_controllers(
    session: SessionContext,
    things: ThingService,
    bus: InvalidationBus,
    identity_provider: IdentityProvider,
) -> ScreenControllers:
    """Create the controllers for every screen."""
    return ScreenControllers(
        planned_list=PlannedListController(session, things, bus),
        done_list=DoneListController(session, things, bus),
        thing_detail=ThingDetailController(
            session, things, bus, expected_status=ThingStatus.PLANNED
        ),
        memory_detail=ThingDetailController(
            session, things, bus, expected_status=ThingStatus.DONE
        ),
        create_thing=CreateThingController(session, things, bus),
        sign_in=SignInController(session, identity_provider),
    )
