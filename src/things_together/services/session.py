"""Authentication and profile state for one signed-in client."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from things_together.domain.profiles import AuthUser, UserProfile
from things_together.domain.session import SessionSnapshot
from things_together.services.profiles import ProfileService

logger = logging.getLogger(__name__)

DEFAULT_PARTNER_NAME = "Partner"

AuthStateCallback = Callable[[AuthUser | None], None]
SessionListener = Callable[[SessionSnapshot], Awaitable[None]]


class IdentityProvider(Protocol):
    """Interface for the hosted identity service."""

    def sign_in(self, email: str, password: str) -> AuthUser:
        """Sign in with email and password, raising SignInError on failure."""

    def sign_out(self) -> None:
        """Sign the current user out."""

    def subscribe(self, callback: AuthStateCallback) -> Callable[[], None]:
        """Register for auth-state changes and return an unsubscribe callable.

        The callback fires once immediately with the current user.
        """


class SessionContext:
    """Single owner of the current user, profile and partner name.

    Only the identity provider's notifications mutate this object. Everything
    else reads snapshots through ``get_current`` or listens for settled
    snapshots through ``subscribe``.
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        profile_service: ProfileService,
        default_partner_name: str = DEFAULT_PARTNER_NAME,
    ) -> None:
        self.identity_provider = identity_provider
        self.profile_service = profile_service
        self.default_partner_name = default_partner_name
        self._user: AuthUser | None = None
        self._profile: UserProfile | None = None
        self._loading = True
        self._generation = 0
        self._listeners: list[SessionListener] = []
        self._tasks: set[asyncio.Task[None]] = set()
        self._settled = asyncio.Event()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._unsubscribe: Callable[[], None] | None = None

    def initialize(self) -> None:
        """Subscribe to the identity provider. Must run on the event loop."""
        if self._unsubscribe is not None:
            raise RuntimeError("Session context is already initialized")
        self._loop = asyncio.get_running_loop()
        self._unsubscribe = self.identity_provider.subscribe(
            self._on_auth_state_change
        )

    def teardown(self) -> None:
        """Unsubscribe from the identity provider and drop pending lookups."""
        if self._unsubscribe is None:
            return
        self._unsubscribe()
        self._unsubscribe = None
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
        self._listeners.clear()

    def get_current(self) -> SessionSnapshot:
        return SessionSnapshot(
            user=self._user,
            profile=self._profile,
            loading=self._loading,
            partner_display_name=(
                self._profile.partner_name
                if self._profile and self._profile.partner_name
                else self.default_partner_name
            ),
        )

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Notify ``listener`` with every newly settled snapshot."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def wait_until_settled(self) -> SessionSnapshot:
        await self._settled.wait()
        return self.get_current()

    def _on_auth_state_change(self, user: AuthUser | None) -> None:
        # The Supabase client may call back from its token refresh thread.
        if self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._begin_resolution, user)

    def _begin_resolution(self, user: AuthUser | None) -> None:
        self._generation += 1
        self._user = user
        self._profile = None
        self._loading = True
        self._settled.clear()
        task = asyncio.get_running_loop().create_task(
            self._resolve(user, self._generation)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _resolve(self, user: AuthUser | None, generation: int) -> None:
        profile: UserProfile | None = None
        if user is not None:
            try:
                profile = await self.profile_service.get_profile(user.uid)
            except Exception:
                # A failed lookup still settles, as signed in without a profile.
                logger.exception(
                    "Error fetching user profile", extra={"uid": user.uid}
                )
        if generation != self._generation:
            logger.debug(
                "Discarding stale profile lookup", extra={"generation": generation}
            )
            return
        self._profile = profile
        self._loading = False
        snapshot = self.get_current()
        logger.info("Session settled", extra={"state": snapshot.state.value})
        await self._notify(snapshot)
        if generation == self._generation:
            self._settled.set()

    async def _notify(self, snapshot: SessionSnapshot) -> None:
        results = await asyncio.gather(
            *(listener(snapshot) for listener in list(self._listeners)),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                logger.error("Session listener failed", exc_info=result)
