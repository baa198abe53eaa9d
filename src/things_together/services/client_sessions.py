"""Per-browser sessions, each with its own identity client and screens."""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass

from things_together.services.controllers import ScreenControllers
from things_together.services.session import IdentityProvider, SessionContext

logger = logging.getLogger(__name__)

SESSION_COOKIE = "things_session"


@dataclass
class ClientScope:
    """Everything one browser owns: its sign-in, session and screen state."""

    identity_provider: IdentityProvider
    session: SessionContext
    controllers: ScreenControllers


ClientScopeFactory = Callable[[], ClientScope]


class ClientSessionRegistry:
    """Maps opaque cookie tokens to live client scopes.

    Tokens are random and only meaningful to this process, so a request
    without a known token is treated as signed out.
    """

    def __init__(self, factory: ClientScopeFactory) -> None:
        self._factory = factory
        self._scopes: dict[str, ClientScope] = {}

    def __len__(self) -> int:
        return len(self._scopes)

    def open(self) -> tuple[str, ClientScope]:
        """Create and start a scope. Must run on the event loop."""
        scope = self._factory()
        scope.controllers.attach()
        scope.session.initialize()
        token = secrets.token_urlsafe(32)
        self._scopes[token] = scope
        logger.info("Opened client session", extra={"open_sessions": len(self)})
        return token, scope

    def get(self, token: str | None) -> ClientScope | None:
        if not token:
            return None
        return self._scopes.get(token)

    def close(self, token: str | None) -> None:
        if not token:
            return
        scope = self._scopes.pop(token, None)
        if scope is None:
            return
        scope.controllers.detach()
        scope.session.teardown()
        logger.info("Closed client session", extra={"open_sessions": len(self)})

    def close_all(self) -> None:
        for token in list(self._scopes):
            self.close(token)
