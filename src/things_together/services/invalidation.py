"""Invalidation events that tell screens their cached results are stale."""

import logging
from collections import defaultdict
from collections.abc import Callable
from enum import StrEnum

logger = logging.getLogger(__name__)


class InvalidationScope(StrEnum):
    """Collections a write can make stale."""

    PLANNED = "planned"
    DONE = "done"


class InvalidationBus:
    """Fan out ``invalidate(scope)`` events to subscribed screens."""

    def __init__(self) -> None:
        self._listeners: dict[InvalidationScope, list[Callable[[], None]]] = (
            defaultdict(list)
        )

    def subscribe(
        self, scope: InvalidationScope, listener: Callable[[], None]
    ) -> Callable[[], None]:
        """Register a listener for a scope and return an unsubscribe callable."""
        self._listeners[scope].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[scope]:
                self._listeners[scope].remove(listener)

        return unsubscribe

    def invalidate(self, *scopes: InvalidationScope) -> None:
        for scope in scopes:
            logger.debug("Invalidating %s", scope.value)
            for listener in list(self._listeners[scope]):
                listener()
