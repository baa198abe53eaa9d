"""Shared things: record access and lifecycle rules."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from things_together.domain.errors import ThingNotFoundError, ThingValidationError
from things_together.domain.things import Thing, ThingStatus

logger = logging.getLogger(__name__)


class ThingRepository(Protocol):
    """Persistence interface for things."""

    def create_thing(self, title: str, added_by: str, notes: str | None) -> str:
        """Insert a planned thing and return its id."""

    def list_by_status(self, status: ThingStatus) -> list[Thing]:
        """Return things with a status, newest first for that status."""

    def get_thing(self, thing_id: str) -> Thing | None:
        """Return a thing by id, if present."""

    def mark_done(
        self, thing_id: str, done_at: datetime, photo_url: str | None
    ) -> bool:
        """Transition a thing to done. Return False when no row matched."""

    def set_photo(self, thing_id: str, photo_url: str) -> bool:
        """Set the photo URL of a thing. Return False when no row matched."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class ThingService:
    """Typed accessors over the things table.

    The repository is synchronous; every call is pushed to a worker thread so
    callers suspend on store I/O without blocking the event loop.
    """

    repository: ThingRepository
    preserve_first_done_at: bool = False
    clock: Callable[[], datetime] = field(default=_utcnow)

    async def create_thing(
        self, title: str, added_by_display_name: str, notes: str | None = None
    ) -> str:
        """Create a planned thing and return its id."""
        if not added_by_display_name:
            raise ThingValidationError(
                "User display name is required to add a thing."
            )
        if not title.strip():
            raise ThingValidationError("A thing needs a title.")
        thing_id = await asyncio.to_thread(
            self.repository.create_thing, title, added_by_display_name, notes or None
        )
        logger.info("Created thing", extra={"thing_id": thing_id})
        return thing_id

    async def list_planned(self) -> list[Thing]:
        """Return planned things, most recently created first."""
        return await asyncio.to_thread(
            self.repository.list_by_status, ThingStatus.PLANNED
        )

    async def list_done(self) -> list[Thing]:
        """Return done things, most recently completed first."""
        return await asyncio.to_thread(self.repository.list_by_status, ThingStatus.DONE)

    async def get_thing(self, thing_id: str) -> Thing | None:
        return await asyncio.to_thread(self.repository.get_thing, thing_id)

    async def mark_done(self, thing_id: str, photo_url: str | None = None) -> None:
        """Mark a thing done, optionally attaching a photo.

        Calling this again on a done thing re-sets its completion time unless
        ``preserve_first_done_at`` is enabled, in which case only a provided
        photo is backfilled.
        """
        if self.preserve_first_done_at:
            existing = await self.get_thing(thing_id)
            if existing is None:
                raise ThingNotFoundError(thing_id)
            if existing.is_done:
                if photo_url:
                    await self.attach_photo(thing_id, photo_url)
                return
        matched = await asyncio.to_thread(
            self.repository.mark_done, thing_id, self.clock(), photo_url or None
        )
        if not matched:
            raise ThingNotFoundError(thing_id)
        logger.info("Marked thing done", extra={"thing_id": thing_id})

    async def attach_photo(self, thing_id: str, photo_url: str) -> None:
        """Attach a photo to a thing that is already done."""
        if not photo_url.strip():
            raise ThingValidationError("A photo URL is required.")
        existing = await self.get_thing(thing_id)
        if existing is None:
            raise ThingNotFoundError(thing_id)
        if not existing.is_done:
            raise ThingValidationError("Only done things can have a photo.")
        matched = await asyncio.to_thread(
            self.repository.set_photo, thing_id, photo_url.strip()
        )
        if not matched:
            raise ThingNotFoundError(thing_id)
