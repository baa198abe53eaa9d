"""User profile lookup and provisioning."""

import asyncio
from dataclasses import dataclass
from typing import Protocol

from things_together.domain.errors import StoreError
from things_together.domain.profiles import UserProfile


class ProfileRepository(Protocol):
    """Persistence interface for user profiles."""

    def get_profile(self, uid: str) -> UserProfile | None:
        """Return the profile for an account id, if present."""

    def upsert_profile(
        self, uid: str, email: str, display_name: str, partner_name: str
    ) -> None:
        """Merge profile fields into the row for uid, keeping created_at."""


@dataclass
class ProfileService:
    """Application service for user profiles."""

    repository: ProfileRepository

    async def get_profile(self, uid: str) -> UserProfile | None:
        return await asyncio.to_thread(self.repository.get_profile, uid)

    def upsert_profile(
        self, uid: str, email: str, display_name: str, partner_name: str
    ) -> UserProfile:
        """Create or update a profile and return the stored row.

        The write acknowledgement does not carry the stored created_at, so the
        row is read back after the upsert.
        """
        self.repository.upsert_profile(uid, email, display_name, partner_name)
        stored = self.repository.get_profile(uid)
        if stored is None:
            raise StoreError("Failed to read user profile after upsert")
        return stored
