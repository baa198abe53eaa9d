"""Supabase-backed user profile repository."""

from dataclasses import dataclass

from supabase import Client

from things_together.adapters.supabase_thing_repository import (
    parse_row,
    parse_timestamp,
    run_query,
)
from things_together.domain.errors import StoreError
from things_together.domain.profiles import UserProfile
from things_together.services.profiles import ProfileRepository


def _build_profile(row: dict[str, object]) -> UserProfile:
    created_at = parse_timestamp(row.get("created_at"))
    if created_at is None:
        raise StoreError(f"Profile {row['uid']} has no creation time")
    return UserProfile(
        uid=str(row["uid"]),
        email=str(row.get("email") or ""),
        display_name=str(row.get("display_name") or ""),
        partner_name=str(row.get("partner_name") or ""),
        created_at=created_at,
    )


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for user profiles, keyed by auth uid."""

    client: Client

    def get_profile(self, uid: str) -> UserProfile | None:
        """Return the profile for an account id, if present."""
        response = run_query(
            "get user profile",
            lambda: self.client.table("users")
            .select("uid, email, display_name, partner_name, created_at")
            .eq("uid", uid)
            .limit(1)
            .execute(),
        )
        if not response.data:
            return None
        return parse_row("profile", response.data[0], _build_profile)

    def upsert_profile(
        self, uid: str, email: str, display_name: str, partner_name: str
    ) -> None:
        """Merge profile fields; created_at keeps its database default."""
        run_query(
            "upsert user profile",
            lambda: self.client.table("users")
            .upsert(
                {
                    "uid": uid,
                    "email": email,
                    "display_name": display_name,
                    "partner_name": partner_name,
                },
                on_conflict="uid",
            )
            .execute(),
        )
