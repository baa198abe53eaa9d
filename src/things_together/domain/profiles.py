"""Domain models for user profiles and identities."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class AuthUser:
    """Authenticated account as reported by the identity provider."""

    uid: str
    email: str | None


@dataclass(frozen=True)
class UserProfile:
    """Pre-provisioned profile for an account."""

    uid: str
    email: str
    display_name: str
    partner_name: str
    created_at: datetime
