"""Domain models for the application session."""

from dataclasses import dataclass
from enum import StrEnum

from things_together.domain.profiles import AuthUser, UserProfile


class SessionState(StrEnum):
    """Settled or pending states of the session."""

    LOADING = "loading"
    AUTHENTICATED_WITH_PROFILE = "authenticated_with_profile"
    AUTHENTICATED_NO_PROFILE = "authenticated_no_profile"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True)
class SessionSnapshot:
    """Point-in-time view of who is using the app."""

    user: AuthUser | None
    profile: UserProfile | None
    loading: bool
    partner_display_name: str

    @property
    def state(self) -> SessionState:
        if self.loading:
            return SessionState.LOADING
        if self.user is None:
            return SessionState.UNAUTHENTICATED
        if self.profile is None:
            return SessionState.AUTHENTICATED_NO_PROFILE
        return SessionState.AUTHENTICATED_WITH_PROFILE
