"""Supabase Auth identity provider."""

from collections.abc import Callable
from dataclasses import dataclass

from supabase import AuthApiError, AuthError, Client

from things_together.domain.errors import SignInError, SignInErrorCode
from things_together.domain.profiles import AuthUser
from things_together.services.session import AuthStateCallback, IdentityProvider

_TOO_MANY_REQUESTS_STATUS = 429

_ERROR_CODES = {
    "email_address_invalid": SignInErrorCode.INVALID_EMAIL,
    "validation_failed": SignInErrorCode.INVALID_EMAIL,
    "user_not_found": SignInErrorCode.USER_NOT_FOUND,
    "invalid_credentials": SignInErrorCode.WRONG_PASSWORD,
    "over_request_rate_limit": SignInErrorCode.TOO_MANY_REQUESTS,
}


def map_auth_error_code(code: str | None, status: int | None) -> SignInErrorCode:
    """Map a Supabase Auth error onto the codes the sign-in form knows."""
    if status == _TOO_MANY_REQUESTS_STATUS:
        return SignInErrorCode.TOO_MANY_REQUESTS
    if code is None:
        return SignInErrorCode.OTHER
    return _ERROR_CODES.get(code, SignInErrorCode.OTHER)


def _to_auth_user(user: object | None) -> AuthUser | None:
    if user is None:
        return None
    return AuthUser(uid=str(user.id), email=getattr(user, "email", None))


@dataclass
class SupabaseIdentityProvider(IdentityProvider):
    """Identity provider backed by the Supabase Auth client."""

    client: Client

    def sign_in(self, email: str, password: str) -> AuthUser:
        """Sign in with email and password."""
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthApiError as exc:
            raise SignInError(
                map_auth_error_code(
                    getattr(exc, "code", None), getattr(exc, "status", None)
                ),
                exc.message,
            ) from exc
        except AuthError as exc:
            raise SignInError(SignInErrorCode.OTHER, exc.message) from exc
        user = _to_auth_user(response.user)
        if user is None:
            raise SignInError(SignInErrorCode.OTHER, "Sign-in returned no user")
        return user

    def sign_out(self) -> None:
        """Sign the current user out."""
        try:
            self.client.auth.sign_out()
        except AuthError as exc:
            raise SignInError(SignInErrorCode.OTHER, exc.message) from exc

    def subscribe(self, callback: AuthStateCallback) -> Callable[[], None]:
        """Forward auth-state changes, firing once with the current session."""
        subscription = self.client.auth.on_auth_state_change(
            lambda _event, session: callback(
                _to_auth_user(session.user if session else None)
            )
        )
        session = self.client.auth.get_session()
        callback(_to_auth_user(session.user if session else None))
        return subscription.unsubscribe
