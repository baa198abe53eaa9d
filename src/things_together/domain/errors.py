"""Error types shared across the application."""

from enum import StrEnum


class StoreError(RuntimeError):
    """Raised when the hosted store fails a read or write."""


class ThingValidationError(ValueError):
    """Raised when a thing operation is rejected before any I/O."""


class ThingNotFoundError(LookupError):
    """Raised when an operation targets a thing that does not exist."""

    def __init__(self, thing_id: str) -> None:
        super().__init__(f"Thing {thing_id} not found")
        self.thing_id = thing_id


class SignInErrorCode(StrEnum):
    """Identity provider failure codes the UI distinguishes."""

    INVALID_EMAIL = "invalid-email"
    USER_NOT_FOUND = "user-not-found"
    WRONG_PASSWORD = "wrong-password"
    TOO_MANY_REQUESTS = "too-many-requests"
    OTHER = "other"


class SignInError(Exception):
    """Raised when the identity provider rejects a sign-in."""

    def __init__(self, code: SignInErrorCode, message: str | None = None) -> None:
        super().__init__(message or code.value)
        self.code = code
