"""Domain error kinds shared by the repository, service and authentication gate.

Each kind carries a fixed, client-safe message. Backend detail (SQL state,
driver messages, token parsing reasons) is logged where it occurs and never
copied into these exceptions.
"""

from __future__ import annotations


class AccountError(Exception):
    """Base class for every outcome the HTTP boundary knows how to render."""

    message = "account error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class AccountNotFound(AccountError):
    message = "user not found"


class DuplicateUsername(AccountError):
    message = "username already taken"


class DuplicateEmail(AccountError):
    message = "email already taken"


class InvalidCredentials(AccountError):
    """Login failed. Deliberately silent on whether the email exists."""

    message = "invalid credentials"


class InvalidOldPassword(AccountError):
    message = "invalid old password"


class InternalError(AccountError):
    message = "internal error"


class StorageError(InternalError):
    """Raised by the repository for database failures that are not conflicts."""


class Unauthorized(AccountError):
    """Raised by the authentication gate; the message is one of three coarse reasons."""

    message = "unauthorized"


class RateLimited(AccountError):
    message = "rate limited"
