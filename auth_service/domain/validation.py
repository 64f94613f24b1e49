"""Input rules applied at the HTTP boundary before anything reaches the service."""

from __future__ import annotations

USERNAME_MIN_LENGTH = 2
USERNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 72
# matches users.email VARCHAR(100)
EMAIL_MAX_LENGTH = 100


def validate_strict_email(value: str) -> str:
    """Apply the rules ``EmailStr`` leaves open on an already parsed address.

    The top-level domain must be at least two ASCII letters and the whole
    address must fit the storage column.
    """
    if len(value) > EMAIL_MAX_LENGTH:
        raise ValueError(f"email must be at most {EMAIL_MAX_LENGTH} characters")
    tld = value.rpartition("@")[2].rpartition(".")[2]
    if len(tld) < 2 or not (tld.isascii() and tld.isalpha()):
        raise ValueError("email must end in an alphabetic top-level domain")
    return value
