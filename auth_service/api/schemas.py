"""Request and response bodies for the HTTP API."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, EmailStr, Field

from ..domain.account import Account
from ..domain.validation import (
    PASSWORD_MAX_LENGTH,
    PASSWORD_MIN_LENGTH,
    USERNAME_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
    validate_strict_email,
)

DATE_FORMAT = "%d.%m.%Y %H:%M:%S"


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(DATE_FORMAT)


StrictEmail = Annotated[EmailStr, AfterValidator(validate_strict_email)]
Username = Annotated[str, Field(min_length=USERNAME_MIN_LENGTH, max_length=USERNAME_MAX_LENGTH)]
Password = Annotated[str, Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)]


class AccountResponse(BaseModel):
    """Public view of an account. The password hash is never serialised."""

    id: UUID
    username: str
    email: str
    created_at: str
    updated_at: str

    @classmethod
    def from_domain(cls, account: Account) -> "AccountResponse":
        """Build a response model from the domain dataclass."""
        return cls(
            id=account.account_id,
            username=account.username,
            email=account.email,
            created_at=format_timestamp(account.created_at),
            updated_at=format_timestamp(account.updated_at),
        )


class SignUpRequest(BaseModel):
    username: Username
    email: StrictEmail
    password: Password


class SignUpResponse(BaseModel):
    id: UUID
    message: str = "user registered"


class SignInRequest(BaseModel):
    email: StrictEmail
    password: str = Field(..., min_length=1)


class SignInResponse(BaseModel):
    token: str


class ChangeProfileRequest(BaseModel):
    new_username: Username


class ChangeEmailRequest(BaseModel):
    new_email: StrictEmail


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(..., min_length=1)
    new_password: Password


class MessageResponse(BaseModel):
    message: str
