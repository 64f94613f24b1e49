from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(slots=True)
class Account:
    """Registered identity: unique username and email plus a one-way password hash."""

    account_id: UUID
    username: str
    email: str
    password_hash: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class NewAccount:
    """Account fields supplied on insert; the store assigns id and timestamps."""

    username: str
    email: str
    password_hash: str


@dataclass(frozen=True, slots=True)
class SessionClaims:
    """Identity snapshot carried inside a session token. Never persisted."""

    account_id: UUID
    username: str
    issued_at: datetime
    expires_at: datetime
    issuer: str
