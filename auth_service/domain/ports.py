"""Capabilities the account service depends on.

The service only sees these protocols, so tests can hand it in-memory stores
or cheap hashers without touching Postgres or bcrypt.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from .account import Account, NewAccount


class AccountStore(Protocol):
    """Persistence for account records.

    Implementations raise ``AccountNotFound`` when a read, update or delete
    matches no row, ``DuplicateUsername``/``DuplicateEmail`` when a write hits
    the matching unique constraint, and ``StorageError`` for anything else.
    """

    def create(self, account: NewAccount) -> UUID: ...

    def get_by_id(self, account_id: UUID) -> Account: ...

    def get_by_email(self, email: str) -> Account: ...

    def update_username(self, account_id: UUID, username: str) -> None: ...

    def update_email(self, account_id: UUID, email: str) -> None: ...

    def update_password(self, account_id: UUID, password_hash: str) -> None: ...

    def delete(self, account_id: UUID) -> None: ...

    def list(self, limit: int, offset: int) -> list[Account]: ...


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...

    def verify(self, password_hash: str, password: str) -> bool: ...
