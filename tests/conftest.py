from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from auth_service.api import routes
from auth_service.api.errors import register_exception_handlers
from auth_service.config import Settings
from auth_service.domain.account import Account, NewAccount
from auth_service.domain.errors import AccountNotFound, DuplicateEmail, DuplicateUsername
from auth_service.domain.service import AccountService
from auth_service.repository import normalize_page
from auth_service.security.gate import AuthenticationGate
from auth_service.security.passwords import BcryptPasswordHasher
from auth_service.security.rate_limiter import SlidingWindowRateLimiter

TEST_SECRET = "test-secret"


class FakeRepository:
    """In-memory store mimicking the Postgres constraints and row counts."""

    def __init__(self) -> None:
        self.accounts: dict[UUID, Account] = {}
        self.failures: dict[str, Exception] = {}
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.failures:
            raise self.failures[operation]

    def _ensure_unique(self, *, username: str | None = None, email: str | None = None) -> None:
        for account in self.accounts.values():
            if username is not None and account.username == username:
                raise DuplicateUsername()
            if email is not None and account.email == email:
                raise DuplicateEmail()

    def _require(self, account_id: UUID) -> Account:
        try:
            return self.accounts[account_id]
        except KeyError:
            raise AccountNotFound() from None

    def create(self, account: NewAccount) -> UUID:
        self._maybe_fail("create")
        self._ensure_unique(username=account.username)
        self._ensure_unique(email=account.email)
        now = self._tick()
        account_id = uuid.uuid4()
        self.accounts[account_id] = Account(
            account_id=account_id,
            username=account.username,
            email=account.email,
            password_hash=account.password_hash,
            created_at=now,
            updated_at=now,
        )
        return account_id

    def get_by_id(self, account_id: UUID) -> Account:
        self._maybe_fail("get_by_id")
        return replace(self._require(account_id))

    def get_by_email(self, email: str) -> Account:
        self._maybe_fail("get_by_email")
        for account in self.accounts.values():
            if account.email == email:
                return replace(account)
        raise AccountNotFound()

    def update_username(self, account_id: UUID, username: str) -> None:
        self._maybe_fail("update_username")
        account = self._require(account_id)
        self._ensure_unique(username=username)
        account.username = username
        account.updated_at = self._tick()

    def update_email(self, account_id: UUID, email: str) -> None:
        self._maybe_fail("update_email")
        account = self._require(account_id)
        self._ensure_unique(email=email)
        account.email = email
        account.updated_at = self._tick()

    def update_password(self, account_id: UUID, password_hash: str) -> None:
        self._maybe_fail("update_password")
        account = self._require(account_id)
        account.password_hash = password_hash
        account.updated_at = self._tick()

    def delete(self, account_id: UUID) -> None:
        self._maybe_fail("delete")
        self._require(account_id)
        del self.accounts[account_id]

    def list(self, limit: int, offset: int) -> list[Account]:
        self._maybe_fail("list")
        limit, offset = normalize_page(limit, offset)
        ordered = sorted(self.accounts.values(), key=lambda a: a.created_at, reverse=True)
        return [replace(account) for account in ordered[offset : offset + limit]]


@pytest.fixture
def settings() -> Settings:
    return Settings(jwt_secret=TEST_SECRET, jwt_expiration_hours=1, app_mode="debug")


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def hasher() -> BcryptPasswordHasher:
    # bcrypt's minimum cost keeps the suite fast
    return BcryptPasswordHasher(rounds=4)


@pytest.fixture
def service(repository, hasher, settings) -> AccountService:
    return AccountService(
        repository,
        hasher,
        token_secret=settings.jwt_secret,
        token_ttl=settings.token_ttl,
    )


@pytest.fixture
def api_client(service, settings):
    """Provide a FastAPI test client with isolated state."""
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(routes.router)
    app.state.settings = settings
    app.state.account_service = service
    app.state.auth_gate = AuthenticationGate(settings.jwt_secret, cookie_name=settings.cookie_name)
    app.state.rate_limiter = SlidingWindowRateLimiter(max_requests=100, window_seconds=60)

    with TestClient(app) as client:
        yield client, app
