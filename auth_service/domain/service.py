"""Account service orchestrating persistence, password hashing and token issuance."""

from __future__ import annotations

import logging
from datetime import timedelta
from uuid import UUID

from ..metrics import LOGIN_ATTEMPTS, REGISTRATIONS
from ..security.tokens import issue_session_token, new_session_claims
from .account import Account, NewAccount
from .contracts import ChangePasswordInput, LoginInput, RegisterAccountInput
from .errors import (
    AccountNotFound,
    DuplicateEmail,
    DuplicateUsername,
    InternalError,
    InvalidCredentials,
    InvalidOldPassword,
)
from .ports import AccountStore, PasswordHasher

logger = logging.getLogger(__name__)


class AccountService:
    """Account workflows over an ``AccountStore`` and a ``PasswordHasher``."""

    def __init__(
        self,
        store: AccountStore,
        hasher: PasswordHasher,
        *,
        token_secret: str,
        token_ttl: timedelta,
    ) -> None:
        """Store dependencies used to orchestrate persistence and token issuance."""
        self._store = store
        self._hasher = hasher
        self._token_secret = token_secret
        self._token_ttl = token_ttl

    def register(self, payload: RegisterAccountInput) -> UUID:
        """Create an account, persisting only the password hash.

        ``DuplicateUsername`` and ``DuplicateEmail`` from the store reach the
        caller unchanged.
        """
        password_hash = self._hasher.hash(payload.password)
        account_id = self._store.create(
            NewAccount(username=payload.username, email=payload.email, password_hash=password_hash)
        )
        REGISTRATIONS.inc()
        logger.info("account registered", extra={"account_id": str(account_id), "username": payload.username})
        return account_id

    def login(self, payload: LoginInput) -> str:
        """Check credentials and return a signed session token.

        An unknown email and a wrong password raise the same
        ``InvalidCredentials`` so responses cannot be used to probe for
        registered addresses.
        """
        try:
            account = self._store.get_by_email(payload.email)
        except AccountNotFound:
            LOGIN_ATTEMPTS.labels(outcome="rejected").inc()
            logger.warning("login failed: unknown email")
            raise InvalidCredentials() from None

        if not self._hasher.verify(account.password_hash, payload.password):
            LOGIN_ATTEMPTS.labels(outcome="rejected").inc()
            logger.warning("login failed: password mismatch", extra={"account_id": str(account.account_id)})
            raise InvalidCredentials()

        claims = new_session_claims(account.account_id, account.username, self._token_ttl)
        try:
            token = issue_session_token(claims, self._token_secret)
        except Exception as exc:
            logger.exception("failed to sign session token")
            raise InternalError() from exc

        LOGIN_ATTEMPTS.labels(outcome="success").inc()
        logger.info("account logged in", extra={"account_id": str(account.account_id)})
        return token

    def get_by_id(self, account_id: UUID) -> Account:
        return self._store.get_by_id(account_id)

    def get_by_email(self, email: str) -> Account:
        return self._store.get_by_email(email)

    def change_username(self, account_id: UUID, new_username: str) -> None:
        try:
            self._store.update_username(account_id, new_username)
        except (DuplicateUsername, AccountNotFound):
            raise
        except Exception as exc:
            logger.exception("failed to update username", extra={"account_id": str(account_id)})
            raise InternalError() from exc
        logger.info("username changed", extra={"account_id": str(account_id), "username": new_username})

    def change_email(self, account_id: UUID, new_email: str) -> None:
        try:
            self._store.update_email(account_id, new_email)
        except (DuplicateEmail, AccountNotFound):
            raise
        except Exception as exc:
            logger.exception("failed to update email", extra={"account_id": str(account_id)})
            raise InternalError() from exc
        logger.info("email changed", extra={"account_id": str(account_id)})

    def change_password(self, account_id: UUID, payload: ChangePasswordInput) -> None:
        """Replace the password after re-checking the current one.

        The stored hash is left untouched when ``old_password`` does not match.
        """
        account = self._store.get_by_id(account_id)
        if not self._hasher.verify(account.password_hash, payload.old_password):
            logger.warning("password change rejected: wrong old password", extra={"account_id": str(account_id)})
            raise InvalidOldPassword()

        try:
            new_hash = self._hasher.hash(payload.new_password)
            self._store.update_password(account_id, new_hash)
        except Exception as exc:
            logger.exception("failed to update password", extra={"account_id": str(account_id)})
            raise InternalError() from exc
        logger.info("password changed", extra={"account_id": str(account_id)})

    def delete(self, account_id: UUID) -> None:
        self._store.delete(account_id)
        logger.info("account deleted", extra={"account_id": str(account_id)})

    def list_accounts(self, limit: int, offset: int) -> list[Account]:
        accounts = self._store.list(limit, offset)
        logger.debug("listed accounts", extra={"count": len(accounts)})
        return accounts
