"""Database repository for account credentials."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar
from uuid import UUID

import psycopg
from psycopg import errors as pg_errors
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool, PoolTimeout

from .domain.account import Account, NewAccount
from .domain.errors import (
    AccountError,
    AccountNotFound,
    DuplicateEmail,
    DuplicateUsername,
    StorageError,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10

# Unique constraint names from migrations/0001_init_users.sql.
_UNIQUE_CONSTRAINTS: dict[str, type[AccountError]] = {
    "users_username_key": DuplicateUsername,
    "users_email_key": DuplicateEmail,
}

_ACCOUNT_COLUMNS = "id, username, email, password_hash, created_at, updated_at"

T = TypeVar("T")


def normalize_page(limit: int, offset: int) -> tuple[int, int]:
    """Clamp caller-supplied paging to values the store accepts."""
    if limit <= 0:
        limit = DEFAULT_PAGE_SIZE
    if offset < 0:
        offset = 0
    return limit, offset


def classify_unique_violation(exc: pg_errors.UniqueViolation) -> AccountError:
    """Map a unique-constraint failure onto the matching conflict kind."""
    constraint = getattr(exc.diag, "constraint_name", None)
    kind = _UNIQUE_CONSTRAINTS.get(constraint or "")
    if kind is None:
        logger.error("unexpected unique violation on constraint %s", constraint)
        return StorageError()
    return kind()


class AccountRepository:
    """Postgres-backed account persistence.

    Every call checks a connection out of the pool with a bounded wait and
    relies on the pool's ``statement_timeout`` for the query itself. Driver
    exceptions never leave this class: conflicts become ``DuplicateUsername``
    or ``DuplicateEmail`` and everything else becomes ``StorageError``.
    """

    def __init__(self, pool: ConnectionPool, timeout: float = 5.0) -> None:
        """Store the connection pool and the checkout timeout used for every call."""
        self._pool = pool
        self._timeout = timeout

    @contextmanager
    def _cursor(self, operation: str) -> Iterator[psycopg.Cursor]:
        """Yield a cursor inside a transaction, translating driver failures."""
        try:
            with self._pool.connection(timeout=self._timeout) as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    yield cur
        except pg_errors.UniqueViolation as exc:
            raise classify_unique_violation(exc) from exc
        except PoolTimeout as exc:
            logger.error("%s: timed out waiting for a database connection", operation)
            raise StorageError() from exc
        except psycopg.Error as exc:
            logger.error("%s failed: %s", operation, exc)
            raise StorageError() from exc

    def _execute_write(self, operation: str, query: str, params: tuple) -> None:
        with self._cursor(operation) as cur:
            cur.execute(query, params)
            affected = cur.rowcount
        if affected == 0:
            raise AccountNotFound()

    def _fetch_one(self, operation: str, query: str, params: tuple, mapper: Callable[[tuple], T]) -> T:
        with self._cursor(operation) as cur:
            cur.execute(query, params)
            row = cur.fetchone()
        if row is None:
            raise AccountNotFound()
        return mapper(row)

    def create(self, account: NewAccount) -> UUID:
        """Insert an account and return the identifier generated by the database."""
        return self._fetch_one(
            "create account",
            """
            INSERT INTO users (username, email, password_hash)
            VALUES (%s, %s, %s)
            RETURNING id
            """,
            (account.username, account.email, account.password_hash),
            lambda row: row[0],
        )

    def get_by_id(self, account_id: UUID) -> Account:
        return self._fetch_one(
            "get account by id",
            f"SELECT {_ACCOUNT_COLUMNS} FROM users WHERE id = %s",
            (account_id,),
            self._map_record,
        )

    def get_by_email(self, email: str) -> Account:
        return self._fetch_one(
            "get account by email",
            f"SELECT {_ACCOUNT_COLUMNS} FROM users WHERE email = %s",
            (email,),
            self._map_record,
        )

    def update_username(self, account_id: UUID, username: str) -> None:
        self._execute_write(
            "update username",
            "UPDATE users SET username = %s, updated_at = NOW() WHERE id = %s",
            (username, account_id),
        )

    def update_email(self, account_id: UUID, email: str) -> None:
        self._execute_write(
            "update email",
            "UPDATE users SET email = %s, updated_at = NOW() WHERE id = %s",
            (email, account_id),
        )

    def update_password(self, account_id: UUID, password_hash: str) -> None:
        self._execute_write(
            "update password",
            "UPDATE users SET password_hash = %s, updated_at = NOW() WHERE id = %s",
            (password_hash, account_id),
        )

    def delete(self, account_id: UUID) -> None:
        self._execute_write("delete account", "DELETE FROM users WHERE id = %s", (account_id,))

    def list(self, limit: int, offset: int) -> list[Account]:
        """Return a page of accounts, newest first. Never ``None``."""
        limit, offset = normalize_page(limit, offset)
        with self._cursor("list accounts") as cur:
            cur.execute(
                f"""
                SELECT {_ACCOUNT_COLUMNS}
                FROM users
                ORDER BY created_at DESC, id DESC
                LIMIT %s OFFSET %s
                """,
                (limit, offset),
            )
            rows = cur.fetchall()
        return [self._map_record(row) for row in rows]

    def _map_record(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        return Account(
            account_id=row[0],
            username=row[1],
            email=row[2],
            password_hash=row[3],
            created_at=row[4],
            updated_at=row[5],
        )


def open_pool(database_url: str, *, timeout: float, min_size: int = 1, max_size: int = 10) -> ConnectionPool:
    """Open a pool whose connections cancel any statement running longer than ``timeout``."""
    statement_timeout_ms = int(timeout * 1000)
    pool = ConnectionPool(
        database_url,
        min_size=min_size,
        max_size=max_size,
        timeout=timeout,
        kwargs={"options": f"-c statement_timeout={statement_timeout_ms}"},
        open=False,
    )
    pool.open()
    return pool
