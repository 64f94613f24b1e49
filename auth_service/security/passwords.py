"""Password hashing backed by bcrypt."""

from __future__ import annotations

import logging

import bcrypt

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 10
# bcrypt only reads the first 72 bytes of its input.
_BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class BcryptPasswordHasher:
    """Salted one-way password hashing with a fixed work factor.

    The work factor is not read from configuration; ``rounds`` exists so the
    test suite can use bcrypt's minimum cost.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self._rounds = rounds

    def hash(self, password: str) -> str:
        """Return the bcrypt hash (``$2b$...``) of ``password``."""
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(_encode(password), salt).decode("utf-8")

    def verify(self, password_hash: str, password: str) -> bool:
        """Return ``True`` when ``password`` matches ``password_hash``.

        A stored value that is not a bcrypt hash is reported as a mismatch.
        """
        try:
            return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
        except (ValueError, TypeError):
            logger.warning("stored password hash is malformed")
            return False
