"""Utilities for issuing and validating session JWTs."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import jwt

from ..domain.account import SessionClaims

TOKEN_ISSUER = "auth-service"
SIGNING_ALGORITHM = "HS256"
# Only the symmetric HMAC family is accepted on decode; anything else in the
# header (none, RS256, ...) is rejected before the signature is checked.
ACCEPTED_ALGORITHMS = ["HS256", "HS384", "HS512"]


class InvalidTokenError(Exception):
    """Raised when a token fails signature, algorithm, expiry or claim checks."""


def new_session_claims(
    account_id: UUID, username: str, ttl: timedelta, now: datetime | None = None
) -> SessionClaims:
    """Build claims for a session starting at ``now`` and lasting ``ttl``."""
    issued_at = (now or datetime.now(timezone.utc)).replace(microsecond=0)
    return SessionClaims(
        account_id=account_id,
        username=username,
        issued_at=issued_at,
        expires_at=issued_at + ttl,
        issuer=TOKEN_ISSUER,
    )


def issue_session_token(claims: SessionClaims, secret: str) -> str:
    """Sign ``claims`` with ``secret``.

    Parameters
    ----------
    claims:
        Identity snapshot, typically from :func:`new_session_claims`.
    secret:
        Process-wide symmetric signing key.

    Returns
    -------
    str
        The encoded JWT.
    """

    payload: dict[str, Any] = {
        "user_id": str(claims.account_id),
        "username": claims.username,
        "iss": claims.issuer,
        "iat": int(claims.issued_at.timestamp()),
        "exp": int(claims.expires_at.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=SIGNING_ALGORITHM)


def decode_session_token(token: str, secret: str) -> SessionClaims:
    """Verify ``token`` and return its claims.

    Raises
    ------
    InvalidTokenError
        When the signature does not match ``secret``, the header names a
        non-HMAC algorithm, the token has expired, the issuer is foreign or a
        required claim is missing or malformed.
    """

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=ACCEPTED_ALGORITHMS,
            issuer=TOKEN_ISSUER,
            options={"require": ["exp", "iat", "iss", "user_id", "username"]},
        )
        account_id = UUID(payload["user_id"])
    except (jwt.PyJWTError, ValueError, TypeError) as exc:
        raise InvalidTokenError(str(exc)) from exc

    return SessionClaims(
        account_id=account_id,
        username=str(payload["username"]),
        issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        issuer=payload["iss"],
    )
