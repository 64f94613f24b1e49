"""Request-time session check run ahead of every protected route."""

from __future__ import annotations

import logging

from ..domain.account import SessionClaims
from ..domain.errors import Unauthorized
from .tokens import InvalidTokenError, decode_session_token

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

AUTHORIZATION_REQUIRED = "authorization required"
INVALID_AUTH_HEADER = "invalid auth header"
INVALID_TOKEN = "invalid token"


class AuthenticationGate:
    """Resolve the caller's session from a cookie or an ``Authorization`` header.

    The gate knows nothing about the web framework: callers pass in the raw
    cookie value and header, and attach the returned claims to whatever
    request context they use.
    """

    def __init__(self, secret: str, cookie_name: str = "token") -> None:
        self._secret = secret
        self.cookie_name = cookie_name

    def extract_token(self, cookie: str | None, authorization: str | None) -> str:
        """Return the presented token, preferring the session cookie."""
        if cookie:
            return cookie
        if not authorization:
            raise Unauthorized(AUTHORIZATION_REQUIRED)
        if len(authorization) <= len(BEARER_PREFIX) or not authorization.startswith(BEARER_PREFIX):
            raise Unauthorized(INVALID_AUTH_HEADER)
        return authorization[len(BEARER_PREFIX):]

    def authenticate(self, cookie: str | None, authorization: str | None) -> SessionClaims:
        """Return verified claims or raise ``Unauthorized``.

        Every verification failure (bad signature, foreign algorithm, expiry)
        produces the same ``invalid token`` outcome; the reason is only logged.
        """
        token = self.extract_token(cookie, authorization)
        try:
            return decode_session_token(token, self._secret)
        except InvalidTokenError as exc:
            logger.info("session token rejected: %s", exc)
            raise Unauthorized(INVALID_TOKEN) from exc
