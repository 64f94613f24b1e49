"""FastAPI glue for the authentication gate."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, Request

from ..security.gate import AuthenticationGate


@dataclass(frozen=True, slots=True)
class CurrentAccount:
    account_id: UUID
    username: str


def get_gate(request: Request) -> AuthenticationGate:
    """Resolve the gate stored on the FastAPI application state."""
    gate: AuthenticationGate = request.app.state.auth_gate
    return gate


def require_session(
    request: Request,
    gate: AuthenticationGate = Depends(get_gate),
) -> CurrentAccount:
    """Reject the request unless it carries a valid session token.

    On success the caller's identity is attached to ``request.state`` and
    returned for handlers that declare the dependency directly.
    """
    cookie = request.cookies.get(gate.cookie_name)
    claims = gate.authenticate(cookie, request.headers.get("Authorization"))
    request.state.account_id = claims.account_id
    request.state.username = claims.username
    return CurrentAccount(account_id=claims.account_id, username=claims.username)
