"""Map domain error kinds onto HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..domain.errors import (
    AccountError,
    AccountNotFound,
    DuplicateEmail,
    DuplicateUsername,
    InternalError,
    InvalidCredentials,
    InvalidOldPassword,
    RateLimited,
    Unauthorized,
)

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[AccountError], int] = {
    AccountNotFound: status.HTTP_404_NOT_FOUND,
    DuplicateUsername: status.HTTP_409_CONFLICT,
    DuplicateEmail: status.HTTP_409_CONFLICT,
    InvalidCredentials: status.HTTP_401_UNAUTHORIZED,
    InvalidOldPassword: status.HTTP_401_UNAUTHORIZED,
    Unauthorized: status.HTTP_401_UNAUTHORIZED,
    RateLimited: status.HTTP_429_TOO_MANY_REQUESTS,
    InternalError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(exc: AccountError) -> int:
    """Resolve the status for ``exc`` by walking its class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AccountError, account_error_handler)
