"""HTTP route definitions for the auth service."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from ..config import Settings
from ..domain.contracts import ChangePasswordInput, LoginInput, RegisterAccountInput
from ..domain.errors import RateLimited
from ..domain.service import AccountService
from ..security.rate_limiter import RateLimiter
from .auth import CurrentAccount, require_session
from .schemas import (
    AccountResponse,
    ChangeEmailRequest,
    ChangePasswordRequest,
    ChangeProfileRequest,
    MessageResponse,
    SignInRequest,
    SignInResponse,
    SignUpRequest,
    SignUpResponse,
)

logger = logging.getLogger(__name__)

auth_router = APIRouter(prefix="/auth", tags=["auth"])
user_router = APIRouter(prefix="/user", tags=["users"], dependencies=[Depends(require_session)])


def get_service(request: Request) -> AccountService:
    """Resolve the `AccountService` stored on the FastAPI application state."""
    service: AccountService = request.app.state.account_service
    return service


def get_settings_state(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def throttle(request: Request) -> None:
    """Count the call against the caller's credential-endpoint budget."""
    limiter: RateLimiter = request.app.state.rate_limiter
    client = request.client.host if request.client else "unknown"
    if not limiter.allow(f"{request.url.path}:{client}"):
        logger.warning("rate limited %s from %s", request.url.path, client)
        raise RateLimited()


@auth_router.post(
    "/signup",
    response_model=SignUpResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(throttle)],
)
def sign_up(
    payload: SignUpRequest,
    service: AccountService = Depends(get_service),
) -> SignUpResponse:
    """Register an account."""
    account_id = service.register(
        RegisterAccountInput(
            username=payload.username,
            email=payload.email,
            password=payload.password,
        )
    )
    return SignUpResponse(id=account_id)


@auth_router.post("/signin", response_model=SignInResponse, dependencies=[Depends(throttle)])
def sign_in(
    payload: SignInRequest,
    response: Response,
    service: AccountService = Depends(get_service),
    settings: Settings = Depends(get_settings_state),
) -> SignInResponse:
    """Exchange credentials for a session token, also set as an http-only cookie."""
    token = service.login(LoginInput(email=payload.email, password=payload.password))
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        max_age=int(settings.token_ttl.total_seconds()),
        path="/",
        secure=settings.secure_cookies,
        httponly=True,
        samesite="lax",
    )
    return SignInResponse(token=token)


@auth_router.post("/logout", response_model=MessageResponse)
def logout(response: Response, settings: Settings = Depends(get_settings_state)) -> MessageResponse:
    """Drop the session cookie. The token itself stays valid until it expires."""
    response.delete_cookie(settings.cookie_name, path="/", httponly=True)
    return MessageResponse(message="successfully logged out")


@user_router.get("", response_model=list[AccountResponse])
def list_accounts(
    limit: int = Query(default=10),
    offset: int = Query(default=0),
    service: AccountService = Depends(get_service),
) -> list[AccountResponse]:
    """Return accounts newest first; out-of-range paging is normalised by the store."""
    return [AccountResponse.from_domain(account) for account in service.list_accounts(limit, offset)]


@user_router.get("/me", response_model=AccountResponse)
def get_profile(
    current: CurrentAccount = Depends(require_session),
    service: AccountService = Depends(get_service),
) -> AccountResponse:
    return AccountResponse.from_domain(service.get_by_id(current.account_id))


@user_router.patch("/me/profile", response_model=MessageResponse)
def change_profile(
    payload: ChangeProfileRequest,
    current: CurrentAccount = Depends(require_session),
    service: AccountService = Depends(get_service),
) -> MessageResponse:
    service.change_username(current.account_id, payload.new_username)
    return MessageResponse(message="profile updated")


@user_router.patch("/me/email", response_model=MessageResponse)
def change_email(
    payload: ChangeEmailRequest,
    current: CurrentAccount = Depends(require_session),
    service: AccountService = Depends(get_service),
) -> MessageResponse:
    service.change_email(current.account_id, payload.new_email)
    return MessageResponse(message="email updated")


@user_router.patch("/me/password", response_model=MessageResponse)
def change_password(
    payload: ChangePasswordRequest,
    current: CurrentAccount = Depends(require_session),
    service: AccountService = Depends(get_service),
) -> MessageResponse:
    service.change_password(
        current.account_id,
        ChangePasswordInput(old_password=payload.old_password, new_password=payload.new_password),
    )
    return MessageResponse(message="password updated")


@user_router.delete("/me", response_model=MessageResponse)
def delete_account(
    response: Response,
    current: CurrentAccount = Depends(require_session),
    service: AccountService = Depends(get_service),
    settings: Settings = Depends(get_settings_state),
) -> MessageResponse:
    service.delete(current.account_id)
    response.delete_cookie(settings.cookie_name, path="/", httponly=True)
    return MessageResponse(message="user deleted")


@user_router.get("/search", response_model=AccountResponse)
def search_by_email(
    email: str = Query(default=""),
    service: AccountService = Depends(get_service),
) -> AccountResponse:
    if not email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="email is required")
    return AccountResponse.from_domain(service.get_by_email(email))


@user_router.get("/{account_id}", response_model=AccountResponse)
def get_account(account_id: str, service: AccountService = Depends(get_service)) -> AccountResponse:
    """Retrieve any account by identifier."""
    try:
        parsed = UUID(account_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid user id format") from None
    return AccountResponse.from_domain(service.get_by_id(parsed))


router = APIRouter()
router.include_router(auth_router)
router.include_router(user_router)
