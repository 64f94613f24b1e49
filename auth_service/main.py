"""FastAPI application wiring for the auth service."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .api.errors import register_exception_handlers
from .api.routes import router
from .config import Settings, get_settings
from .domain.service import AccountService
from .logging_setup import configure_logging
from .repository import AccountRepository, open_pool
from .security.gate import AuthenticationGate
from .security.passwords import BcryptPasswordHasher
from .security.rate_limiter import build_rate_limiter

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("auth_service.access")


async def log_requests(request: Request, call_next) -> Response:
    """Log one line per request, at a level chosen by the response status."""
    started = time.perf_counter()
    response = await call_next(request)
    latency_ms = (time.perf_counter() - started) * 1000
    level = logging.INFO
    if response.status_code >= 500:
        level = logging.ERROR
    elif response.status_code >= 400:
        level = logging.WARNING
    access_logger.log(
        level,
        "%s %s -> %d",
        request.method,
        request.url.path,
        response.status_code,
        extra={
            "status": response.status_code,
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else None,
            "user_agent": request.headers.get("user-agent", ""),
            "latency_ms": round(latency_ms, 2),
        },
    )
    return response


def create_app(settings: Settings) -> FastAPI:
    """Build the application; the database pool is opened by the lifespan hook."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialise shared resources (Postgres pool, services) for the app lifecycle."""
        pool = open_pool(
            settings.database_url,
            timeout=settings.db_timeout_seconds,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )
        app.state.pool = pool
        app.state.account_service = AccountService(
            AccountRepository(pool, timeout=settings.db_timeout_seconds),
            BcryptPasswordHasher(),
            token_secret=settings.jwt_secret,
            token_ttl=settings.token_ttl,
        )
        logger.info("auth service started in %s mode", settings.app_mode)
        try:
            yield
        finally:
            logger.info("shutting down, closing database pool")
            pool.close()

    app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)
    app.state.settings = settings
    app.state.auth_gate = AuthenticationGate(settings.jwt_secret, cookie_name=settings.cookie_name)
    app.state.rate_limiter = build_rate_limiter(settings)

    app.middleware("http")(log_requests)
    register_exception_handlers(app)

    @app.get("/healthz", tags=["health"])
    def healthz() -> dict[str, str]:
        """Return a minimal readiness indicator used by orchestration systems."""
        return {"status": "ok"}

    @app.get("/metrics", include_in_schema=False)
    def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(router)
    return app


def run() -> None:
    """Validate configuration, set up logging and serve with uvicorn."""
    settings = get_settings()
    settings.validate()
    configure_logging(settings.log_level, settings.app_mode)
    uvicorn.run(
        create_app(settings),
        host=settings.http_host,
        port=settings.http_port,
        log_config=None,
    )
