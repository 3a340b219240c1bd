"""Main FastAPI application.

Run with ``uvicorn --factory dashboard.main:create_app``.
"""

import logging
from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import Engine

import dashboard.models  # noqa: F401  (registers every table on Base.metadata)
from dashboard.config import Settings, get_settings
from dashboard.database import Base, create_db_engine, create_session_factory
from dashboard.dependencies.auth import (
    HEADER_REQUEST_ID,
    HEADER_TOKEN,
    delete_session_cookies,
)
from dashboard.exceptions import (
    AuthenticationError,
    ConflictError,
    DashboardError,
    IncorrectPasswordError,
    InvalidSessionError,
    InvalidTokenError,
    LockedAccountError,
    NotFoundError,
    OAuthProviderError,
    ValidationError,
)
from dashboard.rate_limiter import limiter
from dashboard.routers import admin, health, oauth, users
from dashboard.services.email_service import SendGridMailer
from dashboard.services.interfaces import Mailer, Store
from dashboard.services.oauth_service import GitHubOAuthClient
from dashboard.services.repositories import SqlStore
from dashboard.services.role_service import RoleService
from dashboard.services.sweeper import Sweeper
from dashboard.utils import new_id

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

# Looked up along the exception's MRO, so subclasses listed here win over
# their parents. Anything unlisted is a 500.
ERROR_STATUS_CODES: dict[type[DashboardError], int] = {
    InvalidTokenError: status.HTTP_400_BAD_REQUEST,
    IncorrectPasswordError: status.HTTP_403_FORBIDDEN,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    LockedAccountError: status.HTTP_423_LOCKED,
    OAuthProviderError: status.HTTP_502_BAD_GATEWAY,
}


def status_code_for(exc: DashboardError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def dashboard_error_handler(request: Request, exc: DashboardError) -> JSONResponse:
    """Send the generic user message; the concrete reason only goes to the log."""
    status_code = status_code_for(exc)
    request_id = getattr(request.state, "request_id", "")
    where = f"[{request_id}] {request.method} {request.url.path}"

    if status_code >= 500:
        logger.error(f"{where}: {exc}", exc_info=exc)
    else:
        logger.info(f"{where} -> {status_code}: {exc}")

    response = JSONResponse(status_code=status_code, content={"message": exc.user_message})
    if isinstance(exc, InvalidSessionError):
        delete_session_cookies(request, response)
    return response


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.info(f"Malformed request body for {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": ValidationError.user_message},
    )


def create_app(
    settings: Settings | None = None,
    engine: Engine | None = None,
    mailer: Mailer | None = None,
    github_client: GitHubOAuthClient | None = None,
) -> FastAPI:
    """Build the application with its dependencies.

    Every argument defaults to the production implementation built from
    ``settings``; tests pass in-memory replacements.
    """
    settings = settings or get_settings()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    engine = engine or create_db_engine(settings)
    session_factory = create_session_factory(engine)
    mailer = mailer or SendGridMailer(settings)
    github_client = github_client or GitHubOAuthClient(settings)

    def store_factory() -> tuple[Store, Callable[[], None]]:
        db = session_factory()
        return SqlStore(db), db.close

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        Base.metadata.create_all(bind=engine)

        store, close = store_factory()
        try:
            RoleService(store).initialize_roles()
        finally:
            close()

        sweeper = Sweeper(store_factory, settings.sweep_interval_seconds)
        sweeper.start()
        logger.info("Dashboard server started")
        try:
            yield
        finally:
            await sweeper.stop()
            github_client.close()
            logger.info("Dashboard server stopped")

    app = FastAPI(
        title="Dashboard Server",
        description="Account management backend for the automation dashboard",
        version="0.1.0",
        docs_url="/docs" if settings.dev else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.mailer = mailer
    app.state.github_client = github_client

    # Add rate limiter to app state and exception handler
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(DashboardError, dashboard_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[HEADER_TOKEN, HEADER_REQUEST_ID],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = new_id()
        request.state.request_id = request_id

        response = await call_next(request)

        response.headers[HEADER_REQUEST_ID] = request_id
        if request.method == "GET":
            response.headers["Expires"] = "0"
        logger.debug(
            f"[{request_id}] Received HTTP request: {request.method} {request.url.path} "
            f"{response.status_code}"
        )
        return response

    app.include_router(health.router, prefix=API_PREFIX)
    app.include_router(users.router, prefix=API_PREFIX)
    app.include_router(oauth.router, prefix=API_PREFIX)
    app.include_router(admin.router, prefix=API_PREFIX)

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("dashboard.main:create_app", factory=True, host="0.0.0.0", port=8085)
