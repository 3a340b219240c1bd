"""Session authentication for API routes.

Usage:
    @router.get("/me")
    def get_me(ctx: RequestContext = Depends(SessionAuth(requires_session=True))):
        return {"user_id": ctx.session.user_id}

The dependency raises ``AuthenticationError`` subclasses; ``dashboard.main``
turns them into 401 responses. ``InvalidSessionError`` additionally clears
the session cookies.
"""

import logging
from dataclasses import dataclass

from fastapi import Depends, Request, Response

from dashboard.exceptions import (
    AuthenticationError,
    CsrfError,
    InvalidSessionError,
    StoreError,
)
from dashboard.models import Session
from dashboard.models.session import SESSION_TTL
from dashboard.services.interfaces import Store
from dashboard.services.role_service import RoleService
from dashboard.services.session_service import ByToken, SessionService
from dashboard.utils import new_id

from .services import get_store

logger = logging.getLogger(__name__)

COOKIE_AUTH_TOKEN = "DASHBOARDAUTHTOKEN"
COOKIE_CSRF = "DASHBOARDCSRF"
COOKIE_USER_ID = "DASHBOARDUSERID"

HEADER_TOKEN = "Token"
HEADER_CSRF_TOKEN = "X-CSRF-Token"
HEADER_REQUEST_ID = "X-Request-ID"
HEADER_REQUESTED_WITH = "X-Requested-With"
HEADER_REQUESTED_WITH_XML = "XMLHttpRequest"
HEADER_FORWARDED_PROTO = "X-Forwarded-Proto"

SESSION_COOKIE_MAX_AGE = int(SESSION_TTL.total_seconds())


class RequestLogger(logging.LoggerAdapter):
    """Prefix every message with the request id."""

    def process(self, msg, kwargs):
        return f"[{self.extra['request_id']}] {msg}", kwargs


@dataclass
class RequestContext:
    request_id: str
    session: Session
    logger: logging.LoggerAdapter

    @property
    def is_authenticated(self) -> bool:
        return bool(self.session.id)


def anonymous_session() -> Session:
    """Placeholder for requests without a session. Never persisted."""
    return Session(id="", token="", user_id="", csrf_token="", is_api_key_session=False)


def get_request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if not request_id:
        request_id = new_id()
        request.state.request_id = request_id
    return request_id


def is_secure(request: Request) -> bool:
    return (
        request.url.scheme == "https"
        or request.headers.get(HEADER_FORWARDED_PROTO, "").lower() == "https"
    )


def attach_session(request: Request, response: Response, session: Session) -> None:
    """Hand a new session to the client.

    The token always goes into the ``Token`` header. Browser clients, which
    announce themselves with ``X-Requested-With: XMLHttpRequest``, also get
    the session cookies.
    """
    response.headers[HEADER_TOKEN] = session.token
    if request.headers.get(HEADER_REQUESTED_WITH) == HEADER_REQUESTED_WITH_XML:
        attach_session_cookies(request, response, session)


def attach_session_cookies(request: Request, response: Response, session: Session) -> None:
    secure = is_secure(request)
    cookies = (
        (COOKIE_AUTH_TOKEN, session.token, True),
        (COOKIE_CSRF, session.csrf_token, False),
        (COOKIE_USER_ID, session.user_id, False),
    )
    for name, value, http_only in cookies:
        response.set_cookie(
            key=name,
            value=value,
            max_age=SESSION_COOKIE_MAX_AGE,
            path="/",
            secure=secure,
            httponly=http_only,
            samesite="lax",
        )


def delete_session_cookies(request: Request, response: Response) -> None:
    secure = is_secure(request)
    for name, http_only in (
        (COOKIE_AUTH_TOKEN, True),
        (COOKIE_CSRF, False),
        (COOKIE_USER_ID, False),
    ):
        response.delete_cookie(
            key=name, path="/", secure=secure, httponly=http_only, samesite="lax"
        )


def parse_token(request: Request) -> tuple[str, bool]:
    """Return the bearer token and whether a session cookie was present.

    An ``Authorization: Bearer`` header wins over the cookie value, but the
    cookie still counts as present for the CSRF check.
    """
    token = ""
    from_cookie = False

    cookie_token = request.cookies.get(COOKIE_AUTH_TOKEN)
    if cookie_token is not None:
        token = cookie_token
        from_cookie = True

    auth_header = request.headers.get("Authorization", "")
    if len(auth_header) > 6 and auth_header[:6].upper() == "BEARER":
        token = auth_header[7:]

    return token, from_cookie


def check_csrf(request: Request, from_cookie: bool, session: Session | None) -> None:
    """Require a matching X-CSRF-Token on cookie-authenticated writes.

    Raises:
        CsrfError: If the header is missing or does not match the session.
    """
    if session is None or not from_cookie or request.method == "GET":
        return
    if request.headers.get(HEADER_CSRF_TOKEN, "") != session.csrf_token:
        raise CsrfError("possible CSRF attempt")


class SessionAuth:
    """FastAPI dependency resolving the request session and enforcing guards.

    Checks run in order and the first failure stops the request:
    session lookup (with CSRF), session presence, email verification, admin
    role. Verification and role are read fresh from the store on every
    request; a failed lookup counts as a failed check.
    """

    def __init__(
        self,
        requires_session: bool = False,
        requires_verification: bool = False,
        requires_admin: bool = False,
        allow_api_key_session: bool = False,
    ) -> None:
        self.requires_session = requires_session
        self.requires_verification = requires_verification
        self.requires_admin = requires_admin
        self.allow_api_key_session = allow_api_key_session

    def __call__(self, request: Request, store: Store = Depends(get_store)) -> RequestContext:
        request_id = get_request_id(request)
        log = RequestLogger(logger, {"request_id": request_id, "path": request.url.path})

        try:
            session = self._resolve_session(request, store)
        except (AuthenticationError, StoreError) as e:
            log.warning(f"invalid session: {e}")
            raise AuthenticationError(f"invalid session: {e}") from e

        if self.requires_session and not self._is_valid_session(session):
            raise InvalidSessionError("session required")

        if self.requires_verification and not self._is_user_verified(store, session, log):
            log.warning(f"user {session.user_id if session else ''} is not verified")
            raise AuthenticationError("user is not verified")

        if self.requires_admin and not self._is_user_admin(store, session, log):
            log.warning(f"user {session.user_id if session else ''} is not admin")
            raise AuthenticationError("user is not admin")

        return RequestContext(
            request_id=request_id,
            session=session or anonymous_session(),
            logger=log,
        )

    def _resolve_session(self, request: Request, store: Store) -> Session | None:
        token, from_cookie = parse_token(request)
        if not token:
            return None

        session = SessionService(store).resolve(ByToken(token))
        if session is None:
            return None

        check_csrf(request, from_cookie, session)
        return session

    def _is_valid_session(self, session: Session | None) -> bool:
        if session is None:
            return False
        if session.is_api_key_session and not self.allow_api_key_session:
            return False
        return True

    def _is_user_verified(
        self, store: Store, session: Session | None, log: logging.LoggerAdapter
    ) -> bool:
        if session is None or not session.user_id:
            log.error("session or user id in the session is not present")
            return False
        try:
            user = store.get_user_by_id(session.user_id)
        except StoreError:
            log.exception(f"error trying to get user {session.user_id}")
            return False
        return user is not None and user.email_verified

    def _is_user_admin(
        self, store: Store, session: Session | None, log: logging.LoggerAdapter
    ) -> bool:
        if session is None or not session.user_id:
            log.error("session or user id in the session is not present")
            return False
        try:
            return RoleService(store).is_admin(session.user_id)
        except StoreError:
            log.exception(f"error trying to check if user {session.user_id} has admin role")
            return False


# Common guards
optional_session = SessionAuth()
session_required = SessionAuth(requires_session=True)
verified_session_required = SessionAuth(requires_session=True, requires_verification=True)
admin_required = SessionAuth(
    requires_session=True, requires_verification=True, requires_admin=True
)
