"""GitHub OAuth connect: anti-CSRF state lifecycle and the provider client.

OAuth here links a GitHub account to an already logged-in user. It is never
a login path.
"""

import logging
from typing import Any, Self
from urllib.parse import urlencode

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from dashboard.config import Settings
from dashboard.exceptions import (
    InvalidTokenError,
    OAuthProviderError,
    StoreError,
    ValidationError,
)
from dashboard.models import OAuthState, UserAuthInfo
from dashboard.services.interfaces import Store
from dashboard.services.session_service import ById, ByToken, Identifier
from dashboard.utils import utcnow

logger = logging.getLogger(__name__)

GITHUB_PROVIDER = "github"
GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_API_URL = "https://api.github.com"
GITHUB_SCOPES = ("user:email", "read:org")


class OAuthStateService:
    """Create and consume the short-lived state passed through the provider."""

    def __init__(self, store: Store) -> None:
        self._store = store

    def create(self) -> OAuthState:
        return self._store.create_oauth_state(OAuthState.new())

    def resolve(self, identifier: Identifier) -> OAuthState | None:
        """Return the live state; an expired one is deleted and reported absent."""
        match identifier:
            case ById(value):
                state = self._store.get_oauth_state_by_id(value)
            case ByToken(value):
                state = self._store.get_oauth_state_by_token(value)
            case _:
                raise TypeError(f"unsupported oauth state identifier: {identifier!r}")

        if state is None:
            return None

        if state.is_expired():
            try:
                self._store.delete_oauth_state(state.id)
            except StoreError:
                logger.exception(f"unable to delete expired oauth state {state.id}")
            return None

        return state

    def consume(self, token: str) -> None:
        """Use a state token once.

        Raises:
            InvalidTokenError: If the state is absent or expired.
        """
        state = self.resolve(ByToken(token)) if token else None
        if state is None:
            raise InvalidTokenError(
                "oauth state expired or not found", user_message="invalid state"
            )
        try:
            self._store.delete_oauth_state(state.id)
        except StoreError:
            logger.exception(f"Failed to remove used oauth state {state.id}")

    def sweep_expired(self) -> int:
        """Delete states past their expiry. Never raises."""
        try:
            return self._store.delete_expired_oauth_states(utcnow())
        except StoreError:
            logger.exception("Unable to cleanup expired oauth states")
            return 0


class GitHubOAuthClient:
    """Authorization-code flow against GitHub.

    Usage:
        with GitHubOAuthClient(settings) as client:
            access_token = client.exchange_code(code)
            profile = client.get_user(access_token)
    """

    def __init__(self, settings: Settings) -> None:
        self.client_id = settings.github_client_id
        self.client_secret = settings.github_client_secret
        self.timeout = settings.github_timeout_seconds
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Lazy initialization of HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.timeout,
                headers={"Accept": "application/json"},
            )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def authorize_url(self, state: str) -> str:
        """Build the GitHub consent page URL carrying ``state``."""
        params = {
            "client_id": self.client_id,
            "scope": " ".join(GITHUB_SCOPES),
            "state": state,
            "access_type": "offline",
            "response_type": "code",
        }
        return f"{GITHUB_AUTHORIZE_URL}?{urlencode(params)}"

    def exchange_code(self, code: str) -> str:
        """Trade an authorization code for an access token.

        Raises:
            OAuthProviderError: If GitHub rejects the code or cannot be reached.
        """
        try:
            response = self.client.post(
                GITHUB_TOKEN_URL,
                data={"code": code, "grant_type": "authorization_code"},
                auth=(self.client_id, self.client_secret),
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"GitHub code exchange failed: {e}")
            raise OAuthProviderError(
                f"failed to exchange oauth code into token: {e}"
            ) from e

        access_token = payload.get("access_token")
        if not access_token:
            # GitHub answers 200 with an "error" field for a bad or reused code
            raise OAuthProviderError(
                f"failed to exchange oauth code into token: {payload.get('error', 'no token')}"
            )
        return access_token

    def get_user(self, access_token: str) -> dict[str, Any]:
        """Fetch the authenticated GitHub user's profile.

        Raises:
            OAuthProviderError: If the profile cannot be fetched.
        """
        try:
            response = self._get_user_response(access_token)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"GitHub user lookup failed: {e}")
            raise OAuthProviderError(f"failed to get authenticated GitHub user: {e}") from e

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
        reraise=True,
    )
    def _get_user_response(self, access_token: str) -> httpx.Response:
        return self.client.get(
            f"{GITHUB_API_URL}/user",
            headers={"Authorization": f"Bearer {access_token}"},
        )


class OAuthService:
    """Complete a GitHub connect for a logged-in user."""

    def __init__(self, store: Store, github: GitHubOAuthClient) -> None:
        self._store = store
        self.states = OAuthStateService(store)
        self.github = github

    def start(self) -> str:
        """Create a state and return the provider URL to redirect to."""
        state = self.states.create()
        return self.github.authorize_url(state.token)

    def complete(self, user_id: str, code: str, state: str) -> UserAuthInfo:
        """Check the state, exchange the code and store the linked account."""
        if not code:
            raise ValidationError(
                "missing authorization code", user_message="missing authorization code"
            )
        self.states.consume(state)

        access_token = self.github.exchange_code(code)
        profile = self.github.get_user(access_token)

        info = UserAuthInfo(
            user_id=user_id,
            oauth_provider=GITHUB_PROVIDER,
            access_token=access_token,
            username=profile.get("login") or "",
            email=profile.get("email") or "",
            name=profile.get("name") or "",
            avatar_url=profile.get("avatar_url") or "",
        )
        info = self._store.upsert_user_auth_info(info)
        logger.info(f"GitHub account {info.username} connected to user {user_id}")
        return info
