"""Error taxonomy for the dashboard server.

Every error carries two messages: ``user_message`` is the generic text sent
to the client, the exception string is the concrete reason and only ever goes
to the server log. The HTTP status of each class is set in ``dashboard.main``.
"""


class DashboardError(Exception):
    """Base exception for all dashboard errors."""

    user_message = "internal server error"

    def __init__(self, detail: str | None = None, user_message: str | None = None):
        if user_message is not None:
            self.user_message = user_message
        super().__init__(detail or self.user_message)


class ValidationError(DashboardError):
    """Malformed input. Never retried."""

    user_message = "invalid request"


class InvalidPasswordError(ValidationError):
    user_message = "invalid password"


class InvalidEmailError(ValidationError):
    user_message = "invalid email"


class AuthenticationError(DashboardError):
    """Credentials, session or CSRF check failed.

    The client never learns which of the possible causes applied.
    """

    user_message = "unauthorized"


class InvalidCredentialsError(AuthenticationError):
    pass


class InvalidSessionError(AuthenticationError):
    pass


class CsrfError(AuthenticationError):
    pass


class InvalidTokenError(AuthenticationError):
    """One-time token is absent, expired or of the wrong type."""

    user_message = "invalid token"


class IncorrectPasswordError(AuthenticationError):
    """Re-authentication with the current password failed."""

    user_message = "bad old password"


class LockedAccountError(DashboardError):
    """Login attempt on a locked account. Deliberately distinct from bad credentials."""

    user_message = "account is locked"


class ConflictError(DashboardError):
    """Entity already exists (duplicate email, role name, ...)."""

    user_message = "already exists"


class NotFoundError(DashboardError):
    user_message = "not found"


class CorruptTokenError(DashboardError):
    """A stored token's extra payload could not be decoded."""


class MailError(DashboardError):
    """Outbound email could not be delivered."""


class OAuthProviderError(DashboardError):
    """The OAuth provider rejected or failed a request."""

    user_message = "failed to authenticate with the OAuth provider"


class StoreError(DashboardError):
    """Base exception for persistence failures."""


class DuplicateError(StoreError):
    """Entity already exists (unique constraint violation)."""

    def __init__(self, entity_type: str, field: str, value: str):
        self.entity_type = entity_type
        self.field = field
        self.value = value
        super().__init__(f"{entity_type} with {field}={value} already exists")
