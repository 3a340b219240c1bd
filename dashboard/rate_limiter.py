"""Rate limiter configuration for the public account endpoints."""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Rate limiter instance - shared across modules
limiter = Limiter(key_func=get_remote_address)

SIGNUP_LIMIT = "5/minute"
LOGIN_LIMIT = "10/minute"
FORGOT_PASSWORD_LIMIT = "5/minute"
VERIFY_EMAIL_LIMIT = "10/minute"
