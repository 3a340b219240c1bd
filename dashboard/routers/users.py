"""User account router."""

from fastapi import APIRouter, Depends, Request, Response, status

from dashboard.dependencies.auth import (
    RequestContext,
    attach_session,
    delete_session_cookies,
    optional_session,
    session_required,
    verified_session_required,
)
from dashboard.dependencies.services import get_account_service
from dashboard.exceptions import NotFoundError
from dashboard.rate_limiter import (
    FORGOT_PASSWORD_LIMIT,
    LOGIN_LIMIT,
    SIGNUP_LIMIT,
    VERIFY_EMAIL_LIMIT,
    limiter,
)
from dashboard.schemas.users import (
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignUpRequest,
    SignUpResponse,
    StatusResponse,
    UpdatePasswordRequest,
    UpdateProfileRequest,
    UserResponse,
    VerifyEmailRequest,
)
from dashboard.services.account_service import AccountService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/signup", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(SIGNUP_LIMIT)
def sign_up(
    request: Request,
    response: Response,
    data: SignUpRequest,
    accounts: AccountService = Depends(get_account_service),
) -> SignUpResponse:
    """Create an account and log it in."""
    user, session = accounts.sign_up(
        email=data.email,
        password=data.password,
        first_name=data.first_name,
        last_name=data.last_name,
    )
    attach_session(request, response, session)
    return SignUpResponse(user=UserResponse.model_validate(user))


@router.post("/login", response_model=UserResponse)
@limiter.limit(LOGIN_LIMIT)
def login(
    request: Request,
    response: Response,
    data: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
) -> UserResponse:
    """Check credentials and start a new session."""
    user = accounts.authenticate(data.email, data.password)
    session = accounts.login(user)
    attach_session(request, response, session)
    return UserResponse.model_validate(user)


@router.post("/logout", response_model=StatusResponse)
def logout(
    request: Request,
    response: Response,
    ctx: RequestContext = Depends(optional_session),
    accounts: AccountService = Depends(get_account_service),
) -> StatusResponse:
    """End the current session, if any. Always succeeds."""
    delete_session_cookies(request, response)
    accounts.logout(ctx.session.id)
    return StatusResponse()


@router.post("/verify-email", response_model=StatusResponse)
def verify_email_start(
    ctx: RequestContext = Depends(session_required),
    accounts: AccountService = Depends(get_account_service),
) -> StatusResponse:
    """Mail a verification code to the logged-in user."""
    accounts.start_email_verification(ctx.session.user_id)
    ctx.logger.info(f"Verification email sent for user {ctx.session.user_id}")
    return StatusResponse()


@router.post("/verify-email-complete", response_model=StatusResponse)
@limiter.limit(VERIFY_EMAIL_LIMIT)
def verify_email_complete(
    request: Request,
    data: VerifyEmailRequest,
    accounts: AccountService = Depends(get_account_service),
) -> StatusResponse:
    """Confirm an email address with the mailed code."""
    accounts.complete_email_verification(data.token)
    return StatusResponse()


@router.post("/forgot-password", response_model=StatusResponse)
@limiter.limit(FORGOT_PASSWORD_LIMIT)
def forgot_password(
    request: Request,
    data: ForgotPasswordRequest,
    accounts: AccountService = Depends(get_account_service),
) -> StatusResponse:
    """Start password recovery. Unknown emails get the same answer."""
    accounts.forgot_password(data.email)
    return StatusResponse()


@router.post("/reset-password-complete", response_model=StatusResponse)
def reset_password_complete(
    data: ResetPasswordRequest,
    accounts: AccountService = Depends(get_account_service),
) -> StatusResponse:
    """Set a new password with a reset token. Logs the user out everywhere."""
    accounts.reset_password(data.token, data.password)
    return StatusResponse()


@router.get("/me", response_model=UserResponse)
def get_me(
    ctx: RequestContext = Depends(session_required),
    accounts: AccountService = Depends(get_account_service),
) -> UserResponse:
    """Get the logged-in user."""
    user = accounts.get_user(ctx.session.user_id)
    if user is None:
        raise NotFoundError(f"user {ctx.session.user_id} not found")
    return UserResponse.model_validate(user)


@router.put("/me", response_model=UserResponse)
def update_me(
    data: UpdateProfileRequest,
    ctx: RequestContext = Depends(verified_session_required),
    accounts: AccountService = Depends(get_account_service),
) -> UserResponse:
    """Update the logged-in user. A new email has to be verified again."""
    user = accounts.update_profile(
        ctx.session.user_id,
        email=data.email,
        first_name=data.first_name,
        last_name=data.last_name,
    )
    return UserResponse.model_validate(user)


@router.put("/me/password", response_model=StatusResponse)
def update_password(
    request: Request,
    response: Response,
    data: UpdatePasswordRequest,
    ctx: RequestContext = Depends(verified_session_required),
    accounts: AccountService = Depends(get_account_service),
) -> StatusResponse:
    """Change the password, ending every session and starting a fresh one."""
    session = accounts.change_password(
        ctx.session.user_id, data.current_password, data.new_password
    )
    if session is not None:
        attach_session(request, response, session)
    return StatusResponse()
