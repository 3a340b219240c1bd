"""Admin router for user management."""

from fastapi import APIRouter, Depends

from dashboard.dependencies.auth import RequestContext, admin_required
from dashboard.dependencies.services import get_account_service
from dashboard.exceptions import NotFoundError
from dashboard.models.user import USER_STATE_LOCKED
from dashboard.schemas.admin import UserStateUpdate
from dashboard.schemas.users import UserResponse
from dashboard.services.account_service import AccountService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users/{user_id}", response_model=UserResponse)
def admin_get_user(
    user_id: str,
    ctx: RequestContext = Depends(admin_required),
    accounts: AccountService = Depends(get_account_service),
) -> UserResponse:
    """Get any user by id."""
    user = accounts.get_user(user_id)
    if user is None:
        raise NotFoundError(f"user {user_id} not found")
    return UserResponse.model_validate(user)


@router.put("/users/{user_id}/state", response_model=UserResponse)
def admin_set_user_state(
    user_id: str,
    data: UserStateUpdate,
    ctx: RequestContext = Depends(admin_required),
    accounts: AccountService = Depends(get_account_service),
) -> UserResponse:
    """Lock or unlock a user account.

    Locking does not end the user's existing sessions; it blocks new logins.
    """
    user = accounts.set_user_locked(user_id, data.state == USER_STATE_LOCKED)
    ctx.logger.info(f"Admin {ctx.session.user_id} set user {user_id} state to {data.state}")
    return UserResponse.model_validate(user)
