"""GitHub OAuth connect router."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from dashboard.dependencies.auth import RequestContext, session_required
from dashboard.dependencies.services import get_oauth_service
from dashboard.schemas.oauth import UserAuthInfoResponse
from dashboard.services.oauth_service import OAuthService

router = APIRouter(prefix="/oauth/github", tags=["oauth"])


@router.get("/connect", status_code=status.HTTP_302_FOUND)
def github_connect(oauth: OAuthService = Depends(get_oauth_service)) -> RedirectResponse:
    """Redirect the browser to the GitHub consent page."""
    return RedirectResponse(oauth.start(), status_code=status.HTTP_302_FOUND)


@router.post("/complete", response_model=UserAuthInfoResponse)
def github_complete(
    code: str = "",
    state: str = "",
    ctx: RequestContext = Depends(session_required),
    oauth: OAuthService = Depends(get_oauth_service),
) -> UserAuthInfoResponse:
    """Finish the connect flow with the ``code`` and ``state`` GitHub sent back."""
    info = oauth.complete(ctx.session.user_id, code=code, state=state)
    return UserAuthInfoResponse.model_validate(info)
