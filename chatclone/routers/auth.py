import logging

from fastapi import APIRouter, Depends

from chatclone.dependencies import get_auth_service
from chatclone.errors import AuthError
from chatclone.schemas.user import GoogleLoginRequest, GoogleLoginResponse, UserResponse
from chatclone.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/google", response_model=GoogleLoginResponse)
async def google_sign_in(
    body: GoogleLoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Sign in with a Google ID token. First sign-in creates the user and a Welcome Chat."""
    try:
        token, user = await auth_service.sign_in_with_google(body.token)
    except AuthError as e:
        logger.warning("Google auth error: %s", e.message)
        raise AuthError("Authentication failed") from e
    return GoogleLoginResponse(token=token, user=UserResponse.model_validate(user))
