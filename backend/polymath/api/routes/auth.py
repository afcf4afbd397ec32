"""
Authentication Routes

Endpoints:
- GET /auth/me - Get current user profile
- POST /auth/logout - Clear session

Sessions are issued by the external identity provider as JWTs whose subject
is the user's open_id. The first authenticated request creates the user row.
"""

from fastapi import APIRouter, Response, status

from polymath.api.deps import AppSettings, CurrentUser
from polymath.schemas.user import UserRead

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(response: Response, settings: AppSettings) -> None:
    """
    Clear the authentication session.

    Note: This only clears the cookie. If the client stored the JWT
    elsewhere, it remains valid until expiry.
    """
    response.delete_cookie(
        key="access_token",
        httponly=True,
        secure=settings.cookie_cross_domain or settings.environment != "development",
        samesite="none" if settings.cookie_cross_domain else "lax",
    )


@router.get("/me", response_model=UserRead)
async def get_me(current_user: CurrentUser) -> UserRead:
    """Get the current authenticated user's profile."""
    return UserRead.model_validate(current_user)
