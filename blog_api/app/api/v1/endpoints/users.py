"""
User and session endpoints for API v1.

Registration, login, profile lookup and logout.  Login places a signed
session token in an HttpOnly cookie; the token itself never appears
in a response body.
"""

from fastapi import APIRouter, Depends, Response, status

from blog_api.app.api.deps import get_settings, get_token_service, get_user_service
from blog_api.app.core.config import Settings
from blog_api.app.core.security import TokenService, get_current_user
from blog_api.app.schemas.user import TokenPayload, UserCreate, UserCredentials, UserPublic, UserRead
from blog_api.app.services.user_service import UserService


router = APIRouter()


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register_user(
    user: UserCreate,
    users: UserService = Depends(get_user_service),
) -> UserRead:
    """Register a new user.

    Returns the created user without its password.  A taken username
    gives 409, a username shorter than four characters 400.
    """
    return await users.register(user.username, user.password)


@router.post("/login", response_model=UserPublic)
async def login_user(
    credentials: UserCredentials,
    response: Response,
    users: UserService = Depends(get_user_service),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
) -> UserPublic:
    """Check credentials and start a session.

    On success the session token is set as a cookie and the user's id
    and username are returned.  Unknown usernames and wrong passwords
    both give the same 401 response.
    """
    user = await users.verify_credentials(credentials.username, credentials.password)
    token = tokens.issue(TokenPayload(username=user.username, user_id=user.id))
    response.set_cookie(
        settings.cookie_name,
        token,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )
    return UserPublic(id=user.id, username=user.username)


@router.get("/profile", response_model=TokenPayload)
async def read_profile(current_user: TokenPayload = Depends(get_current_user)) -> TokenPayload:
    """Return the identity carried by the caller's session token."""
    return current_user


@router.post("/logout")
async def logout_user(response: Response, settings: Settings = Depends(get_settings)) -> str:
    """End the session by clearing the token cookie."""
    response.delete_cookie(settings.cookie_name, httponly=True, samesite="lax")
    return "ok"
