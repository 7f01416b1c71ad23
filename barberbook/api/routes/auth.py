"""Authentication endpoints.

Registration, login, token refresh, logout and the caller's profile.
"""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from barberbook.api.dependencies import get_auth_service
from barberbook.api.middleware.auth import get_current_user
from barberbook.api.middleware.rate_limiter import check_auth_rate_limit
from barberbook.auth.service import AuthService
from barberbook.auth.tokens import CurrentUser, TokenPair
from barberbook.models.user import LoginRequest, RegisterRequest, User

router = APIRouter(prefix="/v1/auth", tags=["auth"])


class AuthResponse(BaseModel):
    """Response schema for register and login."""

    message: str
    user: User
    tokens: TokenPair


class RefreshRequest(BaseModel):
    """Request schema for token refresh."""

    refresh_token: str = Field(..., min_length=1)


class RefreshResponse(BaseModel):
    """Response schema for token refresh."""

    message: str
    tokens: TokenPair


class ProfileResponse(BaseModel):
    """Response schema for the profile endpoint."""

    user: User


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_auth_rate_limit)],
)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Create an account and return a token pair.

    Raises:
        ConflictError: If the email is already registered (409)
    """
    user, tokens = await auth_service.register(request)
    return AuthResponse(
        message="User registered successfully",
        user=User.model_validate(user),
        tokens=tokens,
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    dependencies=[Depends(check_auth_rate_limit)],
)
async def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    user, tokens = await auth_service.login(request)
    return AuthResponse(
        message="Login successful",
        user=User.model_validate(user),
        tokens=tokens,
    )


@router.post("/refresh", response_model=RefreshResponse)
async def refresh(
    request: RefreshRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> RefreshResponse:
    """Rotate tokens. The submitted refresh token stops working afterwards."""
    tokens = await auth_service.refresh(request.refresh_token)
    return RefreshResponse(message="Tokens refreshed successfully", tokens=tokens)


@router.post("/logout")
async def logout(
    current_user: CurrentUser = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> dict:
    await auth_service.logout(current_user.id)
    return {"message": "Logged out successfully"}


@router.get("/profile", response_model=ProfileResponse)
async def profile(
    current_user: CurrentUser = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> ProfileResponse:
    user = await auth_service.get_profile(current_user.id)
    return ProfileResponse(user=User.model_validate(user))
