"""Bearer-token authentication dependencies for FastAPI."""

from collections.abc import Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from barberbook.auth.tokens import CurrentUser, token_service
from barberbook.exceptions import AuthenticationError
from barberbook.models.user import UserRole

# Security scheme for Swagger UI; missing headers are reported by get_current_user
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CurrentUser:
    """FastAPI dependency for getting current authenticated user.

    Args:
        credentials: Parsed ``Authorization: Bearer <token>`` header

    Returns:
        Identity from the verified access token

    Raises:
        HTTPException: 401 if the header is missing or the token is invalid or expired

    Example:
        @router.get("/protected")
        async def protected_route(user: CurrentUser = Depends(get_current_user)):
            return {"email": user.email}
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return token_service.verify_access_token(credentials.credentials)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


def require_roles(*roles: UserRole) -> Callable:
    """Build a dependency that only admits users holding one of ``roles``.

    Example:
        @router.post("/shops")
        async def create_shop(user: CurrentUser = Depends(require_roles(UserRole.BARBER))):
            ...
    """

    async def dependency(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in roles and not current_user.is_admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return dependency
