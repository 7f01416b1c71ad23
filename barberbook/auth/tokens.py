"""JWT access/refresh token issuance and verification."""

import uuid
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel, Field

from barberbook import config
from barberbook.exceptions import AuthenticationError
from barberbook.models.user import UserRole

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenPair(BaseModel):
    """Access and refresh tokens issued together."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class CurrentUser(BaseModel):
    """Identity carried by a verified token."""

    id: uuid.UUID
    email: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class TokenService:
    """Signs and verifies the two token kinds with separate secrets."""

    def __init__(
        self,
        secret: str | None = None,
        refresh_secret: str | None = None,
        algorithm: str | None = None,
        access_ttl: timedelta | None = None,
        refresh_ttl: timedelta | None = None,
    ):
        self.secret = secret or config.JWT_SECRET
        self.refresh_secret = refresh_secret or config.JWT_REFRESH_SECRET
        self.algorithm = algorithm or config.JWT_ALGORITHM
        self.access_ttl = access_ttl or timedelta(minutes=config.ACCESS_TOKEN_TTL_MINUTES)
        self.refresh_ttl = refresh_ttl or timedelta(days=config.REFRESH_TOKEN_TTL_DAYS)

    def _encode(self, user: CurrentUser, token_type: str, ttl: timedelta, secret: str) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "sub": str(user.id),
            "email": user.email,
            "role": UserRole(user.role).value,
            "type": token_type,
            "iat": now,
            "exp": now + ttl,
            # Unique per token so two pairs issued within one second still differ
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(claims, secret, algorithm=self.algorithm)

    def issue(self, user: CurrentUser) -> TokenPair:
        """Create a fresh access/refresh token pair for ``user``."""
        return TokenPair(
            access_token=self._encode(user, ACCESS_TOKEN_TYPE, self.access_ttl, self.secret),
            refresh_token=self._encode(
                user, REFRESH_TOKEN_TYPE, self.refresh_ttl, self.refresh_secret
            ),
            expires_in=int(self.access_ttl.total_seconds()),
        )

    def _decode(self, token: str, secret: str, expected_type: str) -> CurrentUser:
        try:
            claims = jwt.decode(token, secret, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise AuthenticationError("Token has expired") from e
        except JWTError as e:
            raise AuthenticationError("Invalid token") from e

        if claims.get("type") != expected_type:
            raise AuthenticationError("Invalid token type")

        try:
            return CurrentUser(id=claims["sub"], email=claims["email"], role=claims["role"])
        except (KeyError, ValueError) as e:
            raise AuthenticationError("Malformed token claims") from e

    def verify_access_token(self, token: str) -> CurrentUser:
        return self._decode(token, self.secret, ACCESS_TOKEN_TYPE)

    def verify_refresh_token(self, token: str) -> CurrentUser:
        return self._decode(token, self.refresh_secret, REFRESH_TOKEN_TYPE)


token_service = TokenService()
