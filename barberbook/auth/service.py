"""Account registration, login and token lifecycle."""

import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from barberbook.auth.passwords import hash_password, verify_password
from barberbook.auth.tokens import CurrentUser, TokenPair, TokenService, token_service
from barberbook.exceptions import AuthenticationError, ConflictError, NotFoundError
from barberbook.models.user import LoginRequest, RegisterRequest, UserDB
from barberbook.services.cache import RefreshTokenStore

logger = structlog.get_logger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


class AuthService:
    """Handles user accounts and the refresh-token rotation scheme.

    Each user holds at most one valid refresh token, kept in the cache;
    refreshing replaces it and logging out deletes it.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        token_store: RefreshTokenStore,
        tokens: TokenService | None = None,
    ):
        """Initialize auth service.

        Args:
            db_session: Database session for user persistence
            token_store: Refresh token store
            tokens: Token signer (defaults to the module-level instance)
        """
        self.db_session = db_session
        self.token_store = token_store
        self.tokens = tokens or token_service

    @staticmethod
    def _identity(user: UserDB) -> CurrentUser:
        return CurrentUser(id=user.id, email=user.email, role=user.role)

    async def _issue(self, user: UserDB) -> TokenPair:
        pair = self.tokens.issue(self._identity(user))
        await self.token_store.save(str(user.id), pair.refresh_token)
        return pair

    async def _get_by_email(self, email: str) -> UserDB | None:
        result = await self.db_session.execute(
            select(UserDB).where(UserDB.email == email.lower())
        )
        return result.scalar_one_or_none()

    async def register(self, data: RegisterRequest) -> tuple[UserDB, TokenPair]:
        """Create an account and sign the user in.

        Raises:
            ConflictError: If the email is already registered
        """
        email = data.email.lower()
        if await self._get_by_email(email) is not None:
            raise ConflictError("User already exists with this email")

        user = UserDB(
            id=uuid.uuid4(),
            email=email,
            password_hash=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            role=data.role.value,
        )
        self.db_session.add(user)
        try:
            await self.db_session.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration of the same email
            await self.db_session.rollback()
            raise ConflictError("User already exists with this email") from e

        logger.info("user_registered", user_id=str(user.id), role=user.role)
        return user, await self._issue(user)

    async def login(self, data: LoginRequest) -> tuple[UserDB, TokenPair]:
        """Verify credentials and issue a token pair.

        Raises:
            AuthenticationError: Unknown email or wrong password (same message for both)
        """
        user = await self._get_by_email(data.email)
        if user is None or not verify_password(data.password, user.password_hash):
            logger.info("login_failed", email=data.email.lower())
            raise AuthenticationError(INVALID_CREDENTIALS)

        logger.info("user_logged_in", user_id=str(user.id))
        return user, await self._issue(user)

    async def refresh(self, refresh_token: str) -> TokenPair:
        """Exchange a refresh token for a new pair, invalidating the old one.

        Raises:
            AuthenticationError: If the token is invalid, expired or already rotated
        """
        identity = self.tokens.verify_refresh_token(refresh_token)

        # Consuming the stored token also revokes it when a stale one is replayed
        if not await self.token_store.consume(str(identity.id), refresh_token):
            raise AuthenticationError("Invalid refresh token")

        user = await self.db_session.get(UserDB, identity.id)
        if user is None:
            raise AuthenticationError("Invalid refresh token")

        return await self._issue(user)

    async def logout(self, user_id: uuid.UUID) -> None:
        await self.token_store.revoke(str(user_id))
        logger.info("user_logged_out", user_id=str(user_id))

    async def get_profile(self, user_id: uuid.UUID) -> UserDB:
        """Load the user's account.

        Raises:
            NotFoundError: If the account no longer exists
        """
        user = await self.db_session.get(UserDB, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user
