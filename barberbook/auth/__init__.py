"""Authentication: password hashing, JWT tokens and account workflows."""

from barberbook.auth.service import AuthService
from barberbook.auth.tokens import CurrentUser, TokenPair, TokenService, token_service

__all__ = [
    "AuthService",
    "CurrentUser",
    "TokenPair",
    "TokenService",
    "token_service",
]
