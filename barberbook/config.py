"""Application configuration loaded from environment variables."""

import os
import warnings

DATABASE_URL = os.getenv("DATABASE_URL", "postgresql+asyncpg://localhost/barberbook")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Token signing. Separate secrets so a leaked access secret cannot mint refresh tokens.
JWT_SECRET = os.getenv("JWT_SECRET")
JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET")
if not JWT_SECRET or not JWT_REFRESH_SECRET:
    warnings.warn(
        "JWT_SECRET / JWT_REFRESH_SECRET not set! Using insecure defaults - DO NOT USE IN PRODUCTION",
        RuntimeWarning,
        stacklevel=2,
    )
    JWT_SECRET = JWT_SECRET or "insecure-dev-access-secret"  # noqa: S105
    JWT_REFRESH_SECRET = JWT_REFRESH_SECRET or "insecure-dev-refresh-secret"  # noqa: S105

JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_TTL_MINUTES = int(os.getenv("ACCESS_TOKEN_TTL_MINUTES", "15"))
REFRESH_TOKEN_TTL_DAYS = int(os.getenv("REFRESH_TOKEN_TTL_DAYS", "7"))

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

# Step between candidate slot start times
SLOT_GRANULARITY_MINUTES = int(os.getenv("SLOT_GRANULARITY_MINUTES", "15"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "json")

CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000").split(",")

AUTH_RATE_LIMIT_PER_MINUTE = int(os.getenv("AUTH_RATE_LIMIT_PER_MINUTE", "10"))
