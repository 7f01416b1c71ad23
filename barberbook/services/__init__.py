"""Infrastructure services: database and cache connections."""

from barberbook.services.cache import RefreshTokenStore, get_cache
from barberbook.services.database import DatabaseManager, get_db_session

__all__ = [
    "DatabaseManager",
    "RefreshTokenStore",
    "get_cache",
    "get_db_session",
]
