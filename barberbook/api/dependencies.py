"""FastAPI dependencies wiring services to the request's database session."""

import redis.asyncio as redis
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from barberbook.auth.service import AuthService
from barberbook.scheduling.booking import BookingService
from barberbook.services.cache import RefreshTokenStore, get_cache
from barberbook.services.database import get_db_session
from barberbook.services.notifications import NotificationService
from barberbook.shops.manager import ShopManager


def get_auth_service(
    db: AsyncSession = Depends(get_db_session),
    cache: redis.Redis = Depends(get_cache),
) -> AuthService:
    return AuthService(db, RefreshTokenStore(cache))


def get_shop_manager(db: AsyncSession = Depends(get_db_session)) -> ShopManager:
    return ShopManager(db)


def get_booking_service(db: AsyncSession = Depends(get_db_session)) -> BookingService:
    return BookingService(db)


def get_notification_service(db: AsyncSession = Depends(get_db_session)) -> NotificationService:
    return NotificationService(db)
