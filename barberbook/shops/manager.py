"""Shop, service and weekly schedule management."""

import uuid
from zoneinfo import ZoneInfo

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from barberbook.auth.tokens import CurrentUser
from barberbook.exceptions import (
    AuthorizationError,
    BookingValidationError,
    ConflictError,
    NotFoundError,
)
from barberbook.models.shop import (
    ScheduleDB,
    ScheduleEntry,
    ServiceCreate,
    ServiceDB,
    ServiceUpdate,
    ShopCreate,
    ShopDB,
    ShopUpdate,
)
from barberbook.models.user import UserRole
from barberbook.scheduling.slots import ScheduleWindow

logger = structlog.get_logger(__name__)

SHOP_OWNER_ROLES = (UserRole.BARBER, UserRole.ADMIN)


def ensure_owner(shop: ShopDB, actor: CurrentUser) -> None:
    """Raise AuthorizationError unless ``actor`` owns ``shop`` or is an admin."""
    if actor.is_admin or shop.owner_id == actor.id:
        return
    raise AuthorizationError("Only the shop owner can manage this shop")


class ShopManager:
    """CRUD for shops and the services and opening hours they own."""

    def __init__(self, db_session: AsyncSession):
        """Initialize shop manager.

        Args:
            db_session: Database session for persistence
        """
        self.db_session = db_session

    # ========== Shops ==========

    async def create_shop(self, owner: CurrentUser, data: ShopCreate) -> ShopDB:
        """Create a shop owned by ``owner``.

        Raises:
            AuthorizationError: If the owner is not a barber or admin
            ConflictError: If the slug is taken
        """
        if UserRole(owner.role) not in SHOP_OWNER_ROLES:
            raise AuthorizationError("Only barbers can create shops")

        existing = await self.db_session.execute(select(ShopDB.id).where(ShopDB.slug == data.slug))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(f"Shop slug '{data.slug}' is already taken")

        shop = ShopDB(id=uuid.uuid4(), owner_id=owner.id, is_active=True, **data.model_dump())
        self.db_session.add(shop)
        try:
            await self.db_session.commit()
        except IntegrityError as e:
            await self.db_session.rollback()
            raise ConflictError(f"Shop slug '{data.slug}' is already taken") from e

        logger.info("shop_created", shop_id=str(shop.id), owner_id=str(owner.id))
        return shop

    async def get_shop(self, shop_id: uuid.UUID, include_inactive: bool = False) -> ShopDB:
        """Load a shop.

        Raises:
            NotFoundError: If missing, or deactivated and ``include_inactive`` is False
        """
        shop = await self.db_session.get(ShopDB, shop_id)
        if shop is None or (not shop.is_active and not include_inactive):
            raise NotFoundError(f"Shop {shop_id} not found")
        return shop

    async def lock_shop(self, shop_id: uuid.UUID) -> ShopDB:
        """Load an active shop with a row lock held until the transaction ends.

        Serializes concurrent bookings for the same shop.
        """
        result = await self.db_session.execute(
            select(ShopDB).where(ShopDB.id == shop_id).with_for_update()
        )
        shop = result.scalar_one_or_none()
        if shop is None or not shop.is_active:
            raise NotFoundError(f"Shop {shop_id} not found")
        return shop

    async def list_shops(
        self, owner_id: uuid.UUID | None = None, limit: int = 50, offset: int = 0
    ) -> list[ShopDB]:
        """List active shops by name, optionally only those of one owner."""
        query = select(ShopDB).where(ShopDB.is_active.is_(True))
        if owner_id is not None:
            query = query.where(ShopDB.owner_id == owner_id)
        query = query.order_by(ShopDB.name.asc()).limit(limit).offset(offset)

        result = await self.db_session.execute(query)
        return list(result.scalars().all())

    async def update_shop(
        self, shop_id: uuid.UUID, actor: CurrentUser, data: ShopUpdate
    ) -> ShopDB:
        shop = await self.get_shop(shop_id)
        ensure_owner(shop, actor)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(shop, field, value)

        await self.db_session.commit()
        return shop

    async def deactivate_shop(self, shop_id: uuid.UUID, actor: CurrentUser) -> None:
        """Hide a shop from listings and stop new bookings.

        Existing appointments are left untouched.
        """
        shop = await self.get_shop(shop_id)
        ensure_owner(shop, actor)

        shop.is_active = False
        await self.db_session.commit()
        logger.info("shop_deactivated", shop_id=str(shop_id))

    # ========== Services ==========

    async def create_service(
        self, shop_id: uuid.UUID, actor: CurrentUser, data: ServiceCreate
    ) -> ServiceDB:
        shop = await self.get_shop(shop_id)
        ensure_owner(shop, actor)

        service = ServiceDB(id=uuid.uuid4(), shop_id=shop.id, is_active=True, **data.model_dump())
        self.db_session.add(service)
        await self.db_session.commit()
        return service

    async def get_service(self, service_id: uuid.UUID, include_inactive: bool = False) -> ServiceDB:
        """Load a service.

        Raises:
            NotFoundError: If missing, or deactivated and ``include_inactive`` is False
        """
        service = await self.db_session.get(ServiceDB, service_id)
        if service is None or (not service.is_active and not include_inactive):
            raise NotFoundError(f"Service {service_id} not found")
        return service

    async def list_services(
        self, shop_id: uuid.UUID, include_inactive: bool = False
    ) -> list[ServiceDB]:
        await self.get_shop(shop_id)

        query = select(ServiceDB).where(ServiceDB.shop_id == shop_id)
        if not include_inactive:
            query = query.where(ServiceDB.is_active.is_(True))
        query = query.order_by(ServiceDB.name.asc())

        result = await self.db_session.execute(query)
        return list(result.scalars().all())

    async def update_service(
        self, service_id: uuid.UUID, actor: CurrentUser, data: ServiceUpdate
    ) -> ServiceDB:
        service = await self.get_service(service_id)
        ensure_owner(await self.get_shop(service.shop_id, include_inactive=True), actor)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(service, field, value)

        await self.db_session.commit()
        return service

    async def deactivate_service(self, service_id: uuid.UUID, actor: CurrentUser) -> None:
        service = await self.get_service(service_id)
        ensure_owner(await self.get_shop(service.shop_id, include_inactive=True), actor)

        service.is_active = False
        await self.db_session.commit()

    # ========== Schedules ==========

    async def replace_schedule(
        self, shop_id: uuid.UUID, actor: CurrentUser, entries: list[ScheduleEntry]
    ) -> list[ScheduleDB]:
        """Replace the shop's whole weekly schedule.

        Windows on the same day must not overlap; touching windows are fine.

        Raises:
            BookingValidationError: If two windows on one day overlap
        """
        shop = await self.get_shop(shop_id)
        ensure_owner(shop, actor)

        ordered = sorted(entries, key=lambda e: (e.day_of_week, e.open_time))
        for previous, current in zip(ordered, ordered[1:]):
            if previous.day_of_week == current.day_of_week and current.open_time < previous.close_time:
                raise BookingValidationError(
                    "Opening windows overlap",
                    details={
                        "day_of_week": current.day_of_week,
                        "windows": [
                            f"{previous.open_time}-{previous.close_time}",
                            f"{current.open_time}-{current.close_time}",
                        ],
                    },
                )

        await self.db_session.execute(delete(ScheduleDB).where(ScheduleDB.shop_id == shop_id))

        rows = [
            ScheduleDB(
                id=uuid.uuid4(),
                shop_id=shop_id,
                day_of_week=entry.day_of_week,
                open_time=entry.open_time,
                close_time=entry.close_time,
            )
            for entry in ordered
        ]
        self.db_session.add_all(rows)
        await self.db_session.commit()

        logger.info("schedule_replaced", shop_id=str(shop_id), windows=len(rows))
        return rows

    async def get_schedule(self, shop_id: uuid.UUID) -> list[ScheduleDB]:
        query = (
            select(ScheduleDB)
            .where(ScheduleDB.shop_id == shop_id)
            .order_by(ScheduleDB.day_of_week.asc(), ScheduleDB.open_time.asc())
        )
        result = await self.db_session.execute(query)
        return list(result.scalars().all())

    async def get_windows(self, shop_id: uuid.UUID) -> list[ScheduleWindow]:
        """Schedule rows as values for slot computation."""
        return [
            ScheduleWindow(
                day_of_week=row.day_of_week,
                open_time=row.open_time,
                close_time=row.close_time,
            )
            for row in await self.get_schedule(shop_id)
        ]


def shop_timezone(shop: ShopDB) -> ZoneInfo:
    return ZoneInfo(shop.timezone or "UTC")
