"""Appointment booking and lifecycle management.

Double booking is prevented by locking the shop row before the overlap
query, so two transactions booking the same shop run one after the other.
"""

import uuid
from datetime import date, datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from barberbook import config
from barberbook.auth.tokens import CurrentUser
from barberbook.exceptions import AuthorizationError, BookingValidationError, ConflictError, NotFoundError
from barberbook.models.appointment import (
    AppointmentCreate,
    AppointmentDB,
    AppointmentStatus,
    NotificationType,
)
from barberbook.models.shop import ShopDB
from barberbook.scheduling.slots import (
    TimeSlot,
    day_bounds,
    fits_schedule,
    generate_slots,
    to_utc,
)
from barberbook.scheduling.workflow import ACTIVE_STATUSES, ensure_transition
from barberbook.services.notifications import NotificationService
from barberbook.shops.manager import ShopManager, ensure_owner, shop_timezone

logger = structlog.get_logger(__name__)

_ACTIVE_VALUES = [status.value for status in ACTIVE_STATUSES]


class BookingService:
    """Computes availability and drives appointments through their lifecycle.

    Every status change stages a notification for the other party (the
    shop owner when the customer acts, the customer otherwise) and commits
    both in one transaction.
    """

    def __init__(self, db_session: AsyncSession, granularity_minutes: int | None = None):
        """Initialize booking service.

        Args:
            db_session: Database session for persistence
            granularity_minutes: Step between candidate slot starts
        """
        self.db_session = db_session
        self.granularity_minutes = granularity_minutes or config.SLOT_GRANULARITY_MINUTES
        self.shops = ShopManager(db_session)
        self.notifications = NotificationService(db_session)

    # ========== Availability ==========

    async def _active_bookings(
        self,
        shop_id: uuid.UUID,
        range_start: datetime,
        range_end: datetime,
        exclude_id: uuid.UUID | None = None,
    ) -> list[tuple[datetime, datetime]]:
        """Intervals of active appointments overlapping [range_start, range_end)."""
        query = select(AppointmentDB.start_time, AppointmentDB.end_time).where(
            AppointmentDB.shop_id == shop_id,
            AppointmentDB.status.in_(_ACTIVE_VALUES),
            AppointmentDB.start_time < to_utc(range_end),
            AppointmentDB.end_time > to_utc(range_start),
        )
        if exclude_id is not None:
            query = query.where(AppointmentDB.id != exclude_id)
        query = query.order_by(AppointmentDB.start_time.asc())

        result = await self.db_session.execute(query)
        return [(to_utc(start), to_utc(end)) for start, end in result.all()]

    async def available_slots(
        self,
        shop_id: uuid.UUID,
        service_id: uuid.UUID,
        day: date,
        now: datetime | None = None,
    ) -> list[TimeSlot]:
        """All candidate slots for a service on a local calendar day.

        Args:
            shop_id: Shop to book at
            service_id: Service whose duration sizes the slots
            day: Day in the shop's timezone
            now: Reference time for hiding past slots (defaults to the current time)

        Returns:
            Slots ordered by start, each flagged available or not

        Raises:
            NotFoundError: If the shop or service does not exist, or the service
                belongs to another shop
        """
        shop = await self.shops.get_shop(shop_id)
        service = await self.shops.get_service(service_id)
        if service.shop_id != shop.id:
            raise NotFoundError(f"Service {service_id} not found")

        tz = shop_timezone(shop)
        range_start, range_end = day_bounds(day, tz)
        bookings = await self._active_bookings(shop.id, range_start, range_end)

        return generate_slots(
            day,
            await self.shops.get_windows(shop.id),
            service.duration_minutes,
            bookings,
            tz=tz,
            granularity_minutes=self.granularity_minutes,
            now=now or datetime.now(timezone.utc),
        )

    async def _ensure_bookable(
        self,
        shop: ShopDB,
        start: datetime,
        end: datetime,
        now: datetime,
        exclude_id: uuid.UUID | None = None,
    ) -> None:
        """Check a requested interval against the clock, opening hours and other bookings.

        Must be called while holding the shop lock.
        """
        if start <= to_utc(now):
            raise BookingValidationError(
                "Appointments must start in the future",
                details={"start_time": start.isoformat()},
            )

        windows = await self.shops.get_windows(shop.id)
        if not fits_schedule(start, end, windows, shop_timezone(shop)):
            raise BookingValidationError(
                "Requested time is outside the shop's opening hours",
                details={"start_time": start.isoformat(), "end_time": end.isoformat()},
            )

        clashes = await self._active_bookings(shop.id, start, end, exclude_id=exclude_id)
        if clashes:
            raise ConflictError(
                "Requested time overlaps an existing appointment",
                details={"start_time": start.isoformat(), "end_time": end.isoformat()},
            )

    # ========== Lifecycle ==========

    async def book(
        self,
        customer: CurrentUser,
        data: AppointmentCreate,
        now: datetime | None = None,
    ) -> AppointmentDB:
        """Create a PENDING appointment for ``customer``.

        Raises:
            NotFoundError: Unknown or inactive service or shop
            BookingValidationError: Start in the past or outside opening hours
            ConflictError: Interval overlaps an active appointment
        """
        service = await self.shops.get_service(data.service_id)
        shop = await self.shops.lock_shop(service.shop_id)

        start = to_utc(data.start_time)
        end = start + service.duration

        await self._ensure_bookable(shop, start, end, now or datetime.now(timezone.utc))

        appointment = AppointmentDB(
            id=uuid.uuid4(),
            shop_id=shop.id,
            service_id=service.id,
            customer_id=customer.id,
            start_time=start,
            end_time=end,
            status=AppointmentStatus.PENDING.value,
            notes=data.notes,
        )
        self.db_session.add(appointment)
        # Notification rows reference the appointment, so it must be inserted first
        await self.db_session.flush()
        self.notifications.notify(
            shop.owner_id,
            NotificationType.APPOINTMENT_BOOKED,
            f"New booking for {service.name} on {start.isoformat()}",
            appointment_id=appointment.id,
        )
        await self.db_session.commit()

        logger.info(
            "appointment_booked",
            appointment_id=str(appointment.id),
            shop_id=str(shop.id),
            customer_id=str(customer.id),
            start_time=start.isoformat(),
        )
        return appointment

    async def _load(self, appointment_id: uuid.UUID, for_update: bool = False) -> AppointmentDB:
        """Load an appointment, optionally re-reading it under a row lock.

        A locked load refreshes any copy already in the session, so status
        checks see what concurrent transactions committed.
        """
        query = select(AppointmentDB).where(AppointmentDB.id == appointment_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db_session.execute(query)
        appointment = result.scalar_one_or_none()
        if appointment is None:
            raise NotFoundError(f"Appointment {appointment_id} not found")
        return appointment

    def _counterparty(self, appointment: AppointmentDB, shop: ShopDB, actor: CurrentUser) -> uuid.UUID:
        if actor.id == appointment.customer_id:
            return shop.owner_id
        return appointment.customer_id

    def _ensure_participant(self, appointment: AppointmentDB, shop: ShopDB, actor: CurrentUser) -> None:
        if actor.id == appointment.customer_id:
            return
        try:
            ensure_owner(shop, actor)
        except AuthorizationError as e:
            raise AuthorizationError("Access denied to this appointment") from e

    def _record_transition(
        self,
        appointment: AppointmentDB,
        target: AppointmentStatus,
        actor: CurrentUser,
        recipient: uuid.UUID,
        notification_type: NotificationType,
        message: str,
    ) -> None:
        previous = appointment.status
        appointment.status = target.value
        self.notifications.notify(
            recipient, notification_type, message, appointment_id=appointment.id
        )
        logger.info(
            "appointment_transition",
            appointment_id=str(appointment.id),
            from_status=previous,
            to_status=target.value,
            actor_id=str(actor.id),
        )

    async def get_appointment(self, appointment_id: uuid.UUID, actor: CurrentUser) -> AppointmentDB:
        """Load an appointment visible to its customer, the shop owner or an admin."""
        appointment = await self._load(appointment_id)
        shop = await self.shops.get_shop(appointment.shop_id, include_inactive=True)
        self._ensure_participant(appointment, shop, actor)
        return appointment

    async def confirm(self, appointment_id: uuid.UUID, actor: CurrentUser) -> AppointmentDB:
        """Shop owner accepts a pending or rescheduled appointment."""
        appointment = await self._load(appointment_id, for_update=True)
        shop = await self.shops.get_shop(appointment.shop_id, include_inactive=True)
        ensure_owner(shop, actor)
        ensure_transition(appointment.status, AppointmentStatus.CONFIRMED)

        self._record_transition(
            appointment,
            AppointmentStatus.CONFIRMED,
            actor,
            appointment.customer_id,
            NotificationType.APPOINTMENT_CONFIRMED,
            f"Your appointment at {shop.name} on {to_utc(appointment.start_time).isoformat()} is confirmed",
        )
        await self.db_session.commit()
        return appointment

    async def reschedule(
        self,
        appointment_id: uuid.UUID,
        actor: CurrentUser,
        new_start: datetime,
        now: datetime | None = None,
    ) -> AppointmentDB:
        """Move an appointment, keeping its duration.

        The appointment becomes RESCHEDULED and needs the owner's
        confirmation again.

        Raises:
            InvalidTransitionError: Appointment is cancelled or completed
            BookingValidationError: New time in the past or outside opening hours
            ConflictError: New time overlaps another active appointment
        """
        appointment = await self._load(appointment_id)
        # Lock order is shop row, then appointment row
        shop = await self.shops.lock_shop(appointment.shop_id)
        appointment = await self._load(appointment_id, for_update=True)
        self._ensure_participant(appointment, shop, actor)
        ensure_transition(appointment.status, AppointmentStatus.RESCHEDULED)

        duration = to_utc(appointment.end_time) - to_utc(appointment.start_time)
        start = to_utc(new_start)
        end = start + duration

        await self._ensure_bookable(
            shop, start, end, now or datetime.now(timezone.utc), exclude_id=appointment.id
        )

        appointment.start_time = start
        appointment.end_time = end
        self._record_transition(
            appointment,
            AppointmentStatus.RESCHEDULED,
            actor,
            self._counterparty(appointment, shop, actor),
            NotificationType.APPOINTMENT_RESCHEDULED,
            f"Appointment at {shop.name} moved to {start.isoformat()}",
        )
        await self.db_session.commit()
        return appointment

    async def cancel(
        self, appointment_id: uuid.UUID, actor: CurrentUser, reason: str | None = None
    ) -> AppointmentDB:
        """Cancel an appointment, freeing its slot."""
        appointment = await self._load(appointment_id, for_update=True)
        shop = await self.shops.get_shop(appointment.shop_id, include_inactive=True)
        self._ensure_participant(appointment, shop, actor)
        ensure_transition(appointment.status, AppointmentStatus.CANCELLED)

        appointment.cancellation_reason = reason
        message = f"Appointment at {shop.name} on {to_utc(appointment.start_time).isoformat()} was cancelled"
        if reason:
            message = f"{message}: {reason}"

        self._record_transition(
            appointment,
            AppointmentStatus.CANCELLED,
            actor,
            self._counterparty(appointment, shop, actor),
            NotificationType.APPOINTMENT_CANCELLED,
            message,
        )
        await self.db_session.commit()
        return appointment

    async def complete(
        self, appointment_id: uuid.UUID, actor: CurrentUser, now: datetime | None = None
    ) -> AppointmentDB:
        """Shop owner marks a confirmed appointment as done.

        Raises:
            BookingValidationError: If the appointment has not started yet
        """
        appointment = await self._load(appointment_id, for_update=True)
        shop = await self.shops.get_shop(appointment.shop_id, include_inactive=True)
        ensure_owner(shop, actor)
        ensure_transition(appointment.status, AppointmentStatus.COMPLETED)

        if to_utc(now or datetime.now(timezone.utc)) < to_utc(appointment.start_time):
            raise BookingValidationError("Appointment has not started yet")

        self._record_transition(
            appointment,
            AppointmentStatus.COMPLETED,
            actor,
            appointment.customer_id,
            NotificationType.APPOINTMENT_COMPLETED,
            f"Thanks for visiting {shop.name}",
        )
        await self.db_session.commit()
        return appointment

    # ========== Listing ==========

    async def list_for_customer(
        self,
        customer_id: uuid.UUID,
        status: AppointmentStatus | None = None,
        limit: int = 100,
    ) -> list[AppointmentDB]:
        """A customer's appointments, soonest first."""
        query = select(AppointmentDB).where(AppointmentDB.customer_id == customer_id)
        if status is not None:
            query = query.where(AppointmentDB.status == status.value)
        query = query.order_by(AppointmentDB.start_time.asc()).limit(limit)

        result = await self.db_session.execute(query)
        return list(result.scalars().all())

    async def list_for_shop(
        self,
        shop_id: uuid.UUID,
        actor: CurrentUser,
        status: AppointmentStatus | None = None,
        day: date | None = None,
        limit: int = 200,
    ) -> list[AppointmentDB]:
        """A shop's appointments for its owner, optionally for one local day."""
        shop = await self.shops.get_shop(shop_id, include_inactive=True)
        ensure_owner(shop, actor)

        query = select(AppointmentDB).where(AppointmentDB.shop_id == shop_id)
        if status is not None:
            query = query.where(AppointmentDB.status == status.value)
        if day is not None:
            range_start, range_end = day_bounds(day, shop_timezone(shop))
            query = query.where(
                AppointmentDB.start_time >= range_start,
                AppointmentDB.start_time < range_end,
            )
        query = query.order_by(AppointmentDB.start_time.asc()).limit(limit)

        result = await self.db_session.execute(query)
        return list(result.scalars().all())
