"""Integration tests for availability and the appointment lifecycle.

Runs BookingService against a real SQLite database. Every call passes an
explicit ``now`` so results do not depend on the wall clock.
"""

import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.ext.asyncio import AsyncSession

from barberbook.exceptions import (
    AuthorizationError,
    BookingValidationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
)
from barberbook.models.appointment import AppointmentCreate, AppointmentStatus, NotificationType
from barberbook.models.shop import ServiceDB
from barberbook.models.user import UserRole
from barberbook.scheduling.booking import BookingService
from barberbook.services.notifications import NotificationService

MONDAY = date(2030, 1, 7)
SUNDAY_NOON = datetime(2030, 1, 6, 12, 0, tzinfo=timezone.utc)


def at(hour: int, minute: int = 0) -> datetime:
    """Monday at the given UTC time."""
    return datetime.combine(MONDAY, time(hour, minute), tzinfo=timezone.utc)


@pytest.fixture
def booking_service(async_db_session: AsyncSession) -> BookingService:
    return BookingService(async_db_session)


@pytest.fixture
def notification_service(async_db_session: AsyncSession) -> NotificationService:
    return NotificationService(async_db_session)


@pytest.fixture
def book(booking_service: BookingService, shop_setup: dict, identity):
    """Book the haircut for a user at a Monday time."""

    async def factory(user, hour: int, minute: int = 0, notes: str | None = None):
        return await booking_service.book(
            identity(user),
            AppointmentCreate(
                service_id=shop_setup["service"].id,
                start_time=at(hour, minute),
                notes=notes,
            ),
            now=SUNDAY_NOON,
        )

    return factory


@pytest.mark.integration
class TestAvailability:
    """Integration tests for the slot listing."""

    @pytest.mark.asyncio
    async def test_open_day_lists_all_slots(
        self, booking_service: BookingService, shop_setup: dict
    ) -> None:
        """Test that an empty Monday offers every slot in both windows."""
        slots = await booking_service.available_slots(
            shop_setup["shop"].id, shop_setup["service"].id, MONDAY, now=SUNDAY_NOON
        )

        assert len(slots) == 26
        assert all(slot.available for slot in slots)
        assert slots[0].start == at(9)

    @pytest.mark.asyncio
    async def test_booked_slot_is_unavailable(
        self, booking_service: BookingService, shop_setup: dict, customer, book
    ) -> None:
        """Test that a pending appointment blocks overlapping slots."""
        await book(customer, 10)

        slots = await booking_service.available_slots(
            shop_setup["shop"].id, shop_setup["service"].id, MONDAY, now=SUNDAY_NOON
        )

        by_start = {slot.start: slot.available for slot in slots}
        assert by_start[at(10)] is False
        assert by_start[at(9, 45)] is False
        assert by_start[at(10, 30)] is True

    @pytest.mark.asyncio
    async def test_cancelled_appointment_frees_slot(
        self, booking_service: BookingService, shop_setup: dict, customer, book, identity
    ) -> None:
        """Test that cancelling makes the slot bookable again."""
        appointment = await book(customer, 10)
        await booking_service.cancel(appointment.id, identity(customer))

        slots = await booking_service.available_slots(
            shop_setup["shop"].id, shop_setup["service"].id, MONDAY, now=SUNDAY_NOON
        )

        assert {slot.start: slot.available for slot in slots}[at(10)] is True

    @pytest.mark.asyncio
    async def test_closed_day_has_no_slots(
        self, booking_service: BookingService, shop_setup: dict
    ) -> None:
        """Test that Sunday, with no schedule, yields nothing."""
        slots = await booking_service.available_slots(
            shop_setup["shop"].id, shop_setup["service"].id, MONDAY - timedelta(days=1), now=SUNDAY_NOON
        )

        assert slots == []

    @pytest.mark.asyncio
    async def test_unknown_service_is_not_found(
        self, booking_service: BookingService, shop_setup: dict
    ) -> None:
        """Test that slots need an existing service."""
        with pytest.raises(NotFoundError):
            await booking_service.available_slots(
                shop_setup["shop"].id, uuid.uuid4(), MONDAY, now=SUNDAY_NOON
            )


@pytest.mark.integration
class TestBooking:
    """Integration tests for creating appointments."""

    @pytest.mark.asyncio
    async def test_book_creates_pending_appointment(
        self, customer, shop_setup: dict, book
    ) -> None:
        """Test that a booking spans the service duration and starts pending."""
        appointment = await book(customer, 10, notes="Short on the sides")

        assert appointment.status == AppointmentStatus.PENDING.value
        assert appointment.start_time == at(10)
        assert appointment.end_time == at(10, 30)
        assert appointment.customer_id == customer.id
        assert appointment.shop_id == shop_setup["shop"].id
        assert appointment.notes == "Short on the sides"

    @pytest.mark.asyncio
    async def test_book_notifies_shop_owner(
        self, customer, barber, book, notification_service: NotificationService
    ) -> None:
        """Test that the owner hears about the new booking."""
        appointment = await book(customer, 10)

        notifications = await notification_service.list_for_user(barber.id)

        assert len(notifications) == 1
        assert notifications[0].type == NotificationType.APPOINTMENT_BOOKED.value
        assert notifications[0].appointment_id == appointment.id
        assert notifications[0].is_read is False

    @pytest.mark.asyncio
    async def test_overlapping_booking_conflicts(self, customer, make_user, book) -> None:
        """Test that a second customer cannot take an overlapping interval."""
        other = await make_user(UserRole.CUSTOMER)
        await book(customer, 10)

        with pytest.raises(ConflictError):
            await book(other, 10, 15)

    @pytest.mark.asyncio
    async def test_touching_bookings_are_allowed(self, customer, make_user, book) -> None:
        """Test that back-to-back appointments do not clash."""
        other = await make_user(UserRole.CUSTOMER)
        first = await book(customer, 10)

        second = await book(other, 10, 30)

        assert second.start_time == first.end_time

    @pytest.mark.asyncio
    async def test_booking_in_the_past_rejected(
        self, booking_service: BookingService, customer, shop_setup: dict, identity
    ) -> None:
        """Test that the start must be after the reference time."""
        with pytest.raises(BookingValidationError, match="future"):
            await booking_service.book(
                identity(customer),
                AppointmentCreate(service_id=shop_setup["service"].id, start_time=at(10)),
                now=at(11),
            )

    @pytest.mark.asyncio
    async def test_booking_outside_opening_hours_rejected(self, customer, book) -> None:
        """Test that the lunch gap cannot be booked."""
        with pytest.raises(BookingValidationError, match="opening hours"):
            await book(customer, 12)

    @pytest.mark.asyncio
    async def test_booking_running_past_closing_rejected(self, customer, book) -> None:
        """Test that the service must end by closing time."""
        with pytest.raises(BookingValidationError):
            await book(customer, 16, 45)

    @pytest.mark.asyncio
    async def test_inactive_service_not_bookable(
        self, customer, book, shop_setup: dict, async_db_session: AsyncSession
    ) -> None:
        """Test that a deactivated service cannot be booked."""
        service: ServiceDB = shop_setup["service"]
        service.is_active = False
        await async_db_session.commit()

        with pytest.raises(NotFoundError):
            await book(customer, 10)

    @pytest.mark.asyncio
    async def test_inactive_shop_not_bookable(
        self, customer, book, shop_setup: dict, async_db_session: AsyncSession
    ) -> None:
        """Test that a deactivated shop takes no new bookings."""
        shop_setup["shop"].is_active = False
        await async_db_session.commit()

        with pytest.raises(NotFoundError):
            await book(customer, 10)

    @pytest.mark.asyncio
    async def test_longer_service_uses_its_own_duration(
        self, customer, shop_setup: dict, booking_service: BookingService,
        async_db_session: AsyncSession, identity,
    ) -> None:
        """Test that end time follows the booked service."""
        colour = ServiceDB(
            id=uuid.uuid4(),
            shop_id=shop_setup["shop"].id,
            name="Colour",
            duration_minutes=90,
            price=Decimal("60.00"),
            is_active=True,
        )
        async_db_session.add(colour)
        await async_db_session.commit()

        appointment = await booking_service.book(
            identity(customer),
            AppointmentCreate(service_id=colour.id, start_time=at(13)),
            now=SUNDAY_NOON,
        )

        assert appointment.end_time == at(14, 30)


@pytest.mark.integration
class TestLifecycle:
    """Integration tests for status transitions."""

    @pytest.mark.asyncio
    async def test_owner_confirms(
        self, booking_service: BookingService, customer, barber, book, identity,
        notification_service: NotificationService,
    ) -> None:
        """Test that confirming notifies the customer."""
        appointment = await book(customer, 10)

        confirmed = await booking_service.confirm(appointment.id, identity(barber))

        assert confirmed.status == AppointmentStatus.CONFIRMED.value
        notifications = await notification_service.list_for_user(customer.id)
        assert [n.type for n in notifications] == [NotificationType.APPOINTMENT_CONFIRMED.value]

    @pytest.mark.asyncio
    async def test_customer_cannot_confirm(
        self, booking_service: BookingService, customer, book, identity
    ) -> None:
        """Test that only the owner can confirm."""
        appointment = await book(customer, 10)

        with pytest.raises(AuthorizationError):
            await booking_service.confirm(appointment.id, identity(customer))

    @pytest.mark.asyncio
    async def test_cancelled_appointment_cannot_be_confirmed(
        self, booking_service: BookingService, customer, barber, book, identity
    ) -> None:
        """Test that terminal appointments refuse further changes."""
        appointment = await book(customer, 10)
        await booking_service.cancel(appointment.id, identity(customer), reason="Sick")

        with pytest.raises(InvalidTransitionError):
            await booking_service.confirm(appointment.id, identity(barber))

    @pytest.mark.asyncio
    async def test_cancel_records_reason_and_notifies_owner(
        self, booking_service: BookingService, customer, barber, book, identity,
        notification_service: NotificationService,
    ) -> None:
        """Test that a customer cancellation reaches the shop owner."""
        appointment = await book(customer, 10)

        cancelled = await booking_service.cancel(appointment.id, identity(customer), reason="Sick")

        assert cancelled.status == AppointmentStatus.CANCELLED.value
        assert cancelled.cancellation_reason == "Sick"
        owner_types = [n.type for n in await notification_service.list_for_user(barber.id)]
        assert NotificationType.APPOINTMENT_CANCELLED.value in owner_types

    @pytest.mark.asyncio
    async def test_cancel_twice_is_invalid(
        self, booking_service: BookingService, customer, book, identity
    ) -> None:
        """Test that a cancelled appointment cannot be cancelled again."""
        appointment = await book(customer, 10)
        await booking_service.cancel(appointment.id, identity(customer))

        with pytest.raises(InvalidTransitionError):
            await booking_service.cancel(appointment.id, identity(customer))

    @pytest.mark.asyncio
    async def test_reschedule_sees_cancellation_committed_elsewhere(
        self, booking_service: BookingService, session_factory, customer, book, identity
    ) -> None:
        """Test that a cancel committed by another session is not overwritten by a reschedule."""
        appointment = await book(customer, 10)

        async with session_factory() as other_session:
            await BookingService(other_session).cancel(appointment.id, identity(customer))

        with pytest.raises(InvalidTransitionError):
            await booking_service.reschedule(
                appointment.id, identity(customer), at(14), now=SUNDAY_NOON
            )

        current = await booking_service.get_appointment(appointment.id, identity(customer))
        assert current.status == AppointmentStatus.CANCELLED.value
        assert current.start_time == at(10)

    @pytest.mark.asyncio
    async def test_transitions_read_status_under_row_locks(
        self,
        booking_service: BookingService,
        async_db_session: AsyncSession,
        customer,
        barber,
        book,
        identity,
        monkeypatch,
    ) -> None:
        """Test that status checks run on rows locked shop first, then appointment."""
        appointment = await book(customer, 10)
        statements = []
        execute = async_db_session.execute

        async def recording_execute(statement, *args, **kwargs):
            statements.append(str(statement.compile(dialect=postgresql.dialect())))
            return await execute(statement, *args, **kwargs)

        monkeypatch.setattr(async_db_session, "execute", recording_execute)

        await booking_service.reschedule(appointment.id, identity(customer), at(14), now=SUNDAY_NOON)
        locked = [sql for sql in statements if "FOR UPDATE" in sql]
        assert "FROM shops" in locked[0]
        assert "FROM appointments" in locked[1]

        statements.clear()
        await booking_service.cancel(appointment.id, identity(barber))
        assert any("FROM appointments" in sql and "FOR UPDATE" in sql for sql in statements)

    @pytest.mark.asyncio
    async def test_reschedule_keeps_duration_and_needs_reconfirmation(
        self, booking_service: BookingService, customer, barber, book, identity
    ) -> None:
        """Test that a moved appointment is RESCHEDULED and can be confirmed again."""
        appointment = await book(customer, 10)
        await booking_service.confirm(appointment.id, identity(barber))

        moved = await booking_service.reschedule(
            appointment.id, identity(customer), at(14), now=SUNDAY_NOON
        )

        assert moved.status == AppointmentStatus.RESCHEDULED.value
        assert moved.start_time == at(14)
        assert moved.end_time == at(14, 30)

        reconfirmed = await booking_service.confirm(appointment.id, identity(barber))
        assert reconfirmed.status == AppointmentStatus.CONFIRMED.value

    @pytest.mark.asyncio
    async def test_reschedule_may_overlap_its_own_old_slot(
        self, booking_service: BookingService, customer, book, identity
    ) -> None:
        """Test that the appointment being moved does not conflict with itself."""
        appointment = await book(customer, 10)

        moved = await booking_service.reschedule(
            appointment.id, identity(customer), at(10, 15), now=SUNDAY_NOON
        )

        assert moved.start_time == at(10, 15)

    @pytest.mark.asyncio
    async def test_reschedule_onto_other_booking_conflicts(
        self, booking_service: BookingService, customer, make_user, book, identity
    ) -> None:
        """Test that a move onto another active appointment is refused unchanged."""
        other = await make_user(UserRole.CUSTOMER)
        appointment = await book(customer, 10)
        await book(other, 11)

        with pytest.raises(ConflictError):
            await booking_service.reschedule(
                appointment.id, identity(customer), at(11, 15), now=SUNDAY_NOON
            )

        unchanged = await booking_service.get_appointment(appointment.id, identity(customer))
        assert unchanged.start_time == at(10)
        assert unchanged.status == AppointmentStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_reschedule_by_owner_notifies_customer(
        self, booking_service: BookingService, customer, barber, book, identity,
        notification_service: NotificationService,
    ) -> None:
        """Test that the customer hears when the shop moves their appointment."""
        appointment = await book(customer, 10)

        await booking_service.reschedule(appointment.id, identity(barber), at(15), now=SUNDAY_NOON)

        customer_types = [n.type for n in await notification_service.list_for_user(customer.id)]
        assert customer_types == [NotificationType.APPOINTMENT_RESCHEDULED.value]

    @pytest.mark.asyncio
    async def test_reschedule_outside_hours_rejected(
        self, booking_service: BookingService, customer, book, identity
    ) -> None:
        """Test that the new time must fit the schedule."""
        appointment = await book(customer, 10)

        with pytest.raises(BookingValidationError):
            await booking_service.reschedule(
                appointment.id, identity(customer), at(18), now=SUNDAY_NOON
            )

    @pytest.mark.asyncio
    async def test_complete_after_start(
        self, booking_service: BookingService, customer, barber, book, identity
    ) -> None:
        """Test that a confirmed appointment completes once it has begun."""
        appointment = await book(customer, 10)
        await booking_service.confirm(appointment.id, identity(barber))

        completed = await booking_service.complete(appointment.id, identity(barber), now=at(10, 20))

        assert completed.status == AppointmentStatus.COMPLETED.value

    @pytest.mark.asyncio
    async def test_complete_before_start_rejected(
        self, booking_service: BookingService, customer, barber, book, identity
    ) -> None:
        """Test that a future appointment cannot be completed."""
        appointment = await book(customer, 10)
        await booking_service.confirm(appointment.id, identity(barber))

        with pytest.raises(BookingValidationError, match="not started"):
            await booking_service.complete(appointment.id, identity(barber), now=SUNDAY_NOON)

    @pytest.mark.asyncio
    async def test_pending_appointment_cannot_complete(
        self, booking_service: BookingService, customer, barber, book, identity
    ) -> None:
        """Test that completion requires confirmation first."""
        appointment = await book(customer, 10)

        with pytest.raises(InvalidTransitionError):
            await booking_service.complete(appointment.id, identity(barber), now=at(10, 20))

    @pytest.mark.asyncio
    async def test_completed_appointment_releases_slot(
        self, booking_service: BookingService, customer, barber, book, identity, shop_setup: dict
    ) -> None:
        """Test that a completed appointment no longer blocks its slot."""
        appointment = await book(customer, 10)
        await booking_service.confirm(appointment.id, identity(barber))
        await booking_service.complete(appointment.id, identity(barber), now=at(10, 20))

        slots = await booking_service.available_slots(
            shop_setup["shop"].id, shop_setup["service"].id, MONDAY, now=SUNDAY_NOON
        )

        assert {slot.start: slot.available for slot in slots}[at(10)] is True


@pytest.mark.integration
class TestAccessAndListing:
    """Integration tests for visibility rules and listings."""

    @pytest.mark.asyncio
    async def test_stranger_cannot_view_appointment(
        self, booking_service: BookingService, customer, make_user, book, identity
    ) -> None:
        """Test that someone else's appointment is forbidden."""
        stranger = await make_user(UserRole.CUSTOMER)
        appointment = await book(customer, 10)

        with pytest.raises(AuthorizationError):
            await booking_service.get_appointment(appointment.id, identity(stranger))

    @pytest.mark.asyncio
    async def test_stranger_cannot_cancel(
        self, booking_service: BookingService, customer, make_user, book, identity
    ) -> None:
        """Test that only participants may cancel."""
        stranger = await make_user(UserRole.BARBER)
        appointment = await book(customer, 10)

        with pytest.raises(AuthorizationError):
            await booking_service.cancel(appointment.id, identity(stranger))

    @pytest.mark.asyncio
    async def test_admin_can_view_any_appointment(
        self, booking_service: BookingService, customer, make_user, book, identity
    ) -> None:
        """Test that admins see every appointment."""
        admin = await make_user(UserRole.ADMIN)
        appointment = await book(customer, 10)

        found = await booking_service.get_appointment(appointment.id, identity(admin))

        assert found.id == appointment.id

    @pytest.mark.asyncio
    async def test_missing_appointment_not_found(
        self, booking_service: BookingService, customer, identity
    ) -> None:
        """Test that an unknown id raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await booking_service.get_appointment(uuid.uuid4(), identity(customer))

    @pytest.mark.asyncio
    async def test_customer_listing_is_sorted_and_filtered(
        self, booking_service: BookingService, customer, book, identity
    ) -> None:
        """Test that a customer sees their own appointments soonest first."""
        later = await book(customer, 14)
        earlier = await book(customer, 9)
        await booking_service.cancel(later.id, identity(customer))

        everything = await booking_service.list_for_customer(customer.id)
        pending = await booking_service.list_for_customer(
            customer.id, status=AppointmentStatus.PENDING
        )

        assert [a.id for a in everything] == [earlier.id, later.id]
        assert [a.id for a in pending] == [earlier.id]

    @pytest.mark.asyncio
    async def test_shop_listing_by_day_for_owner(
        self, booking_service: BookingService, customer, barber, book, identity, shop_setup: dict
    ) -> None:
        """Test that the owner lists one day's appointments."""
        appointment = await book(customer, 10)

        monday = await booking_service.list_for_shop(
            shop_setup["shop"].id, identity(barber), day=MONDAY
        )
        tuesday = await booking_service.list_for_shop(
            shop_setup["shop"].id, identity(barber), day=MONDAY + timedelta(days=1)
        )

        assert [a.id for a in monday] == [appointment.id]
        assert tuesday == []

    @pytest.mark.asyncio
    async def test_shop_listing_requires_owner(
        self, booking_service: BookingService, customer, identity, shop_setup: dict
    ) -> None:
        """Test that customers cannot list a shop's calendar."""
        with pytest.raises(AuthorizationError):
            await booking_service.list_for_shop(shop_setup["shop"].id, identity(customer))
