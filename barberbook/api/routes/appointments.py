"""Appointment booking and lifecycle endpoints."""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status

from barberbook.api.dependencies import get_booking_service
from barberbook.api.middleware.auth import get_current_user
from barberbook.auth.tokens import CurrentUser
from barberbook.models.appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
    CancelRequest,
    RescheduleRequest,
)
from barberbook.scheduling.booking import BookingService

router = APIRouter(prefix="/v1/appointments", tags=["appointments"])


@router.post("", response_model=Appointment, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    request: AppointmentCreate,
    current_user: CurrentUser = Depends(get_current_user),
    bookings: BookingService = Depends(get_booking_service),
) -> Appointment:
    """Book a service. The appointment starts PENDING until the shop confirms it.

    Raises:
        ConflictError: If the time overlaps another booking (409)
        BookingValidationError: If the time is in the past or outside opening hours (422)
    """
    appointment = await bookings.book(current_user, request)
    return Appointment.model_validate(appointment)


@router.get("", response_model=list[Appointment])
async def list_appointments(
    shop_id: uuid.UUID | None = Query(None, description="List a shop's appointments (owner only)"),
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    day: date | None = Query(None, alias="date", description="Shop-local day, with shop_id"),
    current_user: CurrentUser = Depends(get_current_user),
    bookings: BookingService = Depends(get_booking_service),
) -> list[Appointment]:
    """List the caller's own appointments, or a shop's when ``shop_id`` is given."""
    if shop_id is not None:
        rows = await bookings.list_for_shop(shop_id, current_user, status=status_filter, day=day)
    else:
        rows = await bookings.list_for_customer(current_user.id, status=status_filter)
    return [Appointment.model_validate(row) for row in rows]


@router.get("/{appointment_id}", response_model=Appointment)
async def get_appointment(
    appointment_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    bookings: BookingService = Depends(get_booking_service),
) -> Appointment:
    appointment = await bookings.get_appointment(appointment_id, current_user)
    return Appointment.model_validate(appointment)


@router.post("/{appointment_id}/confirm", response_model=Appointment)
async def confirm_appointment(
    appointment_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    bookings: BookingService = Depends(get_booking_service),
) -> Appointment:
    appointment = await bookings.confirm(appointment_id, current_user)
    return Appointment.model_validate(appointment)


@router.post("/{appointment_id}/reschedule", response_model=Appointment)
async def reschedule_appointment(
    appointment_id: uuid.UUID,
    request: RescheduleRequest,
    current_user: CurrentUser = Depends(get_current_user),
    bookings: BookingService = Depends(get_booking_service),
) -> Appointment:
    appointment = await bookings.reschedule(appointment_id, current_user, request.start_time)
    return Appointment.model_validate(appointment)


@router.post("/{appointment_id}/cancel", response_model=Appointment)
async def cancel_appointment(
    appointment_id: uuid.UUID,
    request: CancelRequest | None = None,
    current_user: CurrentUser = Depends(get_current_user),
    bookings: BookingService = Depends(get_booking_service),
) -> Appointment:
    reason = request.reason if request else None
    appointment = await bookings.cancel(appointment_id, current_user, reason=reason)
    return Appointment.model_validate(appointment)


@router.post("/{appointment_id}/complete", response_model=Appointment)
async def complete_appointment(
    appointment_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    bookings: BookingService = Depends(get_booking_service),
) -> Appointment:
    appointment = await bookings.complete(appointment_id, current_user)
    return Appointment.model_validate(appointment)
