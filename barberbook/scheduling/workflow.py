"""Appointment status transitions."""

from barberbook.exceptions import InvalidTransitionError
from barberbook.models.appointment import AppointmentStatus

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.RESCHEDULED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.RESCHEDULED, AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED}
    ),
    AppointmentStatus.RESCHEDULED: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.RESCHEDULED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
}

# Statuses that hold a slot on the shop's calendar
ACTIVE_STATUSES: frozenset[AppointmentStatus] = frozenset(
    {AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED, AppointmentStatus.RESCHEDULED}
)


def is_active(status: AppointmentStatus | str) -> bool:
    return AppointmentStatus(status) in ACTIVE_STATUSES


def is_terminal(status: AppointmentStatus | str) -> bool:
    return not ALLOWED_TRANSITIONS[AppointmentStatus(status)]


def can_transition(current: AppointmentStatus | str, target: AppointmentStatus | str) -> bool:
    """Check whether ``current`` may move to ``target``."""
    return AppointmentStatus(target) in ALLOWED_TRANSITIONS[AppointmentStatus(current)]


def ensure_transition(current: AppointmentStatus | str, target: AppointmentStatus | str) -> None:
    """Raise InvalidTransitionError unless ``current`` may move to ``target``."""
    if not can_transition(current, target):
        current_value = AppointmentStatus(current).value
        target_value = AppointmentStatus(target).value
        raise InvalidTransitionError(
            f"Cannot change appointment from {current_value} to {target_value}",
            details={"current_status": current_value, "requested_status": target_value},
        )
