"""Availability computation and the appointment booking workflow."""

from barberbook.scheduling.slots import (
    ScheduleWindow,
    TimeSlot,
    fits_schedule,
    generate_slots,
    overlaps,
)
from barberbook.scheduling.workflow import (
    ACTIVE_STATUSES,
    can_transition,
    ensure_transition,
    is_active,
)

__all__ = [
    "ACTIVE_STATUSES",
    "ScheduleWindow",
    "TimeSlot",
    "can_transition",
    "ensure_transition",
    "fits_schedule",
    "generate_slots",
    "is_active",
    "overlaps",
]
