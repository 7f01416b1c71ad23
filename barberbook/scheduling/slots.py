"""Time-slot generation from opening windows and existing bookings.

All functions here are pure: they take plain values and never touch the
database, so the booking service and the API share one implementation.
"""

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from pydantic import BaseModel, Field

DEFAULT_GRANULARITY_MINUTES = 15


class ScheduleWindow(BaseModel):
    """One opening interval on a given weekday (0 = Sunday)."""

    day_of_week: int = Field(..., ge=0, le=6)
    open_time: time
    close_time: time

    class Config:
        """Pydantic configuration."""

        frozen = True


class TimeSlot(BaseModel):
    """A candidate booking interval, in UTC."""

    start: datetime
    end: datetime
    available: bool

    class Config:
        """Pydantic configuration."""

        frozen = True


def to_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def day_of_week(day: date) -> int:
    """Weekday number with Sunday as 0, matching stored schedules."""
    return (day.weekday() + 1) % 7


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval overlap; touching intervals do not overlap."""
    return a_start < b_end and b_start < a_end


def window_bounds(day: date, window: ScheduleWindow, tz: tzinfo) -> tuple[datetime, datetime]:
    """UTC start and end of ``window`` on the local calendar ``day``."""
    opens = datetime.combine(day, window.open_time, tzinfo=tz)
    closes = datetime.combine(day, window.close_time, tzinfo=tz)
    return to_utc(opens), to_utc(closes)


def generate_slots(
    day: date,
    windows: Iterable[ScheduleWindow],
    duration_minutes: int,
    bookings: Iterable[tuple[datetime, datetime]],
    *,
    tz: tzinfo = timezone.utc,
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
    now: datetime | None = None,
) -> list[TimeSlot]:
    """Compute the bookable slots of one day.

    Candidate starts step from each window's opening time by
    ``granularity_minutes`` and stop once the service would run past closing.
    A slot is unavailable if it overlaps an existing booking or starts
    before ``now``.

    Args:
        day: Calendar day in the shop's timezone
        windows: Weekly opening windows (only those for ``day`` are used)
        duration_minutes: Length of the service being booked
        bookings: (start, end) pairs of active appointments
        tz: Timezone the windows are expressed in
        granularity_minutes: Step between candidate starts
        now: Slots starting before this instant are marked unavailable

    Returns:
        Slots ordered by start time

    Raises:
        ValueError: If duration or granularity is not positive
    """
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")
    if granularity_minutes <= 0:
        raise ValueError("granularity_minutes must be positive")

    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=granularity_minutes)
    weekday = day_of_week(day)

    starts: set[datetime] = set()
    for window in windows:
        if window.day_of_week != weekday:
            continue
        opens, closes = window_bounds(day, window, tz)
        start = opens
        while start + duration <= closes:
            starts.add(start)
            start += step

    busy = sorted((to_utc(b_start), to_utc(b_end)) for b_start, b_end in bookings)
    cutoff = to_utc(now) if now is not None else None

    slots = []
    first = 0
    for start in sorted(starts):
        end = start + duration

        # Slot starts only increase, so bookings ending before this one never matter again
        while first < len(busy) and busy[first][1] <= start:
            first += 1

        taken = False
        index = first
        while index < len(busy) and busy[index][0] < end:
            if overlaps(start, end, *busy[index]):
                taken = True
                break
            index += 1

        in_past = cutoff is not None and start < cutoff
        slots.append(TimeSlot(start=start, end=end, available=not (taken or in_past)))

    return slots


def fits_schedule(
    start: datetime,
    end: datetime,
    windows: Iterable[ScheduleWindow],
    tz: tzinfo = timezone.utc,
) -> bool:
    """True if [start, end) lies entirely inside one opening window.

    The window is looked up on the local day ``start`` falls on.
    """
    start_utc, end_utc = to_utc(start), to_utc(end)
    local_day = start_utc.astimezone(tz).date()
    weekday = day_of_week(local_day)

    for window in windows:
        if window.day_of_week != weekday:
            continue
        opens, closes = window_bounds(local_day, window, tz)
        if opens <= start_utc and end_utc <= closes:
            return True
    return False


def day_bounds(day: date, tz: tzinfo = timezone.utc) -> tuple[datetime, datetime]:
    """UTC instants of local midnight at the start and end of ``day``."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return to_utc(start), to_utc(end)
